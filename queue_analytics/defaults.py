"""
Zero-Value Defaults

Canonical empty results substituted for a sub-computation that failed or
timed out. Every section stays structurally complete: counts and rates are
0 and lists are empty, so consumers never need to null-check a section.
"""

from .constants import AnalyticsDefaults
from .models import (
    AnalyticsSnapshot,
    DateRange,
    HourlyStat,
    PeakHoursSnapshot,
    ServiceAnalytics,
)


def default_analytics(shop_id: str, date_range: DateRange) -> AnalyticsSnapshot:
    """All-zero analytics snapshot"""
    return AnalyticsSnapshot(
        total_queues=0,
        completed_queues=0,
        cancelled_queues=0,
        no_show_queues=0,
        in_progress_queues=0,
        waiting_queues=0,
        average_wait_time=0,
        average_service_time=0,
        completion_rate=0,
        cancellation_rate=0,
        no_show_rate=0,
        date_range=date_range,
        shop_id=shop_id,
    )


def default_peak_hours(shop_id: str, date_range: DateRange) -> PeakHoursSnapshot:
    """
    Peak-hours snapshot with 24 zero buckets and no rankings.

    The hourly profile keeps its 24 entries; peak, quiet and staffing lists
    are empty since there is no load to rank.
    """
    hourly = tuple(
        HourlyStat(hour=hour, queue_count=0, average_wait_time=0, completion_rate=0)
        for hour in range(AnalyticsDefaults.HOURS_PER_DAY)
    )
    return PeakHoursSnapshot(
        hourly=hourly,
        peak_hours=(),
        quiet_hours=(),
        recommended_staffing=(),
        date_range=date_range,
        shop_id=shop_id,
    )


def default_service_analytics(shop_id: str, date_range: DateRange) -> ServiceAnalytics:
    """Service analytics with no services"""
    return ServiceAnalytics(
        service_stats=(),
        top_services=(),
        least_popular_services=(),
        date_range=date_range,
        shop_id=shop_id,
    )
