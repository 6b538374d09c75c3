"""
Peak-Hour Analyzer

Buckets queue records by the local hour of day they were created (regardless
of date), ranks peak and quiet hours and suggests staffing per hour.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

from .aggregator import wait_times
from .constants import AnalyticsDefaults, QueueStatus
from .datetime_utils import to_local
from .math_utils import average, percentage
from .models import (
    DateRange,
    HourlyStat,
    PeakHoursSnapshot,
    QueueRecord,
    StaffingSuggestion,
)

logger = logging.getLogger(__name__)

HIGH_VOLUME_REASON = "High volume"
NORMAL_VOLUME_REASON = "Normal volume"


def hourly_stats(records: Sequence[QueueRecord]) -> List[HourlyStat]:
    """
    Build the 24-bucket hour-of-day profile in the local zone.

    Args:
        records: Queue records to bucket

    Returns:
        Exactly 24 HourlyStat entries, hour 0 first
    """
    buckets: Dict[int, List[QueueRecord]] = defaultdict(list)
    for record in records:
        buckets[to_local(record.created_at).hour].append(record)

    stats = []
    for hour in range(AnalyticsDefaults.HOURS_PER_DAY):
        hour_records = buckets.get(hour, [])
        completed = sum(1 for r in hour_records if r.status == QueueStatus.COMPLETED)
        stats.append(HourlyStat(
            hour=hour,
            queue_count=len(hour_records),
            average_wait_time=average(wait_times(hour_records)),
            completion_rate=percentage(completed, len(hour_records)),
        ))
    return stats


def rank_hours(
    stats: Sequence[HourlyStat],
    size: int = AnalyticsDefaults.PEAK_SLICE_SIZE,
) -> Tuple[List[HourlyStat], List[HourlyStat]]:
    """
    Rank hours into peak (busiest first) and quiet (calmest first) slices.

    Ties on queue count are broken by hour ascending in both slices.

    Args:
        stats: The 24-bucket profile
        size: Number of hours in each slice

    Returns:
        (peak_hours, quiet_hours)
    """
    peak = sorted(stats, key=lambda s: (-s.queue_count, s.hour))[:size]
    quiet = sorted(stats, key=lambda s: (s.queue_count, s.hour))[:size]
    return peak, quiet


def staffing_suggestions(
    stats: Sequence[HourlyStat],
    high_volume_threshold: int = AnalyticsDefaults.HIGH_VOLUME_QUEUE_COUNT,
) -> List[StaffingSuggestion]:
    """Recommended employees per hour based on queue volume"""
    suggestions = []
    for stat in stats:
        busy = stat.queue_count > high_volume_threshold
        suggestions.append(StaffingSuggestion(
            hour=stat.hour,
            recommended_employees=(
                AnalyticsDefaults.HIGH_VOLUME_STAFF
                if busy else AnalyticsDefaults.NORMAL_VOLUME_STAFF
            ),
            reason=HIGH_VOLUME_REASON if busy else NORMAL_VOLUME_REASON,
        ))
    return suggestions


def calculate_peak_hours(
    records: Sequence[QueueRecord],
    shop_id: str,
    date_range: DateRange,
) -> PeakHoursSnapshot:
    """
    Compute the peak-hours snapshot for a record set.

    Args:
        records: Queue records for the shop and range
        shop_id: Shop the records belong to
        date_range: Range the records were fetched for

    Returns:
        PeakHoursSnapshot with 24 hourly entries, peak/quiet slices and
        staffing suggestions
    """
    stats = hourly_stats(records)
    peak, quiet = rank_hours(stats)

    logger.debug(
        "Peak hours for shop %s: %s",
        shop_id, [s.hour for s in peak if s.queue_count > 0]
    )

    return PeakHoursSnapshot(
        hourly=tuple(stats),
        peak_hours=tuple(peak),
        quiet_hours=tuple(quiet),
        recommended_staffing=tuple(staffing_suggestions(stats)),
        date_range=date_range,
        shop_id=shop_id,
    )
