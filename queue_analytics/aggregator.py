"""
Analytics Aggregator

Reduces a set of queue records for one shop and date range into an
AnalyticsSnapshot (status counts, rates, average wait and service time) or a
TimeAnalytics distribution. Pure functions, no I/O.
"""

import logging
from collections import Counter
from typing import Iterable, List, Optional, Sequence

from .constants import QueueStatus
from .math_utils import average, median, percentage
from .models import AnalyticsSnapshot, DateRange, QueueRecord, TimeAnalytics

logger = logging.getLogger(__name__)


def wait_times(records: Iterable[QueueRecord]) -> List[float]:
    """Wait times of records that have a positive actual wait"""
    return [r.actual_wait_time for r in records if r.has_wait_time]


def service_times(records: Iterable[QueueRecord]) -> List[int]:
    """Whole-minute service times of records with a positive duration"""
    minutes = (r.service_minutes for r in records)
    return [m for m in minutes if m is not None and m > 0]


def count_by_status(records: Sequence[QueueRecord]) -> Counter:
    """Count records per QueueStatus (every status present, possibly 0)"""
    counts = Counter({status: 0 for status in QueueStatus})
    counts.update(r.status for r in records)
    return counts


def calculate_analytics(
    records: Sequence[QueueRecord],
    shop_id: str,
    date_range: DateRange,
) -> AnalyticsSnapshot:
    """
    Aggregate queue records into an analytics snapshot.

    Args:
        records: Queue records for the shop and range
        shop_id: Shop the records belong to
        date_range: Range the records were fetched for

    Returns:
        AnalyticsSnapshot; every rate and average is 0 for an empty set
    """
    total = len(records)
    counts = count_by_status(records)

    completed = counts[QueueStatus.COMPLETED]
    cancelled = counts[QueueStatus.CANCELLED]
    no_show = counts[QueueStatus.NO_SHOW]

    snapshot = AnalyticsSnapshot(
        total_queues=total,
        completed_queues=completed,
        cancelled_queues=cancelled,
        no_show_queues=no_show,
        in_progress_queues=counts[QueueStatus.IN_PROGRESS],
        waiting_queues=counts[QueueStatus.WAITING],
        average_wait_time=average(wait_times(records)),
        average_service_time=average(service_times(records)),
        completion_rate=percentage(completed, total),
        cancellation_rate=percentage(cancelled, total),
        no_show_rate=percentage(no_show, total),
        date_range=date_range,
        shop_id=shop_id,
    )

    logger.debug(
        "Aggregated %d records for shop %s (%s - %s)",
        total, shop_id, date_range.date_from, date_range.date_to
    )
    return snapshot


def calculate_time_analytics(
    records: Sequence[QueueRecord],
    shop_id: str,
    date_range: DateRange,
) -> TimeAnalytics:
    """
    Compute the wait and service time distribution of a record set.

    Args:
        records: Queue records for the shop and range
        shop_id: Shop the records belong to
        date_range: Range the records were fetched for

    Returns:
        TimeAnalytics with averages, medians and extremes (0 when empty)
    """
    waits = wait_times(records)
    services = service_times(records)

    return TimeAnalytics(
        average_wait_time=average(waits),
        median_wait_time=median(waits),
        min_wait_time=min(waits) if waits else 0,
        max_wait_time=max(waits) if waits else 0,
        average_service_time=average(services),
        median_service_time=median(services),
        min_service_time=min(services) if services else 0,
        max_service_time=max(services) if services else 0,
        total_service_time=sum(services),
        date_range=date_range,
        shop_id=shop_id,
    )


def max_wait_time(records: Iterable[QueueRecord]) -> float:
    """Longest positive wait in the set, 0 when none"""
    waits = wait_times(records)
    return max(waits) if waits else 0


def filter_records(
    records: Iterable[QueueRecord],
    employee_id: Optional[str] = None,
    service_id: Optional[str] = None,
    department_id: Optional[str] = None,
) -> List[QueueRecord]:
    """
    Narrow a record set by serving employee, service line or department.

    Args:
        records: Records to filter
        employee_id: Keep only records served by this employee
        service_id: Keep only records containing this service
        department_id: Keep only records of this department

    Returns:
        Filtered list (all records when no filter is given)
    """
    result = []
    for record in records:
        if employee_id and record.served_by_employee_id != employee_id:
            continue
        if service_id and not record.has_service(service_id):
            continue
        if department_id and record.department_id != department_id:
            continue
        result.append(record)
    return result
