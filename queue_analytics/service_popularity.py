"""
Service Popularity Analyzer

Groups queue records by the services on their line items and computes per
service volume, timing, revenue and a weighted popularity score, plus top
and bottom volume rankings.
"""

import logging
from collections import OrderedDict
from typing import Dict, List, Sequence

from .aggregator import service_times, wait_times
from .constants import AnalyticsDefaults, PopularityWeights, QueueStatus
from .math_utils import average, clamp, round_number
from .models import (
    DateRange,
    QueueRecord,
    ServiceAnalytics,
    ServiceRanking,
    ServiceStat,
)

logger = logging.getLogger(__name__)


def calculate_popularity_score(
    total_queues: int,
    completed_queues: int,
    revenue: float,
    average_wait_time: float,
) -> int:
    """
    Weighted popularity score on a 0-100 scale.

    Completion rate weighs 0.4, revenue 0.3, volume 0.2 and speed 0.1. Each
    component is normalized onto 0-100 first, so the score never decreases
    when volume, completions or revenue go up, or when wait time goes down.

    Args:
        total_queues: Records containing the service
        completed_queues: Of those, records completed
        revenue: Revenue of the service's line items
        average_wait_time: Average wait in minutes

    Returns:
        Rounded score
    """
    completion = completed_queues / total_queues * 100 if total_queues > 0 else 0
    revenue_score = clamp(revenue / PopularityWeights.REVENUE_DIVISOR)
    volume_score = clamp(total_queues / PopularityWeights.VOLUME_DIVISOR)
    speed_score = clamp(100 - average_wait_time)

    return round_number(
        completion * PopularityWeights.COMPLETION
        + revenue_score * PopularityWeights.REVENUE
        + volume_score * PopularityWeights.VOLUME
        + speed_score * PopularityWeights.SPEED
    )


def group_by_service(records: Sequence[QueueRecord]) -> "OrderedDict[str, List[QueueRecord]]":
    """
    Map each service id to the records containing it.

    A record listing the same service twice is counted once for that service.
    Services keep first-seen order.
    """
    groups: "OrderedDict[str, List[QueueRecord]]" = OrderedDict()
    for record in records:
        seen = set()
        for item in record.line_items:
            if item.service_id in seen:
                continue
            seen.add(item.service_id)
            groups.setdefault(item.service_id, []).append(record)
    return groups


def _service_name(records: Sequence[QueueRecord], service_id: str) -> str:
    for record in records:
        for item in record.line_items:
            if item.service_id == service_id and item.service_name:
                return item.service_name
    return f"Service {service_id}"


def _service_revenue(records: Sequence[QueueRecord], service_id: str) -> float:
    # Only this service's own line items count towards its revenue
    return sum(
        item.amount
        for record in records
        for item in record.line_items
        if item.service_id == service_id
    )


def service_stats(records: Sequence[QueueRecord]) -> List[ServiceStat]:
    """Per-service statistics in first-seen service order"""
    stats = []
    for service_id, service_records in group_by_service(records).items():
        total = len(service_records)
        completed = sum(
            1 for r in service_records if r.status == QueueStatus.COMPLETED
        )
        avg_wait = average(wait_times(service_records))
        revenue = _service_revenue(service_records, service_id)

        stats.append(ServiceStat(
            service_id=service_id,
            service_name=_service_name(service_records, service_id),
            total_queues=total,
            completed_queues=completed,
            average_wait_time=avg_wait,
            average_service_time=average(service_times(service_records)),
            revenue=revenue,
            popularity_score=calculate_popularity_score(
                total, completed, revenue, avg_wait
            ),
        ))
    return stats


def _ranking(stat: ServiceStat) -> ServiceRanking:
    return ServiceRanking(
        service_id=stat.service_id,
        service_name=stat.service_name,
        queue_count=stat.total_queues,
        revenue=stat.revenue,
    )


def rank_services(
    stats: Sequence[ServiceStat],
    size: int = AnalyticsDefaults.SERVICE_RANKING_SIZE,
) -> Dict[str, List[ServiceRanking]]:
    """
    Rank services by volume.

    Ties on volume are broken by service id ascending.

    Returns:
        Dictionary with 'top' (most queues first) and 'least' rankings
    """
    top = sorted(stats, key=lambda s: (-s.total_queues, s.service_id))[:size]
    least = sorted(stats, key=lambda s: (s.total_queues, s.service_id))[:size]
    return {
        "top": [_ranking(s) for s in top],
        "least": [_ranking(s) for s in least],
    }


def calculate_service_analytics(
    records: Sequence[QueueRecord],
    shop_id: str,
    date_range: DateRange,
) -> ServiceAnalytics:
    """
    Compute service analytics for a record set.

    Args:
        records: Queue records for the shop and range
        shop_id: Shop the records belong to
        date_range: Range the records were fetched for

    Returns:
        ServiceAnalytics with per-service stats and top/bottom rankings
    """
    stats = service_stats(records)
    rankings = rank_services(stats)

    logger.debug("Computed stats for %d services of shop %s", len(stats), shop_id)

    return ServiceAnalytics(
        service_stats=tuple(stats),
        top_services=tuple(rankings["top"]),
        least_popular_services=tuple(rankings["least"]),
        date_range=date_range,
        shop_id=shop_id,
    )
