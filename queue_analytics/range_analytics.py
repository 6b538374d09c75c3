"""
Single-Range Analytics

Analytics, time distribution, peak hours and service analytics for one
explicit date range, optionally narrowed to an employee or a service. These
are the building blocks the dashboard summary combines, exposed on their
own. Failures are not masked here: every error reaches the caller as a
QueueAnalyticsError carrying the operation name.
"""

import logging
from typing import Callable, List, Optional, TypeVar

from .aggregator import calculate_analytics, calculate_time_analytics, filter_records
from .cache import AnalyticsCache, cache_key
from .constants import AnalyticsDefaults, Operations
from .exceptions import QueueAnalyticsError, QueueAnalyticsErrorType, ValidationError
from .gateway import RecordGateway, fetch_all_queues
from .logging_config import log_exception
from .models import (
    AnalyticsSnapshot,
    DateRange,
    PeakHoursSnapshot,
    QueueRecord,
    ServiceAnalytics,
    TimeAnalytics,
)
from .peak_hours import calculate_peak_hours
from .service_popularity import calculate_service_analytics

logger = logging.getLogger(__name__)

T = TypeVar("T")


def validate_range(shop_id: str, date_from, date_to, operation: str) -> DateRange:
    """
    Validate use-case input and build the normalized range.

    Raises:
        ValidationError: If the shop id or a date is missing, a date cannot
            be parsed, or the range is reversed
    """
    if not shop_id:
        raise ValidationError("Shop ID is required", "shop_id", operation, shop_id)
    if not date_from:
        raise ValidationError("dateFrom is required", "date_from", operation, date_from)
    if not date_to:
        raise ValidationError("dateTo is required", "date_to", operation, date_to)

    try:
        date_range = DateRange.of(date_from, date_to)
    except (TypeError, ValueError) as e:
        raise ValidationError(
            f"Invalid date format: {e}", "date_range", operation,
            {"date_from": date_from, "date_to": date_to}
        )

    if date_range.start > date_range.end:
        raise ValidationError(
            "dateFrom must be before or equal to dateTo", "date_range", operation,
            {"date_from": date_from, "date_to": date_to}
        )
    return date_range


class QueueRangeAnalytics:
    """Use-cases computing analytics over a caller-supplied range"""

    def __init__(
        self,
        gateway: RecordGateway,
        cache: Optional[AnalyticsCache] = None,
        cache_ttl: float = AnalyticsDefaults.CACHE_TTL_SECONDS,
        queue_page_limit: int = AnalyticsDefaults.QUEUE_PAGE_LIMIT,
    ):
        self.gateway = gateway
        self.cache = cache if cache is not None else AnalyticsCache(cache_ttl)
        self.cache_ttl = cache_ttl
        self.queue_page_limit = queue_page_limit

    @classmethod
    def from_config(cls, config, gateway: RecordGateway, cache: Optional[AnalyticsCache] = None):
        return cls(
            gateway,
            cache=cache,
            cache_ttl=config.cache_ttl_seconds,
            queue_page_limit=config.queue_page_limit,
        )

    def _records(
        self,
        shop_id: str,
        date_range: DateRange,
        employee_id: Optional[str],
        service_id: Optional[str],
    ) -> List[QueueRecord]:
        records = fetch_all_queues(
            self.gateway, shop_id, date_range.date_from, date_range.date_to,
            limit=self.queue_page_limit,
        )
        return filter_records(records, employee_id=employee_id, service_id=service_id)

    def _run(self, operation: str, shop_id: str, work: Callable[[], T], **context) -> T:
        """Run a use-case body, wrapping unexpected errors with the operation"""
        logger.info("%s for shop %s", operation, shop_id)
        try:
            return work()
        except QueueAnalyticsError as e:
            logger.error("%s failed for shop %s: %s", operation, shop_id, e)
            raise
        except Exception as e:
            log_exception(
                logger, f"{operation} failed", e, dict(context, shop_id=shop_id)
            )
            raise QueueAnalyticsError(
                QueueAnalyticsErrorType.OPERATION_FAILED,
                f"Failed to run {operation}",
                operation=operation,
                context=dict(context, shop_id=shop_id),
                cause=e,
            )

    def get_analytics(
        self,
        shop_id: str,
        date_from,
        date_to,
        employee_id: Optional[str] = None,
        service_id: Optional[str] = None,
    ) -> AnalyticsSnapshot:
        """
        Analytics snapshot for a range, served from cache when fresh.

        Filtered requests are cached under their own key.
        """
        operation = Operations.GET_ANALYTICS
        date_range = validate_range(shop_id, date_from, date_to, operation)

        key = cache_key(shop_id, date_range.date_from, date_range.date_to)
        if employee_id or service_id:
            key = f"{key}_{employee_id or ''}_{service_id or ''}"

        def work() -> AnalyticsSnapshot:
            return self.cache.get_or_compute(
                key,
                lambda: calculate_analytics(
                    self._records(shop_id, date_range, employee_id, service_id),
                    shop_id,
                    date_range,
                ),
                self.cache_ttl,
            )

        return self._run(
            operation, shop_id, work,
            date_from=date_from, date_to=date_to,
            employee_id=employee_id, service_id=service_id,
        )

    def get_time_analytics(
        self,
        shop_id: str,
        date_from,
        date_to,
        employee_id: Optional[str] = None,
        service_id: Optional[str] = None,
    ) -> TimeAnalytics:
        """Wait and service time distribution for a range"""
        operation = Operations.GET_TIME_ANALYTICS
        date_range = validate_range(shop_id, date_from, date_to, operation)
        return self._run(
            operation, shop_id,
            lambda: calculate_time_analytics(
                self._records(shop_id, date_range, employee_id, service_id),
                shop_id,
                date_range,
            ),
            date_from=date_from, date_to=date_to,
        )

    def get_peak_hours(
        self,
        shop_id: str,
        date_from,
        date_to,
        employee_id: Optional[str] = None,
        service_id: Optional[str] = None,
    ) -> PeakHoursSnapshot:
        """Hour-of-day profile for a range"""
        operation = Operations.GET_PEAK_HOURS
        date_range = validate_range(shop_id, date_from, date_to, operation)
        return self._run(
            operation, shop_id,
            lambda: calculate_peak_hours(
                self._records(shop_id, date_range, employee_id, service_id),
                shop_id,
                date_range,
            ),
            date_from=date_from, date_to=date_to,
        )

    def get_service_analytics(
        self,
        shop_id: str,
        date_from,
        date_to,
        employee_id: Optional[str] = None,
    ) -> ServiceAnalytics:
        """Per-service statistics for a range"""
        operation = Operations.GET_SERVICE_ANALYTICS
        date_range = validate_range(shop_id, date_from, date_to, operation)
        return self._run(
            operation, shop_id,
            lambda: calculate_service_analytics(
                self._records(shop_id, date_range, employee_id, None),
                shop_id,
                date_range,
            ),
            date_from=date_from, date_to=date_to,
        )
