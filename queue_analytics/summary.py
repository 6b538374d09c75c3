"""
Analytics Summary Orchestrator

Builds the dashboard summary of a shop. Five independent branches run in
parallel on a thread pool:
- today / this week / this month analytics (cached per shop and range)
- this month's peak hours (recomputed every call)
- this month's service analytics (recomputed every call)

A failing or timed-out branch is logged and replaced by its zero-value
default, so the summary is always structurally complete. Only a missing
shop id or a failure of the orchestration itself reaches the caller.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime
from typing import Any, Dict, List, Optional

from .aggregator import calculate_analytics
from .cache import AnalyticsCache, cache_key
from .constants import AnalyticsDefaults, Operations
from .defaults import default_analytics, default_peak_hours, default_service_analytics
from .exceptions import QueueAnalyticsError, QueueAnalyticsErrorType, ValidationError
from .gateway import RecordGateway, fetch_all_queues
from .models import (
    AnalyticsSnapshot,
    DateRange,
    PeakHoursSnapshot,
    QueueAnalyticsSummary,
    QueueRecord,
    ServiceAnalytics,
)
from .peak_hours import calculate_peak_hours
from .periods import resolve_periods
from .service_popularity import calculate_service_analytics

logger = logging.getLogger(__name__)


class AnalyticsSummaryOrchestrator:
    """Fan-out/fan-in coordinator for the dashboard summary"""

    def __init__(
        self,
        gateway: RecordGateway,
        cache: Optional[AnalyticsCache] = None,
        cache_ttl: float = AnalyticsDefaults.CACHE_TTL_SECONDS,
        queue_page_limit: int = AnalyticsDefaults.QUEUE_PAGE_LIMIT,
        branch_timeout: float = AnalyticsDefaults.BRANCH_TIMEOUT_SECONDS,
        max_workers: int = AnalyticsDefaults.MAX_WORKERS,
    ):
        """
        Initialize orchestrator.

        Args:
            gateway: Record gateway to read queues from
            cache: Snapshot cache (a private one is created when omitted)
            cache_ttl: TTL for cached period analytics in seconds
            queue_page_limit: Page size requested from the gateway
            branch_timeout: Seconds each branch may take before falling back
            max_workers: Thread pool size for the parallel branches
        """
        self.gateway = gateway
        self.cache = cache if cache is not None else AnalyticsCache(cache_ttl)
        self.cache_ttl = cache_ttl
        self.queue_page_limit = queue_page_limit
        self.branch_timeout = branch_timeout
        self.max_workers = max_workers

    @classmethod
    def from_config(cls, config, gateway: RecordGateway, cache: Optional[AnalyticsCache] = None):
        """Create an orchestrator with settings from a Config object"""
        return cls(
            gateway,
            cache=cache,
            cache_ttl=config.cache_ttl_seconds,
            queue_page_limit=config.queue_page_limit,
            branch_timeout=config.branch_timeout_seconds,
            max_workers=config.max_workers,
        )

    def get_summary(
        self,
        shop_id: str,
        reference: Optional[datetime] = None,
    ) -> QueueAnalyticsSummary:
        """
        Build the analytics summary of a shop.

        Args:
            shop_id: Shop to summarize
            reference: Instant the periods are resolved against (default now)

        Returns:
            QueueAnalyticsSummary with every section present

        Raises:
            ValidationError: If shop_id is missing
            QueueAnalyticsError: If the orchestration itself fails
        """
        if not shop_id:
            raise ValidationError(
                "Shop ID is required", "shop_id", Operations.GET_SUMMARY, shop_id
            )

        logger.info("Getting queue analytics summary for shop %s", shop_id)

        try:
            periods = resolve_periods(reference)

            branches: Dict[str, tuple] = {
                "today": (self._analytics_for_period, periods.today, default_analytics),
                "week": (self._analytics_for_period, periods.week, default_analytics),
                "month": (self._analytics_for_period, periods.month, default_analytics),
                "peak_hours": (self._peak_hours_for_period, periods.month, default_peak_hours),
                "service_analytics": (
                    self._service_analytics_for_period, periods.month, default_service_analytics
                ),
            }
            results = self._run_branches(shop_id, branches)

            summary = QueueAnalyticsSummary(
                shop_id=shop_id,
                today=results["today"],
                week=results["week"],
                month=results["month"],
                peak_hours=results["peak_hours"],
                service_analytics=results["service_analytics"],
            )
        except QueueAnalyticsError:
            raise
        except Exception as e:
            logger.error(
                "Failed to get queue analytics summary for shop %s: %s",
                shop_id, e, exc_info=True
            )
            raise QueueAnalyticsError(
                QueueAnalyticsErrorType.OPERATION_FAILED,
                "Failed to get queue analytics summary",
                operation=Operations.GET_SUMMARY,
                context={"shop_id": shop_id},
                cause=e,
            )

        logger.info(
            "Queue analytics summary ready for shop %s: today=%d week=%d month=%d queues",
            shop_id, summary.today.total_queues, summary.week.total_queues,
            summary.month.total_queues
        )
        return summary

    def _run_branches(self, shop_id: str, branches: Dict[str, tuple]) -> Dict[str, Any]:
        """
        Run branches in parallel and join them.

        Every branch shares one deadline; a branch that has not finished by
        then is abandoned and replaced by its default.
        """
        results: Dict[str, Any] = {}
        executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="analytics"
        )
        try:
            futures = {
                name: executor.submit(compute, shop_id, date_range)
                for name, (compute, date_range, _) in branches.items()
            }
            deadline = time.monotonic() + self.branch_timeout

            for name, future in futures.items():
                _, date_range, fallback = branches[name]
                remaining = max(0.0, deadline - time.monotonic())
                try:
                    results[name] = future.result(timeout=remaining)
                except FutureTimeoutError:
                    future.cancel()
                    logger.error(
                        "Branch %s timed out after %ss for shop %s (%s - %s), using defaults",
                        name, self.branch_timeout, shop_id,
                        date_range.date_from, date_range.date_to
                    )
                    results[name] = fallback(shop_id, date_range)
                except Exception as e:
                    logger.error(
                        "Branch %s failed for shop %s (%s - %s), using defaults: %s",
                        name, shop_id, date_range.date_from, date_range.date_to, e
                    )
                    results[name] = fallback(shop_id, date_range)
        finally:
            # Timed-out branches keep running in the background; don't wait
            executor.shutdown(wait=False)
        return results

    def _fetch(self, shop_id: str, date_range: DateRange) -> List[QueueRecord]:
        return fetch_all_queues(
            self.gateway,
            shop_id,
            date_range.date_from,
            date_range.date_to,
            limit=self.queue_page_limit,
        )

    def _analytics_for_period(self, shop_id: str, date_range: DateRange) -> AnalyticsSnapshot:
        """Cached analytics of one period"""
        key = cache_key(shop_id, date_range.date_from, date_range.date_to)

        def compute() -> AnalyticsSnapshot:
            logger.debug("Cache miss for %s, computing analytics", key)
            return calculate_analytics(self._fetch(shop_id, date_range), shop_id, date_range)

        return self.cache.get_or_compute(key, compute, self.cache_ttl)

    def _peak_hours_for_period(self, shop_id: str, date_range: DateRange) -> PeakHoursSnapshot:
        return calculate_peak_hours(self._fetch(shop_id, date_range), shop_id, date_range)

    def _service_analytics_for_period(
        self, shop_id: str, date_range: DateRange
    ) -> ServiceAnalytics:
        return calculate_service_analytics(
            self._fetch(shop_id, date_range), shop_id, date_range
        )
