"""
Queue Flow Optimizer

Analyzes the trailing week of a shop's queues together with its active
employees, detects bottlenecks, generates recommendations and projects the
efficiency and revenue upside of acting on them.

Unlike the dashboard summary, the optimizer has no partial result to fall
back to: a failed fetch fails the whole run with a QueueAnalyticsError.
"""

import logging
from datetime import datetime
from typing import Optional

from .aggregator import calculate_analytics, max_wait_time
from .bottlenecks import BottleneckDetector
from .constants import AnalyticsDefaults, OptimizationDefaults, Operations
from .exceptions import QueueAnalyticsError, QueueAnalyticsErrorType, ValidationError
from .gateway import RecordGateway, fetch_all_employees, fetch_all_queues
from .logging_config import log_exception
from .models import FlowAnalysis, OptimizationResult
from .optimization_metrics import OptimizationMetricsCalculator
from .peak_hours import hourly_stats
from .periods import last_n_days
from .recommendations import RecommendationGenerator, summarize
from .utilization import calculate_utilization

logger = logging.getLogger(__name__)


class QueueFlowOptimizer:
    """Bottleneck detection and recommendations over a trailing window"""

    def __init__(
        self,
        gateway: RecordGateway,
        detector: Optional[BottleneckDetector] = None,
        generator: Optional[RecommendationGenerator] = None,
        metrics_calculator: Optional[OptimizationMetricsCalculator] = None,
        window_days: int = OptimizationDefaults.WINDOW_DAYS,
        queue_page_limit: int = AnalyticsDefaults.QUEUE_PAGE_LIMIT,
        employee_page_limit: int = AnalyticsDefaults.EMPLOYEE_PAGE_LIMIT,
        capacity_minutes: int = AnalyticsDefaults.CAPACITY_MINUTES,
    ):
        """
        Initialize optimizer.

        Args:
            gateway: Record gateway to read queues and employees from
            detector: Bottleneck rules (defaults when omitted)
            generator: Recommendation rules (defaults when omitted)
            metrics_calculator: Projection constants (defaults when omitted)
            window_days: Length of the trailing analysis window
            queue_page_limit: Page size requested for queues
            employee_page_limit: Page size requested for employees
            capacity_minutes: Weekly capacity used for utilization
        """
        self.gateway = gateway
        self.detector = detector or BottleneckDetector()
        self.generator = generator or RecommendationGenerator()
        self.metrics_calculator = metrics_calculator or OptimizationMetricsCalculator()
        self.window_days = window_days
        self.queue_page_limit = queue_page_limit
        self.employee_page_limit = employee_page_limit
        self.capacity_minutes = capacity_minutes

    @classmethod
    def from_config(cls, config, gateway: RecordGateway) -> "QueueFlowOptimizer":
        """Create an optimizer with settings from a Config object"""
        return cls(
            gateway,
            metrics_calculator=OptimizationMetricsCalculator(
                target_efficiency=config.target_efficiency,
                flat_service_price=config.flat_service_price,
                implementation_cost=config.implementation_cost,
            ),
            window_days=config.optimization_window_days,
            queue_page_limit=config.queue_page_limit,
            employee_page_limit=config.employee_page_limit,
            capacity_minutes=config.capacity_minutes,
        )

    def optimize(
        self,
        shop_id: str,
        department_id: Optional[str] = None,
        reference: Optional[datetime] = None,
    ) -> OptimizationResult:
        """
        Run the optimization for a shop.

        Args:
            shop_id: Shop to analyze
            department_id: Optional department filter for queues and employees
            reference: End of the trailing window (default now)

        Returns:
            OptimizationResult with analysis, bottlenecks, recommendations,
            metrics and priority summary

        Raises:
            ValidationError: If shop_id is missing
            QueueAnalyticsError: If records cannot be read or analyzed
        """
        if not shop_id:
            raise ValidationError(
                "Shop ID is required", "shop_id", Operations.OPTIMIZE_FLOW, shop_id
            )

        logger.info(
            "Starting optimize queue flow for shop %s (department=%s)",
            shop_id, department_id
        )

        try:
            window = last_n_days(self.window_days, reference)
            records = fetch_all_queues(
                self.gateway,
                shop_id,
                window.date_from,
                window.date_to,
                limit=self.queue_page_limit,
                department_id=department_id,
            )
            employees = fetch_all_employees(
                self.gateway,
                shop_id,
                limit=self.employee_page_limit,
                department_id=department_id,
            )

            snapshot = calculate_analytics(records, shop_id, window)
            analysis = FlowAnalysis(
                snapshot=snapshot,
                max_wait_time=max_wait_time(records),
                employee_utilization=tuple(
                    calculate_utilization(records, employees, self.capacity_minutes)
                ),
                hourly_data=tuple(hourly_stats(records)),
                bottlenecks=tuple(self.detector.detect(snapshot, records, employees)),
            )

            recommendations = self.generator.generate(analysis)
            metrics = self.metrics_calculator.calculate(analysis)
            result = OptimizationResult(
                shop_id=shop_id,
                analysis=analysis,
                recommendations=tuple(recommendations),
                optimization_metrics=metrics,
                summary=summarize(recommendations, metrics.potential_improvement),
            )
        except QueueAnalyticsError as e:
            logger.error(
                "Failed to optimize queue flow for shop %s: %s", shop_id, e
            )
            raise
        except Exception as e:
            log_exception(
                logger, "Failed to optimize queue flow", e,
                {"shop_id": shop_id, "department_id": department_id},
            )
            raise QueueAnalyticsError(
                QueueAnalyticsErrorType.OPERATION_FAILED,
                "Failed to optimize queue flow",
                operation=Operations.OPTIMIZE_FLOW,
                context={"shop_id": shop_id, "department_id": department_id},
                cause=e,
            )

        logger.info(
            "Optimize queue flow completed for shop %s: %d recommendations "
            "(%d high), potential improvement %d%%",
            shop_id, result.summary.total, result.summary.high,
            result.summary.potential_improvement
        )
        return result
