"""
Optimization Metrics Calculator

Projects the efficiency gap between the current and target completion rate
and the revenue upside of closing it.
"""

from .constants import OptimizationDefaults
from .math_utils import round_number
from .models import FlowAnalysis, OptimizationMetrics


class OptimizationMetricsCalculator:
    """Efficiency and revenue projection with configurable business constants"""

    def __init__(
        self,
        target_efficiency: float = OptimizationDefaults.TARGET_EFFICIENCY,
        flat_service_price: float = OptimizationDefaults.FLAT_SERVICE_PRICE,
        implementation_cost: float = OptimizationDefaults.IMPLEMENTATION_COST,
        time_to_implement: str = OptimizationDefaults.TIME_TO_IMPLEMENT,
    ):
        """
        Initialize calculator.

        Args:
            target_efficiency: Target completion ratio (0-1)
            flat_service_price: Assumed revenue per completed queue
            implementation_cost: Assumed one-off cost used for ROI
            time_to_implement: Human-readable implementation estimate
        """
        if not 0 < target_efficiency <= 1:
            raise ValueError(
                f"target_efficiency must be in (0, 1], got {target_efficiency}"
            )
        if implementation_cost <= 0:
            raise ValueError(
                f"implementation_cost must be positive, got {implementation_cost}"
            )
        self.target_efficiency = target_efficiency
        self.flat_service_price = flat_service_price
        self.implementation_cost = implementation_cost
        self.time_to_implement = time_to_implement

    def calculate(self, analysis: FlowAnalysis) -> OptimizationMetrics:
        """
        Calculate optimization metrics for a flow analysis.

        potential_improvement is the relative gap to target as a percentage,
        floored at 0 and 0 when nothing was completed.
        """
        current = analysis.completion_rate / 100
        target = self.target_efficiency

        if current > 0:
            improvement = max(0, round_number((target - current) / current * 100))
        else:
            improvement = 0

        current_revenue = analysis.completed_queues * self.flat_service_price
        potential_revenue = analysis.total_queues * target * self.flat_service_price
        increase = max(0, potential_revenue - current_revenue)

        return OptimizationMetrics(
            current_efficiency=round_number(current * 100),
            target_efficiency=round_number(target * 100),
            potential_improvement=improvement,
            current_revenue=current_revenue,
            potential_revenue=potential_revenue,
            potential_revenue_increase=increase,
            time_to_implement=self.time_to_implement,
            roi=round_number(increase / self.implementation_cost * 100),
        )
