"""
Recommendation Generator

Deterministic rule table mapping flow-analysis conditions to prioritized,
human-readable actions. Rules are independent; the emitted list keeps rule
order and may contain several recommendations at once.
"""

import logging
from collections import Counter
from typing import Callable, Dict, List, NamedTuple, Optional

from .constants import Priority, RecommendationThresholds, RecommendationType
from .models import FlowAnalysis, Recommendation, RecommendationSummary

logger = logging.getLogger(__name__)


class _Rule(NamedTuple):
    name: str
    evaluate: Callable[[FlowAnalysis], Optional[Recommendation]]


class RecommendationGenerator:
    """
    Rule-based recommendation engine.

    Rules, in emission order:
    1. average wait above 20 min -> add staff at peak (high)
    2. any employee below 50% utilization -> rebalance load (medium)
    3. completion rate below 80% -> process improvement (high)
    4. max wait above 45 min -> digital queue tooling (medium)
    5. any employee above 90% utilization -> training (low)
    """

    def __init__(
        self,
        average_wait_minutes: float = RecommendationThresholds.AVERAGE_WAIT_MINUTES,
        underutilized_rate: int = RecommendationThresholds.UNDERUTILIZED_RATE,
        completion_rate: int = RecommendationThresholds.COMPLETION_RATE,
        max_wait_minutes: float = RecommendationThresholds.MAX_WAIT_MINUTES,
        overutilized_rate: int = RecommendationThresholds.OVERUTILIZED_RATE,
    ):
        self.average_wait_minutes = average_wait_minutes
        self.underutilized_rate = underutilized_rate
        self.completion_rate = completion_rate
        self.max_wait_minutes = max_wait_minutes
        self.overutilized_rate = overutilized_rate

        self._rules: List[_Rule] = [
            _Rule("staffing", self._staffing_rule),
            _Rule("utilization", self._utilization_rule),
            _Rule("process", self._process_rule),
            _Rule("technology", self._technology_rule),
            _Rule("training", self._training_rule),
        ]

    def generate(self, analysis: FlowAnalysis) -> List[Recommendation]:
        """
        Evaluate every rule against a flow analysis.

        Args:
            analysis: Flow analysis of the optimization window

        Returns:
            Triggered recommendations in rule order
        """
        recommendations = []
        for rule in self._rules:
            recommendation = rule.evaluate(analysis)
            if recommendation:
                recommendations.append(recommendation)

        logger.debug(
            "Generated %d recommendations: %s",
            len(recommendations), [r.type for r in recommendations]
        )
        return recommendations

    def _create_recommendation(
        self,
        rec_type: str,
        priority: Priority,
        title: str,
        description: str,
        action: str,
        estimated_impact: str,
    ) -> Recommendation:
        return Recommendation(
            type=rec_type,
            priority=priority,
            title=title,
            description=description,
            action=action,
            estimated_impact=estimated_impact,
        )

    def _staffing_rule(self, analysis: FlowAnalysis) -> Optional[Recommendation]:
        if analysis.average_wait_time <= self.average_wait_minutes:
            return None
        return self._create_recommendation(
            RecommendationType.STAFFING,
            Priority.HIGH,
            title="Increase Staff During Peak Hours",
            description=(
                f"Average wait time exceeds {self.average_wait_minutes:g} minutes. "
                "Consider adding more staff during busy periods."
            ),
            action="Add 1-2 additional employees during peak hours",
            estimated_impact="Reduce wait time by 30-40%",
        )

    def _utilization_rule(self, analysis: FlowAnalysis) -> Optional[Recommendation]:
        # Utilization says nothing when there was no work in the window
        if analysis.total_queues == 0:
            return None
        underutilized = [
            e for e in analysis.employee_utilization
            if e.utilization_rate < self.underutilized_rate
        ]
        if not underutilized:
            return None
        return self._create_recommendation(
            RecommendationType.UTILIZATION,
            Priority.MEDIUM,
            title="Optimize Employee Utilization",
            description=(
                f"{len(underutilized)} employees have utilization below "
                f"{self.underutilized_rate}%."
            ),
            action="Redistribute queues or provide cross-training to balance workload",
            estimated_impact="Improve overall efficiency by 15-20%",
        )

    def _process_rule(self, analysis: FlowAnalysis) -> Optional[Recommendation]:
        if analysis.total_queues == 0:
            return None
        if analysis.completion_rate >= self.completion_rate:
            return None
        return self._create_recommendation(
            RecommendationType.PROCESS,
            Priority.HIGH,
            title="Improve Queue Completion Rate",
            description=(
                f"Current completion rate is {analysis.completion_rate}%. "
                f"Target is {self.completion_rate}%."
            ),
            action="Implement better queue management practices and reduce no-show rates",
            estimated_impact="Increase completion rate by 15-20%",
        )

    def _technology_rule(self, analysis: FlowAnalysis) -> Optional[Recommendation]:
        if analysis.max_wait_time <= self.max_wait_minutes:
            return None
        return self._create_recommendation(
            RecommendationType.TECHNOLOGY,
            Priority.MEDIUM,
            title="Implement Queue Management System",
            description=(
                f"Maximum wait time exceeds {self.max_wait_minutes:g} minutes."
            ),
            action="Consider implementing digital queue management with SMS notifications",
            estimated_impact="Reduce maximum wait time by 25-35%",
        )

    def _training_rule(self, analysis: FlowAnalysis) -> Optional[Recommendation]:
        if analysis.total_queues == 0:
            return None
        overutilized = [
            e for e in analysis.employee_utilization
            if e.utilization_rate > self.overutilized_rate
        ]
        if not overutilized:
            return None
        return self._create_recommendation(
            RecommendationType.TRAINING,
            Priority.LOW,
            title="Provide Additional Training",
            description=(
                f"{len(overutilized)} employees are overutilized "
                f"(>{self.overutilized_rate}%)."
            ),
            action="Provide efficiency training and process optimization workshops",
            estimated_impact="Improve service time by 10-15%",
        )


def count_by_priority(recommendations: List[Recommendation]) -> Dict[Priority, int]:
    """Count recommendations per priority (every priority present, possibly 0)"""
    counts = Counter({priority: 0 for priority in Priority})
    counts.update(r.priority for r in recommendations)
    return dict(counts)


def summarize(
    recommendations: List[Recommendation],
    potential_improvement: int,
) -> RecommendationSummary:
    """Build the summary block; counts are derived from the list itself"""
    counts = count_by_priority(recommendations)
    return RecommendationSummary(
        total=len(recommendations),
        high=counts[Priority.HIGH],
        medium=counts[Priority.MEDIUM],
        low=counts[Priority.LOW],
        potential_improvement=potential_improvement,
    )
