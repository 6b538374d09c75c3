"""
Bottleneck Detection

Applies fixed thresholds to aggregated statistics and per-record data to
flag operational problems:
- high_wait_time: records waiting well above the average
- employee_overload: employees holding too many active queues
- low_completion_rate: too few queues reach completion

Each triggered rule yields exactly one Bottleneck; an empty list is a normal
result.
"""

import logging
from typing import List, Sequence

from .constants import BottleneckThresholds, BottleneckType, Severity
from .models import AnalyticsSnapshot, Bottleneck, EmployeeRecord, QueueRecord

logger = logging.getLogger(__name__)


class BottleneckDetector:
    """
    Rule evaluator for operational bottlenecks.

    Pure and independent of caching: the same inputs always produce the same
    bottleneck list.
    """

    def __init__(
        self,
        wait_multiplier: float = BottleneckThresholds.HIGH_WAIT_MULTIPLIER,
        overload_queue_count: int = BottleneckThresholds.EMPLOYEE_OVERLOAD_QUEUES,
        min_completion_rate: int = BottleneckThresholds.LOW_COMPLETION_RATE,
    ):
        """
        Initialize detector.

        Args:
            wait_multiplier: Wait above average x multiplier counts as high
            overload_queue_count: Active queues above which an employee is overloaded
            min_completion_rate: Completion rate (%) below which completion is low
        """
        self.wait_multiplier = wait_multiplier
        self.overload_queue_count = overload_queue_count
        self.min_completion_rate = min_completion_rate

    def detect(
        self,
        snapshot: AnalyticsSnapshot,
        records: Sequence[QueueRecord],
        employees: Sequence[EmployeeRecord],
    ) -> List[Bottleneck]:
        """
        Evaluate all rules.

        Args:
            snapshot: Aggregated statistics of the records
            records: The records the snapshot was computed from
            employees: Employees considered for overload

        Returns:
            Triggered bottlenecks in rule order
        """
        bottlenecks = []
        for check in (
            self._check_high_wait_time,
            self._check_employee_overload,
            self._check_low_completion_rate,
        ):
            bottleneck = check(snapshot, records, employees)
            if bottleneck:
                bottlenecks.append(bottleneck)

        if bottlenecks:
            logger.info(
                "Detected %d bottlenecks for shop %s: %s",
                len(bottlenecks), snapshot.shop_id,
                ", ".join(b.type for b in bottlenecks)
            )
        return bottlenecks

    def _check_high_wait_time(self, snapshot, records, employees):
        average_wait = snapshot.average_wait_time
        if average_wait <= 0:
            return None

        threshold = average_wait * self.wait_multiplier
        affected = sum(
            1 for r in records
            if r.actual_wait_time is not None and r.actual_wait_time > threshold
        )
        if affected == 0:
            return None

        return Bottleneck(
            type=BottleneckType.HIGH_WAIT_TIME,
            severity=Severity.HIGH,
            description=(
                f"{affected} queues have wait times "
                f"{round((self.wait_multiplier - 1) * 100)}% above average"
            ),
            affected_count=affected,
        )

    def _check_employee_overload(self, snapshot, records, employees):
        overloaded = [
            e for e in employees if e.active_queue_count > self.overload_queue_count
        ]
        if not overloaded:
            return None

        return Bottleneck(
            type=BottleneckType.EMPLOYEE_OVERLOAD,
            severity=Severity.MEDIUM,
            description=(
                f"{len(overloaded)} employees are handling more than "
                f"{self.overload_queue_count} queues"
            ),
            affected_count=len(overloaded),
        )

    def _check_low_completion_rate(self, snapshot, records, employees):
        # No records means nothing to complete
        if snapshot.total_queues == 0:
            return None

        rate = snapshot.completion_rate
        if rate >= self.min_completion_rate:
            return None

        return Bottleneck(
            type=BottleneckType.LOW_COMPLETION_RATE,
            severity=Severity.MEDIUM,
            description=(
                f"Completion rate is {rate}% "
                f"(below {self.min_completion_rate}% target)"
            ),
            affected_count=rate,
        )
