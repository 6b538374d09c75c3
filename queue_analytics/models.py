"""
Data Model

Tagged dataclasses for the records the engine reads and the snapshots it
produces. Raw gateway payloads are validated and converted here, at the
boundary, so the analyzers only ever see typed records.

Serialized forms use camelCase keys to match the presentation layer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .constants import EmployeeStatus, Priority, QueueStatus, Severity
from .datetime_utils import (
    minutes_between,
    normalize_iso,
    parse_timestamp,
    to_iso,
    utc_now,
)
from .exceptions import RecordFormatError
from .math_utils import round_number


def _pick(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key, accepting camelCase and snake_case"""
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return default


# =============================================================================
# Input Records
# =============================================================================

@dataclass(frozen=True)
class LineItem:
    """One service line on a queue record"""
    service_id: str
    service_name: str
    unit_price: float
    quantity: int = 1

    @property
    def amount(self) -> float:
        return self.unit_price * self.quantity

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "LineItem":
        service_id = _pick(raw, "serviceId", "service_id")
        if service_id is None:
            raise RecordFormatError("line item has no service id")
        try:
            unit_price = float(_pick(raw, "unitPrice", "unit_price", "price", default=0))
            quantity = int(_pick(raw, "quantity", default=1))
        except (TypeError, ValueError) as e:
            raise RecordFormatError(f"invalid price or quantity: {e}", service_id)
        name = _pick(raw, "serviceName", "service_name", default="")
        return cls(
            service_id=str(service_id),
            service_name=str(name),
            unit_price=unit_price,
            quantity=quantity,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "serviceId": self.service_id,
            "serviceName": self.service_name,
            "unitPrice": self.unit_price,
            "quantity": self.quantity,
        }


@dataclass(frozen=True)
class QueueRecord:
    """One customer-service episode, read-only input to the engine"""
    id: str
    shop_id: str
    status: QueueStatus
    created_at: datetime
    called_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    actual_wait_time: Optional[float] = None
    served_by_employee_id: Optional[str] = None
    line_items: Tuple[LineItem, ...] = ()
    department_id: Optional[str] = None

    @property
    def service_minutes(self) -> Optional[int]:
        """Whole minutes between call and completion, None if either is missing"""
        if self.called_at is None or self.completed_at is None:
            return None
        return round_number(minutes_between(self.called_at, self.completed_at))

    @property
    def raw_service_minutes(self) -> Optional[float]:
        """Unrounded minutes between call and completion"""
        if self.called_at is None or self.completed_at is None:
            return None
        return minutes_between(self.called_at, self.completed_at)

    @property
    def has_wait_time(self) -> bool:
        return self.actual_wait_time is not None and self.actual_wait_time > 0

    def has_service(self, service_id: str) -> bool:
        return any(item.service_id == service_id for item in self.line_items)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "QueueRecord":
        """
        Convert a raw gateway record to a QueueRecord.

        Args:
            raw: Record with camelCase or snake_case keys

        Returns:
            Validated QueueRecord

        Raises:
            RecordFormatError: If required fields are missing or invalid
        """
        record_id = _pick(raw, "id", "queueId", "queue_id")
        if record_id is None:
            raise RecordFormatError("record has no id")

        try:
            status = QueueStatus.normalize(_pick(raw, "status"))
        except ValueError as e:
            raise RecordFormatError(str(e), record_id)

        try:
            created_at = parse_timestamp(_pick(raw, "createdAt", "created_at"))
            called_at = parse_timestamp(_pick(raw, "calledAt", "called_at"))
            completed_at = parse_timestamp(_pick(raw, "completedAt", "completed_at"))
        except ValueError as e:
            raise RecordFormatError(f"invalid timestamp: {e}", record_id)
        if created_at is None:
            raise RecordFormatError("record has no createdAt", record_id)

        wait = _pick(raw, "actualWaitTime", "actual_wait_time")
        if wait is not None:
            try:
                wait = float(wait)
            except (TypeError, ValueError):
                raise RecordFormatError(f"invalid actualWaitTime {wait!r}", record_id)

        raw_items = _pick(raw, "lineItems", "line_items", "queueServices", default=[])
        if not isinstance(raw_items, (list, tuple)):
            raise RecordFormatError("lineItems must be a list", record_id)

        employee_id = _pick(raw, "servedByEmployeeId", "served_by_employee_id")
        department_id = _pick(raw, "departmentId", "department_id")

        return cls(
            id=str(record_id),
            shop_id=str(_pick(raw, "shopId", "shop_id", default="")),
            status=status,
            created_at=created_at,
            called_at=called_at,
            completed_at=completed_at,
            actual_wait_time=wait,
            served_by_employee_id=str(employee_id) if employee_id is not None else None,
            line_items=tuple(LineItem.from_dict(item) for item in raw_items),
            department_id=str(department_id) if department_id is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "shopId": self.shop_id,
            "status": self.status.value,
            "createdAt": to_iso(self.created_at),
            "calledAt": to_iso(self.called_at) if self.called_at else None,
            "completedAt": to_iso(self.completed_at) if self.completed_at else None,
            "actualWaitTime": self.actual_wait_time,
            "servedByEmployeeId": self.served_by_employee_id,
            "lineItems": [item.to_dict() for item in self.line_items],
            "departmentId": self.department_id,
        }


@dataclass(frozen=True)
class EmployeeRecord:
    """An employee as seen by the utilization and overload rules"""
    id: str
    name: str
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    active_queue_count: int = 0
    department_id: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "EmployeeRecord":
        employee_id = _pick(raw, "id", "employeeId", "employee_id")
        if employee_id is None:
            raise RecordFormatError("employee has no id")
        try:
            status = EmployeeStatus(str(_pick(raw, "status", default="active")).lower())
            active_count = int(_pick(raw, "activeQueueCount", "active_queue_count", default=0))
        except (TypeError, ValueError) as e:
            raise RecordFormatError(str(e), employee_id)
        department_id = _pick(raw, "departmentId", "department_id")
        return cls(
            id=str(employee_id),
            name=str(_pick(raw, "name", default="")),
            status=status,
            active_queue_count=active_count,
            department_id=str(department_id) if department_id is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "activeQueueCount": self.active_queue_count,
            "departmentId": self.department_id,
        }


@dataclass(frozen=True)
class DateRange:
    """Inclusive date range, stored as normalized UTC ISO strings"""
    date_from: str
    date_to: str

    @classmethod
    def of(cls, date_from, date_to) -> "DateRange":
        """Build a range from datetimes or ISO strings, normalizing both ends"""
        return cls(date_from=normalize_iso(date_from), date_to=normalize_iso(date_to))

    @property
    def start(self) -> datetime:
        return parse_timestamp(self.date_from)

    @property
    def end(self) -> datetime:
        return parse_timestamp(self.date_to)

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.date_from, "to": self.date_to}


# =============================================================================
# Snapshots
# =============================================================================

@dataclass(frozen=True)
class AnalyticsSnapshot:
    """Point-in-time aggregation of one shop's queues over a date range"""
    total_queues: int
    completed_queues: int
    cancelled_queues: int
    no_show_queues: int
    in_progress_queues: int
    waiting_queues: int
    average_wait_time: int
    average_service_time: int
    completion_rate: int
    cancellation_rate: int
    no_show_rate: int
    date_range: DateRange
    shop_id: str
    computed_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalQueues": self.total_queues,
            "completedQueues": self.completed_queues,
            "cancelledQueues": self.cancelled_queues,
            "noShowQueues": self.no_show_queues,
            "inProgressQueues": self.in_progress_queues,
            "waitingQueues": self.waiting_queues,
            "averageWaitTime": self.average_wait_time,
            "averageServiceTime": self.average_service_time,
            "completionRate": self.completion_rate,
            "cancellationRate": self.cancellation_rate,
            "noShowRate": self.no_show_rate,
            "dateRange": self.date_range.to_dict(),
            "shopId": self.shop_id,
            "computedAt": to_iso(self.computed_at),
        }

    def without_timestamp(self) -> Dict[str, Any]:
        """Serialized snapshot minus computedAt, for equality checks"""
        data = self.to_dict()
        data.pop("computedAt")
        return data


@dataclass(frozen=True)
class HourlyStat:
    """Load statistics for one hour of the day"""
    hour: int
    queue_count: int
    average_wait_time: int
    completion_rate: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hour": self.hour,
            "queueCount": self.queue_count,
            "averageWaitTime": self.average_wait_time,
            "completionRate": self.completion_rate,
        }


@dataclass(frozen=True)
class StaffingSuggestion:
    """Recommended headcount for one hour of the day"""
    hour: int
    recommended_employees: int
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hour": self.hour,
            "recommendedEmployees": self.recommended_employees,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class PeakHoursSnapshot:
    """Hour-of-day load profile with peak/quiet rankings"""
    hourly: Tuple[HourlyStat, ...]
    peak_hours: Tuple[HourlyStat, ...]
    quiet_hours: Tuple[HourlyStat, ...]
    recommended_staffing: Tuple[StaffingSuggestion, ...]
    date_range: DateRange
    shop_id: str
    computed_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hourly": [h.to_dict() for h in self.hourly],
            "peakHours": [h.to_dict() for h in self.peak_hours],
            "quietHours": [h.to_dict() for h in self.quiet_hours],
            "recommendedStaffing": [s.to_dict() for s in self.recommended_staffing],
            "dateRange": self.date_range.to_dict(),
            "shopId": self.shop_id,
            "computedAt": to_iso(self.computed_at),
        }


@dataclass(frozen=True)
class ServiceStat:
    """Volume, timing and revenue of one service line"""
    service_id: str
    service_name: str
    total_queues: int
    completed_queues: int
    average_wait_time: int
    average_service_time: int
    revenue: float
    popularity_score: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "serviceId": self.service_id,
            "serviceName": self.service_name,
            "totalQueues": self.total_queues,
            "completedQueues": self.completed_queues,
            "averageWaitTime": self.average_wait_time,
            "averageServiceTime": self.average_service_time,
            "revenue": self.revenue,
            "popularityScore": self.popularity_score,
        }


@dataclass(frozen=True)
class ServiceRanking:
    """A service's position in a volume ranking"""
    service_id: str
    service_name: str
    queue_count: int
    revenue: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "serviceId": self.service_id,
            "serviceName": self.service_name,
            "queueCount": self.queue_count,
            "revenue": self.revenue,
        }


@dataclass(frozen=True)
class ServiceAnalytics:
    """Per-service statistics with top and bottom volume rankings"""
    service_stats: Tuple[ServiceStat, ...]
    top_services: Tuple[ServiceRanking, ...]
    least_popular_services: Tuple[ServiceRanking, ...]
    date_range: DateRange
    shop_id: str
    computed_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "serviceStats": [s.to_dict() for s in self.service_stats],
            "topServices": [s.to_dict() for s in self.top_services],
            "leastPopularServices": [s.to_dict() for s in self.least_popular_services],
            "dateRange": self.date_range.to_dict(),
            "shopId": self.shop_id,
            "computedAt": to_iso(self.computed_at),
        }


@dataclass(frozen=True)
class TimeAnalytics:
    """Distribution of wait and service times over a date range"""
    average_wait_time: int
    median_wait_time: int
    min_wait_time: float
    max_wait_time: float
    average_service_time: int
    median_service_time: int
    min_service_time: int
    max_service_time: int
    total_service_time: int
    date_range: DateRange
    shop_id: str
    computed_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "averageWaitTime": self.average_wait_time,
            "medianWaitTime": self.median_wait_time,
            "minWaitTime": self.min_wait_time,
            "maxWaitTime": self.max_wait_time,
            "averageServiceTime": self.average_service_time,
            "medianServiceTime": self.median_service_time,
            "minServiceTime": self.min_service_time,
            "maxServiceTime": self.max_service_time,
            "totalServiceTime": self.total_service_time,
            "dateRange": self.date_range.to_dict(),
            "shopId": self.shop_id,
            "computedAt": to_iso(self.computed_at),
        }


@dataclass(frozen=True)
class EmployeeUtilization:
    """Serviced time of one employee against weekly capacity"""
    employee_id: str
    employee_name: str
    total_queues: int
    total_service_time: int
    utilization_rate: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "totalQueues": self.total_queues,
            "totalServiceTime": self.total_service_time,
            "utilizationRate": self.utilization_rate,
        }


# Serialized name of Bottleneck.affected_count per bottleneck type
_AFFECTED_KEYS = {
    "high_wait_time": "affectedQueues",
    "employee_overload": "affectedEmployees",
    "low_completion_rate": "completionRate",
}


@dataclass(frozen=True)
class Bottleneck:
    """A rule-triggered operational problem"""
    type: str
    severity: Severity
    description: str
    affected_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity.value,
            "description": self.description,
            _AFFECTED_KEYS.get(self.type, "affectedCount"): self.affected_count,
        }


@dataclass(frozen=True)
class Recommendation:
    """A rule-triggered, human-readable suggested action"""
    type: str
    priority: Priority
    title: str
    description: str
    action: str
    estimated_impact: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "priority": self.priority.value,
            "title": self.title,
            "description": self.description,
            "action": self.action,
            "estimatedImpact": self.estimated_impact,
        }


@dataclass(frozen=True)
class FlowAnalysis:
    """Inputs to the optimization rules, derived from a week of records"""
    snapshot: AnalyticsSnapshot
    max_wait_time: float
    employee_utilization: Tuple[EmployeeUtilization, ...]
    hourly_data: Tuple[HourlyStat, ...]
    bottlenecks: Tuple[Bottleneck, ...]

    @property
    def total_queues(self) -> int:
        return self.snapshot.total_queues

    @property
    def completed_queues(self) -> int:
        return self.snapshot.completed_queues

    @property
    def completion_rate(self) -> int:
        return self.snapshot.completion_rate

    @property
    def average_wait_time(self) -> int:
        return self.snapshot.average_wait_time

    def to_dict(self) -> Dict[str, Any]:
        snap = self.snapshot
        return {
            "totalQueues": snap.total_queues,
            "completedQueues": snap.completed_queues,
            "cancelledQueues": snap.cancelled_queues,
            "noShowQueues": snap.no_show_queues,
            "completionRate": snap.completion_rate,
            "cancellationRate": snap.cancellation_rate,
            "noShowRate": snap.no_show_rate,
            "averageWaitTime": snap.average_wait_time,
            "maxWaitTime": self.max_wait_time,
            "averageServiceTime": snap.average_service_time,
            "employeeUtilization": [e.to_dict() for e in self.employee_utilization],
            "hourlyData": [h.to_dict() for h in self.hourly_data],
            "bottlenecks": [b.to_dict() for b in self.bottlenecks],
        }


@dataclass(frozen=True)
class OptimizationMetrics:
    """Projected efficiency gap and revenue upside"""
    current_efficiency: int
    target_efficiency: int
    potential_improvement: int
    current_revenue: float
    potential_revenue: float
    potential_revenue_increase: float
    time_to_implement: str
    roi: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentEfficiency": self.current_efficiency,
            "targetEfficiency": self.target_efficiency,
            "potentialImprovement": self.potential_improvement,
            "currentRevenue": self.current_revenue,
            "potentialRevenue": self.potential_revenue,
            "potentialRevenueIncrease": self.potential_revenue_increase,
            "timeToImplement": self.time_to_implement,
            "roi": self.roi,
        }


@dataclass(frozen=True)
class RecommendationSummary:
    """Recommendation counts by priority"""
    total: int
    high: int
    medium: int
    low: int
    potential_improvement: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalRecommendations": self.total,
            "highPriorityRecommendations": self.high,
            "mediumPriorityRecommendations": self.medium,
            "lowPriorityRecommendations": self.low,
            "potentialImprovement": self.potential_improvement,
        }


@dataclass(frozen=True)
class OptimizationResult:
    """Result of a queue flow optimization run"""
    shop_id: str
    analysis: FlowAnalysis
    recommendations: Tuple[Recommendation, ...]
    optimization_metrics: OptimizationMetrics
    summary: RecommendationSummary
    success: bool = True

    @property
    def bottlenecks(self) -> Tuple[Bottleneck, ...]:
        return self.analysis.bottlenecks

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "shopId": self.shop_id,
            "analysis": self.analysis.to_dict(),
            "bottlenecks": [b.to_dict() for b in self.bottlenecks],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "optimizationMetrics": self.optimization_metrics.to_dict(),
            "summary": self.summary.to_dict(),
        }


@dataclass(frozen=True)
class QueueAnalyticsSummary:
    """Dashboard summary for one shop: three periods plus monthly profiles"""
    shop_id: str
    today: AnalyticsSnapshot
    week: AnalyticsSnapshot
    month: AnalyticsSnapshot
    peak_hours: PeakHoursSnapshot
    service_analytics: ServiceAnalytics
    computed_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shopId": self.shop_id,
            "today": self.today.to_dict(),
            "week": self.week.to_dict(),
            "month": self.month.to_dict(),
            "peakHours": self.peak_hours.to_dict(),
            "serviceAnalytics": self.service_analytics.to_dict(),
            "computedAt": to_iso(self.computed_at),
        }

    def to_dashboard_dict(self, slice_size: int = 5) -> Dict[str, Any]:
        """Compact projection with headline stats, top hours and top services"""

        def headline(snapshot: AnalyticsSnapshot) -> Dict[str, Any]:
            return {
                "totalQueues": snapshot.total_queues,
                "completedQueues": snapshot.completed_queues,
                "averageWaitTime": snapshot.average_wait_time,
                "completionRate": snapshot.completion_rate,
            }

        return {
            "todayStats": headline(self.today),
            "weeklyStats": headline(self.week),
            "monthlyStats": headline(self.month),
            "peakHours": [
                {"hour": h.hour, "queueCount": h.queue_count}
                for h in self.peak_hours.peak_hours[:slice_size]
            ],
            "topServices": [
                {
                    "serviceId": s.service_id,
                    "serviceName": s.service_name,
                    "queueCount": s.queue_count,
                }
                for s in self.service_analytics.top_services[:slice_size]
            ],
            "shopId": self.shop_id,
            "updatedAt": to_iso(self.computed_at),
        }


@dataclass
class Page:
    """One page of gateway results"""
    data: List[Any]
    total: int
