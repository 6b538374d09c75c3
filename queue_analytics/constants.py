"""
Constants and Status Definitions

This module provides a single source of truth for queue statuses, rule
thresholds and business defaults used throughout the analytics engine.
"""

from enum import Enum


# =============================================================================
# Record Statuses
# =============================================================================

class QueueStatus(Enum):
    """Lifecycle status of a queue record"""

    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @classmethod
    def normalize(cls, value) -> "QueueStatus":
        """
        Normalize a raw status value to a QueueStatus.

        Args:
            value: QueueStatus or status string (various formats)

        Returns:
            Matching QueueStatus

        Raises:
            ValueError: If the value is not a known status
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Invalid queue status: {value!r}")

        lowered = value.strip().lower().replace("-", "_").replace(" ", "_")
        if lowered in {"noshow", "no_show"}:
            return cls.NO_SHOW
        if lowered in {"inprogress", "in_progress", "serving"}:
            return cls.IN_PROGRESS
        if lowered == "canceled":
            return cls.CANCELLED
        return cls(lowered)


class EmployeeStatus(Enum):
    """Employment status of an employee record"""

    ACTIVE = "active"
    INACTIVE = "inactive"


class Severity(Enum):
    """Bottleneck severity levels"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Priority(Enum):
    """Recommendation priority tiers"""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class BottleneckType:
    """Bottleneck type identifiers"""

    HIGH_WAIT_TIME = "high_wait_time"
    EMPLOYEE_OVERLOAD = "employee_overload"
    LOW_COMPLETION_RATE = "low_completion_rate"


class RecommendationType:
    """Recommendation type identifiers"""

    STAFFING = "staffing"
    UTILIZATION = "utilization"
    PROCESS = "process"
    TECHNOLOGY = "technology"
    TRAINING = "training"


# =============================================================================
# Analytics Defaults
# =============================================================================

class AnalyticsDefaults:
    """Default values for analytics computations"""

    CACHE_TTL_SECONDS = 300
    QUEUE_PAGE_LIMIT = 10000
    EMPLOYEE_PAGE_LIMIT = 100
    BRANCH_TIMEOUT_SECONDS = 10.0
    MAX_WORKERS = 5

    HOURS_PER_DAY = 24
    PEAK_SLICE_SIZE = 8
    SERVICE_RANKING_SIZE = 10
    DASHBOARD_SLICE_SIZE = 5

    # 7 days x 8 hours x 60 minutes
    CAPACITY_MINUTES = 7 * 8 * 60

    HIGH_VOLUME_QUEUE_COUNT = 10
    HIGH_VOLUME_STAFF = 2
    NORMAL_VOLUME_STAFF = 1


class BottleneckThresholds:
    """Thresholds used by the bottleneck detector"""

    HIGH_WAIT_MULTIPLIER = 1.5
    EMPLOYEE_OVERLOAD_QUEUES = 5
    LOW_COMPLETION_RATE = 70


class RecommendationThresholds:
    """Thresholds used by the recommendation rule table"""

    AVERAGE_WAIT_MINUTES = 20
    UNDERUTILIZED_RATE = 50
    COMPLETION_RATE = 80
    MAX_WAIT_MINUTES = 45
    OVERUTILIZED_RATE = 90


class OptimizationDefaults:
    """Business assumptions for optimization projections"""

    TARGET_EFFICIENCY = 0.9
    FLAT_SERVICE_PRICE = 100
    IMPLEMENTATION_COST = 5000
    WINDOW_DAYS = 7
    TIME_TO_IMPLEMENT = "2-4 weeks"


class PopularityWeights:
    """Weights of the service popularity score components"""

    COMPLETION = 0.4
    REVENUE = 0.3
    VOLUME = 0.2
    SPEED = 0.1

    # Normalization divisors mapping raw values onto 0-100
    REVENUE_DIVISOR = 1000
    VOLUME_DIVISOR = 10


# =============================================================================
# Operation Names
# =============================================================================

class Operations:
    """Operation names carried by errors and log records"""

    GET_SUMMARY = "getQueueAnalyticsSummary"
    OPTIMIZE_FLOW = "optimizeQueueFlow"
    GET_ANALYTICS = "getQueueAnalytics"
    GET_TIME_ANALYTICS = "getQueueTimeAnalytics"
    GET_PEAK_HOURS = "getQueuePeakHours"
    GET_SERVICE_ANALYTICS = "getQueueServiceAnalytics"
