"""Tests for single-range analytics use-cases"""

from datetime import timedelta
from unittest.mock import patch

import pytest

from queue_analytics.cache import AnalyticsCache
from queue_analytics.constants import Operations, QueueStatus
from queue_analytics.exceptions import (
    GatewayError,
    QueueAnalyticsError,
    QueueAnalyticsErrorType,
    ValidationError,
)
from queue_analytics.range_analytics import QueueRangeAnalytics, validate_range
from tests.mocks import (
    BASE_TIME,
    FailingRecordGateway,
    InMemoryRecordGateway,
    make_record,
)

DATE_FROM = "2024-03-13T00:00:00Z"
DATE_TO = "2024-03-13T23:59:59Z"
CUT = ("s-cut", "Haircut", 300, 1)
WASH = ("s-wash", "Wash", 100, 1)


@pytest.fixture
def gateway():
    return InMemoryRecordGateway([
        make_record(1, wait=10, service_minutes=20, employee_id="e1", services=[CUT]),
        make_record(2, wait=30, service_minutes=40, employee_id="e2", services=[WASH],
                    created_at=BASE_TIME + timedelta(hours=3)),
        make_record(3, status=QueueStatus.CANCELLED, employee_id="e1", services=[WASH]),
        make_record(4, created_at=BASE_TIME - timedelta(days=1)),
    ])


@pytest.fixture
def analytics(gateway):
    return QueueRangeAnalytics(gateway, cache=AnalyticsCache(300))


class TestValidateRange:
    """Test input validation"""

    def test_valid_range_is_normalized(self):
        date_range = validate_range("shop-1", DATE_FROM, DATE_TO, Operations.GET_ANALYTICS)
        assert date_range.date_from == "2024-03-13T00:00:00.000+00:00"

    def test_equal_ends_allowed(self):
        validate_range("shop-1", DATE_FROM, DATE_FROM, Operations.GET_ANALYTICS)

    @pytest.mark.parametrize("shop_id,date_from,date_to,field", [
        ("", DATE_FROM, DATE_TO, "shop_id"),
        ("shop-1", None, DATE_TO, "date_from"),
        ("shop-1", DATE_FROM, "", "date_to"),
        ("shop-1", "not-a-date", DATE_TO, "date_range"),
        ("shop-1", DATE_TO, DATE_FROM, "date_range"),
    ])
    def test_invalid_input(self, shop_id, date_from, date_to, field):
        with pytest.raises(ValidationError) as exc_info:
            validate_range(shop_id, date_from, date_to, Operations.GET_PEAK_HOURS)
        assert exc_info.value.field == field
        assert exc_info.value.operation == Operations.GET_PEAK_HOURS


class TestGetAnalytics:
    """Test the cached analytics snapshot"""

    def test_snapshot(self, analytics):
        snapshot = analytics.get_analytics("shop-1", DATE_FROM, DATE_TO)

        assert snapshot.total_queues == 3
        assert snapshot.completed_queues == 2
        assert snapshot.average_wait_time == 20
        assert snapshot.average_service_time == 30

    def test_cached_within_ttl(self, analytics, gateway):
        analytics.get_analytics("shop-1", DATE_FROM, DATE_TO)
        # Same range spelled differently hits the same entry
        analytics.get_analytics("shop-1", "2024-03-13T00:00:00.000+00:00", DATE_TO)
        assert gateway.queue_calls == 1

    def test_filters_use_own_cache_entry(self, analytics, gateway):
        all_records = analytics.get_analytics("shop-1", DATE_FROM, DATE_TO)
        by_employee = analytics.get_analytics("shop-1", DATE_FROM, DATE_TO, employee_id="e1")
        by_service = analytics.get_analytics("shop-1", DATE_FROM, DATE_TO, service_id="s-wash")

        assert all_records.total_queues == 3
        assert by_employee.total_queues == 2
        assert by_service.total_queues == 2
        assert gateway.queue_calls == 3

    def test_gateway_error_propagates(self):
        analytics = QueueRangeAnalytics(FailingRecordGateway())
        with pytest.raises(GatewayError):
            analytics.get_analytics("shop-1", DATE_FROM, DATE_TO)

    def test_unexpected_error_is_wrapped(self, analytics):
        with patch(
            "queue_analytics.range_analytics.calculate_analytics",
            side_effect=ZeroDivisionError(),
        ):
            with pytest.raises(QueueAnalyticsError) as exc_info:
                analytics.get_analytics("shop-1", DATE_FROM, DATE_TO)

        error = exc_info.value
        assert error.error_type == QueueAnalyticsErrorType.OPERATION_FAILED
        assert error.operation == Operations.GET_ANALYTICS
        assert error.context["shop_id"] == "shop-1"


class TestOtherUseCases:
    """Test time, peak-hour and service analytics"""

    def test_time_analytics(self, analytics):
        times = analytics.get_time_analytics("shop-1", DATE_FROM, DATE_TO)

        assert times.average_wait_time == 20
        assert times.min_wait_time == 10
        assert times.max_wait_time == 30
        assert times.median_service_time == 30
        assert times.total_service_time == 60

    def test_time_analytics_by_employee(self, analytics):
        times = analytics.get_time_analytics("shop-1", DATE_FROM, DATE_TO, employee_id="e2")
        assert times.average_wait_time == 30
        assert times.total_service_time == 40

    def test_peak_hours(self, analytics):
        snapshot = analytics.get_peak_hours("shop-1", DATE_FROM, DATE_TO)

        assert snapshot.hourly[9].queue_count == 2
        assert snapshot.hourly[12].queue_count == 1
        assert snapshot.peak_hours[0].hour == 9

    def test_service_analytics(self, analytics):
        services = analytics.get_service_analytics("shop-1", DATE_FROM, DATE_TO)
        by_id = {s.service_id: s for s in services.service_stats}

        assert by_id["s-wash"].total_queues == 2
        assert by_id["s-wash"].completed_queues == 1
        assert services.top_services[0].service_id == "s-wash"

    def test_validation_before_fetch(self, analytics, gateway):
        with pytest.raises(ValidationError):
            analytics.get_service_analytics("shop-1", DATE_TO, DATE_FROM)
        assert gateway.queue_calls == 0
