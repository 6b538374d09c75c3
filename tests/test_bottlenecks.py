"""Tests for bottleneck detection"""

import pytest

from queue_analytics.aggregator import calculate_analytics
from queue_analytics.bottlenecks import BottleneckDetector
from queue_analytics.constants import BottleneckType, QueueStatus, Severity
from queue_analytics.models import DateRange
from tests.mocks import make_employee, make_record


@pytest.fixture
def date_range():
    return DateRange.of("2024-03-06T12:00:00Z", "2024-03-13T12:00:00Z")


@pytest.fixture
def detector():
    return BottleneckDetector()


def _detect(detector, records, employees, date_range):
    snapshot = calculate_analytics(records, "shop-1", date_range)
    return detector.detect(snapshot, records, employees)


class TestBottleneckDetector:
    """Test threshold rules"""

    def test_no_bottlenecks_on_empty_set(self, detector, date_range):
        assert _detect(detector, [], [], date_range) == []

    def test_healthy_shop(self, detector, date_range):
        records = [make_record(i, wait=10) for i in range(10)]
        employees = [make_employee("e1", active_queue_count=3)]
        assert _detect(detector, records, employees, date_range) == []

    def test_high_wait_time(self, detector, date_range):
        """Test records above 1.5x average are counted"""
        records = [make_record(i, wait=10) for i in range(8)]
        records += [make_record("slow1", wait=40), make_record("slow2", wait=50)]
        # Average is 17, threshold 25.5
        bottlenecks = _detect(detector, records, [], date_range)

        assert len(bottlenecks) == 1
        bottleneck = bottlenecks[0]
        assert bottleneck.type == BottleneckType.HIGH_WAIT_TIME
        assert bottleneck.severity == Severity.HIGH
        assert bottleneck.affected_count == 2
        assert "2 queues" in bottleneck.description
        assert bottleneck.to_dict()["affectedQueues"] == 2

    def test_high_wait_never_fires_on_zero_average(self, detector, date_range):
        records = [make_record(i, wait=0) for i in range(5)]
        bottlenecks = _detect(detector, records, [], date_range)
        assert BottleneckType.HIGH_WAIT_TIME not in [b.type for b in bottlenecks]

    def test_single_employee_overload(self, detector, date_range):
        """Test one employee over 5 active queues yields one entry"""
        records = [make_record(i, wait=10) for i in range(5)]
        employees = [
            make_employee("e1", active_queue_count=6),
            make_employee("e2", active_queue_count=5),
            make_employee("e3", active_queue_count=2),
        ]
        bottlenecks = _detect(detector, records, employees, date_range)

        assert [b.type for b in bottlenecks] == [BottleneckType.EMPLOYEE_OVERLOAD]
        assert bottlenecks[0].severity == Severity.MEDIUM
        assert bottlenecks[0].to_dict()["affectedEmployees"] == 1

    def test_low_completion_rate(self, detector, date_range):
        records = [make_record(i) for i in range(6)]
        records += [make_record(f"c{i}", status=QueueStatus.CANCELLED) for i in range(4)]
        bottlenecks = _detect(detector, records, [], date_range)

        assert [b.type for b in bottlenecks] == [BottleneckType.LOW_COMPLETION_RATE]
        assert bottlenecks[0].to_dict()["completionRate"] == 60
        assert "60%" in bottlenecks[0].description

    def test_exactly_seventy_percent_is_not_low(self, detector, date_range):
        records = [make_record(i) for i in range(7)]
        records += [make_record(f"c{i}", status=QueueStatus.NO_SHOW) for i in range(3)]
        assert _detect(detector, records, [], date_range) == []

    def test_all_rules_in_order(self, detector, date_range):
        records = [make_record(i, wait=10, status=QueueStatus.CANCELLED) for i in range(9)]
        records.append(make_record("slow", wait=90))
        employees = [make_employee("e1", active_queue_count=9)]
        types = [b.type for b in _detect(detector, records, employees, date_range)]

        assert types == [
            BottleneckType.HIGH_WAIT_TIME,
            BottleneckType.EMPLOYEE_OVERLOAD,
            BottleneckType.LOW_COMPLETION_RATE,
        ]

    def test_custom_thresholds(self, date_range):
        detector = BottleneckDetector(overload_queue_count=2, min_completion_rate=50)
        records = [make_record(i) for i in range(5)]
        records += [make_record(f"c{i}", status=QueueStatus.CANCELLED) for i in range(5)]
        employees = [make_employee("e1", active_queue_count=3)]
        types = [b.type for b in _detect(detector, records, employees, date_range)]

        assert types == [BottleneckType.EMPLOYEE_OVERLOAD]
