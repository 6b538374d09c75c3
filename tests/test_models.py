"""Tests for the data model and timestamp helpers"""

from datetime import datetime, timedelta, timezone

import pytest

from queue_analytics.constants import EmployeeStatus, QueueStatus
from queue_analytics.datetime_utils import minutes_between, normalize_iso, parse_timestamp
from queue_analytics.exceptions import RecordFormatError
from queue_analytics.models import DateRange, EmployeeRecord, LineItem, QueueRecord

UTC = timezone.utc


class TestTimestamps:
    """Test timestamp normalization"""

    def test_naive_is_utc(self):
        assert parse_timestamp("2024-03-13T10:00:00") == datetime(2024, 3, 13, 10, tzinfo=UTC)

    def test_z_suffix(self):
        assert parse_timestamp("2024-03-13T10:00:00Z").tzinfo is not None

    def test_normalize_offsets(self):
        assert normalize_iso("2024-03-13T12:00:00+02:00") == "2024-03-13T10:00:00.000+00:00"
        assert normalize_iso(datetime(2024, 3, 13, 10)) == "2024-03-13T10:00:00.000+00:00"

    def test_empty_is_none(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    def test_minutes_between(self):
        start = datetime(2024, 3, 13, 10, tzinfo=UTC)
        assert minutes_between(start, start + timedelta(minutes=90)) == 90


class TestQueueRecord:
    """Test conversion of raw gateway records"""

    def test_from_camel_case(self):
        record = QueueRecord.from_dict({
            "id": 17,
            "shopId": "shop-1",
            "status": "COMPLETED",
            "createdAt": "2024-03-13T09:00:00Z",
            "calledAt": "2024-03-13T09:12:00Z",
            "completedAt": "2024-03-13T09:40:00Z",
            "actualWaitTime": "12",
            "servedByEmployeeId": 3,
            "lineItems": [
                {"serviceId": "s-cut", "serviceName": "Haircut", "unitPrice": 300, "quantity": 2},
            ],
        })

        assert record.id == "17"
        assert record.status == QueueStatus.COMPLETED
        assert record.actual_wait_time == 12.0
        assert record.served_by_employee_id == "3"
        assert record.service_minutes == 28
        assert record.line_items[0].amount == 600
        assert record.has_service("s-cut")

    def test_from_snake_case(self):
        record = QueueRecord.from_dict({
            "id": "q1",
            "shop_id": "shop-1",
            "status": "no-show",
            "created_at": "2024-03-13T09:00:00",
            "line_items": [{"service_id": "s1", "price": 10}],
        })

        assert record.status == QueueStatus.NO_SHOW
        assert record.service_minutes is None
        assert not record.has_wait_time
        assert record.line_items[0].quantity == 1

    @pytest.mark.parametrize("raw", [
        {"status": "completed", "createdAt": "2024-03-13T09:00:00Z"},
        {"id": 1, "status": "teleported", "createdAt": "2024-03-13T09:00:00Z"},
        {"id": 1, "status": "completed"},
        {"id": 1, "status": "completed", "createdAt": "yesterday"},
        {"id": 1, "status": "completed", "createdAt": "2024-03-13T09:00:00Z",
         "actualWaitTime": "long"},
        {"id": 1, "status": "completed", "createdAt": "2024-03-13T09:00:00Z",
         "lineItems": "s-cut"},
        {"id": 1, "status": "completed", "createdAt": "2024-03-13T09:00:00Z",
         "lineItems": [{"unitPrice": 10}]},
    ])
    def test_malformed(self, raw):
        with pytest.raises(RecordFormatError):
            QueueRecord.from_dict(raw)

    def test_to_dict_round_trip_keys(self):
        record = QueueRecord.from_dict({
            "id": "q1", "status": "waiting", "createdAt": "2024-03-13T09:00:00Z",
        })
        data = record.to_dict()

        assert data["status"] == "waiting"
        assert data["calledAt"] is None
        assert QueueRecord.from_dict(data) == record


class TestEmployeeRecord:
    """Test employee conversion"""

    def test_from_dict(self):
        employee = EmployeeRecord.from_dict(
            {"id": 5, "name": "Alice", "status": "ACTIVE", "activeQueueCount": "4"}
        )
        assert employee.id == "5"
        assert employee.status == EmployeeStatus.ACTIVE
        assert employee.active_queue_count == 4

    def test_invalid_status(self):
        with pytest.raises(RecordFormatError):
            EmployeeRecord.from_dict({"id": 5, "status": "on-vacation"})


class TestDateRange:
    """Test range helpers"""

    def test_of_normalizes_both_ends(self):
        date_range = DateRange.of("2024-03-13T10:00:00+01:00", datetime(2024, 3, 13, 23, 59, 59))
        assert date_range.date_from == "2024-03-13T09:00:00.000+00:00"
        assert date_range.date_to == "2024-03-13T23:59:59.000+00:00"
        assert date_range.end - date_range.start == timedelta(hours=14, minutes=59, seconds=59)

    def test_line_item_amount(self):
        assert LineItem("s1", "Cut", 12.5, 4).amount == 50
