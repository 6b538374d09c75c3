"""Tests for the peak-hour analyzer"""

from datetime import datetime, timedelta, timezone

import pytest

from queue_analytics.constants import QueueStatus
from queue_analytics.datetime_utils import configure_timezone
from queue_analytics.models import DateRange
from queue_analytics.peak_hours import (
    calculate_peak_hours,
    hourly_stats,
    rank_hours,
    staffing_suggestions,
)
from queue_analytics.sqlite_gateway import SQLiteRecordGateway
from tests.mocks import make_record

BANGKOK = timezone(timedelta(hours=7))


def _at(day, hour, minute=0):
    return datetime(2024, 3, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def date_range():
    return DateRange.of("2024-03-01T00:00:00Z", "2024-03-31T23:59:59.999Z")


class TestHourlyStats:
    """Test hour-of-day bucketing"""

    def test_always_24_buckets(self):
        assert len(hourly_stats([])) == 24
        stats = hourly_stats([make_record(1, created_at=_at(5, 9))])
        assert [s.hour for s in stats] == list(range(24))

    def test_bucket_counts_sum_to_total(self):
        """Test records from different days land in the same hour"""
        records = [
            make_record(1, created_at=_at(1, 9)),
            make_record(2, created_at=_at(2, 9, 45)),
            make_record(3, created_at=_at(3, 14)),
            make_record(4, created_at=_at(4, 23, 59)),
        ]
        stats = hourly_stats(records)

        assert sum(s.queue_count for s in stats) == len(records)
        assert stats[9].queue_count == 2
        assert stats[14].queue_count == 1
        assert stats[23].queue_count == 1

    def test_per_hour_wait_and_completion(self):
        records = [
            make_record(1, created_at=_at(1, 10), wait=10),
            make_record(2, created_at=_at(1, 10), wait=20,
                        status=QueueStatus.CANCELLED),
            make_record(3, created_at=_at(1, 10)),
        ]
        stat = hourly_stats(records)[10]

        assert stat.average_wait_time == 15
        assert stat.completion_rate == 67

    def test_empty_hour_is_zero(self):
        stat = hourly_stats([make_record(1, created_at=_at(1, 10))])[3]
        assert (stat.queue_count, stat.average_wait_time, stat.completion_rate) == (0, 0, 0)


class TestRankHours:
    """Test peak and quiet rankings"""

    def test_peak_and_quiet_slices(self):
        records = (
            [make_record(f"a{i}", created_at=_at(1, 12)) for i in range(5)]
            + [make_record(f"b{i}", created_at=_at(1, 9)) for i in range(3)]
            + [make_record("c", created_at=_at(1, 17))]
        )
        peak, quiet = rank_hours(hourly_stats(records))

        assert len(peak) == 8
        assert len(quiet) == 8
        assert [s.hour for s in peak[:3]] == [12, 9, 17]
        assert all(s.queue_count == 0 for s in quiet)

    def test_ties_break_by_hour_ascending(self):
        records = [
            make_record(1, created_at=_at(1, 15)),
            make_record(2, created_at=_at(1, 8)),
        ]
        peak, quiet = rank_hours(hourly_stats(records))

        assert [s.hour for s in peak[:4]] == [8, 15, 0, 1]
        assert [s.hour for s in quiet[:3]] == [0, 1, 2]

    def test_slices_are_sorted(self):
        records = [make_record(i, created_at=_at(1, i % 24)) for i in range(60)]
        peak, quiet = rank_hours(hourly_stats(records))

        peak_counts = [s.queue_count for s in peak]
        quiet_counts = [s.queue_count for s in quiet]
        assert peak_counts == sorted(peak_counts, reverse=True)
        assert quiet_counts == sorted(quiet_counts)


class TestStaffing:
    """Test staffing suggestions"""

    def test_high_volume_above_ten(self):
        records = [make_record(i, created_at=_at(1, 11)) for i in range(11)]
        records += [make_record(f"x{i}", created_at=_at(1, 12)) for i in range(10)]
        suggestions = staffing_suggestions(hourly_stats(records))

        assert len(suggestions) == 24
        assert suggestions[11].recommended_employees == 2
        assert suggestions[11].reason == "High volume"
        # Exactly 10 is still normal volume
        assert suggestions[12].recommended_employees == 1
        assert suggestions[12].reason == "Normal volume"


class TestCalculatePeakHours:
    """Test the assembled snapshot"""

    def test_snapshot_shape(self, date_range):
        snapshot = calculate_peak_hours(
            [make_record(1, created_at=_at(2, 10))], "shop-1", date_range
        )
        data = snapshot.to_dict()

        assert len(data["hourly"]) == 24
        assert len(data["peakHours"]) == 8
        assert len(data["quietHours"]) == 8
        assert len(data["recommendedStaffing"]) == 24
        assert data["peakHours"][0] == {
            "hour": 10, "queueCount": 1, "averageWaitTime": 0, "completionRate": 100
        }
        assert data["shopId"] == "shop-1"


class TestLocalZone:
    """Test hours are bucketed in the local zone, not in UTC"""

    def test_utc_timestamps_shift_to_local_hour(self):
        configure_timezone(BANGKOK)
        stats = hourly_stats([make_record(1, created_at=_at(13, 2, 30))])

        assert stats[9].queue_count == 1
        assert stats[2].queue_count == 0

    def test_stored_record_keeps_local_hour(self, date_range):
        """Test a record read back from storage (as UTC) lands in its local hour"""
        configure_timezone(BANGKOK)
        db = SQLiteRecordGateway(":memory:")
        try:
            db.insert_queue({
                "id": "q1", "shopId": "shop-1", "status": "completed",
                "createdAt": "2024-03-13T09:30:00+07:00",
            })
            records = db.get_queues(
                "shop-1", date_range.date_from, date_range.date_to
            ).data
        finally:
            db.close()

        snapshot = calculate_peak_hours(records, "shop-1", date_range)
        assert [s.hour for s in snapshot.peak_hours if s.queue_count > 0] == [9]
