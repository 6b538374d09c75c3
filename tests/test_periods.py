"""Tests for period resolution"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from queue_analytics.datetime_utils import configure_timezone, parse_timestamp
from queue_analytics.periods import last_n_days, resolve_periods

UTC = timezone.utc


class TestResolvePeriods:
    """Test today / week / month ranges"""

    def test_today(self):
        """Test today spans local midnight to 23:59:59"""
        periods = resolve_periods(datetime(2024, 3, 13, 15, 30, tzinfo=UTC))
        assert periods.today.date_from == "2024-03-13T00:00:00.000+00:00"
        assert periods.today.date_to == "2024-03-13T23:59:59.000+00:00"

    def test_week_starts_on_sunday(self):
        """Test a Wednesday resolves to Sunday..Saturday"""
        periods = resolve_periods(datetime(2024, 3, 13, 15, 30, tzinfo=UTC))
        assert periods.week.date_from == "2024-03-10T00:00:00.000+00:00"
        assert periods.week.date_to == "2024-03-16T23:59:59.999+00:00"

    def test_week_on_sunday_starts_same_day(self):
        periods = resolve_periods(datetime(2024, 3, 10, 8, 0, tzinfo=UTC))
        assert periods.week.date_from == "2024-03-10T00:00:00.000+00:00"

    def test_week_on_saturday(self):
        periods = resolve_periods(datetime(2024, 3, 16, 23, 0, tzinfo=UTC))
        assert periods.week.date_from == "2024-03-10T00:00:00.000+00:00"
        assert periods.week.date_to == "2024-03-16T23:59:59.999+00:00"

    def test_week_crossing_month_boundary(self):
        periods = resolve_periods(datetime(2024, 3, 1, 12, 0, tzinfo=UTC))
        assert periods.week.date_from == "2024-02-25T00:00:00.000+00:00"
        assert periods.week.date_to == "2024-03-02T23:59:59.999+00:00"

    def test_month_leap_february(self):
        """Test month end is the last calendar day"""
        periods = resolve_periods(datetime(2024, 2, 10, tzinfo=UTC))
        assert periods.month.date_from == "2024-02-01T00:00:00.000+00:00"
        assert periods.month.date_to == "2024-02-29T23:59:59.999+00:00"

    def test_month_december(self):
        periods = resolve_periods(datetime(2023, 12, 31, 22, 0, tzinfo=UTC))
        assert periods.month.date_to == "2023-12-31T23:59:59.999+00:00"

    def test_local_timezone_converted_to_utc(self):
        """Test boundaries follow the reference's own timezone"""
        tz = timezone(timedelta(hours=2))
        periods = resolve_periods(datetime(2024, 3, 13, 1, 0, tzinfo=tz))
        # Local midnight at +02:00 is 22:00 UTC the previous day
        assert periods.today.date_from == "2024-03-12T22:00:00.000+00:00"

    def test_ranges_are_inclusive_and_ordered(self):
        periods = resolve_periods(datetime(2024, 3, 13, 15, 30, tzinfo=UTC))
        for date_range in (periods.today, periods.week, periods.month):
            assert date_range.start < date_range.end

    def test_defaults_to_now(self):
        periods = resolve_periods()
        now = datetime.now(UTC)
        assert periods.month.start <= now <= periods.month.end

    def test_today_follows_configured_zone(self):
        """Test late UTC evening is already the next day east of UTC"""
        configure_timezone(timezone(timedelta(hours=7)))
        with patch(
            "queue_analytics.datetime_utils.utc_now",
            return_value=datetime(2024, 3, 13, 20, 0, tzinfo=UTC),
        ):
            periods = resolve_periods()

        assert periods.today.date_from == "2024-03-13T17:00:00.000+00:00"
        assert periods.today.date_to == "2024-03-14T16:59:59.000+00:00"


class TestLastNDays:
    """Test trailing windows"""

    def test_seven_day_window(self):
        reference = datetime(2024, 3, 13, 12, 0, tzinfo=UTC)
        window = last_n_days(7, reference)
        assert parse_timestamp(window.date_from) == datetime(2024, 3, 6, 12, 0, tzinfo=UTC)
        assert parse_timestamp(window.date_to) == reference
