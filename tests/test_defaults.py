"""Tests for zero-value defaults"""

from queue_analytics.defaults import (
    default_analytics,
    default_peak_hours,
    default_service_analytics,
)
from queue_analytics.models import DateRange

DATE_RANGE = DateRange.of("2024-03-01T00:00:00Z", "2024-03-31T23:59:59.999Z")


class TestDefaults:
    """Test that every default is structurally complete"""

    def test_default_analytics(self):
        data = default_analytics("shop-1", DATE_RANGE).without_timestamp()

        counts = {k: v for k, v in data.items() if k not in ("dateRange", "shopId")}
        assert set(counts.values()) == {0}
        assert data["shopId"] == "shop-1"
        assert data["dateRange"] == DATE_RANGE.to_dict()

    def test_default_peak_hours(self):
        snapshot = default_peak_hours("shop-1", DATE_RANGE)

        assert [h.hour for h in snapshot.hourly] == list(range(24))
        assert all(h.queue_count == 0 for h in snapshot.hourly)
        assert snapshot.peak_hours == ()
        assert snapshot.quiet_hours == ()
        assert snapshot.recommended_staffing == ()

    def test_default_service_analytics(self):
        data = default_service_analytics("shop-1", DATE_RANGE).to_dict()
        assert data["serviceStats"] == []
        assert data["topServices"] == []
        assert data["leastPopularServices"] == []
