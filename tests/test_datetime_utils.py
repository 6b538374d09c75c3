"""Tests for local zone handling"""

from datetime import datetime, timedelta, timezone

import pytest

from queue_analytics.datetime_utils import configure_timezone, to_local


def test_to_local_uses_configured_zone():
    configure_timezone(timezone(timedelta(hours=-5)))
    local = to_local(datetime(2024, 3, 13, 2, 0, tzinfo=timezone.utc))

    assert local.hour == 21
    assert local.day == 12
    assert local.utcoffset() == timedelta(hours=-5)


def test_naive_datetimes_are_utc():
    configure_timezone(timezone(timedelta(hours=2)))
    assert to_local(datetime(2024, 3, 13, 10, 0)).hour == 12


def test_utc_by_name():
    configure_timezone("utc")
    assert to_local(datetime(2024, 3, 13, 10, 0, tzinfo=timezone.utc)).utcoffset() == timedelta(0)


def test_host_zone_when_unset():
    configure_timezone(None)
    dt = datetime(2024, 3, 13, 10, 0, tzinfo=timezone.utc)
    assert to_local(dt) == dt.astimezone()


def test_unknown_zone_name():
    with pytest.raises(ValueError, match="Unknown timezone"):
        configure_timezone("Mars/Olympus_Mons")
