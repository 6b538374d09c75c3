"""Shared test fixtures"""

import pytest

from queue_analytics.datetime_utils import configure_timezone


@pytest.fixture(autouse=True)
def utc_local_zone():
    """Run every test with UTC as the local zone, whatever the host zone"""
    configure_timezone("UTC")
    yield
    configure_timezone(None)
