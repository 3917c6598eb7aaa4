"""Shared test fixtures."""

from datetime import UTC, datetime, timedelta

import pytest

from app.services.location_gateway import LocationPing

BASE_TIME = datetime(2026, 3, 4, 12, 0, tzinfo=UTC)


def make_ping(
    lat: float,
    lng: float,
    user_id: str = "user-1",
    minutes: int = 0,
) -> LocationPing:
    """Build a ping offset from a fixed base time."""
    return LocationPing(
        user_id=user_id,
        latitude=lat,
        longitude=lng,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Start every test with empty rate-limit counters."""
    from app.services.rate_limiter import rate_limiter

    rate_limiter.clear()
    yield
    rate_limiter.clear()
