"""Read access to the location ping store."""

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta, tzinfo
from enum import Enum
from typing import NamedTuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import UpstreamQueryFailure
from app.geo import to_coordinate
from app.models import UserLocation

logger = logging.getLogger(__name__)

ANONYMOUS_USER = "anonymous"


class TimeFilter(str, Enum):
    """Lower bound applied to ping timestamps."""

    ALL = "all"
    TODAY = "today"
    THIS_WEEK = "this_week"
    THIS_HOUR = "this_hour"


class LocationPing(NamedTuple):
    """A single ping as seen by the aggregators."""

    user_id: str
    latitude: float
    longitude: float
    created_at: datetime


def time_window_start(time_filter: TimeFilter, now: datetime) -> datetime | None:
    """Return the earliest timestamp included by a time filter.

    ``now`` must be timezone-aware; boundaries are computed in its timezone.
    Weeks start on Sunday.
    """
    if time_filter == TimeFilter.TODAY:
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if time_filter == TimeFilter.THIS_WEEK:
        days_since_sunday = (now.weekday() + 1) % 7
        start = now - timedelta(days=days_since_sunday)
        return start.replace(hour=0, minute=0, second=0, microsecond=0)
    if time_filter == TimeFilter.THIS_HOUR:
        return now.replace(minute=0, second=0, microsecond=0)
    return None


def day_of_week(moment: datetime) -> int:
    """Day of week with 0 = Sunday through 6 = Saturday."""
    return (moment.weekday() + 1) % 7


def filter_by_hour_of_day(
    pings: Iterable[LocationPing], hour: int, tz: tzinfo
) -> list[LocationPing]:
    """Keep pings whose local hour matches ``hour``."""
    return [p for p in pings if p.created_at.astimezone(tz).hour == hour]


def filter_by_day_of_week(
    pings: Iterable[LocationPing], day: int, tz: tzinfo
) -> list[LocationPing]:
    """Keep pings whose local weekday (0 = Sunday) matches ``day``."""
    return [p for p in pings if day_of_week(p.created_at.astimezone(tz)) == day]


def _to_ping(row) -> LocationPing:
    return LocationPing(
        user_id=str(row.user_id) if row.user_id is not None else ANONYMOUS_USER,
        latitude=to_coordinate(row.latitude),
        longitude=to_coordinate(row.longitude),
        created_at=row.created_at,
    )


async def fetch_location_pings(
    db: AsyncSession,
    time_filter: TimeFilter,
    now: datetime,
) -> list[LocationPing]:
    """Fetch pings inside a time window, ordered by user and timestamp.

    Raises UpstreamQueryFailure if the store cannot be read.
    """
    query = (
        select(
            UserLocation.user_id,
            UserLocation.latitude,
            UserLocation.longitude,
            UserLocation.created_at,
        )
        .where(UserLocation.created_at.isnot(None))
        .order_by(UserLocation.user_id, UserLocation.created_at)
    )

    start = time_window_start(time_filter, now)
    if start is not None:
        query = query.where(UserLocation.created_at >= start)

    try:
        result = await db.execute(query)
        rows = result.all()
    except SQLAlchemyError as e:
        logger.exception(f"Failed to fetch location pings (filter={time_filter.value})")
        raise UpstreamQueryFailure("Failed to fetch location data") from e

    pings = [_to_ping(row) for row in rows]
    logger.info(f"Fetched {len(pings)} location pings (filter={time_filter.value})")
    return pings
