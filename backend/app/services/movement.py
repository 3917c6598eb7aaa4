"""Movement graph reconstruction from per-user ping sequences."""

import logging
import math
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from app.geo import distance_meters, is_valid_coordinate, snap_round
from app.services.location_gateway import LocationPing

logger = logging.getLogger(__name__)

# ~110m cells
MOVEMENT_GRID_SIZE = 0.001

# Transitions outside (MIN, MAX) meters are GPS noise or teleports
MIN_MOVEMENT_METERS = 50.0
MAX_MOVEMENT_METERS = 10_000.0

DEFAULT_MIN_FREQUENCY = 2

# (lng, lat) in GeoJSON order
Coordinate = tuple[float, float]


@dataclass
class MovementEdge:
    """Directed transition between two snapped cells."""

    origin: Coordinate
    destination: Coordinate
    frequency: int = 0
    users: set[str] = field(default_factory=set)

    @property
    def unique_users(self) -> int:
        return len(self.users)

    @property
    def weight(self) -> float:
        """Display weight, capped at 10."""
        return min(self.frequency / 2, 10)


def group_by_user(pings: Iterable[LocationPing]) -> dict[str, list[LocationPing]]:
    """Group pings by user and sort each group chronologically."""
    groups: dict[str, list[LocationPing]] = defaultdict(list)
    for ping in pings:
        groups[ping.user_id].append(ping)
    for sequence in groups.values():
        sequence.sort(key=lambda p: p.created_at)
    return dict(groups)


def is_significant_movement(distance: float) -> bool:
    """True for distances strictly between the noise and teleport thresholds."""
    if math.isnan(distance):
        return False
    return MIN_MOVEMENT_METERS < distance < MAX_MOVEMENT_METERS


def _snap_cell(ping: LocationPing) -> Coordinate:
    lat, lng = snap_round(ping.latitude, ping.longitude, MOVEMENT_GRID_SIZE)
    return (lng, lat)


def build_movement_graph(
    pings: Iterable[LocationPing],
    min_frequency: int = DEFAULT_MIN_FREQUENCY,
) -> list[MovementEdge]:
    """Accumulate directed edges between consecutive pings of each user.

    A→B and B→A are separate edges. Edges seen fewer than ``min_frequency``
    times are dropped.
    """
    edges: dict[tuple[Coordinate, Coordinate], MovementEdge] = {}

    for user_id, sequence in group_by_user(pings).items():
        for current, nxt in zip(sequence, sequence[1:]):
            if not (
                is_valid_coordinate(current.latitude, current.longitude)
                and is_valid_coordinate(nxt.latitude, nxt.longitude)
            ):
                continue

            distance = distance_meters(
                current.latitude, current.longitude, nxt.latitude, nxt.longitude
            )
            if not is_significant_movement(distance):
                continue

            origin = _snap_cell(current)
            destination = _snap_cell(nxt)
            key = (origin, destination)
            edge = edges.get(key)
            if edge is None:
                edge = edges[key] = MovementEdge(origin=origin, destination=destination)
            edge.frequency += 1
            edge.users.add(user_id)

    kept = [edge for edge in edges.values() if edge.frequency >= min_frequency]
    logger.info(
        f"Found {len(kept)} movement paths with frequency >= {min_frequency} "
        f"(of {len(edges)} candidates)"
    )
    return kept
