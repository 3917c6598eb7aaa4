"""Density grid aggregation for the location heatmap."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from app.geo import is_valid_coordinate, snap_floor
from app.services.location_gateway import LocationPing

logger = logging.getLogger(__name__)

# ~300m cells
DENSITY_GRID_SIZE = 0.003

# Cell count at which intensity saturates at 1.0
INTENSITY_SATURATION = 10


@dataclass(frozen=True)
class DensityCell:
    """Ping count for one grid cell, keyed by its south-west origin."""

    latitude: float
    longitude: float
    count: int

    @property
    def intensity(self) -> float:
        """Count normalized to 0-1 for styling."""
        return min(self.count / INTENSITY_SATURATION, 1)


@dataclass
class DensityGrid:
    """Result of a density aggregation pass."""

    cells: list[DensityCell]
    total_points: int


def aggregate_density(
    pings: Iterable[LocationPing], grid_size: float = DENSITY_GRID_SIZE
) -> DensityGrid:
    """Bin pings into floor-snapped grid cells and count each cell.

    Pings with non-numeric coordinates are skipped but still counted in
    ``total_points``, which reflects the post-filter ping count.
    """
    counts: dict[tuple[float, float], int] = {}
    total = 0
    skipped = 0

    for ping in pings:
        total += 1
        if not is_valid_coordinate(ping.latitude, ping.longitude):
            skipped += 1
            continue
        key = snap_floor(ping.latitude, ping.longitude, grid_size)
        counts[key] = counts.get(key, 0) + 1

    if skipped:
        logger.debug(f"Skipped {skipped} pings with invalid coordinates")

    cells = [
        DensityCell(latitude=lat, longitude=lng, count=count)
        for (lat, lng), count in counts.items()
    ]
    logger.info(f"Aggregated {total} pings into {len(cells)} density cells")
    return DensityGrid(cells=cells, total_points=total)
