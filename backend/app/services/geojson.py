"""Encode aggregation results as GeoJSON feature collections with stats."""

from app.schemas.heatmap import (
    DensityFeature,
    DensityFeatureCollection,
    DensityProperties,
    DensityResponse,
    DensityStats,
    LineStringGeometry,
    MovementFeature,
    MovementFeatureCollection,
    MovementPathsResponse,
    MovementProperties,
    MovementStats,
    PointGeometry,
)
from app.services.density import DensityGrid
from app.services.movement import MovementEdge


def density_stats(grid: DensityGrid) -> DensityStats:
    """Compute density statistics; all zero for an empty grid."""
    counts = [cell.count for cell in grid.cells]
    if not counts:
        return DensityStats(total_points=grid.total_points)
    return DensityStats(
        total_points=grid.total_points,
        grid_cells=len(counts),
        max_density=max(counts),
        avg_density=sum(counts) / len(counts),
    )


def movement_stats(edges: list[MovementEdge]) -> MovementStats:
    """Compute movement statistics; all zero when no edges survive."""
    if not edges:
        return MovementStats()
    frequencies = [edge.frequency for edge in edges]
    users: set[str] = set()
    for edge in edges:
        users |= edge.users
    return MovementStats(
        total_paths=len(edges),
        total_movements=sum(frequencies),
        unique_users=len(users),
        max_frequency=max(frequencies),
        avg_frequency=sum(frequencies) / len(frequencies),
    )


def encode_density(grid: DensityGrid) -> DensityResponse:
    """Build the density response body."""
    features = [
        DensityFeature(
            properties=DensityProperties(density=cell.count, intensity=cell.intensity),
            geometry=PointGeometry(coordinates=(cell.longitude, cell.latitude)),
        )
        for cell in grid.cells
    ]
    return DensityResponse(
        geojson=DensityFeatureCollection(features=features),
        stats=density_stats(grid),
    )


def encode_movement(edges: list[MovementEdge]) -> MovementPathsResponse:
    """Build the movement paths response body."""
    features = [
        MovementFeature(
            properties=MovementProperties(
                frequency=edge.frequency,
                unique_users=edge.unique_users,
                weight=edge.weight,
            ),
            geometry=LineStringGeometry(coordinates=[edge.origin, edge.destination]),
        )
        for edge in edges
    ]
    return MovementPathsResponse(
        geojson=MovementFeatureCollection(features=features),
        stats=movement_stats(edges),
    )
