"""GeoJSON and statistics schemas for the heatmap endpoints."""

from typing import Literal

from pydantic import BaseModel, Field


class PointGeometry(BaseModel):
    """GeoJSON Point in [lng, lat] order."""

    type: Literal["Point"] = "Point"
    coordinates: tuple[float, float]


class LineStringGeometry(BaseModel):
    """GeoJSON two-point LineString in [lng, lat] order."""

    type: Literal["LineString"] = "LineString"
    coordinates: list[tuple[float, float]]


class DensityProperties(BaseModel):
    density: int
    intensity: float


class MovementProperties(BaseModel):
    frequency: int
    unique_users: int
    weight: float


class DensityFeature(BaseModel):
    type: Literal["Feature"] = "Feature"
    properties: DensityProperties
    geometry: PointGeometry


class MovementFeature(BaseModel):
    type: Literal["Feature"] = "Feature"
    properties: MovementProperties
    geometry: LineStringGeometry


class DensityFeatureCollection(BaseModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[DensityFeature] = Field(default_factory=list)


class MovementFeatureCollection(BaseModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[MovementFeature] = Field(default_factory=list)


class DensityStats(BaseModel):
    """Summary statistics for a density grid."""

    total_points: int = 0
    grid_cells: int = 0
    max_density: int = 0
    avg_density: float = 0.0


class MovementStats(BaseModel):
    """Summary statistics for a movement graph."""

    total_paths: int = 0
    total_movements: int = 0
    unique_users: int = 0
    max_frequency: int = 0
    avg_frequency: float = 0.0


class DensityResponse(BaseModel):
    """Response schema for the density endpoint."""

    success: bool = True
    geojson: DensityFeatureCollection
    stats: DensityStats


class MovementPathsResponse(BaseModel):
    """Response schema for the movement paths endpoint."""

    geojson: MovementFeatureCollection
    stats: MovementStats


class ErrorResponse(BaseModel):
    """Error body returned for 429 and 500 responses."""

    error: str
