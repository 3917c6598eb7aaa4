"""Location density and movement path API endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_db
from app.schemas.heatmap import DensityResponse, ErrorResponse, MovementPathsResponse
from app.security.admission import require_admission
from app.services.density import aggregate_density
from app.services.geojson import encode_density, encode_movement
from app.services.location_gateway import (
    TimeFilter,
    fetch_location_pings,
    filter_by_day_of_week,
    filter_by_hour_of_day,
)
from app.services.movement import DEFAULT_MIN_FREQUENCY, build_movement_graph

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/heatmap", tags=["heatmap"])

DENSITY_ENDPOINT = "location-density"
MOVEMENT_ENDPOINT = "movement-paths"

ERROR_RESPONSES = {
    429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
    500: {"model": ErrorResponse, "description": "Location store unavailable"},
}


def _now() -> datetime:
    return datetime.now(get_settings().tzinfo)


@router.options("/density", include_in_schema=False)
@router.options("/movement-paths", include_in_schema=False)
async def preflight() -> Response:
    """Answer CORS preflight requests with an empty body."""
    return Response(status_code=200)


@router.api_route(
    "/density",
    methods=["GET", "POST"],
    response_model=DensityResponse,
    responses=ERROR_RESPONSES,
    dependencies=[Depends(require_admission(DENSITY_ENDPOINT))],
)
async def get_location_density(
    time_filter: TimeFilter = Query(default=TimeFilter.ALL),
    hour_of_day: int | None = Query(default=None, ge=0, le=23),
    day_of_week: int | None = Query(default=None, ge=0, le=6, description="0 = Sunday"),
    db: AsyncSession = Depends(get_db),
) -> DensityResponse:
    """Aggregate all users' pings into a density grid for the heatmap layer."""
    logger.info(
        f"Fetching location density (time_filter={time_filter.value}, "
        f"hour_of_day={hour_of_day}, day_of_week={day_of_week})"
    )
    tz = get_settings().tzinfo
    pings = await fetch_location_pings(db, time_filter, _now())

    if hour_of_day is not None:
        pings = filter_by_hour_of_day(pings, hour_of_day, tz)
    if day_of_week is not None:
        pings = filter_by_day_of_week(pings, day_of_week, tz)

    result = encode_density(aggregate_density(pings))
    logger.info(
        f"Processed {result.stats.grid_cells} density grid cells, "
        f"max: {result.stats.max_density}, avg: {result.stats.avg_density:.2f}"
    )
    return result


@router.get(
    "/movement-paths",
    response_model=MovementPathsResponse,
    responses=ERROR_RESPONSES,
    dependencies=[Depends(require_admission(MOVEMENT_ENDPOINT))],
)
async def get_movement_paths(
    time_filter: TimeFilter = Query(default=TimeFilter.ALL),
    min_frequency: int = Query(default=DEFAULT_MIN_FREQUENCY),
    db: AsyncSession = Depends(get_db),
) -> MovementPathsResponse:
    """Aggregate consecutive pings into frequent directed cell-to-cell paths."""
    logger.info(
        f"Fetching movement paths (time_filter={time_filter.value}, "
        f"min_frequency={min_frequency})"
    )
    pings = await fetch_location_pings(db, time_filter, _now())

    result = encode_movement(build_movement_graph(pings, min_frequency=min_frequency))
    logger.info(f"Movement path statistics: {result.stats.model_dump()}")
    return result
