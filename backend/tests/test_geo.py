"""Tests for distance and grid snapping helpers."""

import math

import pytest

from app.geo import (
    distance_meters,
    is_valid_coordinate,
    snap_floor,
    snap_round,
    to_coordinate,
)


class TestDistanceMeters:
    """Tests for haversine distance."""

    def test_same_point_is_zero(self):
        """Distance from a point to itself should be zero."""
        assert distance_meters(40.7128, -74.0060, 40.7128, -74.0060) == 0

    def test_one_degree_latitude(self):
        """One degree of latitude is about 111.2 km on a 6371 km sphere."""
        distance = distance_meters(0.0, 0.0, 1.0, 0.0)
        assert distance == pytest.approx(111_194.9, rel=1e-4)

    def test_known_city_pair(self):
        """NYC to LA should be roughly 3,936 km."""
        distance = distance_meters(40.7128, -74.0060, 34.0522, -118.2437)
        assert 3_900_000 < distance < 3_970_000

    def test_symmetric(self):
        """Distance should not depend on argument order."""
        a = distance_meters(51.5, -0.12, 48.85, 2.35)
        b = distance_meters(48.85, 2.35, 51.5, -0.12)
        assert a == pytest.approx(b)

    def test_nan_input_returns_nan(self):
        """NaN in any coordinate should propagate to the result."""
        assert math.isnan(distance_meters(math.nan, 0.0, 1.0, 1.0))
        assert math.isnan(distance_meters(0.0, 0.0, 1.0, math.nan))


class TestSnapping:
    """Tests for grid snap functions."""

    def test_snap_floor_moves_to_cell_origin(self):
        """snap_floor should return the south-west corner of the cell."""
        assert snap_floor(40.7005, -73.9985, 0.003) == (40.698, -74.001)

    def test_snap_round_moves_to_nearest_point(self):
        """snap_round should round to the nearest grid point."""
        assert snap_round(40.71249, -74.00051, 0.001) == (40.712, -74.001)

    def test_snap_round_half_rounds_up(self):
        """Exact halves round toward positive infinity."""
        assert snap_round(0.0005, -0.0005, 0.001) == (0.001, 0.0)

    def test_floor_and_round_differ(self):
        """The two snap functions are intentionally different."""
        assert snap_floor(40.7129, -74.0061, 0.001) != snap_round(40.7129, -74.0061, 0.001)

    @pytest.mark.parametrize(
        "lat,lng",
        [(40.7128, -74.0060), (-33.8688, 151.2093), (0.0, 0.0), (89.9991, -179.9999)],
    )
    def test_snap_floor_idempotent(self, lat, lng):
        """Snapping an already-snapped coordinate should be a no-op."""
        once = snap_floor(lat, lng, 0.003)
        assert snap_floor(*once, 0.003) == once

    @pytest.mark.parametrize(
        "lat,lng",
        [(40.7128, -74.0060), (-33.8688, 151.2093), (0.0, 0.0), (89.9991, -179.9999)],
    )
    def test_snap_round_idempotent(self, lat, lng):
        """Snapping an already-snapped coordinate should be a no-op."""
        once = snap_round(lat, lng, 0.001)
        assert snap_round(*once, 0.001) == once


class TestCoordinateCoercion:
    """Tests for coordinate validation."""

    def test_numeric_string_is_parsed(self):
        """Numeric strings from the store should become floats."""
        assert to_coordinate("40.5") == 40.5

    def test_garbage_becomes_nan(self):
        """Non-numeric values should become NaN rather than raise."""
        assert math.isnan(to_coordinate("north"))
        assert math.isnan(to_coordinate(None))
        assert math.isnan(to_coordinate(object()))

    def test_is_valid_coordinate(self):
        """Only finite pairs are valid."""
        assert is_valid_coordinate(1.0, 2.0)
        assert not is_valid_coordinate(math.nan, 2.0)
        assert not is_valid_coordinate(1.0, math.inf)
