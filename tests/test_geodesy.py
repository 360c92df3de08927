"""
Tests for sphere geometry.

Tests cover:
- lat/lon <-> scene vector conversion
- Destination point and haversine distance
- Ring and corridor builders
"""

import math

import pytest

from defense_api.geodesy import (
    EARTH_RADIUS_KM,
    angular_distance_rad,
    corridor_path,
    destination_point,
    great_circle_path,
    lat_lon_to_vector,
    length,
    normalize,
    normalize_longitude,
    vector_to_lat_lon,
)


# =============================================================================
# CONVERSIONS
# =============================================================================

class TestConversions:
    """Latitude is the elevation angle, y is the polar axis."""

    def test_axes(self):
        assert lat_lon_to_vector(0, 0) == pytest.approx((1.0, 0.0, 0.0))
        assert lat_lon_to_vector(90, 0) == pytest.approx((0.0, 1.0, 0.0), abs=1e-12)
        assert lat_lon_to_vector(0, 90) == pytest.approx((0.0, 0.0, 1.0), abs=1e-12)

    def test_radius_scales(self):
        assert length(lat_lon_to_vector(33.3, -71.0, 1.1)) == pytest.approx(1.1)

    @pytest.mark.parametrize("lat", [-89.5, -45.0, -10.25, 0.0, 12.34, 60.0, 89.5])
    @pytest.mark.parametrize("lon", [-179.5, -90.0, -30.0, 0.0, 45.5, 120.0, 180.0])
    def test_round_trip(self, lat, lon):
        lat2, lon2 = vector_to_lat_lon(lat_lon_to_vector(lat, lon))
        assert lat2 == pytest.approx(lat, abs=1e-6)
        assert normalize_longitude(lon2) == pytest.approx(normalize_longitude(lon), abs=1e-6)

    def test_zero_vector_has_no_lat_lon(self):
        with pytest.raises(ValueError):
            vector_to_lat_lon((0.0, 0.0, 0.0))

    def test_normalize_zero_stays_zero(self):
        assert normalize((0.0, 0.0, 0.0)) == (0.0, 0.0, 0.0)

    @pytest.mark.parametrize("lon,expected", [(-180.0, 180.0), (190.0, -170.0), (540.0, 180.0), (-30.0, -30.0)])
    def test_normalize_longitude(self, lon, expected):
        assert normalize_longitude(lon) == pytest.approx(expected)


# =============================================================================
# GEODESICS
# =============================================================================

class TestDestinationPoint:

    @pytest.mark.parametrize("bearing", [0.0, 90.0, 180.0, 271.0])
    def test_zero_distance_returns_start(self, bearing):
        lat, lon = destination_point(12.0, -40.0, bearing, 0.0)
        assert lat == pytest.approx(12.0)
        assert lon == pytest.approx(-40.0)

    def test_one_degree_north(self):
        lat, lon = destination_point(10.0, 20.0, 0.0, EARTH_RADIUS_KM * math.pi / 180.0)
        assert lat == pytest.approx(11.0)
        assert lon == pytest.approx(20.0)

    def test_east_along_equator(self):
        lat, lon = destination_point(0.0, 0.0, 90.0, EARTH_RADIUS_KM * math.pi / 2)
        assert lat == pytest.approx(0.0, abs=1e-9)
        assert lon == pytest.approx(90.0)

    def test_distance_preserved(self):
        lat, lon = destination_point(-33.0, 151.0, 123.0, 2500.0)
        assert angular_distance_rad(-33.0, 151.0, lat, lon) * EARTH_RADIUS_KM == pytest.approx(2500.0, rel=1e-9)

    def test_angular_distance_symmetric(self):
        assert angular_distance_rad(10, 20, -30, 170) == pytest.approx(angular_distance_rad(-30, 170, 10, 20))


# =============================================================================
# RINGS & CORRIDORS
# =============================================================================

class TestGreatCirclePath:

    def test_point_count_and_closure(self):
        ring = great_circle_path(10.0, -30.0, 500.0)
        assert len(ring) == 257
        assert ring[0] == pytest.approx(ring[-1], abs=1e-9)

    def test_points_on_unit_sphere_at_radius(self):
        ring = great_circle_path(-20.0, 100.0, 1234.0, segments=32)
        for v in ring:
            assert length(v) == pytest.approx(1.0)
            lat, lon = vector_to_lat_lon(v)
            d = angular_distance_rad(-20.0, 100.0, lat, lon) * EARTH_RADIUS_KM
            assert d == pytest.approx(1234.0, rel=1e-6)


class TestCorridorPath:

    def test_identical_points(self):
        assert corridor_path(10.0, 10.0, 10.0, 10.0) is None

    def test_antipodal_points(self):
        assert corridor_path(0.0, 0.0, 0.0, 180.0) is None

    def test_endpoints_and_unit_length(self):
        path = corridor_path(10.0, -30.0, 25.0, 40.0, segments=64)
        assert len(path) == 65
        assert path[0] == pytest.approx(lat_lon_to_vector(10.0, -30.0))
        assert path[-1] == pytest.approx(lat_lon_to_vector(25.0, 40.0))
        for v in path:
            assert length(v) == pytest.approx(1.0)
