from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from .deflection import DeflectionResult
from .geodesy import EARTH_RADIUS_KM, Vec3, corridor_path, great_circle_path, lat_lon_to_vector
from .impact_model import (ImpactParameters, ImpactResult, asteroid_marker_scale,
                           deflected_ring_radius_km)
from .terrain import DEFAULT_CLASSIFIER, LandSeaClassifier
from .waves import WaveDirection, wave_directions

MARKER_RADIUS = 1.003
CRATER_RADIUS = 1.01
SIZE_MARKER_RADIUS = 1.1
MIN_CRATER_KM = 0.01
SHOCK_RING_KM = 50.0
RING_SEGMENTS = 256


@dataclass(frozen=True)
class CraterMesh:
    """Truncated cone in Earth-radius units, centred at position."""
    top_radius: float
    bottom_radius: float
    depth: float
    position: Vec3


@dataclass(frozen=True)
class RenderDirectives:
    impact_marker: Vec3
    damage_ring: list[Vec3]
    asteroid_marker_scale: float
    asteroid_marker: Vec3
    waves: list[WaveDirection] = field(default_factory=list)
    crater: Optional[CraterMesh] = None
    deflected_marker: Optional[Vec3] = None
    deflected_ring: Optional[list[Vec3]] = None
    corridor: Optional[list[Vec3]] = None


def crater_mesh(crater_km: float, depth_km: float, lat: float, lon: float) -> Optional[CraterMesh]:
    if crater_km <= MIN_CRATER_KM:
        return None
    top = max(0.01, (crater_km / 2.0) / EARTH_RADIUS_KM)
    return CraterMesh(
        top_radius=top,
        bottom_radius=top * 0.3,
        depth=max(0.005, depth_km / EARTH_RADIUS_KM),
        position=lat_lon_to_vector(lat, lon, CRATER_RADIUS),
    )


def shock_ring(lat: float, lon: float) -> list[Vec3]:
    return great_circle_path(lat, lon, SHOCK_RING_KM, RING_SEGMENTS)


def build_directives(params: ImpactParameters, impact: ImpactResult, deflection: DeflectionResult,
                     show_waves: bool = True,
                     classifier: LandSeaClassifier = DEFAULT_CLASSIFIER) -> RenderDirectives:
    lat, lon = params.latitude, params.longitude
    waves = wave_directions(lat, lon, params.impact_angle_deg, classifier=classifier) if show_waves else []

    deflected_marker = deflected_ring = corridor = None
    if deflection.deflected_point is not None:
        dlat, dlon = deflection.deflected_point
        deflected_marker = lat_lon_to_vector(dlat, dlon, MARKER_RADIUS)
        deflected_ring = great_circle_path(dlat, dlon, deflected_ring_radius_km(impact.crater_diameter_km),
                                           RING_SEGMENTS)
        corridor = corridor_path(lat, lon, dlat, dlon, RING_SEGMENTS)

    return RenderDirectives(
        impact_marker=lat_lon_to_vector(lat, lon, MARKER_RADIUS),
        damage_ring=great_circle_path(lat, lon, impact.damage_radius_km, RING_SEGMENTS),
        asteroid_marker_scale=asteroid_marker_scale(params.diameter_km),
        asteroid_marker=lat_lon_to_vector(lat, lon, SIZE_MARKER_RADIUS),
        waves=waves,
        crater=crater_mesh(impact.crater_diameter_km, impact.crater_depth_km, lat, lon),
        deflected_marker=deflected_marker,
        deflected_ring=deflected_ring,
        corridor=corridor,
    )
