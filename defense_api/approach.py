from __future__ import annotations
import math
from dataclasses import dataclass

from .deflection import DeflectionResult
from .geodesy import LatLon, Vec3, lat_lon_to_vector, normalize, scale
from .impact_model import ImpactParameters

START_RADIUS = 8.0          # Earth radii
MISS_END_RADIUS = 1.25      # passes outside the surface
HIT_END_RADIUS = 1.02       # grazes the surface
RADIAL_CURVE = 1.4
SEGMENTS = 256
PROGRESS_STEP = 0.0025      # advance of t per animation frame


@dataclass(frozen=True)
class ApproachPath:
    points: tuple[Vec3, ...]
    target: LatLon
    should_miss: bool

    @property
    def start(self) -> Vec3:
        return self.points[0]

    @property
    def end(self) -> Vec3:
        return self.points[-1]

    @property
    def terminal_radius(self) -> float:
        return MISS_END_RADIUS if self.should_miss else HIT_END_RADIUS

    def point_at(self, t: float) -> Vec3:
        n = len(self.points)
        idx = min(n - 1, math.floor(max(0.0, t) * (n - 1)))
        return self.points[idx]


def approach_target(params: ImpactParameters, deflection: DeflectionResult) -> LatLon:
    # shift includes sin(angle), so the path ends on the deflected marker and corridor
    if deflection.deflected_point is not None:
        return deflection.deflected_point
    return params.latitude, params.longitude


def build_approach_path(params: ImpactParameters, deflection: DeflectionResult,
                        should_miss: bool, segments: int = SEGMENTS) -> ApproachPath:
    """Radial fall-in from START_RADIUS; stays far out for most of the path, closes in late.

    Hit vs miss is decided by the caller before construction, not by the deflection physics.
    """
    target = approach_target(params, deflection)
    direction = normalize(lat_lon_to_vector(target[0], target[1]))
    end_radius = MISS_END_RADIUS if should_miss else HIT_END_RADIUS
    points = []
    for i in range(segments + 1):
        f = i / segments
        r = START_RADIUS + (end_radius - START_RADIUS) * f ** RADIAL_CURVE
        points.append(scale(direction, r))
    return ApproachPath(points=tuple(points), target=target, should_miss=should_miss)
