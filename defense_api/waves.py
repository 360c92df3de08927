"""
Directional shock-wave / tsunami descriptors around an impact point.

Each of a fixed number of directions is walked outward over the land/sea
classifier; crossings between land and sea stretch the wave and mark the
direction as complex terrain. The output is fully deterministic.
"""
from __future__ import annotations
import math
from dataclasses import dataclass
from enum import Enum

from .geodesy import (Vec3, destination_point, dot, lat_lon_to_vector, normalize,
                      normalize_longitude, scale)
from .terrain import DEFAULT_CLASSIFIER, LandSeaClassifier, Terrain

WAVE_COUNT = 16
WAVE_BASE_LENGTH = 0.08        # Earth-radius units (~500 km)
WALK_STEPS = 8
SURFACE_RADIUS = 1.003

LAND_LENGTH, LAND_INTENSITY = 0.8, 1.2
OCEAN_LENGTH, OCEAN_INTENSITY = 1.2, 0.9
TRANSITION_STRETCH = 0.1
REFRACTION_INTO_LAND = 0.1
REFRACTION_INTO_SEA = -0.05


class WaveCategory(Enum):
    LAND = ("land", 0xff4400)
    OCEAN = ("ocean", 0xff0000)
    COMPLEX_TERRAIN = ("complex_terrain", 0xff2200)

    def __init__(self, label: str, color: int):
        self.label = label
        self.color = color


@dataclass(frozen=True)
class GeographicEffects:
    transitions: int
    refraction: float
    impact_on_land: bool
    ends_on_land: bool


@dataclass(frozen=True)
class WaveDirection:
    direction: Vec3
    length: float
    intensity: float
    category: WaveCategory
    effects: GeographicEffects

    @property
    def color(self) -> int:
        return self.category.color


def walk_wave(lat: float, lon: float, direction: Vec3, distance_km: float, impact_on_land: bool,
              classifier: LandSeaClassifier = DEFAULT_CLASSIFIER) -> GeographicEffects:
    """Step outward along the direction's azimuth, counting land/sea crossings."""
    step = distance_km / WALK_STEPS
    bearing = math.degrees(math.atan2(direction[2], direction[0]))
    cur_lat, cur_lon = lat, lon
    transitions = 0
    refraction = 0.0
    for _ in range(WALK_STEPS):
        nxt_lat, nxt_lon = destination_point(cur_lat, cur_lon, bearing, step)
        nxt_lon = normalize_longitude(nxt_lon)
        was_land = classifier.classify(cur_lat, cur_lon) is Terrain.LAND
        now_land = classifier.classify(nxt_lat, nxt_lon) is Terrain.LAND
        if was_land != now_land:
            transitions += 1
            refraction += REFRACTION_INTO_LAND if now_land else REFRACTION_INTO_SEA
        cur_lat, cur_lon = nxt_lat, nxt_lon
    return GeographicEffects(
        transitions=transitions,
        refraction=refraction,
        impact_on_land=impact_on_land,
        ends_on_land=classifier.classify(cur_lat, cur_lon) is Terrain.LAND,
    )


def wave_directions(lat: float, lon: float, impact_angle_deg: float,
                    wave_count: int = WAVE_COUNT, base_length: float = WAVE_BASE_LENGTH,
                    classifier: LandSeaClassifier = DEFAULT_CLASSIFIER) -> list[WaveDirection]:
    impact_on_land = classifier.classify(lat, lon) is Terrain.LAND
    normal = normalize(lat_lon_to_vector(lat, lon, SURFACE_RADIUS))
    angle_rad = math.radians(impact_angle_deg)
    angle_influence = math.sin(angle_rad) * 0.3 + 0.7

    out = []
    for i in range(wave_count):
        a = (i / wave_count) * 2.0 * math.pi
        radial = (math.cos(a), 0.0, math.sin(a))
        along_normal = scale(normal, dot(radial, normal))
        direction = normalize((radial[0] - along_normal[0],
                               radial[1] - along_normal[1],
                               radial[2] - along_normal[2]))

        # the walk takes the raw wave length as its distance in km
        effects = walk_wave(lat, lon, direction, base_length, impact_on_land, classifier)

        if impact_on_land:
            length, intensity, category = base_length * LAND_LENGTH, LAND_INTENSITY, WaveCategory.LAND
        else:
            length, intensity, category = base_length * OCEAN_LENGTH, OCEAN_INTENSITY, WaveCategory.OCEAN

        if effects.transitions > 0:
            length *= 1.0 + effects.transitions * TRANSITION_STRETCH
            category = WaveCategory.COMPLEX_TERRAIN

        length *= angle_influence
        length *= math.cos(a - angle_rad) * 0.4 + 0.6

        out.append(WaveDirection(direction=direction, length=length, intensity=intensity,
                                 category=category, effects=effects))
    return out
