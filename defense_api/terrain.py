from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol


class Terrain(str, Enum):
    LAND = "land"
    OCEAN = "ocean"


class LandSeaClassifier(Protocol):
    def classify(self, lat: float, lon: float) -> Terrain: ...


@dataclass(frozen=True)
class BoundingBox:
    name: str
    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float

    def contains(self, lat: float, lon: float) -> bool:
        return (self.lat_min <= lat <= self.lat_max
                and self.lon_min <= lon <= self.lon_max)


# Coarse landmass boxes; a stand-in until a coastline dataset is plugged in.
LANDMASSES = (
    BoundingBox("north_america", 15, 70, -170, -50),
    BoundingBox("south_america", -55, 15, -85, -30),
    BoundingBox("eurasia", 35, 75, -25, 180),
    BoundingBox("africa", -35, 35, -20, 55),
    BoundingBox("australia", -45, -10, 110, 155),
    BoundingBox("antarctica", -90, -60, -180, 180),
)


class BoundingBoxClassifier:
    """Land if the point falls inside any of the boxes (bounds inclusive)."""

    def __init__(self, boxes: tuple[BoundingBox, ...] = LANDMASSES):
        self.boxes = boxes

    def classify(self, lat: float, lon: float) -> Terrain:
        if any(b.contains(lat, lon) for b in self.boxes):
            return Terrain.LAND
        return Terrain.OCEAN


DEFAULT_CLASSIFIER = BoundingBoxClassifier()


def is_land(lat: float, lon: float, classifier: LandSeaClassifier = DEFAULT_CLASSIFIER) -> bool:
    return classifier.classify(lat, lon) is Terrain.LAND


def tsunami_concern(elevation_m: Optional[float]) -> str:
    """Coastal proxy from point elevation: 'unknown' | 'high' | 'moderate' | 'low'."""
    if elevation_m is None:
        return "unknown"
    if elevation_m < 10.0:
        return "high"
    if elevation_m < 50.0:
        return "moderate"
    return "low"
