from __future__ import annotations
import math
from typing import Optional

# -----------------------------
# Sphere model
# -----------------------------
EARTH_RADIUS_KM = 6371.0

Vec3 = tuple[float, float, float]
LatLon = tuple[float, float]


# --- small vector helpers (scene space is Earth-radius units, y is the polar axis) ---

def dot(a: Vec3, b: Vec3) -> float:
    return a[0]*b[0] + a[1]*b[1] + a[2]*b[2]


def scale(v: Vec3, k: float) -> Vec3:
    return (v[0]*k, v[1]*k, v[2]*k)


def length(v: Vec3) -> float:
    return math.sqrt(dot(v, v))


def normalize(v: Vec3) -> Vec3:
    """Unit vector along v; the zero vector stays zero."""
    n = length(v)
    if n == 0.0:
        return (0.0, 0.0, 0.0)
    return (v[0]/n, v[1]/n, v[2]/n)


def normalize_longitude(lon_deg: float) -> float:
    """Wrap to (-180, 180]."""
    lon = (lon_deg + 180.0) % 360.0 - 180.0
    return 180.0 if lon == -180.0 else lon


# --- conversions ---

def lat_lon_to_vector(lat_deg: float, lon_deg: float, radius: float = 1.0) -> Vec3:
    """Latitude is the elevation angle: y = r·sin(lat)."""
    φ = math.radians(lat_deg)
    λ = math.radians(lon_deg)
    return (radius * math.cos(φ) * math.cos(λ),
            radius * math.sin(φ),
            radius * math.cos(φ) * math.sin(λ))


def vector_to_lat_lon(v: Vec3) -> LatLon:
    r = length(v)
    if r == 0.0:
        raise ValueError("Cannot recover lat/lon from the zero vector.")
    lat = math.degrees(math.asin(max(-1.0, min(1.0, v[1] / r))))
    lon = math.degrees(math.atan2(v[2], v[0]))
    return lat, lon


# --- geodesics ---

def angular_distance_rad(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Central angle between two points (haversine)."""
    φ1, λ1 = math.radians(lat1), math.radians(lon1)
    φ2, λ2 = math.radians(lat2), math.radians(lon2)
    h = math.sin((φ2 - φ1)/2)**2 + math.cos(φ1)*math.cos(φ2)*math.sin((λ2 - λ1)/2)**2
    return 2.0 * math.asin(math.sqrt(min(1.0, h)))


def destination_point(lat_deg: float, lon_deg: float, bearing_deg: float, distance_km: float) -> LatLon:
    """Point reached from (lat,lon) going 'distance_km' along 'bearing_deg' on a 6371 km sphere.

    Longitude is returned unwrapped (lon1 + Δλ), which is what the ring/corridor
    builders expect; wrap with normalize_longitude for display.
    """
    δ = distance_km / EARTH_RADIUS_KM
    θ = math.radians(bearing_deg)
    φ1 = math.radians(lat_deg)
    λ1 = math.radians(lon_deg)

    sinφ2 = math.sin(φ1)*math.cos(δ) + math.cos(φ1)*math.sin(δ)*math.cos(θ)
    φ2 = math.asin(max(-1.0, min(1.0, sinφ2)))
    y = math.sin(θ)*math.sin(δ)*math.cos(φ1)
    x = math.cos(δ) - math.sin(φ1)*math.sin(φ2)
    λ2 = λ1 + math.atan2(y, x)
    return math.degrees(φ2), math.degrees(λ2)


def great_circle_path(lat_deg: float, lon_deg: float, radius_km: float, segments: int = 256) -> list[Vec3]:
    """Closed ring (segments + 1 unit vectors) at angular radius radius_km around a point."""
    ring = []
    for i in range(segments + 1):
        brg = 360.0 * (i / segments)
        lat2, lon2 = destination_point(lat_deg, lon_deg, brg, radius_km)
        ring.append(lat_lon_to_vector(lat2, lon2))
    return ring


def corridor_path(lat1: float, lon1: float, lat2: float, lon2: float,
                  segments: int = 256) -> Optional[list[Vec3]]:
    """Slerp along the great-circle arc; None when both points coincide."""
    Δ = angular_distance_rad(lat1, lon1, lat2, lon2)
    if Δ == 0.0:
        return None
    a = lat_lon_to_vector(lat1, lon1)
    b = lat_lon_to_vector(lat2, lon2)
    sinΔ = math.sin(Δ)
    if abs(sinΔ) < 1e-12:
        # antipodal: the arc is not unique
        return None
    verts = []
    for i in range(segments + 1):
        f = i / segments
        A = math.sin((1 - f) * Δ) / sinΔ
        B = math.sin(f * Δ) / sinΔ
        verts.append((A*a[0] + B*b[0], A*a[1] + B*b[1], A*a[2] + B*b[2]))
    return verts
