"""
Asteroid profile table.

The table is an immutable, versioned snapshot. `CatalogStore` swaps it as a
whole: a successful fetch replaces it, a failed fetch installs the built-in
fallback table and exposes a retry, and nothing ever mutates a published table.
"""
from __future__ import annotations
import logging
import threading
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from .errors import CatalogFetchError

log = logging.getLogger(__name__)

CUSTOM_KEY = "custom"


@dataclass(frozen=True)
class AsteroidProfile:
    name: str
    diameter_km: float
    density_kgm3: float
    velocity_kms: float
    is_hazardous: bool = False
    description: str = ""
    neo_id: Optional[str] = None


CUSTOM_PROFILE = AsteroidProfile("Custom Meteor", 0.3, 3000.0, 17.0, False, "User-defined parameters")

FALLBACK_PROFILES = {
    "apophis": AsteroidProfile("Apophis (99942)", 0.33, 2600.0, 12.6, True,
                               "Potentially hazardous asteroid, 2029 close approach"),
    "bennu": AsteroidProfile("Bennu (101955)", 0.5, 1200.0, 12.4, False,
                             "OSIRIS-REx target, carbonaceous asteroid"),
    "ryugu": AsteroidProfile("Ryugu (162173)", 0.9, 1200.0, 11.8, False,
                             "Hayabusa2 target, diamond-shaped asteroid"),
    "itokawa": AsteroidProfile("Itokawa (25143)", 0.3, 1900.0, 13.2, False,
                               "Hayabusa target, rubble pile asteroid"),
    "eros": AsteroidProfile("Eros (433)", 16.8, 2700.0, 5.3, False,
                            "First asteroid orbited by spacecraft"),
    "ceres": AsteroidProfile("Ceres (1)", 950.0, 2100.0, 17.9, False,
                             "Largest asteroid, dwarf planet"),
    "vesta": AsteroidProfile("Vesta (4)", 525.0, 3400.0, 19.3, False,
                             "Second largest asteroid, metallic"),
    "chicxulub": AsteroidProfile("Chicxulub Impactor", 10.0, 3000.0, 20.0, False,
                                 "Dinosaur extinction event (estimated)"),
    "tunguska": AsteroidProfile("Tunguska Event", 0.05, 2000.0, 15.0, False,
                                "1908 Siberian airburst (estimated)"),
    "didymos": AsteroidProfile("Didymos (65803)", 0.78, 2170.0, 6.1, True,
                               "DART kinetic impactor test target (binary system)"),
}

# --- NEO field defaults & clamps ---
DEFAULT_DIAMETER_KM = 0.1
MIN_DIAMETER_KM = 0.001
DEFAULT_DENSITY = 3000.0       # stony
DENSITY_RANGE = (1000.0, 8000.0)
DEFAULT_VELOCITY_KMS = 17.0
VELOCITY_RANGE = (5.0, 50.0)


# -----------------------------
# NEO payload -> profiles
# -----------------------------

def _density_from_orbit_class(orbit_class: Any) -> tuple[float, str]:
    if isinstance(orbit_class, str):
        text = orbit_class
    elif isinstance(orbit_class, dict):
        text = orbit_class.get("orbit_class_type") or orbit_class.get("orbit_class_description") or ""
    else:
        text = ""
    lowered = text.lower()
    if "metal" in lowered or "m-type" in lowered:
        density = 5000.0
    elif "carbon" in lowered or "c-type" in lowered:
        density = 2000.0
    elif "comet" in lowered:
        density = 1000.0
    else:
        density = DEFAULT_DENSITY
    return density, text


def profile_from_neo(obj: Mapping[str, Any], index: int) -> AsteroidProfile:
    name = obj.get("name") or f"Asteroid {index + 1}"

    diameter = DEFAULT_DIAMETER_KM
    km = (obj.get("estimated_diameter") or {}).get("kilometers")
    if km:
        try:
            diameter = (float(km["estimated_diameter_min"]) + float(km["estimated_diameter_max"])) / 2.0
        except (KeyError, TypeError, ValueError):
            log.warning(f"[catalog.parse] {name}: unreadable diameter {km!r}")

    density, orbit_class = DEFAULT_DENSITY, ""
    orbital = obj.get("orbital_data") or {}
    if orbital.get("orbit_class"):
        density, orbit_class = _density_from_orbit_class(orbital["orbit_class"])

    velocity = DEFAULT_VELOCITY_KMS
    approaches = obj.get("close_approach_data") or []
    if approaches:
        rel = approaches[0].get("relative_velocity") or {}
        try:
            velocity = float(rel["kilometers_per_second"])
        except (KeyError, TypeError, ValueError):
            pass

    hazardous = bool(obj.get("is_potentially_hazardous_asteroid", False))
    description = f"NASA NEO ID: {obj.get('id')}"
    if orbit_class:
        description += f", Class: {orbit_class}"
    if hazardous:
        description += ", Potentially Hazardous"

    return AsteroidProfile(
        name=name,
        diameter_km=max(MIN_DIAMETER_KM, diameter),
        density_kgm3=max(DENSITY_RANGE[0], min(DENSITY_RANGE[1], density)),
        velocity_kms=max(VELOCITY_RANGE[0], min(VELOCITY_RANGE[1], velocity)),
        is_hazardous=hazardous,
        description=description,
        neo_id=None if obj.get("id") is None else str(obj.get("id")),
    )


def profiles_from_neo(objects: list[Mapping[str, Any]], limit: int = 10) -> dict[str, AsteroidProfile]:
    """First `limit` near-Earth objects keyed 'asteroid-<i>'."""
    return {f"asteroid-{i}": profile_from_neo(obj, i) for i, obj in enumerate(objects[:limit])}


# -----------------------------
# Versioned table + store
# -----------------------------

@dataclass(frozen=True)
class CatalogTable:
    version: int
    profiles: Mapping[str, AsteroidProfile]
    source: str                      # "default" | "nasa" | "fallback"
    error: Optional[str] = None

    def get(self, key: str) -> Optional[AsteroidProfile]:
        return self.profiles.get(key)

    def selectable_keys(self) -> list[str]:
        return [k for k in self.profiles if k != CUSTOM_KEY]


def _table(version: int, custom: AsteroidProfile, others: Mapping[str, AsteroidProfile],
           source: str, error: Optional[str] = None) -> CatalogTable:
    profiles = {CUSTOM_KEY: custom, **{k: v for k, v in others.items() if k != CUSTOM_KEY}}
    return CatalogTable(version, MappingProxyType(profiles), source, error)


Fetcher = Callable[[], dict[str, AsteroidProfile]]


class CatalogStore:
    """Owns the current CatalogTable; readers hold whatever snapshot they were handed."""

    def __init__(self, table: Optional[CatalogTable] = None):
        self._table = table or _table(0, CUSTOM_PROFILE, {}, "default")
        self._swap_lock = threading.Lock()
        self._fetch_lock = threading.Lock()
        self.retry_available = False

    @property
    def table(self) -> CatalogTable:
        return self._table

    @property
    def loading(self) -> bool:
        return self._fetch_lock.locked()

    def _swap(self, build: Callable[[CatalogTable], CatalogTable]) -> CatalogTable:
        with self._swap_lock:
            self._table = build(self._table)
            return self._table

    def claim(self) -> bool:
        """Reserve the fetch slot ahead of time; the holder must call refresh(..., claimed=True)."""
        return self._fetch_lock.acquire(blocking=False)

    def refresh(self, fetch: Fetcher, claimed: bool = False) -> bool:
        """Run one fetch. Returns False (and does nothing) if a fetch is already in flight."""
        if not claimed and not self._fetch_lock.acquire(blocking=False):
            log.info("[catalog.refresh] fetch already in flight; ignoring request")
            return False
        try:
            try:
                fetched = fetch()
            except CatalogFetchError as e:
                log.error(f"[catalog.refresh] fetch failed: {e}; installing fallback table")
                self.retry_available = True
                self._swap(lambda cur: _table(cur.version + 1, cur.profiles[CUSTOM_KEY],
                                              FALLBACK_PROFILES, "fallback", str(e)))
                return True
            self.retry_available = False
            t = self._swap(lambda cur: _table(cur.version + 1, cur.profiles[CUSTOM_KEY], fetched, "nasa"))
            log.info(f"[catalog.refresh] loaded {len(fetched)} asteroids (version={t.version})")
            return True
        finally:
            self._fetch_lock.release()

    def update_custom(self, **changes: Any) -> CatalogTable:
        def build(cur: CatalogTable) -> CatalogTable:
            custom = replace(cur.profiles[CUSTOM_KEY], **changes)
            return _table(cur.version + 1, custom, cur.profiles, cur.source, cur.error)
        return self._swap(build)
