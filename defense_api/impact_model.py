from __future__ import annotations
from dataclasses import dataclass, fields, replace
from math import pi, sin, radians, isfinite

from .terrain import DEFAULT_CLASSIFIER, LandSeaClassifier, Terrain

# -----------------------------
# Physical constants & defaults
# -----------------------------
J_PER_MT_TNT = 4.184e15          # J in 1 megaton TNT
SECONDS_PER_DAY = 86_400.0
MIN_POSITIVE = 1e-9              # floor for diameter/density/velocity inside the estimator

CRATER_COEFF_KM = 1.8            # D_km ≈ 1.8 * E_Mt^(1/3.4), stony impactor ~45°
CRATER_EXPONENT = 1.0 / 3.4
DEPTH_TO_DIAMETER = 0.2          # simple craters: ~1/5 of diameter
MIN_CRATER_DEPTH_KM = 0.1

DAMAGE_RADIUS_FACTOR = 15.0

# Control ranges: (min, max) per ImpactParameters field
PARAM_RANGES = {
    "diameter_km":      (0.001, 100.0),
    "density_kgm3":     (100.0, 20_000.0),
    "velocity_kms":     (1.0, 100.0),
    "impact_angle_deg": (1.0, 89.0),
    "latitude":         (-90.0, 90.0),
    "longitude":        (-180.0, 180.0),
    "delta_v_ms":       (0.0, 10_000.0),
    "lead_time_days":   (0.0, 10_000.0),
    "bearing_deg":      (0.0, 359.0),
}


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


# -----------------------------
# Physical estimator
# -----------------------------

def mass_kg(diameter_km: float, density_kgm3: float) -> float:
    radius_m = max(diameter_km, MIN_POSITIVE) * 1000.0 / 2.0
    volume = (4.0 / 3.0) * pi * radius_m**3
    return volume * max(density_kgm3, MIN_POSITIVE)


def kinetic_energy_J(mass: float, velocity_kms: float) -> float:
    v = max(velocity_kms, MIN_POSITIVE) * 1000.0
    return 0.5 * max(mass, 0.0) * v * v


def joules_to_megatons(energy_J: float) -> float:
    return energy_J / J_PER_MT_TNT


def crater_diameter_km(energy_J: float) -> float:
    mt = joules_to_megatons(energy_J)
    if not isfinite(mt) or mt <= 0.0:
        return 0.0
    return CRATER_COEFF_KM * mt ** CRATER_EXPONENT


def crater_depth_km(diameter_km: float, impact_angle_deg: float) -> float:
    """Shallow angles give shallower craters; floored at 0.1 km."""
    base_depth = diameter_km * DEPTH_TO_DIAMETER
    return max(MIN_CRATER_DEPTH_KM, base_depth * sin(radians(impact_angle_deg)))


def damage_radius_km(crater_km: float) -> float:
    constrained = clamp(crater_km, 0.1, 1000.0)
    return clamp(constrained * DAMAGE_RADIUS_FACTOR, 1.0, 5000.0)


def deflected_ring_radius_km(crater_km: float) -> float:
    return max(5.0, crater_km * DAMAGE_RADIUS_FACTOR)


def asteroid_marker_scale(diameter_km: float) -> float:
    return clamp(diameter_km / 10.0, 0.01, 0.1)


# -----------------------------
# Parameters & results
# -----------------------------

@dataclass(frozen=True)
class ImpactParameters:
    diameter_km: float = 0.3
    density_kgm3: float = 3000.0
    velocity_kms: float = 17.0
    impact_angle_deg: float = 45.0
    latitude: float = 10.0
    longitude: float = -30.0
    delta_v_ms: float = 0.0
    lead_time_days: float = 365.0
    bearing_deg: float = 0.0

    @property
    def impact_angle_rad(self) -> float:
        return radians(self.impact_angle_deg)

    @property
    def lead_time_s(self) -> float:
        return max(0.0, self.lead_time_days) * SECONDS_PER_DAY

    def clamped(self) -> "ImpactParameters":
        """Copy with every field pulled into its control range; non-finite values reset to defaults."""
        values = {}
        for f in fields(self):
            v = float(getattr(self, f.name))
            if not isfinite(v):
                v = float(f.default)
            lo, hi = PARAM_RANGES[f.name]
            values[f.name] = clamp(v, lo, hi)
        if values["longitude"] == -180.0:
            values["longitude"] = 180.0
        return replace(self, **values)


@dataclass(frozen=True)
class ImpactResult:
    mass_kg: float
    energy_J: float
    energy_mt: float
    crater_diameter_km: float
    crater_depth_km: float
    terrain: Terrain

    @property
    def wave_type(self) -> str:
        return "seismic" if self.terrain is Terrain.LAND else "tsunami"

    @property
    def damage_radius_km(self) -> float:
        return damage_radius_km(self.crater_diameter_km)


def assess_impact(params: ImpactParameters,
                  classifier: LandSeaClassifier = DEFAULT_CLASSIFIER) -> ImpactResult:
    m = mass_kg(params.diameter_km, params.density_kgm3)
    E = kinetic_energy_J(m, params.velocity_kms)
    D = crater_diameter_km(E)
    return ImpactResult(
        mass_kg=m,
        energy_J=E,
        energy_mt=joules_to_megatons(E),
        crater_diameter_km=D,
        crater_depth_km=crater_depth_km(D, params.impact_angle_deg),
        terrain=classifier.classify(params.latitude, params.longitude),
    )
