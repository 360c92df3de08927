from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from math import sin
from typing import Optional

from .geodesy import LatLon, destination_point
from .impact_model import PARAM_RANGES, ImpactParameters

REQUIRED_MISS_KM = 1000.0
# required Δv above the control ceiling comes from the 1° angle floor, not physics
LARGE_DELTA_V_MS = PARAM_RANGES["delta_v_ms"][1]


class DeflectionOutcome(Enum):
    # ordered tiers: (rank, label)
    IMPACT_LIKELY = (0, "Impact Likely")
    PARTIAL_DEFLECTION = (1, "Partial Deflection")
    LIKELY_MISS = (2, "Likely Miss")
    SUCCESSFUL_DEFLECTION = (3, "MISS - Deflection Successful")

    def __init__(self, rank: int, label: str):
        self.rank = rank
        self.label = label

    def __lt__(self, other: "DeflectionOutcome") -> bool:
        if not isinstance(other, DeflectionOutcome):
            return NotImplemented
        return self.rank < other.rank

    @classmethod
    def from_probability(cls, p: float) -> "DeflectionOutcome":
        if p >= 1.0:
            return cls.SUCCESSFUL_DEFLECTION
        if p >= 0.7:
            return cls.LIKELY_MISS
        if p >= 0.3:
            return cls.PARTIAL_DEFLECTION
        return cls.IMPACT_LIKELY


@dataclass(frozen=True)
class DeflectionResult:
    shift_km: float
    miss_probability: float
    outcome: DeflectionOutcome
    required_delta_v_ms: Optional[float]      # None: undefined at zero lead time
    required_delta_v_flagged: bool
    deflected_point: Optional[LatLon]


def shift_km(delta_v_ms: float, lead_time_s: float, impact_angle_rad: float) -> float:
    return delta_v_ms * lead_time_s * sin(impact_angle_rad) / 1000.0


def miss_probability(shift: float, required_miss_km: float = REQUIRED_MISS_KM) -> float:
    return max(0.0, min(1.0, shift / required_miss_km))


def required_delta_v_ms(lead_time_s: float, impact_angle_rad: float,
                        required_miss_km: float = REQUIRED_MISS_KM) -> Optional[float]:
    factor = lead_time_s * sin(impact_angle_rad)
    if lead_time_s <= 0.0 or factor <= 0.0:
        return None
    return required_miss_km * 1000.0 / factor


def assess_deflection(params: ImpactParameters) -> DeflectionResult:
    seconds = params.lead_time_s
    angle = params.impact_angle_rad
    shift = shift_km(params.delta_v_ms, seconds, angle)
    p = miss_probability(shift)
    dv = required_delta_v_ms(seconds, angle)
    deflected = None
    if shift > 0.0:
        deflected = destination_point(params.latitude, params.longitude, params.bearing_deg, shift)
    return DeflectionResult(
        shift_km=shift,
        miss_probability=p,
        outcome=DeflectionOutcome.from_probability(p),
        required_delta_v_ms=dv,
        required_delta_v_flagged=dv is not None and dv > LARGE_DELTA_V_MS,
        deflected_point=deflected,
    )
