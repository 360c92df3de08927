from __future__ import annotations
import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Optional

from .catalog import CUSTOM_KEY, AsteroidProfile, CatalogStore
from .deflection import DeflectionResult, assess_deflection
from .errors import ScenarioError
from .impact_model import ImpactParameters, ImpactResult, assess_impact
from .scene import RenderDirectives, build_directives
from .terrain import DEFAULT_CLASSIFIER, LandSeaClassifier

log = logging.getLogger(__name__)

PARAM_FIELDS = frozenset(f.name for f in fields(ImpactParameters))
PROFILE_FIELDS = ("diameter_km", "density_kgm3", "velocity_kms")


@dataclass(frozen=True)
class Snapshot:
    params: ImpactParameters
    asteroid_key: str
    impact: ImpactResult
    deflection: DeflectionResult
    directives: RenderDirectives


class SimulationSession:
    """
    Owns the current ImpactParameters. User edits are clamped, catalog profiles
    are copied as published, and every change is followed by a full recompute.
    Edits keep the catalog's custom profile in step with the session.
    """

    def __init__(self, catalog: CatalogStore, classifier: LandSeaClassifier = DEFAULT_CLASSIFIER):
        self.catalog = catalog
        self.classifier = classifier
        self.params = ImpactParameters()
        self.asteroid_key = CUSTOM_KEY
        self.show_waves = True
        self.locked = False
        self.last: Optional[Snapshot] = None

    def recompute(self) -> Snapshot:
        p = self.params
        impact = assess_impact(p, self.classifier)
        deflection = assess_deflection(p)
        self.last = Snapshot(
            params=p,
            asteroid_key=self.asteroid_key,
            impact=impact,
            deflection=deflection,
            directives=build_directives(p, impact, deflection, self.show_waves, self.classifier),
        )
        return self.last

    def _ensure_unlocked(self) -> None:
        if self.locked:
            raise ScenarioError("Inputs are disabled while a scenario is running.")

    def update(self, **changes: Any) -> Snapshot:
        """Apply user edits. Any edit switches the selector back to 'custom'."""
        self._ensure_unlocked()
        unknown = set(changes) - PARAM_FIELDS
        if unknown:
            raise ValueError(f"Unknown parameter(s): {sorted(unknown)}")
        self.params = replace(self.params, **{k: float(v) for k, v in changes.items()}).clamped()
        if changes:
            self.asteroid_key = CUSTOM_KEY
            self._store_custom()
        return self.recompute()

    def _store_custom(self) -> None:
        """Write the edited physical values back to the catalog's custom profile."""
        custom = self.catalog.table.get(CUSTOM_KEY)
        edited = {name: getattr(self.params, name) for name in PROFILE_FIELDS}
        if any(getattr(custom, name) != value for name, value in edited.items()):
            self.catalog.update_custom(**edited)

    def custom_profile_changed(self) -> Optional[Snapshot]:
        """Re-apply the catalog's custom profile when it is the active selection."""
        if self.asteroid_key != CUSTOM_KEY or self.locked:
            return None
        return self.apply_profile(self.catalog.table.get(CUSTOM_KEY))

    def set_show_waves(self, show: bool) -> Snapshot:
        self.show_waves = bool(show)
        return self.recompute()

    def select_asteroid(self, key: str) -> Snapshot:
        self._ensure_unlocked()
        profile = self.catalog.table.get(key)
        if profile is None:
            raise KeyError(key)
        self.asteroid_key = key
        return self.apply_profile(profile)

    def apply_profile(self, profile: AsteroidProfile, latitude: Optional[float] = None,
                      longitude: Optional[float] = None) -> Snapshot:
        located = {}
        if latitude is not None:
            located["latitude"] = latitude
        if longitude is not None:
            located["longitude"] = longitude
        # profile values may lie outside the control ranges (ceres is 950 km)
        self.params = replace(replace(self.params, **located).clamped(),
                              **{name: getattr(profile, name) for name in PROFILE_FIELDS})
        log.debug(f"[session] profile={profile.name} params={self.params}")
        return self.recompute()

    def reset(self) -> Snapshot:
        self.params = ImpactParameters()
        self.asteroid_key = CUSTOM_KEY
        self.show_waves = True
        self.locked = False
        return self.recompute()
