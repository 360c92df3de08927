from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
import logging
import threading
import time
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from .catalog import AsteroidProfile, CatalogStore, CatalogTable
from .config import Settings, load_settings
from .deflection import DeflectionResult, assess_deflection
from .errors import ScenarioError
from .geodesy import Vec3
from .impact_model import ImpactParameters, assess_impact
from .providers import ElevationClient, NeoCatalogClient
from .scenario import ScenarioMachine, ScenarioState
from .scene import RenderDirectives, build_directives
from .session import Snapshot, SimulationSession
from .strategies import (MITIGATION_STRATEGIES, STRATEGIES_BY_ID, feedback_quality, is_strategy_appropriate,
                         strategy_feedback, strategy_score)
from .terrain import DEFAULT_CLASSIFIER, tsunami_concern
from .timers import ExternalFrameSource, ThreadedCountdown
from .waves import WaveDirection

log = logging.getLogger(__name__)


# -------------------------------
# Service wiring
# -------------------------------

@dataclass
class Services:
    settings: Settings
    catalog: CatalogStore
    session: SimulationSession
    frames: ExternalFrameSource
    scenario: ScenarioMachine
    neo: NeoCatalogClient
    elevation: ElevationClient


def build_services(settings: Settings, neo: Optional[NeoCatalogClient] = None,
                   elevation: Optional[ElevationClient] = None, countdown=None, rng=None) -> Services:
    catalog = CatalogStore()
    session = SimulationSession(catalog)
    session.recompute()
    frames = ExternalFrameSource()
    scenario = ScenarioMachine(session, countdown or ThreadedCountdown(), frames, rng=rng,
                               duration_s=settings.countdown_s)
    return Services(
        settings=settings,
        catalog=catalog,
        session=session,
        frames=frames,
        scenario=scenario,
        neo=neo or NeoCatalogClient(settings),
        elevation=elevation or ElevationClient(settings),
    )


settings = load_settings()
logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO),
                    format="%(asctime)s %(levelname)s %(name)s %(message)s")
services = build_services(settings)


def get_services() -> Services:
    return services


@asynccontextmanager
async def lifespan(_: FastAPI):
    # initial catalog load runs off the request path; the session keeps working on the default table
    threading.Thread(target=services.catalog.refresh, args=(services.neo.fetch_catalog,),
                     name="catalog-fetch", daemon=True).start()
    yield
    services.scenario.reset()


app = FastAPI(title="Planetary Defense Impact & Deflection Engine", version="2.1.0", lifespan=lifespan)


@app.exception_handler(ScenarioError)
def scenario_error_handler(_: Request, exc: ScenarioError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


# -------------------------------
# Serialization helpers
# -------------------------------

def _vec(v: Optional[Vec3]) -> Optional[List[float]]:
    return None if v is None else [v[0], v[1], v[2]]


def _path(points) -> Optional[List[List[float]]]:
    return None if points is None else [_vec(p) for p in points]


def profile_json(p: AsteroidProfile) -> Dict[str, Any]:
    return {"name": p.name, "diameter_km": p.diameter_km, "density_kgm3": p.density_kgm3,
            "velocity_kms": p.velocity_kms, "is_hazardous": p.is_hazardous,
            "description": p.description, "neo_id": p.neo_id}


def table_json(t: CatalogTable) -> Dict[str, Any]:
    return {"version": t.version, "source": t.source, "error": t.error,
            "profiles": {k: profile_json(p) for k, p in t.profiles.items()}}


def wave_json(w: WaveDirection) -> Dict[str, Any]:
    return {"direction": _vec(w.direction), "length": w.length, "intensity": w.intensity,
            "category": w.category.label, "color": w.color,
            "effects": {"transitions": w.effects.transitions, "refraction": w.effects.refraction,
                        "impact_on_land": w.effects.impact_on_land, "ends_on_land": w.effects.ends_on_land}}


def deflection_json(d: DeflectionResult) -> Dict[str, Any]:
    return {
        "shift_km": d.shift_km,
        "miss_probability": d.miss_probability,
        "outcome": d.outcome.name.lower(),
        "outcome_label": d.outcome.label,
        # null means undefined (zero lead time), never a stand-in number
        "required_delta_v_ms": d.required_delta_v_ms,
        "required_delta_v_flagged": d.required_delta_v_flagged,
        "deflected_point": None if d.deflected_point is None else
                           {"lat": d.deflected_point[0], "lon": d.deflected_point[1]},
    }


def directives_json(r: RenderDirectives) -> Dict[str, Any]:
    return {
        "impact_marker": _vec(r.impact_marker),
        "damage_ring": _path(r.damage_ring),
        "asteroid_marker": {"position": _vec(r.asteroid_marker), "scale": r.asteroid_marker_scale},
        "waves": [wave_json(w) for w in r.waves],
        "crater": None if r.crater is None else {
            "top_radius": r.crater.top_radius, "bottom_radius": r.crater.bottom_radius,
            "depth": r.crater.depth, "position": _vec(r.crater.position)},
        "deflected_marker": _vec(r.deflected_marker),
        "deflected_ring": _path(r.deflected_ring),
        "corridor": _path(r.corridor),
    }


def snapshot_json(params: ImpactParameters, impact, deflection, directives,
                  asteroid_key: Optional[str] = None) -> Dict[str, Any]:
    return {
        "asteroid_key": asteroid_key,
        "params": asdict(params),
        "impact": {
            "mass_kg": impact.mass_kg,
            "energy_J": impact.energy_J,
            "tnt_megatons": impact.energy_mt,
            "crater_diameter_km": impact.crater_diameter_km,
            "crater_depth_km": impact.crater_depth_km,
            "damage_radius_km": impact.damage_radius_km,
            "terrain": impact.terrain.value,
            "wave_type": impact.wave_type,
        },
        "deflection": deflection_json(deflection),
        "directives": directives_json(directives),
    }


def session_json(svc: Services, snap: Snapshot) -> Dict[str, Any]:
    out = snapshot_json(snap.params, snap.impact, snap.deflection, snap.directives, snap.asteroid_key)
    out["show_waves"] = svc.session.show_waves
    out["locked"] = svc.session.locked
    return out


def state_json(s: ScenarioState) -> Dict[str, Any]:
    return {
        "phase": s.phase.value,
        "asteroid_key": s.asteroid_key,
        "asteroid": None if s.asteroid is None else profile_json(s.asteroid),
        "options": [{"key": o.key, "title": o.title, "description": o.description} for o in s.options],
        "chosen_option": None if s.chosen_option is None else s.chosen_option.key,
        "question": s.question,
        "strategy_grid": [strategy_json(x) for x in s.strategy_grid],
        "chosen_strategy": None if s.chosen_strategy is None else s.chosen_strategy.id,
        "feedback": s.feedback,
        "time_remaining_s": s.time_remaining_s,
        "outcome": None if s.outcome is None else s.outcome.value,
        "outcome_reason": s.outcome_reason,
        "playing": s.playing,
        "progress": s.progress,
        "position": _vec(s.position),
        "path": None if s.path is None else _path(s.path.points),
        "impacted": s.impacted,
        "shock_ring": _path(s.shock_ring),
    }


def strategy_json(x) -> Dict[str, Any]:
    return {"id": x.id, "title": x.title, "description": x.description,
            "effectiveness": x.effectiveness, "cost": x.cost, "timeframe": x.timeframe}


# -------------------------------
# Health + small utility endpoints
# -------------------------------

@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/isLand")
def is_land_endpoint(
    lat: float = Query(..., ge=-90, le=90, description="Latitude in decimal degrees"),
    lon: float = Query(..., ge=-180, le=180, description="Longitude in decimal degrees"),
):
    terrain = DEFAULT_CLASSIFIER.classify(lat, lon)
    return {"lat": lat, "lon": lon, "terrain": terrain.value, "land": terrain.value == "land"}


@app.get("/elevation")
def elevation(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    svc: Services = Depends(get_services),
):
    sample = svc.elevation.elevation(lat, lon)
    return {"elevation_m": sample.elevation_m, "source": sample.source,
            "tsunami_concern": tsunami_concern(sample.elevation_m)}


# -------------------------------
# Impact simulation (stateless)
# -------------------------------

class ImpactRequest(BaseModel):
    # ranges are clamped by the engine, not rejected
    diameter_km: float = Field(0.3, description="Asteroid diameter in km")
    density_kgm3: float = Field(3000.0, description="Bulk density in kg/m^3")
    velocity_kms: float = Field(17.0, description="Impact speed in km/s")
    impact_angle_deg: float = Field(45.0, description="Angle to horizontal in degrees")
    latitude: float = 10.0
    longitude: float = -30.0
    delta_v_ms: float = Field(0.0, description="Deflection delta-v in m/s")
    lead_time_days: float = Field(365.0, description="Days between deflection and impact")
    bearing_deg: float = Field(0.0, description="Deflection bearing in degrees")
    show_waves: bool = True


@app.post("/impact/summary")
def impact_summary(req: ImpactRequest):
    params = ImpactParameters(**req.model_dump(exclude={"show_waves"})).clamped()
    impact = assess_impact(params)
    deflection = assess_deflection(params)
    directives = build_directives(params, impact, deflection, show_waves=req.show_waves)
    return snapshot_json(params, impact, deflection, directives)


# -------------------------------
# Catalog
# -------------------------------

class CustomProfileIn(BaseModel):
    diameter_km: Optional[float] = Field(None, gt=0)
    density_kgm3: Optional[float] = Field(None, gt=0)
    velocity_kms: Optional[float] = Field(None, gt=0)
    is_hazardous: Optional[bool] = None


@app.get("/catalog")
def get_catalog(svc: Services = Depends(get_services)):
    out = table_json(svc.catalog.table)
    out["loading"] = svc.catalog.loading
    out["retry_available"] = svc.catalog.retry_available
    return out


@app.post("/catalog/refresh", status_code=202)
def refresh_catalog(background: BackgroundTasks, svc: Services = Depends(get_services)):
    if not svc.catalog.claim():
        return {"accepted": False, "detail": "fetch already in flight"}
    background.add_task(svc.catalog.refresh, svc.neo.fetch_catalog, claimed=True)
    return {"accepted": True}


def _delayed_refresh(svc: Services) -> None:
    log.info(f"[catalog.retry] retrying in {svc.settings.retry_delay_s}s")
    try:
        time.sleep(svc.settings.retry_delay_s)
    finally:
        svc.catalog.refresh(svc.neo.fetch_catalog, claimed=True)


@app.post("/catalog/retry", status_code=202)
def retry_catalog(background: BackgroundTasks, svc: Services = Depends(get_services)):
    # the slot is held through the delay, so a second retry is refused
    if not svc.catalog.claim():
        return {"accepted": False, "detail": "fetch already in flight"}
    background.add_task(_delayed_refresh, svc)
    return {"accepted": True, "delay_s": svc.settings.retry_delay_s}


@app.put("/catalog/custom")
def update_custom(body: CustomProfileIn, svc: Services = Depends(get_services)):
    changes = body.model_dump(exclude_none=True)
    table = svc.catalog.update_custom(**changes)
    svc.session.custom_profile_changed()
    return table_json(table)


# -------------------------------
# Interactive session
# -------------------------------

class SessionPatch(BaseModel):
    diameter_km: Optional[float] = None
    density_kgm3: Optional[float] = None
    velocity_kms: Optional[float] = None
    impact_angle_deg: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    delta_v_ms: Optional[float] = None
    lead_time_days: Optional[float] = None
    bearing_deg: Optional[float] = None
    show_waves: Optional[bool] = None


class AsteroidSelect(BaseModel):
    key: str


@app.get("/session")
def get_session(svc: Services = Depends(get_services)):
    snap = svc.session.last or svc.session.recompute()
    return session_json(svc, snap)


@app.patch("/session")
def patch_session(body: SessionPatch, svc: Services = Depends(get_services)):
    changes = body.model_dump(exclude_none=True)
    show_waves = changes.pop("show_waves", None)
    if show_waves is not None:
        # the wave toggle stays live during a scenario; numeric inputs do not
        snap = svc.session.set_show_waves(show_waves)
    if changes or show_waves is None:
        snap = svc.session.update(**changes)
    return session_json(svc, snap)


@app.post("/session/asteroid")
def select_asteroid(body: AsteroidSelect, svc: Services = Depends(get_services)):
    try:
        snap = svc.session.select_asteroid(body.key)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown asteroid '{body.key}'.")
    return session_json(svc, snap)


@app.post("/session/reset")
def reset_session(svc: Services = Depends(get_services)):
    svc.scenario.reset()
    return session_json(svc, svc.session.reset())


# -------------------------------
# Strategies
# -------------------------------

class StrategyEvaluation(BaseModel):
    strategy_id: str
    asteroid_key: Optional[str] = None


@app.get("/strategies")
def list_strategies():
    return [strategy_json(s) for s in MITIGATION_STRATEGIES]


@app.post("/strategies/evaluate")
def evaluate_strategy(body: StrategyEvaluation, svc: Services = Depends(get_services)):
    strategy = STRATEGIES_BY_ID.get(body.strategy_id)
    if strategy is None:
        raise HTTPException(status_code=404, detail=f"Unknown strategy '{body.strategy_id}'.")
    key = body.asteroid_key or svc.session.asteroid_key
    asteroid = svc.catalog.table.get(key)
    if asteroid is None:
        raise HTTPException(status_code=404, detail=f"Unknown asteroid '{key}'.")
    return {
        "strategy_id": strategy.id,
        "asteroid_key": key,
        "score": strategy_score(strategy.id, asteroid),
        "appropriate": is_strategy_appropriate(strategy, asteroid),
        "quality": feedback_quality(strategy.id, asteroid),
        "feedback": strategy_feedback(strategy, asteroid),
    }


# -------------------------------
# Scenario game
# -------------------------------

class OptionChoice(BaseModel):
    key: str


class StrategyAnswer(BaseModel):
    strategy_id: str


class FrameRequest(BaseModel):
    frames: int = Field(1, ge=1, le=1000)


@app.get("/scenario")
def get_scenario(svc: Services = Depends(get_services)):
    return state_json(svc.scenario.state)


@app.post("/scenario/start")
def start_scenario(svc: Services = Depends(get_services)):
    state = svc.scenario.start()
    out = state_json(state)
    out["session"] = session_json(svc, svc.session.last)
    return out


@app.post("/scenario/choose")
def choose_option(body: OptionChoice, svc: Services = Depends(get_services)):
    return state_json(svc.scenario.choose_option(body.key))


@app.post("/scenario/question")
def strategy_question(svc: Services = Depends(get_services)):
    return state_json(svc.scenario.ask_strategy_question())


@app.post("/scenario/answer")
def answer_strategy(body: StrategyAnswer, svc: Services = Depends(get_services)):
    return state_json(svc.scenario.answer_strategy(body.strategy_id))


@app.post("/scenario/frame")
def advance_frames(body: Optional[FrameRequest] = None, svc: Services = Depends(get_services)):
    delivered = svc.frames.tick(body.frames if body else 1)
    out = state_json(svc.scenario.state)
    out["frames_delivered"] = delivered
    return out


@app.post("/scenario/preview")
def preview_approach(svc: Services = Depends(get_services)):
    return state_json(svc.scenario.preview())


@app.post("/scenario/reset")
def reset_scenario(svc: Services = Depends(get_services)):
    return state_json(svc.scenario.reset())


if __name__ == "__main__":
    import uvicorn

    # same as 'uvicorn defense_api.app:app' from the repo root
    uvicorn.run(app, host="127.0.0.1", port=8000, log_level=settings.log_level.lower())
