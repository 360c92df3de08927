"""
Timed planetary-defense scenario.

    IDLE --start--> DECIDING --choose_option--> APPROACHING --path end--> RESOLVED --reset--> IDLE
                       |                                                     ^
                       +--ask_strategy_question--> SCORING --answer---------+

The countdown runs from start() until an outcome is set; expiry forces a
failure. The first outcome set wins, whichever flow sets it. Countdown and
frame callbacks carry the generation they were registered under and are
dropped once reset() (or a new start) has moved the generation on.
"""
from __future__ import annotations
import logging
import random
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .approach import PROGRESS_STEP, ApproachPath, build_approach_path
from .catalog import CUSTOM_KEY, AsteroidProfile
from .errors import ScenarioError
from .geodesy import Vec3
from .scene import shock_ring
from .session import SimulationSession
from .strategies import (STRATEGIES_BY_ID, ApproachOption, DialogChoice, GridChoice, MitigationStrategy,
                         draw_approach_options, draw_strategy_grid, evaluate, mitigation_question,
                         strategy_feedback)
from .timers import Countdown, FrameScheduler

log = logging.getLogger(__name__)

COUNTDOWN_S = 15


class Phase(str, Enum):
    IDLE = "idle"
    DECIDING = "deciding"
    APPROACHING = "approaching"
    SCORING = "scoring"
    RESOLVED = "resolved"


class Outcome(str, Enum):
    SUCCESS = "saved"
    FAILURE = "failed"


@dataclass
class ScenarioState:
    phase: Phase = Phase.IDLE
    asteroid_key: Optional[str] = None
    asteroid: Optional[AsteroidProfile] = None
    options: list[ApproachOption] = field(default_factory=list)
    chosen_option: Optional[ApproachOption] = None
    strategy_grid: list[MitigationStrategy] = field(default_factory=list)
    question: Optional[str] = None
    chosen_strategy: Optional[MitigationStrategy] = None
    feedback: Optional[str] = None
    time_remaining_s: int = 0
    outcome: Optional[Outcome] = None
    outcome_reason: Optional[str] = None
    should_miss: bool = False
    suppress_outcome: bool = False
    path: Optional[ApproachPath] = None
    progress: float = 0.0
    position: Optional[Vec3] = None
    impacted: bool = False
    shock_ring: Optional[list[Vec3]] = None

    @property
    def playing(self) -> bool:
        return self.path is not None and self.progress < 1.0


class ScenarioMachine:
    def __init__(self, session: SimulationSession, countdown: Countdown, frames: FrameScheduler,
                 rng: Optional[random.Random] = None, duration_s: int = COUNTDOWN_S):
        self.session = session
        self.countdown = countdown
        self.frames = frames
        self.rng = rng or random.Random()
        self.duration_s = duration_s
        self.state = ScenarioState()
        self._generation = 0
        self._lock = threading.RLock()

    # ---------- transitions ----------

    def start(self) -> ScenarioState:
        with self._lock:
            if self.state.phase is not Phase.IDLE:
                raise ScenarioError(f"Cannot start a scenario while {self.state.phase.value}.")
            self.frames.unregister()
            table = self.session.catalog.table
            keys = table.selectable_keys()
            key = self.rng.choice(keys) if keys else CUSTOM_KEY
            asteroid = table.profiles[key]

            lat = round((self.rng.random() - 0.5) * 180.0, 2)
            lon = round((self.rng.random() - 0.5) * 360.0, 2)
            self.session.asteroid_key = key
            self.session.apply_profile(asteroid, latitude=lat, longitude=lon)
            self.session.locked = True

            self._generation += 1
            gen = self._generation
            self.state = ScenarioState(
                phase=Phase.DECIDING,
                asteroid_key=key,
                asteroid=asteroid,
                options=draw_approach_options(self.rng),
                time_remaining_s=self.duration_s,
            )
            log.info(f"[scenario] start gen={gen} asteroid={asteroid.name} lat={lat} lon={lon}")
            self.countdown.start(self.duration_s,
                                 lambda remaining: self._on_tick(gen, remaining),
                                 lambda: self._on_expire(gen))
            return self.state

    def choose_option(self, key: str) -> ScenarioState:
        with self._lock:
            s = self.state
            if s.phase is not Phase.DECIDING:
                raise ScenarioError(f"No approach dialog open (phase={s.phase.value}).")
            option = next((o for o in s.options if o.key == key), None)
            if option is None:
                raise ScenarioError(f"Option {key!r} is not on offer.")
            s.chosen_option = option
            # captured now; resolution at the end of the path never re-evaluates it
            s.should_miss = evaluate(DialogChoice(option))
            s.suppress_outcome = False
            s.phase = Phase.APPROACHING
            log.info(f"[scenario] option={key} correct={s.should_miss}")
            self._start_animation()
            return s

    def ask_strategy_question(self) -> ScenarioState:
        with self._lock:
            s = self.state
            if s.phase is not Phase.DECIDING:
                raise ScenarioError(f"Strategy question only available while deciding (phase={s.phase.value}).")
            s.strategy_grid = draw_strategy_grid(self.rng)
            s.question = mitigation_question(s.asteroid, self.rng)
            s.phase = Phase.SCORING
            return s

    def answer_strategy(self, strategy_id: str) -> ScenarioState:
        with self._lock:
            s = self.state
            if s.phase is not Phase.SCORING:
                raise ScenarioError(f"No strategy question open (phase={s.phase.value}).")
            strategy = STRATEGIES_BY_ID.get(strategy_id)
            if strategy is None or strategy not in s.strategy_grid:
                raise ScenarioError(f"Strategy {strategy_id!r} is not on offer.")
            s.chosen_strategy = strategy
            s.feedback = strategy_feedback(strategy, s.asteroid)
            self._resolve(evaluate(GridChoice(strategy, s.asteroid)), "strategy")
            return s

    def preview(self) -> ScenarioState:
        """Replay the approach from IDLE without a countdown or any scoring."""
        with self._lock:
            if self.state.phase is not Phase.IDLE or self.state.playing:
                raise ScenarioError("Preview is only available when no scenario is running.")
            self._generation += 1
            self.state = ScenarioState(phase=Phase.IDLE, suppress_outcome=True)
            self._start_animation()
            return self.state

    def reset(self) -> ScenarioState:
        with self._lock:
            self._generation += 1
            self.countdown.stop()
            self.frames.unregister()
            self.state = ScenarioState()
            self.session.locked = False
            log.info("[scenario] reset")
            return self.state

    # ---------- animation ----------

    def _start_animation(self) -> None:
        s = self.state
        snap = self.session.last or self.session.recompute()
        s.path = build_approach_path(snap.params, snap.deflection, s.should_miss)
        s.progress = 0.0
        s.position = s.path.start
        gen = self._generation
        self.frames.register(lambda: self._on_frame(gen))

    def _on_frame(self, generation: int) -> None:
        with self._lock:
            s = self.state
            if generation != self._generation or s.path is None or s.progress >= 1.0:
                return
            s.progress = min(1.0, s.progress + PROGRESS_STEP)
            s.position = s.path.point_at(s.progress)
            if s.progress < 1.0:
                return
            self.frames.unregister()
            if not s.should_miss:
                p = self.session.params
                s.impacted = True
                s.shock_ring = shock_ring(p.latitude, p.longitude)
            if s.suppress_outcome:
                s.suppress_outcome = False
                s.path = None
                log.info("[scenario] preview finished")
                return
            self._resolve(s.chosen_option is not None and s.should_miss, "approach")

    # ---------- countdown ----------

    def _on_tick(self, generation: int, remaining: int) -> None:
        with self._lock:
            if generation != self._generation or self.state.outcome is not None:
                return
            self.state.time_remaining_s = max(0, remaining)

    def _on_expire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self.state.time_remaining_s = 0
            self._resolve(False, "timeout")

    def _resolve(self, success: bool, reason: str) -> bool:
        s = self.state
        if s.outcome is not None:
            return False
        s.outcome = Outcome.SUCCESS if success else Outcome.FAILURE
        s.outcome_reason = reason
        s.phase = Phase.RESOLVED
        self.countdown.stop()
        log.info(f"[scenario] resolved outcome={s.outcome.value} reason={reason}")
        return True
