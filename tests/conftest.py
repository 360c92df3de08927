"""Shared fixtures: deterministic scheduling collaborators and a populated catalog."""

import random

import pytest

from defense_api.catalog import FALLBACK_PROFILES, CatalogStore
from defense_api.errors import CatalogFetchError
from defense_api.scenario import ScenarioMachine
from defense_api.session import SimulationSession
from defense_api.timers import ExternalFrameSource


class ManualCountdown:
    """Countdown collaborator driven by the test instead of the wall clock."""

    def __init__(self):
        self.running = False
        self.duration_s = None
        self.remaining = 0
        self.on_tick = None
        self.on_expire = None
        self.start_calls = 0
        self.stop_calls = 0

    def start(self, duration_s, on_tick, on_expire):
        self.running = True
        self.duration_s = duration_s
        self.remaining = duration_s
        self.on_tick, self.on_expire = on_tick, on_expire
        self.start_calls += 1

    def stop(self):
        self.running = False
        self.stop_calls += 1

    def tick(self, seconds=1):
        for _ in range(seconds):
            if not self.running:
                return
            self.remaining -= 1
            self.on_tick(self.remaining)
            if self.remaining <= 0:
                self.running = False
                self.on_expire()
                return

    def expire(self):
        self.tick(self.remaining)


def fetch_fails():
    raise CatalogFetchError("offline")


@pytest.fixture
def countdown():
    return ManualCountdown()


@pytest.fixture
def frames():
    return ExternalFrameSource()


@pytest.fixture
def catalog():
    """Store holding the built-in fallback table (as after a failed fetch)."""
    store = CatalogStore()
    store.refresh(fetch_fails)
    assert store.table.source == "fallback"
    return store


@pytest.fixture
def session(catalog):
    s = SimulationSession(catalog)
    s.recompute()
    return s


@pytest.fixture
def machine(session, countdown, frames):
    return ScenarioMachine(session, countdown, frames, rng=random.Random(7))


@pytest.fixture
def fallback_keys():
    return set(FALLBACK_PROFILES)
