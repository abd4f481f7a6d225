"""Shared test fixtures for device-diagnostics tests."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest

from device_diagnostics.domain.models import Problem, Step
from device_diagnostics.execution.engine import DiagnosticEngine
from device_diagnostics.execution.predicates import PredicateRegistry
from device_diagnostics.repositories.catalog import StaticStepCatalog
from device_diagnostics.repositories.session import InMemorySessionRepository
from device_diagnostics.services.diagnostics import DiagnosticService

DEVICE_ID = "tv"
PROBLEM_ID = "p1"
START = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock; advance it with tick()."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def tick(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class FixedRandom(random.Random):
    """random.Random whose random() replays a fixed sequence."""

    def __init__(self, values):
        super().__init__(0)
        self._values = list(values)

    def random(self):
        return self._values.pop(0)


def make_step(step_id: str, number: int, **kwargs) -> Step:
    """Helper to create a Step in the default test problem."""
    kwargs.setdefault("instruction", f"Do {step_id}")
    kwargs.setdefault("action_type", "check")
    return Step(
        id=step_id,
        problem_id=kwargs.pop("problem_id", PROBLEM_ID),
        device_id=kwargs.pop("device_id", DEVICE_ID),
        step_number=number,
        **kwargs,
    )


def make_catalog(*steps: Step, problem_id: str = PROBLEM_ID) -> StaticStepCatalog:
    return StaticStepCatalog(
        [Problem(id=problem_id, device_id=DEVICE_ID, title="Test problem", steps=list(steps))]
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry() -> PredicateRegistry:
    """Registry with a couple of predicates used across tests."""
    reg = PredicateRegistry()
    reg.register("is_even", lambda ctx: str(ctx.get("value", "")).isdigit()
                 and int(ctx["value"]) % 2 == 0)
    reg.register("always_no", lambda ctx: False)
    return reg


@pytest.fixture
def three_steps():
    return [make_step("s1", 1), make_step("s2", 2), make_step("s3", 3)]


@pytest.fixture
def catalog(three_steps) -> StaticStepCatalog:
    return make_catalog(*three_steps)


@pytest.fixture
def engine(catalog, registry, clock) -> DiagnosticEngine:
    return DiagnosticEngine(
        catalog=catalog,
        registry=registry,
        max_attempts=3,
        rng=random.Random(7),
        clock=clock,
    )


@pytest.fixture
def sample_service(clock) -> DiagnosticService:
    """Service over the bundled sample problems and in-memory sessions."""
    catalog = StaticStepCatalog()
    return DiagnosticService(
        session_repository=InMemorySessionRepository(),
        step_catalog=catalog,
        engine=DiagnosticEngine(catalog=catalog, rng=random.Random(1), clock=clock),
    )
