# tests/conftest.py
"""
Pytest configuration and fixtures.

Every test gets its own registry, directory and engine, driven by a
controllable clock so escalation timing is deterministic.
"""

import pytest
from datetime import datetime, timedelta, timezone

from offboarding.approvals import (
    ApprovalEngine,
    ApprovalLevel,
    ApprovalTemplate,
    Approver,
    ApproverDirectory,
    ApproverRole,
    EngineOptions,
    LevelType,
    TemplateRegistry,
    seed_defaults,
)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_approver(approver_id: str, role: ApproverRole = ApproverRole.HR) -> Approver:
    return Approver(approver_id, approver_id.upper(), f"{approver_id}@company.com", role)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def directory() -> ApproverDirectory:
    return ApproverDirectory()


@pytest.fixture
def registry(directory) -> TemplateRegistry:
    """Registry with the built-in templates plus a few test shapes."""
    registry = TemplateRegistry()
    seed_defaults(registry, directory)

    registry.register(ApprovalTemplate(
        id="unanimous-pair",
        name="Unanimous pair",
        description="X and Y must both approve",
        levels=[
            ApprovalLevel(1, [make_approver("x"), make_approver("y")], 2, LevelType.PARALLEL),
        ],
    ))
    registry.register(ApprovalTemplate(
        id="either-or",
        name="Either or",
        description="X or Y",
        levels=[
            ApprovalLevel(1, [make_approver("x"), make_approver("y")], 1, LevelType.PARALLEL),
        ],
    ))
    registry.register(ApprovalTemplate(
        id="hourly-escalation",
        name="Hourly escalation",
        description="Escalates to E after one hour, then a second level",
        levels=[
            ApprovalLevel(1, [make_approver("x")], 1, escalation_time_hours=1, escalate_to="e"),
            ApprovalLevel(2, [make_approver("z", ApproverRole.IT)], 1,
                          escalation_time_hours=2, escalate_to="e"),
        ],
    ))
    return registry


@pytest.fixture
def options() -> EngineOptions:
    return EngineOptions()


@pytest.fixture
def engine(registry, directory, options, clock) -> ApprovalEngine:
    return ApprovalEngine(registry, directory=directory, options=options, clock=clock)


@pytest.fixture
def events(engine) -> list:
    """Every event the engine publishes during the test."""
    captured = []
    engine.subscribe(captured.append)
    return captured


def create(engine: ApprovalEngine, template_id: str, task_id: str = "task-1", session_id: str = "session-1"):
    return engine.create_request(
        session_id=session_id,
        task_id=task_id,
        task_name="Revoke email access",
        requested_by="it-bot",
        template_id=template_id,
    )


def indexed_approvers(engine: ApprovalEngine, request_id: str) -> set:
    return engine.index.approvers_for(request_id)
