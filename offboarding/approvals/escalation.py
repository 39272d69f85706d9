# offboarding/approvals/escalation.py
"""
Escalation timing.

How long a level has been waiting is computed in one place, so the basis
for the clock can change without touching transition logic.
"""

from enum import Enum
from datetime import datetime, timezone

from .models import ApprovalRequest


class ClockBasis(Enum):
    """What the escalation clock counts from."""
    REQUESTED_AT = "requested_at"
    LEVEL_STARTED_AT = "level_started_at"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def elapsed_hours(
    request: ApprovalRequest,
    now: datetime,
    basis: ClockBasis = ClockBasis.REQUESTED_AT,
) -> float:
    """
    Hours the request's current level has been waiting.

    With REQUESTED_AT every level is timed from request creation, so a
    late level in a long chain can be overdue the moment it starts.
    """
    start = request.requested_at
    if basis == ClockBasis.LEVEL_STARTED_AT and request.level_started_at:
        start = request.level_started_at

    return (_as_utc(now) - _as_utc(start)).total_seconds() / 3600.0


def is_overdue(
    request: ApprovalRequest,
    now: datetime,
    basis: ClockBasis = ClockBasis.REQUESTED_AT,
) -> bool:
    """
    True when the current level has a timeout, a target, and has waited past it.

    A level without `escalate_to` is never overdue.
    """
    level = request.current()
    if not level.escalation_time_hours or not level.escalate_to:
        return False
    return elapsed_hours(request, now, basis) >= level.escalation_time_hours
