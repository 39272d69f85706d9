# offboarding/approvals/events.py
"""
Events emitted after approval transitions commit.

Notification delivery lives outside the engine; collaborators subscribe
a callback and decide what to do with each event.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field
from datetime import datetime

from ..logging import get_logger

logger = get_logger(__name__)


class ApprovalEventType(Enum):
    """Transitions observers can react to."""
    REQUEST_CREATED = "REQUEST_CREATED"
    APPROVAL_REQUIRED = "APPROVAL_REQUIRED"
    LEVEL_ADVANCED = "LEVEL_ADVANCED"
    REQUEST_APPROVED = "REQUEST_APPROVED"
    REQUEST_REJECTED = "REQUEST_REJECTED"
    REQUEST_DELEGATED = "REQUEST_DELEGATED"
    REQUEST_ESCALATED = "REQUEST_ESCALATED"


@dataclass
class ApprovalEvent:
    """Something that happened to an approval request."""
    event_type: ApprovalEventType
    request_id: str
    session_id: str
    level: int
    timestamp: datetime
    approver_ids: List[str] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "request_id": self.request_id,
            "session_id": self.session_id,
            "level": self.level,
            "timestamp": self.timestamp.isoformat(),
            "approver_ids": list(self.approver_ids),
            "data": dict(self.data),
        }


ApprovalListener = Callable[[ApprovalEvent], None]


class EventBus:
    """Fan-out of approval events to subscribed callbacks."""

    def __init__(self):
        self._listeners: List[ApprovalListener] = []

    def subscribe(self, listener: ApprovalListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: ApprovalListener) -> bool:
        if listener in self._listeners:
            self._listeners.remove(listener)
            return True
        return False

    def publish(self, events: List[ApprovalEvent]) -> None:
        """
        Deliver events to every listener.

        A failing listener is logged and skipped; the transition that
        produced the event has already committed.
        """
        for event in events:
            for listener in list(self._listeners):
                try:
                    listener(event)
                except Exception as e:
                    logger.error(
                        "approval_listener_failed",
                        exc_info=True,
                        event_type=event.event_type.value,
                        request_id=event.request_id,
                        error=str(e),
                    )


def make_event(
    event_type: ApprovalEventType,
    request_id: str,
    session_id: str,
    level: int,
    timestamp: datetime,
    approver_ids: Optional[List[str]] = None,
    **data: Any,
) -> ApprovalEvent:
    return ApprovalEvent(
        event_type=event_type,
        request_id=request_id,
        session_id=session_id,
        level=level,
        timestamp=timestamp,
        approver_ids=list(approver_ids or []),
        data=data,
    )
