# offboarding/approvals/models.py
"""
Approval workflow models.

Templates hold the shared definition of an approval chain. Requests take a
structural copy of the template's levels when they are created, so anything
done to a request (delegation, for instance) stays on that request.
"""

import copy
from enum import Enum
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field
from datetime import datetime


class ApproverRole(Enum):
    """Roles an approver can hold."""
    HR = "HR"
    IT = "IT"
    LEGAL = "Legal"
    FINANCE = "Finance"
    MANAGER = "Manager"
    EXECUTIVE = "Executive"


class LevelType(Enum):
    """
    How approvals at a level are expected to arrive.

    Both types need `required_approvals` approvals from the level's
    approvers; the difference is only shown to people, not enforced.
    """
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


class RequestStatus(Enum):
    """
    Approval request status.

    PENDING -> APPROVED | REJECTED
    PENDING -> ESCALATED -> PENDING (next level) | APPROVED | REJECTED
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ESCALATED = "escalated"


TERMINAL_STATUSES = {RequestStatus.APPROVED, RequestStatus.REJECTED}


class ActionType(Enum):
    """Kinds of entries in a request's history."""
    APPROVED = "approved"
    REJECTED = "rejected"
    DELEGATED = "delegated"
    ESCALATED = "escalated"


@dataclass
class Approver:
    """Someone who can sign off on a level."""
    id: str
    name: str
    email: str
    role: ApproverRole
    delegate_to: Optional[str] = None  # Approver ID of delegate

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "delegate_to": self.delegate_to,
        }


@dataclass
class ApprovalLevel:
    """One stage of an approval chain."""
    level: int
    approvers: List[Approver]
    required_approvals: int
    type: LevelType = LevelType.SEQUENTIAL
    escalation_time_hours: Optional[float] = None
    escalate_to: Optional[str] = None  # Approver ID to escalate to

    def approver_ids(self) -> List[str]:
        return [a.id for a in self.approvers]

    def find_approver(self, approver_id: str) -> Optional[Approver]:
        for approver in self.approvers:
            if approver.id == approver_id:
                return approver
        return None

    def find_delegator(self, delegate_id: str) -> Optional[Approver]:
        """Find the member of this level who delegated to `delegate_id`."""
        for approver in self.approvers:
            if approver.delegate_to and approver.delegate_to == delegate_id:
                return approver
        return None

    def assignees(self) -> List[str]:
        """IDs that currently owe a decision, with delegation applied."""
        return [a.delegate_to or a.id for a in self.approvers]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "approvers": [a.to_dict() for a in self.approvers],
            "required_approvals": self.required_approvals,
            "type": self.type.value,
            "escalation_time_hours": self.escalation_time_hours,
            "escalate_to": self.escalate_to,
        }


@dataclass
class ApprovalTemplate:
    """Named, reusable approval chain."""
    id: str
    name: str
    description: str
    levels: List[ApprovalLevel]
    department: Optional[str] = None
    task_type: Optional[str] = None

    def clone_levels(self) -> List[ApprovalLevel]:
        """Structural copy of the level list for a new request."""
        return copy.deepcopy(self.levels)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "department": self.department,
            "task_type": self.task_type,
            "levels": [lvl.to_dict() for lvl in self.levels],
        }


@dataclass(frozen=True)
class ApprovalAction:
    """Immutable history entry for a decision on a request."""
    id: str
    approval_request_id: str
    approver_id: str
    approver_name: str  # Snapshot at action time
    action: ActionType
    timestamp: datetime
    level: int
    comments: Optional[str] = None
    on_behalf_of: Optional[str] = None  # Level member a delegate acted for

    @property
    def principal_id(self) -> str:
        """The level member this action counts for."""
        return self.on_behalf_of or self.approver_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "approval_request_id": self.approval_request_id,
            "approver_id": self.approver_id,
            "approver_name": self.approver_name,
            "action": self.action.value,
            "timestamp": self.timestamp.isoformat(),
            "level": self.level,
            "comments": self.comments,
            "on_behalf_of": self.on_behalf_of,
        }


@dataclass
class ApprovalRequest:
    """Live approval chain bound to one offboarding task."""
    id: str
    session_id: str
    task_id: str
    task_name: str
    requested_by: str
    requested_at: datetime
    levels: List[ApprovalLevel]
    template_id: str
    current_level: int = 1
    status: RequestStatus = RequestStatus.PENDING
    reason: Optional[str] = None
    history: List[ApprovalAction] = field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None
    level_started_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def current(self) -> ApprovalLevel:
        """
        The level currently awaiting decisions.

        An approved request has moved past its last level and has none.
        """
        if self.current_level > len(self.levels):
            raise IndexError(f"Request {self.id} has completed all {len(self.levels)} levels")
        return self.levels[self.current_level - 1]

    def is_last_level(self) -> bool:
        return self.current_level >= len(self.levels)

    def actions_at_level(
        self,
        level: int,
        action: Optional[ActionType] = None,
    ) -> List[ApprovalAction]:
        return [
            h for h in self.history
            if h.level == level and (action is None or h.action == action)
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "task_id": self.task_id,
            "task_name": self.task_name,
            "requested_by": self.requested_by,
            "requested_at": self.requested_at.isoformat(),
            "template_id": self.template_id,
            "current_level": self.current_level,
            "level_started_at": self.level_started_at.isoformat() if self.level_started_at else None,
            "status": self.status.value,
            "reason": self.reason,
            "levels": [lvl.to_dict() for lvl in self.levels],
            "history": [h.to_dict() for h in self.history],
            "metadata": self.metadata,
        }
