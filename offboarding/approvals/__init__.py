# Approvals module - multi-level approval workflows
from .models import (
    ActionType,
    ApprovalAction,
    ApprovalLevel,
    ApprovalRequest,
    ApprovalTemplate,
    Approver,
    ApproverRole,
    LevelType,
    RequestStatus,
)
from .errors import (
    ApprovalError,
    ApprovalValidationError,
    ApproverNotFoundError,
    DuplicateApprovalError,
    InvalidStateError,
    InvalidTemplateError,
    NoEscalationPathError,
    RequestNotFoundError,
    TemplateNotFoundError,
    UnauthorizedApproverError,
)
from .directory import ApproverDirectory, TemplateRegistry
from .templates import DEFAULT_TEMPLATE_ID, seed_defaults
from .events import ApprovalEvent, ApprovalEventType
from .escalation import ClockBasis, elapsed_hours
from .engine import ApprovalEngine, EngineOptions

__all__ = [
    "ActionType",
    "ApprovalAction",
    "ApprovalLevel",
    "ApprovalRequest",
    "ApprovalTemplate",
    "Approver",
    "ApproverRole",
    "LevelType",
    "RequestStatus",
    "ApprovalError",
    "ApprovalValidationError",
    "ApproverNotFoundError",
    "DuplicateApprovalError",
    "InvalidStateError",
    "InvalidTemplateError",
    "NoEscalationPathError",
    "RequestNotFoundError",
    "TemplateNotFoundError",
    "UnauthorizedApproverError",
    "ApproverDirectory",
    "TemplateRegistry",
    "DEFAULT_TEMPLATE_ID",
    "seed_defaults",
    "ApprovalEvent",
    "ApprovalEventType",
    "ClockBasis",
    "elapsed_hours",
    "ApprovalEngine",
    "EngineOptions",
]
