# offboarding/api/deps.py
"""
Shared route dependencies and error mapping.
"""

from fastapi import HTTPException, Request

from ..approvals import (
    ApprovalEngine,
    ApprovalError,
    ApprovalValidationError,
    InvalidStateError,
    NoEscalationPathError,
    RequestNotFoundError,
    TemplateNotFoundError,
    UnauthorizedApproverError,
)
from ..settings import Settings
from ..webhooks import WebhookExecutor, WebhookRegistry


# Order matters: subclasses before their bases
_STATUS_CODES = [
    (TemplateNotFoundError, 404),
    (RequestNotFoundError, 404),
    (UnauthorizedApproverError, 403),
    (InvalidStateError, 409),
    (NoEscalationPathError, 409),
    (ApprovalValidationError, 422),
]


def get_engine(request: Request) -> ApprovalEngine:
    return request.app.state.engine


def get_webhook_registry(request: Request) -> WebhookRegistry:
    return request.app.state.webhook_registry


def get_webhook_executor(request: Request) -> WebhookExecutor:
    return request.app.state.webhook_executor


def http_error(error: ApprovalError) -> HTTPException:
    """Translate an engine error into an HTTPException."""
    status_code = 400
    for error_class, code in _STATUS_CODES:
        if isinstance(error, error_class):
            status_code = code
            break
    return HTTPException(
        status_code=status_code,
        detail={"error_code": error.error_code, "message": error.message},
    )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
