# offboarding/approvals/errors.py
"""
Typed failures raised by the approval engine.

Every error carries an `error_code` so API handlers can map it to a
response without string matching.
"""

from typing import Optional


class ApprovalError(Exception):
    """Base class for approval workflow errors."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class TemplateNotFoundError(ApprovalError):
    """Raised when a template ID does not resolve."""
    def __init__(self, template_id: str):
        super().__init__(f"Approval template not found: {template_id}", "TEMPLATE_NOT_FOUND")
        self.template_id = template_id


class InvalidTemplateError(ApprovalError):
    """Raised when a template fails structural validation."""
    def __init__(self, message: str):
        super().__init__(message, "INVALID_TEMPLATE")


class RequestNotFoundError(ApprovalError):
    """Raised when a request ID does not resolve."""
    def __init__(self, request_id: str):
        super().__init__(f"Approval request not found: {request_id}", "REQUEST_NOT_FOUND")
        self.request_id = request_id


class InvalidStateError(ApprovalError):
    """Raised when the request's status forbids the operation."""
    def __init__(self, message: str, error_code: str = "INVALID_STATE"):
        super().__init__(message, error_code)


class DuplicateApprovalError(InvalidStateError):
    """Raised when an approver approves the same level twice."""
    def __init__(self, approver_id: str, level: int):
        super().__init__(
            f"Approver {approver_id} already approved level {level}",
            "DUPLICATE_APPROVAL",
        )


class UnauthorizedApproverError(ApprovalError):
    """Raised when an actor is not eligible at the current level."""
    def __init__(self, message: str, error_code: str = "UNAUTHORIZED_APPROVER"):
        super().__init__(message, error_code)


class ApproverNotFoundError(UnauthorizedApproverError):
    """Raised when the delegating approver is not on the current level."""
    def __init__(self, approver_id: str, level: int):
        super().__init__(
            f"Approver {approver_id} not found at level {level}",
            "APPROVER_NOT_FOUND",
        )


class NoEscalationPathError(ApprovalError):
    """Raised when the current level has nobody to escalate to."""
    def __init__(self, level: int):
        super().__init__(
            f"No escalation path defined for level {level}",
            "NO_ESCALATION_PATH",
        )


class ApprovalValidationError(ApprovalError):
    """Raised when caller input is unusable."""
    def __init__(self, message: str):
        super().__init__(message, "VALIDATION_ERROR")
