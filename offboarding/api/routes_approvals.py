# offboarding/api/routes_approvals.py
"""
Approval request API routes.

Endpoints for creating requests, recording decisions, and listing
outstanding work.
"""

from typing import Dict, Any, Optional, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..approvals import ApprovalEngine, ApprovalError, RequestNotFoundError
from .deps import get_engine, http_error

router = APIRouter(prefix="/approvals", tags=["approvals"])


class CreateApprovalRequest(BaseModel):
    """Request to start an approval chain for a task."""
    session_id: str
    task_id: str
    task_name: str
    requested_by: str
    template_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ApproveBody(BaseModel):
    """Approval decision."""
    approver_id: str
    approver_name: str
    comments: Optional[str] = None


class RejectBody(BaseModel):
    """Rejection decision."""
    approver_id: str
    approver_name: str
    reason: str = Field(..., min_length=1)


class DelegateBody(BaseModel):
    """Delegation of one approver's decision."""
    from_approver_id: str
    to_approver_id: str
    to_approver_name: str
    reason: Optional[str] = None


@router.post("", status_code=201)
def create_request(
    body: CreateApprovalRequest,
    engine: ApprovalEngine = Depends(get_engine),
) -> Dict[str, Any]:
    """Create an approval request from a template."""
    try:
        request = engine.create_request(
            session_id=body.session_id,
            task_id=body.task_id,
            task_name=body.task_name,
            requested_by=body.requested_by,
            template_id=body.template_id,
            metadata=body.metadata,
        )
    except ApprovalError as e:
        raise http_error(e)
    return request.to_dict()


@router.post("/escalations/check")
def check_escalations(engine: ApprovalEngine = Depends(get_engine)) -> Dict[str, Any]:
    """Run the escalation sweep now."""
    escalated = engine.check_escalations()
    return {
        "escalated_count": len(escalated),
        "escalated": [r.to_dict() for r in escalated],
    }


@router.get("/session/{session_id}")
def get_session_approvals(
    session_id: str,
    engine: ApprovalEngine = Depends(get_engine),
) -> List[Dict[str, Any]]:
    return [r.to_dict() for r in engine.get_session_approvals(session_id)]


@router.get("/pending/{approver_id}")
def get_pending_approvals(
    approver_id: str,
    engine: ApprovalEngine = Depends(get_engine),
) -> List[Dict[str, Any]]:
    return [r.to_dict() for r in engine.get_pending_approvals(approver_id)]


@router.get("/{request_id}")
def get_request(
    request_id: str,
    engine: ApprovalEngine = Depends(get_engine),
) -> Dict[str, Any]:
    request = engine.get_approval_request(request_id)
    if request is None:
        raise http_error(RequestNotFoundError(request_id))
    return request.to_dict()


@router.post("/{request_id}/approve")
def approve(
    request_id: str,
    body: ApproveBody,
    engine: ApprovalEngine = Depends(get_engine),
) -> Dict[str, Any]:
    try:
        request = engine.approve(request_id, body.approver_id, body.approver_name, body.comments)
    except ApprovalError as e:
        raise http_error(e)
    return request.to_dict()


@router.post("/{request_id}/reject")
def reject(
    request_id: str,
    body: RejectBody,
    engine: ApprovalEngine = Depends(get_engine),
) -> Dict[str, Any]:
    try:
        request = engine.reject(request_id, body.approver_id, body.approver_name, body.reason)
    except ApprovalError as e:
        raise http_error(e)
    return request.to_dict()


@router.post("/{request_id}/delegate")
def delegate(
    request_id: str,
    body: DelegateBody,
    engine: ApprovalEngine = Depends(get_engine),
) -> Dict[str, Any]:
    try:
        request = engine.delegate(
            request_id,
            body.from_approver_id,
            body.to_approver_id,
            body.to_approver_name,
            body.reason,
        )
    except ApprovalError as e:
        raise http_error(e)
    return request.to_dict()


@router.post("/{request_id}/escalate")
def escalate(
    request_id: str,
    engine: ApprovalEngine = Depends(get_engine),
) -> Dict[str, Any]:
    try:
        request = engine.escalate(request_id)
    except ApprovalError as e:
        raise http_error(e)
    return request.to_dict()
