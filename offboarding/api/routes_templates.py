# offboarding/api/routes_templates.py
"""
Template and approver directory API routes.
"""

from typing import Dict, Any, Optional, List

from fastapi import APIRouter, Depends, HTTPException

from ..approvals import ApprovalEngine, ApproverRole, TemplateNotFoundError
from .deps import get_engine, http_error

router = APIRouter(tags=["templates"])


@router.get("/templates")
def list_templates(
    department: Optional[str] = None,
    task_type: Optional[str] = None,
    engine: ApprovalEngine = Depends(get_engine),
) -> List[Dict[str, Any]]:
    """List approval templates, optionally filtered by department or task type."""
    templates = engine.list_approval_templates(department=department, task_type=task_type)
    return [t.to_dict() for t in templates]


@router.get("/templates/{template_id}")
def get_template(
    template_id: str,
    engine: ApprovalEngine = Depends(get_engine),
) -> Dict[str, Any]:
    template = engine.get_approval_template(template_id)
    if template is None:
        raise http_error(TemplateNotFoundError(template_id))
    return template.to_dict()


@router.get("/approvers")
def list_approvers(
    role: Optional[str] = None,
    engine: ApprovalEngine = Depends(get_engine),
) -> List[Dict[str, Any]]:
    """List approvers in the directory, optionally by role (HR, IT, Legal, ...)."""
    role_filter = None
    if role:
        try:
            role_filter = ApproverRole(role)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown role: {role}")
    return [a.to_dict() for a in engine.directory.list_all(role=role_filter)]
