# offboarding/approvals/templates.py
"""
Built-in approvers and approval templates.

Three canonical chain shapes:
- standard-offboarding: HR -> Manager -> IT, one approver per level
- high-risk-offboarding: unanimous HR + Legal, then Executive, then unanimous IT + Security
- fast-track-offboarding: single level, HR or Manager
"""

from typing import List

from .directory import ApproverDirectory, TemplateRegistry
from .models import (
    ApprovalLevel,
    ApprovalTemplate,
    Approver,
    ApproverRole,
    LevelType,
)


DEFAULT_TEMPLATE_ID = "standard-offboarding"

HR_MANAGER = Approver("hr-001", "HR Manager", "hr@company.com", ApproverRole.HR)
HR_DIRECTOR = Approver("hr-director", "HR Director", "hr-director@company.com", ApproverRole.HR)
DEPARTMENT_MANAGER = Approver("manager-001", "Department Manager", "manager@company.com", ApproverRole.MANAGER)
IT_DIRECTOR = Approver("it-001", "IT Director", "it@company.com", ApproverRole.IT)
SECURITY_OFFICER = Approver("security-001", "Security Officer", "security@company.com", ApproverRole.IT)
LEGAL_COUNSEL = Approver("legal-001", "Legal Counsel", "legal@company.com", ApproverRole.LEGAL)
VP_OPERATIONS = Approver("exec-001", "VP of Operations", "vp@company.com", ApproverRole.EXECUTIVE)

DEFAULT_APPROVERS: List[Approver] = [
    HR_MANAGER,
    HR_DIRECTOR,
    DEPARTMENT_MANAGER,
    IT_DIRECTOR,
    SECURITY_OFFICER,
    LEGAL_COUNSEL,
    VP_OPERATIONS,
]


def build_default_templates() -> List[ApprovalTemplate]:
    """Fresh instances of the built-in templates."""
    standard = ApprovalTemplate(
        id=DEFAULT_TEMPLATE_ID,
        name="Standard Offboarding Approval",
        description="Default approval chain for employee offboarding",
        levels=[
            ApprovalLevel(
                level=1,
                approvers=[HR_MANAGER],
                required_approvals=1,
                type=LevelType.SEQUENTIAL,
                escalation_time_hours=24,
                escalate_to=HR_DIRECTOR.id,
            ),
            # Timeout without a target: never auto-escalates
            ApprovalLevel(
                level=2,
                approvers=[DEPARTMENT_MANAGER],
                required_approvals=1,
                type=LevelType.SEQUENTIAL,
                escalation_time_hours=24,
            ),
            ApprovalLevel(
                level=3,
                approvers=[IT_DIRECTOR],
                required_approvals=1,
                type=LevelType.SEQUENTIAL,
            ),
        ],
    )

    high_risk = ApprovalTemplate(
        id="high-risk-offboarding",
        name="High-Risk Offboarding Approval",
        description="Approval chain for sensitive roles or high-risk terminations",
        levels=[
            ApprovalLevel(
                level=1,
                approvers=[HR_MANAGER, LEGAL_COUNSEL],
                required_approvals=2,  # Both must approve
                type=LevelType.PARALLEL,
                escalation_time_hours=12,
            ),
            ApprovalLevel(
                level=2,
                approvers=[VP_OPERATIONS],
                required_approvals=1,
                type=LevelType.SEQUENTIAL,
                escalation_time_hours=24,
            ),
            ApprovalLevel(
                level=3,
                approvers=[IT_DIRECTOR, SECURITY_OFFICER],
                required_approvals=2,
                type=LevelType.PARALLEL,
            ),
        ],
    )

    fast_track = ApprovalTemplate(
        id="fast-track-offboarding",
        name="Fast-Track Offboarding Approval",
        description="Expedited approval for voluntary resignations",
        levels=[
            ApprovalLevel(
                level=1,
                approvers=[HR_MANAGER, DEPARTMENT_MANAGER],
                required_approvals=1,  # Either can approve
                type=LevelType.PARALLEL,
                escalation_time_hours=48,
            ),
        ],
    )

    return [standard, high_risk, fast_track]


def seed_defaults(registry: TemplateRegistry, directory: ApproverDirectory) -> None:
    """Load the built-in approvers and templates."""
    for approver in DEFAULT_APPROVERS:
        directory.register(approver)
    for template in build_default_templates():
        registry.register(template)
