# offboarding/approvals/directory.py
"""
Approver directory and approval template registry.

Both are read-mostly stores owned by whoever builds the engine. Nothing
here is module-global, so each engine (and each test) gets its own.
"""

import copy
import threading
from typing import Dict, Iterable, List, Optional

from .errors import InvalidTemplateError
from .models import ApprovalTemplate, Approver, ApproverRole


class ApproverDirectory:
    """
    Registry of named approvers.

    Entries may carry a standing `delegate_to`, which is copied onto
    template levels built from the directory.
    """

    def __init__(self, approvers: Optional[Iterable[Approver]] = None):
        self._approvers: Dict[str, Approver] = {}
        self._lock = threading.Lock()
        for approver in approvers or []:
            self.register(approver)

    def register(self, approver: Approver) -> Approver:
        with self._lock:
            self._approvers[approver.id] = copy.deepcopy(approver)
        return approver

    def get(self, approver_id: str) -> Optional[Approver]:
        with self._lock:
            approver = self._approvers.get(approver_id)
            return copy.deepcopy(approver) if approver else None

    def list_all(self, role: Optional[ApproverRole] = None) -> List[Approver]:
        with self._lock:
            return [
                copy.deepcopy(a) for a in self._approvers.values()
                if role is None or a.role == role
            ]

    def display_name(self, approver_id: str) -> str:
        """Name for an approver ID, falling back to the ID itself."""
        approver = self.get(approver_id)
        return approver.name if approver else approver_id


def validate_template(template: ApprovalTemplate) -> None:
    """
    Check the structural rules every template must satisfy.

    Raises:
        InvalidTemplateError: on the first rule violated
    """
    if not template.levels:
        raise InvalidTemplateError(f"Template {template.id} has no levels")

    for index, level in enumerate(template.levels, start=1):
        if level.level != index:
            raise InvalidTemplateError(
                f"Template {template.id}: levels must be numbered 1..N without gaps "
                f"(found {level.level} at position {index})"
            )
        if not level.approvers:
            raise InvalidTemplateError(f"Template {template.id}: level {index} has no approvers")

        ids = level.approver_ids()
        if len(set(ids)) != len(ids):
            raise InvalidTemplateError(f"Template {template.id}: duplicate approver at level {index}")

        if not 1 <= level.required_approvals <= len(level.approvers):
            raise InvalidTemplateError(
                f"Template {template.id}: level {index} requires {level.required_approvals} "
                f"approvals but has {len(level.approvers)} approvers"
            )

        if level.escalation_time_hours is not None and level.escalation_time_hours <= 0:
            raise InvalidTemplateError(
                f"Template {template.id}: level {index} escalation time must be positive"
            )


class TemplateRegistry:
    """
    Store of approval templates keyed by ID.

    Templates are copied in and out, so a caller holding a template can
    never change what later requests are built from.
    """

    def __init__(self, templates: Optional[Iterable[ApprovalTemplate]] = None):
        self._templates: Dict[str, ApprovalTemplate] = {}
        self._lock = threading.Lock()
        for template in templates or []:
            self.register(template)

    def register(self, template: ApprovalTemplate) -> ApprovalTemplate:
        """
        Validate and store a template, replacing any with the same ID.

        Requests already created from a replaced template keep their own
        copy of its levels.
        """
        validate_template(template)
        with self._lock:
            self._templates[template.id] = copy.deepcopy(template)
        return template

    def get(self, template_id: str) -> Optional[ApprovalTemplate]:
        with self._lock:
            template = self._templates.get(template_id)
            return copy.deepcopy(template) if template else None

    def list_all(
        self,
        department: Optional[str] = None,
        task_type: Optional[str] = None,
    ) -> List[ApprovalTemplate]:
        """
        List templates, optionally filtered.

        A template without a department (or task type) is generic and
        matches any filter value for that field.
        """
        with self._lock:
            templates = list(self._templates.values())

        result = []
        for template in templates:
            if department and template.department and template.department != department:
                continue
            if task_type and template.task_type and template.task_type != task_type:
                continue
            result.append(copy.deepcopy(template))
        return result
