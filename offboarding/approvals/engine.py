# offboarding/approvals/engine.py
"""
Approval engine.

Owns every approval request and the pending-work index, and applies all
state transitions:

create -> approve* -> (next level | approved)
       -> reject -> rejected
       -> delegate (same level, different assignee)
       -> escalate (timeout sweep or manual) -> escalated

Each transition runs under the request's lock and updates the request and
the index together. Events are published after the lock is released.
"""

import copy
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set, Tuple
from uuid import uuid4

from ..logging import get_engine_logger
from .directory import ApproverDirectory, TemplateRegistry
from .errors import (
    ApprovalError,
    ApprovalValidationError,
    ApproverNotFoundError,
    DuplicateApprovalError,
    InvalidStateError,
    NoEscalationPathError,
    TemplateNotFoundError,
    UnauthorizedApproverError,
)
from .escalation import ClockBasis, elapsed_hours, is_overdue
from .events import (
    ApprovalEvent,
    ApprovalEventType,
    ApprovalListener,
    EventBus,
    make_event,
)
from .models import (
    ActionType,
    ApprovalAction,
    ApprovalLevel,
    ApprovalRequest,
    ApprovalTemplate,
    RequestStatus,
)
from .pending_index import PendingWorkIndex
from .store import RequestStore
from .templates import DEFAULT_TEMPLATE_ID

logger = get_engine_logger()

SYSTEM_ACTOR_ID = "system"
SYSTEM_ACTOR_NAME = "System"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class EngineOptions:
    """
    Behaviour switches for the engine.

    escalated_accepts_actions: escalated requests still take approve/delegate,
        and the escalation target may decide the level.
    clock_basis: what escalation timeouts are measured from.
    resolve_delegates: a member's delegate may approve in the member's place,
        and the member may no longer approve themselves.
    allow_duplicate_approvals: count repeat approvals by the same approver.
    """
    escalated_accepts_actions: bool = True
    clock_basis: ClockBasis = ClockBasis.REQUESTED_AT
    resolve_delegates: bool = True
    allow_duplicate_approvals: bool = False
    default_template_id: str = DEFAULT_TEMPLATE_ID

    @classmethod
    def from_settings(cls, settings) -> "EngineOptions":
        return cls(
            escalated_accepts_actions=settings.escalated_accepts_actions,
            clock_basis=ClockBasis(settings.escalation_clock_basis),
            resolve_delegates=settings.resolve_delegates,
            allow_duplicate_approvals=settings.allow_duplicate_approvals,
            default_template_id=settings.default_template_id,
        )


class ApprovalEngine:
    """
    Multi-level approval workflow engine.

    Stores and registries are injected, so every engine instance is
    isolated from every other one.
    """

    def __init__(
        self,
        templates: TemplateRegistry,
        directory: Optional[ApproverDirectory] = None,
        options: Optional[EngineOptions] = None,
        clock: Optional[Callable[[], datetime]] = None,
        store: Optional[RequestStore] = None,
        index: Optional[PendingWorkIndex] = None,
    ):
        self.templates = templates
        self.directory = directory or ApproverDirectory()
        self.options = options or EngineOptions()
        self.clock = clock or utc_now
        self.store = store or RequestStore()
        self.index = index or PendingWorkIndex()
        self.events = EventBus()

    def subscribe(self, listener: ApprovalListener) -> None:
        """Register a callback for approval events."""
        self.events.subscribe(listener)

    def unsubscribe(self, listener: ApprovalListener) -> bool:
        """Remove a callback; returns False if it was not subscribed."""
        return self.events.unsubscribe(listener)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def create_request(
        self,
        session_id: str,
        task_id: str,
        task_name: str,
        requested_by: str,
        template_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ApprovalRequest:
        """
        Create an approval request from a template.

        Args:
            session_id: Owning offboarding session
            task_id: Task that needs sign-off
            task_name: Display name of the task
            requested_by: Who asked for approval
            template_id: Template to copy levels from (default template if omitted)
            metadata: Free-form data kept on the request

        Returns:
            Snapshot of the created request

        Raises:
            TemplateNotFoundError: if the template ID does not resolve
        """
        template_id = template_id or self.options.default_template_id
        template = self.templates.get(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)

        now = self.clock()
        request = ApprovalRequest(
            id=str(uuid4()),
            session_id=session_id,
            task_id=task_id,
            task_name=task_name,
            requested_by=requested_by,
            requested_at=now,
            levels=template.clone_levels(),
            template_id=template.id,
            level_started_at=now,
            metadata=copy.deepcopy(metadata) if metadata else None,
        )
        self.store.add(request)

        with self.store.locked(request.id) as live:
            notified = self.index.add_many(self._assignees(live.current()), live.id)
            snapshot = copy.deepcopy(live)

        logger.info(
            "approval_request_created",
            request_id=request.id,
            session_id=session_id,
            task_id=task_id,
            template_id=template.id,
            levels=len(request.levels),
        )

        self.events.publish([
            make_event(ApprovalEventType.REQUEST_CREATED, request.id, session_id, 1, now,
                       template_id=template.id, task_id=task_id, task_name=task_name),
            make_event(ApprovalEventType.APPROVAL_REQUIRED, request.id, session_id, 1, now,
                       approver_ids=notified, task_name=task_name),
        ])
        return snapshot

    def approve(
        self,
        request_id: str,
        approver_id: str,
        approver_name: str,
        comments: Optional[str] = None,
    ) -> ApprovalRequest:
        """
        Record an approval at the request's current level.

        Once the level has its required approvals the request moves to the
        next level, or becomes approved after the last one.

        Raises:
            RequestNotFoundError: unknown request
            InvalidStateError: request is not accepting approvals
            UnauthorizedApproverError: approver is not eligible at the current level
            DuplicateApprovalError: approver already approved this level
        """
        events: List[ApprovalEvent] = []

        with self.store.locked(request_id) as request:
            self._require_actionable(request, "approve")

            level = request.current()
            principal_id, is_escalation_target = self._resolve_principal(request, level, approver_id)

            if not self.options.allow_duplicate_approvals:
                if principal_id in self._approved_principals(request, level.level):
                    raise DuplicateApprovalError(approver_id, level.level)

            now = self.clock()
            request.history.append(ApprovalAction(
                id=str(uuid4()),
                approval_request_id=request.id,
                approver_id=approver_id,
                approver_name=approver_name,
                action=ActionType.APPROVED,
                timestamp=now,
                level=level.level,
                comments=comments,
                on_behalf_of=principal_id if principal_id != approver_id else None,
            ))

            approvals = self._approval_count(request, level.level)
            logger.info(
                "approval_recorded",
                request_id=request.id,
                approver_id=approver_id,
                approval_level=level.level,
                approvals=approvals,
                required=level.required_approvals,
            )

            if is_escalation_target or approvals >= level.required_approvals:
                events.extend(self._complete_level(request, now))
            else:
                self.index.remove(approver_id, request.id)
                self.index.remove(principal_id, request.id)

            snapshot = copy.deepcopy(request)

        self.events.publish(events)
        return snapshot

    def reject(
        self,
        request_id: str,
        approver_id: str,
        approver_name: str,
        reason: str,
    ) -> ApprovalRequest:
        """
        Reject a request outright.

        Any approver may reject at any level; eligibility is not checked.

        Raises:
            RequestNotFoundError: unknown request
            ApprovalValidationError: blank reason
            InvalidStateError: request is already approved or rejected
        """
        if not reason or not reason.strip():
            raise ApprovalValidationError("A rejection reason is required")

        with self.store.locked(request_id) as request:
            if request.is_terminal:
                raise InvalidStateError(f"Cannot reject request with status: {request.status.value}")

            now = self.clock()
            request.history.append(ApprovalAction(
                id=str(uuid4()),
                approval_request_id=request.id,
                approver_id=approver_id,
                approver_name=approver_name,
                action=ActionType.REJECTED,
                timestamp=now,
                level=request.current_level,
                comments=reason,
            ))
            request.status = RequestStatus.REJECTED
            request.reason = reason
            cleared = self.index.clear_request(request.id)

            logger.info(
                "approval_request_rejected",
                request_id=request.id,
                approver_id=approver_id,
                approval_level=request.current_level,
            )
            event = make_event(
                ApprovalEventType.REQUEST_REJECTED, request.id, request.session_id,
                request.current_level, now, approver_ids=cleared,
                rejected_by=approver_id, reason=reason,
            )
            snapshot = copy.deepcopy(request)

        self.events.publish([event])
        return snapshot

    def delegate(
        self,
        request_id: str,
        from_approver_id: str,
        to_approver_id: str,
        to_approver_name: str,
        reason: Optional[str] = None,
    ) -> ApprovalRequest:
        """
        Hand one approver's decision on this request to someone else.

        Only this request's copy of the level changes; the template and
        other requests built from it are untouched.

        Raises:
            RequestNotFoundError: unknown request
            InvalidStateError: request is not accepting actions
            InvalidStateError: `from_approver_id` already approved this level
            ApprovalValidationError: delegating to oneself, to another member of
                the level, or to someone already holding another member's vote
            ApproverNotFoundError: `from_approver_id` is not on the current level
        """
        if from_approver_id == to_approver_id:
            raise ApprovalValidationError("An approver cannot delegate to themselves")

        with self.store.locked(request_id) as request:
            self._require_actionable(request, "delegate")

            level = request.current()
            approver = level.find_approver(from_approver_id)
            if approver is None:
                raise ApproverNotFoundError(from_approver_id, level.level)
            self._check_delegation(request, level, from_approver_id, to_approver_id)

            previous_assignee = approver.delegate_to or approver.id
            approver.delegate_to = to_approver_id

            now = self.clock()
            request.history.append(ApprovalAction(
                id=str(uuid4()),
                approval_request_id=request.id,
                approver_id=from_approver_id,
                approver_name=f"{approver.name} (delegated to {to_approver_name})",
                action=ActionType.DELEGATED,
                timestamp=now,
                level=level.level,
                comments=reason,
            ))

            self.index.remove(from_approver_id, request.id)
            self.index.remove(previous_assignee, request.id)
            self.index.add(to_approver_id, request.id)

            logger.info(
                "approval_delegated",
                request_id=request.id,
                from_approver_id=from_approver_id,
                to_approver_id=to_approver_id,
                approval_level=level.level,
            )
            events = [
                make_event(ApprovalEventType.REQUEST_DELEGATED, request.id, request.session_id,
                           level.level, now, approver_ids=[to_approver_id],
                           from_approver_id=from_approver_id, reason=reason),
                make_event(ApprovalEventType.APPROVAL_REQUIRED, request.id, request.session_id,
                           level.level, now, approver_ids=[to_approver_id],
                           task_name=request.task_name),
            ]
            snapshot = copy.deepcopy(request)

        self.events.publish(events)
        return snapshot

    def escalate(self, request_id: str) -> ApprovalRequest:
        """
        Escalate the request's current level to its fallback approver.

        The original approvers keep the request in their queues; the
        escalation target is added alongside them.

        Raises:
            RequestNotFoundError: unknown request
            InvalidStateError: request is terminal or already escalated at this level
            NoEscalationPathError: current level has no `escalate_to`
        """
        with self.store.locked(request_id) as request:
            event = self._escalate_locked(request)
            snapshot = copy.deepcopy(request)

        self.events.publish([event])
        return snapshot

    def check_escalations(self) -> List[ApprovalRequest]:
        """
        Escalate every pending request whose current level has timed out.

        Meant to be called periodically. A failure on one request is logged
        and the sweep carries on with the rest.

        Returns:
            Snapshots of the requests escalated by this sweep
        """
        now = self.clock()
        escalated: List[ApprovalRequest] = []

        for request_id in self.store.ids():
            try:
                with self.store.locked(request_id) as request:
                    if request.status != RequestStatus.PENDING:
                        continue
                    if not is_overdue(request, now, self.options.clock_basis):
                        continue
                    event = self._escalate_locked(request)
                    snapshot = copy.deepcopy(request)
            except ApprovalError as e:
                logger.error(
                    "escalation_failed",
                    request_id=request_id,
                    error_code=e.error_code,
                    error=e.message,
                )
                continue

            self.events.publish([event])
            escalated.append(snapshot)

        logger.info("escalation_sweep_complete", escalated=len(escalated))
        return escalated

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_pending_approvals(self, approver_id: str) -> List[ApprovalRequest]:
        """Requests awaiting this approver, oldest first."""
        result = []
        for request_id in self.index.get(approver_id):
            request = self.get_approval_request(request_id)
            if request is not None:
                result.append(request)
        return result

    def get_approval_request(self, request_id: str) -> Optional[ApprovalRequest]:
        request = self.store.get(request_id)
        if request is None:
            return None
        with self.store.locked(request_id) as live:
            return copy.deepcopy(live)

    def get_session_approvals(self, session_id: str) -> List[ApprovalRequest]:
        """All requests for an offboarding session, in creation order."""
        return [
            self.get_approval_request(r.id)
            for r in self.store.all()
            if r.session_id == session_id
        ]

    def get_approval_template(self, template_id: str) -> Optional[ApprovalTemplate]:
        return self.templates.get(template_id)

    def list_approval_templates(
        self,
        department: Optional[str] = None,
        task_type: Optional[str] = None,
    ) -> List[ApprovalTemplate]:
        return self.templates.list_all(department=department, task_type=task_type)

    # ------------------------------------------------------------------
    # Internals (callers hold the request lock)
    # ------------------------------------------------------------------

    def _assignees(self, level: ApprovalLevel) -> List[str]:
        if self.options.resolve_delegates:
            return level.assignees()
        return level.approver_ids()

    def _require_actionable(self, request: ApprovalRequest, operation: str) -> None:
        allowed = {RequestStatus.PENDING}
        if self.options.escalated_accepts_actions:
            allowed.add(RequestStatus.ESCALATED)
        if request.status not in allowed:
            raise InvalidStateError(f"Cannot {operation} request with status: {request.status.value}")

    def _check_delegation(
        self,
        request: ApprovalRequest,
        level: ApprovalLevel,
        from_approver_id: str,
        to_approver_id: str,
    ) -> None:
        """A delegate must be able to cast exactly one outstanding vote."""
        if from_approver_id in self._approved_principals(request, level.level):
            raise InvalidStateError(
                f"Approver {from_approver_id} already approved level {level.level}"
            )
        if level.find_approver(to_approver_id) is not None:
            raise ApprovalValidationError(
                f"{to_approver_id} is already an approver at level {level.level}"
            )
        holder = level.find_delegator(to_approver_id)
        if holder is not None and holder.id != from_approver_id:
            raise ApprovalValidationError(
                f"{to_approver_id} already holds the vote of {holder.id} at level {level.level}"
            )

    def _resolve_principal(
        self,
        request: ApprovalRequest,
        level: ApprovalLevel,
        approver_id: str,
    ) -> Tuple[str, bool]:
        """
        Work out who an approval counts for.

        Returns:
            (principal_id, acting_as_escalation_target)

        Raises:
            UnauthorizedApproverError: approver has no standing at this level
        """
        member = level.find_approver(approver_id)
        if member is not None:
            if self.options.resolve_delegates and member.delegate_to:
                raise UnauthorizedApproverError(
                    f"Approver {approver_id} delegated level {level.level} to {member.delegate_to}"
                )
            return member.id, False

        if self.options.resolve_delegates:
            delegator = level.find_delegator(approver_id)
            if delegator is not None:
                return delegator.id, False

        if request.status == RequestStatus.ESCALATED and level.escalate_to == approver_id:
            return approver_id, True

        raise UnauthorizedApproverError(
            f"Approver {approver_id} not authorized for level {level.level}"
        )

    def _approved_principals(self, request: ApprovalRequest, level: int) -> Set[str]:
        return {a.principal_id for a in request.actions_at_level(level, ActionType.APPROVED)}

    def _approval_count(self, request: ApprovalRequest, level: int) -> int:
        if self.options.allow_duplicate_approvals:
            return len(request.actions_at_level(level, ActionType.APPROVED))
        return len(self._approved_principals(request, level))

    def _complete_level(self, request: ApprovalRequest, now: datetime) -> List[ApprovalEvent]:
        """Advance past a level whose quorum is met, or finish the request."""
        finished_level = request.current_level
        self.index.clear_request(request.id)

        if request.is_last_level():
            request.current_level = len(request.levels) + 1
            request.status = RequestStatus.APPROVED
            logger.info("approval_request_approved", request_id=request.id, levels=len(request.levels))
            return [make_event(ApprovalEventType.REQUEST_APPROVED, request.id, request.session_id,
                               finished_level, now, task_id=request.task_id)]

        request.current_level += 1
        request.status = RequestStatus.PENDING
        request.level_started_at = now
        notified = self.index.add_many(self._assignees(request.current()), request.id)

        logger.info(
            "approval_level_advanced",
            request_id=request.id,
            from_level=finished_level,
            to_level=request.current_level,
        )
        return [
            make_event(ApprovalEventType.LEVEL_ADVANCED, request.id, request.session_id,
                       request.current_level, now, from_level=finished_level),
            make_event(ApprovalEventType.APPROVAL_REQUIRED, request.id, request.session_id,
                       request.current_level, now, approver_ids=notified,
                       task_name=request.task_name),
        ]

    def _escalate_locked(self, request: ApprovalRequest) -> ApprovalEvent:
        if request.is_terminal:
            raise InvalidStateError(f"Cannot escalate request with status: {request.status.value}")
        if request.status == RequestStatus.ESCALATED:
            raise InvalidStateError(f"Level {request.current_level} is already escalated")

        level = request.current()
        if not level.escalate_to:
            raise NoEscalationPathError(level.level)

        now = self.clock()
        hours = elapsed_hours(request, now, self.options.clock_basis)
        target_name = self.directory.display_name(level.escalate_to)

        request.history.append(ApprovalAction(
            id=str(uuid4()),
            approval_request_id=request.id,
            approver_id=SYSTEM_ACTOR_ID,
            approver_name=SYSTEM_ACTOR_NAME,
            action=ActionType.ESCALATED,
            timestamp=now,
            level=level.level,
            comments=f"Escalated to {target_name} after {hours:.1f} hours",
        ))
        request.status = RequestStatus.ESCALATED
        self.index.add(level.escalate_to, request.id)

        logger.info(
            "approval_escalated",
            request_id=request.id,
            approval_level=level.level,
            escalate_to=level.escalate_to,
            elapsed_hours=round(hours, 2),
        )
        return make_event(
            ApprovalEventType.REQUEST_ESCALATED, request.id, request.session_id,
            level.level, now, approver_ids=[level.escalate_to],
            elapsed_hours=round(hours, 2), task_name=request.task_name,
        )
