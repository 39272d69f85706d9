# tests/test_delegation.py
"""
Test per-request delegation.

Delegation rewrites one approver's entry in a single request's copy of
the level; the template and sibling requests stay untouched.
"""

import pytest

from offboarding.approvals import (
    ActionType,
    ApprovalEngine,
    ApprovalLevel,
    ApprovalTemplate,
    ApprovalValidationError,
    ApproverNotFoundError,
    EngineOptions,
    InvalidStateError,
    RequestNotFoundError,
    RequestStatus,
    UnauthorizedApproverError,
)

from conftest import create, indexed_approvers, make_approver


class TestDelegate:
    """Tests for delegating a decision."""

    def test_delegation_moves_pending_work(self, engine):
        request = create(engine, "standard-offboarding")

        result = engine.delegate(request.id, "hr-001", "hr-002", "HR Deputy", "On leave")

        assert engine.get_pending_approvals("hr-001") == []
        assert [r.id for r in engine.get_pending_approvals("hr-002")] == [request.id]
        assert indexed_approvers(engine, request.id) == {"hr-002"}
        assert result.current_level == 1
        assert result.status == RequestStatus.PENDING

    def test_delegation_action_recorded_under_original_approver(self, engine):
        request = create(engine, "standard-offboarding")

        result = engine.delegate(request.id, "hr-001", "hr-002", "HR Deputy", "On leave")

        action = result.history[-1]
        assert action.action == ActionType.DELEGATED
        assert action.approver_id == "hr-001"
        assert action.approver_name == "HR Manager (delegated to HR Deputy)"
        assert action.comments == "On leave"
        assert action.level == 1
        assert result.levels[0].approvers[0].delegate_to == "hr-002"

    def test_delegation_does_not_touch_template_or_siblings(self, engine):
        first = create(engine, "standard-offboarding", task_id="t1")
        second = create(engine, "standard-offboarding", task_id="t2")

        engine.delegate(first.id, "hr-001", "hr-002", "HR Deputy")

        template = engine.get_approval_template("standard-offboarding")
        sibling = engine.get_approval_request(second.id)
        assert template.levels[0].approvers[0].delegate_to is None
        assert sibling.levels[0].approvers[0].delegate_to is None
        assert [r.id for r in engine.get_pending_approvals("hr-001")] == [second.id]

    def test_delegate_can_approve_for_member(self, engine):
        request = create(engine, "standard-offboarding")
        engine.delegate(request.id, "hr-001", "hr-002", "HR Deputy")

        result = engine.approve(request.id, "hr-002", "HR Deputy")

        assert result.current_level == 2
        action = result.history[-1]
        assert action.approver_id == "hr-002"
        assert action.on_behalf_of == "hr-001"

    def test_delegating_member_loses_their_vote(self, engine):
        request = create(engine, "standard-offboarding")
        engine.delegate(request.id, "hr-001", "hr-002", "HR Deputy")

        with pytest.raises(UnauthorizedApproverError):
            engine.approve(request.id, "hr-001", "HR Manager")

    def test_delegated_vote_completes_unanimous_level(self, engine):
        request = create(engine, "unanimous-pair")
        engine.approve(request.id, "x", "X")
        engine.delegate(request.id, "y", "w", "W")

        result = engine.approve(request.id, "w", "W")

        assert result.status == RequestStatus.APPROVED

    def test_partial_delegated_approval_leaves_other_member_indexed(self, engine):
        request = create(engine, "unanimous-pair")
        engine.delegate(request.id, "x", "w", "W")

        engine.approve(request.id, "w", "W")

        assert indexed_approvers(engine, request.id) == {"y"}

    def test_redelegation_moves_from_previous_delegate(self, engine):
        request = create(engine, "standard-offboarding")
        engine.delegate(request.id, "hr-001", "hr-002", "HR Deputy")
        engine.delegate(request.id, "hr-001", "hr-003", "HR Analyst")

        assert engine.get_pending_approvals("hr-002") == []
        assert indexed_approvers(engine, request.id) == {"hr-003"}

    def test_without_delegate_resolution_delegate_is_not_eligible(self, registry, directory, clock):
        engine = ApprovalEngine(
            registry, directory,
            options=EngineOptions(resolve_delegates=False),
            clock=clock,
        )
        request = create(engine, "standard-offboarding")
        engine.delegate(request.id, "hr-001", "hr-002", "HR Deputy")

        with pytest.raises(UnauthorizedApproverError):
            engine.approve(request.id, "hr-002", "HR Deputy")
        assert engine.approve(request.id, "hr-001", "HR Manager").current_level == 2


class TestDelegateFailures:
    """Tests for delegation preconditions."""

    def test_approver_not_on_current_level(self, engine):
        request = create(engine, "standard-offboarding")

        with pytest.raises(ApproverNotFoundError) as exc:
            engine.delegate(request.id, "it-001", "it-002", "IT Deputy")

        assert exc.value.error_code == "APPROVER_NOT_FOUND"
        assert engine.get_approval_request(request.id).history == []

    def test_self_delegation(self, engine):
        request = create(engine, "standard-offboarding")

        with pytest.raises(ApprovalValidationError):
            engine.delegate(request.id, "hr-001", "hr-001", "HR Manager")

    def test_terminal_request(self, engine):
        request = create(engine, "either-or")
        engine.approve(request.id, "x", "X")

        with pytest.raises(InvalidStateError):
            engine.delegate(request.id, "y", "w", "W")

    def test_unknown_request(self, engine):
        with pytest.raises(RequestNotFoundError):
            engine.delegate("missing", "x", "w", "W")

    def test_delegate_to_another_member_of_the_level(self, engine):
        request = create(engine, "unanimous-pair")

        with pytest.raises(ApprovalValidationError, match="already an approver"):
            engine.delegate(request.id, "x", "y", "Y")

        assert indexed_approvers(engine, request.id) == {"x", "y"}
        engine.approve(request.id, "y", "Y")
        assert engine.approve(request.id, "x", "X").status == RequestStatus.APPROVED

    def test_one_delegate_cannot_hold_two_votes(self, engine):
        request = create(engine, "unanimous-pair")
        engine.delegate(request.id, "x", "w", "W")

        with pytest.raises(ApprovalValidationError, match="already holds the vote of x"):
            engine.delegate(request.id, "y", "w", "W")

        assert indexed_approvers(engine, request.id) == {"w", "y"}
        engine.approve(request.id, "w", "W")
        assert engine.approve(request.id, "y", "Y").status == RequestStatus.APPROVED

    def test_delegate_after_own_approval(self, engine):
        request = create(engine, "unanimous-pair")
        engine.approve(request.id, "x", "X")

        with pytest.raises(InvalidStateError, match="already approved"):
            engine.delegate(request.id, "x", "d", "D")

        current = engine.get_approval_request(request.id)
        assert [a.action for a in current.history] == [ActionType.APPROVED]
        assert current.levels[0].approvers[0].delegate_to is None
        assert indexed_approvers(engine, request.id) == {"y"}
        assert engine.get_pending_approvals("d") == []

    def test_delegated_vote_is_cast_after_own_approval(self, engine):
        request = create(engine, "unanimous-pair")
        engine.delegate(request.id, "x", "w", "W")
        engine.approve(request.id, "w", "W")

        # x's vote is spent, so x cannot hand it on again
        with pytest.raises(InvalidStateError):
            engine.delegate(request.id, "x", "v", "V")

        assert indexed_approvers(engine, request.id) == {"y"}


class TestStandingDelegation:
    """A template approver with a standing delegate routes work to the delegate."""

    def test_standing_delegate_is_indexed_and_may_approve(self, registry, engine):
        absent = make_approver("a")
        absent.delegate_to = "b"
        registry.register(ApprovalTemplate(
            id="standing",
            name="Standing delegation",
            description="A is away; B covers",
            levels=[ApprovalLevel(1, [absent], 1)],
        ))

        request = create(engine, "standing")
        assert indexed_approvers(engine, request.id) == {"b"}

        result = engine.approve(request.id, "b", "B")
        assert result.status == RequestStatus.APPROVED
