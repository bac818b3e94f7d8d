"""Unit tests for the approval and review state machines"""

import pytest

from domain.documents.document_status import (
    ALLOWED_TRANSITIONS,
    RELEASED_STATUSES,
    ApprovalStatus,
    ReviewStatus,
    WorkflowStage,
    can_review,
    can_transition,
    stage_for,
)


class TestApprovalStateMachine:
    """Test ApprovalStatus transition validation"""

    def test_approval_status_values(self):
        """Test persisted values are lower-case"""
        assert [s.value for s in ApprovalStatus] == [
            "pending", "approved", "rejected", "auto_approved", "available",
        ]

    def test_new_document_transitions(self):
        """Test new documents start either pending or available"""
        assert can_transition(None, ApprovalStatus.PENDING) is True
        assert can_transition(None, ApprovalStatus.AVAILABLE) is True
        assert can_transition(None, ApprovalStatus.APPROVED) is False
        assert can_transition(None, ApprovalStatus.REJECTED) is False
        assert can_transition(None, ApprovalStatus.AUTO_APPROVED) is False

    def test_pending_to_approved_or_rejected(self):
        """Test PENDING → APPROVED and PENDING → REJECTED"""
        assert can_transition(ApprovalStatus.PENDING, ApprovalStatus.APPROVED) is True
        assert can_transition(ApprovalStatus.PENDING, ApprovalStatus.REJECTED) is True
        assert can_transition(ApprovalStatus.PENDING, ApprovalStatus.AVAILABLE) is False

    @pytest.mark.parametrize("terminal", [
        ApprovalStatus.APPROVED,
        ApprovalStatus.REJECTED,
        ApprovalStatus.AUTO_APPROVED,
        ApprovalStatus.AVAILABLE,
    ])
    def test_no_transition_out_of_terminal_states(self, terminal):
        """Test there is no way back to pending (no re-submission)"""
        for target in ApprovalStatus:
            assert can_transition(terminal, target) is False
        assert ALLOWED_TRANSITIONS[terminal] == []

    def test_every_status_has_transition_entry(self):
        """Test the transition table covers every status"""
        for status in ApprovalStatus:
            assert status in ALLOWED_TRANSITIONS

    def test_pending_transition_targets(self):
        assert ALLOWED_TRANSITIONS[ApprovalStatus.PENDING] == [
            ApprovalStatus.APPROVED,
            ApprovalStatus.REJECTED,
        ]


class TestReviewStateMachine:
    """Test the independent review flag"""

    def test_unreviewed_can_be_reviewed(self):
        assert can_review(ReviewStatus.UNREVIEWED) is True

    def test_reviewed_is_terminal(self):
        assert can_review(ReviewStatus.REVIEWED) is False

    def test_absent_review_status_cannot_be_reviewed(self):
        """Test types without review never enter the review track"""
        assert can_review(None) is False


class TestWorkflowStage:
    """Test stage labels mirror approval status"""

    def test_stage_for_each_status(self):
        assert stage_for(ApprovalStatus.PENDING) == WorkflowStage.PENDING_APPROVAL
        assert stage_for(ApprovalStatus.APPROVED) == WorkflowStage.APPROVED
        assert stage_for(ApprovalStatus.REJECTED) == WorkflowStage.REJECTED
        assert stage_for(ApprovalStatus.AUTO_APPROVED) == WorkflowStage.AUTO_APPROVED
        assert stage_for(ApprovalStatus.AVAILABLE) == WorkflowStage.AVAILABLE

    def test_stage_for_accepts_raw_value(self):
        assert stage_for("pending") == WorkflowStage.PENDING_APPROVAL

    def test_released_statuses(self):
        """Test only pending and rejected documents are unreleased"""
        assert ApprovalStatus.PENDING not in RELEASED_STATUSES
        assert ApprovalStatus.REJECTED not in RELEASED_STATUSES
        assert ApprovalStatus.APPROVED in RELEASED_STATUSES
        assert ApprovalStatus.AVAILABLE in RELEASED_STATUSES
        assert ApprovalStatus.AUTO_APPROVED in RELEASED_STATUSES
