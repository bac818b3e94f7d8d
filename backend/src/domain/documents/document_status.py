"""Approval and review state machines for project documents.

Approval is the blocking gate: a document either waits for a reviewer
(PENDING) or is immediately AVAILABLE. Review is a separate, non-blocking
quality-control flag that never touches approval status or visibility.
"""

from enum import Enum
from typing import Optional, Dict, List


class ApprovalStatus(str, Enum):
    """Approval status of a document

    State flow:
    (new) → PENDING → APPROVED or REJECTED
    (new) → AVAILABLE
    AUTO_APPROVED is a legacy value that is read but never produced.
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    AUTO_APPROVED = "auto_approved"
    AVAILABLE = "available"


class ReviewStatus(str, Enum):
    """Review status; absent (None) when the type does not require review"""
    UNREVIEWED = "unreviewed"
    REVIEWED = "reviewed"


class WorkflowStage(str, Enum):
    """Human-readable label mirroring approval status"""
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    AUTO_APPROVED = "auto_approved"
    AVAILABLE = "available"


class ApprovalLevel(str, Enum):
    """Authority level a document type needs for approval"""
    STANDARD = "standard"
    SPECIALIST = "specialist"
    MANAGER = "manager"
    FINANCE = "finance"
    DIRECTOR = "director"


ALLOWED_TRANSITIONS: Dict[Optional[ApprovalStatus], List[ApprovalStatus]] = {
    None: [ApprovalStatus.PENDING, ApprovalStatus.AVAILABLE],
    ApprovalStatus.PENDING: [ApprovalStatus.APPROVED, ApprovalStatus.REJECTED],
    ApprovalStatus.APPROVED: [],  # Terminal, re-submission is not supported
    ApprovalStatus.REJECTED: [],  # Terminal
    ApprovalStatus.AUTO_APPROVED: [],
    ApprovalStatus.AVAILABLE: [],
}

REVIEW_TRANSITIONS: Dict[Optional[ReviewStatus], List[ReviewStatus]] = {
    None: [],
    ReviewStatus.UNREVIEWED: [ReviewStatus.REVIEWED],
    ReviewStatus.REVIEWED: [],
}

_STAGES: Dict[ApprovalStatus, WorkflowStage] = {
    ApprovalStatus.PENDING: WorkflowStage.PENDING_APPROVAL,
    ApprovalStatus.APPROVED: WorkflowStage.APPROVED,
    ApprovalStatus.REJECTED: WorkflowStage.REJECTED,
    ApprovalStatus.AUTO_APPROVED: WorkflowStage.AUTO_APPROVED,
    ApprovalStatus.AVAILABLE: WorkflowStage.AVAILABLE,
}

# Statuses under which a document may be shared beyond internal staff
RELEASED_STATUSES = frozenset({
    ApprovalStatus.APPROVED,
    ApprovalStatus.AUTO_APPROVED,
    ApprovalStatus.AVAILABLE,
})


def can_transition(from_status: Optional[ApprovalStatus], to_status: ApprovalStatus) -> bool:
    """Validate if an approval status transition is allowed

    Args:
        from_status: Current status (None for new documents)
        to_status: Target status

    Returns:
        True if transition is allowed, False otherwise

    Example:
        >>> can_transition(ApprovalStatus.PENDING, ApprovalStatus.APPROVED)
        True
        >>> can_transition(ApprovalStatus.APPROVED, ApprovalStatus.PENDING)
        False
    """
    return to_status in ALLOWED_TRANSITIONS.get(from_status, [])


def can_review(review_status: Optional[ReviewStatus]) -> bool:
    """Whether the review transition applies to a document's review status"""
    return ReviewStatus.REVIEWED in REVIEW_TRANSITIONS.get(review_status, [])


def stage_for(status: ApprovalStatus) -> WorkflowStage:
    """Workflow stage label for an approval status"""
    return _STAGES[ApprovalStatus(status)]
