"""Who may see, edit and moderate a document."""

from auth.roles import Actor, UserRole

from .document_status import RELEASED_STATUSES
from .models import DocumentRecord
from .visibility import VisibilityLevel

# Visibility levels an external audience may see once a document is released
AUDIENCE_LEVELS = {
    UserRole.CONTRACTOR: frozenset({VisibilityLevel.CONTRACTORS, VisibilityLevel.PUBLIC}),
    UserRole.CUSTOMER: frozenset({VisibilityLevel.CUSTOMERS, VisibilityLevel.PUBLIC}),
}


def can_manage(actor: Actor, document: DocumentRecord) -> bool:
    """Owner or admin: edit and delete"""
    return actor.is_admin or actor.owns(document.uploaded_by_user_id)


def can_view(actor: Actor, document: DocumentRecord) -> bool:
    """Staff see everything; external audiences see released documents shared with them."""
    if actor.is_staff or actor.owns(document.uploaded_by_user_id):
        return True
    if document.approval_status not in RELEASED_STATUSES:
        return False
    return document.visibility_level in AUDIENCE_LEVELS.get(actor.role, frozenset())
