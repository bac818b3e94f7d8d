"""User roles and permission hierarchy for the document workflow.

Role Hierarchy (staff, descending permissions):
- ADMIN: Full access, may edit or delete any document
- REVIEWER: Approves, rejects and reviews documents
- MEMBER: Uploads documents, edits and deletes own documents

External audiences (outside the staff hierarchy):
- CONTRACTOR: Sees released documents shared with contractors
- CUSTOMER: Sees released documents shared with customers

Permission Matrix:
┌──────────────────────────┬───────┬──────────┬────────┬────────────┬──────────┐
│ Action                   │ ADMIN │ REVIEWER │ MEMBER │ CONTRACTOR │ CUSTOMER │
├──────────────────────────┼───────┼──────────┼────────┼────────────┼──────────┤
│ Approve / Reject / Review│   ✓   │    ✓     │        │            │          │
│ Edit / Delete any        │   ✓   │          │        │            │          │
│ Edit / Delete own        │   ✓   │    ✓     │   ✓    │     ✓      │    ✓     │
│ View all documents       │   ✓   │    ✓     │   ✓    │            │          │
│ View shared documents    │   ✓   │    ✓     │   ✓    │     ✓      │    ✓     │
└──────────────────────────┴───────┴──────────┴────────┴────────────┴──────────┘
"""

from dataclasses import dataclass
from enum import Enum
from typing import Set
from uuid import UUID


class UserRole(str, Enum):
    """User roles.

    Values are carried in the JWT `role` claim and must match exactly.
    """
    ADMIN = "ADMIN"
    REVIEWER = "REVIEWER"
    MEMBER = "MEMBER"
    CONTRACTOR = "CONTRACTOR"
    CUSTOMER = "CUSTOMER"


# Role hierarchy: Each role includes permissions of all roles below it
ROLE_HIERARCHY = {
    UserRole.ADMIN: {UserRole.ADMIN, UserRole.REVIEWER, UserRole.MEMBER},
    UserRole.REVIEWER: {UserRole.REVIEWER, UserRole.MEMBER},
    UserRole.MEMBER: {UserRole.MEMBER},
    UserRole.CONTRACTOR: {UserRole.CONTRACTOR},
    UserRole.CUSTOMER: {UserRole.CUSTOMER},
}


def has_permission(user_role: UserRole, required_role: UserRole) -> bool:
    """Check if a user role has permission to perform an action requiring a specific role.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.REVIEWER)
        True
        >>> has_permission(UserRole.MEMBER, UserRole.REVIEWER)
        False
        >>> has_permission(UserRole.CONTRACTOR, UserRole.MEMBER)
        False
    """
    return required_role in ROLE_HIERARCHY.get(user_role, set())


def get_allowed_roles(required_role: UserRole) -> Set[UserRole]:
    """Get all roles that have permission to perform an action.

    Example:
        >>> get_allowed_roles(UserRole.REVIEWER) == {UserRole.ADMIN, UserRole.REVIEWER}
        True
    """
    return {role for role, permissions in ROLE_HIERARCHY.items() if required_role in permissions}


@dataclass(frozen=True)
class Actor:
    """The authenticated user driving a workflow session"""
    user_id: UUID
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_staff(self) -> bool:
        return has_permission(self.role, UserRole.MEMBER)

    @property
    def can_moderate(self) -> bool:
        """Approve, reject and review"""
        return has_permission(self.role, UserRole.REVIEWER)

    def owns(self, owner_id: UUID) -> bool:
        return self.user_id == owner_id
