"""Document type policy: which types need approval, which need review.

The workflow never hard-codes type rules; it asks an injected
PolicyProvider. CatalogPolicyProvider is the configuration-driven
implementation, NullPolicyProvider models projects without any approval
or review workflow.

The catalog also gates which roles may upload a type and proposes types
for a filename from keyword rules.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from auth.roles import UserRole, get_allowed_roles

from .document_status import ApprovalLevel, ApprovalStatus
from .validation import file_extension

logger = logging.getLogger(__name__)


DEFAULT_APPROVAL_TYPES = (
    "Contract",
    "Quote",
    "Invoice",
    "Insurance Document",
    "Certificate",
    "Policy Document",
    "Claims Document",
)

DEFAULT_REVIEW_TYPES = (
    "Report",
    "Photos - Before",
    "Photos - During",
    "Photos - After",
    "Photos - Damage",
    "Technical Drawing",
    "Specification",
    "Correspondence",
    "Schedule",
    "Other",
)

DEFAULT_APPROVAL_LEVELS: Dict[str, ApprovalLevel] = {
    "Contract": ApprovalLevel.MANAGER,
    "Quote": ApprovalLevel.MANAGER,
    "Invoice": ApprovalLevel.FINANCE,
    "Policy Document": ApprovalLevel.DIRECTOR,
    "Claims Document": ApprovalLevel.DIRECTOR,
    "Certificate": ApprovalLevel.SPECIALIST,
    "Technical Drawing": ApprovalLevel.SPECIALIST,
}

ANY_ROLE = "*"

_STAFF = get_allowed_roles(UserRole.MEMBER)

# Types missing here may be uploaded by any role; ADMIN may upload every type
DEFAULT_UPLOAD_ROLES: Dict[str, FrozenSet[UserRole]] = {
    "Contract": frozenset(_STAFF),
    "Policy Document": frozenset(_STAFF),
    "Quote": frozenset(_STAFF | {UserRole.CONTRACTOR}),
    "Invoice": frozenset(_STAFF | {UserRole.CONTRACTOR}),
    "Certificate": frozenset(_STAFF | {UserRole.CONTRACTOR}),
    "Technical Drawing": frozenset(_STAFF | {UserRole.CONTRACTOR}),
    "Claims Document": frozenset(_STAFF | {UserRole.CUSTOMER}),
    "Insurance Document": frozenset(_STAFF | {UserRole.CUSTOMER}),
}

# type -> (filename keywords, confidence when every keyword matches)
DEFAULT_SUGGESTION_RULES: Dict[str, Tuple[Tuple[str, ...], float]] = {
    "Photos - Damage": (("damage", "broken", "crack", "leak", "fire", "flood"), 0.9),
    "Photos - Before": (("before",), 0.8),
    "Photos - During": (("during", "progress"), 0.8),
    "Photos - After": (("after", "complete"), 0.8),
    "Report": (("report", "survey", "condition", "structural"), 0.9),
    "Quote": (("quote", "estimate", "price", "cost", "tender"), 0.8),
    "Invoice": (("invoice", "bill", "receipt"), 0.9),
    "Contract": (("contract", "agreement"), 0.9),
    "Certificate": (("certificate", "gas", "safety", "cp12", "eicr", "electrical"), 0.95),
    "Claims Document": (("claim", "form", "application"), 0.9),
    "Technical Drawing": (("drawing", "plan", "elevation", "dwg"), 0.8),
    "Schedule": (("schedule", "programme"), 0.8),
    "Correspondence": (("letter", "email", "correspondence"), 0.8),
}

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp", ".heic"})
IMAGE_SUGGESTIONS = (("Photos - Damage", 0.6), ("Photos - During", 0.5))

FALLBACK_TYPE = "Other"
MAX_SUGGESTIONS = 3


@dataclass(frozen=True)
class TypeSuggestion:
    """A document type proposed for a filename"""
    type: str
    confidence: float


STATUS_LABELS: Dict[ApprovalStatus, str] = {
    ApprovalStatus.PENDING: "Pending Approval",
    ApprovalStatus.APPROVED: "Approved",
    ApprovalStatus.REJECTED: "Rejected",
    ApprovalStatus.AUTO_APPROVED: "Auto Approved",
    ApprovalStatus.AVAILABLE: "Available",
}

STATUS_COLORS: Dict[ApprovalStatus, str] = {
    ApprovalStatus.PENDING: "yellow",
    ApprovalStatus.APPROVED: "green",
    ApprovalStatus.REJECTED: "red",
    ApprovalStatus.AUTO_APPROVED: "green",
    ApprovalStatus.AVAILABLE: "blue",
}


class PolicyProvider(ABC):
    """Port answering approval/review questions for a document type."""

    @abstractmethod
    def requires_approval(self, document_type: str) -> bool:
        """True if documents of this type start in the blocking PENDING state."""

    @abstractmethod
    def requires_review(self, document_type: str) -> bool:
        """True if documents of this type carry an UNREVIEWED review flag."""

    @abstractmethod
    def required_approval_level(self, document_type: str) -> ApprovalLevel:
        """Authority level an approver needs for this type."""

    def is_known_type(self, document_type: str) -> bool:
        return bool(document_type)

    def document_types(self) -> List[str]:
        return []

    def may_upload(self, document_type: str, role: Union[UserRole, str, None]) -> bool:
        """True if `role` may upload (or retype a document to) `document_type`."""
        return True

    def allowed_types(self, role: Union[UserRole, str, None] = None) -> List[str]:
        """Catalog types `role` may upload, in catalog order."""
        return [t for t in self.document_types() if self.may_upload(t, role)]

    def suggest_types(
        self,
        filename: str,
        role: Union[UserRole, str, None] = None,
    ) -> List[TypeSuggestion]:
        """Likely document types for a filename, most confident first."""
        return []

    # Presentation helpers, not used by the workflow itself

    def status_label(self, status: Union[ApprovalStatus, str, None]) -> str:
        try:
            return STATUS_LABELS[ApprovalStatus(status)]
        except ValueError:
            return "Unknown"

    def status_color(self, status: Union[ApprovalStatus, str, None]) -> str:
        try:
            return STATUS_COLORS[ApprovalStatus(status)]
        except ValueError:
            return "gray"


class CatalogPolicyProvider(PolicyProvider):
    """Policy backed by a fixed catalog of document types.

    Types listed in neither `approval_types` nor `review_types` are plain
    types: immediately available and self-approved by the uploader.

    Example:
        policy = CatalogPolicyProvider(
            document_types=["Contract", "Report", "Misc"],
            approval_types=["Contract"],
            review_types=["Report"],
        )
        policy.requires_approval("Contract")  # True
        policy.requires_review("Misc")        # False
    """

    def __init__(
        self,
        document_types: Iterable[str],
        approval_types: Iterable[str] = (),
        review_types: Iterable[str] = (),
        approval_levels: Optional[Mapping[str, Union[ApprovalLevel, str]]] = None,
        default_level: ApprovalLevel = ApprovalLevel.STANDARD,
        upload_roles: Optional[Mapping[str, Iterable[Union[UserRole, str]]]] = None,
        suggestion_rules: Optional[Mapping[str, Tuple[Sequence[str], float]]] = None,
    ):
        self._types = list(dict.fromkeys(document_types))
        self._approval = frozenset(approval_types)
        self._review = frozenset(review_types)
        self._levels = {t: ApprovalLevel(level) for t, level in (approval_levels or {}).items()}
        self._default_level = default_level
        self._upload_roles = {
            t: _parse_roles(roles) for t, roles in (upload_roles or {}).items()
        }
        self._suggestions = {
            t: (tuple(k.lower() for k in keywords), float(confidence))
            for t, (keywords, confidence) in (suggestion_rules or {}).items()
        }

        overlap = self._approval & self._review
        if overlap:
            # Approval wins over review when a type is configured for both
            logger.warning(f"Document types configured for both approval and review: {sorted(overlap)}")

        referenced = self._approval | self._review | set(self._levels) | set(self._upload_roles) | set(self._suggestions)
        unknown = referenced - set(self._types)
        if unknown:
            raise ValueError(f"Policy references unknown document types: {sorted(unknown)}")

    def requires_approval(self, document_type: str) -> bool:
        return document_type in self._approval

    def requires_review(self, document_type: str) -> bool:
        return document_type in self._review

    def required_approval_level(self, document_type: str) -> ApprovalLevel:
        return self._levels.get(document_type, self._default_level)

    def is_known_type(self, document_type: str) -> bool:
        return document_type in self._types

    def document_types(self) -> List[str]:
        return list(self._types)

    def may_upload(self, document_type: str, role: Union[UserRole, str, None]) -> bool:
        allowed = self._upload_roles.get(document_type)
        if allowed is None:
            return True
        role = _as_role(role)
        return role is not None and (role == UserRole.ADMIN or role in allowed)

    def suggest_types(
        self,
        filename: str,
        role: Union[UserRole, str, None] = None,
    ) -> List[TypeSuggestion]:
        """Rank catalog types by keyword hits in the filename.

        Image files also suggest the photo types. A type scores its rule's
        confidence scaled by the share of its keywords found. At most three
        types are returned, followed by the fallback type ("Other") when the
        catalog has one. With `role`, types that role may not upload are
        left out.

        Example:
            >>> policy.suggest_types("gas_safety_certificate.pdf")  # doctest: +SKIP
            [TypeSuggestion(type='Certificate', confidence=0.475), TypeSuggestion(type='Other', confidence=0.1)]
        """
        name = (filename or "").lower()
        scores: Dict[str, float] = {}

        def eligible(document_type: str) -> bool:
            return self.is_known_type(document_type) and (role is None or self.may_upload(document_type, role))

        def offer(document_type: str, confidence: float) -> None:
            if eligible(document_type) and confidence > scores.get(document_type, 0.0):
                scores[document_type] = confidence

        if file_extension(name) in IMAGE_EXTENSIONS:
            for document_type, confidence in IMAGE_SUGGESTIONS:
                offer(document_type, confidence)

        for document_type, (keywords, confidence) in self._suggestions.items():
            hits = sum(1 for keyword in keywords if keyword in name)
            if hits:
                offer(document_type, confidence * hits / len(keywords))

        ranked = sorted(scores.items(), key=lambda kv: (-kv[1], self._types.index(kv[0])))
        suggestions = [TypeSuggestion(t, round(c, 3)) for t, c in ranked[:MAX_SUGGESTIONS]]

        if FALLBACK_TYPE not in {s.type for s in suggestions} and eligible(FALLBACK_TYPE):
            suggestions.append(TypeSuggestion(FALLBACK_TYPE, 0.1))
        return suggestions

    @classmethod
    def default(cls) -> "CatalogPolicyProvider":
        """Built-in catalog used when no policy file is configured."""
        approval = list(DEFAULT_APPROVAL_TYPES)
        review = list(DEFAULT_REVIEW_TYPES)
        return cls(
            document_types=approval + review,
            approval_types=approval,
            review_types=review,
            approval_levels=DEFAULT_APPROVAL_LEVELS,
            upload_roles=DEFAULT_UPLOAD_ROLES,
            suggestion_rules=DEFAULT_SUGGESTION_RULES,
        )

    @classmethod
    def from_mapping(cls, data: Mapping) -> "CatalogPolicyProvider":
        """Build a policy from a parsed configuration mapping.

        Expected shape:
            {
                "document_types": ["Contract", "Report", ...],
                "approval_types": ["Contract"],
                "review_types": ["Report"],
                "approval_levels": {"Contract": "manager"},
                "default_level": "standard",
                "upload_roles": {"Contract": ["MEMBER", "REVIEWER"], "Report": ["*"]},
                "suggestion_keywords": {"Contract": ["contract", "agreement"]}
            }

        `document_types` may be omitted, in which case the union of the
        approval and review lists is used. Types without `upload_roles`
        (or listing "*") may be uploaded by any role. Keyword rules read
        from a file all carry a confidence of 0.9.
        """
        approval = list(data.get("approval_types", []))
        review = list(data.get("review_types", []))
        types = data.get("document_types") or approval + review
        keywords = data.get("suggestion_keywords", {})
        return cls(
            document_types=types,
            approval_types=approval,
            review_types=review,
            approval_levels=data.get("approval_levels", {}),
            default_level=ApprovalLevel(data.get("default_level", ApprovalLevel.STANDARD.value)),
            upload_roles=data.get("upload_roles", {}),
            suggestion_rules={t: (words, 0.9) for t, words in keywords.items()},
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "CatalogPolicyProvider":
        """Load a policy catalog from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        policy = cls.from_mapping(data)
        logger.info(f"Loaded document policy from {path}: {len(policy.document_types())} types")
        return policy


class NullPolicyProvider(PolicyProvider):
    """No approval or review for any type; every upload is available at once."""

    def requires_approval(self, document_type: str) -> bool:
        return False

    def requires_review(self, document_type: str) -> bool:
        return False

    def required_approval_level(self, document_type: str) -> ApprovalLevel:
        return ApprovalLevel.STANDARD


def _as_role(role: Union[UserRole, str, None]) -> Optional[UserRole]:
    if role is None:
        return None
    try:
        return UserRole(role)
    except ValueError:
        return None


def _parse_roles(roles: Iterable[Union[UserRole, str]]) -> Optional[FrozenSet[UserRole]]:
    """Role set for a type, or None when any role may upload it."""
    roles = list(roles)
    if ANY_ROLE in roles:
        return None
    return frozenset(UserRole(role) for role in roles)
