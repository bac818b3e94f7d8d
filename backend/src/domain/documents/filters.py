"""Query/filter engine over a cached document collection.

All predicates are AND-combined. Without `sort_by` the input (creation)
order is preserved.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Iterable, List, Optional, Union
from uuid import UUID

from .document_status import ApprovalStatus, ReviewStatus
from .models import DocumentRecord
from .validation import parse_choice

ALL = "all"
ALL_TYPES = "All"


class DocumentTab(str, Enum):
    ALL = "all"
    PENDING = "pending"
    REVIEW = "review"
    APPROVED = "approved"
    REJECTED = "rejected"


class SortField(str, Enum):
    NAME = "name"
    UPLOADED_AT = "uploaded_at"
    SIZE = "size"


DateBound = Union[date, datetime, None]


@dataclass
class DocumentFilters:
    """Filter state of one documents view.

    Attributes:
        search: Case-insensitive substring of name or note
        document_type: Exact type, or "All"
        tab: Status tab
        start: Earliest upload time (a plain date means start of that day)
        end: Latest upload time (a plain date means end of that day)
        uploader: Uploader user id, or "all"
        sort_by: Optional sort field
        descending: Reverse the sort order
    """
    search: str = ""
    document_type: str = ALL_TYPES
    tab: DocumentTab = DocumentTab.ALL
    start: DateBound = None
    end: DateBound = None
    uploader: Union[UUID, str] = ALL
    sort_by: Optional[SortField] = None
    descending: bool = False


@dataclass
class DocumentStats:
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    available: int = 0
    unreviewed: int = 0


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _lower_bound(value: DateBound) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    return _as_utc(value)


def _upper_bound(value: DateBound) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.max)
    return _as_utc(value)


def _matches_tab(document: DocumentRecord, tab: DocumentTab) -> bool:
    if tab == DocumentTab.PENDING:
        return document.approval_status == ApprovalStatus.PENDING
    if tab == DocumentTab.REVIEW:
        return document.review_status == ReviewStatus.UNREVIEWED
    if tab == DocumentTab.APPROVED:
        return document.approval_status == ApprovalStatus.APPROVED
    if tab == DocumentTab.REJECTED:
        return document.approval_status == ApprovalStatus.REJECTED
    return True


def matches(document: DocumentRecord, filters: DocumentFilters) -> bool:
    """True if the document satisfies every predicate of `filters`."""
    needle = filters.search.strip().lower()
    if needle and needle not in document.name.lower() and needle not in (document.note or "").lower():
        return False

    if filters.document_type and filters.document_type != ALL_TYPES and document.type != filters.document_type:
        return False

    if not _matches_tab(document, parse_choice(DocumentTab, filters.tab, "tab")):
        return False

    uploaded_at = _as_utc(document.uploaded_at)
    start = _lower_bound(filters.start)
    if start is not None and uploaded_at < start:
        return False
    end = _upper_bound(filters.end)
    if end is not None and uploaded_at > end:
        return False

    if filters.uploader != ALL and str(document.uploaded_by_user_id) != str(filters.uploader):
        return False

    return True


_SORT_KEYS = {
    SortField.NAME: lambda d: d.name.lower(),
    SortField.UPLOADED_AT: lambda d: _as_utc(d.uploaded_at),
    SortField.SIZE: lambda d: d.file_size_bytes,
}


def apply_filters(documents: Iterable[DocumentRecord], filters: DocumentFilters) -> List[DocumentRecord]:
    """Visible subset of `documents`

    Example:
        >>> apply_filters(docs, DocumentFilters(tab=DocumentTab.PENDING))  # doctest: +SKIP
    """
    result = [d for d in documents if matches(d, filters)]
    if filters.sort_by is not None:
        sort_key = _SORT_KEYS[parse_choice(SortField, filters.sort_by, "sort field")]
        result.sort(key=sort_key, reverse=filters.descending)
    return result


def document_stats(documents: Iterable[DocumentRecord]) -> DocumentStats:
    """Counts per status; approved includes legacy auto-approved documents."""
    stats = DocumentStats()
    for document in documents:
        stats.total += 1
        status = document.approval_status
        if status == ApprovalStatus.PENDING:
            stats.pending += 1
        elif status in (ApprovalStatus.APPROVED, ApprovalStatus.AUTO_APPROVED):
            stats.approved += 1
        elif status == ApprovalStatus.REJECTED:
            stats.rejected += 1
        elif status == ApprovalStatus.AVAILABLE:
            stats.available += 1
        if document.review_status == ReviewStatus.UNREVIEWED:
            stats.unreviewed += 1
    return stats
