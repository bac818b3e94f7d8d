"""Domain models for project documents and in-flight uploads"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from .document_status import ApprovalLevel, ApprovalStatus, ReviewStatus, WorkflowStage
from .visibility import VisibilityLevel


@dataclass
class DocumentRecord:
    """One stored artifact of a project.

    `id`, `project_id`, `storage_path`, `uploaded_by_user_id` and
    `uploaded_at` are fixed at creation. Status fields change only through
    the workflow engine.
    """
    id: UUID
    project_id: UUID
    name: str
    storage_path: str
    type: str
    file_size_bytes: int
    uploaded_by_user_id: UUID
    uploaded_at: datetime
    approval_status: ApprovalStatus
    visibility_level: VisibilityLevel
    workflow_stage: WorkflowStage
    note: Optional[str] = None
    mime_type: Optional[str] = None
    review_status: Optional[ReviewStatus] = None
    approved_by_user_id: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    approval_level: Optional[ApprovalLevel] = None
    rejection_reason: Optional[str] = None
    reviewed_by_user_id: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    review_comments: Optional[str] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class IncomingFile:
    """A file handed to the upload pipeline"""
    filename: str
    content_type: Optional[str]
    data: bytes

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class UploadStatus(str, Enum):
    """Status of one file within an in-flight batch

    State flow:
    QUEUED → UPLOADING → PROCESSING → COMPLETE
    UPLOADING or PROCESSING → ERROR
    """
    QUEUED = "queued"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"


TERMINAL_UPLOAD_STATUSES = frozenset({UploadStatus.COMPLETE, UploadStatus.ERROR})


@dataclass
class UploadItem:
    """Progress of one file; ephemeral, never persisted"""
    filename: str
    progress_percent: int = 0
    status: UploadStatus = UploadStatus.QUEUED
    error: Optional[str] = None
    document_id: Optional[UUID] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_UPLOAD_STATUSES


@dataclass
class UploadBatchResult:
    """Outcome of a batch upload once every item is terminal"""
    items: List[UploadItem]
    documents: List[DocumentRecord] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for item in self.items if item.status == UploadStatus.COMPLETE)

    @property
    def failure_count(self) -> int:
        return sum(1 for item in self.items if item.status == UploadStatus.ERROR)
