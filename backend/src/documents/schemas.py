"""Document API request/response schemas"""

from dataclasses import asdict
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.documents.bulk import BulkAction, BulkResult
from domain.documents.document_status import ApprovalLevel, ApprovalStatus, ReviewStatus, WorkflowStage
from domain.documents.filters import DocumentStats
from domain.documents.models import DocumentRecord, UploadBatchResult, UploadStatus
from domain.documents.policy import TypeSuggestion
from domain.documents.visibility import VisibilityLevel, decode


class DocumentResponse(BaseModel):
    """One document as returned by the API"""
    id: UUID
    project_id: UUID
    name: str
    type: str
    note: Optional[str] = None
    file_size_bytes: int
    mime_type: Optional[str] = None
    uploaded_by_user_id: UUID
    uploaded_at: datetime
    approval_status: ApprovalStatus
    review_status: Optional[ReviewStatus] = None
    visibility_level: VisibilityLevel
    to_suppliers: bool = Field(..., description="Shared with contractors")
    to_policyholders: bool = Field(..., description="Shared with customers")
    workflow_stage: WorkflowStage
    status_label: str
    status_color: str
    approved_by_user_id: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    approval_level: Optional[ApprovalLevel] = None
    rejection_reason: Optional[str] = None
    reviewed_by_user_id: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    review_comments: Optional[str] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: DocumentRecord, policy) -> "DocumentResponse":
        to_suppliers, to_policyholders = decode(record.visibility_level)
        return cls(
            id=record.id,
            project_id=record.project_id,
            name=record.name,
            type=record.type,
            note=record.note,
            file_size_bytes=record.file_size_bytes,
            mime_type=record.mime_type,
            uploaded_by_user_id=record.uploaded_by_user_id,
            uploaded_at=record.uploaded_at,
            approval_status=record.approval_status,
            review_status=record.review_status,
            visibility_level=record.visibility_level,
            to_suppliers=to_suppliers,
            to_policyholders=to_policyholders,
            workflow_stage=record.workflow_stage,
            status_label=policy.status_label(record.approval_status),
            status_color=policy.status_color(record.approval_status),
            approved_by_user_id=record.approved_by_user_id,
            approved_at=record.approved_at,
            approval_level=record.approval_level,
            rejection_reason=record.rejection_reason,
            reviewed_by_user_id=record.reviewed_by_user_id,
            reviewed_at=record.reviewed_at,
            review_comments=record.review_comments,
            updated_at=record.updated_at,
        )


class UploadItemResponse(BaseModel):
    """Terminal state of one file of a batch"""
    filename: str
    status: UploadStatus
    progress_percent: int
    error: Optional[str] = None
    document_id: Optional[UUID] = None


class UploadResponse(BaseModel):
    """Response for upload endpoint"""
    items: List[UploadItemResponse]
    documents: List[DocumentResponse]
    success_count: int
    failure_count: int

    @classmethod
    def from_result(cls, result: UploadBatchResult, policy) -> "UploadResponse":
        return cls(
            items=[
                UploadItemResponse(
                    filename=item.filename,
                    status=item.status,
                    progress_percent=item.progress_percent,
                    error=item.error,
                    document_id=item.document_id,
                )
                for item in result.items
            ],
            documents=[DocumentResponse.from_record(d, policy) for d in result.documents],
            success_count=result.success_count,
            failure_count=result.failure_count,
        )


class ApproveRequest(BaseModel):
    to_suppliers: bool = Field(False, description="Release to contractors")
    to_policyholders: bool = Field(False, description="Release to customers")
    approval_level: Optional[ApprovalLevel] = Field(
        None, description="Defaults to the level required for the document type"
    )


class RejectRequest(BaseModel):
    reason: str = Field(..., description="Why the document was rejected (required)")


class ReviewRequest(BaseModel):
    comments: Optional[str] = None


class EditRequest(BaseModel):
    """Fields left out are unchanged. `name` is the base name without extension."""
    name: Optional[str] = None
    type: Optional[str] = None
    note: Optional[str] = None
    to_suppliers: Optional[bool] = None
    to_policyholders: Optional[bool] = None


class SignedUrlResponse(BaseModel):
    url: str
    expires_in: int = Field(..., description="URL lifetime in seconds")


class BulkRequest(BaseModel):
    action: BulkAction
    document_ids: List[UUID] = Field(..., description="Selected document ids")
    comments: Optional[str] = Field(None, description="Review comments (review only)")


class BulkFailureResponse(BaseModel):
    document_id: UUID
    code: str
    error: str


class BulkResponse(BaseModel):
    action: BulkAction
    success_count: int
    failure_count: int
    failures: List[BulkFailureResponse]
    skipped_ids: List[UUID]
    nothing_to_do: bool
    download_urls: Dict[UUID, str]

    @classmethod
    def from_result(cls, result: BulkResult) -> "BulkResponse":
        return cls(
            action=result.action,
            success_count=result.success_count,
            failure_count=result.failure_count,
            failures=[
                BulkFailureResponse(document_id=f.document_id, code=f.code, error=f.error)
                for f in result.failures
            ],
            skipped_ids=result.skipped_ids,
            nothing_to_do=result.nothing_to_do,
            download_urls=result.download_urls,
        )


class StatsResponse(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    available: int
    unreviewed: int

    @classmethod
    def from_stats(cls, stats: DocumentStats) -> "StatsResponse":
        return cls(**asdict(stats))


class DocumentTypeResponse(BaseModel):
    name: str
    requires_approval: bool
    requires_review: bool
    approval_level: ApprovalLevel

    @classmethod
    def from_policy(cls, name: str, policy) -> "DocumentTypeResponse":
        return cls(
            name=name,
            requires_approval=policy.requires_approval(name),
            requires_review=policy.requires_review(name),
            approval_level=policy.required_approval_level(name),
        )


class TypeSuggestionResponse(BaseModel):
    type: str
    confidence: float = Field(..., ge=0, le=1)

    @classmethod
    def from_suggestion(cls, suggestion: TypeSuggestion) -> "TypeSuggestionResponse":
        return cls(type=suggestion.type, confidence=suggestion.confidence)


class ErrorResponse(BaseModel):
    """Error body for domain errors"""
    error: str = Field(..., description="Error code (e.g., validation_error, invalid_transition)")
    message: str
    details: Optional[List[str]] = None
