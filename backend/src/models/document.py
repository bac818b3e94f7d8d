"""Document SQLAlchemy model

Document represents one stored artifact of a project: display metadata,
blob location, and the approval/review/visibility workflow state.
"""

from sqlalchemy import Column, Text, BigInteger, Enum as SQLEnum, Index, Uuid

from domain.documents.document_status import ApprovalLevel, ApprovalStatus, ReviewStatus, WorkflowStage
from domain.documents.visibility import VisibilityLevel

from .base import Base, UTCDateTime


def _enum(enum_cls, name):
    # Stored as lower-case values in a VARCHAR + CHECK, portable to SQLite
    return SQLEnum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class Document(Base):
    """Document model representing project files.

    storage_path, uploaded_by_user_id and uploaded_at are written once at
    creation; the repository never updates them.
    """
    __tablename__ = "project_document"
    __table_args__ = (
        Index("ix_project_document_project_id", "project_id"),
        Index("ix_project_document_status", "approval_status", "review_status"),
    )

    id = Column(Uuid, primary_key=True)
    project_id = Column(Uuid, nullable=False)
    name = Column(Text, nullable=False)
    storage_path = Column(Text, nullable=False, unique=True)
    type = Column(Text, nullable=False)
    note = Column(Text, nullable=True)
    file_size_bytes = Column(BigInteger, nullable=False)
    mime_type = Column(Text, nullable=True)
    uploaded_by_user_id = Column(Uuid, nullable=False)
    uploaded_at = Column(UTCDateTime, nullable=False)

    approval_status = Column(_enum(ApprovalStatus, "approvalstatus"), nullable=False)
    review_status = Column(_enum(ReviewStatus, "reviewstatus"), nullable=True)
    visibility_level = Column(_enum(VisibilityLevel, "visibilitylevel"), nullable=False)
    workflow_stage = Column(_enum(WorkflowStage, "workflowstage"), nullable=False)
    approval_level = Column(_enum(ApprovalLevel, "approvallevel"), nullable=True)

    approved_by_user_id = Column(Uuid, nullable=True)
    approved_at = Column(UTCDateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    reviewed_by_user_id = Column(Uuid, nullable=True)
    reviewed_at = Column(UTCDateTime, nullable=True)
    review_comments = Column(Text, nullable=True)
    updated_at = Column(UTCDateTime, nullable=True)

    def to_dict(self):
        """Convert document to dictionary representation"""
        return {
            "id": str(self.id),
            "project_id": str(self.project_id),
            "name": self.name,
            "storage_path": self.storage_path,
            "type": self.type,
            "note": self.note,
            "file_size_bytes": self.file_size_bytes,
            "mime_type": self.mime_type,
            "uploaded_by_user_id": str(self.uploaded_by_user_id),
            "uploaded_at": self.uploaded_at.isoformat() if self.uploaded_at else None,
            "approval_status": self.approval_status.value if self.approval_status else None,
            "review_status": self.review_status.value if self.review_status else None,
            "visibility_level": self.visibility_level.value if self.visibility_level else None,
            "workflow_stage": self.workflow_stage.value if self.workflow_stage else None,
        }
