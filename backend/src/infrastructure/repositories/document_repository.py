"""SQLAlchemy implementation of DocumentRepositoryPort"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from domain.documents.errors import MetadataError, NotFoundError
from domain.documents.models import DocumentRecord
from domain.documents.ports import DocumentRepositoryPort
from models.document import Document as DocumentModel

logger = logging.getLogger(__name__)

# Columns the workflow may change after creation
MUTABLE_FIELDS = (
    "name",
    "type",
    "note",
    "approval_status",
    "review_status",
    "visibility_level",
    "workflow_stage",
    "approval_level",
    "approved_by_user_id",
    "approved_at",
    "rejection_reason",
    "reviewed_by_user_id",
    "reviewed_at",
    "review_comments",
    "updated_at",
)

IMMUTABLE_FIELDS = (
    "id",
    "project_id",
    "storage_path",
    "file_size_bytes",
    "mime_type",
    "uploaded_by_user_id",
    "uploaded_at",
)


def to_record(row: DocumentModel) -> DocumentRecord:
    """Map an ORM row to the domain record."""
    return DocumentRecord(**{name: getattr(row, name) for name in IMMUTABLE_FIELDS + MUTABLE_FIELDS})


class SqlDocumentRepository(DocumentRepositoryPort):
    """Repository for project_document database operations.

    Each call commits its own transaction; the metadata store is
    last-write-wins for concurrent edits.
    """

    def __init__(self, db: Session):
        """Initialize repository with database session.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    async def create(self, record: DocumentRecord) -> DocumentRecord:
        row = DocumentModel(**{name: getattr(record, name) for name in IMMUTABLE_FIELDS + MUTABLE_FIELDS})
        try:
            self.db.add(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("create", record.id, e)

        logger.debug(f"Inserted document row: id={record.id}")
        return to_record(row)

    async def get(self, document_id: UUID) -> Optional[DocumentRecord]:
        try:
            row = self.db.get(DocumentModel, document_id)
        except SQLAlchemyError as e:
            self._fail("get", document_id, e)
        return to_record(row) if row is not None else None

    async def update(self, record: DocumentRecord) -> DocumentRecord:
        try:
            row = self.db.get(DocumentModel, record.id)
            if row is None:
                raise NotFoundError(f"Document {record.id} not found")
            for name in MUTABLE_FIELDS:
                setattr(row, name, getattr(record, name))
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("update", record.id, e)
        return to_record(row)

    async def delete(self, document_id: UUID) -> bool:
        try:
            row = self.db.get(DocumentModel, document_id)
            if row is None:
                return False
            self.db.delete(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("delete", document_id, e)
        return True

    async def list_by_project(self, project_id: UUID) -> List[DocumentRecord]:
        query = (
            select(DocumentModel)
            .where(DocumentModel.project_id == project_id)
            .order_by(DocumentModel.uploaded_at, DocumentModel.name)
        )
        try:
            rows = self.db.execute(query).scalars().all()
        except SQLAlchemyError as e:
            self._fail("list", project_id, e)
        return [to_record(row) for row in rows]

    def _fail(self, operation: str, key: UUID, error: SQLAlchemyError):
        self.db.rollback()
        logger.error(f"Metadata {operation} failed for {key}: {error}", exc_info=True)
        raise MetadataError(f"Metadata store {operation} failed: {type(error).__name__}") from error
