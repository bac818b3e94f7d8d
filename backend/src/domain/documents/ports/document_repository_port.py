"""Document Repository Port - Domain interface for the metadata store.

The metadata store is the source of truth for document state. Concurrent
edits from other sessions are last-write-wins at this layer.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from ..models import DocumentRecord


class DocumentRepositoryPort(ABC):
    """Row-level create/update/delete/query on documents.

    All methods raise MetadataError when the underlying store fails.
    """

    @abstractmethod
    async def create(self, record: DocumentRecord) -> DocumentRecord:
        """Insert a new document row and return the stored record."""
        pass

    @abstractmethod
    async def get(self, document_id: UUID) -> Optional[DocumentRecord]:
        """Return the document, or None if it does not exist."""
        pass

    @abstractmethod
    async def update(self, record: DocumentRecord) -> DocumentRecord:
        """Persist the mutable fields of an existing document.

        Raises:
            NotFoundError: If the row no longer exists
        """
        pass

    @abstractmethod
    async def delete(self, document_id: UUID) -> bool:
        """Delete a row. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def list_by_project(self, project_id: UUID) -> List[DocumentRecord]:
        """All documents of a project in creation order."""
        pass
