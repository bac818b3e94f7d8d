"""Session-scoped document cache and multi-selection.

One DocumentSession belongs to one authenticated user looking at one
project's documents. The metadata store stays authoritative; the cached
collection is refreshed after every mutation.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set
from uuid import UUID

from auth.roles import Actor

from .access import can_view
from .filters import DocumentFilters, apply_filters
from .models import DocumentRecord
from .ports import DocumentRepositoryPort

logger = logging.getLogger(__name__)


@dataclass
class Selection:
    """Document IDs targeted by a bulk operation"""
    ids: Set[UUID] = field(default_factory=set)
    multi_select_active: bool = False

    def enter(self) -> None:
        self.multi_select_active = True

    def toggle(self, document_id: UUID) -> bool:
        """Add or remove one ID; entering multi-select mode if needed.

        Returns:
            True if the ID is selected afterwards
        """
        self.multi_select_active = True
        if document_id in self.ids:
            self.ids.discard(document_id)
            return False
        self.ids.add(document_id)
        return True

    def select_all(self, document_ids: Iterable[UUID]) -> None:
        self.multi_select_active = True
        self.ids.update(document_ids)

    def clear(self) -> None:
        self.ids.clear()

    def exit(self) -> None:
        self.ids.clear()
        self.multi_select_active = False

    def __contains__(self, document_id: object) -> bool:
        return document_id in self.ids

    def __len__(self) -> int:
        return len(self.ids)


class DocumentSession:
    """Cached documents of a project plus the user's current Selection.

    Example:
        session = DocumentSession(actor, project_id, repository)
        await session.refresh()
        session.selection.toggle(doc_id)
        visible = session.visible(DocumentFilters(tab=DocumentTab.PENDING))
    """

    def __init__(self, actor: Actor, project_id: UUID, repository: DocumentRepositoryPort):
        self.actor = actor
        self.project_id = project_id
        self.repository = repository
        self.documents: List[DocumentRecord] = []
        self.selection = Selection()

    async def refresh(self) -> List[DocumentRecord]:
        """Re-query the metadata store and drop selected IDs that vanished."""
        self.documents = await self.repository.list_by_project(self.project_id)
        present = {document.id for document in self.documents}
        stale = self.selection.ids - present
        if stale:
            logger.debug(f"Dropping {len(stale)} stale ids from selection")
            self.selection.ids -= stale
        return self.documents

    def get(self, document_id: UUID) -> Optional[DocumentRecord]:
        for document in self.documents:
            if document.id == document_id:
                return document
        return None

    def visible(self, filters: Optional[DocumentFilters] = None) -> List[DocumentRecord]:
        """Documents this actor may see, narrowed by `filters`."""
        viewable = [d for d in self.documents if can_view(self.actor, d)]
        return apply_filters(viewable, filters) if filters is not None else viewable

    def selected_documents(self) -> List[DocumentRecord]:
        """Selected documents present in the cache, in collection order."""
        return [d for d in self.documents if d.id in self.selection.ids]
