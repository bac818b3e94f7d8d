"""Bulk operations over a session's Selection.

Each eligible document is processed independently with bounded
concurrency; failures are collected, never raised. Only a request that is
invalid as a whole (empty selection, unauthorized action) raises.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union
from uuid import UUID

from observability.metrics import bulk_documents_total

from .access import can_manage
from .document_status import ReviewStatus
from .errors import AuthorizationError, DocumentError, NotFoundError, ValidationError
from .models import DocumentRecord
from .policy import PolicyProvider
from .session import DocumentSession
from .validation import parse_choice
from .workflow import WorkflowEngine

logger = logging.getLogger(__name__)

DEFAULT_BULK_CONCURRENCY = 4


class BulkAction(str, Enum):
    DOWNLOAD = "download"
    REVIEW = "review"
    DELETE = "delete"


@dataclass
class BulkFailure:
    document_id: UUID
    error: str
    code: str = DocumentError.code


@dataclass
class BulkResult:
    """Aggregated outcome of one bulk run.

    Attributes:
        skipped_ids: Selected documents that were not eligible for the action
        nothing_to_do: True when no selected document was eligible
        download_urls: Signed URL per document (download only)
    """
    action: BulkAction
    success_count: int = 0
    failures: List[BulkFailure] = field(default_factory=list)
    skipped_ids: List[UUID] = field(default_factory=list)
    nothing_to_do: bool = False
    download_urls: Dict[UUID, str] = field(default_factory=dict)

    @property
    def failure_count(self) -> int:
        return len(self.failures)


class BulkOperationOrchestrator:
    """Runs download, review or delete across the selected documents.

    Example:
        orchestrator = BulkOperationOrchestrator(engine, policy)
        session.selection.select_all(ids)
        result = await orchestrator.run(session, BulkAction.DELETE)
        # result.success_count, result.failures, session.selection is empty
    """

    def __init__(
        self,
        workflow: WorkflowEngine,
        policy: PolicyProvider,
        concurrency: int = DEFAULT_BULK_CONCURRENCY,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.workflow = workflow
        self.policy = policy
        self.concurrency = concurrency

    async def run(
        self,
        session: DocumentSession,
        action: Union[BulkAction, str],
        comments: Optional[str] = None,
    ) -> BulkResult:
        """Apply `action` to the session's Selection.

        The Selection is cleared and multi-select exits once the run
        completes; after a review or delete the session is refreshed.

        Raises:
            ValidationError: If the Selection is empty or the action is unknown
            AuthorizationError: If a non-reviewer requests a bulk review
        """
        action = parse_choice(BulkAction, action, "bulk action")
        actor = session.actor
        if not session.selection.ids:
            raise ValidationError("No documents selected")
        if action == BulkAction.REVIEW and not actor.can_moderate:
            raise AuthorizationError(f"Role {actor.role.value} may not review documents")

        result = BulkResult(action=action)
        selected = session.selected_documents()
        known = {d.id for d in selected}
        for document_id in session.selection.ids - known:
            result.failures.append(
                BulkFailure(document_id, f"Document {document_id} not found", NotFoundError.code)
            )

        eligible = self._eligible(session, action, selected)
        eligible_ids = {d.id for d in eligible}
        result.skipped_ids = [d.id for d in selected if d.id not in eligible_ids]

        if not eligible:
            result.nothing_to_do = True
            logger.info(
                f"Bulk {action.value}: nothing to do ({len(selected)} selected, none eligible)",
                extra={"project_id": session.project_id, "actor_id": actor.user_id},
            )
        else:
            await self._process(session, action, eligible, comments, result)

        session.selection.exit()
        if action != BulkAction.DOWNLOAD and not result.nothing_to_do:
            await session.refresh()

        bulk_documents_total.labels(action=action.value, outcome="success").inc(result.success_count)
        bulk_documents_total.labels(action=action.value, outcome="failure").inc(result.failure_count)
        bulk_documents_total.labels(action=action.value, outcome="skipped").inc(len(result.skipped_ids))

        logger.info(
            f"Bulk {action.value} complete: succeeded={result.success_count}, "
            f"failed={result.failure_count}, skipped={len(result.skipped_ids)}",
            extra={"project_id": session.project_id, "actor_id": actor.user_id},
        )
        return result

    def _eligible(
        self,
        session: DocumentSession,
        action: BulkAction,
        selected: List[DocumentRecord],
    ) -> List[DocumentRecord]:
        if action == BulkAction.REVIEW:
            return [
                d for d in selected
                if d.review_status == ReviewStatus.UNREVIEWED and self.policy.requires_review(d.type)
            ]
        if action == BulkAction.DELETE:
            return [d for d in selected if can_manage(session.actor, d)]
        return list(selected)

    async def _process(
        self,
        session: DocumentSession,
        action: BulkAction,
        documents: List[DocumentRecord],
        comments: Optional[str],
        result: BulkResult,
    ) -> None:
        semaphore = asyncio.Semaphore(self.concurrency)

        async def apply(document: DocumentRecord) -> None:
            async with semaphore:
                try:
                    if action == BulkAction.REVIEW:
                        await self.workflow.review(session.actor, document.id, comments, session.project_id)
                    elif action == BulkAction.DELETE:
                        await self.workflow.delete(session.actor, document.id, session.project_id)
                    else:
                        result.download_urls[document.id] = await self.workflow.download_url(
                            session.actor, document.id, session.project_id
                        )
                except DocumentError as e:
                    logger.warning(
                        f"Bulk {action.value} failed for document {document.id}: {e}",
                        extra={"document_id": document.id, "actor_id": session.actor.user_id},
                    )
                    result.failures.append(BulkFailure(document.id, str(e), e.code))
                    return
                except Exception as e:
                    logger.error(
                        f"Bulk {action.value} failed for document {document.id}: {e}",
                        exc_info=True,
                        extra={"document_id": document.id, "actor_id": session.actor.user_id},
                    )
                    result.failures.append(BulkFailure(document.id, str(e) or type(e).__name__))
                    return
                result.success_count += 1

        await asyncio.gather(*(apply(document) for document in documents))
