"""Workflow engine for single-document transitions.

Authorization and validation happen before any mutation. The metadata
store is authoritative: every operation re-reads the document, applies the
change and writes it back.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Union
from uuid import UUID

from auth.roles import Actor
from observability.metrics import orphaned_blobs_total, workflow_transitions_total

from .access import can_manage, can_view
from .document_status import (
    RELEASED_STATUSES,
    ApprovalLevel,
    ApprovalStatus,
    ReviewStatus,
    can_review,
    can_transition,
    stage_for,
)
from .errors import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from .models import DocumentRecord
from .policy import PolicyProvider
from .ports import DocumentRepositoryPort, ObjectStoragePort
from .upload_pipeline import utc_now
from .validation import file_extension, parse_choice, rename_preserving_extension, validate_filename
from .visibility import VisibilityLevel

logger = logging.getLogger(__name__)

DOWNLOAD_URL_TTL_SECONDS = 300
PREVIEW_URL_TTL_SECONDS = 3600


class WorkflowEngine:
    """Applies approve, reject, review, edit and delete to one document.

    Passing `project_id` scopes the lookup: a document of another project
    is reported as not found.
    """

    def __init__(
        self,
        storage: ObjectStoragePort,
        repository: DocumentRepositoryPort,
        policy: PolicyProvider,
        download_url_ttl: int = DOWNLOAD_URL_TTL_SECONDS,
        preview_url_ttl: int = PREVIEW_URL_TTL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.storage = storage
        self.repository = repository
        self.policy = policy
        self.download_url_ttl = download_url_ttl
        self.preview_url_ttl = preview_url_ttl
        self._clock = clock

    async def get(self, document_id: UUID, project_id: Optional[UUID] = None) -> DocumentRecord:
        """Load a document.

        Raises:
            NotFoundError: If the document does not exist (in the project)
        """
        document = await self.repository.get(document_id)
        if document is None or (project_id is not None and document.project_id != project_id):
            raise NotFoundError(f"Document {document_id} not found")
        return document

    async def approve(
        self,
        actor: Actor,
        document_id: UUID,
        visibility: Union[VisibilityLevel, str] = VisibilityLevel.INTERNAL,
        approval_level: Optional[Union[ApprovalLevel, str]] = None,
        project_id: Optional[UUID] = None,
    ) -> DocumentRecord:
        """Approve a pending document and release it at `visibility`.

        Args:
            actor: Reviewer or admin
            document_id: Document to approve
            visibility: Audience the document is released to
            approval_level: Level the approval was given at; defaults to the
                level the policy requires for the document type

        Raises:
            AuthorizationError: If actor cannot moderate
            ValidationError: If visibility or approval level is not a known value
            NotFoundError: If the document does not exist
            InvalidTransitionError: If the document is not pending
        """
        self._require_moderator(actor, "approve")
        visibility = parse_choice(VisibilityLevel, visibility, "visibility")
        if approval_level is not None:
            approval_level = parse_choice(ApprovalLevel, approval_level, "approval level")
        document = await self.get(document_id, project_id)

        self._require_transition(document, ApprovalStatus.APPROVED)

        now = self._clock()
        document.approval_status = ApprovalStatus.APPROVED
        document.workflow_stage = stage_for(ApprovalStatus.APPROVED)
        document.visibility_level = visibility
        document.approved_by_user_id = actor.user_id
        document.approved_at = now
        document.approval_level = (
            approval_level
            if approval_level is not None
            else self.policy.required_approval_level(document.type)
        )
        document.updated_at = now

        updated = await self.repository.update(document)
        workflow_transitions_total.labels(action="approve").inc()
        logger.info(
            f"Approved document: id={document_id}, visibility={visibility.value}, "
            f"level={updated.approval_level.value}",
            extra={"document_id": document_id, "actor_id": actor.user_id},
        )
        return updated

    async def reject(
        self,
        actor: Actor,
        document_id: UUID,
        reason: str,
        project_id: Optional[UUID] = None,
    ) -> DocumentRecord:
        """Reject a pending document. The document stays internal.

        Raises:
            AuthorizationError: If actor cannot moderate
            ValidationError: If reason is empty
            NotFoundError: If the document does not exist
            InvalidTransitionError: If the document is not pending
        """
        self._require_moderator(actor, "reject")
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required")

        document = await self.get(document_id, project_id)
        self._require_transition(document, ApprovalStatus.REJECTED)

        document.approval_status = ApprovalStatus.REJECTED
        document.workflow_stage = stage_for(ApprovalStatus.REJECTED)
        document.visibility_level = VisibilityLevel.INTERNAL
        document.rejection_reason = reason
        document.updated_at = self._clock()

        updated = await self.repository.update(document)
        workflow_transitions_total.labels(action="reject").inc()
        logger.info(
            f"Rejected document: id={document_id}",
            extra={"document_id": document_id, "actor_id": actor.user_id},
        )
        return updated

    async def review(
        self,
        actor: Actor,
        document_id: UUID,
        comments: Optional[str] = None,
        project_id: Optional[UUID] = None,
    ) -> DocumentRecord:
        """Mark an unreviewed document reviewed.

        Never touches approval status or visibility.

        Raises:
            AuthorizationError: If actor cannot moderate
            NotFoundError: If the document does not exist
            InvalidTransitionError: If the document is not awaiting review
        """
        self._require_moderator(actor, "review")
        document = await self.get(document_id, project_id)

        if not can_review(document.review_status):
            raise InvalidTransitionError(
                f"Document {document_id} is not awaiting review "
                f"(review_status={document.review_status.value if document.review_status else None})"
            )

        now = self._clock()
        document.review_status = ReviewStatus.REVIEWED
        document.reviewed_by_user_id = actor.user_id
        document.reviewed_at = now
        document.review_comments = (comments or "").strip() or None
        document.updated_at = now

        updated = await self.repository.update(document)
        workflow_transitions_total.labels(action="review").inc()
        logger.info(
            f"Reviewed document: id={document_id}",
            extra={"document_id": document_id, "actor_id": actor.user_id},
        )
        return updated

    async def edit(
        self,
        actor: Actor,
        document_id: UUID,
        name: Optional[str] = None,
        document_type: Optional[str] = None,
        note: Optional[str] = None,
        visibility: Optional[Union[VisibilityLevel, str]] = None,
        project_id: Optional[UUID] = None,
    ) -> DocumentRecord:
        """Edit display metadata. Fields left as None are unchanged.

        `name` is the new base name; the original extension is kept. An
        empty `note` clears the note. Approval and review status never
        change, even when the type changes.

        Raises:
            NotFoundError: If the document does not exist
            AuthorizationError: If actor is neither owner nor admin, or may
                not upload the new type
            ValidationError: If the new name, type or visibility is invalid
            InvalidTransitionError: If visibility is widened on an
                unreleased (pending or rejected) document, or an unreleased
                document is moved to a type that needs no approval
        """
        document = await self.get(document_id, project_id)
        if not can_manage(actor, document):
            raise AuthorizationError(f"Only the owner or an admin may edit document {document_id}")

        if name is not None:
            new_name = rename_preserving_extension(document.name, name)
            extension = file_extension(document.name)
            base_name = new_name[:len(new_name) - len(extension)] if extension else new_name
            if not base_name.strip():
                raise ValidationError("Invalid name: name cannot be empty")
            is_valid, error = validate_filename(new_name)
            if not is_valid:
                raise ValidationError(f"Invalid name: {error}")
            document.name = new_name

        if document_type is not None:
            if not self.policy.is_known_type(document_type):
                raise ValidationError(f"Unknown document type: {document_type!r}")
            if not self.policy.may_upload(document_type, actor.role):
                raise AuthorizationError(
                    f"Role {actor.role.value} may not use document type {document_type!r}"
                )
            # PENDING and REJECTED only exist for types that require approval
            if (
                document.approval_status not in RELEASED_STATUSES
                and not self.policy.requires_approval(document_type)
            ):
                raise InvalidTransitionError(
                    f"Document {document_id} is {document.approval_status.value}; "
                    f"type {document_type!r} does not require approval"
                )
            document.type = document_type

        if note is not None:
            document.note = note.strip() or None

        if visibility is not None:
            visibility = parse_choice(VisibilityLevel, visibility, "visibility")
            if (
                visibility != document.visibility_level
                and document.approval_status not in RELEASED_STATUSES
            ):
                raise InvalidTransitionError(
                    f"Document {document_id} is {document.approval_status.value} "
                    f"and must stay internal"
                )
            document.visibility_level = visibility

        document.updated_at = self._clock()
        updated = await self.repository.update(document)
        workflow_transitions_total.labels(action="edit").inc()
        logger.info(
            f"Edited document: id={document_id}",
            extra={"document_id": document_id, "actor_id": actor.user_id},
        )
        return updated

    async def delete(
        self,
        actor: Actor,
        document_id: UUID,
        project_id: Optional[UUID] = None,
    ) -> None:
        """Delete the metadata row, then the blob.

        Raises:
            NotFoundError: If the document does not exist
            AuthorizationError: If actor is neither owner nor admin
            StorageError: If the blob could not be deleted after the row was
                removed (the blob is logged as orphaned)
        """
        document = await self.get(document_id, project_id)
        if not can_manage(actor, document):
            raise AuthorizationError(f"Only the owner or an admin may delete document {document_id}")

        if not await self.repository.delete(document_id):
            raise NotFoundError(f"Document {document_id} not found")

        try:
            await self.storage.delete(document.storage_path)
        except StorageError:
            orphaned_blobs_total.labels(cause="blob_delete").inc()
            logger.warning(
                f"Orphaned blob after deleting document row: storage_path={document.storage_path}",
                extra={
                    "event": "orphaned_blob",
                    "storage_path": document.storage_path,
                    "document_id": document_id,
                },
            )
            raise

        workflow_transitions_total.labels(action="delete").inc()
        logger.info(
            f"Deleted document: id={document_id}, storage_path={document.storage_path}",
            extra={"document_id": document_id, "actor_id": actor.user_id},
        )

    async def download_url(
        self,
        actor: Actor,
        document_id: UUID,
        project_id: Optional[UUID] = None,
    ) -> str:
        """Signed download URL, issued per request and never cached."""
        document = await self._viewable(actor, document_id, project_id)
        return await self.storage.signed_url(document.storage_path, self.download_url_ttl)

    async def preview_url(
        self,
        actor: Actor,
        document_id: UUID,
        project_id: Optional[UUID] = None,
    ) -> str:
        """Signed preview URL with the longer preview lifetime."""
        document = await self._viewable(actor, document_id, project_id)
        return await self.storage.signed_url(document.storage_path, self.preview_url_ttl)

    async def _viewable(
        self,
        actor: Actor,
        document_id: UUID,
        project_id: Optional[UUID],
    ) -> DocumentRecord:
        document = await self.get(document_id, project_id)
        if not can_view(actor, document):
            raise AuthorizationError(f"Document {document_id} is not shared with this user")
        return document

    @staticmethod
    def _require_moderator(actor: Actor, action: str) -> None:
        if not actor.can_moderate:
            raise AuthorizationError(f"Role {actor.role.value} may not {action} documents")

    @staticmethod
    def _require_transition(document: DocumentRecord, target: ApprovalStatus) -> None:
        if not can_transition(document.approval_status, target):
            raise InvalidTransitionError(
                f"Invalid transition: {document.approval_status.value} -> {target.value}"
            )
