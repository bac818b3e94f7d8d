"""Batch upload pipeline.

Validates a batch of files up front, then writes each file as a two-phase
sequence (blob first, metadata row second) with bounded concurrency.
Per-file failures are isolated to that file's UploadItem.
"""

import asyncio
import logging
import secrets
import time
from dataclasses import replace
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Dict, Iterable, List, Optional, Sequence
from uuid import UUID, uuid4

from auth.roles import Actor
from observability.metrics import (
    document_uploads_total,
    orphaned_blobs_total,
    upload_batch_rejections_total,
    upload_duration_seconds,
)

from .document_status import ApprovalStatus, ReviewStatus, WorkflowStage
from .errors import AuthorizationError, ValidationError
from .models import DocumentRecord, IncomingFile, UploadBatchResult, UploadItem, UploadStatus
from .policy import PolicyProvider
from .ports import DocumentRepositoryPort, ObjectStoragePort
from .validation import (
    MAX_BATCH_FILES,
    MAX_FILE_SIZE,
    file_extension,
    is_supported_mime_type,
    validate_file_size,
    validate_filename,
)
from .visibility import VisibilityLevel, encode

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[UploadItem], None]

PROGRESS_UPLOADING = 25
PROGRESS_PROCESSING = 75
PROGRESS_COMPLETE = 100

DEFAULT_CONCURRENCY = 4


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_storage_path(project_id: UUID, filename: str, now: datetime) -> str:
    """Collision-resistant blob path scoped to the project

    Example:
        >>> generate_storage_path(pid, "Site Photo.JPG", now)  # doctest: +SKIP
        '6f1c.../1723456789123_9f86d081884c.jpg'
    """
    epoch_ms = int(now.timestamp() * 1000)
    return f"{project_id}/{epoch_ms}_{secrets.token_hex(6)}{file_extension(filename)}"


def initial_workflow_state(
    policy: PolicyProvider,
    document_type: str,
    actor: Actor,
    to_suppliers: bool,
    to_policyholders: bool,
    now: datetime,
) -> Dict[str, object]:
    """Workflow fields of a freshly uploaded document

    - Approval types start PENDING and INTERNAL; audience toggles are ignored
      until a reviewer approves the document.
    - Review types are AVAILABLE at the requested visibility and carry an
      UNREVIEWED flag.
    - Everything else is AVAILABLE and self-approved by the uploader.
    """
    if policy.requires_approval(document_type):
        return {
            "approval_status": ApprovalStatus.PENDING,
            "review_status": None,
            "workflow_stage": WorkflowStage.PENDING_APPROVAL,
            "visibility_level": VisibilityLevel.INTERNAL,
        }

    visibility = encode(to_suppliers, to_policyholders)
    if policy.requires_review(document_type):
        return {
            "approval_status": ApprovalStatus.AVAILABLE,
            "review_status": ReviewStatus.UNREVIEWED,
            "workflow_stage": WorkflowStage.AVAILABLE,
            "visibility_level": visibility,
        }

    return {
        "approval_status": ApprovalStatus.AVAILABLE,
        "review_status": None,
        "workflow_stage": WorkflowStage.AVAILABLE,
        "visibility_level": visibility,
        "approved_by_user_id": actor.user_id,
        "approved_at": now,
    }


class UploadPipeline:
    """Ingests a batch of files into a project's document collection.

    Example:
        pipeline = UploadPipeline(storage, repository, policy, concurrency=4)
        result = await pipeline.upload(
            project_id=project_id,
            actor=actor,
            files=[IncomingFile("site.jpg", "image/jpeg", data)],
            document_type="Photos - Damage",
            to_suppliers=True,
        )
        result.success_count, result.failure_count
    """

    def __init__(
        self,
        storage: ObjectStoragePort,
        repository: DocumentRepositoryPort,
        policy: PolicyProvider,
        max_file_size: int = MAX_FILE_SIZE,
        max_batch_files: int = MAX_BATCH_FILES,
        concurrency: int = DEFAULT_CONCURRENCY,
        clock: Callable[[], datetime] = utc_now,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.storage = storage
        self.repository = repository
        self.policy = policy
        self.max_file_size = max_file_size
        self.max_batch_files = max_batch_files
        self.concurrency = concurrency
        self._clock = clock

    def validate_batch(
        self,
        files: Sequence[IncomingFile],
        document_type: str,
        actor: Optional[Actor] = None,
    ) -> None:
        """Check every file before any network call.

        Raises:
            ValidationError: Naming every offending file; nothing is uploaded
            AuthorizationError: If actor's role may not upload `document_type`
        """
        if (
            actor is not None
            and self.policy.is_known_type(document_type)
            and not self.policy.may_upload(document_type, actor.role)
        ):
            upload_batch_rejections_total.inc()
            raise AuthorizationError(
                f"Role {actor.role.value} may not upload documents of type {document_type!r}"
            )

        if not files:
            raise ValidationError("No files provided. Upload at least one file.")

        problems: List[str] = []
        if len(files) > self.max_batch_files:
            problems.append(f"Too many files: {len(files)} (maximum {self.max_batch_files} per batch)")

        if not self.policy.is_known_type(document_type):
            problems.append(f"Unknown document type: {document_type!r}")

        for file in files:
            is_valid, error = validate_filename(file.filename)
            if not is_valid:
                problems.append(f"{file.filename!r}: {error}")
                continue
            if not is_supported_mime_type(file.content_type):
                problems.append(f"File type {file.content_type} is not allowed for {file.filename}")
            is_valid, error = validate_file_size(file.size_bytes, self.max_file_size)
            if not is_valid:
                problems.append(f"{file.filename}: {error}")

        if problems:
            upload_batch_rejections_total.inc()
            logger.warning(f"Upload batch rejected before transfer: {problems}")
            raise ValidationError(f"Upload rejected: {len(problems)} problem(s) found", problems)

    async def upload(
        self,
        project_id: UUID,
        actor: Actor,
        files: Iterable[IncomingFile],
        document_type: str,
        note: Optional[str] = None,
        to_suppliers: bool = False,
        to_policyholders: bool = False,
        on_progress: Optional[ProgressCallback] = None,
    ) -> UploadBatchResult:
        """Upload a batch and return once every item is terminal.

        Args:
            project_id: Owning project
            actor: Authenticated uploader
            files: Files of the batch
            document_type: Catalog type applied to every file
            note: Optional free text applied to every file
            to_suppliers: Audience toggle (contractors)
            to_policyholders: Audience toggle (customers)
            on_progress: Called with a snapshot of an UploadItem on every change

        Returns:
            UploadBatchResult: One item per input file plus the created documents

        Raises:
            ValidationError: If pre-validation fails (no file is uploaded)
            AuthorizationError: If actor's role may not upload `document_type`
        """
        files = list(files)
        self.validate_batch(files, document_type, actor)

        note = note.strip() or None if note else None
        items = [UploadItem(filename=file.filename) for file in files]
        semaphore = asyncio.Semaphore(self.concurrency)

        logger.info(
            f"Upload batch started: project_id={project_id}, files={len(files)}, "
            f"type={document_type}, concurrency={self.concurrency}",
            extra={"project_id": project_id, "actor_id": actor.user_id},
        )

        async def run(file: IncomingFile, item: UploadItem) -> Optional[DocumentRecord]:
            async with semaphore:
                return await self._upload_one(
                    project_id, actor, file, item, document_type, note,
                    to_suppliers, to_policyholders, on_progress,
                )

        records = await asyncio.gather(*(run(file, item) for file, item in zip(files, items)))
        result = UploadBatchResult(items=items, documents=[r for r in records if r is not None])

        logger.info(
            f"Upload batch complete: project_id={project_id}, "
            f"uploaded={result.success_count}, failed={result.failure_count}",
            extra={"project_id": project_id, "actor_id": actor.user_id},
        )
        return result

    async def stream(
        self,
        project_id: UUID,
        actor: Actor,
        files: Iterable[IncomingFile],
        document_type: str,
        **options,
    ) -> AsyncIterator[UploadItem]:
        """Run a batch upload and yield every UploadItem update as it happens.

        Updates of different files interleave in no particular order.
        `options` are passed to upload(); an `on_progress` among them is
        called with every update as well.

        Example:
            async for item in pipeline.stream(project_id, actor, files, "Report"):
                render(item.filename, item.status, item.progress_percent)
        """
        files = list(files)
        self.validate_batch(files, document_type, actor)

        queue: "asyncio.Queue[Optional[UploadItem]]" = asyncio.Queue()
        on_progress = options.pop("on_progress", None)

        def forward(item: UploadItem) -> None:
            queue.put_nowait(item)
            if on_progress is not None:
                on_progress(item)

        task = asyncio.create_task(
            self.upload(project_id, actor, files, document_type, on_progress=forward, **options)
        )
        task.add_done_callback(lambda _: queue.put_nowait(None))

        try:
            while True:
                item = await queue.get()
                if item is None:
                    break
                yield item
        finally:
            if not task.done():
                task.cancel()

        # Surface unexpected failures of the batch itself
        task.result()

    async def _upload_one(
        self,
        project_id: UUID,
        actor: Actor,
        file: IncomingFile,
        item: UploadItem,
        document_type: str,
        note: Optional[str],
        to_suppliers: bool,
        to_policyholders: bool,
        on_progress: Optional[ProgressCallback],
    ) -> Optional[DocumentRecord]:
        start = time.perf_counter()
        path = generate_storage_path(project_id, file.filename, self._clock())
        blob_written = False

        try:
            self._update(item, on_progress, UploadStatus.UPLOADING, PROGRESS_UPLOADING)
            stored = await self.storage.put(path, file.data, file.content_type)
            blob_written = True

            self._update(item, on_progress, UploadStatus.PROCESSING, PROGRESS_PROCESSING)
            now = self._clock()
            record = DocumentRecord(
                id=uuid4(),
                project_id=project_id,
                name=file.filename,
                storage_path=stored.path,
                type=document_type,
                note=note,
                file_size_bytes=file.size_bytes,
                mime_type=file.content_type,
                uploaded_by_user_id=actor.user_id,
                uploaded_at=now,
                updated_at=now,
                **initial_workflow_state(
                    self.policy, document_type, actor, to_suppliers, to_policyholders, now
                ),
            )
            created = await self.repository.create(record)

        except Exception as e:
            if blob_written:
                # Accepted failure mode: reconciled out of band, never rolled back inline
                orphaned_blobs_total.labels(cause="metadata_write").inc()
                logger.warning(
                    f"Orphaned blob after failed metadata write: storage_path={path}",
                    extra={"event": "orphaned_blob", "storage_path": path, "project_id": project_id},
                )
            logger.error(
                f"Upload failed for {file.filename}: {e}",
                exc_info=True,
                extra={"project_id": project_id, "actor_id": actor.user_id},
            )
            document_uploads_total.labels(status="error").inc()
            item.error = str(e) or type(e).__name__
            self._update(item, on_progress, UploadStatus.ERROR, item.progress_percent)
            return None

        item.document_id = created.id
        self._update(item, on_progress, UploadStatus.COMPLETE, PROGRESS_COMPLETE)
        document_uploads_total.labels(status="complete").inc()
        upload_duration_seconds.observe(time.perf_counter() - start)

        logger.info(
            f"Created document: id={created.id}, file_name={created.name}, "
            f"approval_status={created.approval_status.value}, visibility={created.visibility_level.value}",
            extra={"document_id": created.id, "project_id": project_id},
        )
        return created

    @staticmethod
    def _update(
        item: UploadItem,
        on_progress: Optional[ProgressCallback],
        status: UploadStatus,
        progress: int,
    ) -> None:
        item.status = status
        item.progress_percent = progress
        if on_progress is not None:
            on_progress(replace(item))
