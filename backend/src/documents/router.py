"""Project document API endpoints.

Upload, list, workflow transitions, signed URLs and bulk actions for the
documents of one project. Domain errors are mapped to HTTP responses by
the exception handler registered in main.
"""

import logging
from datetime import date, datetime
from typing import List, Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from auth.dependencies import CurrentActor
from domain.documents.bulk import BulkOperationOrchestrator
from domain.documents.filters import DocumentFilters, DocumentTab, SortField, document_stats
from domain.documents.models import IncomingFile
from domain.documents.policy import PolicyProvider
from domain.documents.ports import DocumentRepositoryPort
from domain.documents.session import DocumentSession
from domain.documents.upload_pipeline import UploadPipeline
from domain.documents.visibility import decode, encode
from domain.documents.workflow import WorkflowEngine

from .dependencies import (
    get_bulk_orchestrator,
    get_policy,
    get_repository,
    get_upload_pipeline,
    get_workflow_engine,
)
from .schemas import (
    ApproveRequest,
    BulkRequest,
    BulkResponse,
    DocumentResponse,
    DocumentTypeResponse,
    EditRequest,
    ErrorResponse,
    RejectRequest,
    ReviewRequest,
    SignedUrlResponse,
    StatsResponse,
    TypeSuggestionResponse,
    UploadResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/projects/{project_id}/documents",
    tags=["documents"],
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)

DateQuery = Optional[Union[date, datetime]]


@router.post("", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_documents(
    project_id: UUID,
    actor: CurrentActor,
    files: List[UploadFile] = File(...),
    document_type: str = Form(..., alias="type"),
    note: Optional[str] = Form(None),
    to_suppliers: bool = Form(False),
    to_policyholders: bool = Form(False),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
    policy: PolicyProvider = Depends(get_policy),
):
    """Upload a batch of files with one document type.

    The whole batch is rejected (400) if any file is oversized, empty, or of
    a disallowed type. Otherwise every file is attempted; per-file failures
    are reported in `items` without failing the request.

    Example:
        curl -X POST https://api.example.com/api/v1/projects/$PROJECT/documents \\
             -H "Authorization: Bearer $TOKEN" \\
             -F "type=Photos - Damage" -F "to_suppliers=true" \\
             -F "files=@roof.jpg" -F "files=@gutter.jpg"
    """
    incoming = [
        IncomingFile(
            filename=upload.filename or "",
            content_type=upload.content_type,
            data=await upload.read(),
        )
        for upload in files
    ]

    result = await pipeline.upload(
        project_id=project_id,
        actor=actor,
        files=incoming,
        document_type=document_type,
        note=note,
        to_suppliers=to_suppliers,
        to_policyholders=to_policyholders,
    )
    return UploadResponse.from_result(result, policy)


@router.get("", response_model=List[DocumentResponse])
async def list_documents(
    project_id: UUID,
    actor: CurrentActor,
    search: str = Query("", description="Substring of name or note (case-insensitive)"),
    document_type: str = Query("All", alias="type"),
    tab: DocumentTab = Query(DocumentTab.ALL),
    start: DateQuery = Query(None, description="Uploaded at or after (inclusive)"),
    end: DateQuery = Query(None, description="Uploaded at or before (inclusive)"),
    uploader: str = Query("all", description="Uploader user id, or 'all'"),
    sort_by: Optional[SortField] = Query(None),
    descending: bool = Query(False),
    repository: DocumentRepositoryPort = Depends(get_repository),
    policy: PolicyProvider = Depends(get_policy),
):
    """Documents of the project visible to the caller, filtered."""
    session = DocumentSession(actor, project_id, repository)
    await session.refresh()

    filters = DocumentFilters(
        search=search,
        document_type=document_type,
        tab=tab,
        start=start,
        end=end,
        uploader=uploader,
        sort_by=sort_by,
        descending=descending,
    )
    return [DocumentResponse.from_record(d, policy) for d in session.visible(filters)]


@router.get("/stats", response_model=StatsResponse)
async def get_document_stats(
    project_id: UUID,
    actor: CurrentActor,
    repository: DocumentRepositoryPort = Depends(get_repository),
):
    """Status counts over the documents visible to the caller."""
    session = DocumentSession(actor, project_id, repository)
    await session.refresh()
    return StatsResponse.from_stats(document_stats(session.visible()))


@router.get("/types", response_model=List[DocumentTypeResponse])
async def list_document_types(
    project_id: UUID,
    actor: CurrentActor,
    policy: PolicyProvider = Depends(get_policy),
):
    """Document types the caller's role may upload, in catalog order."""
    return [DocumentTypeResponse.from_policy(name, policy) for name in policy.allowed_types(actor.role)]


@router.get("/types/suggest", response_model=List[TypeSuggestionResponse])
async def suggest_document_types(
    project_id: UUID,
    actor: CurrentActor,
    filename: str = Query(..., min_length=1),
    policy: PolicyProvider = Depends(get_policy),
):
    """Likely types for a filename, best first, limited to types the caller may upload.

    Example:
        GET /projects/$PROJECT/documents/types/suggest?filename=gas_safety_certificate.pdf
        [{"type": "Certificate", "confidence": 0.475}, {"type": "Other", "confidence": 0.1}]
    """
    return [TypeSuggestionResponse.from_suggestion(s) for s in policy.suggest_types(filename, actor.role)]


@router.post("/{document_id}/approve", response_model=DocumentResponse)
async def approve_document(
    project_id: UUID,
    document_id: UUID,
    body: ApproveRequest,
    actor: CurrentActor,
    engine: WorkflowEngine = Depends(get_workflow_engine),
    policy: PolicyProvider = Depends(get_policy),
):
    document = await engine.approve(
        actor,
        document_id,
        visibility=encode(body.to_suppliers, body.to_policyholders),
        approval_level=body.approval_level,
        project_id=project_id,
    )
    return DocumentResponse.from_record(document, policy)


@router.post("/{document_id}/reject", response_model=DocumentResponse)
async def reject_document(
    project_id: UUID,
    document_id: UUID,
    body: RejectRequest,
    actor: CurrentActor,
    engine: WorkflowEngine = Depends(get_workflow_engine),
    policy: PolicyProvider = Depends(get_policy),
):
    document = await engine.reject(actor, document_id, body.reason, project_id=project_id)
    return DocumentResponse.from_record(document, policy)


@router.post("/{document_id}/review", response_model=DocumentResponse)
async def review_document(
    project_id: UUID,
    document_id: UUID,
    body: ReviewRequest,
    actor: CurrentActor,
    engine: WorkflowEngine = Depends(get_workflow_engine),
    policy: PolicyProvider = Depends(get_policy),
):
    document = await engine.review(actor, document_id, body.comments, project_id=project_id)
    return DocumentResponse.from_record(document, policy)


@router.patch("/{document_id}", response_model=DocumentResponse)
async def edit_document(
    project_id: UUID,
    document_id: UUID,
    body: EditRequest,
    actor: CurrentActor,
    engine: WorkflowEngine = Depends(get_workflow_engine),
    policy: PolicyProvider = Depends(get_policy),
):
    """Edit name, type, note or audience. An omitted toggle keeps its current value."""
    visibility = None
    if body.to_suppliers is not None or body.to_policyholders is not None:
        current = await engine.get(document_id, project_id)
        to_suppliers, to_policyholders = decode(current.visibility_level)
        visibility = encode(
            to_suppliers if body.to_suppliers is None else body.to_suppliers,
            to_policyholders if body.to_policyholders is None else body.to_policyholders,
        )

    document = await engine.edit(
        actor,
        document_id,
        name=body.name,
        document_type=body.type,
        note=body.note,
        visibility=visibility,
        project_id=project_id,
    )
    return DocumentResponse.from_record(document, policy)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    project_id: UUID,
    document_id: UUID,
    actor: CurrentActor,
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    await engine.delete(actor, document_id, project_id=project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{document_id}/download-url", response_model=SignedUrlResponse)
async def get_download_url(
    project_id: UUID,
    document_id: UUID,
    actor: CurrentActor,
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    """Short-lived signed URL; request a new one for every download."""
    url = await engine.download_url(actor, document_id, project_id=project_id)
    return SignedUrlResponse(url=url, expires_in=engine.download_url_ttl)


@router.get("/{document_id}/preview-url", response_model=SignedUrlResponse)
async def get_preview_url(
    project_id: UUID,
    document_id: UUID,
    actor: CurrentActor,
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    url = await engine.preview_url(actor, document_id, project_id=project_id)
    return SignedUrlResponse(url=url, expires_in=engine.preview_url_ttl)


@router.post("/bulk", response_model=BulkResponse)
async def bulk_action(
    project_id: UUID,
    body: BulkRequest,
    actor: CurrentActor,
    repository: DocumentRepositoryPort = Depends(get_repository),
    orchestrator: BulkOperationOrchestrator = Depends(get_bulk_orchestrator),
):
    """Run download, review or delete over the selected documents.

    Per-document failures are returned in `failures`; the request itself
    only fails for an empty selection or an unauthorized action.
    """
    session = DocumentSession(actor, project_id, repository)
    await session.refresh()
    session.selection.select_all(body.document_ids)

    result = await orchestrator.run(session, body.action, comments=body.comments)
    return BulkResponse.from_result(result)
