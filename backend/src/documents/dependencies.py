"""Wiring of the document workflow components for FastAPI endpoints."""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from config import Settings, get_settings
from database import get_db
from domain.documents.bulk import BulkOperationOrchestrator
from domain.documents.errors import StorageError
from domain.documents.policy import CatalogPolicyProvider, PolicyProvider
from domain.documents.ports import DocumentRepositoryPort, ObjectStoragePort
from domain.documents.upload_pipeline import UploadPipeline
from domain.documents.workflow import WorkflowEngine
from infrastructure.repositories.document_repository import SqlDocumentRepository
from infrastructure.storage.s3_storage_adapter import S3StorageAdapter
from infrastructure.storage.storage_config import load_storage_config

logger = logging.getLogger(__name__)

# Storage adapter singleton (initialized once)
_storage_adapter: Optional[S3StorageAdapter] = None


def get_storage(settings: Settings = Depends(get_settings)) -> ObjectStoragePort:
    """Get or create the storage adapter singleton.

    Raises:
        HTTPException 500: If storage configuration is invalid
    """
    global _storage_adapter

    if _storage_adapter is None:
        try:
            _storage_adapter = S3StorageAdapter.from_config(load_storage_config(settings))
        except (ValueError, StorageError) as e:
            logger.error(f"Failed to initialize storage adapter: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Storage configuration error: {str(e)}",
            )

    return _storage_adapter


@lru_cache()
def load_policy(policy_file: Optional[str]) -> PolicyProvider:
    """Policy catalog from a JSON file, or the built-in catalog."""
    if policy_file:
        return CatalogPolicyProvider.from_file(policy_file)
    return CatalogPolicyProvider.default()


def get_policy(settings: Settings = Depends(get_settings)) -> PolicyProvider:
    return load_policy(settings.DOCUMENT_POLICY_FILE)


def get_repository(db: Session = Depends(get_db)) -> DocumentRepositoryPort:
    return SqlDocumentRepository(db)


def get_upload_pipeline(
    storage: ObjectStoragePort = Depends(get_storage),
    repository: DocumentRepositoryPort = Depends(get_repository),
    policy: PolicyProvider = Depends(get_policy),
    settings: Settings = Depends(get_settings),
) -> UploadPipeline:
    return UploadPipeline(
        storage,
        repository,
        policy,
        max_file_size=settings.MAX_UPLOAD_SIZE_BYTES,
        max_batch_files=settings.MAX_BATCH_FILES,
        concurrency=settings.UPLOAD_CONCURRENCY,
    )


def get_workflow_engine(
    storage: ObjectStoragePort = Depends(get_storage),
    repository: DocumentRepositoryPort = Depends(get_repository),
    policy: PolicyProvider = Depends(get_policy),
    settings: Settings = Depends(get_settings),
) -> WorkflowEngine:
    return WorkflowEngine(
        storage,
        repository,
        policy,
        download_url_ttl=settings.DOWNLOAD_URL_TTL_SECONDS,
        preview_url_ttl=settings.PREVIEW_URL_TTL_SECONDS,
    )


def get_bulk_orchestrator(
    workflow: WorkflowEngine = Depends(get_workflow_engine),
    policy: PolicyProvider = Depends(get_policy),
    settings: Settings = Depends(get_settings),
) -> BulkOperationOrchestrator:
    return BulkOperationOrchestrator(workflow, policy, concurrency=settings.BULK_CONCURRENCY)
