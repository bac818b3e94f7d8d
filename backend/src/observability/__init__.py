"""Observability module for the document workflow service.

Provides structured logging, request correlation, and Prometheus metrics.
"""

from .logging_config import configure_logging, get_logger
from .metrics import (
    bulk_documents_total,
    document_uploads_total,
    orphaned_blobs_total,
    upload_batch_rejections_total,
    upload_duration_seconds,
    workflow_transitions_total,
)
from .request_id import request_id_var, get_request_id, set_request_id, generate_request_id

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Metrics
    "bulk_documents_total",
    "document_uploads_total",
    "orphaned_blobs_total",
    "upload_batch_rejections_total",
    "upload_duration_seconds",
    "workflow_transitions_total",
    # Request ID
    "request_id_var",
    "get_request_id",
    "set_request_id",
    "generate_request_id",
]
