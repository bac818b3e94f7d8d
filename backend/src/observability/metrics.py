"""Prometheus metrics for the document workflow.

Defines and exposes operational metrics for monitoring and alerting.
"""

from prometheus_client import Counter, Histogram

# Upload metrics
document_uploads_total = Counter(
    "docflow_document_uploads_total",
    "Total number of files processed by the upload pipeline",
    ["status"]  # status: complete|error
)

upload_batch_rejections_total = Counter(
    "docflow_upload_batch_rejections_total",
    "Upload batches rejected during pre-validation"
)

upload_duration_seconds = Histogram(
    "docflow_upload_duration_seconds",
    "Time spent writing one file (blob + metadata) in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)

orphaned_blobs_total = Counter(
    "docflow_orphaned_blobs_total",
    "Blobs left without a metadata row (needs reconciliation)",
    ["cause"]  # cause: metadata_write|blob_delete
)

# Workflow metrics
workflow_transitions_total = Counter(
    "docflow_workflow_transitions_total",
    "Workflow actions applied to single documents",
    ["action"]  # action: approve|reject|review|edit|delete
)

# Bulk metrics
bulk_documents_total = Counter(
    "docflow_bulk_documents_total",
    "Documents processed by bulk operations",
    ["action", "outcome"]  # outcome: success|failure|skipped
)
