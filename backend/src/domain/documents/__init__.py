"""Documents domain module - upload pipeline, approval/review workflow, visibility, bulk actions"""

from .document_status import (
    ApprovalLevel,
    ApprovalStatus,
    ReviewStatus,
    WorkflowStage,
    can_transition,
    ALLOWED_TRANSITIONS,
)
from .errors import (
    DocumentError,
    ValidationError,
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    StorageError,
    MetadataError,
)
from .models import DocumentRecord, IncomingFile, UploadItem, UploadStatus, UploadBatchResult
from .policy import PolicyProvider, CatalogPolicyProvider, NullPolicyProvider
from .visibility import VisibilityLevel, encode, decode
from .validation import (
    is_supported_mime_type,
    validate_file_size,
    validate_filename,
    SUPPORTED_MIME_TYPES,
    MAX_FILE_SIZE,
    MAX_BATCH_FILES,
)

__all__ = [
    "ApprovalLevel",
    "ApprovalStatus",
    "ReviewStatus",
    "WorkflowStage",
    "can_transition",
    "ALLOWED_TRANSITIONS",
    "DocumentError",
    "ValidationError",
    "AuthorizationError",
    "InvalidTransitionError",
    "NotFoundError",
    "StorageError",
    "MetadataError",
    "DocumentRecord",
    "IncomingFile",
    "UploadItem",
    "UploadStatus",
    "UploadBatchResult",
    "PolicyProvider",
    "CatalogPolicyProvider",
    "NullPolicyProvider",
    "VisibilityLevel",
    "encode",
    "decode",
    "is_supported_mime_type",
    "validate_file_size",
    "validate_filename",
    "SUPPORTED_MIME_TYPES",
    "MAX_FILE_SIZE",
    "MAX_BATCH_FILES",
]
