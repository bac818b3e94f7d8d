"""Error taxonomy for the document workflow.

Validation and authorization errors are raised before any mutation happens.
Storage and metadata errors wrap failures of the external blob and
relational stores.
"""

from typing import Iterable, List, Optional


class DocumentError(Exception):
    """Base class for all document workflow errors."""

    code = "document_error"


class ValidationError(DocumentError):
    """Bad input: oversized or disallowed file, empty rejection reason, etc.

    Attributes:
        problems: Every individual problem found (one entry per offending
            file for batch validation)
    """

    code = "validation_error"

    def __init__(self, message: str, problems: Optional[Iterable[str]] = None):
        self.problems: List[str] = list(problems) if problems else [message]
        super().__init__(message)


class AuthorizationError(DocumentError):
    """Actor lacks the rights required for the requested action."""

    code = "authorization_error"


class InvalidTransitionError(DocumentError):
    """Requested workflow transition does not apply to the current state."""

    code = "invalid_transition"


class NotFoundError(DocumentError):
    """Referenced document no longer exists."""

    code = "not_found"


class StorageError(DocumentError):
    """Blob store operation failed."""

    code = "storage_error"


class MetadataError(DocumentError):
    """Metadata store operation failed."""

    code = "metadata_error"
