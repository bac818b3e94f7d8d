"""Object Storage Port - Domain interface for the document blob store.

Adapters must implement this interface to provide S3, MinIO, or other
storage backends.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class StoredObject:
    """Metadata for a blob written to object storage.

    Attributes:
        path: Storage path (format: {project_id}/{epoch_ms}_{token}.{ext})
        sha256: SHA256 hash of the content (hex format)
        size_bytes: Content size in bytes
        mime_type: MIME type of the content
    """
    path: str
    sha256: str
    size_bytes: int
    mime_type: str


class ObjectStoragePort(ABC):
    """Port interface for blob storage operations.

    Key Design Principles:
    - Paths are generated by the caller and scoped to the owning project
    - A path is written once; documents never overwrite each other's blobs
    - Read access is granted through short-lived signed URLs only

    Example Usage:
        storage = S3StorageAdapter(...)

        stored = await storage.put(
            path=f"{project_id}/1723456789000_a1b2c3d4e5f6.pdf",
            data=content,
            mime_type="application/pdf",
        )
        url = await storage.signed_url(stored.path, ttl_seconds=300)
    """

    @abstractmethod
    async def put(self, path: str, data: bytes, mime_type: str) -> StoredObject:
        """Write a blob.

        Args:
            path: Storage path to write to
            data: File content
            mime_type: MIME type of the content

        Returns:
            StoredObject: Metadata about the written blob

        Raises:
            StorageError: If the write fails or storage is unavailable
        """
        pass

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """Delete a blob.

        Args:
            path: Storage path of the blob

        Returns:
            bool: True if the blob was deleted, False if it didn't exist

        Raises:
            StorageError: If deletion fails
        """
        pass

    @abstractmethod
    async def signed_url(self, path: str, ttl_seconds: int) -> str:
        """Issue a time-boxed URL granting read access to a single blob.

        Args:
            path: Storage path of the blob
            ttl_seconds: URL lifetime in seconds

        Returns:
            str: Signed URL

        Raises:
            StorageError: If URL generation fails

        Note:
            URLs are issued per access and must not be cached by callers.
        """
        pass
