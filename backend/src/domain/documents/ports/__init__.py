from .object_storage_port import ObjectStoragePort, StoredObject
from .document_repository_port import DocumentRepositoryPort

__all__ = ["ObjectStoragePort", "StoredObject", "DocumentRepositoryPort"]
