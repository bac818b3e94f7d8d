"""SQLAlchemy Models for the document workflow service"""

from .base import Base
from .document import Document

__all__ = [
    "Base",
    "Document",
]
