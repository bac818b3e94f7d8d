"""File validation utilities for document uploads and renames"""

import os
from enum import Enum
from typing import Optional, Tuple, Type, TypeVar

from .errors import ValidationError

E = TypeVar("E", bound=Enum)


SUPPORTED_MIME_TYPES = {
    'image/jpeg',
    'image/png',
    'image/gif',
    'image/webp',
    'application/pdf',
    'application/msword',  # .doc
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',  # .docx
    'application/vnd.ms-excel',  # .xls
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',  # .xlsx
    'text/plain',
    'text/csv',
}

MAX_FILE_SIZE = 50 * 1024 * 1024  # 50 MiB

MAX_BATCH_FILES = 20


def is_supported_mime_type(mime_type: Optional[str]) -> bool:
    """Check if MIME type is allowed for upload

    Args:
        mime_type: MIME type string (e.g., 'application/pdf')

    Returns:
        True if supported, False otherwise

    Example:
        >>> is_supported_mime_type('application/pdf')
        True
        >>> is_supported_mime_type('application/zip')
        False
    """
    return mime_type in SUPPORTED_MIME_TYPES


def validate_file_size(size_bytes: int, max_size: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """Validate file size is within limits

    Args:
        size_bytes: File size in bytes
        max_size: Maximum allowed size (defaults to MAX_FILE_SIZE)

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> validate_file_size(1024)
        (True, None)
        >>> validate_file_size(0)
        (False, 'File is empty (0 bytes)')
    """
    if max_size is None:
        max_size = MAX_FILE_SIZE

    if size_bytes == 0:
        return False, "File is empty (0 bytes)"

    if size_bytes > max_size:
        return False, f"File exceeds maximum size of {max_size // (1024 * 1024)}MB (got {size_bytes} bytes)"

    return True, None


def validate_filename(filename: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Validate a display filename

    Validation rules:
    - Not empty
    - Max 255 characters
    - No directory separators
    - No null bytes or control characters

    Example:
        >>> validate_filename('report.pdf')
        (True, None)
        >>> validate_filename('../../etc/passwd')
        (False, 'Filename contains path traversal or directory separators')
    """
    if not filename or len(filename.strip()) == 0:
        return False, "Filename cannot be empty"

    if len(filename) > 255:
        return False, f"Filename exceeds 255 characters (got {len(filename)})"

    if '/' in filename or '\\' in filename or filename.strip() in ('.', '..'):
        return False, "Filename contains path traversal or directory separators"

    if '\x00' in filename:
        return False, "Filename contains null bytes"

    if any(ord(c) < 32 for c in filename):
        return False, "Filename contains control characters"

    return True, None


def file_extension(filename: str) -> str:
    """Lower-cased extension including the dot, or '' when there is none

    Example:
        >>> file_extension('Site Photo.JPG')
        '.jpg'
    """
    _, ext = os.path.splitext(filename)
    return ext.lower()


def rename_preserving_extension(original_name: str, new_base_name: str) -> str:
    """Build a new display name that keeps the original file extension

    The user edits only the base name; the extension of the stored file
    is re-attached unless the new name already ends with it.

    Example:
        >>> rename_preserving_extension('report.pdf', 'final-report')
        'final-report.pdf'
        >>> rename_preserving_extension('report.pdf', 'final-report.PDF')
        'final-report.PDF'
    """
    new_base_name = new_base_name.strip()
    _, ext = os.path.splitext(original_name)
    if not ext or new_base_name.lower().endswith(ext.lower()):
        return new_base_name
    return f"{new_base_name}{ext}"


def parse_choice(choices: Type[E], value, field: str) -> E:
    """Coerce a raw value to a member of `choices`

    Raises:
        ValidationError: If the value is not one of the choices

    Example:
        >>> parse_choice(VisibilityLevel, 'public', 'visibility')
        <VisibilityLevel.PUBLIC: 'public'>
    """
    try:
        return choices(value)
    except ValueError:
        allowed = ", ".join(c.value for c in choices)
        raise ValidationError(f"Invalid {field}: {value!r} (expected one of: {allowed})") from None
