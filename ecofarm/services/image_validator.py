"""
Image validation service for waste photo uploads.

Provides security checks including:
- File size limits
- MIME type validation (libmagic, not the client-supplied content type)
- Filename sanitization
- Content hash calculation
"""

import hashlib
import re
from pathlib import Path
from typing import Dict, NamedTuple

import magic
from fastapi import HTTPException, UploadFile

DEFAULT_MAX_IMAGE_SIZE_MB = 10

# MIME type -> canonical extension
ALLOWED_IMAGE_TYPES: Dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


class ValidatedImage(NamedTuple):
    content: bytes
    mime_type: str
    sha256: str
    filename: str


async def validate_image(
    file: UploadFile,
    max_size_mb: int = DEFAULT_MAX_IMAGE_SIZE_MB,
) -> ValidatedImage:
    """
    Validate an uploaded image and return its content and metadata.

    Args:
        file: FastAPI UploadFile instance from multipart/form-data
        max_size_mb: Maximum accepted size in megabytes

    Returns:
        ValidatedImage(content, mime_type, sha256, filename)

    Raises:
        HTTPException: 400 for validation errors, 413 for file too large
    """
    content = await file.read()

    if len(content) == 0:
        raise HTTPException(status_code=400, detail="File is empty")

    max_bytes = max_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {max_size_mb}MB"
        )

    mime_type = magic.from_buffer(content, mime=True)
    if mime_type not in ALLOWED_IMAGE_TYPES:
        allowed = ", ".join(sorted(ALLOWED_IMAGE_TYPES))
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type. Expected one of {allowed}, got {mime_type}"
        )

    filename = sanitize_filename(file.filename or "", ALLOWED_IMAGE_TYPES[mime_type])
    file_hash = hashlib.sha256(content).hexdigest()

    return ValidatedImage(content, mime_type, file_hash, filename)


def sanitize_filename(filename: str, extension: str = ".jpg") -> str:
    """
    Sanitize filename to prevent path traversal attacks.

    Args:
        filename: Original filename from upload
        extension: Extension to enforce when the name lacks a known image one

    Returns:
        Sanitized filename safe for storage
    """
    filename = Path(filename).name

    filename = filename.replace("..", "").replace("/", "").replace("\\", "")
    filename = filename.replace("\0", "")

    # Keep only safe characters: alphanumeric, dash, underscore, dot
    filename = re.sub(r'[^a-zA-Z0-9._-]', '_', filename)

    known_extensions = set(ALLOWED_IMAGE_TYPES.values()) | {".jpeg"}
    suffix = Path(filename).suffix.lower()

    if not filename or filename == suffix:
        filename = "upload" + extension
    elif suffix not in known_extensions:
        filename = filename + extension

    if len(filename) > 255:
        stem, dot, ext = filename.rpartition(".")
        filename = stem[:250] + dot + ext

    return filename
