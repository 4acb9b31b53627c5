"""
Content Type Detection Utility
MIME types for the chat file formats we accept and serve
"""

import mimetypes
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Extension to MIME type mapping for types that mimetypes module doesn't handle well
EXTENSION_MIME_MAP = {
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".html": "text/html",
    ".htm": "text/html",
    ".json": "application/json",
    ".zip": "application/zip",
}


def file_extension(filename: str) -> str:
    """Lowercased extension including the dot ("" when there is none)"""
    return Path(filename or "").suffix.lower()


def detect_content_type(filename: str) -> str:
    """
    Detect content type with fallback chain:
    1. File extension mapping
    2. Python mimetypes module
    3. Default to application/octet-stream

    Args:
        filename: Filename with extension

    Returns:
        Detected MIME type string
    """
    ext = file_extension(filename)

    if ext in EXTENSION_MIME_MAP:
        return EXTENSION_MIME_MAP[ext]

    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type:
        return mime_type

    logger.warning(f"Could not detect content type for {filename}, using application/octet-stream")
    return "application/octet-stream"
