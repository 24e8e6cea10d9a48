"""
Utility functions for image compression.
"""

import base64
import logging
import mimetypes
import re
from pathlib import Path
from typing import Optional, Tuple, Union


# MIME types accepted by the upload surface
SUPPORTED_MIME_TYPES = {
    'image/jpeg': ['.jpg', '.jpeg'],
    'image/png': ['.png'],
    'image/webp': ['.webp'],
    'image/gif': ['.gif'],
    'image/avif': ['.avif'],
}

_DATA_URI_RE = re.compile(r'^data:(?P<mime>[\w.+-]+/[\w.+-]+)?;base64,(?P<data>.*)$', re.DOTALL)


def setup_logging(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Set up and return a logger with the given name and level.

    Args:
        name: The name of the logger
        level: The logging level (default: logging.INFO)

    Returns:
        A configured logger instance
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def format_size(size_bytes: int) -> str:
    """Format byte size to human readable string."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.2f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.2f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.2f} GB"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def guess_mime_type(filename: str) -> Optional[str]:
    """Guess a MIME type from a file name, falling back to the extension table."""
    ext = Path(filename).suffix.lower()
    for mime, extensions in SUPPORTED_MIME_TYPES.items():
        if ext in extensions:
            return mime
    mime, _ = mimetypes.guess_type(filename)
    return mime


def is_supported_mime(mime_type: Optional[str]) -> bool:
    """Check if a MIME type is on the upload allow-list."""
    return bool(mime_type) and mime_type.lower() in SUPPORTED_MIME_TYPES


def is_supported_image(file_path: Union[str, Path]) -> bool:
    """Check if file is a supported image format."""
    return is_supported_mime(guess_mime_type(str(file_path)))


def compressed_filename(original_name: Optional[str], extension: Optional[str]) -> str:
    """
    Derive the download name for a compressed image.

    'holiday.photo.PNG' + 'webp' -> 'holiday.photo_compressed.webp'
    """
    name = original_name or 'image'
    stem = re.sub(r'\.[^/.]+$', '', name)
    return f"{stem}_compressed.{extension or 'jpg'}"


def encode_data_uri(data: bytes, mime_type: str) -> str:
    """Encode bytes as a self-describing base64 data URI."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_uri(uri: str) -> Tuple[Optional[str], bytes]:
    """
    Decode a base64 data URI.

    Returns:
        Tuple of (mime_type, raw_bytes)

    Raises:
        ValueError: if the string is not a base64 data URI or the payload is malformed
    """
    match = _DATA_URI_RE.match(uri or '')
    if not match:
        raise ValueError("Not a base64 data URI")
    try:
        data = base64.b64decode(match.group('data'), validate=True)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Malformed base64 payload: {e}") from e
    return match.group('mime'), data
