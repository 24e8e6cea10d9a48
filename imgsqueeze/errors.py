"""
Exceptions raised by imgsqueeze.
"""

from typing import Optional


class ImgSqueezeError(Exception):
    """Base class for all imgsqueeze errors."""


class CompressionError(ImgSqueezeError):
    """A compression call failed or returned a non-success response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RecordBusyError(ImgSqueezeError):
    """A record cannot be removed while it is being compressed."""


class UnknownRecordError(ImgSqueezeError, KeyError):
    """No record with the given id exists in the session."""

    def __str__(self) -> str:
        return Exception.__str__(self)
