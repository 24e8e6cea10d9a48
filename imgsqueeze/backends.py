"""
Compression backends used by the batch orchestrator.

A backend takes raw upload bytes plus the quality and format selections and
returns a CompressionResult, or raises on failure. Blocking work runs in a
worker thread so the event loop stays free between records.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests

from .compressor import CompressionResult, ImageCompressor
from .errors import CompressionError

logger = logging.getLogger(__name__)


class CompressionBackend(ABC):
    """Interface for anything that can compress one image."""

    @abstractmethod
    async def compress(
        self,
        data: bytes,
        filename: str,
        quality: int,
        output_format: str,
        mime_type: str = 'application/octet-stream'
    ) -> CompressionResult:
        """Compress one image, raising on any failure."""
        pass


class LocalBackend(CompressionBackend):
    """Compress in-process with an ImageCompressor."""

    def __init__(self, compressor: Optional[ImageCompressor] = None):
        self.compressor = compressor or ImageCompressor()

    async def compress(self, data, filename, quality, output_format, mime_type='application/octet-stream'):
        return await asyncio.to_thread(
            self.compressor.compress_bytes, data, filename, quality, output_format
        )


class HttpBackend(CompressionBackend):
    """
    Compress by posting to a running imgsqueeze server.

    Args:
        base_url: Server root, e.g. "http://127.0.0.1:5000"
        timeout: Request timeout in seconds; None leaves it to the transport
        session: Optional requests.Session to reuse connections
    """

    ENDPOINT = '/api/compress'

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        self.url = base_url.rstrip('/') + self.ENDPOINT
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, data: bytes, filename: str, quality: int, output_format: str, mime_type: str) -> CompressionResult:
        try:
            response = self.session.post(
                self.url,
                files={'file': (filename, data, mime_type)},
                data={'quality': str(quality), 'format': output_format},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise CompressionError(f"Compression request failed: {e}") from e

        if not response.ok:
            try:
                message = response.json().get('error')
            except ValueError:
                message = None
            raise CompressionError(
                message or f"Compression failed (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        try:
            return CompressionResult.from_dict(response.json())
        except ValueError as e:
            raise CompressionError(f"Invalid response from compression server: {e}") from e

    async def compress(self, data, filename, quality, output_format, mime_type='application/octet-stream'):
        logger.debug(f"POST {self.url} {filename} quality={quality} format={output_format}")
        return await asyncio.to_thread(self._post, data, filename, quality, output_format, mime_type)
