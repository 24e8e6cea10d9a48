"""
Per-image records and their preview handles.
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from .compressor import CompressionResult
from .utils import compressed_filename

logger = logging.getLogger(__name__)


class RecordStatus(str, Enum):
    PENDING = 'pending'
    COMPRESSING = 'compressing'
    DONE = 'done'
    ERROR = 'error'


def new_record_id() -> str:
    """Short random id, unique within a session."""
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class PreviewHandle:
    """
    Revocable reference to an upload's original bytes for display.

    A handle stays usable until its store revokes it.
    """
    token: str
    mime_type: str
    data: memoryview = field(repr=False, compare=False)


class PreviewStore:
    """
    Issues and revokes preview handles.

    Tracks live handles so leaks show up in `live_count`.
    """

    def __init__(self):
        self._live: Dict[str, PreviewHandle] = {}

    def create(self, data: bytes, mime_type: str) -> PreviewHandle:
        handle = PreviewHandle(
            token=f"preview:{uuid.uuid4()}",
            mime_type=mime_type,
            data=memoryview(data).toreadonly(),
        )
        self._live[handle.token] = handle
        return handle

    def revoke(self, handle: PreviewHandle) -> bool:
        """Release a handle. Returns False if it was already released."""
        released = self._live.pop(handle.token, None)
        if released is None:
            logger.warning(f"Preview {handle.token} was already released")
            return False
        released.data.release()
        return True

    def is_live(self, handle: PreviewHandle) -> bool:
        return handle.token in self._live

    @property
    def live_count(self) -> int:
        return len(self._live)


@dataclass
class ImageRecord:
    """One uploaded image and everything derived from it."""
    id: str
    name: str
    mime_type: str
    data: bytes = field(repr=False)
    source_bytes: int
    preview: Optional[PreviewHandle] = field(default=None, repr=False)
    status: RecordStatus = RecordStatus.PENDING
    estimated_bytes: int = 0
    result: Optional[CompressionResult] = field(default=None, repr=False)
    compression_ratio: Optional[float] = None
    error_message: Optional[str] = None

    @property
    def is_done(self) -> bool:
        return self.status == RecordStatus.DONE and self.result is not None

    @property
    def compressed_bytes(self) -> Optional[int]:
        """Measured compressed size, once compression is done."""
        if not self.is_done:
            return None
        return self.result.compressed.size

    @property
    def download_name(self) -> Optional[str]:
        """'<stem>_compressed.<format>' for done records."""
        if not self.is_done:
            return None
        name = self.result.original.name or self.name
        return compressed_filename(name, self.result.compressed.format)
