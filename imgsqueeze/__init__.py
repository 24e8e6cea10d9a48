"""
Image Compression Package

Batch image compression with quality presets, pre-compression size estimates,
and single-file or ZIP downloads. Encoding is done by Pillow, in-process or
behind a small Flask service.
"""

from .compressor import ImageCompressor, CompressionResult
from .estimator import estimate_size
from .records import ImageRecord, PreviewStore, RecordStatus
from .session import CompressionSession, SessionTotals
from .backends import LocalBackend, HttpBackend
from .orchestrator import BatchOrchestrator
from .archive import DirectorySaver
from .utils import format_size

__version__ = "1.0.0"
__all__ = [
    "ImageCompressor",
    "CompressionResult",
    "estimate_size",
    "ImageRecord",
    "PreviewStore",
    "RecordStatus",
    "CompressionSession",
    "SessionTotals",
    "LocalBackend",
    "HttpBackend",
    "BatchOrchestrator",
    "DirectorySaver",
    "format_size",
]
