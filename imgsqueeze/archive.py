"""
Saving compressed results, one by one or bundled into a ZIP archive.
"""

import io
import logging
import time
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Tuple, Union

logger = logging.getLogger(__name__)


class Saver(ABC):
    """Somewhere finished files can be handed over to the user."""

    @abstractmethod
    def save(self, filename: str, data: bytes) -> Path:
        """Hand over one file and return where it ended up."""
        pass


class DirectorySaver(Saver):
    """Write saved files into an output directory."""

    def __init__(self, output_dir: Union[str, Path]):
        self.output_dir = Path(output_dir)

    def save(self, filename: str, data: bytes) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / Path(filename).name
        path.write_bytes(data)
        logger.info(f"Saved {path} ({len(data)} bytes)")
        return path


def archive_filename() -> str:
    """Timestamped archive name, e.g. 'compressed_images_1700000000000.zip'."""
    return f"compressed_images_{int(time.time() * 1000)}.zip"


def build_archive(entries: Iterable[Tuple[str, bytes]]) -> bytes:
    """
    Bundle (filename, bytes) pairs into one ZIP.

    A later entry replaces an earlier one with the same name.
    """
    files = {}
    for filename, data in entries:
        if filename in files:
            logger.warning(f"Duplicate archive entry {filename}, keeping the latest")
        files[filename] = data

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as zipf:
        for filename, data in files.items():
            zipf.writestr(filename, data)
    return buffer.getvalue()
