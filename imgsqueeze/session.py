"""
Session state: the ordered image records plus the quality and format selections.

The session is the single owner of the records. Everything else reads snapshots
and hands updated records back through `replace`.
"""

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from .compressor import OUTPUT_FORMATS
from .errors import RecordBusyError, UnknownRecordError
from .estimator import MAX_QUALITY, MIN_QUALITY, PRESETS, estimate_size, preset_quality
from .records import ImageRecord, PreviewStore, RecordStatus, new_record_id
from .utils import guess_mime_type, is_supported_mime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionTotals:
    """Aggregate sizes over every record in a session."""
    record_count: int
    completed_count: int
    original_bytes: int
    # Estimates for unfinished records plus measured sizes for done ones
    estimated_bytes: int
    # Estimates for unfinished records only
    pending_estimate_bytes: int
    compressed_bytes: int

    @property
    def estimated_savings(self) -> int:
        return self.original_bytes - self.estimated_bytes

    @property
    def compression_percent(self) -> float:
        if self.original_bytes == 0:
            return 0.0
        return (1 - self.compressed_bytes / self.original_bytes) * 100


class CompressionSession:
    """
    In-memory collection of uploaded images.

    Example:
        session = CompressionSession()
        session.add_paths(["a.jpg", "b.png"])
        session.set_preset("low")
        print(session.totals().estimated_bytes)
    """

    DEFAULT_PRESET = 'medium'
    DEFAULT_QUALITY = 70
    DEFAULT_FORMAT = 'original'

    def __init__(
        self,
        previews: Optional[PreviewStore] = None,
        preset: str = DEFAULT_PRESET,
        quality: int = DEFAULT_QUALITY,
        output_format: str = DEFAULT_FORMAT
    ):
        self.previews = previews if previews is not None else PreviewStore()
        self._records: List[ImageRecord] = []
        self._preset = self.DEFAULT_PRESET
        self._quality = self.DEFAULT_QUALITY
        self._output_format = self.DEFAULT_FORMAT

        if preset == 'custom':
            self._preset = 'custom'
            self._quality = self._check_quality(quality)
        else:
            self.set_preset(preset)
        self.set_output_format(output_format)

    # ---- Selections ----
    @property
    def preset(self) -> str:
        return self._preset

    @property
    def quality(self) -> int:
        return self._quality

    @property
    def output_format(self) -> str:
        return self._output_format

    @staticmethod
    def _check_quality(quality: int) -> int:
        quality = int(quality)
        if not MIN_QUALITY <= quality <= MAX_QUALITY:
            raise ValueError(f"Quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}")
        return quality

    def set_preset(self, preset: str) -> None:
        """Select a preset. Named presets also set the quality value."""
        if preset not in PRESETS:
            raise ValueError(f"Unknown preset '{preset}', expected one of {', '.join(PRESETS)}")
        self._preset = preset
        if preset != 'custom':
            self._quality = preset_quality(preset)
        self._reestimate()

    def set_quality(self, quality: int) -> None:
        """Set a custom quality value; this switches the preset to 'custom'."""
        self._quality = self._check_quality(quality)
        self._preset = 'custom'
        self._reestimate()

    def set_output_format(self, output_format: str) -> None:
        fmt = (output_format or '').lower()
        if fmt not in OUTPUT_FORMATS:
            raise ValueError(f"Unknown output format '{output_format}', expected one of {', '.join(OUTPUT_FORMATS)}")
        self._output_format = fmt

    def _estimate(self, source_bytes: int) -> int:
        return estimate_size(source_bytes, self._preset, self._quality)

    def _reestimate(self) -> None:
        self._records = [
            record if record.status == RecordStatus.DONE
            else dataclasses.replace(record, estimated_bytes=self._estimate(record.source_bytes))
            for record in self._records
        ]

    # ---- Collection access ----
    @property
    def records(self) -> Tuple[ImageRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ImageRecord]:
        return iter(self.records)

    def _index(self, record_id: str) -> int:
        for i, record in enumerate(self._records):
            if record.id == record_id:
                return i
        raise UnknownRecordError(f"No record with id '{record_id}'")

    def get(self, record_id: str) -> ImageRecord:
        return self._records[self._index(record_id)]

    def __contains__(self, record_id: object) -> bool:
        return any(record.id == record_id for record in self._records)

    def with_status(self, *statuses: RecordStatus) -> List[ImageRecord]:
        return [record for record in self._records if record.status in statuses]

    def done_records(self) -> List[ImageRecord]:
        return [record for record in self._records if record.is_done]

    # ---- Upload ----
    def add_file(self, name: str, data: bytes, mime_type: Optional[str] = None) -> Optional[ImageRecord]:
        """
        Accept one uploaded file.

        Returns:
            The new record, or None if the file type is not allowed
        """
        mime_type = (mime_type or guess_mime_type(name) or '').lower()
        if not is_supported_mime(mime_type):
            logger.warning(f"Skipping {name}: unsupported type '{mime_type or 'unknown'}'")
            return None

        record = ImageRecord(
            id=new_record_id(),
            name=name,
            mime_type=mime_type,
            data=data,
            source_bytes=len(data),
            preview=self.previews.create(data, mime_type),
            estimated_bytes=self._estimate(len(data)),
        )
        self._records.append(record)
        logger.debug(f"Added {name} as {record.id} ({record.source_bytes} bytes)")
        return record

    def add_paths(self, paths: Iterable[Union[str, Path]]) -> List[ImageRecord]:
        """Read files from disk and add every supported one."""
        added = []
        for path in paths:
            path = Path(path)
            if not path.is_file():
                logger.warning(f"Skipping {path}: not a file")
                continue
            if not is_supported_mime(guess_mime_type(path.name)):
                logger.warning(f"Skipping {path}: unsupported image type")
                continue
            record = self.add_file(path.name, path.read_bytes())
            if record is not None:
                added.append(record)
        return added

    # ---- Updates ----
    def replace(self, record: ImageRecord) -> bool:
        """
        Swap in an updated record with the same id.

        Returns False if the record is no longer part of the session.
        """
        try:
            index = self._index(record.id)
        except UnknownRecordError:
            logger.warning(f"Dropping update for removed record {record.id}")
            return False
        self._records[index] = record
        return True

    def update(self, record_id: str, **changes) -> Optional[ImageRecord]:
        """
        Apply field changes to the current version of a record.

        Returns the updated record, or None if it is no longer part of the session.
        """
        try:
            index = self._index(record_id)
        except UnknownRecordError:
            logger.warning(f"Dropping update for removed record {record_id}")
            return None
        record = dataclasses.replace(self._records[index], **changes)
        self._records[index] = record
        return record

    def mark_compressing(self, record_ids: Iterable[str]) -> List[ImageRecord]:
        """Move the given records to 'compressing' and return them in session order."""
        wanted = set(record_ids)
        marked = []
        for i, record in enumerate(self._records):
            if record.id in wanted:
                record = dataclasses.replace(record, status=RecordStatus.COMPRESSING)
                self._records[i] = record
                marked.append(record)
        return marked

    def _release(self, record: ImageRecord) -> None:
        if record.preview is not None:
            self.previews.revoke(record.preview)

    def remove_record(self, record_id: str) -> ImageRecord:
        """Remove a record and release its preview."""
        index = self._index(record_id)
        record = self._records[index]
        if record.status == RecordStatus.COMPRESSING:
            raise RecordBusyError(f"Record '{record_id}' is being compressed")
        del self._records[index]
        self._release(record)
        return record

    def clear(self) -> None:
        """Remove every record. Quality, preset and format selections are kept."""
        busy = self.with_status(RecordStatus.COMPRESSING)
        if busy:
            raise RecordBusyError(f"{len(busy)} record(s) are being compressed")
        records, self._records = self._records, []
        for record in records:
            self._release(record)

    # ---- Aggregates ----
    def totals(self) -> SessionTotals:
        original = estimated = pending_estimate = compressed = completed = 0
        for record in self._records:
            original += record.source_bytes
            if record.is_done:
                completed += 1
                compressed += record.compressed_bytes
                estimated += record.compressed_bytes
            else:
                estimated += record.estimated_bytes
                pending_estimate += record.estimated_bytes

        return SessionTotals(
            record_count=len(self._records),
            completed_count=completed,
            original_bytes=original,
            estimated_bytes=estimated,
            pending_estimate_bytes=pending_estimate,
            compressed_bytes=compressed,
        )
