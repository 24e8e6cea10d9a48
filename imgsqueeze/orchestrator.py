"""
Batch orchestration: drive pending records through a compression backend and
hand the results to a saver.

Records are taken in session order and fed to a small pool of workers. With
the default single worker only one compression call is in flight at a time,
which bounds the load on the compression side.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .archive import DirectorySaver, Saver, archive_filename, build_archive
from .backends import CompressionBackend, LocalBackend
from .records import ImageRecord, RecordStatus
from .session import CompressionSession

logger = logging.getLogger(__name__)


class BatchOrchestrator:
    """
    Sequential (by default) batch compression over a CompressionSession.

    Example:
        orchestrator = BatchOrchestrator(session, LocalBackend(), DirectorySaver("out"))
        asyncio.run(orchestrator.start_batch())
        asyncio.run(orchestrator.download_archive())
    """

    def __init__(
        self,
        session: CompressionSession,
        backend: Optional[CompressionBackend] = None,
        saver: Optional[Saver] = None,
        workers: int = 1
    ):
        if workers < 1:
            raise ValueError(f"Need at least one worker, got {workers}")
        self.session = session
        self.backend = backend or LocalBackend()
        self.saver = saver or DirectorySaver('compressed')
        self.workers = workers
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def _compress_record(self, record: ImageRecord, quality: int, output_format: str) -> Dict[str, Any]:
        """Run one record through the backend and return the outcome fields."""
        try:
            result = await self.backend.compress(
                record.data, record.name, quality, output_format, record.mime_type
            )
        except Exception as e:
            message = str(e) or 'Compression failed'
            logger.warning(f"Compression failed for {record.name}: {message}")
            return {
                'status': RecordStatus.ERROR,
                'result': None,
                'compression_ratio': None,
                'error_message': message,
            }

        logger.info(
            f"Compressed {record.name}: {record.source_bytes} -> "
            f"{result.compressed.size} bytes (-{result.compression_ratio}%)"
        )
        return {
            'status': RecordStatus.DONE,
            'result': result,
            'compression_ratio': result.compression_ratio,
            'error_message': None,
        }

    async def _worker(self, queue: asyncio.Queue, quality: int, output_format: str, finished: List[ImageRecord]) -> None:
        while True:
            try:
                record = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                outcome = await self._compress_record(record, quality, output_format)
                # The session may have changed while the call was in flight
                updated = self.session.update(record.id, **outcome)
                if updated is not None:
                    finished.append(updated)
            finally:
                queue.task_done()

    async def start_batch(self) -> List[ImageRecord]:
        """
        Compress every pending record.

        Records left in 'compressing' by an earlier, interrupted batch are
        picked up again. Returns the finished records in completion order.
        """
        if self._running:
            logger.warning("A batch is already running; ignoring start request")
            return []

        eligible = self.session.with_status(RecordStatus.PENDING, RecordStatus.COMPRESSING)
        if not eligible:
            logger.info("Nothing to compress")
            return []

        self._running = True
        try:
            quality = self.session.quality
            output_format = self.session.output_format
            marked = self.session.mark_compressing(record.id for record in eligible)

            logger.info(
                f"Compressing {len(marked)} image(s) at quality {quality}, "
                f"format {output_format}, {self.workers} worker(s)"
            )

            queue: asyncio.Queue = asyncio.Queue()
            for record in marked:
                queue.put_nowait(record)

            finished: List[ImageRecord] = []
            pool = min(self.workers, len(marked))
            await asyncio.gather(*(
                self._worker(queue, quality, output_format, finished)
                for _ in range(pool)
            ))
        finally:
            self._running = False

        done = sum(1 for record in finished if record.status == RecordStatus.DONE)
        logger.info(f"Batch finished: {done} done, {len(finished) - done} failed")
        return finished

    def download_single(self, record: ImageRecord) -> Optional[Path]:
        """Save one compressed image. Does nothing for records without a result."""
        if not record.is_done:
            return None
        return self.saver.save(record.download_name, record.result.compressed.payload)

    async def download_archive(self) -> Optional[Path]:
        """
        Save every finished image in a single ZIP.

        Returns None without saving when nothing is finished or the archive
        could not be built. A malformed payload fails the whole archive.
        """
        completed = self.session.done_records()
        if not completed:
            return None

        try:
            entries = [(record.download_name, record.result.compressed.payload) for record in completed]
            content = await asyncio.to_thread(build_archive, entries)
        except Exception:
            logger.exception("Failed to build archive")
            return None

        return self.saver.save(archive_filename(), content)
