"""
Append-only dataset log writer.

A single background task owns the file handle. Producers enqueue serialized
lines and await a future that resolves once that line has been written and
flushed, so lines land in submission order and never interleave.
"""

import asyncio
from pathlib import Path
from typing import Any, Optional, Tuple

import structlog
from aiofiles import open as aio_open

from ..models.dataset_entry import DatasetEntry
from .exceptions import WriteError, WriterClosedError

logger = structlog.get_logger(__name__)

_WriteRequest = Tuple[bytes, "asyncio.Future[None]"]


class AppendLogWriter:
    """
    Serializing writer for the JSON-lines dataset log.

    Features:
    - File opened once in append mode, never seeked or truncated
    - FIFO queue drained by one task
    - Graceful stop: refuse new writes, drain the queue, close the file
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.lines_written = 0
        self._queue: "asyncio.Queue[Optional[_WriteRequest]]" = asyncio.Queue()
        self._file: Any = None
        self._task: Optional[asyncio.Task[None]] = None
        self._closing = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._closing

    @property
    def pending(self) -> int:
        """Number of lines waiting for the writer task."""
        return self._queue.qsize()

    async def start(self) -> None:
        """Open the dataset log and start the writer task."""
        if self._task is not None:
            return

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = await aio_open(self.path, "ab")
        except OSError as e:
            logger.error("Cannot open dataset log", path=str(self.path), error=str(e))
            raise WriteError(details={"reason": str(e)}) from e

        self._closing = False
        self._task = asyncio.create_task(self._run())
        logger.info("Dataset writer started", path=str(self.path))

    async def append(self, entry: DatasetEntry) -> None:
        """
        Append one entry and wait until it has been written.

        Raises WriterClosedError once shutdown has begun and WriteError if
        the underlying write fails.
        """
        if self._task is None or self._closing:
            raise WriterClosedError()

        done: "asyncio.Future[None]" = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((entry.to_line(), done))
        # Cancelling the caller drops the result, not the write
        await done

    async def stop(self) -> None:
        """Refuse new writes, drain queued lines, then close the file."""
        if self._task is None:
            return

        self._closing = True
        logger.info("Draining dataset writer", pending=self.pending)
        self._queue.put_nowait(None)
        await self._task
        self._task = None

        if self._file is not None:
            await self._file.close()
            self._file = None

        logger.info("Dataset writer stopped", lines_written=self.lines_written)

    async def _run(self) -> None:
        """Writer loop: one line at a time, in queue order."""
        while True:
            item = await self._queue.get()
            try:
                if item is None:
                    break
                line, done = item
                try:
                    await self._file.write(line)
                    await self._file.flush()
                except Exception as e:
                    logger.error(
                        "WriteError",
                        path=str(self.path),
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    if not done.done():
                        done.set_exception(WriteError(details={"reason": str(e)}))
                else:
                    self.lines_written += 1
                    if not done.done():
                        done.set_result(None)
            finally:
                self._queue.task_done()
