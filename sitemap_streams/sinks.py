# File: sitemap_streams/sinks.py
"""sitemap_streams.sinks: Consumers that drain a writer's chunks to a file or memory.

A sink starts draining as soon as it is created, so it must be created while
an event loop is running. The drain task is kept referenced until it is done.
If the drain fails, the stream is told through ``consumer_failed()`` so a
writer waiting for queue room raises instead of blocking forever.
"""

from __future__ import annotations

import asyncio
import gzip
from pathlib import Path
from typing import AsyncIterable, List, Set, Union

from sitemap_streams.logger import logger

__all__ = ["FileSink", "BufferSink", "stream_to_bytes"]

_RUNNING: Set[asyncio.Task] = set()


async def stream_to_bytes(stream: AsyncIterable[bytes]) -> bytes:
    """Collect every chunk of *stream* until it is closed."""
    return b"".join([chunk async for chunk in stream])


class _DrainingSink:
    def __init__(self, stream: AsyncIterable[bytes]) -> None:
        self.bytes_written = 0
        self._stream = stream
        self._task = asyncio.get_running_loop().create_task(self._drain())
        _RUNNING.add(self._task)
        self._task.add_done_callback(_RUNNING.discard)
        self._task.add_done_callback(self._on_drain_done)

    async def _drain(self) -> None:
        raise NotImplementedError

    def _on_drain_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            error: BaseException = asyncio.CancelledError()
        else:
            error = task.exception()
            if error is None:
                return
        logger.error("Sink stopped draining: %s", error)
        notify = getattr(self._stream, "consumer_failed", None)
        if notify is not None:
            notify(error)

    @property
    def finished(self) -> bool:
        """True once the stream is exhausted and everything was flushed."""
        return self._task.done()

    async def wait_finished(self) -> None:
        """Wait for the drain to complete; re-raises any error the drain hit."""
        await asyncio.shield(self._task)


class FileSink(_DrainingSink):
    """Writes chunks to *path*, gzip-compressed when *compress* is set."""

    def __init__(
        self,
        stream: AsyncIterable[bytes],
        path: Union[str, Path],
        *,
        compress: bool = False,
    ) -> None:
        self.path = Path(path)
        self.compress = compress
        super().__init__(stream)

    async def _drain(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        opener = gzip.open if self.compress else open
        with opener(self.path, "wb") as fh:
            async for chunk in self._stream:
                fh.write(chunk)
                self.bytes_written += len(chunk)
        logger.debug("Wrote %s (%d bytes uncompressed)", self.path, self.bytes_written)


class BufferSink(_DrainingSink):
    """Keeps chunks in memory; handy for tests and for small indexes."""

    def __init__(self, stream: AsyncIterable[bytes]) -> None:
        self.chunks: List[bytes] = []
        super().__init__(stream)

    async def _drain(self) -> None:
        async for chunk in self._stream:
            self.chunks.append(chunk)
            self.bytes_written += len(chunk)

    def getvalue(self) -> bytes:
        return b"".join(self.chunks)
