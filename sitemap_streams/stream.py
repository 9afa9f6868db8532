# File: sitemap_streams/stream.py
"""sitemap_streams.stream: Bounded channel of encoded XML chunks shared by both writers.

A writer turns items into UTF-8 chunks and puts them on an
:class:`asyncio.Queue`; the consumer drains them with ``async for``. The
queue is bounded, so a slow consumer slows ``write()`` down instead of
letting chunks pile up in memory.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional

from sitemap_streams.errors import (
    ConfigurationError,
    SinkFailedError,
    SitemapError,
    WriteAfterEndError,
)
from sitemap_streams.models import ShardCounters

__all__ = ["XmlChunkStream", "ErrorListener", "DEFAULT_MAX_BUFFERED_CHUNKS"]

DEFAULT_MAX_BUFFERED_CHUNKS = 16

ErrorListener = Callable[[BaseException], None]


class XmlChunkStream:
    """Base writer: emits the document head once, entries, then the closing tag once.

    ``counters.byte_count`` reserves the closing tag as soon as the head is
    written, so at any time it is the size the document would have if it
    were closed right now.
    """

    def __init__(
        self,
        *,
        xsl_url: Optional[str] = None,
        max_buffered_chunks: int = DEFAULT_MAX_BUFFERED_CHUNKS,
    ) -> None:
        if max_buffered_chunks < 1:
            raise ConfigurationError("max_buffered_chunks must be at least 1")
        self.xsl_url = xsl_url
        self.counters = ShardCounters()
        self._queue: asyncio.Queue[Optional[bytes]] = asyncio.Queue(maxsize=max_buffered_chunks)
        self._lock = asyncio.Lock()
        self._listeners: List[ErrorListener] = []
        self._has_head_output = False
        self._wrote_close_tag = False
        self._exhausted = False
        self._consumer_error: Optional[BaseException] = None

    # ------------------------------------------------------------------ #
    # Hooks for subclasses                                                #
    # ------------------------------------------------------------------ #

    def _head(self) -> str:
        raise NotImplementedError

    def _close_tag(self) -> str:
        raise NotImplementedError

    async def _write_locked(self, item: Any) -> bool:
        raise NotImplementedError

    def _on_end(self) -> None:
        """Called once the closing tag went out through :meth:`end`."""

    # ------------------------------------------------------------------ #
    # Public API                                                          #
    # ------------------------------------------------------------------ #

    @property
    def item_count(self) -> int:
        return self.counters.item_count

    @property
    def byte_count(self) -> int:
        return self.counters.byte_count

    @property
    def wrote_close_tag(self) -> bool:
        """True once the closing tag has been emitted; the writer accepts nothing more."""
        return self._wrote_close_tag

    def add_error_listener(self, listener: ErrorListener) -> None:
        self._listeners.append(listener)

    def consumer_failed(self, error: BaseException) -> None:
        """Called by the consumer when it stops with *error*.

        Queued chunks are discarded, which also releases a writer blocked on
        a full queue. Every later write raises :class:`SinkFailedError`;
        :meth:`end` only marks the document closed.
        """
        if self._consumer_error is not None:
            return
        self._consumer_error = error
        while not self._queue.empty():
            self._queue.get_nowait()

    @property
    def consumer_error(self) -> Optional[BaseException]:
        return self._consumer_error

    async def write(self, item: Any) -> bool:
        """Write one entry; returns ``False`` when the entry was dropped by validation."""
        try:
            async with self._lock:
                self._check_writable()
                self._raise_if_consumer_failed()
                return await self._write_locked(item)
        except SitemapError as exc:
            self._emit_error(exc)
            raise

    async def end(self) -> None:
        """Emit the closing tag (and the head, for an empty document). Idempotent."""
        async with self._lock:
            if self._wrote_close_tag:
                return
            await self._write_close()
            self._on_end()

    def __aiter__(self) -> XmlChunkStream:
        return self

    async def __anext__(self) -> bytes:
        if self._exhausted:
            raise StopAsyncIteration
        chunk = await self._queue.get()
        if chunk is None:
            self._exhausted = True
            raise StopAsyncIteration
        return chunk

    async def __aenter__(self) -> XmlChunkStream:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.end()

    # ------------------------------------------------------------------ #
    # Internals                                                           #
    # ------------------------------------------------------------------ #

    def _emit_error(self, error: BaseException) -> None:
        for listener in list(self._listeners):
            listener(error)

    def _check_writable(self) -> None:
        if self._wrote_close_tag:
            raise WriteAfterEndError("write after end")

    def _raise_if_consumer_failed(self) -> None:
        if self._consumer_error is not None:
            raise SinkFailedError(
                f"consumer stopped: {self._consumer_error}"
            ) from self._consumer_error

    async def _put(self, chunk: bytes) -> None:
        self._raise_if_consumer_failed()
        await self._queue.put(chunk)
        # the consumer may have died while this put waited for room
        self._raise_if_consumer_failed()

    def _projected_size(self, entry_bytes: int) -> int:
        """Document size if an entry of *entry_bytes* were committed now."""
        size = self.counters.byte_count + entry_bytes
        if not self._has_head_output:
            size += len(self._head().encode("utf-8")) + len(self._close_tag().encode("utf-8"))
        return size

    async def _write_head(self) -> None:
        head = self._head().encode("utf-8")
        await self._put(head)
        self._has_head_output = True
        self.counters.byte_count += len(head) + len(self._close_tag().encode("utf-8"))

    async def _commit(self, entry: bytes) -> None:
        if not self._has_head_output:
            await self._write_head()
        await self._put(entry)
        self.counters.byte_count += len(entry)
        self.counters.item_count += 1

    async def _write_close(self) -> None:
        self._wrote_close_tag = True
        if self._consumer_error is not None:
            return
        if not self._has_head_output:
            await self._write_head()
        await self._queue.put(self._close_tag().encode("utf-8"))
        await self._queue.put(None)
