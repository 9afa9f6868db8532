# File: sitemap_streams/rotation.py
"""sitemap_streams.rotation: Splits an item stream over many sitemaps and indexes them.

:class:`SitemapAndIndexStream` owns one :class:`SitemapIndexStream` and, at
any moment, exactly one open :class:`SitemapStream` obtained from a
caller-supplied factory. When the open sitemap refuses an item because a
limit would be breached, the orchestrator waits until that sitemap's sink has
flushed everything, asks the factory for the next sitemap and retries the
item there. A sitemap is added to the index the moment it receives its first
item.

Пример:
```python
def get_sitemap_stream(i):
    sms = SitemapStream(hostname="https://example.com")
    path = f"sitemap-{i}.xml"
    return f"https://example.com/{path}", sms, FileSink(sms, out_dir / path)

async with SitemapAndIndexStream(get_sitemap_stream, count_limit=50_000) as smis:
    index = FileSink(smis, out_dir / "sitemap-index.xml")
    for url in urls:
        await smis.write(url)
await index.wait_finished()
```
"""

from __future__ import annotations

import asyncio
import weakref
from enum import Enum
from typing import AsyncIterator, Callable, List, Optional, Protocol, Tuple, Union

from sitemap_streams.errors import (
    ItemTooLargeError,
    ItemValidationError,
    LimitExceededError,
    ShardStateError,
    SinkFailedError,
    WriteAfterEndError,
)
from sitemap_streams.index_stream import SitemapIndexStream
from sitemap_streams.logger import logger
from sitemap_streams.models import ErrorLevel, IndexItem
from sitemap_streams.normalize import ErrorHandler, ItemInput
from sitemap_streams.sitemap_stream import SitemapStream
from sitemap_streams.stream import DEFAULT_MAX_BUFFERED_CHUNKS

__all__ = [
    "SitemapAndIndexStream",
    "RotationState",
    "ShardFactory",
    "ShardSink",
    "DEFAULT_COUNT_LIMIT",
    "DEFAULT_BYTE_LIMIT",
]

DEFAULT_COUNT_LIMIT = 45_000
DEFAULT_BYTE_LIMIT = 45 * 1024 * 1024


class ShardSink(Protocol):
    """Physical destination of a sitemap; only observed, never written to."""

    @property
    def finished(self) -> bool: ...

    async def wait_finished(self) -> None: ...


ShardFactory = Callable[
    [int], Tuple[Union[IndexItem, str], SitemapStream, Optional[ShardSink]]
]


class RotationState(str, Enum):
    WRITING = "writing"
    ROTATING = "rotating"
    DRAINING = "draining"
    CLOSED = "closed"


class SitemapAndIndexStream:
    """Write items across rotating sitemaps; iterate it to read the index document.

    Items are processed strictly one after another: a concurrent ``write()``
    waits until the previous item, including any rotation, is done.
    """

    def __init__(
        self,
        get_sitemap_stream: ShardFactory,
        *,
        count_limit: Optional[int] = None,
        byte_limit: Optional[int] = None,
        limit: Optional[int] = None,
        lastmod_date_only: bool = False,
        level: ErrorLevel = ErrorLevel.WARN,
        error_handler: Optional[ErrorHandler] = None,
        xsl_url: Optional[str] = None,
        max_buffered_chunks: int = DEFAULT_MAX_BUFFERED_CHUNKS,
    ) -> None:
        self._index = SitemapIndexStream(
            lastmod_date_only=lastmod_date_only,
            level=level,
            error_handler=error_handler,
            xsl_url=xsl_url,
            max_buffered_chunks=max_buffered_chunks,
        )
        self._factory = get_sitemap_stream
        # ``limit`` is the legacy spelling of ``count_limit`` and wins when given.
        if limit is not None:
            count_limit = limit
        self.count_limit = DEFAULT_COUNT_LIMIT if count_limit is None else count_limit
        self.byte_limit = DEFAULT_BYTE_LIMIT if byte_limit is None else byte_limit

        self.state = RotationState.WRITING
        self.item_count_total = 0
        self._ordinal = 0
        self._in_flight = 0
        self._end_requested = False
        self._finalizing = False
        self._pending_finalize: List[asyncio.Future] = []
        self._finalizer: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()
        self._failure: Optional[BaseException] = None

        self._current: SitemapStream
        self._current_entry: Union[IndexItem, str]
        self._current_sink: Optional[weakref.ReferenceType] = None
        self._announced = False
        self._install(*self._factory(self._ordinal))

    # ------------------------------------------------------------------ #
    # Introspection                                                       #
    # ------------------------------------------------------------------ #

    @property
    def sitemap_count(self) -> int:
        """Number of sitemaps obtained from the factory so far."""
        return self._ordinal + 1

    @property
    def current_sitemap(self) -> SitemapStream:
        return self._current

    @property
    def index(self) -> SitemapIndexStream:
        return self._index

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._index.__aiter__()

    def consumer_failed(self, error: BaseException) -> None:
        """The index consumer stopped; forwarded to the index writer."""
        self._index.consumer_failed(error)

    async def __aenter__(self) -> SitemapAndIndexStream:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.end()

    # ------------------------------------------------------------------ #
    # Writing                                                             #
    # ------------------------------------------------------------------ #

    async def write(self, item: ItemInput) -> bool:
        """Write *item* to the current sitemap, rotating when it is full.

        Returns ``False`` when validation dropped the item. Raises
        :class:`ItemTooLargeError` for an item that does not fit an empty
        sitemap; that and any other unexpected error close the whole pipeline.
        """
        if self._end_requested or self.state is RotationState.CLOSED:
            raise WriteAfterEndError("write after end")
        self._in_flight += 1
        try:
            async with self._lock:
                if self._failure is not None:
                    raise WriteAfterEndError("write after end: pipeline failed") from self._failure
                return await self._process(item)
        finally:
            self._in_flight -= 1
            if self._in_flight == 0 and self._pending_finalize:
                self._start_finalize()

    async def _process(self, item: ItemInput) -> bool:
        try:
            try:
                written = await self._current.write(item)
            except LimitExceededError as exc:
                await self._rotate(exc)
                written = await self._retry(item)
            except WriteAfterEndError as exc:
                # Writes hold the lock, so the shard that raised is still the current one.
                raise ShardStateError(
                    f"sitemap {self._ordinal} is closed but was never rotated"
                ) from exc
            else:
                if written:
                    await self._announce()
        except ItemValidationError:
            raise
        except Exception as exc:
            await self._abort(exc)
            raise
        if written:
            self.item_count_total += 1
        return written

    async def _retry(self, item: ItemInput) -> bool:
        try:
            written = await self._current.write(item)
        except LimitExceededError as exc:
            raise ItemTooLargeError(
                f"item does not fit an empty sitemap ({exc})"
            ) from exc
        if written:
            await self._announce()
        return written

    async def _announce(self) -> None:
        if self._announced or self._current.item_count == 0:
            return
        await self._index.write(self._current_entry)
        self._announced = True
        logger.debug("Indexed sitemap %d: %s", self._ordinal, self._current_entry)

    async def _rotate(self, cause: LimitExceededError) -> None:
        previous = self._current
        if previous.item_count == 0:
            raise ItemTooLargeError(f"item does not fit an empty sitemap ({cause})") from cause
        self.state = RotationState.ROTATING
        logger.debug(
            "Sitemap %d full (%d items, %d bytes): %s",
            self._ordinal,
            previous.item_count,
            previous.byte_count,
            cause,
        )
        await previous.end()
        await self._wait_for_sink()
        self._ordinal += 1
        self._install(*self._factory(self._ordinal))
        self.state = RotationState.DRAINING if self._end_requested else RotationState.WRITING
        logger.info("Rotated to sitemap %d", self._ordinal)

    def _install(
        self,
        entry: Union[IndexItem, str],
        stream: SitemapStream,
        sink: Optional[ShardSink],
    ) -> None:
        if stream.count_limit != self.count_limit:
            stream.count_limit = self.count_limit
        if stream.byte_limit != self.byte_limit:
            stream.byte_limit = self.byte_limit
        stream.add_error_listener(self._on_sitemap_error)
        self._current = stream
        self._current_entry = entry
        self._current_sink = weakref.ref(sink) if sink is not None else None
        self._announced = False

    def _on_sitemap_error(self, error: BaseException) -> None:
        if isinstance(error, (LimitExceededError, WriteAfterEndError)):
            logger.debug("Sitemap %d refused an item: %s", self._ordinal, error)
        elif isinstance(error, ItemValidationError):
            logger.debug("Sitemap %d rejected an item: %s", self._ordinal, error)
        else:
            logger.error("Sitemap %d failed: %s", self._ordinal, error)

    async def _wait_for_sink(self) -> None:
        sink = self._current_sink() if self._current_sink is not None else None
        if sink is not None and not sink.finished:
            await sink.wait_finished()

    # ------------------------------------------------------------------ #
    # Finishing                                                           #
    # ------------------------------------------------------------------ #

    async def end(self) -> None:
        """Close the current sitemap and the index once every pending write is done.

        Concurrent calls are all released together when finalization completes.
        """
        if self.state is RotationState.CLOSED:
            return
        self._end_requested = True
        if self.state is RotationState.WRITING:
            self.state = RotationState.DRAINING
        waiter = asyncio.get_running_loop().create_future()
        self._pending_finalize.append(waiter)
        if self._in_flight == 0:
            self._start_finalize()
        await waiter

    def _start_finalize(self) -> None:
        if self._finalizing or self.state is RotationState.CLOSED:
            return
        self._finalizing = True
        self._finalizer = asyncio.ensure_future(self._finalize())

    async def _finalize(self) -> None:
        error: Optional[BaseException] = None
        try:
            await self._current.end()
            await self._wait_for_sink()
        except Exception as exc:
            error = exc
        # the index is closed even when the last sitemap failed
        try:
            await self._index.end()
        except Exception as exc:
            error = error or exc
        if error is not None:
            logger.error("Finalizing sitemaps failed: %s", error)
        else:
            logger.info(
                "Wrote %d items across %d sitemaps", self.item_count_total, self.sitemap_count
            )
        self._settle(error)

    async def _abort(self, error: BaseException) -> None:
        self._failure = error
        logger.error("Sitemap pipeline aborted: %s", error)
        for stream in (self._current, self._index):
            try:
                await stream.end()
            except SinkFailedError as exc:
                logger.error("Could not close a document after abort: %s", exc)
        self._settle(error)

    def _settle(self, error: Optional[BaseException]) -> None:
        self.state = RotationState.CLOSED
        waiters, self._pending_finalize = self._pending_finalize, []
        for waiter in waiters:
            if waiter.done():
                continue
            if error is None:
                waiter.set_result(None)
            else:
                waiter.set_exception(error)
