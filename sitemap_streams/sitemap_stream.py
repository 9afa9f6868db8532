# File: sitemap_streams/sitemap_stream.py
"""sitemap_streams.sitemap_stream: Writer for a single ``<urlset>`` document with hard ceilings.

Пример:
```python
sms = SitemapStream(hostname="https://example.com", count_limit=50_000)
sink = FileSink(sms, "sitemap-0.xml")
await sms.write("/about")
await sms.end()
await sink.wait_finished()
```
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional, Union

from sitemap_streams.elements import (
    URLSET_CLOSE_TAG,
    XML_DECLARATION,
    encode_url_item,
    stylesheet_include,
    urlset_open_tag,
)
from sitemap_streams.errors import (
    ByteLimitExceededError,
    ConfigurationError,
    CountLimitExceededError,
    ItemValidationError,
    LimitExceededError,
    WriteAfterEndError,
)
from sitemap_streams.logger import logger
from sitemap_streams.models import ErrorLevel, XmlnsOptions
from sitemap_streams.normalize import ErrorHandler, ItemInput, handle_error, normalize_item, validate_item
from sitemap_streams.stream import DEFAULT_MAX_BUFFERED_CHUNKS, XmlChunkStream

__all__ = ["SitemapStream", "WriterState"]


class WriterState(str, Enum):
    OPEN = "open"
    LIMIT_EXCEEDED = "limit_exceeded"
    CLOSED = "closed"


class SitemapStream(XmlChunkStream):
    """Single sitemap file writer.

    Each write is checked against ``byte_limit`` and ``count_limit`` before
    anything is emitted. A write that would breach a limit raises
    :class:`ByteLimitExceededError` / :class:`CountLimitExceededError`, closes
    the document and leaves the writer in :attr:`WriterState.LIMIT_EXCEEDED`.
    Both limits can be set once, and only before the first write.
    """

    def __init__(
        self,
        *,
        hostname: Optional[str] = None,
        xmlns: Union[XmlnsOptions, Mapping[str, Any], None] = None,
        xsl_url: Optional[str] = None,
        lastmod_date_only: bool = False,
        level: ErrorLevel = ErrorLevel.WARN,
        error_handler: Optional[ErrorHandler] = None,
        count_limit: Optional[int] = None,
        byte_limit: Optional[int] = None,
        max_buffered_chunks: int = DEFAULT_MAX_BUFFERED_CHUNKS,
    ) -> None:
        super().__init__(xsl_url=xsl_url, max_buffered_chunks=max_buffered_chunks)
        self.hostname = str(hostname) if hostname else None
        if xmlns is None:
            xmlns = XmlnsOptions()
        elif isinstance(xmlns, Mapping):
            xmlns = XmlnsOptions(**xmlns)
        self.xmlns: XmlnsOptions = xmlns
        self.lastmod_date_only = lastmod_date_only
        self.level = ErrorLevel(level)
        self.error_handler = error_handler
        self.state = WriterState.OPEN
        self._count_limit: Optional[int] = None
        self._byte_limit: Optional[int] = None
        if count_limit is not None:
            self.count_limit = count_limit
        if byte_limit is not None:
            self.byte_limit = byte_limit

    # ------------------------------------------------------------------ #
    # Limits                                                              #
    # ------------------------------------------------------------------ #

    @property
    def count_limit(self) -> Optional[int]:
        return self._count_limit

    @count_limit.setter
    def count_limit(self, value: int) -> None:
        self._set_limit("count_limit", value)

    @property
    def byte_limit(self) -> Optional[int]:
        return self._byte_limit

    @byte_limit.setter
    def byte_limit(self, value: int) -> None:
        self._set_limit("byte_limit", value)

    def _set_limit(self, name: str, value: int) -> None:
        if self.item_count > 0:
            raise ConfigurationError(f"cannot set {name} if items written already")
        if getattr(self, f"_{name}") is not None:
            raise ConfigurationError(f"cannot set {name} if already set")
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
        setattr(self, f"_{name}", value)

    @property
    def destroyed(self) -> bool:
        """True when the writer was closed by a limit error."""
        return self.state is WriterState.LIMIT_EXCEEDED

    # ------------------------------------------------------------------ #
    # Writer hooks                                                        #
    # ------------------------------------------------------------------ #

    def _head(self) -> str:
        stylesheet = stylesheet_include(self.xsl_url) if self.xsl_url else ""
        return XML_DECLARATION + stylesheet + urlset_open_tag(self.xmlns)

    def _close_tag(self) -> str:
        return URLSET_CLOSE_TAG

    def _on_end(self) -> None:
        if self.state is WriterState.OPEN:
            self.state = WriterState.CLOSED

    def _check_writable(self) -> None:
        if self.state is WriterState.LIMIT_EXCEEDED:
            raise WriteAfterEndError("write after end: stream was destroyed")
        super()._check_writable()

    async def _write_locked(self, item: ItemInput) -> bool:
        try:
            smi = normalize_item(item, self.hostname, self.lastmod_date_only)
        except ItemValidationError as exc:
            (self.error_handler or handle_error)(exc, self.level)
            logger.debug("Dropped sitemap item %r: %s", item, exc)
            return False
        validate_item(smi, self.level, self.error_handler)

        entry = encode_url_item(smi).encode("utf-8")
        if self._byte_limit is not None and self._projected_size(len(entry)) > self._byte_limit:
            await self._fail(
                ByteLimitExceededError(
                    "Byte count limit would be exceeded, not writing, stream will close"
                )
            )
        if self._count_limit is not None and self.item_count + 1 > self._count_limit:
            await self._fail(
                CountLimitExceededError(
                    "Item count limit would be exceeded, not writing, stream will close"
                )
            )
        await self._commit(entry)
        return True

    async def _fail(self, error: LimitExceededError) -> None:
        self.state = WriterState.LIMIT_EXCEEDED
        await self._write_close()
        logger.debug(
            "Sitemap closed after %d items / %d bytes: %s",
            self.item_count,
            self.byte_count,
            error,
        )
        raise error
