# File: sitemap_streams/index_stream.py
"""sitemap_streams.index_stream: Writer for a ``<sitemapindex>`` document."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple, Union

from sitemap_streams.elements import (
    SITEMAPINDEX_CLOSE_TAG,
    SITEMAPINDEX_OPEN_TAG,
    XML_DECLARATION,
    encode_index_item,
    stylesheet_include,
)
from sitemap_streams.errors import InvalidLastmodError, ItemValidationError, NoURLError
from sitemap_streams.logger import logger
from sitemap_streams.models import ErrorLevel, IndexItem
from sitemap_streams.normalize import ErrorHandler, format_lastmod, handle_error
from sitemap_streams.stream import DEFAULT_MAX_BUFFERED_CHUNKS, XmlChunkStream

__all__ = ["SitemapIndexStream", "IndexEntryT"]

IndexEntryT = Union[str, IndexItem, Mapping[str, Any]]


class SitemapIndexStream(XmlChunkStream):
    """One ``<sitemap>`` element per write; no size or count ceiling of its own."""

    def __init__(
        self,
        *,
        lastmod_date_only: bool = False,
        level: ErrorLevel = ErrorLevel.WARN,
        error_handler: Optional[ErrorHandler] = None,
        xsl_url: Optional[str] = None,
        max_buffered_chunks: int = DEFAULT_MAX_BUFFERED_CHUNKS,
    ) -> None:
        super().__init__(xsl_url=xsl_url, max_buffered_chunks=max_buffered_chunks)
        self.lastmod_date_only = lastmod_date_only
        self.level = ErrorLevel(level)
        self.error_handler = error_handler

    def _head(self) -> str:
        stylesheet = stylesheet_include(self.xsl_url) if self.xsl_url else ""
        return XML_DECLARATION + stylesheet + SITEMAPINDEX_OPEN_TAG

    def _close_tag(self) -> str:
        return SITEMAPINDEX_CLOSE_TAG

    def _report(self, error: ItemValidationError) -> None:
        (self.error_handler or handle_error)(error, self.level)

    def _resolve(self, entry: IndexEntryT) -> Tuple[str, Optional[str]]:
        if isinstance(entry, str):
            url, lastmod = entry, None
        elif isinstance(entry, IndexItem):
            url, lastmod = entry.url, entry.lastmod
        else:
            url, lastmod = entry.get("url"), entry.get("lastmod")
        if not url or not str(url).strip():
            raise NoURLError("sitemap index entry requires a url")
        if not lastmod:
            return str(url).strip(), None
        try:
            return str(url).strip(), format_lastmod(lastmod, self.lastmod_date_only)
        except InvalidLastmodError as exc:
            self._report(exc)
            return str(url).strip(), str(lastmod)

    async def _write_locked(self, entry: IndexEntryT) -> bool:
        try:
            url, lastmod = self._resolve(entry)
        except NoURLError as exc:
            self._report(exc)
            logger.debug("Dropped sitemap index entry %r: %s", entry, exc)
            return False
        await self._commit(encode_index_item(url, lastmod).encode("utf-8"))
        return True
