"""sitemap_streams: потоковая генерация sitemap-файлов с ротацией и индексом."""

__version__ = "0.1.0"

from sitemap_streams.errors import (  # noqa: E402
    ByteLimitExceededError,
    ConfigurationError,
    CountLimitExceededError,
    ItemTooLargeError,
    ItemValidationError,
    LimitExceededError,
    ShardStateError,
    SinkFailedError,
    SitemapError,
    WriteAfterEndError,
)
from sitemap_streams.index_stream import SitemapIndexStream  # noqa: E402
from sitemap_streams.models import ErrorLevel, IndexItem, SitemapItem  # noqa: E402
from sitemap_streams.rotation import SitemapAndIndexStream  # noqa: E402
from sitemap_streams.sinks import BufferSink, FileSink, stream_to_bytes  # noqa: E402
from sitemap_streams.sitemap_stream import SitemapStream  # noqa: E402

__all__ = [
    "__version__",
    "SitemapStream",
    "SitemapIndexStream",
    "SitemapAndIndexStream",
    "FileSink",
    "BufferSink",
    "stream_to_bytes",
    "SitemapItem",
    "IndexItem",
    "ErrorLevel",
    "SitemapError",
    "ConfigurationError",
    "LimitExceededError",
    "ByteLimitExceededError",
    "CountLimitExceededError",
    "WriteAfterEndError",
    "ShardStateError",
    "ItemTooLargeError",
    "SinkFailedError",
    "ItemValidationError",
]
