# File: tests/conftest.py
from typing import Callable, List, Tuple

import pytest
from lxml import etree

from sitemap_streams.config import SitemapConfig
from sitemap_streams.logger import library_default
from sitemap_streams.sinks import BufferSink
from sitemap_streams.sitemap_stream import SitemapStream

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
NSMAP = {"sm": SITEMAP_NS}


class ShardRecorder:
    """
    Shard factory for SitemapAndIndexStream that keeps every stream and its
    in-memory sink, so tests can inspect each produced sitemap.
    """

    def __init__(self, **stream_kwargs) -> None:
        self.stream_kwargs = stream_kwargs
        self.shards: List[Tuple[str, SitemapStream, BufferSink]] = []

    def __call__(self, ordinal: int):
        stream = SitemapStream(**self.stream_kwargs)
        sink = BufferSink(stream)
        location = f"https://example.com/sitemap-{ordinal}.xml"
        self.shards.append((location, stream, sink))
        return location, stream, sink

    async def outputs(self) -> List[bytes]:
        result = []
        for _, _, sink in self.shards:
            await sink.wait_finished()
            result.append(sink.getvalue())
        return result


@pytest.fixture(autouse=True)
def reset_logger():
    """
    CLI tests point the project logger at CliRunner's stdout; restore the
    import-time setup afterwards.
    """
    yield
    library_default()


@pytest.fixture()
def sample_urls() -> List[str]:
    return [f"https://example.com/page-{i}" for i in range(1, 6)]


@pytest.fixture()
def make_recorder() -> Callable[..., ShardRecorder]:
    return ShardRecorder


@pytest.fixture()
def parse_xml() -> Callable[[bytes], etree._Element]:
    """
    Parse a produced document; lxml raises XMLSyntaxError if it is not well-formed.
    """
    return etree.fromstring


@pytest.fixture()
def locs() -> Callable[[bytes], List[str]]:
    """Return every <loc> text of a sitemap or sitemap index document."""

    def _locs(data: bytes) -> List[str]:
        root = etree.fromstring(data)
        return [el.text for el in root.iterfind(".//sm:loc", namespaces=NSMAP)]

    return _locs


@pytest.fixture()
def basic_config() -> SitemapConfig:
    return SitemapConfig(
        hostname="https://example.com",
        base_url="https://example.com/sitemaps/",
        count_limit=2,
    )
