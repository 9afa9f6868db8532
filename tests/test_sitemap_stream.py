# File: tests/test_sitemap_stream.py
import pytest

from sitemap_streams.errors import (
    ByteLimitExceededError,
    ChangefreqInvalidError,
    ConfigurationError,
    CountLimitExceededError,
    NoURLError,
    PriorityInvalidError,
    SinkFailedError,
    WriteAfterEndError,
)
from sitemap_streams.models import ErrorLevel
from sitemap_streams.sinks import BufferSink
from sitemap_streams.sitemap_stream import SitemapStream, WriterState

PREAMBLE = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"'
    ' xmlns:news="http://www.google.com/schemas/sitemap-news/0.9"'
    ' xmlns:xhtml="http://www.w3.org/1999/xhtml"'
    ' xmlns:image="http://www.google.com/schemas/sitemap-image/1.1"'
    ' xmlns:video="http://www.google.com/schemas/sitemap-video/1.1">'
)
CLOSETAG = "</urlset>"


async def _finish(stream: SitemapStream, sink: BufferSink) -> str:
    await stream.end()
    await sink.wait_finished()
    return sink.getvalue().decode("utf-8")


@pytest.mark.asyncio()
async def test_empty_stream_is_preamble_and_closetag():
    sms = SitemapStream()
    sink = BufferSink(sms)
    out = await _finish(sms, sink)
    assert out == PREAMBLE + CLOSETAG
    assert sms.byte_count == len(out.encode("utf-8"))
    assert sms.state is WriterState.CLOSED


@pytest.mark.asyncio()
async def test_stylesheet_follows_declaration():
    sms = SitemapStream(xsl_url="https://example.com/style.xsl")
    sink = BufferSink(sms)
    out = await _finish(sms, sink)
    assert out.startswith(
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<?xml-stylesheet type="text/xsl" href="https://example.com/style.xsl"?><urlset '
    )
    assert out.endswith(CLOSETAG)


@pytest.mark.asyncio()
async def test_single_item_byte_count(parse_xml):
    sms = SitemapStream()
    sink = BufferSink(sms)
    assert await sms.write("http://example.com") is True
    assert sms.item_count == 1
    assert sms.byte_count == 375
    out = await _finish(sms, sink)
    assert out == PREAMBLE + "<url><loc>http://example.com/</loc></url>" + CLOSETAG
    assert len(out.encode("utf-8")) == 375
    parse_xml(out.encode("utf-8"))


@pytest.mark.asyncio()
async def test_count_limit_closes_stream(parse_xml):
    sms = SitemapStream(count_limit=1)
    sink = BufferSink(sms)
    await sms.write("https://example.com/a")
    with pytest.raises(CountLimitExceededError) as exc_info:
        await sms.write("https://example.com/b")
    assert "Item count limit would be exceeded" in str(exc_info.value)
    assert sms.wrote_close_tag
    assert sms.destroyed
    assert sms.item_count == 1

    await sink.wait_finished()
    root = parse_xml(sink.getvalue())
    assert len(root) == 1
    assert sms.byte_count == len(sink.getvalue())


@pytest.mark.asyncio()
async def test_byte_limit_closes_stream(parse_xml):
    sms = SitemapStream(byte_limit=400)
    sink = BufferSink(sms)
    await sms.write("http://example.com")
    with pytest.raises(ByteLimitExceededError) as exc_info:
        await sms.write("http://example.com/a")
    assert str(exc_info.value) == (
        "Byte count limit would be exceeded, not writing, stream will close"
    )
    assert sms.state is WriterState.LIMIT_EXCEEDED
    await sink.wait_finished()
    assert len(sink.getvalue()) == 375
    parse_xml(sink.getvalue())


@pytest.mark.asyncio()
async def test_write_after_limit_error_is_rejected():
    sms = SitemapStream(count_limit=1)
    sink = BufferSink(sms)
    await sms.write("https://example.com/a")
    with pytest.raises(CountLimitExceededError):
        await sms.write("https://example.com/b")
    with pytest.raises(WriteAfterEndError, match="destroyed"):
        await sms.write("https://example.com/c")
    # end() after a limit error does not emit a second closing tag
    await sms.end()
    await sink.wait_finished()
    assert sink.getvalue().decode("utf-8").count(CLOSETAG) == 1


@pytest.mark.asyncio()
async def test_write_after_end():
    sms = SitemapStream()
    sink = BufferSink(sms)
    await sms.end()
    with pytest.raises(WriteAfterEndError):
        await sms.write("https://example.com/a")
    await sink.wait_finished()


@pytest.mark.asyncio()
async def test_consumer_failure_rejects_writes():
    sms = SitemapStream()
    await sms.write("https://example.com/a")
    error = OSError("disk full")

    sms.consumer_failed(error)
    assert sms.consumer_error is error
    with pytest.raises(SinkFailedError) as exc_info:
        await sms.write("https://example.com/b")
    assert exc_info.value.__cause__ is error

    # closing still succeeds and nothing more is queued for the dead consumer
    await sms.end()
    await sms.end()
    with pytest.raises(WriteAfterEndError):
        await sms.write("https://example.com/c")


@pytest.mark.asyncio()
async def test_limit_errors_reach_listeners():
    seen = []
    sms = SitemapStream(count_limit=1)
    sms.add_error_listener(seen.append)
    sink = BufferSink(sms)
    await sms.write("https://example.com/a")
    with pytest.raises(CountLimitExceededError):
        await sms.write("https://example.com/b")
    await sink.wait_finished()
    assert len(seen) == 1
    assert isinstance(seen[0], CountLimitExceededError)


@pytest.mark.asyncio()
async def test_limits_are_write_once():
    sms = SitemapStream()
    sms.count_limit = 10
    with pytest.raises(ConfigurationError, match="cannot set count_limit if already set"):
        sms.count_limit = 20
    assert sms.count_limit == 10

    sms.byte_limit = 1000
    with pytest.raises(ConfigurationError, match="already set"):
        sms.byte_limit = 2000
    assert sms.byte_limit == 1000


@pytest.mark.asyncio()
async def test_limits_cannot_change_after_write():
    sms = SitemapStream()
    sink = BufferSink(sms)
    await sms.write("https://example.com/a")
    with pytest.raises(ConfigurationError, match="cannot set count_limit if items written already"):
        sms.count_limit = 5
    with pytest.raises(ConfigurationError, match="items written already"):
        sms.byte_limit = 5000
    assert sms.count_limit is None
    assert sms.byte_limit is None
    await _finish(sms, sink)


@pytest.mark.parametrize("value", [0, -1, True, "10"])
def test_limit_must_be_positive_int(value):
    with pytest.raises(ConfigurationError):
        SitemapStream(count_limit=value)


@pytest.mark.asyncio()
async def test_custom_namespaces():
    sms = SitemapStream(
        xmlns={
            "news": False,
            "xhtml": False,
            "image": False,
            "video": False,
            "custom": ['xmlns:custom="https://example.com/custom"'],
        }
    )
    sink = BufferSink(sms)
    out = await _finish(sms, sink)
    assert out == (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"'
        ' xmlns:custom="https://example.com/custom">'
        "</urlset>"
    )


@pytest.mark.asyncio()
async def test_hostname_resolves_relative_urls(locs):
    sms = SitemapStream(hostname="https://example.com")
    sink = BufferSink(sms)
    await sms.write("/about")
    await sms.write({"url": "contact us", "priority": 0.5})
    out = await _finish(sms, sink)
    assert locs(out.encode("utf-8")) == [
        "https://example.com/about",
        "https://example.com/contact%20us",
    ]
    assert "<priority>0.5</priority>" in out


@pytest.mark.asyncio()
async def test_custom_error_handler_still_writes_item():
    calls = []

    def handler(error, level):
        calls.append((error, level))

    sms = SitemapStream(error_handler=handler)
    sink = BufferSink(sms)
    assert await sms.write({"url": "https://example.com/a", "changefreq": "sometimes"})
    out = await _finish(sms, sink)

    assert len(calls) == 1
    error, level = calls[0]
    assert isinstance(error, ChangefreqInvalidError)
    assert level is ErrorLevel.WARN
    assert sms.item_count == 1
    assert "<changefreq>sometimes</changefreq>" in out


@pytest.mark.asyncio()
async def test_throw_level_raises_and_keeps_stream_open():
    sms = SitemapStream(level=ErrorLevel.THROW)
    sink = BufferSink(sms)
    with pytest.raises(PriorityInvalidError):
        await sms.write({"url": "https://example.com/a", "priority": 2})
    assert sms.item_count == 0
    assert await sms.write("https://example.com/b")
    await _finish(sms, sink)
    assert sms.item_count == 1


@pytest.mark.asyncio()
async def test_item_without_url_is_dropped():
    sms = SitemapStream(level=ErrorLevel.SILENT)
    sink = BufferSink(sms)
    assert await sms.write({"url": ""}) is False
    assert sms.item_count == 0
    await _finish(sms, sink)

    strict = SitemapStream(level=ErrorLevel.THROW)
    strict_sink = BufferSink(strict)
    with pytest.raises(NoURLError):
        await strict.write({"lastmod": "2020-01-01"})
    await _finish(strict, strict_sink)


@pytest.mark.asyncio()
async def test_async_context_manager_ends_stream(parse_xml):
    async with SitemapStream() as sms:
        sink = BufferSink(sms)
        await sms.write("https://example.com/a")
    await sink.wait_finished()
    assert sms.wrote_close_tag
    assert len(parse_xml(sink.getvalue())) == 1
