# File: tests/test_engine.py
import gzip
import json

import pytest

from sitemap_streams.config import SitemapConfig
from sitemap_streams.engine import Engine, build_sitemaps, make_file_shard_factory, summarize
from sitemap_streams.errors import ItemTooLargeError, SinkFailedError
from sitemap_streams.report import render_json


async def _agen(items):
    for item in items:
        yield item


def test_engine_build_writes_files(tmp_path, basic_config, locs, parse_xml):
    items = [f"/page-{i}" for i in range(5)]
    report = Engine(basic_config).build(items, tmp_path / "out")

    out = tmp_path / "out"
    assert sorted(p.name for p in out.iterdir()) == [
        "sitemap-0.xml",
        "sitemap-1.xml",
        "sitemap-2.xml",
        "sitemap-index.xml",
    ]
    index = (out / "sitemap-index.xml").read_bytes()
    assert locs(index) == [
        f"https://example.com/sitemaps/sitemap-{i}.xml" for i in range(3)
    ]
    assert locs((out / "sitemap-0.xml").read_bytes()) == [
        "https://example.com/page-0",
        "https://example.com/page-1",
    ]
    for i in range(3):
        parse_xml((out / f"sitemap-{i}.xml").read_bytes())

    assert report.item_count == 5
    assert report.index_path == str(out / "sitemap-index.xml")
    assert [s.item_count for s in report.shards] == [2, 2, 1]
    assert all(s.indexed for s in report.shards)
    assert report.shards[0].byte_count == len((out / "sitemap-0.xml").read_bytes())
    assert summarize(report) == {
        "index": str(out / "sitemap-index.xml"),
        "items": 5,
        "sitemaps": 3,
    }


@pytest.mark.asyncio()
async def test_build_sitemaps_gzip_and_async_source(tmp_path, locs):
    config = SitemapConfig(count_limit=2, gzip=True, filename_prefix="urls")
    urls = [f"https://example.com/{i}" for i in range(3)]

    report = await build_sitemaps(config, _agen(urls), tmp_path)

    first = gzip.decompress((tmp_path / "urls-0.xml.gz").read_bytes())
    second = gzip.decompress((tmp_path / "urls-1.xml.gz").read_bytes())
    assert locs(first) + locs(second) == urls
    # without base_url the index refers to bare file names
    index = (tmp_path / "sitemap-index.xml").read_bytes()
    assert locs(index) == ["urls-0.xml.gz", "urls-1.xml.gz"]
    assert len(report.shards) == 2


@pytest.mark.asyncio()
async def test_build_sitemaps_without_items(tmp_path, locs, parse_xml):
    report = await build_sitemaps(SitemapConfig(), [], tmp_path)
    assert report.item_count == 0
    assert len(report.shards) == 1
    assert not report.shards[0].indexed
    assert locs((tmp_path / "sitemap-index.xml").read_bytes()) == []
    parse_xml((tmp_path / "sitemap-0.xml").read_bytes())


def test_engine_build_unwritable_sitemap_fails(tmp_path, parse_xml):
    out = tmp_path / "out"
    out.mkdir()
    (out / "blocker").write_text("not a directory", encoding="utf-8")
    config = SitemapConfig(filename_prefix="blocker/sitemap")

    with pytest.raises(SinkFailedError):
        Engine(config).build([f"https://example.com/{i}" for i in range(40)], out)
    parse_xml((out / "sitemap-index.xml").read_bytes())


@pytest.mark.asyncio()
async def test_file_shard_factory_location(tmp_path):
    config = SitemapConfig(count_limit=10)
    factory, created = make_file_shard_factory(config, tmp_path, "https://cdn.example.com/maps")
    location, stream, sink = factory(3)
    assert location == "https://cdn.example.com/maps/sitemap-3.xml"
    assert sink.path == tmp_path / "sitemap-3.xml"
    assert created[0][0].ordinal == 3
    await stream.end()
    await sink.wait_finished()
    assert (tmp_path / "sitemap-3.xml").exists()


def test_engine_build_item_too_large(tmp_path, parse_xml):
    config = SitemapConfig(byte_limit=350)
    with pytest.raises(ItemTooLargeError):
        Engine(config).build(["https://example.com/"], tmp_path)
    parse_xml((tmp_path / "sitemap-0.xml").read_bytes())


def test_render_json(tmp_path, basic_config):
    report = Engine(basic_config).build(["/a", "/b", "/c"], tmp_path / "maps")
    saved = render_json(report, tmp_path / "reports" / "build.json")
    data = json.loads(saved.read_text(encoding="utf-8"))
    assert data["item_count"] == 3
    assert data["sitemap_count"] == 2
    assert data["shards"][0]["location"] == "https://example.com/sitemaps/sitemap-0.xml"
