# File: sitemap_streams/engine.py
"""sitemap_streams.engine: Orchestration layer для генерации набора sitemap-файлов и индекса."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union
from urllib.parse import urljoin

from sitemap_streams.config import SitemapConfig, load_config
from sitemap_streams.logger import logger
from sitemap_streams.rotation import ShardFactory, SitemapAndIndexStream
from sitemap_streams.sinks import FileSink
from sitemap_streams.sitemap_stream import SitemapStream
from sitemap_streams.utils import ItemsT, aiter_items

__all__ = ["Engine", "BuildReport", "ShardInfo", "build_sitemaps", "make_file_shard_factory", "summarize"]


@dataclass(slots=True)
class ShardInfo:
    """Один sitemap-файл, созданный за запуск."""

    ordinal: int
    location: str
    path: str
    item_count: int = 0
    byte_count: int = 0
    indexed: bool = False


@dataclass(slots=True)
class BuildReport:
    """Итог генерации: файлы sitemap, индекс и общее число записей."""

    index_path: str
    item_count: int = 0
    shards: List[ShardInfo] = field(default_factory=list)


def _shard_location(base_url: Optional[str], filename: str) -> str:
    if not base_url:
        return filename
    return urljoin(base_url.rstrip("/") + "/", filename)


def make_file_shard_factory(
    config: SitemapConfig,
    out_dir: Union[str, Path],
    base_url: Optional[str] = None,
) -> Tuple[ShardFactory, List[Tuple[ShardInfo, SitemapStream, FileSink]]]:
    """Фабрика sitemap-файлов ``{prefix}-{i}.xml[.gz]`` в *out_dir*.

    Возвращает саму фабрику и список ``(ShardInfo, SitemapStream, FileSink)``, который
    пополняется при каждом вызове фабрики.
    """
    directory = Path(out_dir)
    created: List[Tuple[ShardInfo, SitemapStream, FileSink]] = []
    suffix = ".xml.gz" if config.gzip else ".xml"
    public_base = base_url or (str(config.base_url) if config.base_url else None)

    def get_sitemap_stream(ordinal: int) -> Tuple[str, SitemapStream, FileSink]:
        filename = f"{config.filename_prefix}-{ordinal}{suffix}"
        stream = SitemapStream(
            hostname=str(config.hostname) if config.hostname else None,
            xmlns=config.xmlns.to_options(),
            xsl_url=config.xsl_url,
            lastmod_date_only=config.lastmod_date_only,
            level=config.level,
            max_buffered_chunks=config.max_buffered_chunks,
        )
        sink = FileSink(stream, directory / filename, compress=config.gzip)
        location = _shard_location(public_base, filename)
        created.append((ShardInfo(ordinal, location, str(sink.path)), stream, sink))
        logger.debug("Opened sitemap %d at %s", ordinal, sink.path)
        return location, stream, sink

    return get_sitemap_stream, created


async def build_sitemaps(
    config: SitemapConfig,
    items: ItemsT,
    out_dir: Union[str, Path],
    base_url: Optional[str] = None,
) -> BuildReport:
    """Пишет все *items* в ротируемые sitemap-файлы и индекс в *out_dir*."""
    directory = Path(out_dir)
    directory.mkdir(parents=True, exist_ok=True)
    factory, created = make_file_shard_factory(config, directory, base_url)
    index_path = directory / config.index_filename

    smis = SitemapAndIndexStream(
        factory,
        count_limit=config.count_limit,
        byte_limit=config.byte_limit,
        lastmod_date_only=config.lastmod_date_only,
        level=config.level,
        xsl_url=config.xsl_url,
        max_buffered_chunks=config.max_buffered_chunks,
    )
    index_sink = FileSink(smis, index_path)
    try:
        async with smis:
            async for item in aiter_items(items):
                await smis.write(item)
    except Exception:
        # Все документы уже закрыты: дописываем файлы до конца и пробрасываем ошибку.
        sinks = [index_sink] + [sink for _, _, sink in created]
        await asyncio.gather(*(s.wait_finished() for s in sinks), return_exceptions=True)
        raise
    await index_sink.wait_finished()
    for _, _, sink in created:
        await sink.wait_finished()

    report = BuildReport(index_path=str(index_path), item_count=smis.item_count_total)
    for info, stream, _ in created:
        info.item_count = stream.item_count
        info.byte_count = stream.byte_count
        info.indexed = stream.item_count > 0
        report.shards.append(info)
    logger.info(
        "Sitemap index %s references %d of %d files",
        index_path,
        sum(1 for s in report.shards if s.indexed),
        len(report.shards),
    )
    return report


class Engine:
    """Фасад для CLI и тестов: загрузка конфига и синхронный запуск генерации."""

    @staticmethod
    def load_config(path: Optional[str]) -> SitemapConfig:
        """Загружает конфиг из YAML/JSON или использует значения по умолчанию."""
        return load_config(path)

    def __init__(self, config: SitemapConfig) -> None:
        self.config = config

    def build(
        self,
        items: ItemsT,
        out_dir: Union[str, Path],
        base_url: Optional[str] = None,
    ) -> BuildReport:
        """Запускает генерацию в новом event loop и возвращает отчёт."""
        logger.info("Starting sitemap build into %s", out_dir)
        try:
            return asyncio.run(build_sitemaps(self.config, items, out_dir, base_url))
        except Exception as exc:
            logger.error("Sitemap build failed: %s", exc)
            raise


def summarize(report: BuildReport) -> dict[str, Any]:
    """Короткая сводка для вывода в CLI."""
    return {
        "index": report.index_path,
        "items": report.item_count,
        "sitemaps": sum(1 for s in report.shards if s.indexed),
    }
