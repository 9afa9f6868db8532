# File: sitemap_streams/utils.py
"""sitemap_streams.utils: Чтение входных записей (URL или JSON-строки) для генератора."""

from __future__ import annotations

import json
from typing import Any, AsyncIterable, AsyncIterator, Iterable, Iterator, Sequence, Union

from sitemap_streams.logger import logger

__all__: Sequence[str] = ("parse_source_line", "read_items", "aiter_items")

ItemsT = Union[Iterable[Any], AsyncIterable[Any]]


def parse_source_line(line: str) -> Union[str, dict, None]:
    """Одна строка входа: URL, JSON-объект или ``None`` для пустых строк и ``#``-комментариев."""
    text = line.strip()
    if not text or text.startswith("#"):
        return None
    if text.startswith("{"):
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Неправильный JSON в строке: {text[:80]}") from exc
    return text


def read_items(lines: Iterable[str]) -> Iterator[Union[str, dict]]:
    """Возвращает записи из строк, пропуская пустые и комментарии."""
    skipped = 0
    for line in lines:
        item = parse_source_line(line)
        if item is None:
            skipped += 1
            continue
        yield item
    if skipped:
        logger.debug("Skipped %d blank/comment lines", skipped)


async def aiter_items(items: ItemsT) -> AsyncIterator[Any]:
    """Единый async-итератор для синхронных и асинхронных источников."""
    if hasattr(items, "__aiter__"):
        async for item in items:  # type: ignore[union-attr]
            yield item
    else:
        for item in items:  # type: ignore[union-attr]
            yield item
