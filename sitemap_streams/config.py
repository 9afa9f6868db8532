# === FILE: sitemap_streams/config.py ===
"""
Модуль для загрузки и валидации конфигурации генератора sitemap.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
)

from sitemap_streams.models import ErrorLevel, XmlnsOptions

# Протокол sitemap: не более 50 000 URL и 50 MiB на файл.
PROTOCOL_MAX_ITEMS = 50_000
PROTOCOL_MAX_BYTES = 50 * 1024 * 1024


class XmlnsConfig(BaseModel):
    """Namespaces declared on every ``<urlset>``."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    news: bool = True
    xhtml: bool = True
    image: bool = True
    video: bool = True
    custom: List[str] = Field(default_factory=list)

    def to_options(self) -> XmlnsOptions:
        return XmlnsOptions(
            news=self.news,
            xhtml=self.xhtml,
            image=self.image,
            video=self.video,
            custom=list(self.custom),
        )


class SitemapConfig(BaseModel):
    """Конфигурация одного запуска генерации sitemap."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    hostname: Optional[HttpUrl] = Field(None, description="База для относительных URL.")
    base_url: Optional[HttpUrl] = Field(None, description="Публичный адрес, где лежат файлы sitemap.")
    count_limit: int = Field(
        45_000, ge=1, le=PROTOCOL_MAX_ITEMS, description="Макс. число URL в одном файле."
    )
    byte_limit: int = Field(
        45 * 1024 * 1024, ge=1, le=PROTOCOL_MAX_BYTES, description="Макс. размер файла в байтах."
    )
    lastmod_date_only: bool = Field(False, description="Писать lastmod как YYYY-MM-DD.")
    xsl_url: Optional[str] = Field(None, description="URL XSL-стиля для xml-stylesheet.")
    xmlns: XmlnsConfig = Field(default_factory=XmlnsConfig)
    level: ErrorLevel = Field(ErrorLevel.WARN, description="Реакция на невалидные записи.")
    gzip: bool = Field(False, description="Сжимать файлы sitemap gzip.")
    filename_prefix: str = Field("sitemap", min_length=1)
    index_filename: str = Field("sitemap-index.xml", min_length=1)
    max_buffered_chunks: int = Field(16, ge=1, description="Размер буфера между writer и sink.")

    @field_validator("xsl_url", mode="before")
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> SitemapConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект SitemapConfig.
    Без пути использует configs/default.yaml, а если его нет - значения по умолчанию.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return SitemapConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    return SitemapConfig(**data)
