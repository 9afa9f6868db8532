# sitemap_streams/models.py
"""
Data models for sitemap entries, index entries and per-shard counters.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Union

LastmodT = Union[str, date, datetime]


class ErrorLevel(str, Enum):
    """How item validation problems are reported."""

    SILENT = "silent"
    WARN = "warn"
    THROW = "throw"


class Changefreq(str, Enum):
    ALWAYS = "always"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NEVER = "never"


@dataclass(slots=True)
class LinkItem:
    """Alternate language version of a page (``<xhtml:link rel="alternate">``)."""

    lang: str
    url: str
    hreflang: Optional[str] = None


@dataclass(slots=True)
class ImageItem:
    url: str
    caption: Optional[str] = None
    title: Optional[str] = None
    geo_location: Optional[str] = None
    license: Optional[str] = None


@dataclass(slots=True)
class VideoItem:
    """Video metadata; ``thumbnail_loc``, ``title`` and ``description`` are required."""

    thumbnail_loc: str
    title: str
    description: str
    content_loc: Optional[str] = None
    player_loc: Optional[str] = None
    duration: Optional[int] = None
    expiration_date: Optional[LastmodT] = None
    rating: Optional[float] = None
    view_count: Optional[int] = None
    publication_date: Optional[LastmodT] = None
    family_friendly: Optional[bool] = None
    tags: List[str] = field(default_factory=list)
    category: Optional[str] = None
    restriction: Optional[str] = None
    restriction_relationship: str = "allow"
    requires_subscription: Optional[bool] = None
    live: Optional[bool] = None
    uploader: Optional[str] = None


@dataclass(slots=True)
class NewsItem:
    publication_name: str
    publication_language: str
    title: str
    publication_date: LastmodT
    access: Optional[str] = None
    genres: Optional[str] = None
    keywords: Optional[str] = None
    stock_tickers: Optional[str] = None


@dataclass(slots=True)
class SitemapItem:
    """One ``<url>`` entry after normalization."""

    url: str
    lastmod: Optional[str] = None
    changefreq: Optional[str] = None
    priority: Optional[float] = None
    alternates: List[LinkItem] = field(default_factory=list)
    images: List[ImageItem] = field(default_factory=list)
    videos: List[VideoItem] = field(default_factory=list)
    news: Optional[NewsItem] = None


@dataclass(slots=True)
class IndexItem:
    """One ``<sitemap>`` entry of a sitemap index."""

    url: str
    lastmod: Optional[LastmodT] = None


@dataclass(slots=True)
class XmlnsOptions:
    """Namespaces declared on ``<urlset>``; ``custom`` holds raw ``xmlns:x="..."`` strings."""

    news: bool = True
    xhtml: bool = True
    image: bool = True
    video: bool = True
    custom: List[str] = field(default_factory=list)


@dataclass(slots=True)
class ShardCounters:
    """Per-shard bookkeeping. ``byte_count`` includes the reserved closing tag."""

    item_count: int = 0
    byte_count: int = 0
