# File: sitemap_streams/normalize.py
"""sitemap_streams.normalize: Turns URL strings and loose records into :class:`SitemapItem`.

Validation is separate from normalization: :func:`validate_item` reports
problems through a severity-gated handler, so an item with a dubious
``changefreq`` can still be written when the level is ``warn`` or ``silent``.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Union
from urllib.parse import quote, urljoin, urlsplit, urlunsplit

from sitemap_streams.errors import (
    ChangefreqInvalidError,
    InvalidImageFormatError,
    InvalidLastmodError,
    InvalidNewsFormatError,
    InvalidVideoFormatError,
    ItemValidationError,
    NoURLError,
    PriorityInvalidError,
)
from sitemap_streams.logger import logger
from sitemap_streams.models import (
    Changefreq,
    ErrorLevel,
    ImageItem,
    LastmodT,
    LinkItem,
    NewsItem,
    SitemapItem,
    VideoItem,
)

__all__: Sequence[str] = (
    "ErrorHandler",
    "handle_error",
    "normalize_url",
    "format_lastmod",
    "normalize_item",
    "validate_item",
)

ErrorHandler = Callable[[ItemValidationError, ErrorLevel], None]
ItemInput = Union[str, Mapping[str, Any], SitemapItem]

_SAFE_PATH = "/%:@!$&'()*+,;=-._~"
_SAFE_QUERY = _SAFE_PATH + "?"
_CHANGEFREQS = frozenset(c.value for c in Changefreq)


def handle_error(error: ItemValidationError, level: ErrorLevel = ErrorLevel.WARN) -> None:
    """Default handler: ignore, log or raise *error* depending on *level*."""
    level = ErrorLevel(level)
    if level is ErrorLevel.THROW:
        raise error
    if level is ErrorLevel.WARN:
        logger.warning("%s: %s", type(error).__name__, error)


def normalize_url(url: Optional[str], hostname: Optional[str] = None) -> str:
    """Resolve *url* against *hostname* and percent-encode unsafe path characters.

    ``http://example.com`` becomes ``http://example.com/``; relative URLs stay
    relative when no *hostname* is given.
    """
    if url is None or not str(url).strip():
        raise NoURLError("URL is required")
    raw = str(url).strip()
    if hostname:
        raw = urljoin(str(hostname), raw)
    parts = urlsplit(raw)
    path = parts.path
    if not path and parts.scheme in ("http", "https") and parts.netloc:
        path = "/"
    return urlunsplit(
        (
            parts.scheme.lower(),
            parts.netloc.lower(),
            quote(path, safe=_SAFE_PATH),
            quote(parts.query, safe=_SAFE_QUERY),
            quote(parts.fragment, safe=_SAFE_QUERY),
        )
    )


def format_lastmod(value: LastmodT, date_only: bool = False) -> str:
    """Render *value* as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC (or ``YYYY-MM-DD``).

    Naive values are taken as UTC. Raises :class:`InvalidLastmodError` for
    strings that are not ISO 8601.
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    else:
        try:
            moment = datetime.fromisoformat(str(value).strip())
        except ValueError as exc:
            raise InvalidLastmodError(f"lastmod {value!r} is not a valid ISO 8601 date") from exc
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    iso = moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"
    return iso[:10] if date_only else iso


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (str, Mapping)) or not isinstance(value, Iterable):
        return [value]
    return list(value)


def _image(raw: Any, hostname: Optional[str]) -> ImageItem:
    if isinstance(raw, ImageItem):
        return raw
    if isinstance(raw, str):
        return ImageItem(url=normalize_url(raw, hostname))
    data = dict(raw)
    url = data.pop("url", None) or data.pop("loc", None)
    if not url:
        raise InvalidImageFormatError("image entry requires a url")
    try:
        return ImageItem(url=normalize_url(url, hostname), **data)
    except TypeError as exc:
        raise InvalidImageFormatError(str(exc)) from exc


def _video(raw: Any) -> VideoItem:
    if isinstance(raw, VideoItem):
        return raw
    data = dict(raw)
    if "tag" in data:
        data["tags"] = _as_list(data.pop("tag"))
    missing = [key for key in ("thumbnail_loc", "title", "description") if not data.get(key)]
    if missing:
        raise InvalidVideoFormatError(f"video entry is missing {', '.join(missing)}")
    try:
        return VideoItem(**data)
    except TypeError as exc:
        raise InvalidVideoFormatError(str(exc)) from exc


def _news(raw: Any) -> NewsItem:
    if isinstance(raw, NewsItem):
        return raw
    data = dict(raw)
    publication = data.pop("publication", None)
    if isinstance(publication, Mapping):
        data.setdefault("publication_name", publication.get("name"))
        data.setdefault("publication_language", publication.get("language"))
    try:
        return NewsItem(**data)
    except TypeError as exc:
        raise InvalidNewsFormatError(str(exc)) from exc


def _link(raw: Any, hostname: Optional[str]) -> LinkItem:
    if isinstance(raw, LinkItem):
        return raw
    data = dict(raw)
    return LinkItem(
        lang=data.get("lang", ""),
        url=normalize_url(data.get("url"), hostname),
        hreflang=data.get("hreflang"),
    )


def normalize_item(
    item: ItemInput,
    hostname: Optional[str] = None,
    lastmod_date_only: bool = False,
) -> SitemapItem:
    """Build a :class:`SitemapItem` from a URL string, a mapping or an item.

    Mapping keys follow the sitemap vocabulary; ``img``, ``video`` and ``links``
    are accepted as aliases of ``images``, ``videos`` and ``alternates``.
    Unparseable ``lastmod`` values are kept verbatim and left to
    :func:`validate_item`. Records that cannot be turned into an item at all
    raise a subclass of :class:`ItemValidationError`.
    """
    if isinstance(item, SitemapItem):
        data: dict[str, Any] = {
            "url": item.url,
            "lastmod": item.lastmod,
            "changefreq": item.changefreq,
            "priority": item.priority,
            "alternates": item.alternates,
            "images": item.images,
            "videos": item.videos,
            "news": item.news,
        }
    elif isinstance(item, str):
        data = {"url": item}
    else:
        data = dict(item)

    smi = SitemapItem(url=normalize_url(data.get("url"), hostname))

    lastmod = data.get("lastmod")
    if lastmod:
        try:
            smi.lastmod = format_lastmod(lastmod, lastmod_date_only)
        except InvalidLastmodError:
            smi.lastmod = str(lastmod)

    changefreq = data.get("changefreq")
    if changefreq is not None:
        smi.changefreq = changefreq.value if isinstance(changefreq, Changefreq) else str(changefreq)

    priority = data.get("priority")
    if priority is not None:
        try:
            smi.priority = float(priority)
        except (TypeError, ValueError):
            smi.priority = priority

    smi.images = [_image(raw, hostname) for raw in _as_list(data.get("images", data.get("img")))]
    smi.videos = [_video(raw) for raw in _as_list(data.get("videos", data.get("video")))]
    smi.alternates = [
        _link(raw, hostname) for raw in _as_list(data.get("alternates", data.get("links")))
    ]
    news = data.get("news")
    smi.news = _news(news) if news else None
    return smi


def _number(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _video_problems(video: VideoItem) -> Iterable[ItemValidationError]:
    if video.rating is not None:
        rating = _number(video.rating)
        if rating is None or not 0 <= rating <= 5:
            yield InvalidVideoFormatError(f"video rating {video.rating!r} must be between 0 and 5")
    if video.duration is not None:
        duration = _number(video.duration)
        if duration is None or not 1 <= duration <= 28800:
            yield InvalidVideoFormatError(
                f"video duration {video.duration!r} must be 1..28800 seconds"
            )
    if len(video.tags) > 32:
        yield InvalidVideoFormatError("a video can carry at most 32 tags")
    if video.restriction_relationship not in ("allow", "deny"):
        yield InvalidVideoFormatError(
            f"restriction relationship {video.restriction_relationship!r} must be allow or deny"
        )


def validate_item(
    item: SitemapItem,
    level: ErrorLevel = ErrorLevel.WARN,
    error_handler: Optional[ErrorHandler] = None,
) -> SitemapItem:
    """Report every problem of *item* to *error_handler* and return the item unchanged."""
    level = ErrorLevel(level)
    if level is ErrorLevel.SILENT and error_handler is None:
        return item
    report = error_handler or handle_error

    if item.lastmod is not None:
        try:
            format_lastmod(item.lastmod)
        except InvalidLastmodError as exc:
            report(exc, level)
    if item.changefreq is not None and item.changefreq not in _CHANGEFREQS:
        report(ChangefreqInvalidError(f"changefreq {item.changefreq!r} is invalid"), level)
    if item.priority is not None:
        if not isinstance(item.priority, (int, float)) or not 0 <= item.priority <= 1:
            report(PriorityInvalidError(f"priority {item.priority!r} must be 0.0..1.0"), level)
    for video in item.videos:
        for problem in _video_problems(video):
            report(problem, level)
    if item.news is not None:
        news = item.news
        if not (news.publication_name and news.publication_language and news.title):
            report(
                InvalidNewsFormatError("news requires publication name, language and title"),
                level,
            )
    return item
