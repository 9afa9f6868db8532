# File: sitemap_streams/elements.py
"""sitemap_streams.elements: Stateless helpers that build sitemap XML fragments as strings.

Everything here is pure: no I/O, no counters. The writers decide when a
fragment is emitted and account for its bytes.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Mapping, Optional, Sequence, Union

from sitemap_streams.models import (
    ImageItem,
    LinkItem,
    NewsItem,
    SitemapItem,
    VideoItem,
    XmlnsOptions,
)

__all__: Sequence[str] = (
    "XML_DECLARATION",
    "SITEMAP_NS",
    "URLSET_CLOSE_TAG",
    "SITEMAPINDEX_OPEN_TAG",
    "SITEMAPINDEX_CLOSE_TAG",
    "escape_text",
    "escape_attr",
    "otag",
    "ctag",
    "element",
    "stylesheet_include",
    "urlset_open_tag",
    "encode_url_item",
    "encode_index_item",
)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
NEWS_NS = "http://www.google.com/schemas/sitemap-news/0.9"
XHTML_NS = "http://www.w3.org/1999/xhtml"
IMAGE_NS = "http://www.google.com/schemas/sitemap-image/1.1"
VIDEO_NS = "http://www.google.com/schemas/sitemap-video/1.1"

URLSET_CLOSE_TAG = "</urlset>"
SITEMAPINDEX_OPEN_TAG = f'<sitemapindex xmlns="{SITEMAP_NS}">'
SITEMAPINDEX_CLOSE_TAG = "</sitemapindex>"

# Characters XML 1.0 does not allow at all, even escaped.
_INVALID_XML_CHARS = re.compile(
    "[^\u0009\u000a\u000d\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)

AttrsT = Mapping[str, Union[str, int, float]]


def escape_text(value: object) -> str:
    text = _INVALID_XML_CHARS.sub("", str(value))
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def escape_attr(value: object) -> str:
    return escape_text(value).replace('"', "&quot;").replace("'", "&apos;")


def _render_attrs(attrs: Optional[AttrsT]) -> str:
    if not attrs:
        return ""
    return "".join(f' {name}="{escape_attr(val)}"' for name, val in attrs.items())


def otag(name: str, attrs: Optional[AttrsT] = None, self_close: bool = False) -> str:
    """Opening tag, optionally self-closing: ``<name a="b">`` / ``<name a="b"/>``."""
    return f"<{name}{_render_attrs(attrs)}{'/' if self_close else ''}>"


def ctag(name: str) -> str:
    return f"</{name}>"


def element(name: str, text: object = None, attrs: Optional[AttrsT] = None) -> str:
    """Leaf element; with ``text=None`` the element is self-closing."""
    if text is None:
        return otag(name, attrs, self_close=True)
    return otag(name, attrs) + escape_text(text) + ctag(name)


def stylesheet_include(url: str) -> str:
    return f'<?xml-stylesheet type="text/xsl" href="{escape_attr(url)}"?>'


def urlset_open_tag(xmlns: Optional[XmlnsOptions] = None) -> str:
    """``<urlset>`` opening tag with the namespaces switched on in *xmlns*."""
    opts = xmlns or XmlnsOptions()
    parts: List[str] = [f'<urlset xmlns="{SITEMAP_NS}"']
    if opts.news:
        parts.append(f' xmlns:news="{NEWS_NS}"')
    if opts.xhtml:
        parts.append(f' xmlns:xhtml="{XHTML_NS}"')
    if opts.image:
        parts.append(f' xmlns:image="{IMAGE_NS}"')
    if opts.video:
        parts.append(f' xmlns:video="{VIDEO_NS}"')
    if opts.custom:
        parts.append(" " + " ".join(opts.custom))
    parts.append(">")
    return "".join(parts)


def _yes_no(value: object) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def _optional(name: str, value: object) -> str:
    return "" if value is None else element(name, value)


def _encode_image(image: ImageItem) -> str:
    return (
        otag("image:image")
        + element("image:loc", image.url)
        + _optional("image:caption", image.caption)
        + _optional("image:geo_location", image.geo_location)
        + _optional("image:title", image.title)
        + _optional("image:license", image.license)
        + ctag("image:image")
    )


def _encode_video(video: VideoItem) -> str:
    out: List[str] = [
        otag("video:video"),
        element("video:thumbnail_loc", video.thumbnail_loc),
        element("video:title", video.title),
        element("video:description", video.description),
        _optional("video:content_loc", video.content_loc),
        _optional("video:player_loc", video.player_loc),
        _optional("video:duration", video.duration),
        _optional("video:expiration_date", video.expiration_date),
        _optional("video:rating", video.rating),
        _optional("video:view_count", video.view_count),
        _optional("video:publication_date", video.publication_date),
    ]
    if video.family_friendly is not None:
        out.append(element("video:family_friendly", _yes_no(video.family_friendly)))
    out.extend(element("video:tag", tag) for tag in video.tags)
    out.append(_optional("video:category", video.category))
    if video.restriction is not None:
        out.append(
            element(
                "video:restriction",
                video.restriction,
                {"relationship": video.restriction_relationship},
            )
        )
    if video.requires_subscription is not None:
        out.append(element("video:requires_subscription", _yes_no(video.requires_subscription)))
    if video.live is not None:
        out.append(element("video:live", _yes_no(video.live)))
    out.append(_optional("video:uploader", video.uploader))
    out.append(ctag("video:video"))
    return "".join(out)


def _encode_link(link: LinkItem) -> str:
    return otag(
        "xhtml:link",
        {"rel": "alternate", "hreflang": link.hreflang or link.lang, "href": link.url},
        self_close=True,
    )


def _encode_news(news: NewsItem) -> str:
    return (
        otag("news:news")
        + otag("news:publication")
        + element("news:name", news.publication_name)
        + element("news:language", news.publication_language)
        + ctag("news:publication")
        + _optional("news:access", news.access)
        + _optional("news:genres", news.genres)
        + element("news:publication_date", news.publication_date)
        + element("news:title", news.title)
        + _optional("news:keywords", news.keywords)
        + _optional("news:stock_tickers", news.stock_tickers)
        + ctag("news:news")
    )


def _join(fragments: Iterable[str]) -> str:
    return "".join(fragments)


def encode_url_item(item: SitemapItem) -> str:
    """Serialize a normalized item as one ``<url>`` element."""
    out: List[str] = [otag("url"), element("loc", item.url)]
    if item.lastmod is not None:
        out.append(element("lastmod", item.lastmod))
    if item.changefreq is not None:
        out.append(element("changefreq", item.changefreq))
    if item.priority is not None:
        priority = item.priority
        out.append(
            element(
                "priority",
                f"{priority:.1f}" if isinstance(priority, (int, float)) else priority,
            )
        )
    out.append(_join(_encode_image(image) for image in item.images))
    out.append(_join(_encode_video(video) for video in item.videos))
    out.append(_join(_encode_link(link) for link in item.alternates))
    if item.news is not None:
        out.append(_encode_news(item.news))
    out.append(ctag("url"))
    return "".join(out)


def encode_index_item(url: str, lastmod: Optional[str] = None) -> str:
    """Serialize one ``<sitemap>`` element; *lastmod* must already be formatted."""
    body = element("loc", url)
    if lastmod:
        body += element("lastmod", lastmod)
    return otag("sitemap") + body + ctag("sitemap")
