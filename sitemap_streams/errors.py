# File: sitemap_streams/errors.py
"""sitemap_streams.errors: Error taxonomy shared by the writers and the rotation orchestrator.

Limit errors are expected: they close the shard that raised them, and
:class:`~sitemap_streams.rotation.SitemapAndIndexStream` turns them into a
rotation. Everything else is either a per-item validation problem (severity
gated, see :class:`~sitemap_streams.models.ErrorLevel`) or fatal.
"""

from __future__ import annotations

__all__ = [
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
    "NoURLError",
    "ChangefreqInvalidError",
    "PriorityInvalidError",
    "InvalidLastmodError",
    "InvalidNewsFormatError",
    "InvalidVideoFormatError",
    "InvalidImageFormatError",
]


class SitemapError(Exception):
    """Base class for every error raised by sitemap_streams."""


class ConfigurationError(SitemapError, ValueError):
    """Illegal limit configuration, e.g. setting a limit twice or after a write."""


class LimitExceededError(SitemapError):
    """A write would breach one of the sitemap's ceilings; the sitemap is now closed."""


class ByteLimitExceededError(LimitExceededError):
    """Writing the item would make the document larger than ``byte_limit``."""


class CountLimitExceededError(LimitExceededError):
    """Writing the item would put more than ``count_limit`` entries in the document."""


class WriteAfterEndError(SitemapError):
    """A write arrived after the closing tag was emitted."""


class ShardStateError(SitemapError, TypeError):
    """The current shard is already terminal although nothing rotated it."""


class ItemTooLargeError(SitemapError):
    """The item does not fit even an empty, freshly limited sitemap."""


class SinkFailedError(SitemapError):
    """The consumer draining a writer stopped with an error; nothing more can be written."""


class ItemValidationError(SitemapError, ValueError):
    """Base class for problems with a single item."""


class NoURLError(ItemValidationError):
    """The item has no URL."""


class ChangefreqInvalidError(ItemValidationError):
    """``changefreq`` is not one of the protocol values."""


class PriorityInvalidError(ItemValidationError):
    """``priority`` is not a number between 0.0 and 1.0."""


class InvalidLastmodError(ItemValidationError):
    """``lastmod`` cannot be parsed as an ISO 8601 date."""


class InvalidNewsFormatError(ItemValidationError):
    """A news entry misses one of its required fields."""


class InvalidVideoFormatError(ItemValidationError):
    """A video entry misses a required field or carries an out-of-range value."""


class InvalidImageFormatError(ItemValidationError):
    """An image entry has no location."""
