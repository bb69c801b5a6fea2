"""
Error taxonomy for feed synchronization, plus HTTP helpers for the route layer.
"""

from typing import TypeVar

from fastapi import HTTPException

T = TypeVar("T")


class FeedSyncError(Exception):
    """Base class for errors raised by the sync core."""
    pass


class FetchError(FeedSyncError):
    """A remote feed or page could not be reached (network, timeout, HTTP status)."""
    pass


class ParseError(FeedSyncError):
    """A fetched document is malformed or not a conformant RSS/Atom feed."""
    pass


class PersistenceError(FeedSyncError):
    """The persistent store failed to read or write."""
    pass


class ConfigError(FeedSyncError):
    """A configuration value is outside its valid range."""
    pass


def require_resource(resource: T | None, detail: str = "Resource not found") -> T:
    """
    Raise 404 if resource is None, otherwise return the resource.

    Usage:
        feed = require_resource(db.get_feed(id), "Feed not found")
    """
    if resource is None:
        raise HTTPException(status_code=404, detail=detail)
    return resource


def require_feed(feed: T | None) -> T:
    """Raise 404 if feed is None."""
    return require_resource(feed, "Feed not found")


def require_category(category: T | None) -> T:
    """Raise 404 if category is None."""
    return require_resource(category, "Category not found")


def require_article(article: T | None) -> T:
    """Raise 404 if article is None."""
    return require_resource(article, "Article not found")
