"""
Database models - dataclasses for database entities.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class DBCategory:
    id: int
    name: str
    feed_count: int = 0


@dataclass
class DBFeed:
    id: int
    url: str
    title: str
    category_id: int | None
    last_updated: datetime | None  # last successful sync
    description: str | None = None
    link: str | None = None
    image_url: str | None = None
    article_count: int = 0


@dataclass
class DBArticle:
    id: int
    feed_id: int
    link: str
    title: str | None
    author: str | None
    content: str | None
    published_at: datetime | None
    is_read: bool = False
    is_favorite: bool = False


@dataclass
class DBSetting:
    key: str
    value: str
    description: str | None
    updated_at: datetime | None


@dataclass
class NewArticle:
    """An article built from a feed item, not yet stored."""
    link: str
    title: str | None
    author: str | None
    content: str | None
    published_at: datetime | None


@dataclass
class NewFeed:
    """A feed built from a remote document, not yet stored."""
    url: str
    title: str
    category_id: int | None
    last_updated: datetime | None
    description: str | None = None
    link: str | None = None
    image_url: str | None = None
    articles: list[NewArticle] = field(default_factory=list)
