"""
Pydantic models for API request/response validation.
"""

from pydantic import BaseModel

from .database import DBArticle, DBCategory, DBFeed, DBSetting
from .sync import FeedUpdateResult

MAX_REPORTED_ERRORS = 10


# ─────────────────────────────────────────────────────────────
# Feed Schemas
# ─────────────────────────────────────────────────────────────

class FeedResponse(BaseModel):
    """Feed for list view."""
    id: int
    url: str
    title: str
    description: str | None = None
    link: str | None = None
    image_url: str | None = None
    category_id: int | None
    article_count: int = 0
    last_updated: str | None

    @classmethod
    def from_db(cls, feed: DBFeed) -> "FeedResponse":
        return cls(
            id=feed.id,
            url=feed.url,
            title=feed.title,
            description=feed.description,
            link=feed.link,
            image_url=feed.image_url,
            category_id=feed.category_id,
            article_count=feed.article_count,
            last_updated=feed.last_updated.isoformat() if feed.last_updated else None,
        )


class AddFeedRequest(BaseModel):
    """Request to subscribe to a feed URL."""
    url: str
    category_id: int | None = None
    category: str | None = None  # category name, created if missing
    max_articles: int | None = None


class MoveFeedRequest(BaseModel):
    category_id: int | None = None


class FeedRefreshResponse(BaseModel):
    """Outcome of a single-feed refresh."""
    success: bool
    feed: FeedResponse | None = None


class FeedUpdateResultResponse(BaseModel):
    """Aggregate outcome of a batch update."""
    total_feeds: int
    successful_updates: int
    failed_updates: int
    new_articles: int
    cancelled: bool
    errors: list[str]

    @classmethod
    def from_result(cls, result: FeedUpdateResult) -> "FeedUpdateResultResponse":
        return cls(
            total_feeds=result.total_feeds,
            successful_updates=result.successful_updates,
            failed_updates=result.failed_updates,
            new_articles=result.new_articles,
            cancelled=result.cancelled,
            errors=result.errors[:MAX_REPORTED_ERRORS],
        )


# ─────────────────────────────────────────────────────────────
# Article Schemas
# ─────────────────────────────────────────────────────────────

class ArticleResponse(BaseModel):
    """Article for list view."""
    id: int
    feed_id: int
    link: str
    title: str | None
    author: str | None
    content: str | None
    published_at: str | None
    is_read: bool
    is_favorite: bool

    @classmethod
    def from_db(cls, article: DBArticle) -> "ArticleResponse":
        return cls(
            id=article.id,
            feed_id=article.feed_id,
            link=article.link,
            title=article.title,
            author=article.author,
            content=article.content,
            published_at=article.published_at.isoformat() if article.published_at else None,
            is_read=article.is_read,
            is_favorite=article.is_favorite,
        )


# ─────────────────────────────────────────────────────────────
# Category Schemas
# ─────────────────────────────────────────────────────────────

class CategoryResponse(BaseModel):
    id: int
    name: str
    feed_count: int = 0

    @classmethod
    def from_db(cls, category: DBCategory) -> "CategoryResponse":
        return cls(id=category.id, name=category.name, feed_count=category.feed_count)


class CreateCategoryRequest(BaseModel):
    name: str


# ─────────────────────────────────────────────────────────────
# Settings Schemas
# ─────────────────────────────────────────────────────────────

class SettingResponse(BaseModel):
    key: str
    value: str
    description: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_db(cls, setting: DBSetting) -> "SettingResponse":
        return cls(
            key=setting.key,
            value=setting.value,
            description=setting.description,
            updated_at=setting.updated_at.isoformat() if setting.updated_at else None,
        )


class IntervalResponse(BaseModel):
    """Feed update interval."""
    minutes: int


class IntervalUpdateRequest(BaseModel):
    """Request to change the feed update interval."""
    minutes: int


class SchedulerStatusResponse(BaseModel):
    state: str
    interval_minutes: int
    last_result: FeedUpdateResultResponse | None = None
