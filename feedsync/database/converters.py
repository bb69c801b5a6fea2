"""
Database row converters - convert SQLite rows to dataclasses.
"""

import sqlite3
from datetime import datetime, timezone

from .models import DBArticle, DBCategory, DBFeed, DBSetting


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a stored ISO timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime | None) -> str | None:
    """Format a timestamp for storage as UTC ISO-8601."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _optional(row: sqlite3.Row, col: str, default=None):
    """Read a column that only some queries select."""
    try:
        return row[col]
    except (IndexError, KeyError):
        return default


def row_to_category(row: sqlite3.Row) -> DBCategory:
    """Convert a database row to a DBCategory."""
    return DBCategory(
        id=row["id"],
        name=row["name"],
        feed_count=_optional(row, "feed_count", 0) or 0,
    )


def row_to_feed(row: sqlite3.Row) -> DBFeed:
    """Convert a database row to a DBFeed."""
    return DBFeed(
        id=row["id"],
        url=row["url"],
        title=row["title"],
        category_id=row["category_id"],
        last_updated=parse_timestamp(row["last_updated"]),
        description=row["description"],
        link=row["link"],
        image_url=row["image_url"],
        article_count=_optional(row, "article_count", 0) or 0,
    )


def row_to_article(row: sqlite3.Row) -> DBArticle:
    """Convert a database row to a DBArticle."""
    return DBArticle(
        id=row["id"],
        feed_id=row["feed_id"],
        link=row["link"],
        title=row["title"],
        author=row["author"],
        content=row["content"],
        published_at=parse_timestamp(row["published_at"]),
        is_read=bool(row["is_read"]),
        is_favorite=bool(row["is_favorite"]),
    )


def row_to_setting(row: sqlite3.Row) -> DBSetting:
    """Convert a database row to a DBSetting."""
    return DBSetting(
        key=row["key"],
        value=row["value"],
        description=row["description"],
        updated_at=parse_timestamp(row["updated_at"]),
    )
