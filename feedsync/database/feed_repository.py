"""
Feed repository - CRUD operations for feeds.
"""

from datetime import datetime

from .article_repository import insert_articles
from .connection import DatabaseConnection
from .converters import format_timestamp, row_to_feed
from .models import DBFeed, NewArticle, NewFeed

_FEED_WITH_COUNT = """
    SELECT f.*, COUNT(a.id) as article_count
    FROM feeds f
    LEFT JOIN articles a ON f.id = a.feed_id
"""


class FeedRepository:
    """Repository for feed operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add(self, feed: NewFeed) -> int:
        """
        Store a new feed together with its initial articles.

        Returns feed ID. Raises PersistenceError if the URL is already subscribed.
        """
        with self._db.conn() as conn:
            cursor = conn.execute(
                """INSERT INTO feeds
                   (url, title, description, link, image_url, last_updated, category_id)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    feed.url,
                    feed.title,
                    feed.description,
                    feed.link,
                    feed.image_url,
                    format_timestamp(feed.last_updated),
                    feed.category_id,
                )
            )
            feed_id = cursor.lastrowid
            insert_articles(conn, feed_id, feed.articles)
            return feed_id

    def get(self, feed_id: int) -> DBFeed | None:
        """Get single feed by ID with its article count."""
        with self._db.conn() as conn:
            row = conn.execute(
                _FEED_WITH_COUNT + " WHERE f.id = ? GROUP BY f.id",
                (feed_id,)
            ).fetchone()
            return row_to_feed(row) if row else None

    def get_by_url(self, url: str) -> DBFeed | None:
        """Get feed by its source URL (case-insensitive)."""
        with self._db.conn() as conn:
            row = conn.execute(
                _FEED_WITH_COUNT + " WHERE lower(f.url) = lower(?) GROUP BY f.id",
                (url,)
            ).fetchone()
            return row_to_feed(row) if row else None

    def get_all(self, category_id: int | None = None) -> list[DBFeed]:
        """Get all feeds ordered by title, optionally within one category."""
        query = _FEED_WITH_COUNT
        params: list = []
        if category_id is not None:
            query += " WHERE f.category_id = ?"
            params.append(category_id)
        query += " GROUP BY f.id ORDER BY f.title"

        with self._db.conn() as conn:
            rows = conn.execute(query, params).fetchall()
            return [row_to_feed(row) for row in rows]

    def get_all_stalest_first(self) -> list[DBFeed]:
        """Get all feeds by ascending last sync time; never-synced feeds first."""
        with self._db.conn() as conn:
            rows = conn.execute("""
                SELECT * FROM feeds
                ORDER BY last_updated IS NOT NULL, last_updated, id
            """).fetchall()
            return [row_to_feed(row) for row in rows]

    def apply_sync(
        self,
        feed_id: int,
        title: str,
        description: str | None,
        link: str | None,
        last_updated: datetime,
        articles: list[NewArticle],
        image_url: str | None = None,
    ) -> int:
        """
        Record one sync run: refresh feed metadata and insert new articles.

        Both writes share one transaction. A None image_url leaves the stored
        icon as it is. Returns the number of articles inserted.
        """
        with self._db.conn() as conn:
            conn.execute(
                """UPDATE feeds
                   SET title = ?, description = ?, link = ?, last_updated = ?,
                       image_url = COALESCE(?, image_url)
                   WHERE id = ?""",
                (
                    title,
                    description,
                    link,
                    format_timestamp(last_updated),
                    image_url,
                    feed_id,
                )
            )
            return insert_articles(conn, feed_id, articles)

    def update_category(self, feed_id: int, category_id: int | None):
        """Move a feed to another category."""
        with self._db.conn() as conn:
            conn.execute(
                "UPDATE feeds SET category_id = ? WHERE id = ?",
                (category_id, feed_id)
            )

    def delete(self, feed_id: int):
        """Delete feed and its articles."""
        with self._db.conn() as conn:
            conn.execute("DELETE FROM feeds WHERE id = ?", (feed_id,))
