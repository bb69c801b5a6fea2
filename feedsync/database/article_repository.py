"""
Article repository - operations for articles.
"""

import sqlite3

from .connection import DatabaseConnection
from .converters import format_timestamp, row_to_article
from .models import DBArticle, NewArticle

INSERT_ARTICLE_SQL = """
    INSERT OR IGNORE INTO articles
        (feed_id, link, title, author, content, published_at)
    VALUES (?, ?, ?, ?, ?, ?)
"""


def insert_articles(
    conn: sqlite3.Connection,
    feed_id: int,
    articles: list[NewArticle]
) -> int:
    """
    Insert articles for a feed inside an open transaction.

    Rows whose (feed_id, link) already exist are skipped. Returns the number
    of rows actually inserted.
    """
    inserted = 0
    for article in articles:
        if not article.link:
            continue
        cursor = conn.execute(
            INSERT_ARTICLE_SQL,
            (
                feed_id,
                article.link,
                article.title,
                article.author,
                article.content,
                format_timestamp(article.published_at),
            )
        )
        inserted += cursor.rowcount
    return inserted


class ArticleRepository:
    """Repository for article operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def get(self, article_id: int) -> DBArticle | None:
        """Get single article by ID."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM articles WHERE id = ?", (article_id,)
            ).fetchone()
            return row_to_article(row) if row else None

    def get_links(self, feed_id: int) -> set[str]:
        """Get every stored article link for a feed."""
        with self._db.conn() as conn:
            rows = conn.execute(
                "SELECT link FROM articles WHERE feed_id = ?", (feed_id,)
            ).fetchall()
            return {row["link"] for row in rows}

    def get_for_feed(
        self,
        feed_id: int,
        unread_only: bool = False,
        favorites_only: bool = False,
        limit: int = 50,
        offset: int = 0
    ) -> list[DBArticle]:
        """Get a feed's articles, newest first."""
        query = "SELECT * FROM articles WHERE feed_id = ?"
        params: list = [feed_id]

        if unread_only:
            query += " AND is_read = 0"
        if favorites_only:
            query += " AND is_favorite = 1"

        query += " ORDER BY published_at DESC, id DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        with self._db.conn() as conn:
            rows = conn.execute(query, params).fetchall()
            return [row_to_article(row) for row in rows]

    def mark_read(self, article_id: int, is_read: bool = True):
        """Mark article as read/unread."""
        with self._db.conn() as conn:
            conn.execute(
                "UPDATE articles SET is_read = ? WHERE id = ?",
                (is_read, article_id)
            )

    def set_favorite(self, article_id: int, is_favorite: bool = True):
        """Flag or unflag an article as favorite."""
        with self._db.conn() as conn:
            conn.execute(
                "UPDATE articles SET is_favorite = ? WHERE id = ?",
                (is_favorite, article_id)
            )
