"""
Database facade - provides unified access to all repositories.
"""

from datetime import datetime
from pathlib import Path

from .article_repository import ArticleRepository
from .category_repository import CategoryRepository
from .connection import DatabaseConnection
from .feed_repository import FeedRepository
from .models import DBArticle, DBCategory, DBFeed, DBSetting, NewArticle, NewFeed
from .settings_repository import SettingsRepository


class Database:
    """
    Unified database access facade.

    Callers use the flat methods below; repositories are also reachable as
    attributes for less common queries.
    """

    def __init__(self, db_path: Path):
        self._connection = DatabaseConnection(db_path)

        # Initialize repositories
        self.categories = CategoryRepository(self._connection)
        self.feeds = FeedRepository(self._connection)
        self.articles = ArticleRepository(self._connection)
        self.settings = SettingsRepository(self._connection)

    # ─────────────────────────────────────────────────────────────
    # Category operations (delegated to CategoryRepository)
    # ─────────────────────────────────────────────────────────────

    def add_category(self, name: str) -> int:
        return self.categories.add(name)

    def get_category(self, category_id: int) -> DBCategory | None:
        return self.categories.get(category_id)

    def get_or_create_category(self, name: str) -> int:
        return self.categories.get_or_create(name)

    def get_categories(self) -> list[DBCategory]:
        return self.categories.get_all()

    def delete_category(self, category_id: int):
        return self.categories.delete(category_id)

    # ─────────────────────────────────────────────────────────────
    # Feed operations (delegated to FeedRepository)
    # ─────────────────────────────────────────────────────────────

    def create_feed(self, feed: NewFeed) -> int:
        return self.feeds.add(feed)

    def get_feed(self, feed_id: int) -> DBFeed | None:
        return self.feeds.get(feed_id)

    def get_feed_by_url(self, url: str) -> DBFeed | None:
        return self.feeds.get_by_url(url)

    def get_feeds(self, category_id: int | None = None) -> list[DBFeed]:
        return self.feeds.get_all(category_id)

    def get_feeds_stalest_first(self) -> list[DBFeed]:
        return self.feeds.get_all_stalest_first()

    def apply_feed_sync(
        self,
        feed_id: int,
        title: str,
        description: str | None,
        link: str | None,
        last_updated: datetime,
        articles: list[NewArticle],
        image_url: str | None = None,
    ) -> int:
        return self.feeds.apply_sync(
            feed_id, title, description, link, last_updated, articles, image_url
        )

    def update_feed_category(self, feed_id: int, category_id: int | None):
        return self.feeds.update_category(feed_id, category_id)

    def delete_feed(self, feed_id: int):
        return self.feeds.delete(feed_id)

    # ─────────────────────────────────────────────────────────────
    # Article operations (delegated to ArticleRepository)
    # ─────────────────────────────────────────────────────────────

    def get_article(self, article_id: int) -> DBArticle | None:
        return self.articles.get(article_id)

    def get_article_links(self, feed_id: int) -> set[str]:
        return self.articles.get_links(feed_id)

    def get_articles(
        self,
        feed_id: int,
        unread_only: bool = False,
        favorites_only: bool = False,
        limit: int = 50,
        offset: int = 0
    ) -> list[DBArticle]:
        return self.articles.get_for_feed(feed_id, unread_only, favorites_only, limit, offset)

    def mark_read(self, article_id: int, is_read: bool = True):
        return self.articles.mark_read(article_id, is_read)

    def set_favorite(self, article_id: int, is_favorite: bool = True):
        return self.articles.set_favorite(article_id, is_favorite)

    # ─────────────────────────────────────────────────────────────
    # Settings operations (delegated to SettingsRepository)
    # ─────────────────────────────────────────────────────────────

    def get_setting(self, key: str) -> DBSetting | None:
        return self.settings.get(key)

    def set_setting(self, key: str, value: str, description: str | None = None):
        return self.settings.set(key, value, description)

    def get_all_settings(self) -> list[DBSetting]:
        return self.settings.get_all()
