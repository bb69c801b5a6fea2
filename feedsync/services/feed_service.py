"""
Feed service: business logic for feed management operations.

Handles subscription, removal, refresh and category assignment.
"""

import logging

from fastapi import BackgroundTasks, HTTPException

from ..config import state
from ..database import Database
from ..database.models import DBArticle, DBFeed
from ..exceptions import (
    FetchError,
    ParseError,
    PersistenceError,
    require_category,
    require_feed,
)
from ..notifier import ChangeNotifier
from ..sync import SyncEngine

logger = logging.getLogger(__name__)


class FeedService:
    """Service for feed-related business logic."""

    def __init__(
        self,
        db: Database,
        sync_engine: SyncEngine | None,
        notifier: ChangeNotifier | None,
    ):
        self.db = db
        self.sync_engine = sync_engine
        self.notifier = notifier
        self._state = state

    # ─────────────────────────────────────────────────────────────
    # Feed Management
    # ─────────────────────────────────────────────────────────────

    def list_feeds(self, category_id: int | None = None) -> list[DBFeed]:
        """List subscribed feeds, optionally within one category."""
        return self.db.get_feeds(category_id)

    def _resolve_category(
        self,
        category_id: int | None,
        category_name: str | None,
    ) -> int | None:
        if category_id is not None:
            return require_category(self.db.get_category(category_id)).id
        if category_name and category_name.strip():
            category_id = self.db.get_or_create_category(category_name.strip())
            if self.notifier:
                self.notifier.notify_categories_changed()
            return category_id
        return None

    async def subscribe(
        self,
        url: str,
        category_id: int | None = None,
        category_name: str | None = None,
        max_articles: int | None = None,
    ) -> DBFeed:
        """
        Subscribe to a new feed and store its current articles.

        Raises:
            HTTPException: engine missing, duplicate URL, bad category, or
                the URL does not serve a usable feed
        """
        if not self.sync_engine:
            raise HTTPException(status_code=500, detail="Sync engine not initialized")

        if self.db.get_feed_by_url(url.strip()):
            raise HTTPException(status_code=400, detail="Feed already exists")

        resolved_category = self._resolve_category(category_id, category_name)

        try:
            new_feed = await self.sync_engine.create_feed_from_url(
                url.strip(), resolved_category, max_articles
            )
        except (FetchError, ParseError) as e:
            raise HTTPException(status_code=400, detail=f"Invalid feed URL: {e}")

        try:
            feed_id = self.db.create_feed(new_feed)
        except PersistenceError as e:
            raise HTTPException(status_code=400, detail=f"Feed already exists or error: {e}")

        logger.info(
            f"Subscribed to {new_feed.url} as feed {feed_id} "
            f"with {len(new_feed.articles)} articles"
        )
        if self.notifier:
            self.notifier.notify_feeds_changed()

        db_feed = self.db.get_feed(feed_id)
        if not db_feed:
            raise HTTPException(status_code=500, detail="Failed to retrieve feed")
        return db_feed

    def unsubscribe(self, feed_id: int) -> None:
        """Remove a feed and its articles."""
        require_feed(self.db.get_feed(feed_id))
        self.db.delete_feed(feed_id)
        if self.notifier:
            self.notifier.notify_feeds_changed()

    def move_feed(self, feed_id: int, category_id: int | None) -> DBFeed:
        """Assign a feed to another category."""
        require_feed(self.db.get_feed(feed_id))
        if category_id is not None:
            require_category(self.db.get_category(category_id))
        self.db.update_feed_category(feed_id, category_id)
        if self.notifier:
            self.notifier.notify_feeds_changed()
        return require_feed(self.db.get_feed(feed_id))

    def list_articles(
        self,
        feed_id: int,
        unread_only: bool = False,
        favorites_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[DBArticle]:
        require_feed(self.db.get_feed(feed_id))
        return self.db.get_articles(feed_id, unread_only, favorites_only, limit, offset)

    # ─────────────────────────────────────────────────────────────
    # Refresh
    # ─────────────────────────────────────────────────────────────

    def schedule_refresh_all(self, background_tasks: BackgroundTasks) -> bool:
        """
        Schedule a refresh of all feeds.

        Returns:
            True if refresh was scheduled, False if already in progress
        """
        if not self.sync_engine:
            raise HTTPException(status_code=500, detail="Sync engine not initialized")
        if self._state.refresh_in_progress:
            return False

        self._state.refresh_in_progress = True
        background_tasks.add_task(self._refresh_all)
        return True

    async def _refresh_all(self):
        try:
            await self.sync_engine.update_all_feeds()
        finally:
            self._state.refresh_in_progress = False

    async def refresh_feed(self, feed_id: int) -> bool:
        """Refresh one feed now and report whether it succeeded."""
        if not self.sync_engine:
            raise HTTPException(status_code=500, detail="Sync engine not initialized")
        require_feed(self.db.get_feed(feed_id))
        return await self.sync_engine.update_single_feed_by_id(feed_id)
