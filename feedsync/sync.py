"""
Sync engine - fetch, merge and persist feeds.

Feeds are processed one at a time. A failing feed is recorded and skipped so
the rest of a batch still runs; articles already stored are never touched
again, only links not yet known for the feed are inserted.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .database import Database
from .database.models import DBFeed, NewArticle, NewFeed
from .exceptions import FeedSyncError, PersistenceError
from .feeds import FeedItem, FeedParser, ParsedFeed
from .icons import IconResolver
from .notifier import ChangeNotifier, FeedUpdateProgress

logger = logging.getLogger(__name__)


@dataclass
class FeedUpdateResult:
    """Outcome of a batch update."""
    total_feeds: int = 0
    successful_updates: int = 0
    failed_updates: int = 0
    new_articles: int = 0
    cancelled: bool = False
    errors: list[str] = field(default_factory=list)


def _article_from_item(item: FeedItem) -> NewArticle:
    return NewArticle(
        link=item.url,
        title=item.title,
        author=item.author,
        content=item.content,
        published_at=item.published,
    )


def _is_cancelled(cancel_event: asyncio.Event | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()


class SyncEngine:
    """Orchestrates feed fetch, icon resolution and article merge."""

    def __init__(
        self,
        db: Database,
        feed_parser: FeedParser,
        icon_resolver: IconResolver,
        notifier: ChangeNotifier,
    ):
        self.db = db
        self.feed_parser = feed_parser
        self.icon_resolver = icon_resolver
        self.notifier = notifier

    async def create_feed_from_url(
        self,
        url: str,
        category_id: int | None,
        max_articles: int | None = None,
    ) -> NewFeed:
        """
        Build a new, unsaved feed with its articles from a remote document.

        Items without a link are dropped, then up to max_articles of the rest are
        kept in document order (all if None). Persisting is left to the caller.

        Raises:
            FetchError, ParseError: from the feed fetch
        """
        parsed = await self.feed_parser.fetch(url)
        image_url = await self.icon_resolver.resolve(parsed.image_url, parsed.links)

        items = [item for item in parsed.items if item.url]
        if max_articles is not None:
            items = items[:max(max_articles, 0)]

        return NewFeed(
            url=parsed.url,
            title=parsed.title,
            category_id=category_id,
            last_updated=datetime.now(timezone.utc),
            description=parsed.description,
            link=parsed.link,
            image_url=image_url,
            articles=[_article_from_item(item) for item in items],
        )

    async def update_single_feed(self, feed: DBFeed) -> int:
        """
        Refresh one stored feed. Returns the number of new articles.

        Raises:
            FetchError, ParseError, PersistenceError: left to the caller
        """
        if not feed.url:
            logger.warning(f"Feed {feed.id} has no URL, skipping")
            return 0

        logger.debug(f"Updating feed {feed.id} ({feed.title}) from {feed.url}")

        parsed = await self.feed_parser.fetch(feed.url)
        new_articles = self._select_new_articles(feed.id, parsed)

        image_url = None
        if not feed.image_url:
            image_url = await self.icon_resolver.resolve(parsed.image_url, parsed.links)

        added = self.db.apply_feed_sync(
            feed.id,
            title=parsed.title,
            description=parsed.description,
            link=parsed.link,
            last_updated=datetime.now(timezone.utc),
            articles=new_articles,
            image_url=image_url,
        )

        logger.info(f"Updated feed {feed.id} ({parsed.title}): {added} new articles")
        return added

    def _select_new_articles(self, feed_id: int, parsed: ParsedFeed) -> list[NewArticle]:
        """Items with a link not yet stored for this feed, in document order."""
        known = self.db.get_article_links(feed_id)
        new_articles = []
        for item in parsed.items:
            if not item.url or item.url in known:
                continue
            known.add(item.url)
            new_articles.append(_article_from_item(item))
        return new_articles

    async def update_all_feeds(
        self,
        cancel_event: asyncio.Event | None = None,
    ) -> FeedUpdateResult:
        """Refresh every feed, stalest first, tolerating individual failures."""
        result = FeedUpdateResult()

        try:
            feeds = self.db.get_feeds_stalest_first()
        except PersistenceError as e:
            logger.error(f"Error loading feeds for update: {e}")
            result.errors.append(f"Critical error: {e}")
            return result

        result.total_feeds = len(feeds)
        logger.info(f"Starting update of {result.total_feeds} feeds")

        processed = 0
        for feed in feeds:
            if _is_cancelled(cancel_event):
                logger.info("Feed update cancelled")
                result.cancelled = True
                break

            self._publish_progress(result, processed, feed.title)

            try:
                result.new_articles += await self.update_single_feed(feed)
                result.successful_updates += 1
            except Exception as e:
                result.failed_updates += 1
                result.errors.append(f"Feed '{feed.title}': {e}")
                if isinstance(e, FeedSyncError):
                    logger.error(f"Failed to update feed {feed.id} ({feed.title}): {e}")
                else:
                    logger.exception(f"Failed to update feed {feed.id} ({feed.title})")
            processed += 1

        self._publish_progress(result, processed, None)

        logger.info(
            f"Feed update completed. Total: {result.total_feeds}, "
            f"Success: {result.successful_updates}, Failed: {result.failed_updates}"
        )

        if result.successful_updates > 0:
            self.notifier.notify_feeds_changed()

        return result

    async def update_single_feed_by_id(
        self,
        feed_id: int,
        cancel_event: asyncio.Event | None = None,
    ) -> bool:
        """Refresh one feed by ID. Returns True on success; failures are logged."""
        if _is_cancelled(cancel_event):
            logger.info(f"Update of feed {feed_id} cancelled before start")
            return False

        try:
            feed = self.db.get_feed(feed_id)
            if feed is None:
                logger.warning(f"Feed with ID {feed_id} not found")
                return False

            await self.update_single_feed(feed)
        except FeedSyncError as e:
            logger.error(f"Error updating feed {feed_id}: {e}")
            return False
        except Exception:
            logger.exception(f"Error updating feed {feed_id}")
            return False

        self.notifier.notify_feeds_changed()
        return True

    def _publish_progress(self, result: FeedUpdateResult, processed: int, title: str | None):
        self.notifier.notify_progress(FeedUpdateProgress(
            total_feeds=result.total_feeds,
            processed_feeds=processed,
            successful_feeds=result.successful_updates,
            failed_feeds=result.failed_updates,
            current_feed_title=title,
        ))
