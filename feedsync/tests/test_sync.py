"""
Tests for the sync engine: feed creation, merge, and batch updates.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from feedsync.database import DBFeed, NewArticle, NewFeed
from feedsync.exceptions import FetchError, PersistenceError
from feedsync.feeds import FeedParser
from feedsync.notifier import Channel

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _store_feed(db, n: int, links: list[str] = (), image_url=None, age_hours: int = 0) -> int:
    return db.create_feed(NewFeed(
        url=f"https://site{n}.example.com/feed.xml",
        title=f"Feed {n}",
        category_id=None,
        last_updated=BASE_TIME + timedelta(hours=age_hours),
        image_url=image_url,
        articles=[
            NewArticle(link=link, title=None, author=None, content=None, published_at=None)
            for link in links
        ],
    ))


def _serve(documents: dict):
    """Patch the download step to serve documents by URL; exceptions are raised."""
    calls = []

    async def fake_download(self, url):
        calls.append(url)
        doc = documents[url]
        if isinstance(doc, Exception):
            raise doc
        return doc

    return patch.object(FeedParser, "_download", new=fake_download), calls


class TestCreateFeedFromUrl:

    @pytest.mark.asyncio
    async def test_builds_unsaved_feed(self, sync_engine, icon_resolver, make_rss, test_db):
        doc = make_rss(
            [{"link": "https://example.com/1"}, {"link": "https://example.com/2"}],
            title="Example",
        )
        icon_resolver.resolve.return_value = "https://example.com/favicon.ico"
        patcher, _ = _serve({"https://example.com/feed.xml": doc})

        with patcher:
            feed = await sync_engine.create_feed_from_url("https://example.com/feed.xml", None)

        assert feed.title == "Example"
        assert feed.image_url == "https://example.com/favicon.ico"
        assert [a.link for a in feed.articles] == ["https://example.com/1", "https://example.com/2"]
        assert feed.last_updated.tzinfo is not None
        # Nothing is persisted yet
        assert test_db.get_feeds() == []

    @pytest.mark.asyncio
    async def test_max_articles_keeps_first_items(self, sync_engine, make_rss):
        doc = make_rss([{"link": f"https://example.com/{i}"} for i in range(5)])
        patcher, _ = _serve({"https://example.com/feed.xml": doc})

        with patcher:
            feed = await sync_engine.create_feed_from_url("https://example.com/feed.xml", None, 2)

        assert [a.link for a in feed.articles] == ["https://example.com/0", "https://example.com/1"]

    @pytest.mark.asyncio
    async def test_items_without_link_dropped(self, sync_engine, make_rss):
        doc = make_rss([{"title": "no link"}, {"link": "https://example.com/ok"}])
        patcher, _ = _serve({"https://example.com/feed.xml": doc})

        with patcher:
            feed = await sync_engine.create_feed_from_url("https://example.com/feed.xml", None)

        assert [a.link for a in feed.articles] == ["https://example.com/ok"]

    @pytest.mark.asyncio
    async def test_max_articles_counts_only_linked_items(self, sync_engine, make_rss):
        """A linkless item near the top does not use up the article limit."""
        doc = make_rss([
            {"link": "https://example.com/0"},
            {"title": "no link"},
            {"link": "https://example.com/1"},
            {"link": "https://example.com/2"},
            {"link": "https://example.com/3"},
        ])
        patcher, _ = _serve({"https://example.com/feed.xml": doc})

        with patcher:
            feed = await sync_engine.create_feed_from_url("https://example.com/feed.xml", None, 3)

        assert [a.link for a in feed.articles] == [
            "https://example.com/0",
            "https://example.com/1",
            "https://example.com/2",
        ]

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self, sync_engine):
        patcher, _ = _serve({"https://example.com/feed.xml": FetchError("HTTP 404")})
        with patcher:
            with pytest.raises(FetchError):
                await sync_engine.create_feed_from_url("https://example.com/feed.xml", None)


class TestUpdateSingleFeed:

    @pytest.mark.asyncio
    async def test_only_new_links_inserted(self, sync_engine, test_db, make_rss):
        """Stored A, B and a document with A, B, C yields exactly one insert."""
        feed_id = _store_feed(test_db, 1, ["https://x.example.com/A", "https://x.example.com/B"])
        doc = make_rss([
            {"link": "https://x.example.com/A"},
            {"link": "https://x.example.com/B"},
            {"link": "https://x.example.com/C"},
        ])
        patcher, _ = _serve({"https://site1.example.com/feed.xml": doc})

        with patcher:
            added = await sync_engine.update_single_feed(test_db.get_feed(feed_id))

        assert added == 1
        assert test_db.get_article_links(feed_id) == {
            "https://x.example.com/A",
            "https://x.example.com/B",
            "https://x.example.com/C",
        }

    @pytest.mark.asyncio
    async def test_repeat_sync_adds_nothing(self, sync_engine, test_db, make_rss):
        feed_id = _store_feed(test_db, 1)
        doc = make_rss([{"link": "https://x.example.com/A"}, {"link": "https://x.example.com/B"}])
        patcher, _ = _serve({"https://site1.example.com/feed.xml": doc})

        with patcher:
            first = await sync_engine.update_single_feed(test_db.get_feed(feed_id))
            second = await sync_engine.update_single_feed(test_db.get_feed(feed_id))

        assert (first, second) == (2, 0)
        assert test_db.get_feed(feed_id).article_count == 2

    @pytest.mark.asyncio
    async def test_duplicate_links_in_document(self, sync_engine, test_db, make_rss):
        feed_id = _store_feed(test_db, 1)
        doc = make_rss([
            {"link": "https://x.example.com/A", "title": "first"},
            {"link": "https://x.example.com/A", "title": "second"},
        ])
        patcher, _ = _serve({"https://site1.example.com/feed.xml": doc})

        with patcher:
            added = await sync_engine.update_single_feed(test_db.get_feed(feed_id))

        assert added == 1
        assert test_db.get_articles(feed_id)[0].title == "first"

    @pytest.mark.asyncio
    async def test_existing_articles_untouched(self, sync_engine, test_db, make_rss):
        feed_id = _store_feed(test_db, 1, ["https://x.example.com/A"])
        article = test_db.get_articles(feed_id)[0]
        test_db.mark_read(article.id)

        doc = make_rss([{"link": "https://x.example.com/A", "title": "Changed title"}])
        patcher, _ = _serve({"https://site1.example.com/feed.xml": doc})
        with patcher:
            await sync_engine.update_single_feed(test_db.get_feed(feed_id))

        stored = test_db.get_article(article.id)
        assert stored.is_read is True
        assert stored.title is None

    @pytest.mark.asyncio
    async def test_metadata_and_sync_time_refreshed(self, sync_engine, test_db, make_rss):
        feed_id = _store_feed(test_db, 1)
        doc = make_rss([], title="Renamed", link="https://new.example.com/")
        patcher, _ = _serve({"https://site1.example.com/feed.xml": doc})

        with patcher:
            await sync_engine.update_single_feed(test_db.get_feed(feed_id))

        feed = test_db.get_feed(feed_id)
        assert feed.title == "Renamed"
        assert feed.link == "https://new.example.com/"
        assert feed.last_updated > BASE_TIME

    @pytest.mark.asyncio
    async def test_icon_resolved_when_missing(self, sync_engine, test_db, icon_resolver, make_rss):
        feed_id = _store_feed(test_db, 1)
        icon_resolver.resolve.return_value = "https://site1.example.com/favicon.ico"
        patcher, _ = _serve({"https://site1.example.com/feed.xml": make_rss([])})

        with patcher:
            await sync_engine.update_single_feed(test_db.get_feed(feed_id))

        icon_resolver.resolve.assert_awaited_once()
        assert test_db.get_feed(feed_id).image_url == "https://site1.example.com/favicon.ico"

    @pytest.mark.asyncio
    async def test_existing_icon_kept(self, sync_engine, test_db, icon_resolver, make_rss):
        feed_id = _store_feed(test_db, 1, image_url="https://cdn.example.com/icon.png")
        patcher, _ = _serve({"https://site1.example.com/feed.xml": make_rss([])})

        with patcher:
            await sync_engine.update_single_feed(test_db.get_feed(feed_id))

        icon_resolver.resolve.assert_not_awaited()
        assert test_db.get_feed(feed_id).image_url == "https://cdn.example.com/icon.png"

    @pytest.mark.asyncio
    async def test_feed_without_url_skipped(self, sync_engine):
        feed = DBFeed(id=1, url="", title="Broken", category_id=None, last_updated=None)
        with patch.object(FeedParser, "fetch") as fetch:
            assert await sync_engine.update_single_feed(feed) == 0
        fetch.assert_not_called()


class TestUpdateAllFeeds:

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_batch(self, sync_engine, test_db, notifier, make_rss):
        """Five feeds with the third timing out: four succeed, one fails."""
        documents = {}
        for n in range(1, 6):
            _store_feed(test_db, n, age_hours=n)
            documents[f"https://site{n}.example.com/feed.xml"] = make_rss(
                [{"link": f"https://site{n}.example.com/post"}], title=f"Feed {n}"
            )
        documents["https://site3.example.com/feed.xml"] = FetchError("Timed out after 10s")

        feeds_changed = []
        progress = []
        notifier.subscribe(Channel.FEEDS_CHANGED, lambda: feeds_changed.append(1))
        notifier.subscribe(Channel.UPDATE_PROGRESS, progress.append)

        patcher, _ = _serve(documents)
        with patcher:
            result = await sync_engine.update_all_feeds()

        assert result.total_feeds == 5
        assert result.successful_updates == 4
        assert result.failed_updates == 1
        assert result.new_articles == 4
        assert result.cancelled is False
        assert len(result.errors) == 1
        assert "Feed 'Feed 3'" in result.errors[0]
        assert feeds_changed == [1]

        assert [p.processed_feeds for p in progress] == [0, 1, 2, 3, 4, 5]
        assert progress[2].current_feed_title == "Feed 3"
        assert progress[-1].current_feed_title is None
        assert progress[-1].failed_feeds == 1

    @pytest.mark.asyncio
    async def test_stalest_first(self, sync_engine, test_db, make_rss):
        _store_feed(test_db, 1, age_hours=5)
        _store_feed(test_db, 2, age_hours=1)
        _store_feed(test_db, 3, age_hours=3)
        documents = {
            f"https://site{n}.example.com/feed.xml": make_rss([]) for n in (1, 2, 3)
        }

        patcher, calls = _serve(documents)
        with patcher:
            await sync_engine.update_all_feeds()

        assert calls == [
            "https://site2.example.com/feed.xml",
            "https://site3.example.com/feed.xml",
            "https://site1.example.com/feed.xml",
        ]

    @pytest.mark.asyncio
    async def test_cancel_between_feeds(self, sync_engine, test_db, make_rss):
        cancel = asyncio.Event()
        documents = {}
        for n in range(1, 6):
            _store_feed(test_db, n, age_hours=n)
            documents[f"https://site{n}.example.com/feed.xml"] = make_rss([])

        calls = []

        async def fake_download(self, url):
            calls.append(url)
            if len(calls) == 2:
                cancel.set()
            return documents[url]

        with patch.object(FeedParser, "_download", new=fake_download):
            result = await sync_engine.update_all_feeds(cancel)

        assert result.cancelled is True
        assert result.total_feeds == 5
        assert result.successful_updates == 2
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, sync_engine, test_db):
        _store_feed(test_db, 1)
        cancel = asyncio.Event()
        cancel.set()

        patcher, calls = _serve({})
        with patcher:
            result = await sync_engine.update_all_feeds(cancel)

        assert result.cancelled is True
        assert result.successful_updates == 0
        assert calls == []

    @pytest.mark.asyncio
    async def test_no_feeds(self, sync_engine, notifier):
        feeds_changed = []
        notifier.subscribe(Channel.FEEDS_CHANGED, lambda: feeds_changed.append(1))

        result = await sync_engine.update_all_feeds()

        assert result.total_feeds == 0
        assert result.errors == []
        assert feeds_changed == []

    @pytest.mark.asyncio
    async def test_all_failed_emits_no_change(self, sync_engine, test_db, notifier):
        _store_feed(test_db, 1)
        feeds_changed = []
        notifier.subscribe(Channel.FEEDS_CHANGED, lambda: feeds_changed.append(1))

        patcher, _ = _serve({"https://site1.example.com/feed.xml": FetchError("HTTP 500")})
        with patcher:
            result = await sync_engine.update_all_feeds()

        assert result.failed_updates == 1
        assert feeds_changed == []

    @pytest.mark.asyncio
    async def test_store_failure_is_critical_error(self, sync_engine, test_db):
        with patch.object(test_db, "get_feeds_stalest_first",
                          side_effect=PersistenceError("disk I/O error")):
            result = await sync_engine.update_all_feeds()

        assert result.total_feeds == 0
        assert result.errors == ["Critical error: disk I/O error"]


class TestUpdateSingleFeedById:

    @pytest.mark.asyncio
    async def test_missing_feed(self, sync_engine):
        assert await sync_engine.update_single_feed_by_id(404) is False

    @pytest.mark.asyncio
    async def test_success_emits_feeds_changed(self, sync_engine, test_db, notifier, make_rss):
        feed_id = _store_feed(test_db, 1)
        feeds_changed = []
        notifier.subscribe(Channel.FEEDS_CHANGED, lambda: feeds_changed.append(1))

        patcher, _ = _serve({"https://site1.example.com/feed.xml": make_rss([])})
        with patcher:
            assert await sync_engine.update_single_feed_by_id(feed_id) is True
        assert feeds_changed == [1]

    @pytest.mark.asyncio
    async def test_failure_returns_false(self, sync_engine, test_db):
        feed_id = _store_feed(test_db, 1)
        patcher, _ = _serve({"https://site1.example.com/feed.xml": FetchError("HTTP 503")})
        with patcher:
            assert await sync_engine.update_single_feed_by_id(feed_id) is False

    @pytest.mark.asyncio
    async def test_cancelled(self, sync_engine, test_db):
        feed_id = _store_feed(test_db, 1)
        cancel = asyncio.Event()
        cancel.set()
        assert await sync_engine.update_single_feed_by_id(feed_id, cancel) is False
