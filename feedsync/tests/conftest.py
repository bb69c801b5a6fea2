"""
Pytest fixtures for feedsync tests.
"""

import os
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from feedsync.config import state
from feedsync.database import Database
from feedsync.feeds import FeedParser
from feedsync.icons import IconResolver
from feedsync.notifier import ChangeNotifier
from feedsync.server import app
from feedsync.settings import SettingsService
from feedsync.sync import SyncEngine


def build_rss(
    items: list[dict],
    title: str = "Example Blog",
    link: str = "https://example.com/",
    image_url: str | None = None,
) -> bytes:
    """Build an RSS 2.0 document; each item dict may carry link/title/content/pub_date."""
    entries = []
    for item in items:
        parts = [f"<title>{item.get('title', 'Untitled')}</title>"]
        if item.get("link"):
            parts.append(f"<link>{item['link']}</link>")
        if item.get("description"):
            parts.append(f"<description>{item['description']}</description>")
        if item.get("content"):
            parts.append(f"<content:encoded><![CDATA[{item['content']}]]></content:encoded>")
        if item.get("pub_date"):
            parts.append(f"<pubDate>{item['pub_date']}</pubDate>")
        if item.get("author"):
            parts.append(f"<author>{item['author']}</author>")
        entries.append("<item>" + "".join(parts) + "</item>")

    image = ""
    if image_url:
        image = f"<image><url>{image_url}</url><title>{title}</title><link>{link}</link></image>"

    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">'
        f"<channel><title>{title}</title><link>{link}</link>"
        f"<description>{title} description</description>{image}"
        + "".join(entries)
        + "</channel></rss>"
    ).encode("utf-8")


def build_atom(entries: list[dict], title: str = "Example Atom", logo: str | None = None) -> bytes:
    """Build an Atom 1.0 document; each entry dict may carry link/title/summary/updated/published."""
    parts = []
    for entry in entries:
        body = [f"<title>{entry.get('title', 'Untitled')}</title>", f"<id>{entry.get('link', 'urn:x')}</id>"]
        if entry.get("link"):
            body.append(f'<link rel="alternate" href="{entry["link"]}"/>')
        if entry.get("summary"):
            body.append(f"<summary>{entry['summary']}</summary>")
        if entry.get("updated"):
            body.append(f"<updated>{entry['updated']}</updated>")
        if entry.get("published"):
            body.append(f"<published>{entry['published']}</published>")
        parts.append("<entry>" + "".join(body) + "</entry>")

    logo_tag = f"<logo>{logo}</logo>" if logo else ""
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<feed xmlns="http://www.w3.org/2005/Atom">'
        f"<title>{title}</title><id>urn:example</id>"
        '<link rel="alternate" href="https://atom.example.org/"/>'
        '<link rel="self" href="https://atom.example.org/feed.atom"/>'
        f"<updated>2024-03-01T12:00:00Z</updated>{logo_tag}"
        + "".join(parts)
        + "</feed>"
    ).encode("utf-8")


@pytest.fixture
def make_rss():
    return build_rss


@pytest.fixture
def make_atom():
    return build_atom


@pytest.fixture
def temp_db_path():
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        yield Path(f.name)
    # Cleanup
    if os.path.exists(f.name):
        os.unlink(f.name)


@pytest.fixture
def test_db(temp_db_path):
    """Create a test database instance."""
    db = Database(temp_db_path)
    yield db


@pytest.fixture
def notifier():
    return ChangeNotifier()


@pytest.fixture
def icon_resolver():
    """Icon resolver that never touches the network and finds nothing."""
    resolver = MagicMock(spec=IconResolver)
    resolver.resolve = AsyncMock(return_value=None)
    return resolver


@pytest.fixture
def sync_engine(test_db, notifier, icon_resolver):
    return SyncEngine(test_db, FeedParser(), icon_resolver, notifier)


@pytest.fixture
def client(test_db, notifier, icon_resolver):
    """Create a test client with isolated state and the scheduler disabled."""
    # Store original state
    original = (
        state.db, state.settings, state.notifier, state.feed_parser,
        state.icon_resolver, state.sync_engine, state.scheduler,
    )

    # Set up test state with fresh instances
    state.db = test_db
    state.settings = SettingsService(test_db)
    state.settings.initialize_defaults()
    state.notifier = notifier
    state.feed_parser = FeedParser()
    state.icon_resolver = icon_resolver
    state.sync_engine = SyncEngine(test_db, state.feed_parser, icon_resolver, notifier)
    state.scheduler = None
    state.refresh_in_progress = False

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    # Restore original state
    (
        state.db, state.settings, state.notifier, state.feed_parser,
        state.icon_resolver, state.sync_engine, state.scheduler,
    ) = original
