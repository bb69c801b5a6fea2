"""
Feed Parser - Fetch and parse RSS/Atom feeds.

Handles:
- RSS 2.0 and Atom 1.0 formats
- Full-content extension (content:encoded) preferred over summaries
- Rejection of documents carrying a DTD
- Timeout-bounded fetching and rate limiting per domain
"""

import asyncio
import io
import logging
import re
import time
import xml.sax
from dataclasses import dataclass, field
from datetime import datetime, timezone
from urllib.parse import urlparse

import aiohttp
import feedparser

from .config import config
from .exceptions import FetchError, ParseError
from .url_validator import URLValidationError, validate_url

logger = logging.getLogger(__name__)

# A DOCTYPE may only appear in the prolog, before the root element.
_DOCTYPE_RE = re.compile(
    rb"^(?:\xef\xbb\xbf)?\s*(?:<\?xml[^>]*\?>\s*)?(?:(?:<!--.*?-->|<\?.*?\?>)\s*)*<!DOCTYPE",
    re.DOTALL | re.IGNORECASE,
)

_ACCEPT = (
    "application/rss+xml, application/atom+xml, application/xml;q=0.9, "
    "text/xml;q=0.8, */*;q=0.5"
)


@dataclass
class FeedItem:
    """Represents a single item/entry from a feed."""
    url: str
    title: str | None
    author: str | None
    published: datetime | None
    content: str | None


@dataclass
class ParsedFeed:
    """Represents a parsed feed document."""
    url: str
    title: str
    description: str | None
    link: str | None
    image_url: str | None
    last_updated: datetime
    items: list[FeedItem]
    links: list[str] = field(default_factory=list)


def _struct_to_datetime(value) -> datetime | None:
    """Convert a feedparser UTC time struct to an aware datetime."""
    if not value:
        return None
    try:
        parsed = datetime(*value[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None
    # Treat the epoch as "no date", as some feeds emit zeroed timestamps
    if parsed.timestamp() <= 0:
        return None
    return parsed


def _unique(values) -> list[str]:
    """Drop empty and repeated values, keeping first-seen order."""
    seen: set[str] = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


class FeedParser:
    """Fetches and parses RSS/Atom feeds with rate limiting."""

    def __init__(self, timeout: float | None = None, user_agent: str | None = None):
        self.timeout = timeout if timeout is not None else config.FETCH_TIMEOUT
        self.user_agent = user_agent or config.USER_AGENT
        self._domain_last_fetch: dict[str, float] = {}
        self._min_interval = 1.0  # Minimum seconds between requests to same domain

    async def fetch(self, url: str) -> ParsedFeed:
        """
        Fetch and parse a feed URL.

        Raises:
            FetchError: URL not allowed, network fault, timeout or HTTP error status
            ParseError: document is malformed or not RSS/Atom
        """
        try:
            url = validate_url(url)
        except URLValidationError as e:
            raise FetchError(str(e)) from e

        content = await self._download(url)
        return self.parse(url, content)

    async def _download(self, url: str) -> bytes:
        """GET the raw feed document."""
        await self._rate_limit(urlparse(url).netloc)

        headers = {"User-Agent": self.user_agent, "Accept": _ACCEPT}

        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    url,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as resp:
                    resp.raise_for_status()
                    return await resp.read()
        except asyncio.TimeoutError as e:
            raise FetchError(f"Timed out after {self.timeout:g}s fetching {url}") from e
        except aiohttp.ClientResponseError as e:
            raise FetchError(f"HTTP {e.status} fetching {url}") from e
        except aiohttp.ClientError as e:
            raise FetchError(f"Could not fetch {url}: {e}") from e

    def parse(self, url: str, content: bytes | str) -> ParsedFeed:
        """Parse feed content using feedparser."""
        raw = content.encode("utf-8") if isinstance(content, str) else content

        if _DOCTYPE_RE.match(raw):
            raise ParseError("DTD processing is prohibited for feed documents")

        parsed = feedparser.parse(io.BytesIO(raw))

        # Loose-mode recovery from broken XML still counts as a parse failure
        if parsed.bozo and isinstance(parsed.bozo_exception, xml.sax.SAXException):
            raise ParseError(f"Malformed feed document: {parsed.bozo_exception}")
        if parsed.bozo and not parsed.entries:
            raise ParseError(f"Failed to parse feed: {parsed.bozo_exception}")
        if not parsed.version and not parsed.entries:
            raise ParseError("Document is not an RSS or Atom feed")
        if parsed.bozo:
            logger.debug(f"Tolerating feed irregularity in {url}: {parsed.bozo_exception}")

        items = [self._parse_entry(entry) for entry in parsed.entries]

        # Get feed metadata
        meta = parsed.feed
        last_updated = (
            _struct_to_datetime(meta.get("updated_parsed"))
            or _struct_to_datetime(meta.get("published_parsed"))
            or datetime.now(timezone.utc)
        )

        return ParsedFeed(
            url=url,
            title=meta.get("title") or "Unknown Feed",
            description=meta.get("description") or meta.get("subtitle"),
            link=meta.get("link"),
            image_url=self._declared_image(meta),
            last_updated=last_updated,
            items=items,
            links=self._candidate_links(meta),
        )

    def _parse_entry(self, entry) -> FeedItem:
        """Build a FeedItem from one feedparser entry."""
        # Extract content (prefer full content over summary)
        content_text = None
        if entry.get("content"):
            content_text = entry.content[0].get("value")
        if not content_text:
            content_text = entry.get("summary") or entry.get("description")

        # Publish date, falling back to the last-modified date
        published = (
            _struct_to_datetime(entry.get("published_parsed"))
            or _struct_to_datetime(entry.get("updated_parsed"))
        )

        # Get URL
        item_url = entry.get("link", "")
        if not item_url:
            for link in entry.get("links", []):
                if link.get("rel") == "alternate" or link.get("type") == "text/html":
                    item_url = link.get("href", "")
                    break

        return FeedItem(
            url=(item_url or "").strip(),
            title=entry.get("title"),
            author=entry.get("author"),
            published=published,
            content=content_text,
        )

    def _declared_image(self, meta) -> str | None:
        """Icon the document itself declares (RSS <image>, Atom <logo>/<icon>)."""
        image = meta.get("image") or {}
        return image.get("href") or image.get("url") or meta.get("logo") or meta.get("icon")

    def _candidate_links(self, meta) -> list[str]:
        """The feed's site links, primary first, de-duplicated."""
        links = [meta.get("link")]
        for link in meta.get("links", []):
            if link.get("rel", "alternate") == "alternate":
                links.append(link.get("href"))
        return _unique(links)

    async def _rate_limit(self, domain: str):
        """Ensure minimum interval between requests to same domain."""
        now = time.time()
        if domain in self._domain_last_fetch:
            elapsed = now - self._domain_last_fetch[domain]
            if elapsed < self._min_interval:
                await asyncio.sleep(self._min_interval - elapsed)
        self._domain_last_fetch[domain] = time.time()


def parse_feed_sync(content: bytes | str, url: str = "") -> ParsedFeed:
    """
    Synchronous feed parsing (for use when content is already fetched).

    Useful for testing or when you already have the feed content.
    """
    parser = FeedParser()
    return parser.parse(url, content)
