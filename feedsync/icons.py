"""
Icon Resolver - pick a representative image for a feed.

Resolution order, first hit wins:
1. An icon the feed document declares itself
2. Icon markup on each candidate site page, scanned with ICON_MATCHERS in order
3. A /favicon.ico on each candidate host that answers a HEAD request
4. The first candidate host's /favicon.ico, unverified

Every network step is best effort: a failure only moves on to the next step.
"""

import logging
from dataclasses import dataclass
from urllib.parse import urljoin, urlparse

import aiohttp
from bs4 import BeautifulSoup

from .config import config
from .url_validator import is_fetchable, site_favicon_url, site_root

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IconMatcher:
    """
    Matches one kind of icon declaration in HTML.

    An element matches when `tag` carries `attr` whose (lowercased,
    space-joined) value is one of `values`; the icon URL is read from
    `url_attr`. Attribute order in the markup is irrelevant.
    """
    name: str
    tag: str
    attr: str
    values: frozenset[str]
    url_attr: str

    def find(self, soup: BeautifulSoup) -> str | None:
        for element in soup.find_all(self.tag):
            value = element.get(self.attr)
            if value is None:
                continue
            if isinstance(value, list):
                value = " ".join(value)
            if value.strip().lower() not in self.values:
                continue
            url = (element.get(self.url_attr) or "").strip()
            if url:
                return url
        return None


# Priority order matters: the first matcher with a hit decides.
ICON_MATCHERS: tuple[IconMatcher, ...] = (
    IconMatcher("icon", "link", "rel", frozenset({"icon", "shortcut icon"}), "href"),
    IconMatcher("apple-touch-icon", "link", "rel", frozenset({"apple-touch-icon"}), "href"),
    IconMatcher("og:image", "meta", "property", frozenset({"og:image"}), "content"),
)


def normalize_icon_url(icon_url: str, base_url: str) -> str:
    """
    Make an icon URL found on a page absolute.

    //host/x.png -> page scheme added; /x.png -> page scheme and host added;
    other relative paths resolve against the page URL; absolute URLs pass through.
    """
    if icon_url.startswith("//"):
        return f"{urlparse(base_url).scheme}:{icon_url}"
    if icon_url.startswith("/"):
        return f"{site_root(base_url)}{icon_url}"
    if not urlparse(icon_url).scheme:
        return urljoin(base_url, icon_url)
    return icon_url


def find_icon_in_html(
    html: str,
    base_url: str,
    matchers: tuple[IconMatcher, ...] = ICON_MATCHERS
) -> str | None:
    """Return the first icon declared in the page, made absolute."""
    soup = BeautifulSoup(html, "html.parser")
    for matcher in matchers:
        icon_url = matcher.find(soup)
        if icon_url:
            logger.debug(f"Icon found via {matcher.name} on {base_url}: {icon_url}")
            return normalize_icon_url(icon_url, base_url)
    return None


class IconResolver:
    """Resolves a best-effort icon URL for a feed."""

    def __init__(
        self,
        page_timeout: float | None = None,
        probe_timeout: float | None = None,
        user_agent: str | None = None,
        matchers: tuple[IconMatcher, ...] = ICON_MATCHERS,
    ):
        self.page_timeout = page_timeout if page_timeout is not None else config.ICON_PAGE_TIMEOUT
        self.probe_timeout = probe_timeout if probe_timeout is not None else config.FAVICON_PROBE_TIMEOUT
        self.user_agent = user_agent or config.USER_AGENT
        self.matchers = matchers

    async def resolve(
        self,
        declared_image: str | None,
        links: list[str]
    ) -> str | None:
        """Run the fallback chain and return an icon URL, or None."""
        if declared_image:
            return declared_image

        candidates = [link for link in dict.fromkeys(links) if is_fetchable(link)]
        if not candidates:
            return None

        for link in candidates:
            icon_url = await self._icon_from_page(link)
            if icon_url:
                return icon_url

        for link in candidates:
            favicon = site_favicon_url(link)
            if await self._url_exists(favicon):
                return favicon

        return site_favicon_url(candidates[0])

    async def _icon_from_page(self, url: str) -> str | None:
        try:
            html = await self._fetch_html(url)
        except Exception as e:
            logger.debug(f"Error fetching HTML from {url}: {e}")
            return None
        if not html:
            return None
        try:
            return find_icon_in_html(html, url, self.matchers)
        except Exception as e:
            logger.debug(f"Error parsing icon from HTML for {url}: {e}")
            return None

    async def _fetch_html(self, url: str) -> str | None:
        """GET a page; None for non-success status."""
        headers = {"User-Agent": self.user_agent, "Accept": "text/html,*/*;q=0.8"}
        async with aiohttp.ClientSession() as session:
            async with session.get(
                url,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.page_timeout)
            ) as resp:
                if resp.status != 200:
                    return None
                return await resp.text()

    async def _url_exists(self, url: str) -> bool:
        """HEAD a URL; any 2xx counts as present."""
        headers = {"User-Agent": self.user_agent}
        try:
            async with aiohttp.ClientSession() as session:
                async with session.head(
                    url,
                    headers=headers,
                    allow_redirects=True,
                    timeout=aiohttp.ClientTimeout(total=self.probe_timeout)
                ) as resp:
                    return 200 <= resp.status < 300
        except Exception as e:
            logger.debug(f"Failed to check URL {url}: {e}")
            return False
