"""Instagram public profile fetcher driven by a headless Chromium.

Instagram serves little to unauthenticated clients and changes its markup
often, so everything here is best effort: profile metadata comes from
``ld+json`` and ``og:*`` tags, posts from the links visible after each scroll.
The browser is owned by :meth:`InstagramFetcher.browser_session` and is closed
on every exit path.
"""

from __future__ import annotations

import logging
import math
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from playwright.async_api import Browser, async_playwright
from playwright.async_api import Page as BrowserPage

from persona_scraper.config import Config
from persona_scraper.errors import IdentityResolutionError
from persona_scraper.fetchers.base import BaseFetcher, Page, normalize_handle, paginate
from persona_scraper.models import (
    InstagramOptions,
    InstagramPost,
    InstagramProfile,
    InstagramResult,
    Platform,
    PostDetails,
    ProfilePageData,
)
from persona_scraper.rate_limiter import RateLimiter
from persona_scraper.utils.http import BROWSER_USER_AGENT

logger = logging.getLogger(__name__)

_BASE_URL = "https://www.instagram.com"

_HANDLE_PREFIXES = (
    "https://www.instagram.com/",
    "https://instagram.com/",
    "www.instagram.com/",
    "instagram.com/",
)

_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--disable-blink-features=AutomationControlled",
]

_MASK_WEBDRIVER = "Object.defineProperty(navigator, 'webdriver', { get: () => false });"

_PROFILE_SCRIPT = """() => {
    let structured = null;
    for (const script of document.querySelectorAll('script[type="application/ld+json"]')) {
        try {
            const json = JSON.parse(script.textContent);
            if (json['@type'] === 'ProfilePage') { structured = json; break; }
        } catch (e) { continue; }
    }
    const meta = (p) => {
        const el = document.querySelector(`meta[property="${p}"]`);
        return el ? el.getAttribute('content') : null;
    };
    return {
        structured_data: structured,
        title: document.title,
        description: meta('og:description'),
        image: meta('og:image'),
    };
}"""

_POST_LINKS_SCRIPT = """() => {
    const out = [];
    for (const link of document.querySelectorAll('a[href*="/p/"], a[href*="/reel/"]')) {
        const img = link.querySelector('img');
        if (!img) continue;
        out.push({href: link.getAttribute('href'), thumbnail: img.getAttribute('src'), alt: img.alt || ''});
    }
    return out;
}"""

_SCROLL_SCRIPT = "() => window.scrollBy(0, window.innerHeight)"

_POST_DETAIL_SCRIPT = """() => {
    const meta = (p) => {
        const el = document.querySelector(`meta[property="${p}"]`);
        return el ? el.getAttribute('content') : null;
    };
    const h1 = document.querySelector('h1');
    return {
        title: document.title,
        description: meta('og:description'),
        image: meta('og:image'),
        caption: h1 ? h1.textContent : '',
    };
}"""

_LOGIN_MARKERS = ("Log in to Instagram", "loginForm")
_SHORTCODE_RE = re.compile(r"/(?:p|reel)/([^/?#]+)")

# Instagram renders roughly one grid row batch of 12 posts per scroll.
_POSTS_PER_SCROLL = 12
_NAV_TIMEOUT_MS = 30_000
_PROFILE_SETTLE_MS = 3_000
_SCROLL_SETTLE_MS = 2_000


def _parse_post_links(entries: list[dict[str, Any]]) -> list[InstagramPost]:
    """Turn raw anchors from the grid into posts, skipping non-post links."""
    posts: list[InstagramPost] = []
    for entry in entries:
        href = entry.get("href") or ""
        m = _SHORTCODE_RE.search(href)
        if not m:
            continue
        url = href if href.startswith("http") else f"{_BASE_URL}{href}"
        posts.append(InstagramPost(
            url=url,
            shortcode=m.group(1),
            thumbnail=entry.get("thumbnail"),
            alt=entry.get("alt") or "",
        ))
    return posts


class InstagramFetcher(BaseFetcher[InstagramOptions]):
    """Scrape a public profile grid and optional per-post details."""

    platform = Platform.INSTAGRAM

    def __init__(self, config: Config, limiter: RateLimiter | None = None) -> None:
        super().__init__(
            config, limiter or RateLimiter.from_config(config, delay=3.0, concurrency=1)
        )
        self._browser: Browser | None = None
        self._profile_page: BrowserPage | None = None

    # ------------------------------------------------------------------
    # Browser lifecycle
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def browser_session(self) -> AsyncIterator[Browser]:
        """Own one Chromium process for the duration of the block."""
        async with async_playwright() as pw:
            browser = await pw.chromium.launch(headless=self.config.headless, args=_LAUNCH_ARGS)
            self._browser = browser
            logger.info("Instagram browser initialized")
            try:
                yield browser
            finally:
                self._browser = None
                await browser.close()
                logger.info("Instagram browser closed")

    @asynccontextmanager
    async def _page(self, user_agent: str = BROWSER_USER_AGENT) -> AsyncIterator[BrowserPage]:
        if self._browser is None:
            raise RuntimeError("Instagram browser session is not open")
        context = await self._browser.new_context(
            user_agent=user_agent,
            locale="en-US",
            extra_http_headers={"accept-language": "en-US,en;q=0.9"},
        )
        try:
            await context.add_init_script(_MASK_WEBDRIVER)
            page = await context.new_page()
            yield page
        finally:
            await context.close()

    async def scrape(self, handle: str, options: Any = None) -> InstagramResult:
        async with self.browser_session(), self._page() as page:
            self._profile_page = page
            try:
                return await super().scrape(handle, options)
            finally:
                self._profile_page = None

    def _require_profile_page(self) -> BrowserPage:
        if self._profile_page is None:
            raise RuntimeError("Instagram browser session is not open")
        return self._profile_page

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    async def resolve_identity(self, handle: str) -> str:
        username = normalize_handle(handle, _HANDLE_PREFIXES)
        if not username:
            raise IdentityResolutionError(self.platform.value, handle)
        return username

    async def _open_profile(self, page: BrowserPage, username: str) -> bool:
        """Navigate to the profile grid; returns whether a login wall is shown."""
        await page.goto(
            f"{_BASE_URL}/{username}/", wait_until="networkidle", timeout=_NAV_TIMEOUT_MS
        )
        await page.wait_for_timeout(_PROFILE_SETTLE_MS)
        content = await page.content()
        login_wall = any(marker in content for marker in _LOGIN_MARKERS)
        if login_wall:
            logger.warning("Instagram is showing a login wall. Scraping may be limited.")
        return login_wall

    async def _load_profile(self, username: str) -> InstagramProfile:
        page = self._require_profile_page()
        login_wall = await self._open_profile(page, username)
        data = await page.evaluate(_PROFILE_SCRIPT)
        logger.info("Profile data extracted for %s", username)
        return InstagramProfile(
            username=username,
            profile_data=ProfilePageData(**(data or {})),
            login_wall=login_wall,
        )

    async def fetch_primary(self, identity: str) -> InstagramProfile:
        logger.info("Scraping Instagram profile: %s", identity)
        return await self.limiter.enqueue(lambda: self._load_profile(identity))

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    async def fetch_items(
        self, primary: InstagramProfile, options: InstagramOptions
    ) -> list[InstagramPost]:
        limit = options.max_posts
        if limit is None:
            limit = self.config.limits.instagram_max_posts
        if limit <= 0:
            return []

        max_scrolls = math.ceil(limit / _POSTS_PER_SCROLL)
        seen: set[str] = set()
        # The grid is already open from fetch_primary; scrolling continues on that tab.
        page = self._require_profile_page()

        async def fetch_page(cursor: int | None, page_size: int) -> Page[InstagramPost]:
            scroll = cursor or 0
            raw = await self.limiter.enqueue(lambda: page.evaluate(_POST_LINKS_SCRIPT))
            fresh: list[InstagramPost] = []
            for post in _parse_post_links(raw or []):
                if len(fresh) >= page_size:
                    break
                if post.shortcode not in seen:
                    seen.add(post.shortcode)
                    fresh.append(post)
            if fresh:
                logger.info("Loaded %d posts so far...", len(seen))
            else:
                logger.warning("No posts found on scroll %d", scroll + 1)

            await page.evaluate(_SCROLL_SCRIPT)
            await page.wait_for_timeout(_SCROLL_SETTLE_MS)
            next_scroll = scroll + 1
            return Page(fresh, next_scroll if next_scroll < max_scrolls else None)

        posts = await paginate(fetch_page, limit, _POSTS_PER_SCROLL, stop_on_empty=False)
        logger.info("Scraped %d posts from %s", len(posts), primary.username)
        return posts

    # ------------------------------------------------------------------
    # Post details
    # ------------------------------------------------------------------

    async def _load_post_details(self, shortcode: str) -> PostDetails:
        async with self._page(user_agent=self.config.user_agent) as page:
            await page.goto(
                f"{_BASE_URL}/p/{shortcode}/", wait_until="networkidle", timeout=_NAV_TIMEOUT_MS
            )
            await page.wait_for_timeout(_SCROLL_SETTLE_MS)
            data = await page.evaluate(_POST_DETAIL_SCRIPT)
        return PostDetails(**(data or {}))

    async def fetch_post_details(self, shortcode: str) -> PostDetails | None:
        try:
            return await self.limiter.enqueue(lambda: self._load_post_details(shortcode))
        except Exception as exc:
            logger.warning("Could not get post details for %s: %s", shortcode, exc)
            return None

    async def fetch_nested_details(
        self,
        primary: InstagramProfile,
        items: list[InstagramPost],
        options: InstagramOptions,
    ) -> list[InstagramPost]:
        if not options.include_post_details or not items:
            return items
        logger.info("Fetching detailed post information...")
        posts = list(items)
        for index, post in enumerate(posts[:options.detail_post_limit]):
            details = await self.fetch_post_details(post.shortcode)
            posts[index] = post.model_copy(update={"details": details})
        return posts

    def build_result(
        self,
        primary: InstagramProfile,
        items: list[InstagramPost],
        options: InstagramOptions,
        extras: dict[str, Any],
    ) -> InstagramResult:
        return InstagramResult(profile=primary, posts=items)
