"""Twitter/X profile fetcher using the Twitter API v2."""

from __future__ import annotations

import logging
import re
from collections import Counter
from datetime import datetime
from typing import Any

from persona_scraper.errors import ConfigurationError, IdentityResolutionError
from persona_scraper.fetchers.base import BaseFetcher, Page, normalize_handle, paginate
from persona_scraper.models import (
    Follower,
    Platform,
    Tweet,
    TweetAnalysis,
    TwitterOptions,
    TwitterResult,
    TwitterUser,
)
from persona_scraper.utils.http import fetch_json

logger = logging.getLogger(__name__)

_API_BASE = "https://api.twitter.com/2"

_HANDLE_PREFIXES = (
    "https://twitter.com/",
    "https://www.twitter.com/",
    "https://x.com/",
    "https://www.x.com/",
    "twitter.com/",
    "x.com/",
)

_USER_FIELDS = (
    "id,name,username,created_at,description,location,pinned_tweet_id,"
    "profile_image_url,protected,public_metrics,url,verified,verified_type"
)
_TWEET_FIELDS = (
    "id,text,created_at,author_id,conversation_id,in_reply_to_user_id,"
    "referenced_tweets,attachments,public_metrics,possibly_sensitive,lang,reply_settings"
)

# API bounds for max_results.
_TIMELINE_PAGE_SIZE = 100
_LIKES_PAGE_SIZE = 100
_FOLLOWERS_PAGE_SIZE = 1000
_SEARCH_PAGE_SIZE = 100
_MIN_RESULTS = 5
_MIN_SEARCH_RESULTS = 10
_MIN_LIKES_RESULTS = 10

_HASHTAG_RE = re.compile(r"#\w+")
_MENTION_RE = re.compile(r"@\w+")
_LINK_RE = re.compile(r"https?://\S+")


def analyze_tweets(tweets: list[Tweet]) -> TweetAnalysis:
    """Summarize tweet text for persona building."""
    if not tweets:
        return TweetAnalysis()

    hashtags: list[str] = []
    mentions: list[str] = []
    links: list[str] = []
    hours: Counter[int] = Counter()
    media_count = 0
    total_length = 0

    for tweet in tweets:
        total_length += len(tweet.text)
        hashtags.extend(_HASHTAG_RE.findall(tweet.text))
        mentions.extend(_MENTION_RE.findall(tweet.text))
        links.extend(_LINK_RE.findall(tweet.text))
        if tweet.attachments:
            media_count += 1
        if tweet.created_at:
            try:
                hours[datetime.fromisoformat(tweet.created_at.replace("Z", "+00:00")).hour] += 1
            except ValueError:
                logger.debug("Unparseable created_at on tweet %s", tweet.id)

    return TweetAnalysis(
        total_tweets=len(tweets),
        avg_length=round(total_length / len(tweets)),
        hashtags=hashtags,
        mentions=mentions,
        links=links,
        media_count=media_count,
        time_distribution=dict(sorted(hours.items())),
    )


class TwitterFetcher(BaseFetcher[TwitterOptions]):
    """Fetch a user, their timeline and optionally likes and followers."""

    platform = Platform.TWITTER

    def validate_config(self) -> None:
        if not self.config.twitter_bearer_token:
            raise ConfigurationError(
                "Twitter API not configured. Please set TWITTER_BEARER_TOKEN."
            )

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {self.config.twitter_bearer_token}"}
        return await self.limiter.enqueue(
            lambda: fetch_json(
                f"{_API_BASE}/{path}",
                headers=headers,
                params=params,
                timeout=self.config.http_timeout,
                user_agent=self.config.user_agent,
            )
        )

    def _page_fetcher(
        self,
        path: str,
        params: dict[str, Any],
        model: type,
        *,
        min_results: int = _MIN_RESULTS,
        cursor_param: str = "pagination_token",
    ):
        async def fetch_page(cursor: str | None, page_size: int) -> Page[Any]:
            # The API rejects small pages; over-fetching is trimmed by paginate.
            data = await self._get(
                path, {**params, "max_results": max(page_size, min_results), cursor_param: cursor}
            )
            items = [model(**raw) for raw in data.get("data") or []]
            return Page(items, (data.get("meta") or {}).get("next_token"))

        return fetch_page

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    async def resolve_identity(self, handle: str) -> str:
        self.validate_config()
        username = normalize_handle(handle, _HANDLE_PREFIXES)
        if not username:
            raise IdentityResolutionError(self.platform.value, handle)
        return username

    async def fetch_primary(self, identity: str) -> TwitterUser:
        logger.info("Fetching Twitter user: %s", identity)
        data = await self._get(f"users/by/username/{identity}", {"user.fields": _USER_FIELDS})
        user = data.get("data")
        if not user:
            raise IdentityResolutionError(self.platform.value, identity)
        logger.info("Found user: @%s", user.get("username"))
        return TwitterUser(
            id=user["id"],
            username=user.get("username", identity),
            name=user.get("name"),
            description=user.get("description"),
            location=user.get("location"),
            created_at=user.get("created_at"),
            profile_image_url=user.get("profile_image_url"),
            verified=user.get("verified"),
            metrics=user.get("public_metrics") or {},
        )

    # ------------------------------------------------------------------
    # Paged resources
    # ------------------------------------------------------------------

    async def fetch_items(self, primary: TwitterUser, options: TwitterOptions) -> list[Tweet]:
        limit = options.max_tweets
        if limit is None:
            limit = self.config.limits.twitter_max_tweets
        logger.info("Fetching tweets for user ID: %s", primary.id)
        fetch_page = self._page_fetcher(
            f"users/{primary.id}/tweets",
            {
                "tweet.fields": _TWEET_FIELDS,
                "expansions": "attachments.media_keys,referenced_tweets.id",
                "media.fields": "type,url,preview_image_url,public_metrics",
            },
            Tweet,
        )
        tweets = await paginate(fetch_page, limit, _TIMELINE_PAGE_SIZE)
        logger.info("Fetched total of %d tweets", len(tweets))
        return tweets

    async def fetch_likes(self, user_id: str, max_likes: int = 100) -> list[Tweet]:
        """Liked tweets; needs elevated access, so any error yields ``[]``."""
        fetch_page = self._page_fetcher(
            f"users/{user_id}/liked_tweets",
            {"tweet.fields": "created_at,public_metrics,text"},
            Tweet,
            min_results=_MIN_LIKES_RESULTS,
        )
        try:
            likes = await paginate(fetch_page, max_likes, _LIKES_PAGE_SIZE)
        except Exception as exc:
            logger.warning("Could not fetch likes: %s", exc)
            return []
        logger.info("Fetched %d liked tweets", len(likes))
        return likes

    async def fetch_followers(self, user_id: str, max_followers: int = 100) -> list[Follower]:
        fetch_page = self._page_fetcher(
            f"users/{user_id}/followers",
            {"user.fields": "username,name,public_metrics,verified"},
            Follower,
            min_results=1,
        )
        try:
            followers = await paginate(fetch_page, max_followers, _FOLLOWERS_PAGE_SIZE)
        except Exception as exc:
            logger.warning("Could not fetch followers: %s", exc)
            return []
        logger.info("Fetched %d followers", len(followers))
        return followers

    async def search_tweets(self, query: str, max_tweets: int = 100) -> list[Tweet]:
        """Search recent tweets; unlike likes and followers, errors propagate."""
        self.validate_config()
        logger.info("Searching tweets with query: %s", query)
        fetch_page = self._page_fetcher(
            "tweets/search/recent",
            {"query": query, "tweet.fields": "created_at,public_metrics,author_id,text"},
            Tweet,
            min_results=_MIN_SEARCH_RESULTS,
            cursor_param="next_token",
        )
        tweets = await paginate(fetch_page, max_tweets, _SEARCH_PAGE_SIZE)
        logger.info("Found %d tweets", len(tweets))
        return tweets

    async def fetch_extras(self, primary: TwitterUser, options: TwitterOptions) -> dict[str, Any]:
        extras: dict[str, Any] = {"likes": [], "followers": []}
        if options.include_likes:
            extras["likes"] = await self.fetch_likes(primary.id, options.max_likes)
        if options.include_followers:
            extras["followers"] = await self.fetch_followers(primary.id, options.max_followers)
        return extras

    def build_result(
        self,
        primary: TwitterUser,
        items: list[Tweet],
        options: TwitterOptions,
        extras: dict[str, Any],
    ) -> TwitterResult:
        return TwitterResult(
            user=primary,
            tweets=items,
            likes=extras.get("likes", []),
            followers=extras.get("followers", []),
            analysis=analyze_tweets(items),
        )
