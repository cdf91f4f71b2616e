"""Platform fetchers, keyed by :class:`~persona_scraper.models.Platform`."""

from __future__ import annotations

from persona_scraper.config import Config
from persona_scraper.fetchers.base import BaseFetcher, Page, normalize_handle, paginate
from persona_scraper.fetchers.instagram import InstagramFetcher
from persona_scraper.fetchers.twitter import TwitterFetcher
from persona_scraper.fetchers.youtube import YouTubeFetcher
from persona_scraper.models import Platform

FETCHER_CLASSES: dict[Platform, type[BaseFetcher]] = {
    Platform.YOUTUBE: YouTubeFetcher,
    Platform.TWITTER: TwitterFetcher,
    Platform.INSTAGRAM: InstagramFetcher,
}


def build_fetchers(config: Config) -> dict[Platform, BaseFetcher]:
    """Instantiate one fetcher per platform, each with its own queue."""
    return {platform: cls(config) for platform, cls in FETCHER_CLASSES.items()}


__all__ = [
    "BaseFetcher",
    "FETCHER_CLASSES",
    "InstagramFetcher",
    "Page",
    "TwitterFetcher",
    "YouTubeFetcher",
    "build_fetchers",
    "normalize_handle",
    "paginate",
]
