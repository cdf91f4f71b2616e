"""Multi-platform persona scraping with per-platform failure isolation."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from persona_scraper.config import Config
from persona_scraper.dataset.organizer import DataOrganizer
from persona_scraper.errors import ErrorKind, classify_error
from persona_scraper.fetchers import BaseFetcher, build_fetchers
from persona_scraper.models import (
    PersonaBundle,
    Platform,
    PlatformError,
    PlatformResult,
    YouTubeResult,
)

logger = logging.getLogger(__name__)

OrganizerFactory = Callable[[str], DataOrganizer]

# ---------------------------------------------------------------------------
# Option presets
# ---------------------------------------------------------------------------
# Both presets pull transcripts: they are the only YouTube input to the text miner.

QUICK_OPTIONS: dict[str, dict[str, Any]] = {
    "youtube": {"max_videos": 50, "include_comments": False, "include_transcripts": True},
    "instagram": {"max_posts": 50, "include_post_details": False},
    "twitter": {"max_tweets": 100, "include_likes": False, "include_followers": False},
}

DEEP_OPTIONS: dict[str, dict[str, Any]] = {
    "youtube": {
        "max_videos": 100,
        "include_comments": True,
        "max_comments": 50,
        "include_transcripts": True,
    },
    "instagram": {"max_posts": 100, "include_post_details": True},
    "twitter": {
        "max_tweets": 200,
        "include_likes": True,
        "max_likes": 100,
        "include_followers": True,
        "max_followers": 100,
    },
}


def count_data_points(result: PlatformResult) -> int:
    """Number of primary items (videos, posts or tweets) in a result."""
    return len(result.items)


def _options_for(options: Mapping[Any, Any] | None, platform: Platform) -> Any:
    if not options:
        return None
    if platform in options:
        return options[platform]
    return options.get(platform.value)


class PersonaScraper:
    """Run fetchers for a persona and hand the results to a :class:`DataOrganizer`."""

    def __init__(
        self,
        config: Config,
        fetchers: Mapping[Platform, BaseFetcher] | None = None,
        organizer_factory: OrganizerFactory | None = None,
    ) -> None:
        self.config = config
        self.fetchers = dict(fetchers) if fetchers is not None else build_fetchers(config)
        self.organizer_factory = organizer_factory or (
            lambda name: DataOrganizer.from_config(name, config)
        )

    async def scrape_platform(
        self, platform: Platform | str, handle: str, options: Any = None
    ) -> PlatformResult:
        """Scrape one platform; errors propagate to the caller."""
        platform = Platform.parse(platform)
        logger.info("Scraping %s for handle: %s", platform.value, handle)
        return await self.fetchers[platform].scrape(handle, options)

    async def _scrape_isolated(
        self, name: str, handle: str, options: Mapping[Any, Any] | None
    ) -> PlatformResult | PlatformError:
        try:
            platform = Platform.parse(name)
            return await self.scrape_platform(platform, handle, _options_for(options, platform))
        except Exception as exc:
            logger.error("Failed to scrape %s: %s", name, exc)
            return PlatformError(
                platform=name, kind=classify_error(exc), error=str(exc) or repr(exc)
            )

    async def scrape_persona(
        self,
        persona_name: str,
        handles: Mapping[Any, str | None],
        options: Mapping[Any, Any] | None = None,
    ) -> PersonaBundle:
        """Scrape every platform with a handle, then persist and export.

        Platforms run concurrently and each failure is recorded as a
        :class:`PlatformError` in the bundle; this method does not raise for
        fetch errors.
        """
        logger.info("Starting multi-platform scrape for persona: %s", persona_name)
        organizer = self.organizer_factory(persona_name)
        organizer.initialize()
        scraped_at = datetime.now(timezone.utc)

        requested: list[tuple[str, str]] = []
        for key, handle in handles.items():
            if not handle:
                continue
            name = key.value if isinstance(key, Platform) else str(key).lower()
            if name == "x":
                name = Platform.TWITTER.value
            requested.append((name, handle))

        outcomes = await asyncio.gather(
            *(self._scrape_isolated(name, handle, options) for name, handle in requested)
        )

        platforms: dict[str, Any] = {}
        metadata: dict[str, Any] = {
            "persona_name": persona_name,
            "scraped_at": scraped_at.isoformat(),
            "platforms": {},
        }
        for (name, handle), outcome in zip(requested, outcomes):
            if not isinstance(outcome, PlatformError):
                outcome = self._persist(organizer, name, outcome)
            platforms[name] = outcome
            if isinstance(outcome, PlatformError):
                metadata["platforms"][name] = {"handle": handle, "error": outcome.error}
            else:
                metadata["platforms"][name] = {
                    "handle": handle,
                    "scraped_at": outcome.scraped_at.isoformat(),
                    "data_points": count_data_points(outcome),
                }
                logger.info("%s scraping completed", name)

        organizer.save_metadata(metadata)
        summary = organizer.create_summary()
        logger.info("Scraping summary: %s", summary["platforms"])
        try:
            path = organizer.export_for_training()
            logger.info("Training dataset exported to: %s", path)
        except Exception:
            logger.error("Training dataset export failed", exc_info=True)

        return PersonaBundle(persona_name=persona_name, scraped_at=scraped_at, platforms=platforms)

    def _persist(
        self, organizer: DataOrganizer, name: str, result: PlatformResult
    ) -> PlatformResult | PlatformError:
        try:
            organizer.save_result(result)
            if isinstance(result, YouTubeResult) and result.videos:
                logger.info("Saving individual transcript files...")
                organizer.save_transcripts(result.videos)
        except OSError as exc:
            logger.error("Failed to save %s data: %s", name, exc)
            return PlatformError(platform=name, kind=ErrorKind.UNKNOWN, error=str(exc))
        return result

    async def quick_scrape(
        self, persona_name: str, handles: Mapping[Any, str | None]
    ) -> PersonaBundle:
        return await self.scrape_persona(persona_name, handles, QUICK_OPTIONS)

    async def deep_scrape(
        self, persona_name: str, handles: Mapping[Any, str | None]
    ) -> PersonaBundle:
        return await self.scrape_persona(persona_name, handles, DEEP_OPTIONS)
