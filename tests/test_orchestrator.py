"""Tests for PersonaScraper orchestration and failure isolation."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx
import pytest

from persona_scraper.config import Config
from persona_scraper.dataset.organizer import DataOrganizer
from persona_scraper.errors import ErrorKind, IdentityResolutionError
from persona_scraper.models import (
    Platform,
    PlatformError,
    TwitterResult,
    YouTubeOptions,
    YouTubeResult,
    coerce_options,
)
from persona_scraper.orchestrator import (
    DEEP_OPTIONS,
    QUICK_OPTIONS,
    PersonaScraper,
    count_data_points,
)


class FakeFetcher:
    """Stands in for a platform fetcher; records every call."""

    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.calls: list[tuple[str, Any]] = []

    async def scrape(self, handle: str, options: Any = None) -> Any:
        self.calls.append((handle, options))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def make_scraper(config: Config, tmp_path: Path):
    def make(**fetchers: FakeFetcher) -> PersonaScraper:
        return PersonaScraper(
            config,
            fetchers={Platform(name): f for name, f in fetchers.items()},
            organizer_factory=lambda name: DataOrganizer(name, tmp_path),
        )

    return make


def test_count_data_points(youtube_result: YouTubeResult, twitter_result: TwitterResult) -> None:
    assert count_data_points(youtube_result) == 2
    assert count_data_points(twitter_result) == 2


class TestScrapePlatform:
    @pytest.mark.asyncio
    async def test_routes_to_fetcher(self, make_scraper, youtube_result: YouTubeResult) -> None:
        yt = FakeFetcher(youtube_result)
        scraper = make_scraper(youtube=yt)
        result = await scraper.scrape_platform("youtube", "@money", {"max_videos": 3})
        assert result is youtube_result
        assert yt.calls == [("@money", {"max_videos": 3})]

    @pytest.mark.asyncio
    async def test_errors_propagate(self, make_scraper) -> None:
        scraper = make_scraper(twitter=FakeFetcher(error=IdentityResolutionError("twitter", "ghost")))
        with pytest.raises(IdentityResolutionError, match="not found: ghost"):
            await scraper.scrape_platform("x", "ghost")


class TestScrapePersona:
    @pytest.mark.asyncio
    async def test_partial_failure_is_isolated(
        self, make_scraper, tmp_path: Path, youtube_result: YouTubeResult
    ) -> None:
        scraper = make_scraper(
            youtube=FakeFetcher(youtube_result),
            twitter=FakeFetcher(error=IdentityResolutionError("twitter", "ghost")),
        )
        bundle = await scraper.scrape_persona("Money Talks", {"youtube": "@money", "twitter": "ghost"})

        assert set(bundle.results()) == {"youtube"}
        error = bundle.errors()["twitter"]
        assert error.kind is ErrorKind.IDENTITY
        assert error.error

        base = tmp_path / "money_talks"
        assert (base / "youtube" / "youtube_data.json").exists()
        assert (base / "youtube" / "transcripts" / "v1_budgeting_basics.txt").exists()
        assert (base / "training_dataset.json").exists()

        metadata = json.loads((base / "metadata.json").read_text(encoding="utf-8"))
        assert metadata["persona_name"] == "Money Talks"
        assert metadata["platforms"]["youtube"]["data_points"] == 2
        assert metadata["platforms"]["youtube"]["handle"] == "@money"
        assert metadata["platforms"]["twitter"] == {"handle": "ghost", "error": error.error}

    @pytest.mark.asyncio
    async def test_transport_errors_are_classified(self, make_scraper) -> None:
        scraper = make_scraper(twitter=FakeFetcher(error=httpx.ConnectError("boom")))
        bundle = await scraper.scrape_persona("p", {"twitter": "someone"})
        assert bundle.errors()["twitter"].kind is ErrorKind.TRANSPORT

    @pytest.mark.asyncio
    async def test_empty_handles_skipped(self, make_scraper, twitter_result: TwitterResult) -> None:
        yt = FakeFetcher()
        tw = FakeFetcher(twitter_result)
        scraper = make_scraper(youtube=yt, twitter=tw)
        bundle = await scraper.scrape_persona("p", {"youtube": "", "instagram": None, "twitter": "t"})
        assert list(bundle.platforms) == ["twitter"]
        assert yt.calls == []

    @pytest.mark.asyncio
    async def test_x_alias_and_case(self, make_scraper, twitter_result: TwitterResult) -> None:
        tw = FakeFetcher(twitter_result)
        scraper = make_scraper(twitter=tw)
        bundle = await scraper.scrape_persona("p", {"X": "moneytalks"})
        assert list(bundle.platforms) == ["twitter"]
        assert tw.calls[0][0] == "moneytalks"

    @pytest.mark.asyncio
    async def test_unsupported_platform_recorded(self, make_scraper, twitter_result: TwitterResult) -> None:
        scraper = make_scraper(twitter=FakeFetcher(twitter_result))
        bundle = await scraper.scrape_persona("p", {"tiktok": "someone", "twitter": "t"})
        error = bundle.platforms["tiktok"]
        assert isinstance(error, PlatformError)
        assert error.kind is ErrorKind.UNSUPPORTED
        assert "tiktok" in error.error
        assert isinstance(bundle.platforms["twitter"], TwitterResult)

    @pytest.mark.asyncio
    async def test_all_failed_still_writes_metadata(self, make_scraper, tmp_path: Path) -> None:
        scraper = make_scraper(youtube=FakeFetcher(error=RuntimeError("down")))
        bundle = await scraper.scrape_persona("p", {"youtube": "@c"})
        assert bundle.errors()["youtube"].kind is ErrorKind.UNKNOWN
        assert (tmp_path / "p" / "metadata.json").exists()
        assert (tmp_path / "p" / "summary.json").exists()

    @pytest.mark.asyncio
    async def test_options_routed_per_platform(
        self, make_scraper, youtube_result: YouTubeResult, twitter_result: TwitterResult
    ) -> None:
        yt = FakeFetcher(youtube_result)
        tw = FakeFetcher(twitter_result)
        scraper = make_scraper(youtube=yt, twitter=tw)
        await scraper.scrape_persona(
            "p",
            {"youtube": "@c", "twitter": "t"},
            {Platform.YOUTUBE: {"max_videos": 1}, "twitter": {"max_tweets": 7}},
        )
        assert yt.calls[0][1] == {"max_videos": 1}
        assert tw.calls[0][1] == {"max_tweets": 7}


class TestPresets:
    @pytest.mark.asyncio
    async def test_quick_scrape(self, make_scraper, youtube_result: YouTubeResult) -> None:
        yt = FakeFetcher(youtube_result)
        await make_scraper(youtube=yt).quick_scrape("p", {"youtube": "@c"})
        assert yt.calls[0][1] == QUICK_OPTIONS["youtube"]
        assert yt.calls[0][1]["include_comments"] is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("preset", ["quick_scrape", "deep_scrape"])
    async def test_presets_request_transcripts(
        self, make_scraper, youtube_result: YouTubeResult, preset: str
    ) -> None:
        yt = FakeFetcher(youtube_result)
        await getattr(make_scraper(youtube=yt), preset)("p", {"youtube": "@c"})
        options = coerce_options(Platform.YOUTUBE, yt.calls[0][1])
        assert isinstance(options, YouTubeOptions)
        assert options.include_transcripts is True

    @pytest.mark.asyncio
    async def test_deep_scrape(self, make_scraper, twitter_result: TwitterResult) -> None:
        tw = FakeFetcher(twitter_result)
        await make_scraper(twitter=tw).deep_scrape("p", {"twitter": "t"})
        assert tw.calls[0][1] == DEEP_OPTIONS["twitter"]
        assert tw.calls[0][1]["max_tweets"] == 200
