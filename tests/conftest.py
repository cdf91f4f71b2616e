"""Shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from persona_scraper.config import Config
from persona_scraper.models import (
    Channel,
    Comment,
    InstagramPost,
    InstagramProfile,
    InstagramResult,
    PostDetails,
    Transcript,
    TranscriptSegment,
    Tweet,
    TwitterResult,
    TwitterUser,
    Video,
    YouTubeResult,
)
from persona_scraper.rate_limiter import RateLimiter


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(
        youtube_api_key="yt-key",
        twitter_bearer_token="tw-token",
        data_output_dir=str(tmp_path / "data"),
        rate_limit_delay=0.0,
    )


@pytest.fixture
def limiter() -> RateLimiter:
    return RateLimiter(delay=0.0, concurrency=3)


# ---------------------------------------------------------------------------
# Sample platform results
# ---------------------------------------------------------------------------

TRANSCRIPT_TEXT = (
    "I believe that a budget is the foundation of every financial plan you will ever make. "
    "You should always pay yourself first before spending on anything else. "
    "That is the most important habit I recommend to every single person."
)


@pytest.fixture
def youtube_result() -> YouTubeResult:
    transcript = Transcript(
        video_id="v1",
        language="en",
        full_text=TRANSCRIPT_TEXT,
        segments=[TranscriptSegment(start=0.0, duration=4.0, text=TRANSCRIPT_TEXT)],
        segment_count=1,
    )
    return YouTubeResult(
        channel=Channel(id="UC" + "a" * 22, title="Money Talks", statistics={"subscriber_count": 50}),
        videos=[
            Video(
                video_id="v1",
                title="Budgeting Basics",
                description="How to budget",
                tags=["Budgeting", "Money"],
                duration="PT10M",
                transcript=transcript,
                comments=[Comment(comment_id="c1", text="Thanks, this helped", author="viewer")],
            ),
            Video(video_id="v2", title="No captions"),
        ],
    )


@pytest.fixture
def twitter_result() -> TwitterResult:
    return TwitterResult(
        user=TwitterUser(id="42", username="moneytalks"),
        tweets=[
            Tweet(id="t1", text="Pay yourself first, every single month.", public_metrics={"like_count": 5}),
            Tweet(id="t2", text="short"),
        ],
    )


@pytest.fixture
def instagram_result() -> InstagramResult:
    return InstagramResult(
        profile=InstagramProfile(username="moneytalks"),
        posts=[
            InstagramPost(
                url="https://www.instagram.com/p/abc/",
                shortcode="abc",
                details=PostDetails(caption="Sunday budgeting session"),
            ),
            InstagramPost(url="https://www.instagram.com/p/def/", shortcode="def"),
        ],
    )
