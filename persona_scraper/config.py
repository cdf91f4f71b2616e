"""Configuration management for persona-scraper."""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PlatformLimits:
    """Default per-platform item caps used when a caller gives none."""

    youtube_max_videos: int = 100
    youtube_max_comments: int = 50
    instagram_max_posts: int = 100
    twitter_max_tweets: int = 200


@dataclass(frozen=True)
class MiningConfig:
    """Heuristic constants for the persona text miner.

    Length bounds are exclusive on both ends; ``financial_min_matches`` must
    be strictly exceeded before a financial category is mined.
    """

    financial_min_matches: int = 5
    financial_sentence_min: int = 20
    financial_sentence_max: int = 300
    statement_min: int = 30
    statement_max: int = 300

    financial_per_call: int = 10
    ideology_per_call: int = 5
    decision_per_call: int = 5
    values_per_call: int = 3

    ngram_min: int = 2
    ngram_max: int = 5
    phrase_min_length: int = 10
    phrase_max_length: int = 50
    phrase_min_frequency: int = 3
    phrase_top_n: int = 20

    ideology_cap: int = 50
    financial_cap: int = 50
    decision_cap: int = 30
    values_cap: int = 30
    phrases_cap: int = 30
    topics_cap: int = 50


@dataclass(frozen=True)
class Config:
    """Global configuration, built once at start-up and passed down."""

    youtube_api_key: str | None = None
    twitter_bearer_token: str | None = None
    data_output_dir: str = "./data"
    rate_limit_delay: float = 2.0
    max_concurrent_requests: int = 3
    http_timeout: float = 30.0
    log_level: str = "INFO"
    headless: bool = True
    user_agent: str = "PersonaScraperBot/1.0 (Educational/Research Purpose)"
    limits: PlatformLimits = field(default_factory=PlatformLimits)
    mining: MiningConfig = field(default_factory=MiningConfig)

    @classmethod
    def from_env(cls) -> Config:
        return cls(
            youtube_api_key=os.getenv("YOUTUBE_API_KEY") or None,
            twitter_bearer_token=os.getenv("TWITTER_BEARER_TOKEN") or None,
            data_output_dir=os.getenv("DATA_OUTPUT_DIR", "./data"),
            rate_limit_delay=int(os.getenv("RATE_LIMIT_DELAY", "2000")) / 1000,
            max_concurrent_requests=int(os.getenv("MAX_CONCURRENT_REQUESTS", "3")),
            http_timeout=float(os.getenv("PERSONA_SCRAPER_TIMEOUT", "30")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            headless=os.getenv("PERSONA_SCRAPER_HEADLESS", "1") not in ("0", "false", "no"),
        )
