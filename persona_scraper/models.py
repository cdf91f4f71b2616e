"""Core data models for persona-scraper."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Mapping, Union

from pydantic import BaseModel, Field

from persona_scraper.errors import ErrorKind, UnsupportedPlatformError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Platform(str, Enum):
    YOUTUBE = "youtube"
    TWITTER = "twitter"
    INSTAGRAM = "instagram"

    @classmethod
    def parse(cls, name: str | Platform) -> Platform:
        """Return the platform for *name*; ``x`` is an alias for Twitter."""
        if isinstance(name, Platform):
            return name
        key = name.strip().lower()
        if key == "x":
            return cls.TWITTER
        try:
            return cls(key)
        except ValueError:
            raise UnsupportedPlatformError(name) from None


# ---------------------------------------------------------------------------
# Scrape options
# ---------------------------------------------------------------------------


class YouTubeOptions(BaseModel, frozen=True):
    max_videos: int | None = Field(default=None, ge=0)
    include_comments: bool = False
    max_comments: int | None = Field(default=None, ge=0)
    comment_video_limit: int = Field(default=10, ge=0)
    include_transcripts: bool = False


class TwitterOptions(BaseModel, frozen=True):
    max_tweets: int | None = Field(default=None, ge=0)
    include_likes: bool = False
    max_likes: int = Field(default=50, ge=0)
    include_followers: bool = False
    max_followers: int = Field(default=100, ge=0)


class InstagramOptions(BaseModel, frozen=True):
    max_posts: int | None = Field(default=None, ge=0)
    include_post_details: bool = False
    detail_post_limit: int = Field(default=20, ge=0)


ScrapeOptions = Union[YouTubeOptions, TwitterOptions, InstagramOptions]

OPTIONS_MODELS: dict[Platform, type[BaseModel]] = {
    Platform.YOUTUBE: YouTubeOptions,
    Platform.TWITTER: TwitterOptions,
    Platform.INSTAGRAM: InstagramOptions,
}


def coerce_options(
    platform: Platform, value: ScrapeOptions | Mapping[str, Any] | None
) -> ScrapeOptions:
    """Turn ``None``, a mapping or an options instance into *platform*'s options."""
    model = OPTIONS_MODELS[platform]
    if value is None:
        return model()
    if isinstance(value, model):
        return value
    if isinstance(value, BaseModel):
        value = value.model_dump(exclude_unset=True)
    # Flat CLI option bags carry keys for every platform; keep ours only.
    known = {k: v for k, v in dict(value).items() if k in model.model_fields}
    return model(**known)


class ScrapeRequest(BaseModel, frozen=True):
    platform: Platform
    handle: str
    options: ScrapeOptions


# ---------------------------------------------------------------------------
# YouTube
# ---------------------------------------------------------------------------


class ChannelStatistics(BaseModel, frozen=True):
    view_count: int | None = None
    subscriber_count: int | None = None
    video_count: int | None = None


class Channel(BaseModel, frozen=True):
    id: str
    title: str = ""
    description: str = ""
    custom_url: str | None = None
    published_at: str | None = None
    thumbnails: dict[str, Any] = Field(default_factory=dict)
    statistics: ChannelStatistics = Field(default_factory=ChannelStatistics)
    branding: dict[str, Any] = Field(default_factory=dict)
    uploads_playlist_id: str | None = None


class VideoStatistics(BaseModel, frozen=True):
    view_count: int | None = None
    like_count: int | None = None
    comment_count: int | None = None


class Comment(BaseModel, frozen=True):
    comment_id: str
    text: str = ""
    author: str | None = None
    like_count: int = 0
    published_at: str | None = None


class TranscriptSegment(BaseModel, frozen=True):
    start: float
    duration: float = 0.0
    text: str


class Transcript(BaseModel, frozen=True):
    video_id: str
    language: str | None = None
    full_text: str
    segments: list[TranscriptSegment] = Field(default_factory=list)
    segment_count: int = 0


class Video(BaseModel, frozen=True):
    video_id: str
    title: str = ""
    description: str = ""
    published_at: str | None = None
    thumbnails: dict[str, Any] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    duration: str | None = None
    statistics: VideoStatistics = Field(default_factory=VideoStatistics)
    comments: list[Comment] | None = None
    transcript: Transcript | None = None


# ---------------------------------------------------------------------------
# Twitter
# ---------------------------------------------------------------------------


class TwitterUser(BaseModel, frozen=True):
    id: str
    username: str
    name: str | None = None
    description: str | None = None
    location: str | None = None
    created_at: str | None = None
    profile_image_url: str | None = None
    verified: bool | None = None
    metrics: dict[str, int] = Field(default_factory=dict)


class Tweet(BaseModel, frozen=True, extra="allow"):
    id: str
    text: str = ""
    created_at: str | None = None
    author_id: str | None = None
    conversation_id: str | None = None
    lang: str | None = None
    public_metrics: dict[str, int] = Field(default_factory=dict)
    attachments: dict[str, Any] | None = None
    referenced_tweets: list[dict[str, Any]] | None = None


class Follower(BaseModel, frozen=True, extra="allow"):
    id: str
    username: str
    name: str | None = None
    verified: bool | None = None
    public_metrics: dict[str, int] = Field(default_factory=dict)


class TweetAnalysis(BaseModel, frozen=True):
    total_tweets: int = 0
    avg_length: int = 0
    hashtags: list[str] = Field(default_factory=list)
    mentions: list[str] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list)
    media_count: int = 0
    time_distribution: dict[int, int] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Instagram
# ---------------------------------------------------------------------------


class ProfilePageData(BaseModel, frozen=True):
    structured_data: dict[str, Any] | None = None
    title: str | None = None
    description: str | None = None
    image: str | None = None


class InstagramProfile(BaseModel, frozen=True):
    username: str
    profile_data: ProfilePageData = Field(default_factory=ProfilePageData)
    login_wall: bool = False
    scraped_at: datetime = Field(default_factory=_utcnow)


class PostDetails(BaseModel, frozen=True):
    title: str | None = None
    description: str | None = None
    image: str | None = None
    caption: str = ""


class InstagramPost(BaseModel, frozen=True):
    url: str
    shortcode: str
    thumbnail: str | None = None
    alt: str = ""
    details: PostDetails | None = None


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class YouTubeResult(BaseModel, frozen=True):
    platform: Literal["youtube"] = "youtube"
    scraped_at: datetime = Field(default_factory=_utcnow)
    channel: Channel
    videos: list[Video] = Field(default_factory=list)

    @property
    def primary_entity(self) -> Channel:
        return self.channel

    @property
    def items(self) -> list[Video]:
        return self.videos


class TwitterResult(BaseModel, frozen=True):
    platform: Literal["twitter"] = "twitter"
    scraped_at: datetime = Field(default_factory=_utcnow)
    user: TwitterUser
    tweets: list[Tweet] = Field(default_factory=list)
    likes: list[Tweet] = Field(default_factory=list)
    followers: list[Follower] = Field(default_factory=list)
    analysis: TweetAnalysis | None = None

    @property
    def primary_entity(self) -> TwitterUser:
        return self.user

    @property
    def items(self) -> list[Tweet]:
        return self.tweets


class InstagramResult(BaseModel, frozen=True):
    platform: Literal["instagram"] = "instagram"
    scraped_at: datetime = Field(default_factory=_utcnow)
    profile: InstagramProfile
    posts: list[InstagramPost] = Field(default_factory=list)

    @property
    def primary_entity(self) -> InstagramProfile:
        return self.profile

    @property
    def items(self) -> list[InstagramPost]:
        return self.posts


PlatformResult = Union[YouTubeResult, TwitterResult, InstagramResult]

RESULT_MODELS: dict[Platform, type[BaseModel]] = {
    Platform.YOUTUBE: YouTubeResult,
    Platform.TWITTER: TwitterResult,
    Platform.INSTAGRAM: InstagramResult,
}


class PlatformError(BaseModel, frozen=True):
    """Recorded in place of a result when a platform fetch fails."""

    platform: str
    kind: ErrorKind
    error: str


class PersonaBundle(BaseModel, frozen=True):
    persona_name: str
    scraped_at: datetime = Field(default_factory=_utcnow)
    platforms: dict[str, Union[YouTubeResult, TwitterResult, InstagramResult, PlatformError]] = (
        Field(default_factory=dict)
    )

    def errors(self) -> dict[str, PlatformError]:
        return {k: v for k, v in self.platforms.items() if isinstance(v, PlatformError)}

    def results(self) -> dict[str, PlatformResult]:
        return {k: v for k, v in self.platforms.items() if not isinstance(v, PlatformError)}
