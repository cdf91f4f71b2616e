"""YouTube channel fetcher using the YouTube Data API v3."""

from __future__ import annotations

import html as html_mod
import json
import logging
import xml.etree.ElementTree as ET
from typing import Any

from persona_scraper.errors import ConfigurationError, IdentityResolutionError
from persona_scraper.fetchers.base import BaseFetcher, Page, normalize_handle, paginate
from persona_scraper.models import (
    Channel,
    Comment,
    Platform,
    Transcript,
    TranscriptSegment,
    Video,
    YouTubeOptions,
    YouTubeResult,
)
from persona_scraper.utils.http import fetch_json, fetch_text

logger = logging.getLogger(__name__)

_API_BASE = "https://www.googleapis.com/youtube/v3"
_WATCH_URL = "https://www.youtube.com/watch"

_HANDLE_PREFIXES = (
    "https://www.youtube.com/",
    "http://www.youtube.com/",
    "https://youtube.com/",
    "https://m.youtube.com/",
    "www.youtube.com/",
    "youtube.com/",
)

# API maxima per request.
_PLAYLIST_PAGE_SIZE = 50
_DETAILS_BATCH_SIZE = 50
_COMMENTS_PAGE_SIZE = 100


def _is_channel_id(value: str) -> bool:
    return value.startswith("UC") and len(value) == 24


def _parse_caption_tracks(page_html: str) -> list[dict[str, Any]]:
    """Extract the ``captionTracks`` array embedded in a watch page."""
    marker = '"captionTracks":'
    start = page_html.find(marker)
    if start == -1:
        return []
    try:
        tracks, _ = json.JSONDecoder().raw_decode(page_html, start + len(marker))
    except json.JSONDecodeError:
        logger.debug("Failed to parse captionTracks JSON")
        return []
    return [t for t in tracks if isinstance(t, dict) and t.get("baseUrl")]


def _pick_caption_track(tracks: list[dict[str, Any]]) -> dict[str, Any] | None:
    """Prefer manual English captions, then auto-generated English, then anything."""
    english = [t for t in tracks if str(t.get("languageCode", "")).startswith("en")]
    manual = [t for t in english if t.get("kind") != "asr"]
    for group in (manual, english, tracks):
        if group:
            return group[0]
    return None


def _parse_timedtext(xml_text: str) -> list[TranscriptSegment]:
    root = ET.fromstring(xml_text)
    segments: list[TranscriptSegment] = []
    for node in root.iter("text"):
        text = html_mod.unescape("".join(node.itertext())).strip()
        if not text:
            continue
        segments.append(TranscriptSegment(
            start=float(node.get("start", 0) or 0),
            duration=float(node.get("dur", 0) or 0),
            text=text,
        ))
    return segments


def _video_from_details(item: dict[str, Any]) -> Video:
    snippet = item.get("snippet", {})
    stats = item.get("statistics", {})
    return Video(
        video_id=item["id"],
        title=snippet.get("title", ""),
        description=snippet.get("description", ""),
        published_at=snippet.get("publishedAt"),
        thumbnails=snippet.get("thumbnails") or {},
        tags=snippet.get("tags") or [],
        duration=item.get("contentDetails", {}).get("duration"),
        statistics={
            "view_count": stats.get("viewCount"),
            "like_count": stats.get("likeCount"),
            "comment_count": stats.get("commentCount"),
        },
    )


class YouTubeFetcher(BaseFetcher[YouTubeOptions]):
    """Fetch a channel, its uploads and optional comments and transcripts."""

    platform = Platform.YOUTUBE

    def validate_config(self) -> None:
        if not self.config.youtube_api_key:
            raise ConfigurationError(
                "YouTube API key not configured. Please set YOUTUBE_API_KEY."
            )

    async def _get(self, resource: str, params: dict[str, Any]) -> dict[str, Any]:
        query = {**params, "key": self.config.youtube_api_key}
        return await self.limiter.enqueue(
            lambda: fetch_json(
                f"{_API_BASE}/{resource}",
                params=query,
                timeout=self.config.http_timeout,
                user_agent=self.config.user_agent,
            )
        )

    # ------------------------------------------------------------------
    # Identity and channel
    # ------------------------------------------------------------------

    async def resolve_identity(self, handle: str) -> str:
        self.validate_config()
        raw = handle.strip()
        if _is_channel_id(raw):
            return raw

        path = raw
        for prefix in _HANDLE_PREFIXES:
            if path.lower().startswith(prefix):
                path = path[len(prefix):]
                break
        if path.startswith("channel/"):
            candidate = path.split("/")[1]
            if _is_channel_id(candidate):
                return candidate
        if path.startswith(("c/", "user/")):
            path = path.split("/", 1)[1]

        query = normalize_handle(path)
        if not query:
            raise IdentityResolutionError(self.platform.value, handle)

        data = await self._get(
            "search", {"part": "snippet", "q": query, "type": "channel", "maxResults": 1}
        )
        for item in data.get("items") or []:
            snippet_id = item.get("snippet", {}).get("channelId")
            channel_id = snippet_id or item.get("id", {}).get("channelId")
            if channel_id:
                return channel_id
        raise IdentityResolutionError(self.platform.value, handle)

    async def fetch_primary(self, identity: str) -> Channel:
        data = await self._get(
            "channels",
            {"part": "snippet,statistics,brandingSettings,contentDetails", "id": identity},
        )
        items = data.get("items") or []
        if not items:
            raise IdentityResolutionError(self.platform.value, identity)

        channel = items[0]
        snippet = channel.get("snippet", {})
        stats = channel.get("statistics", {})
        logger.info("Found channel: %s", snippet.get("title"))
        return Channel(
            id=channel["id"],
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
            custom_url=snippet.get("customUrl"),
            published_at=snippet.get("publishedAt"),
            thumbnails=snippet.get("thumbnails") or {},
            statistics={
                "view_count": stats.get("viewCount"),
                "subscriber_count": stats.get("subscriberCount"),
                "video_count": stats.get("videoCount"),
            },
            branding=channel.get("brandingSettings") or {},
            uploads_playlist_id=(
                channel.get("contentDetails", {}).get("relatedPlaylists", {}).get("uploads")
            ),
        )

    # ------------------------------------------------------------------
    # Videos
    # ------------------------------------------------------------------

    async def fetch_items(self, primary: Channel, options: YouTubeOptions) -> list[Video]:
        limit = options.max_videos
        if limit is None:
            limit = self.config.limits.youtube_max_videos
        if not primary.uploads_playlist_id:
            logger.warning("Channel %s has no uploads playlist", primary.id)
            return []

        async def fetch_page(cursor: str | None, page_size: int) -> Page[Video]:
            data = await self._get(
                "playlistItems",
                {
                    "part": "snippet,contentDetails",
                    "playlistId": primary.uploads_playlist_id,
                    "maxResults": page_size,
                    "pageToken": cursor,
                },
            )
            videos = []
            for item in data.get("items") or []:
                snippet = item.get("snippet", {})
                videos.append(Video(
                    video_id=item.get("contentDetails", {}).get("videoId")
                    or snippet.get("resourceId", {}).get("videoId", ""),
                    title=snippet.get("title", ""),
                    description=snippet.get("description", ""),
                    published_at=snippet.get("publishedAt"),
                    thumbnails=snippet.get("thumbnails") or {},
                ))
            return Page(videos, data.get("nextPageToken"))

        logger.info("Fetching up to %d videos from channel...", limit)
        listed = await paginate(fetch_page, limit, _PLAYLIST_PAGE_SIZE)
        logger.info("Fetched %d videos", len(listed))
        return await self.fetch_video_details(listed)

    async def fetch_video_details(self, videos: list[Video]) -> list[Video]:
        """Replace playlist entries with full video records, keeping order."""
        detailed: dict[str, Video] = {}
        ids = [v.video_id for v in videos]
        for start in range(0, len(ids), _DETAILS_BATCH_SIZE):
            batch = ids[start:start + _DETAILS_BATCH_SIZE]
            data = await self._get(
                "videos", {"part": "snippet,statistics,contentDetails", "id": ",".join(batch)}
            )
            for item in data.get("items") or []:
                detailed[item["id"]] = _video_from_details(item)
        # Private or deleted uploads have no details; keep the playlist entry.
        return [detailed.get(v.video_id, v) for v in videos]

    # ------------------------------------------------------------------
    # Nested details
    # ------------------------------------------------------------------

    async def fetch_nested_details(
        self, primary: Channel, items: list[Video], options: YouTubeOptions
    ) -> list[Video]:
        videos = list(items)
        if options.include_comments:
            logger.info("Fetching comments for recent videos...")
            for index, video in enumerate(videos[:options.comment_video_limit]):
                comments = await self.fetch_comments(video.video_id, options.max_comments)
                videos[index] = video.model_copy(update={"comments": comments})

        if options.include_transcripts:
            logger.info("Fetching transcripts for %d videos...", len(videos))
            for index, video in enumerate(videos):
                transcript = await self.fetch_transcript(video.video_id)
                if transcript is not None:
                    videos[index] = video.model_copy(update={"transcript": transcript})
        return videos

    async def fetch_comments(self, video_id: str, max_comments: int | None = None) -> list[Comment]:
        """Return top-level comments; comments may be disabled, so errors yield ``[]``."""
        limit = max_comments
        if limit is None:
            limit = self.config.limits.youtube_max_comments

        async def fetch_page(cursor: str | None, page_size: int) -> Page[Comment]:
            data = await self._get(
                "commentThreads",
                {
                    "part": "snippet",
                    "videoId": video_id,
                    "maxResults": page_size,
                    "pageToken": cursor,
                    "textFormat": "plainText",
                },
            )
            comments = []
            for item in data.get("items") or []:
                top = item.get("snippet", {}).get("topLevelComment", {}).get("snippet", {})
                comments.append(Comment(
                    comment_id=item.get("id", ""),
                    text=top.get("textDisplay", ""),
                    author=top.get("authorDisplayName"),
                    like_count=top.get("likeCount") or 0,
                    published_at=top.get("publishedAt"),
                ))
            return Page(comments, data.get("nextPageToken"))

        try:
            comments = await paginate(fetch_page, limit, _COMMENTS_PAGE_SIZE)
        except Exception as exc:
            logger.warning("Could not fetch comments for video %s: %s", video_id, exc)
            return []
        logger.info("Fetched %d comments for video %s", len(comments), video_id)
        return comments

    async def fetch_transcript(self, video_id: str) -> Transcript | None:
        """Read the caption track linked from the public watch page."""
        try:
            page_html = await self.limiter.enqueue(
                lambda: fetch_text(
                    _WATCH_URL, params={"v": video_id}, timeout=self.config.http_timeout
                )
            )
            track = _pick_caption_track(_parse_caption_tracks(page_html))
            if track is None:
                logger.info("No captions available for video %s", video_id)
                return None
            xml_text = await self.limiter.enqueue(
                lambda: fetch_text(track["baseUrl"], timeout=self.config.http_timeout)
            )
            segments = _parse_timedtext(xml_text)
        except Exception as exc:
            logger.warning("Could not fetch transcript for video %s: %s", video_id, exc)
            return None

        if not segments:
            return None
        return Transcript(
            video_id=video_id,
            language=track.get("languageCode"),
            full_text=" ".join(s.text for s in segments),
            segments=segments,
            segment_count=len(segments),
        )

    def build_result(
        self,
        primary: Channel,
        items: list[Video],
        options: YouTubeOptions,
        extras: dict[str, Any],
    ) -> YouTubeResult:
        return YouTubeResult(channel=primary, videos=items)
