"""On-disk layout for one persona and the training dataset export."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from pydantic import BaseModel

from persona_scraper.config import Config, MiningConfig
from persona_scraper.dataset.exporters import (
    build_conversation_records,
    render_corpus,
    render_profile_markdown,
    render_prompt_completion_jsonl,
)
from persona_scraper.dataset.miner import analyze_persona_profile, extract_ideology_from_text
from persona_scraper.dataset.models import (
    Conversation,
    Monologue,
    PersonaProfile,
    TrainingDataset,
    TrainingPost,
)
from persona_scraper.models import (
    RESULT_MODELS,
    InstagramResult,
    Platform,
    PlatformResult,
    TwitterResult,
    Video,
    YouTubeResult,
)

logger = logging.getLogger(__name__)

_UNSAFE_CHARS_RE = re.compile(r"[^a-z0-9]", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")

_PLATFORM_DIRS = [p.value for p in Platform]


def sanitize_name(name: str) -> str:
    """Map every non-alphanumeric character to ``_`` and lowercase the rest."""
    return _UNSAFE_CHARS_RE.sub("_", name).lower()


def _to_jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    return data


def _word_count(text: str) -> int:
    return len(text.split())


class DataOrganizer:
    """Owns ``<output>/<sanitized persona>/`` and everything written under it.

    Every write replaces the whole file. There is no cross-file transaction,
    so a crash mid-export can leave some files from the previous run.
    """

    def __init__(
        self,
        persona_name: str,
        output_dir: str | Path | None = None,
        mining: MiningConfig | None = None,
    ) -> None:
        self.persona_name = persona_name
        self.base_dir = Path(output_dir or "./data") / sanitize_name(persona_name)
        self.mining = mining or MiningConfig()

    @classmethod
    def from_config(cls, persona_name: str, config: Config) -> DataOrganizer:
        return cls(persona_name, config.data_output_dir, config.mining)

    def platform_file(self, platform: Platform | str) -> Path:
        name = Platform.parse(platform).value
        return self.base_dir / name / f"{name}_data.json"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        dirs = [self.base_dir / "raw", self.base_dir / "youtube" / "transcripts"]
        dirs += [self.base_dir / name for name in _PLATFORM_DIRS]
        for d in dirs:
            d.mkdir(parents=True, exist_ok=True)
        logger.info("Initialized directory structure for %s", self.persona_name)

    def _write_json(self, path: Path, data: Any) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(_to_jsonable(data), indent=2, ensure_ascii=False, default=str),
            encoding="utf-8",
        )
        return path

    def save_json(self, platform: str, filename: str, data: Any) -> Path:
        """Write *data* as ``<base>/<platform>/<filename>``; ``.`` means the base dir."""
        path = self._write_json(self.base_dir / platform / filename, data)
        logger.info("Saved %s to %s directory", filename, platform)
        return path

    def save_raw(self, platform: str, filename: str, data: Any) -> Path:
        return self._write_json(self.base_dir / "raw" / f"{platform}_{filename}", data)

    def save_metadata(self, metadata: dict[str, Any]) -> Path:
        path = self._write_json(self.base_dir / "metadata.json", metadata)
        logger.info("Saved metadata for %s", self.persona_name)
        return path

    def save_result(self, result: PlatformResult) -> Path:
        """Persist a platform result plus its raw backup copy."""
        path = self.save_json(result.platform, f"{result.platform}_data.json", result)
        self.save_raw(result.platform, "raw_data.json", result)
        return path

    def load_json(self, platform: str, filename: str) -> Any | None:
        path = self.base_dir / platform / filename
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Could not load %s from %s: %s", filename, platform, exc)
            return None

    def load_result(self, platform: Platform | str) -> PlatformResult | None:
        """Load a persisted platform result; missing or corrupt files give ``None``."""
        platform = Platform.parse(platform)
        path = self.platform_file(platform)
        try:
            return RESULT_MODELS[platform].model_validate_json(path.read_bytes())
        except (OSError, ValueError) as exc:
            # pydantic's ValidationError is a ValueError.
            logger.warning("Could not load %s data from %s: %s", platform.value, path, exc)
            return None

    def create_summary(self) -> dict[str, Any]:
        summary: dict[str, Any] = {
            "persona_name": self.persona_name,
            "collected_at": datetime.now(timezone.utc).isoformat(),
            "platforms": {},
        }
        for name in _PLATFORM_DIRS:
            platform_dir = self.base_dir / name
            files = sorted(p.name for p in platform_dir.iterdir()) if platform_dir.is_dir() else []
            summary["platforms"][name] = {"files_collected": len(files), "files": files}
        self.save_json(".", "summary.json", summary)
        return summary

    def save_transcripts(self, videos: Sequence[Video]) -> list[str]:
        """Write one text file with a metadata header per video transcript."""
        if not videos:
            logger.warning("No videos provided for transcript extraction")
            return []

        transcripts_dir = self.base_dir / "youtube" / "transcripts"
        transcripts_dir.mkdir(parents=True, exist_ok=True)
        saved: list[str] = []
        for video in videos:
            if not video.transcript or not video.transcript.full_text:
                continue
            text = _WHITESPACE_RE.sub(" ", video.transcript.full_text).strip()
            filename = f"{video.video_id}_{sanitize_name(video.title)[:50]}.txt"
            segments = video.transcript.segment_count or len(video.transcript.segments)
            header = (
                f"Video ID: {video.video_id}\n"
                f"Title: {video.title}\n"
                f"Published: {video.published_at or 'Unknown'}\n"
                f"Duration: {video.duration or 'Unknown'}\n"
                f"Segments: {segments}\n"
            )
            (transcripts_dir / filename).write_text(f"{header}\n---\n\n{text}\n", encoding="utf-8")
            saved.append(filename)

        logger.info("Saved %d transcript files to transcripts directory", len(saved))
        return saved

    # ------------------------------------------------------------------
    # Training dataset
    # ------------------------------------------------------------------

    def _add_youtube(self, dataset: TrainingDataset, result: YouTubeResult) -> None:
        logger.info("Processing %d YouTube videos for training dataset", len(result.videos))
        profile = dataset.persona_profile
        for video in result.videos:
            if video.transcript and video.transcript.full_text:
                text = video.transcript.full_text
                metadata = {
                    "published_at": video.published_at,
                    "duration": video.duration,
                    "view_count": video.statistics.view_count,
                    "like_count": video.statistics.like_count,
                    "comment_count": video.statistics.comment_count,
                    "tags": list(video.tags),
                }
                dataset.posts.append(TrainingPost(
                    id=video.video_id,
                    platform="youtube",
                    type="video_transcript",
                    title=video.title,
                    text=text,
                    description=video.description,
                    metadata=metadata,
                    word_count=_word_count(text),
                    segment_count=video.transcript.segment_count,
                ))
                dataset.monologues.append(Monologue(
                    id=video.video_id,
                    platform="youtube",
                    type="video_transcript",
                    title=video.title,
                    text=text,
                    metadata=metadata,
                    word_count=_word_count(text),
                    segment_count=video.transcript.segment_count,
                ))
                extract_ideology_from_text(text, profile, title=video.title, config=self.mining)
                for tag in video.tags:
                    normalized = tag.lower()
                    if normalized not in profile.topic_expertise:
                        profile.topic_expertise.append(normalized)

            for comment in video.comments or []:
                dataset.conversations.append(Conversation(
                    platform="youtube",
                    type="comment",
                    context=video.title,
                    text=comment.text,
                    author=comment.author,
                    metadata={
                        "video_id": video.video_id,
                        "like_count": comment.like_count,
                        "published_at": comment.published_at,
                    },
                ))

        stats = result.channel.statistics
        dataset.metadata.platforms["youtube"] = {
            "videos_processed": len(result.videos),
            "transcripts_extracted": sum(1 for m in dataset.monologues if m.platform == "youtube"),
            "channel_info": {
                "title": result.channel.title,
                "subscriber_count": stats.subscriber_count,
                "video_count": stats.video_count,
            },
        }

    def _add_instagram(self, dataset: TrainingDataset, result: InstagramResult) -> None:
        logger.info("Processing %d Instagram posts for training dataset", len(result.posts))
        for post in result.posts:
            if not post.details or not post.details.caption:
                continue
            caption = post.details.caption
            dataset.monologues.append(Monologue(
                id=post.shortcode,
                platform="instagram",
                type="post_caption",
                text=caption,
                metadata={"url": post.url, "description": post.details.description},
                word_count=_word_count(caption),
            ))
        dataset.metadata.platforms["instagram"] = {
            "posts_processed": len(result.posts),
            "captions_extracted": sum(1 for m in dataset.monologues if m.platform == "instagram"),
        }

    def _add_twitter(self, dataset: TrainingDataset, result: TwitterResult) -> None:
        logger.info("Processing %d tweets for training dataset", len(result.tweets))
        for tweet in result.tweets:
            metrics = tweet.public_metrics
            dataset.conversations.append(Conversation(
                platform="twitter",
                type="tweet",
                text=tweet.text,
                metadata={
                    "tweet_id": tweet.id,
                    "created_at": tweet.created_at,
                    "like_count": metrics.get("like_count"),
                    "retweet_count": metrics.get("retweet_count"),
                    "reply_count": metrics.get("reply_count"),
                },
            ))
        dataset.metadata.platforms["twitter"] = {"tweets_processed": len(result.tweets)}

    def build_training_dataset(self) -> TrainingDataset:
        """Assemble the dataset from whatever platform files are on disk.

        Each platform is processed independently; a missing or broken file
        for one platform is logged and the others still contribute.
        """
        dataset = TrainingDataset(persona=self.persona_name)
        steps = [
            (Platform.YOUTUBE, self._add_youtube),
            (Platform.INSTAGRAM, self._add_instagram),
            (Platform.TWITTER, self._add_twitter),
        ]
        for platform, add in steps:
            result = self.load_result(platform)
            if result is None:
                continue
            try:
                add(dataset, result)
            except Exception as exc:
                logger.warning("Could not process %s data: %s", platform.value, exc, exc_info=True)

        analyze_persona_profile(dataset.persona_profile, self.mining)

        posts = dataset.posts
        total_words = sum(p.word_count for p in posts)
        profile = dataset.persona_profile
        dataset.metadata.total_samples = (
            len(dataset.conversations) + len(dataset.monologues) + len(posts)
        )
        dataset.metadata.statistics = {
            "total_conversations": len(dataset.conversations),
            "total_monologues": len(dataset.monologues),
            "total_posts": len(posts),
            "total_words": total_words,
            "average_words_per_post": round(total_words / len(posts)) if posts else 0,
            "topics_covered": len(profile.topic_expertise),
            "ideological_statements": len(profile.ideology),
            "financial_advice": len(profile.financial_philosophy),
        }
        return dataset

    def export_for_training(self) -> Path:
        """Write ``training_dataset.json`` and every flattened export next to it."""
        dataset = self.build_training_dataset()
        export_path = self._write_json(self.base_dir / "training_dataset.json", dataset)

        logger.info("Exported training dataset to %s", export_path)
        logger.info(
            "Dataset contains %d total items: %d posts, %d monologues, %d conversations",
            dataset.metadata.total_samples,
            len(dataset.posts),
            len(dataset.monologues),
            len(dataset.conversations),
        )

        self.export_simplified_formats(dataset)
        self.export_persona_profile(dataset.persona_profile)
        return export_path

    def export_simplified_formats(self, dataset: TrainingDataset) -> list[Path]:
        corpus = self.base_dir / "training_corpus.txt"
        corpus.write_text(render_corpus(dataset.monologues), encoding="utf-8")
        logger.info("Exported plain text corpus to %s", corpus)

        jsonl = self.base_dir / "training_dataset.jsonl"
        jsonl.write_text(
            render_prompt_completion_jsonl(dataset.persona, dataset.monologues), encoding="utf-8"
        )
        logger.info("Exported JSONL format to %s", jsonl)

        conversations = self._write_json(
            self.base_dir / "training_conversations.json",
            build_conversation_records(dataset.conversations),
        )
        logger.info("Exported conversational format to %s", conversations)
        return [corpus, jsonl, conversations]

    def export_persona_profile(self, profile: PersonaProfile) -> list[Path]:
        profile_path = self._write_json(self.base_dir / "persona_profile.json", profile)
        logger.info("Exported persona profile to %s", profile_path)

        md_path = self.base_dir / "persona_profile.md"
        md_path.write_text(render_profile_markdown(profile), encoding="utf-8")
        logger.info("Exported persona profile markdown to %s", md_path)
        return [profile_path, md_path]
