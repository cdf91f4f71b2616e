"""Tests for on-disk persistence and the training export."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from persona_scraper.config import Config
from persona_scraper.dataset.organizer import DataOrganizer, sanitize_name
from persona_scraper.models import InstagramResult, TwitterResult, YouTubeResult


@pytest.fixture
def organizer(tmp_path: Path) -> DataOrganizer:
    org = DataOrganizer("Money Talks!", tmp_path)
    org.initialize()
    return org


def test_sanitize_name() -> None:
    assert sanitize_name("Money Talks!") == "money_talks_"
    assert sanitize_name("abc123") == "abc123"


def test_from_config(config: Config) -> None:
    org = DataOrganizer.from_config("Jane", config)
    assert org.base_dir == Path(config.data_output_dir) / "jane"
    assert org.mining is config.mining


class TestPersistence:
    def test_initialize_creates_layout(self, organizer: DataOrganizer) -> None:
        for sub in ("youtube", "youtube/transcripts", "instagram", "twitter", "raw"):
            assert (organizer.base_dir / sub).is_dir()

    def test_save_result_writes_platform_and_raw(
        self, organizer: DataOrganizer, youtube_result: YouTubeResult
    ) -> None:
        path = organizer.save_result(youtube_result)
        assert path == organizer.base_dir / "youtube" / "youtube_data.json"
        raw = organizer.base_dir / "raw" / "youtube_raw_data.json"
        assert raw.exists()
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["platform"] == "youtube"
        assert data["channel"]["title"] == "Money Talks"

    def test_load_result(self, organizer: DataOrganizer, twitter_result: TwitterResult) -> None:
        organizer.save_result(twitter_result)
        loaded = organizer.load_result("twitter")
        assert isinstance(loaded, TwitterResult)
        assert [t.id for t in loaded.tweets] == ["t1", "t2"]

    def test_load_missing_or_corrupt(self, organizer: DataOrganizer) -> None:
        assert organizer.load_result("instagram") is None
        organizer.platform_file("instagram").write_text("{not json", encoding="utf-8")
        assert organizer.load_result("instagram") is None
        organizer.platform_file("instagram").write_text('{"posts": 3}', encoding="utf-8")
        assert organizer.load_result("instagram") is None

    def test_load_json(self, organizer: DataOrganizer) -> None:
        organizer.save_json("twitter", "extra.json", {"a": 1})
        assert organizer.load_json("twitter", "extra.json") == {"a": 1}
        assert organizer.load_json("twitter", "missing.json") is None

    def test_save_metadata(self, organizer: DataOrganizer) -> None:
        path = organizer.save_metadata({"persona_name": "x"})
        assert path.name == "metadata.json"
        assert json.loads(path.read_text(encoding="utf-8")) == {"persona_name": "x"}

    def test_create_summary(self, organizer: DataOrganizer, twitter_result: TwitterResult) -> None:
        organizer.save_result(twitter_result)
        summary = organizer.create_summary()
        assert summary["platforms"]["twitter"] == {
            "files_collected": 1,
            "files": ["twitter_data.json"],
        }
        assert summary["platforms"]["instagram"]["files_collected"] == 0
        assert (organizer.base_dir / "summary.json").exists()

    def test_save_transcripts(
        self, organizer: DataOrganizer, youtube_result: YouTubeResult
    ) -> None:
        saved = organizer.save_transcripts(youtube_result.videos)
        assert saved == ["v1_budgeting_basics.txt"]
        content = (organizer.base_dir / "youtube" / "transcripts" / saved[0]).read_text(
            encoding="utf-8"
        )
        assert content.startswith("Video ID: v1\nTitle: Budgeting Basics\n")
        assert "Segments: 1" in content
        assert "Published: Unknown" in content
        assert "\n---\n\nI believe that a budget" in content

    def test_save_transcripts_empty(self, organizer: DataOrganizer) -> None:
        assert organizer.save_transcripts([]) == []


class TestTrainingExport:
    def test_dataset_contents(
        self,
        organizer: DataOrganizer,
        youtube_result: YouTubeResult,
        twitter_result: TwitterResult,
        instagram_result: InstagramResult,
    ) -> None:
        for result in (youtube_result, twitter_result, instagram_result):
            organizer.save_result(result)

        dataset = organizer.build_training_dataset()
        assert dataset.version == "3.0"
        assert [p.id for p in dataset.posts] == ["v1"]
        assert [(m.platform, m.type) for m in dataset.monologues] == [
            ("youtube", "video_transcript"),
            ("instagram", "post_caption"),
        ]
        assert [(c.platform, c.type) for c in dataset.conversations] == [
            ("youtube", "comment"),
            ("twitter", "tweet"),
            ("twitter", "tweet"),
        ]
        assert dataset.conversations[0].context == "Budgeting Basics"
        assert dataset.persona_profile.topic_expertise == ["budgeting", "money"]
        assert dataset.persona_profile.ideology
        assert dataset.persona_profile.communication_style.tone == "directive"

        stats = dataset.metadata.statistics
        assert dataset.metadata.total_samples == 3 + 2 + 1
        assert stats["total_posts"] == 1
        assert stats["total_words"] == dataset.posts[0].word_count
        assert stats["average_words_per_post"] == dataset.posts[0].word_count
        assert dataset.metadata.platforms["youtube"]["transcripts_extracted"] == 1
        assert dataset.metadata.platforms["instagram"]["captions_extracted"] == 1
        assert dataset.metadata.platforms["twitter"]["tweets_processed"] == 2

    def test_export_writes_all_files(
        self, organizer: DataOrganizer, youtube_result: YouTubeResult
    ) -> None:
        organizer.save_result(youtube_result)
        path = organizer.export_for_training()

        assert path == organizer.base_dir / "training_dataset.json"
        for name in (
            "training_dataset.json",
            "training_corpus.txt",
            "training_dataset.jsonl",
            "training_conversations.json",
            "persona_profile.json",
            "persona_profile.md",
        ):
            assert (organizer.base_dir / name).exists(), name

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["persona"] == "Money Talks!"
        assert data["version"] == "3.0"

    def test_corrupt_instagram_does_not_block_other_platforms(
        self,
        organizer: DataOrganizer,
        youtube_result: YouTubeResult,
        twitter_result: TwitterResult,
    ) -> None:
        organizer.save_result(youtube_result)
        organizer.save_result(twitter_result)
        organizer.platform_file("instagram").write_text("garbage{", encoding="utf-8")

        organizer.export_for_training()

        corpus = (organizer.base_dir / "training_corpus.txt").read_text(encoding="utf-8")
        assert corpus.startswith("### Budgeting Basics\n\nI believe that a budget")

        lines = (organizer.base_dir / "training_dataset.jsonl").read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1
        record = json.loads(lines[0])
        assert record["prompt"] == 'Speaking as Money Talks! about "Budgeting Basics":'

        conversations = json.loads(
            (organizer.base_dir / "training_conversations.json").read_text(encoding="utf-8")
        )
        assert {c["platform"] for c in conversations} == {"youtube", "twitter"}

    def test_export_with_no_data(self, organizer: DataOrganizer) -> None:
        organizer.export_for_training()
        assert (organizer.base_dir / "training_corpus.txt").read_text(encoding="utf-8") == ""
        data = json.loads((organizer.base_dir / "training_dataset.json").read_text(encoding="utf-8"))
        assert data["metadata"]["total_samples"] == 0
        assert data["persona_profile"]["communication_style"]["tone"] == "informative"
