"""Tests for the fine-tuning dataset converter."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from persona_scraper.dataset.converter import DatasetConverter, chunk_text, clean_text
from persona_scraper.dataset.organizer import DataOrganizer
from persona_scraper.models import TwitterResult, YouTubeResult


class TestCleanText:
    def test_removes_cues_and_entities(self) -> None:
        assert clean_text("[Music] Hello (inaudible)  there &amp; you") == "Hello there & you"

    def test_empty(self) -> None:
        assert clean_text(None) == ""
        assert clean_text("") == ""


class TestChunkText:
    def test_short_text_is_one_chunk(self) -> None:
        assert chunk_text("Short.", 100) == ["Short."]

    def test_splits_on_sentences(self) -> None:
        text = "One two three. Four five six. Seven eight nine."
        chunks = chunk_text(text, 30)
        assert chunks == ["One two three. Four five six.", "Seven eight nine."]
        assert all(len(c) <= 30 for c in chunks)

    def test_long_sentence_kept_whole(self) -> None:
        text = "x" * 50 + ". Tail."
        assert chunk_text(text, 20) == ["x" * 50 + ".", "Tail."]


@pytest.fixture
def converter(
    tmp_path: Path, youtube_result: YouTubeResult, twitter_result: TwitterResult
) -> DatasetConverter:
    organizer = DataOrganizer("Money Talks", tmp_path)
    organizer.initialize()
    organizer.save_result(youtube_result)
    organizer.save_result(twitter_result)
    return DatasetConverter(organizer)


class TestDatasetConverter:
    def test_jsonl(self, converter: DatasetConverter) -> None:
        result = converter.to_jsonl()
        lines = Path(result.path).read_text(encoding="utf-8").splitlines()
        # One transcript chunk plus the one tweet long enough to keep.
        assert result.count == len(lines) == 2
        first = json.loads(lines[0])["messages"]
        assert [m["role"] for m in first] == ["system", "user", "assistant"]
        assert first[0]["content"].startswith("You are Money Talks.")
        assert first[1]["content"] == "Share your thoughts on: Budgeting Basics"
        second = json.loads(lines[1])["messages"]
        assert second[2]["content"] == "Pay yourself first, every single month."

    def test_custom_system_prompt(self, converter: DatasetConverter) -> None:
        custom = DatasetConverter(converter.organizer, system_prompt="Be brief.")
        result = custom.to_jsonl()
        line = Path(result.path).read_text(encoding="utf-8").splitlines()[0]
        assert json.loads(line)["messages"][0]["content"] == "Be brief."

    def test_alpaca(self, converter: DatasetConverter) -> None:
        result = converter.to_alpaca()
        entries = json.loads(Path(result.path).read_text(encoding="utf-8"))
        assert entries[0]["instruction"] == "As Money Talks, explain or discuss: Budgeting Basics"
        assert entries[0]["input"] == ""
        assert entries[1]["output"] == "Pay yourself first, every single month."

    def test_raw_text(self, converter: DatasetConverter) -> None:
        result = converter.to_raw_text()
        content = Path(result.path).read_text(encoding="utf-8")
        assert content.startswith("### Video: Budgeting Basics\n\n")
        assert "### Social Media Posts" in content
        assert result.count == len(content)

    def test_sharegpt_uses_transcripts_only(self, converter: DatasetConverter) -> None:
        result = converter.to_sharegpt()
        data = json.loads(Path(result.path).read_text(encoding="utf-8"))
        assert result.count == 1
        assert data[0]["conversations"][0] == {
            "from": "human",
            "value": "Tell me about: Budgeting Basics",
        }

    def test_convert_all(self, converter: DatasetConverter) -> None:
        results = converter.convert_all()
        assert set(results) == {"jsonl", "alpaca", "raw", "sharegpt"}
        summary = json.loads((converter.base_dir / "dataset_summary.json").read_text(encoding="utf-8"))
        assert summary["persona_name"] == "Money Talks"
        assert summary["datasets"]["jsonl"]["count"] == 2

    def test_unknown_format(self, converter: DatasetConverter) -> None:
        with pytest.raises(ValueError, match="Unknown dataset format"):
            converter.convert("csv")  # type: ignore[arg-type]

    def test_no_data(self, tmp_path: Path) -> None:
        converter = DatasetConverter(DataOrganizer("Nobody", tmp_path))
        result = converter.to_raw_text()
        assert result.count == 0
        assert converter.to_jsonl().count == 0
