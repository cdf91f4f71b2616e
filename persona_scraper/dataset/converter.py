"""Convert persisted YouTube and Twitter data into fine-tuning formats.

Formats: chat-message JSONL, Alpaca instruction records, raw text for
continued pretraining and ShareGPT conversations. Each converter reads the
platform files fresh, so they can run independently of a scrape.
"""

from __future__ import annotations

import html
import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel

from persona_scraper.dataset.organizer import DataOrganizer
from persona_scraper.models import Platform, TwitterResult, YouTubeResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_LENGTH = 2000
MIN_TRANSCRIPT_LENGTH = 50
MIN_TWEET_LENGTH = 20

Format = Literal["jsonl", "alpaca", "raw", "sharegpt"]

_CUE_RE = re.compile(r"\[.*?\]|\(.*?\)")
_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")


def clean_text(text: str | None) -> str:
    """Drop ``[Music]``/``(inaudible)`` cues, decode entities, collapse whitespace."""
    if not text:
        return ""
    text = html.unescape(_CUE_RE.sub("", text))
    return _WHITESPACE_RE.sub(" ", text).strip()


def chunk_text(text: str, max_length: int = DEFAULT_MAX_LENGTH) -> list[str]:
    """Split *text* on sentence boundaries into chunks of at most *max_length*.

    A single sentence longer than *max_length* becomes its own oversized chunk.
    """
    if len(text) <= max_length:
        return [text]
    chunks: list[str] = []
    current = ""
    for sentence in _SENTENCE_BOUNDARY_RE.split(text):
        if len(current) + 1 + len(sentence) > max_length:
            if current:
                chunks.append(current.strip())
            current = sentence
        else:
            current = f"{current} {sentence}" if current else sentence
    if current:
        chunks.append(current.strip())
    return chunks


class ConversionResult(BaseModel, frozen=True):
    path: str
    count: int


class DatasetConverter:
    """Write fine-tuning datasets for one persona's persisted data."""

    def __init__(
        self,
        organizer: DataOrganizer,
        *,
        system_prompt: str | None = None,
        max_length: int = DEFAULT_MAX_LENGTH,
    ) -> None:
        self.organizer = organizer
        self.persona_name = organizer.persona_name
        self.system_prompt = system_prompt or (
            f"You are {self.persona_name}. Respond in their unique voice, "
            "style, and personality based on their content."
        )
        self.max_length = max_length

    @property
    def base_dir(self) -> Path:
        return self.organizer.base_dir

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def _transcripts(self) -> list[tuple[str, str]]:
        """``(title, cleaned text)`` for every usable transcript."""
        result = self.organizer.load_result(Platform.YOUTUBE)
        if not isinstance(result, YouTubeResult):
            return []
        out: list[tuple[str, str]] = []
        for video in result.videos:
            if not video.transcript or not video.transcript.full_text:
                continue
            text = clean_text(video.transcript.full_text)
            if len(text) >= MIN_TRANSCRIPT_LENGTH:
                out.append((video.title, text))
        return out

    def _transcript_chunks(self) -> list[tuple[str, str]]:
        return [
            (title, chunk)
            for title, text in self._transcripts()
            for chunk in chunk_text(text, self.max_length)
        ]

    def _tweets(self) -> list[str] | None:
        """Cleaned tweet texts, or ``None`` when no Twitter data is on disk."""
        result = self.organizer.load_result(Platform.TWITTER)
        if not isinstance(result, TwitterResult):
            return None
        texts = (clean_text(t.text) for t in result.tweets)
        return [t for t in texts if len(t) >= MIN_TWEET_LENGTH]

    def _write(self, filename: str, content: str) -> Path:
        path = self.base_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    # ------------------------------------------------------------------
    # Formats
    # ------------------------------------------------------------------

    def to_jsonl(self) -> ConversionResult:
        """Chat-message records: system, user prompt, assistant reply."""
        entries: list[dict[str, Any]] = []

        def add(user: str, reply: str) -> None:
            entries.append({"messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": user},
                {"role": "assistant", "content": reply},
            ]})

        for title, chunk in self._transcript_chunks():
            add(f"Share your thoughts on: {title}", chunk)
        for text in self._tweets() or []:
            add("Share a quick thought or update.", text)

        path = self._write(
            "training_data.jsonl",
            "\n".join(json.dumps(e, ensure_ascii=False) for e in entries),
        )
        logger.info("Created JSONL dataset: %s (%d entries)", path, len(entries))
        return ConversionResult(path=str(path), count=len(entries))

    def to_alpaca(self) -> ConversionResult:
        entries = [
            {
                "instruction": f"As {self.persona_name}, explain or discuss: {title}",
                "input": "",
                "output": chunk,
            }
            for title, chunk in self._transcript_chunks()
        ]
        entries += [
            {
                "instruction": (
                    f"As {self.persona_name}, share a brief thought or social media post."
                ),
                "input": "",
                "output": text,
            }
            for text in self._tweets() or []
        ]
        path = self._write(
            "training_data_alpaca.json", json.dumps(entries, indent=2, ensure_ascii=False)
        )
        logger.info("Created Alpaca dataset: %s (%d entries)", path, len(entries))
        return ConversionResult(path=str(path), count=len(entries))

    def to_raw_text(self) -> ConversionResult:
        """Unchunked text for continued pretraining; ``count`` is in characters."""
        blocks = [f"### Video: {title}\n\n{text}\n" for title, text in self._transcripts()]
        tweets = self._tweets()
        if tweets is not None:
            blocks.append("\n### Social Media Posts\n")
            blocks.extend(tweets)
        content = "\n\n".join(blocks)
        path = self._write("training_data_raw.txt", content)
        logger.info("Created raw text dataset: %s (%d characters)", path, len(content))
        return ConversionResult(path=str(path), count=len(content))

    def to_sharegpt(self) -> ConversionResult:
        conversations = [
            {"conversations": [
                {"from": "human", "value": f"Tell me about: {title}"},
                {"from": "gpt", "value": chunk},
            ]}
            for title, chunk in self._transcript_chunks()
        ]
        path = self._write(
            "training_data_sharegpt.json", json.dumps(conversations, indent=2, ensure_ascii=False)
        )
        logger.info("Created ShareGPT dataset: %s (%d conversations)", path, len(conversations))
        return ConversionResult(path=str(path), count=len(conversations))

    def convert(self, fmt: Format) -> ConversionResult:
        converters = {
            "jsonl": self.to_jsonl,
            "alpaca": self.to_alpaca,
            "raw": self.to_raw_text,
            "sharegpt": self.to_sharegpt,
        }
        if fmt not in converters:
            raise ValueError(f"Unknown dataset format: {fmt}")
        return converters[fmt]()

    def convert_all(self) -> dict[str, ConversionResult]:
        """Write every format plus ``dataset_summary.json``."""
        logger.info("Converting data for persona: %s", self.persona_name)
        results = {
            "jsonl": self.to_jsonl(),
            "alpaca": self.to_alpaca(),
            "raw": self.to_raw_text(),
            "sharegpt": self.to_sharegpt(),
        }
        summary = {
            "persona_name": self.persona_name,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "datasets": {name: r.model_dump() for name, r in results.items()},
        }
        self._write("dataset_summary.json", json.dumps(summary, indent=2, ensure_ascii=False))
        logger.info("Dataset conversion complete. Output directory: %s", self.base_dir)
        return results
