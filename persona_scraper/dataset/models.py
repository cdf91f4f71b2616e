"""Training dataset and persona profile models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class FinancialStatement(BaseModel):
    category: str
    statement: str
    frequency: int


class IdeologyStatement(BaseModel):
    type: str
    statement: str
    source: str


class DecisionPattern(BaseModel):
    statement: str
    context: str


class ValueStatement(BaseModel):
    statement: str
    source: str


class CommonPhrase(BaseModel):
    phrase: str
    frequency: int


class CommunicationStyle(BaseModel):
    tone: str = ""
    vocabulary: list[str] = Field(default_factory=list)
    rhetorical_devices: list[str] = Field(default_factory=list)


class PersonaProfile(BaseModel):
    """Accumulator filled by the text miner, then finalized in place."""

    ideology: list[IdeologyStatement] = Field(default_factory=list)
    beliefs: list[str] = Field(default_factory=list)
    values: list[ValueStatement] = Field(default_factory=list)
    financial_philosophy: list[FinancialStatement] = Field(default_factory=list)
    decision_patterns: list[DecisionPattern] = Field(default_factory=list)
    topic_expertise: list[str] = Field(default_factory=list)
    common_phrases: list[CommonPhrase] = Field(default_factory=list)
    communication_style: CommunicationStyle = Field(default_factory=CommunicationStyle)


class TrainingPost(BaseModel):
    id: str
    platform: str
    type: str
    title: str | None = None
    text: str
    description: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    word_count: int = 0
    segment_count: int | None = None


class Monologue(BaseModel):
    id: str
    platform: str
    type: str
    title: str | None = None
    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    word_count: int = 0
    segment_count: int | None = None


class Conversation(BaseModel):
    platform: str
    type: str
    context: str | None = None
    text: str
    author: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class DatasetMetadata(BaseModel):
    total_samples: int = 0
    platforms: dict[str, dict[str, Any]] = Field(default_factory=dict)
    statistics: dict[str, int] = Field(default_factory=dict)


class TrainingDataset(BaseModel):
    persona: str
    exported_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: str = "3.0"
    conversations: list[Conversation] = Field(default_factory=list)
    monologues: list[Monologue] = Field(default_factory=list)
    posts: list[TrainingPost] = Field(default_factory=list)
    persona_profile: PersonaProfile = Field(default_factory=PersonaProfile)
    metadata: DatasetMetadata = Field(default_factory=DatasetMetadata)
