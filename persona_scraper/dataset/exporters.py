"""Flattened training exports rendered from a :class:`TrainingDataset`.

All functions here are pure: they return strings or records and leave the
writing to :class:`~persona_scraper.dataset.organizer.DataOrganizer`.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from persona_scraper.dataset.models import Conversation, Monologue, PersonaProfile


def _heading(monologue: Monologue) -> str:
    return monologue.title or monologue.type


def render_corpus(monologues: list[Monologue]) -> str:
    """Plain text corpus: one ``### heading`` block per monologue."""
    return "\n---\n\n".join(f"### {_heading(m)}\n\n{m.text}\n\n" for m in monologues)


def render_prompt_completion_jsonl(persona: str, monologues: list[Monologue]) -> str:
    lines = [
        json.dumps(
            {
                "prompt": f'Speaking as {persona} about "{_heading(m)}":',
                "completion": m.text,
            },
            ensure_ascii=False,
        )
        for m in monologues
    ]
    return "\n".join(lines)


def build_conversation_records(conversations: list[Conversation]) -> list[dict[str, Any]]:
    return [
        {
            "role": "assistant",
            "content": c.text,
            "context": c.context,
            "platform": c.platform,
        }
        for c in conversations
    ]


def render_profile_markdown(
    profile: PersonaProfile, generated_at: datetime | None = None
) -> str:
    """Readable markdown summary of a finalized persona profile."""
    generated_at = generated_at or datetime.now(timezone.utc)
    lines: list[str] = [
        "# Persona Profile",
        "",
        f"Generated on: {generated_at.isoformat()}",
        "",
        "## Communication Style",
        "",
        f"- **Tone**: {profile.communication_style.tone}",
        "",
        "## Topic Expertise",
        "",
    ]
    lines.extend(f"- {topic}" for topic in profile.topic_expertise[:20])
    lines.append("")

    lines.extend(["## Financial Philosophy", ""])
    by_category: dict[str, list[str]] = {}
    for item in profile.financial_philosophy:
        by_category.setdefault(item.category, []).append(item.statement)
    for category, statements in by_category.items():
        lines.extend([f"### {category.replace('_', ' ').upper()}", ""])
        lines.extend(f"- {s}" for s in statements[:5])
        lines.append("")

    lines.extend(["## Core Beliefs & Ideology", ""])
    lines.extend(f"- **[{i.type}]** {i.statement}" for i in profile.ideology[:15])
    lines.append("")

    lines.extend(["## Decision Patterns", ""])
    lines.extend(f"- {d.statement}" for d in profile.decision_patterns[:10])
    lines.append("")

    lines.extend(["## Values", ""])
    lines.extend(f"- {v.statement}" for v in profile.values[:10])
    lines.append("")

    lines.extend(["## Common Phrases", ""])
    lines.extend(f'- "{p.phrase}" (used {p.frequency}x)' for p in profile.common_phrases[:15])
    lines.append("")

    return "\n".join(lines) + "\n"
