"""Heuristic persona mining from free text.

This is keyword and pattern matching, not NLP. Every function accepts any
text (empty, very long, no punctuation) without raising, and every threshold
comes from :class:`~persona_scraper.config.MiningConfig`.
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

from persona_scraper.config import MiningConfig
from persona_scraper.dataset.models import (
    CommonPhrase,
    DecisionPattern,
    FinancialStatement,
    IdeologyStatement,
    PersonaProfile,
    ValueStatement,
)

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = MiningConfig()

FINANCIAL_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("investment_advice", re.compile(
        r"\b(?:invest|investment|investing|portfolio|asset|stock|mutual fund|equity|debt|sip)\b",
        re.IGNORECASE,
    )),
    ("budgeting", re.compile(
        r"\b(?:budget|budgeting|expense|saving|save money|financial plan)\b", re.IGNORECASE,
    )),
    ("debt_management", re.compile(
        r"\b(?:debt|loan|emi|credit card|liability|borrow)\b", re.IGNORECASE,
    )),
    ("wealth_building", re.compile(
        r"\b(?:wealth|rich|financial freedom|retire|retirement|fire)\b", re.IGNORECASE,
    )),
    ("risk_management", re.compile(
        r"\b(?:risk|diversif|return|profit|loss|market)\b", re.IGNORECASE,
    )),
    ("tax_planning", re.compile(
        r"\b(?:tax|taxation|tax saving|deduction|exemption)\b", re.IGNORECASE,
    )),
    ("insurance", re.compile(
        r"\b(?:insurance|health insurance|term insurance|cover)\b", re.IGNORECASE,
    )),
    ("emergency_planning", re.compile(
        r"\b(?:emergency fund|liquidity|cash reserve)\b", re.IGNORECASE,
    )),
]

IDEOLOGY_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("belief", re.compile(
        r"\b(?:i believe|i think|in my opinion|my view|personally)\b", re.IGNORECASE,
    )),
    ("directive", re.compile(
        r"\b(?:should|must|need to|have to|important to)\b", re.IGNORECASE,
    )),
    ("principle", re.compile(r"\b(?:always|never|every time|whenever)\b", re.IGNORECASE)),
    ("reasoning", re.compile(
        r"\b(?:because|since|therefore|that's why|reason)\b", re.IGNORECASE,
    )),
]

DECISION_PATTERN = re.compile(
    r"\b(?:decide|decision|choose|chose|select|prefer|recommend|suggest)\b", re.IGNORECASE,
)
VALUE_PATTERN = re.compile(
    r"\b(?:important|essential|crucial|key|critical|matter|value|priority|focus)\b",
    re.IGNORECASE,
)

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")

# Checked in order; the first marker group found decides the tone.
_TONE_MARKERS: list[tuple[str, tuple[str, ...]]] = [
    ("directive", ("should", "must")),
    ("conversational", ("i think", "in my opinion")),
]


def split_sentences(text: str) -> list[str]:
    return _SENTENCE_SPLIT_RE.split(text)


def extract_sentences_containing(text: str, pattern: re.Pattern[str]) -> list[str]:
    """Return the sentence-like units of *text* that match *pattern*."""
    return [s for s in split_sentences(text) if pattern.search(s)]


def _within(sentence: str, low: int, high: int) -> bool:
    return low < len(sentence) < high


def extract_ideology_from_text(
    text: str,
    profile: PersonaProfile,
    *,
    title: str | None = None,
    config: MiningConfig | None = None,
) -> None:
    """Append categorized statements and recurring phrases from *text* to *profile*.

    Per call, at most ``financial_per_call`` statements are taken per
    financial category (only when its keyword count exceeds
    ``financial_min_matches``), ``ideology_per_call`` per rhetorical type,
    ``decision_per_call`` decision statements and ``values_per_call`` value
    statements. The per-call cap is applied before the length filter.
    """
    if not isinstance(text, str) or not text:
        return
    cfg = config or _DEFAULT_CONFIG
    source = title or "video"
    sentences = split_sentences(text)

    def matching(pattern: re.Pattern[str]) -> list[str]:
        return [s for s in sentences if pattern.search(s)]

    for category, pattern in FINANCIAL_PATTERNS:
        frequency = len(pattern.findall(text))
        if frequency <= cfg.financial_min_matches:
            continue
        for sentence in matching(pattern)[:cfg.financial_per_call]:
            if _within(sentence, cfg.financial_sentence_min, cfg.financial_sentence_max):
                profile.financial_philosophy.append(FinancialStatement(
                    category=category, statement=sentence.strip(), frequency=frequency,
                ))

    for kind, pattern in IDEOLOGY_PATTERNS:
        for sentence in matching(pattern)[:cfg.ideology_per_call]:
            if _within(sentence, cfg.statement_min, cfg.statement_max):
                profile.ideology.append(IdeologyStatement(
                    type=kind, statement=sentence.strip(), source=source,
                ))

    for sentence in matching(DECISION_PATTERN)[:cfg.decision_per_call]:
        if _within(sentence, cfg.statement_min, cfg.statement_max):
            profile.decision_patterns.append(DecisionPattern(
                statement=sentence.strip(), context=source,
            ))

    for sentence in matching(VALUE_PATTERN)[:cfg.values_per_call]:
        if _within(sentence, cfg.statement_min, cfg.statement_max):
            profile.values.append(ValueStatement(statement=sentence.strip(), source=source))

    known = {p.phrase for p in profile.common_phrases}
    for phrase in extract_common_phrases(text, cfg):
        if phrase.phrase not in known:
            known.add(phrase.phrase)
            profile.common_phrases.append(phrase)


def extract_common_phrases(text: str, config: MiningConfig | None = None) -> list[CommonPhrase]:
    """Return recurring 2-5 word phrases, most frequent first.

    Ties keep first-counted order (all bigrams, then trigrams, and so on),
    so the result is stable for identical input.
    """
    if not isinstance(text, str) or not text:
        return []
    cfg = config or _DEFAULT_CONFIG
    words = text.lower().split()
    counts: dict[str, int] = {}

    for size in range(cfg.ngram_min, cfg.ngram_max + 1):
        for i in range(len(words) - size + 1):
            phrase = " ".join(words[i:i + size])
            if cfg.phrase_min_length < len(phrase) < cfg.phrase_max_length:
                counts[phrase] = counts.get(phrase, 0) + 1

    frequent = [(p, n) for p, n in counts.items() if n >= cfg.phrase_min_frequency]
    frequent.sort(key=lambda pair: pair[1], reverse=True)
    return [CommonPhrase(phrase=p, frequency=n) for p, n in frequent[:cfg.phrase_top_n]]


def _dedupe_statements(items: Sequence) -> list:
    """Keep first-seen order per statement; a later duplicate replaces the earlier value."""
    return list({item.statement: item for item in items}.values())


def classify_tone(text: str) -> str:
    """Match tone markers case-sensitively; the first matching tone wins."""
    for tone, markers in _TONE_MARKERS:
        if any(marker in text for marker in markers):
            return tone
    return "informative"


def analyze_persona_profile(
    profile: PersonaProfile, config: MiningConfig | None = None
) -> PersonaProfile:
    """Deduplicate, cap every category and derive the communication tone."""
    cfg = config or _DEFAULT_CONFIG

    profile.ideology = _dedupe_statements(profile.ideology)[:cfg.ideology_cap]
    profile.financial_philosophy = _dedupe_statements(profile.financial_philosophy)[
        :cfg.financial_cap
    ]
    profile.decision_patterns = _dedupe_statements(profile.decision_patterns)[:cfg.decision_cap]
    profile.values = _dedupe_statements(profile.values)[:cfg.values_cap]
    profile.common_phrases = profile.common_phrases[:cfg.phrases_cap]
    profile.topic_expertise = list(dict.fromkeys(profile.topic_expertise))[:cfg.topics_cap]

    all_text = " ".join(
        [i.statement for i in profile.ideology]
        + [f.statement for f in profile.financial_philosophy]
    )
    profile.communication_style.tone = classify_tone(all_text)
    logger.debug(
        "Profile finalized: %d ideology, %d financial, tone=%s",
        len(profile.ideology),
        len(profile.financial_philosophy),
        profile.communication_style.tone,
    )
    return profile
