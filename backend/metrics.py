from __future__ import annotations

import logging
import math
import re
from typing import Any, NamedTuple

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# ASCII keeps \b aligned with [A-Za-z0-9_] word characters only.
_PATTERN_FLAGS = re.IGNORECASE | re.ASCII


class FillerPattern(NamedTuple):
    label: str
    pattern: re.Pattern[str]


def _filler(label: str, regex: str) -> FillerPattern:
    return FillerPattern(label, re.compile(regex, _PATTERN_FLAGS))


FILLER_PATTERNS: tuple[FillerPattern, ...] = (
    _filler("um", r"\bum+\b"),
    _filler("uh", r"\buh+\b"),
    _filler("like", r"\blike\b"),
    _filler("you know", r"\byou know\b"),
    _filler("so", r"\bso\b"),
    _filler("actually", r"\bactually\b"),
    _filler("basically", r"\bbasically\b"),
    _filler("right", r"\bright\b"),
    _filler("okay", r"\bokay\b"),
    _filler("kind of", r"\bkind of\b"),
    _filler("sort of", r"\bsort of\b"),
)

# The breakdown only reports the common categories.
BREAKDOWN_PATTERNS: tuple[FillerPattern, ...] = FILLER_PATTERNS[:7]

# ECMAScript \s whitespace set.
_WHITESPACE = r"\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"
_WHITESPACE_RE = re.compile(f"[{_WHITESPACE}]+")
_NON_LETTER_RE = re.compile(f"[^a-z{_WHITESPACE}]")

PACE_TOO_SLOW_WPM = 100
PACE_SLOW_WPM = 130
PACE_IDEAL_MAX_WPM = 170
PACE_FAST_MAX_WPM = 190

COLOR_SUCCESS = "#4CAF50"
COLOR_WARNING = "#FFC107"
COLOR_CAUTION = "#FF9800"
COLOR_ERROR = "#F44336"


class PaceLabel(BaseModel):
    label: str
    color: str


class SessionMetrics(BaseModel):
    filler_words_count: int = Field(ge=0)
    speaking_pace: int = Field(ge=0)
    vocab_diversity: float = Field(ge=0, le=1)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round to ``digits`` places with ties going up, unlike ``round()``."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def split_words(text: str) -> list[str]:
    return [word for word in _WHITESPACE_RE.split(text) if word]


def normalize_words(text: str) -> list[str]:
    """Lowercase, drop everything except a-z and whitespace, then split."""
    return split_words(_NON_LETTER_RE.sub("", text.lower()))


def _count_matches(pattern: re.Pattern[str], text: str) -> int:
    return sum(1 for _ in pattern.finditer(text))


def count_filler_words(transcript: str) -> int:
    return sum(_count_matches(filler.pattern, transcript) for filler in FILLER_PATTERNS)


def calculate_speaking_pace(transcript: str, duration_seconds: float) -> int:
    if duration_seconds < 0:
        raise ValueError(f"duration_seconds must be non-negative, got {duration_seconds}")
    if duration_seconds == 0:
        return 0
    words = split_words(transcript)
    return int(round_half_up(len(words) / duration_seconds * 60))


def calculate_vocab_diversity(transcript: str) -> float:
    words = normalize_words(transcript)
    if not words:
        return 0.0
    return round_half_up(len(set(words)) / len(words), 2)


def get_filler_word_breakdown(transcript: str) -> dict[str, int]:
    breakdown: dict[str, int] = {}
    for filler in BREAKDOWN_PATTERNS:
        count = _count_matches(filler.pattern, transcript)
        if count > 0:
            breakdown[filler.label] = count
    return breakdown


def get_pace_label(wpm: float) -> PaceLabel:
    if wpm < PACE_TOO_SLOW_WPM:
        return PaceLabel(label="Too Slow", color=COLOR_WARNING)
    if wpm < PACE_SLOW_WPM:
        return PaceLabel(label="Slow", color=COLOR_CAUTION)
    if wpm <= PACE_IDEAL_MAX_WPM:
        return PaceLabel(label="Ideal", color=COLOR_SUCCESS)
    if wpm <= PACE_FAST_MAX_WPM:
        return PaceLabel(label="Fast", color=COLOR_CAUTION)
    return PaceLabel(label="Too Fast", color=COLOR_ERROR)


def build_session_metrics(transcript: str, duration_seconds: float) -> SessionMetrics:
    """Numbers stored on a session record once the transcript is available."""
    return SessionMetrics(
        filler_words_count=count_filler_words(transcript),
        speaking_pace=calculate_speaking_pace(transcript, duration_seconds),
        vocab_diversity=calculate_vocab_diversity(transcript),
    )


def analyze_transcript(transcript: str, duration_seconds: float) -> dict[str, Any]:
    session_metrics = build_session_metrics(transcript, duration_seconds)
    breakdown = get_filler_word_breakdown(transcript)
    pace_label = get_pace_label(session_metrics.speaking_pace)

    logger.debug(
        "Analyzed transcript: %d fillers, %d wpm, vocab %.2f",
        session_metrics.filler_words_count,
        session_metrics.speaking_pace,
        session_metrics.vocab_diversity,
    )

    return {
        "duration_seconds": round(duration_seconds, 2),
        "word_count": len(split_words(transcript)),
        **session_metrics.model_dump(),
        "filler_breakdown": breakdown,
        "pace_label": pace_label.model_dump(),
    }
