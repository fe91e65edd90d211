from __future__ import annotations

from statistics import fmean
from typing import Any, Iterable, Mapping

from pydantic import BaseModel

from metrics import COLOR_ERROR, COLOR_SUCCESS, COLOR_WARNING, round_half_up

FILLER_HIGH_COUNT = 10
VOCAB_EXCELLENT_PERCENT = 70
VOCAB_GOOD_PERCENT = 50

SERIES_KEYS = ("speaking_pace", "filler_words_count", "vocab_diversity")


class MetricRating(BaseModel):
    label: str
    color: str


class ProgressSummary(BaseModel):
    session_count: int
    avg_pace: int
    avg_filler_words: int
    avg_vocab_percent: int


def rate_filler_count(count: int) -> MetricRating:
    if count == 0:
        return MetricRating(label="Perfect!", color=COLOR_SUCCESS)
    if count > FILLER_HIGH_COUNT:
        return MetricRating(label="detected", color=COLOR_ERROR)
    return MetricRating(label="detected", color=COLOR_WARNING)


def vocab_percent(vocab_diversity: float) -> int:
    return int(round_half_up(vocab_diversity * 100))


def rate_vocab_diversity(vocab_diversity: float) -> MetricRating:
    percent = vocab_percent(vocab_diversity)
    if percent >= VOCAB_EXCELLENT_PERCENT:
        return MetricRating(label="Excellent", color=COLOR_SUCCESS)
    if percent >= VOCAB_GOOD_PERCENT:
        return MetricRating(label="Good", color=COLOR_WARNING)
    return MetricRating(label="Needs work", color=COLOR_ERROR)


def _values(sessions: Iterable[Mapping[str, Any]], key: str) -> list[float]:
    return [float(session.get(key) or 0) for session in sessions]


def metric_series(sessions: Iterable[Mapping[str, Any]], key: str) -> list[float]:
    """Chart values for one stored metric, in the order the sessions are given."""
    if key not in SERIES_KEYS:
        raise ValueError(f"Unknown metric {key!r}; expected one of {', '.join(SERIES_KEYS)}")
    return _values(sessions, key)


def summarize_progress(sessions: list[Mapping[str, Any]]) -> ProgressSummary:
    if not sessions:
        return ProgressSummary(session_count=0, avg_pace=0, avg_filler_words=0, avg_vocab_percent=0)

    avg_pace = fmean(_values(sessions, "speaking_pace"))
    avg_filler = fmean(_values(sessions, "filler_words_count"))
    avg_vocab = fmean(_values(sessions, "vocab_diversity"))

    return ProgressSummary(
        session_count=len(sessions),
        avg_pace=int(round_half_up(avg_pace)),
        avg_filler_words=int(round_half_up(avg_filler)),
        avg_vocab_percent=int(round_half_up(avg_vocab * 100)),
    )
