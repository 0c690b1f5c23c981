"""Map inference responses of varying shapes to UI-ready results.

Hosted text-classification endpoints answer in a few shapes depending on the
model and pipeline:

- ``[[{"label": ..., "score": ...}, ...]]`` (batched pipeline output)
- ``[{"label": ..., "score": ...}, ...]``
- ``{"some_key": [{"label": ..., "score": ...}]}``, sometimes wrapped in a list

Anything else degrades to a neutral result; nothing here raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

SENTIMENT_THRESHOLD = 0.5
NOUN_HIGH_ABOVE = 15
NOUN_LOW_BELOW = 6
NOUN_LEVELS = ("low", "medium", "high")
NOUN_TAGS = ("NOUN", "PROPN", "NP", "NN")


@dataclass
class SentimentResult:
    kind: str
    score: float | None = None
    label: str | None = None


@dataclass
class NounLevelResult:
    level: str | None
    count: int | None = None


def _is_candidate(value: Any) -> bool:
    return isinstance(value, dict) and bool(value.get("label"))


def _first_of_array_map(value: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(value, dict) or not value:
        return None
    arrays = list(value.values())
    if not all(isinstance(v, list) for v in arrays):
        return None
    inner = arrays[0]
    if inner and _is_candidate(inner[0]):
        return inner[0]
    return None


def extract_candidate(data: Any) -> Optional[Dict[str, Any]]:
    """Return the first ``{label, score}`` mapping found in a known shape."""
    if isinstance(data, list) and data:
        head = data[0]
        if isinstance(head, list):
            return head[0] if head and _is_candidate(head[0]) else None
        if _is_candidate(head):
            return head
        return _first_of_array_map(head)
    return _first_of_array_map(data)


def _coerce_score(raw: Any) -> float:
    if isinstance(raw, bool):
        return 0.0
    try:
        return float(raw)
    except (TypeError, ValueError):
        return 0.0


def interpret_sentiment(data: Any) -> SentimentResult:
    """Reduce a classification response to positive, negative or neutral."""
    candidate = extract_candidate(data)
    if candidate is None:
        return SentimentResult(kind="neutral")

    label = str(candidate.get("label") or "").upper()
    score = _coerce_score(candidate.get("score"))
    if label == "POSITIVE" and score > SENTIMENT_THRESHOLD:
        return SentimentResult(kind="positive", score=score, label=label)
    if label == "NEGATIVE" and score > SENTIMENT_THRESHOLD:
        return SentimentResult(kind="negative", score=score, label=label)
    return SentimentResult(kind="neutral", score=score, label=label or None)


def bucket_noun_count(count: int) -> str:
    """High above 15 nouns, low below 6, medium in between."""
    if count > NOUN_HIGH_ABOVE:
        return "high"
    if count < NOUN_LOW_BELOW:
        return "low"
    return "medium"


def _is_noun_tag(tag: str) -> bool:
    tag = tag.upper().removeprefix("B-").removeprefix("I-")
    return tag in NOUN_TAGS or tag.startswith("NN")


def _count_noun_chunks(data: Any) -> Optional[int]:
    if not isinstance(data, list) or not data:
        return None
    tokens = data[0] if isinstance(data[0], list) else data
    tagged = [
        t for t in tokens
        if isinstance(t, dict) and ("entity_group" in t or "entity" in t)
    ]
    if not tagged:
        return None
    return sum(
        1 for t in tagged if _is_noun_tag(str(t.get("entity_group") or t.get("entity") or ""))
    )


def interpret_noun_level(data: Any) -> NounLevelResult:
    """Read a low/medium/high grade, or count tagged noun chunks and bucket them."""
    candidate = extract_candidate(data)
    if candidate is not None:
        level = str(candidate.get("label") or "").strip().lower()
        if level in NOUN_LEVELS:
            return NounLevelResult(level=level)

    count = _count_noun_chunks(data)
    if count is None:
        return NounLevelResult(level=None)
    return NounLevelResult(level=bucket_noun_count(count), count=count)
