"""
Weighted Fuzzy Scoring

Combines per-field fuzzy term matches into one relevance score.

score(d) = Π max(s(t, v), ε) ^ (w(f) * norm(v))

Where, for every (field value v of field f, query term t) pair that matched:
- s(t, v) = edits / len(t), 0.0 for an exact occurrence
- w(f) = field weight, normalized so all weights sum to 1
- norm(v) = 1 / sqrt(number of words in v), so short fields count for more

Lower is better; a document with no match at all would score 1.0.
"""

import math
from dataclasses import dataclass, field

from blog_search.search.fuzzy import iter_words

EPSILON = 2.220446049250313e-16

DEFAULT_FIELD_WEIGHTS: dict[str, float] = {
    "title": 0.40,
    "subtitle": 0.30,
    "tags": 0.20,
    "excerpt": 0.10,
    "content": 0.05,
}


@dataclass
class FuzzyConfig:
    """Matching hyperparameters."""

    threshold: float = 0.4  # 0.0 = exact only, 1.0 = match anything
    min_match_char_length: int = 2
    field_weights: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_FIELD_WEIGHTS)
    )
    max_spans_per_value: int = 8

    def normalized_weights(self) -> dict[str, float]:
        total = sum(w for w in self.field_weights.values() if w > 0)
        if total <= 0:
            raise ValueError("At least one field weight must be positive")
        return {
            name: weight / total
            for name, weight in self.field_weights.items()
            if weight > 0
        }


def field_norm(value: str) -> float:
    """Length norm of a field value: 1/sqrt(word count), rounded to 3 places."""
    count = sum(1 for _ in iter_words(value))
    if count == 0:
        return 1.0
    return round(1 / math.sqrt(count), 3)


def term_score(edits: int, term_length: int) -> float:
    if term_length == 0:
        return 0.0
    return min(1.0, edits / term_length)


class WeightedScore:
    """Accumulates matched (term, field value) scores for one document."""

    __slots__ = ("_total",)

    def __init__(self):
        self._total = 1.0

    def add(self, score: float, weight: float, norm: float) -> None:
        self._total *= math.pow(max(score, EPSILON), weight * norm)

    @property
    def value(self) -> float:
        return self._total
