"""Fuzzy matching for typo-tolerant search.

Edit-distance primitives used by the ranking engine:

- `substring_distance`: fewest edits needed to turn the pattern into *some*
  substring of the text, so "hook" matches "hooks" and "raect" matches
  "react" (Sellers' approximate substring matching).
- `max_errors`: how many edits a term may carry under a strictness threshold
  (0.0 = exact only, 1.0 = anything goes).
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterator

# Word characters plus the punctuation that commonly lives inside tech terms
# (next.js, c++, c#, ci-cd, don't)
_WORD = re.compile(r"\w[\w'+#.-]*[\w+#]|\w")
_EDGE_PUNCTUATION = "\"'`.,;:!?()[]{}<>*_~"


def substring_distance(pattern: str, text: str, max_distance: int | None = None) -> int:
    """Edit distance between `pattern` and its best-matching substring of `text`.

    Leading and trailing text is free, so an exact occurrence anywhere
    scores 0.

    Examples:
        >>> substring_distance("hook", "hooks")
        0
        >>> substring_distance("raect", "react")
        2
        >>> substring_distance("abc", "")
        3
    """
    m = len(pattern)
    if m == 0:
        return 0
    if not text:
        return m

    # Column over the pattern; row 0 is free because a match may start anywhere
    column = list(range(m + 1))
    best = column[m]
    for ch in text:
        prev_diag = column[0]
        column[0] = 0
        for i in range(1, m + 1):
            cost = 0 if pattern[i - 1] == ch else 1
            current = min(
                column[i] + 1,  # pattern char left unmatched against text
                column[i - 1] + 1,  # extra text char inside the match
                prev_diag + cost,
            )
            prev_diag = column[i]
            column[i] = current
        if column[m] < best:
            best = column[m]
            if best == 0:
                return 0

    if max_distance is not None and best > max_distance:
        return max_distance + 1
    return best


def max_errors(term_length: int, threshold: float) -> int:
    """Edits a term of this length may carry and still count as a match."""
    return int(math.floor(term_length * threshold + 1e-9))


def missing_chars(term: str, chars: frozenset[str] | set[str]) -> int:
    """Characters of `term` absent from `chars`; a lower bound on edits."""
    return sum(1 for ch in term if ch not in chars)


def normalize_term(raw: str) -> str:
    return raw.strip(_EDGE_PUNCTUATION).lower()


def extract_search_terms(query: str, min_length: int = 2) -> list[str]:
    """Split a query into unique lowercase terms of at least `min_length` chars."""
    terms: dict[str, None] = {}
    for raw in (query or "").split():
        term = normalize_term(raw)
        if len(term) >= min_length:
            terms.setdefault(term, None)
    return list(terms)


def iter_words(text: str) -> Iterator[tuple[str, int, int]]:
    """Yield (lowercased word, start, end-inclusive) for each word in `text`."""
    for match in _WORD.finditer(text):
        yield match.group(0).lower(), match.start(), match.end() - 1
