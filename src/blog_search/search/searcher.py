"""
Fuzzy Full-Text Search Engine

Ranks an in-memory corpus with weighted multi-field fuzzy matching, then
filters, sorts and truncates the ranked list.
"""

import time
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache

from blog_search.search.fuzzy import (
    extract_search_terms,
    iter_words,
    max_errors,
    missing_chars,
    normalize_term,
    substring_distance,
)
from blog_search.search.models import (
    MatchSpan,
    QueryRequest,
    QueryResponse,
    SearchableDocument,
    SearchMatch,
)
from blog_search.search.scoring import FuzzyConfig, WeightedScore, field_norm, term_score
from blog_search.search.snippet import generate_snippet

# Caps for pathological queries
MAX_QUERY_CHARS = 256
MAX_QUERY_TERMS = 16
MAX_TERM_LENGTH = 32

MAX_SUGGESTIONS = 5
RESULT_TAG_SUGGESTIONS = 3
AUTOCOMPLETE_MIN_LENGTH = 2
AUTOCOMPLETE_MIN_WORD_LENGTH = 4

# Common abbreviations and spellings of tech terms
TYPO_CORRECTIONS: dict[str, str] = {
    "reactjs": "react",
    "nodejs": "node",
    "javascript": "js",
    "typescript": "ts",
    "nextjs": "next",
    "tailwindcss": "tailwind",
    "ai": "artificial intelligence",
    "ml": "machine learning",
    "api": "application programming interface",
}


@dataclass(frozen=True)
class _FieldValue:
    key: str
    text: str
    lowered: str
    norm: float
    words: dict[str, tuple[tuple[int, int], ...]]


@dataclass(frozen=True)
class _Record:
    document: SearchableDocument
    created: datetime
    values: tuple[_FieldValue, ...]


def _field_values(document: SearchableDocument, key: str) -> list[str]:
    if key == "tags":
        return list(document.tags)
    value = getattr(document, key, None)
    return [value] if value else []


def _prepare_value(key: str, text: str) -> _FieldValue:
    positions: dict[str, list[tuple[int, int]]] = {}
    for word, start, end in iter_words(text):
        positions.setdefault(word, []).append((start, end))
    return _FieldValue(
        key=key,
        text=text,
        lowered=text.lower(),
        norm=field_norm(text),
        words={word: tuple(spans) for word, spans in positions.items()},
    )


def _merge_spans(spans: list[tuple[int, int]]) -> tuple[tuple[int, int], ...]:
    merged: list[tuple[int, int]] = []
    for start, end in sorted(spans):
        if merged and start <= merged[-1][1] + 1:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return tuple(merged)


def get_typo_corrections(query: str) -> list[str]:
    """Alias corrections for a query: exact key first, then partial key matches."""
    lowered = query.strip().lower()
    if not lowered:
        return []
    corrections: dict[str, None] = {}
    if lowered in TYPO_CORRECTIONS:
        corrections[TYPO_CORRECTIONS[lowered]] = None
    for key, value in TYPO_CORRECTIONS.items():
        if key in lowered or lowered in key:
            corrections.setdefault(value, None)
    return list(corrections)


class SearchEngine:
    """
    Weighted multi-field fuzzy search over an immutable document sequence.

    Every query term has to match somewhere in a document (AND across terms).
    A term matches a field value when it occurs in it literally, or when some
    word of the value contains it within `max_errors` edits. Scores follow
    `blog_search.search.scoring`: lower is better and ties keep index order.
    """

    def __init__(
        self,
        documents: Sequence[SearchableDocument],
        config: FuzzyConfig | None = None,
    ):
        self.documents = tuple(documents)
        self.config = config if config is not None else FuzzyConfig()
        self._weights = self.config.normalized_weights()
        self._records = tuple(self._prepare(doc) for doc in self.documents)

        self._vocabulary: dict[str, frozenset[str]] = {}
        for record in self._records:
            for value in record.values:
                for word in value.words:
                    if word not in self._vocabulary:
                        self._vocabulary[word] = frozenset(word)

        self._fuzzy_words = lru_cache(maxsize=1024)(self._find_fuzzy_words)

    def _prepare(self, document: SearchableDocument) -> _Record:
        values = tuple(
            _prepare_value(key, text)
            for key in self._weights
            for text in _field_values(document, key)
        )
        return _Record(document=document, created=document.created, values=values)

    def __len__(self) -> int:
        return len(self.documents)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(self, request: QueryRequest) -> QueryResponse:
        """
        Run the full pipeline: rank, over-fetch 2×limit, tag filter,
        date filter, sort, truncate, suggest.
        """
        start_time = time.perf_counter()
        query = request.text.strip()

        # 1. Empty query
        if not query:
            return QueryResponse(results=(), total=0, query=query)

        # 2. Rank and over-fetch
        terms = self._terms(query)
        ranked = self._rank(terms) if terms else []
        candidates = ranked[: request.limit * 2]

        # 3. Tag filter (every requested tag must match some document tag)
        wanted = [t.lower() for t in request.tags if t and t.strip()]
        if wanted:
            candidates = [
                c for c in candidates if self._has_tags(c[0].document, wanted)
            ]

        # 4. Date range filter
        if request.date_range is not None:
            candidates = [
                c for c in candidates if request.date_range.contains(c[0].created)
            ]

        # 5. Sort (relevance order is already in place)
        if request.sort_by == "date":
            candidates.sort(key=lambda c: c[0].created, reverse=True)
        elif request.sort_by == "title":
            candidates.sort(key=lambda c: c[0].document.title.casefold())

        # 6. Truncate
        total = len(candidates)
        page = candidates[: request.limit]
        results = tuple(
            SearchMatch(
                document=record.document,
                score=score,
                matches=spans,
                highlight=(
                    generate_snippet(record.document.content, terms)
                    if request.highlight
                    else None
                ),
            )
            for record, score, spans in page
        )

        # 7. Suggestions
        suggestions = self._suggestions(query, [c[0].document for c in candidates])

        return QueryResponse(
            results=results,
            total=total,
            query=query,
            suggestions=tuple(suggestions),
            has_more=total > request.limit,
            execution_time=round((time.perf_counter() - start_time) * 1000, 2),
        )

    def _terms(self, query: str) -> list[str]:
        terms = extract_search_terms(
            query[:MAX_QUERY_CHARS], self.config.min_match_char_length
        )
        return [t[:MAX_TERM_LENGTH] for t in terms[:MAX_QUERY_TERMS]]

    def _rank(
        self, terms: list[str]
    ) -> list[tuple[_Record, float, tuple[MatchSpan, ...]]]:
        fuzzy = {term: self._fuzzy_words(term) for term in terms}
        ranked = []
        for record in self._records:
            hit = self._match_record(record, terms, fuzzy)
            if hit is not None:
                ranked.append((record, hit[0], hit[1]))
        # Stable: equal scores keep index order
        ranked.sort(key=lambda r: r[1])
        return ranked

    def _match_record(
        self,
        record: _Record,
        terms: list[str],
        fuzzy: dict[str, tuple[tuple[str, int], ...]],
    ) -> tuple[float, tuple[MatchSpan, ...]] | None:
        score = WeightedScore()
        matched: set[str] = set()
        spans: list[MatchSpan] = []

        for value in record.values:
            weight = self._weights[value.key]
            indices: list[tuple[int, int]] = []
            for term in terms:
                hit = self._match_value(value, term, fuzzy[term])
                if hit is None:
                    continue
                matched.add(term)
                score.add(hit[0], weight, value.norm)
                indices.extend(hit[1])
            if indices:
                spans.append(MatchSpan(value.key, value.text, _merge_spans(indices)))

        if len(matched) < len(terms):
            return None
        return score.value, tuple(spans)

    def _match_value(
        self,
        value: _FieldValue,
        term: str,
        fuzzy_words: tuple[tuple[str, int], ...],
    ) -> tuple[float, list[tuple[int, int]]] | None:
        cap = self.config.max_spans_per_value

        position = value.lowered.find(term)
        if position != -1:
            indices = []
            while position != -1 and len(indices) < cap:
                indices.append((position, position + len(term) - 1))
                position = value.lowered.find(term, position + 1)
            return 0.0, indices

        best: int | None = None
        indices = []
        for word, edits in fuzzy_words:
            if best is not None and edits > best:
                break
            spans = value.words.get(word)
            if spans:
                best = edits
                indices.extend(spans)
        if best is None:
            return None
        return term_score(best, len(term)), indices[:cap]

    def _find_fuzzy_words(self, term: str) -> tuple[tuple[str, int], ...]:
        """Vocabulary words containing `term` within the allowed edits, closest first."""
        allowed = max_errors(len(term), self.config.threshold)
        if allowed == 0:
            return ()
        min_length = len(term) - allowed
        found = []
        for word, chars in self._vocabulary.items():
            if len(word) < min_length or missing_chars(term, chars) > allowed:
                continue
            edits = substring_distance(term, word, allowed)
            if edits <= allowed:
                found.append((word, edits))
        found.sort(key=lambda item: (item[1], item[0]))
        return tuple(found)

    @staticmethod
    def _has_tags(document: SearchableDocument, wanted: list[str]) -> bool:
        tags = [t.lower() for t in document.tags]
        return all(any(w in tag for tag in tags) for w in wanted)

    def _suggestions(
        self, query: str, documents: list[SearchableDocument]
    ) -> list[str]:
        if not documents:
            return get_typo_corrections(query)[:MAX_SUGGESTIONS]
        frequency = Counter(tag for doc in documents for tag in doc.tags)
        return [tag for tag, _ in frequency.most_common(RESULT_TAG_SUGGESTIONS)]

    # ------------------------------------------------------------------
    # Corpus views
    # ------------------------------------------------------------------

    def autocomplete(self, partial_query: str, limit: int = 5) -> list[str]:
        """
        Titles and tags containing the partial query, plus body words longer
        than 3 chars starting with it, in first-seen order.
        """
        lowered = partial_query.strip().lower()
        if len(lowered) < AUTOCOMPLETE_MIN_LENGTH or limit <= 0:
            return []

        suggestions: dict[str, None] = {}
        for document in self.documents:
            if lowered in document.title.lower():
                suggestions.setdefault(document.title, None)
            for tag in document.tags:
                if lowered in tag.lower():
                    suggestions.setdefault(tag, None)
            for raw in document.content.split():
                word = normalize_term(raw)
                if len(word) >= AUTOCOMPLETE_MIN_WORD_LENGTH and word.startswith(lowered):
                    suggestions.setdefault(word, None)
            if len(suggestions) >= limit:
                break
        return list(suggestions)[:limit]

    def all_tags(self) -> list[str]:
        return sorted({tag for doc in self.documents for tag in doc.tags})

    def popular_tags(self, limit: int = 10) -> list[dict[str, int | str]]:
        """Tags by document frequency, most used first (ties by first appearance)."""
        frequency = Counter(tag for doc in self.documents for tag in doc.tags)
        return [
            {"tag": tag, "count": count}
            for tag, count in frequency.most_common(max(limit, 0))
        ]

    def recent(self, limit: int = 5) -> list[SearchableDocument]:
        ordered = sorted(self._records, key=lambda r: r.created, reverse=True)
        return [r.document for r in ordered[: max(limit, 0)]]
