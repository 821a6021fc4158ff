"""
Search Data Model

Dataclasses shared by the indexer, the ranking engine and the gateway.
Attribute names are snake_case; `to_dict` / `from_dict` speak the camelCase
JSON used by the index snapshot and the HTTP responses.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any, Literal

SortMode = Literal["relevance", "date", "title"]
SORT_MODES: tuple[str, ...] = ("relevance", "date", "title")


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO-8601 string (or date/datetime) into an aware UTC datetime.

    Naive values are assumed to be UTC.

    Raises:
        ValueError: if the value is not a recognisable timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format an aware datetime as ISO-8601 with a trailing Z."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class SearchableDocument:
    """A normalized, searchable post."""

    slug: str
    title: str
    excerpt: str
    content: str  # markup-stripped body text
    tags: tuple[str, ...]
    created_at: str
    updated_at: str
    word_count: int
    reading_time: int
    url: str
    subtitle: str | None = None

    @property
    def created(self) -> datetime:
        return parse_timestamp(self.created_at)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "slug": self.slug,
            "title": self.title,
            "excerpt": self.excerpt,
            "content": self.content,
            "tags": list(self.tags),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "wordCount": self.word_count,
            "readingTime": self.reading_time,
            "url": self.url,
        }
        if self.subtitle is not None:
            data["subtitle"] = self.subtitle
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchableDocument":
        """
        Rebuild a document from its snapshot form.

        Raises:
            KeyError, TypeError, ValueError: if the record is malformed
        """
        tags = data.get("tags") or []
        if not isinstance(tags, list):
            raise TypeError("tags must be a list")
        subtitle = data.get("subtitle")
        parse_timestamp(data["createdAt"])
        return cls(
            slug=str(data["slug"]),
            title=str(data["title"]),
            subtitle=str(subtitle) if subtitle is not None else None,
            excerpt=str(data.get("excerpt", "")),
            content=str(data.get("content", "")),
            tags=tuple(str(t) for t in tags),
            created_at=str(data["createdAt"]),
            updated_at=str(data.get("updatedAt") or data["createdAt"]),
            word_count=int(data.get("wordCount", 0)),
            reading_time=int(data.get("readingTime", 1)),
            url=str(data["url"]),
        )


@dataclass(frozen=True)
class SearchIndex:
    """Immutable snapshot of the corpus, newest post first."""

    documents: tuple[SearchableDocument, ...]
    built_at: str
    schema_version: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "posts": [doc.to_dict() for doc in self.documents],
            "lastUpdated": self.built_at,
            "version": self.schema_version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchIndex":
        posts = data["posts"]
        if not isinstance(posts, list):
            raise TypeError("posts must be a list")
        return cls(
            documents=tuple(SearchableDocument.from_dict(p) for p in posts),
            built_at=str(data["lastUpdated"]),
            schema_version=str(data["version"]),
        )


@dataclass(frozen=True)
class DateRange:
    """Inclusive createdAt bounds; either side may be open."""

    start: datetime | None = None
    end: datetime | None = None

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True

    def to_dict(self) -> dict[str, str | None]:
        return {
            "from": format_timestamp(self.start) if self.start else None,
            "to": format_timestamp(self.end) if self.end else None,
        }


@dataclass(frozen=True)
class QueryRequest:
    """A ranked search request."""

    text: str
    limit: int = 10
    tags: tuple[str, ...] = ()
    sort_by: SortMode = "relevance"
    date_range: DateRange | None = None
    highlight: bool = False

    def options_dict(self) -> dict[str, Any]:
        """Non-text options, in a form suitable for deterministic serialization."""
        return {
            "limit": self.limit,
            "tags": sorted(t.lower() for t in self.tags),
            "sortBy": self.sort_by,
            "dateRange": self.date_range.to_dict() if self.date_range else None,
            "highlight": self.highlight,
        }


@dataclass(frozen=True)
class MatchSpan:
    """Where a query matched inside one field value (inclusive indices)."""

    key: str
    value: str
    indices: tuple[tuple[int, int], ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "value": self.value,
            "indices": [list(pair) for pair in self.indices],
        }


@dataclass(frozen=True)
class SearchMatch:
    """A single ranked hit."""

    document: SearchableDocument
    score: float | None = None
    matches: tuple[MatchSpan, ...] = ()
    highlight: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "item": self.document.to_dict(),
            "score": self.score,
            "matches": [m.to_dict() for m in self.matches],
        }
        if self.highlight is not None:
            data["highlight"] = self.highlight
        return data


@dataclass(frozen=True)
class QueryResponse:
    """Ranked, filtered and truncated search results."""

    results: tuple[SearchMatch, ...]
    total: int
    query: str
    suggestions: tuple[str, ...] = ()
    has_more: bool = False
    execution_time: float = 0.0  # milliseconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "total": self.total,
            "query": self.query,
            "suggestions": list(self.suggestions),
            "hasMore": self.has_more,
            "executionTime": self.execution_time,
        }


@dataclass(frozen=True)
class AnalyticsSample:
    """One completed query, as seen by the analytics recorder."""

    query: str
    result_count: int
    timestamp: str
    client_tag: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "query": self.query,
            "resultCount": self.result_count,
            "timestamp": self.timestamp,
        }
        if self.client_tag is not None:
            data["userAgent"] = self.client_tag
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalyticsSample":
        return cls(
            query=str(data["query"]),
            result_count=int(data["resultCount"]),
            timestamp=str(data["timestamp"]),
            client_tag=data.get("userAgent"),
        )


@dataclass
class IndexStats:
    """Corpus-level figures reported by the `stats` action."""

    total_posts: int = 0
    total_tags: int = 0
    last_updated: str = ""
    average_word_count: int = 0
    average_reading_time: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalPosts": self.total_posts,
            "totalTags": self.total_tags,
            "lastUpdated": self.last_updated,
            "averageWordCount": self.average_word_count,
            "averageReadingTime": self.average_reading_time,
        }
