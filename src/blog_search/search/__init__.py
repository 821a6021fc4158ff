"""In-process fuzzy full-text search for blog posts."""

from blog_search.search.analytics import SearchAnalytics
from blog_search.search.cache import QueryCache
from blog_search.search.errors import (
    ContentUnavailableError,
    IndexUnavailableError,
    QueryValidationError,
    SearchError,
)
from blog_search.search.indexer import SearchIndexer
from blog_search.search.models import (
    DateRange,
    QueryRequest,
    QueryResponse,
    SearchableDocument,
    SearchIndex,
    SearchMatch,
)
from blog_search.search.scoring import FuzzyConfig
from blog_search.search.searcher import SearchEngine
from blog_search.search.snippet import generate_snippet, highlight_terms

__all__ = [
    "SearchAnalytics",
    "QueryCache",
    "ContentUnavailableError",
    "IndexUnavailableError",
    "QueryValidationError",
    "SearchError",
    "SearchIndexer",
    "DateRange",
    "QueryRequest",
    "QueryResponse",
    "SearchableDocument",
    "SearchIndex",
    "SearchMatch",
    "FuzzyConfig",
    "SearchEngine",
    "generate_snippet",
    "highlight_terms",
]
