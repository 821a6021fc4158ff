"""
Search Service

Owns the live search index and the query cache and analytics recorder that
sit in front of it. One instance lives on `app.state.search_service` for the
lifetime of the API process.

Lifecycle: `init()` loads the snapshot (or builds one), `refresh_if_stale()`
rebuilds from content once the index is older than the TTL, `shutdown()`
persists analytics. A rebuild produces a brand-new `LoadedIndex` which
replaces the previous one in a single assignment; readers never see a
half-built index.
"""

import logging
import os
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, replace

from blog_search.api import metrics
from blog_search.content import PostRepository
from blog_search.core.config import Settings
from blog_search.search.analytics import SearchAnalytics
from blog_search.search.cache import QueryCache
from blog_search.search.errors import IndexUnavailableError
from blog_search.search.indexer import SearchIndexer
from blog_search.search.models import (
    IndexStats,
    QueryRequest,
    QueryResponse,
    SearchableDocument,
    SearchIndex,
)
from blog_search.search.scoring import FuzzyConfig
from blog_search.search.searcher import SearchEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedIndex:
    index: SearchIndex
    engine: SearchEngine
    loaded_at: float  # monotonic seconds


class SearchService:
    def __init__(
        self,
        indexer: SearchIndexer,
        index_path: str | os.PathLike,
        cache: QueryCache | None = None,
        analytics: SearchAnalytics | None = None,
        fuzzy_config: FuzzyConfig | None = None,
        index_ttl: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.indexer = indexer
        self.index_path = index_path
        self.cache = cache if cache is not None else QueryCache()
        self.analytics = analytics if analytics is not None else SearchAnalytics()
        self.fuzzy_config = fuzzy_config if fuzzy_config is not None else FuzzyConfig()
        self.index_ttl = index_ttl
        self._clock = clock
        self._loaded: LoadedIndex | None = None
        self._next_refresh_at = 0.0
        self._refresh_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def ready(self) -> bool:
        return self._loaded is not None

    def init(self) -> bool:
        """
        Load the snapshot, or build and save a fresh index if there is none.

        Returns False (leaving the service not ready) if no index could be
        produced; requests will retry the build.
        """
        self.analytics.load_from_storage()
        with self._refresh_lock:
            if self._loaded is not None:
                return True
            index = self.indexer.load_index(self.index_path)
            if index is not None:
                self._swap(index, outcome="loaded")
                return True
            logger.info("No search index found, generating new one...")
            try:
                self._rebuild_locked()
            except IndexUnavailableError:
                return False
            return True

    def refresh_if_stale(self) -> LoadedIndex:
        """
        Return the live index, rebuilding first if it has outlived the TTL.

        Only the request that takes the refresh lock pays for the rebuild;
        concurrent readers keep getting the current index until the swap.
        Readers wait only when there is no index at all.

        Raises:
            IndexUnavailableError: if there is no index and none can be built
        """
        loaded = self._loaded
        if loaded is not None and self._clock() < self._next_refresh_at:
            return loaded

        if loaded is None:
            self._refresh_lock.acquire()
        elif not self._refresh_lock.acquire(blocking=False):
            return loaded

        try:
            loaded = self._loaded
            if loaded is not None and self._clock() < self._next_refresh_at:
                return loaded
            try:
                return self._rebuild_locked()
            except IndexUnavailableError:
                if loaded is None:
                    raise
                # Keep serving the previous index; try again after one TTL
                self._next_refresh_at = self._clock() + self.index_ttl
                return loaded
        finally:
            self._refresh_lock.release()

    def refresh(self) -> LoadedIndex:
        """
        Force a rebuild from content.

        Raises:
            IndexUnavailableError: if the rebuild fails (the previous index,
                if any, stays live)
        """
        with self._refresh_lock:
            return self._rebuild_locked()

    def shutdown(self) -> None:
        self.analytics.persist()
        self.cache.clear()

    def _rebuild_locked(self) -> LoadedIndex:
        try:
            index = self.indexer.build_index()
        except Exception as e:
            logger.exception("Failed to build search index")
            metrics.record_index_swap("failed")
            raise IndexUnavailableError("Search service unavailable") from e

        try:
            self.indexer.save_index(index, self.index_path)
        except OSError as e:
            logger.warning(f"Failed to save search index: {e}")
        return self._swap(index, outcome="built")

    def _swap(self, index: SearchIndex, outcome: str) -> LoadedIndex:
        loaded = LoadedIndex(
            index=index,
            engine=SearchEngine(index.documents, self.fuzzy_config),
            loaded_at=self._clock(),
        )
        self._loaded = loaded
        self._next_refresh_at = loaded.loaded_at + self.index_ttl
        self.cache.clear()
        metrics.record_index_swap(outcome, len(index.documents))
        logger.info(f"Search engine initialized with {len(index.documents)} posts")
        return loaded

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def search(self, request: QueryRequest, client_tag: str | None = None) -> QueryResponse:
        """Cached ranked search; every non-empty query is tracked."""
        loaded = self.refresh_if_stale()
        if not request.text.strip():
            return loaded.engine.search(request)

        options = request.options_dict()
        response = self.cache.get(request.text, options)
        metrics.record_cache_event(hit=response is not None)
        if response is None:
            response = loaded.engine.search(request)
            # A swap during the search has already cleared the cache
            if self._loaded is loaded:
                self.cache.set(request.text, response, options)
        elif response.query != request.text.strip():
            # Keys are normalized; echo the caller's own text
            response = replace(response, query=request.text.strip())

        self.analytics.track(request.text, response.total, client_tag)
        return response

    def autocomplete(self, partial_query: str, limit: int = 5) -> list[str]:
        return self.refresh_if_stale().engine.autocomplete(partial_query, limit)

    def all_tags(self) -> list[str]:
        return self.refresh_if_stale().engine.all_tags()

    def popular_tags(self, limit: int = 10) -> list[dict]:
        return self.refresh_if_stale().engine.popular_tags(limit)

    def recent_posts(self, limit: int = 5) -> list[SearchableDocument]:
        return self.refresh_if_stale().engine.recent(limit)

    def stats(self) -> IndexStats:
        loaded = self.refresh_if_stale()
        documents = loaded.index.documents
        count = len(documents)
        return IndexStats(
            total_posts=count,
            total_tags=len(loaded.engine.all_tags()),
            last_updated=loaded.index.built_at,
            average_word_count=_round_half_up(
                sum(d.word_count for d in documents) / count if count else 0
            ),
            average_reading_time=_round_half_up(
                sum(d.reading_time for d in documents) / count if count else 0
            ),
        )


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def create_search_service(settings: Settings) -> SearchService:
    """Wire a SearchService from settings."""
    indexer = SearchIndexer(
        PostRepository(settings.CONTENT_DIR),
        url_prefix=settings.POST_URL_PREFIX,
        schema_version=settings.INDEX_SCHEMA_VERSION,
    )
    return SearchService(
        indexer=indexer,
        index_path=settings.SEARCH_INDEX_PATH,
        cache=QueryCache(
            ttl=settings.SEARCH_CACHE_TTL_SEC,
            max_size=settings.SEARCH_CACHE_MAX_SIZE,
        ),
        analytics=SearchAnalytics(
            max_entries=settings.ANALYTICS_MAX_ENTRIES,
            storage_path=settings.ANALYTICS_PATH,
            persist_entries=settings.ANALYTICS_PERSIST_ENTRIES,
        ),
        fuzzy_config=FuzzyConfig(
            threshold=settings.FUZZY_THRESHOLD,
            min_match_char_length=settings.MIN_MATCH_CHAR_LENGTH,
        ),
        index_ttl=settings.INDEX_TTL_SEC,
    )
