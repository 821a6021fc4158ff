import threading
import time
from unittest.mock import patch

import pytest

from blog_search.core.config import settings
from blog_search.search.analytics import SearchAnalytics
from blog_search.search.cache import QueryCache
from blog_search.search.errors import IndexUnavailableError
from blog_search.search.indexer import SearchIndexer
from blog_search.search.models import QueryRequest
from blog_search.services.search import SearchService, create_search_service

from conftest import REACT_SLUG, write_post

NEW_POST = """---
title: Elixir Processes
tags: [elixir]
createdAt: "2024-04-01T00:00:00Z"
---
Lightweight processes talk by message passing.
"""


def test_init_builds_and_saves_snapshot(make_service, tmp_path):
    service = make_service()

    assert service.init() is True
    assert service.ready
    assert (tmp_path / "public" / "search-index.json").is_file()


def test_init_prefers_existing_snapshot(make_service, indexer, tmp_path):
    indexer.generate_index(tmp_path / "public" / "search-index.json")
    service = make_service()

    with patch.object(SearchIndexer, "build_index") as build:
        assert service.init() is True
        build.assert_not_called()
    assert len(service.all_tags()) == 5


def test_init_without_content_is_not_ready(make_service, tmp_path):
    from blog_search.content import PostRepository

    service = make_service(indexer=SearchIndexer(PostRepository(tmp_path / "missing")))

    assert service.init() is False
    assert not service.ready
    with pytest.raises(IndexUnavailableError):
        service.search(QueryRequest(text="react"))


def test_index_is_reused_within_ttl(search_service, posts_dir, clock):
    write_post(posts_dir, "elixir-processes", NEW_POST)
    clock.advance(299)

    assert search_service.search(QueryRequest(text="elixir")).total == 0


def test_stale_index_is_rebuilt(search_service, posts_dir, clock):
    before = search_service.refresh_if_stale()
    write_post(posts_dir, "elixir-processes", NEW_POST)
    clock.advance(300)

    response = search_service.search(QueryRequest(text="elixir"))

    assert response.total == 1
    assert search_service.refresh_if_stale() is not before


def test_failed_rebuild_keeps_previous_index(search_service, clock):
    before = search_service.refresh_if_stale()
    clock.advance(301)

    with patch.object(SearchIndexer, "build_index", side_effect=RuntimeError("disk gone")) as build:
        assert search_service.refresh_if_stale() is before
        # Next attempt is deferred by one TTL
        assert search_service.refresh_if_stale() is before
        assert build.call_count == 1

        clock.advance(300)
        search_service.refresh_if_stale()
        assert build.call_count == 2

    response = search_service.search(QueryRequest(text="react"))
    assert response.results[0].document.slug == REACT_SLUG


def test_forced_refresh_failure_raises(search_service):
    with patch.object(SearchIndexer, "build_index", side_effect=RuntimeError("boom")):
        with pytest.raises(IndexUnavailableError):
            search_service.refresh()
    assert search_service.ready


def test_search_uses_query_cache(search_service):
    request = QueryRequest(text="react")
    first = search_service.search(request)

    with patch.object(search_service.refresh_if_stale().engine, "search") as engine_search:
        second = search_service.search(QueryRequest(text="  REACT "))
        engine_search.assert_not_called()

    assert second.results == first.results
    assert second.query == "REACT"
    assert search_service.cache.stats()["hits"] == 1


def test_cache_hit_with_same_text_is_returned_as_is(search_service):
    first = search_service.search(QueryRequest(text="react"))
    assert search_service.search(QueryRequest(text="react")) is first


def test_response_from_replaced_index_is_not_cached(search_service):
    engine = search_service.refresh_if_stale().engine
    real_search = engine.search

    def search_then_swap(request):
        response = real_search(request)
        search_service.refresh()
        return response

    with patch.object(engine, "search", side_effect=search_then_swap):
        search_service.search(QueryRequest(text="react"))

    assert len(search_service.cache) == 0


def test_readers_keep_old_index_during_rebuild(search_service, indexer, clock):
    before = search_service.refresh_if_stale()
    real_build = indexer.build_index
    started = threading.Event()
    release = threading.Event()

    def slow_build():
        started.set()
        release.wait(timeout=5)
        return real_build()

    clock.advance(300)
    with patch.object(indexer, "build_index", side_effect=slow_build):
        rebuilder = threading.Thread(target=search_service.refresh_if_stale)
        rebuilder.start()
        assert started.wait(timeout=5)

        t0 = time.perf_counter()
        response = search_service.search(QueryRequest(text="react"))
        waited = time.perf_counter() - t0

        release.set()
        rebuilder.join(timeout=5)

    assert waited < 1
    assert response.results[0].document.slug == REACT_SLUG
    assert search_service.refresh_if_stale() is not before


def test_injected_collaborators_are_kept(indexer, tmp_path):
    cache = QueryCache(ttl=5, max_size=3)
    analytics = SearchAnalytics(storage_path=tmp_path / "a.json")

    service = SearchService(indexer, tmp_path / "index.json", cache=cache, analytics=analytics)

    assert service.cache is cache
    assert service.analytics is analytics


def test_create_search_service_applies_settings():
    service = create_search_service(settings)

    assert service.cache.ttl == settings.SEARCH_CACHE_TTL_SEC
    assert service.cache.max_size == settings.SEARCH_CACHE_MAX_SIZE
    assert service.analytics.max_entries == settings.ANALYTICS_MAX_ENTRIES
    assert str(service.analytics.storage_path) == str(settings.ANALYTICS_PATH)
    assert service.index_ttl == settings.INDEX_TTL_SEC


def test_index_swap_clears_cache(search_service):
    search_service.search(QueryRequest(text="react"))
    assert len(search_service.cache) == 1

    search_service.refresh()

    assert len(search_service.cache) == 0


def test_every_query_is_tracked_including_cache_hits(search_service):
    search_service.search(QueryRequest(text="react"), client_tag="agent")
    search_service.search(QueryRequest(text="react"))
    search_service.search(QueryRequest(text="zzzz"))
    search_service.search(QueryRequest(text=""))

    stats = search_service.analytics.stats()
    assert stats["totalSearches"] == 3
    assert stats["noResultQueries"] == [{"query": "zzzz", "count": 1}]


def test_stats_view(search_service):
    stats = search_service.stats().to_dict()

    assert stats["totalPosts"] == 3
    assert stats["totalTags"] == 5
    assert stats["averageReadingTime"] == 1
    assert stats["averageWordCount"] > 0
    assert stats["lastUpdated"].endswith("Z")


def test_recent_posts(search_service):
    assert [d.slug for d in search_service.recent_posts(1)] == [REACT_SLUG]


def test_shutdown_persists_analytics(search_service, tmp_path):
    search_service.search(QueryRequest(text="react"))
    search_service.shutdown()

    assert (tmp_path / "analytics.json").is_file()
