"""Test fixtures for the blog search service."""

import os
import shutil
from pathlib import Path

# Set ENVIRONMENT before importing any modules that use infrastructure_config
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CACHE_SWEEP_INTERVAL_SEC", "0")

import pytest
from fastapi.testclient import TestClient

from blog_search.api.middleware.rate_limiter import limiter
from blog_search.content import PostRepository
from blog_search.search.analytics import SearchAnalytics
from blog_search.search.cache import QueryCache
from blog_search.search.indexer import SearchIndexer
from blog_search.services.search import SearchService

FIXTURE_POSTS = Path(__file__).parent / "fixtures" / "posts"

REACT_SLUG = "intro-to-react-hooks"
RUST_SLUG = "rust-ownership-basics"
TS_SLUG = "typescript-generics-deep-dive"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def write_post(directory: Path, slug: str, source: str) -> Path:
    path = directory / f"{slug}.mdx"
    path.write_text(source, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def posts_dir(tmp_path):
    """A writable copy of the three-post scenario corpus."""
    target = tmp_path / "posts"
    shutil.copytree(FIXTURE_POSTS, target)
    return target


@pytest.fixture
def indexer(posts_dir):
    return SearchIndexer(PostRepository(posts_dir))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_service(tmp_path, indexer, clock):
    """Factory for SearchService instances over the scenario corpus."""

    def _make(**overrides) -> SearchService:
        options = {
            "indexer": indexer,
            "index_path": tmp_path / "public" / "search-index.json",
            "cache": QueryCache(clock=clock),
            "analytics": SearchAnalytics(storage_path=tmp_path / "analytics.json"),
            "index_ttl": 300,
            "clock": clock,
        }
        options.update(overrides)
        return SearchService(**options)

    return _make


@pytest.fixture
def search_service(make_service):
    service = make_service()
    assert service.init()
    return service


@pytest.fixture
def client(search_service):
    from blog_search.api.main import app

    app.state.search_service = search_service
    yield TestClient(app)
    app.state.search_service = None
