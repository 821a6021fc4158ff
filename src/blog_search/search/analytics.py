"""
Search Analytics

Bounded in-memory log of completed queries, with popularity and zero-result
views. Persistence to a JSON file is best effort and never raises.
"""

import json
import logging
import threading
from collections import Counter, deque
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from blog_search.search.cache import normalize_query
from blog_search.search.models import AnalyticsSample, format_timestamp

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 1000
DEFAULT_PERSIST_ENTRIES = 100
MIN_TERM_LENGTH = 2


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SearchAnalytics:
    """Ring buffer of AnalyticsSample objects, guarded by a lock."""

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        storage_path: str | Path | None = None,
        persist_entries: int = DEFAULT_PERSIST_ENTRIES,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self.storage_path = Path(storage_path) if storage_path else None
        self.persist_entries = persist_entries
        self._clock = clock
        self._samples: deque[AnalyticsSample] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def track(
        self, query: str, result_count: int, client_tag: str | None = None
    ) -> AnalyticsSample:
        """Record one completed query; the oldest sample drops out when full."""
        sample = AnalyticsSample(
            query=normalize_query(query),
            result_count=max(0, int(result_count)),
            timestamp=format_timestamp(self._clock()),
            client_tag=client_tag,
        )
        with self._lock:
            self._samples.append(sample)
        return sample

    def samples(self) -> list[AnalyticsSample]:
        with self._lock:
            return list(self._samples)

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    def popular_terms(self, limit: int = 10) -> list[dict[str, Any]]:
        counts = Counter(
            s.query for s in self.samples() if len(s.query) >= MIN_TERM_LENGTH
        )
        return [{"term": q, "count": c} for q, c in counts.most_common(max(limit, 0))]

    def no_result_queries(self, limit: int = 10) -> list[dict[str, Any]]:
        counts = Counter(
            s.query
            for s in self.samples()
            if s.result_count == 0 and len(s.query) >= MIN_TERM_LENGTH
        )
        return [{"query": q, "count": c} for q, c in counts.most_common(max(limit, 0))]

    def stats(self) -> dict[str, Any]:
        samples = self.samples()
        total = len(samples)
        zero = sum(1 for s in samples if s.result_count == 0)
        return {
            "totalSearches": total,
            "uniqueQueries": len({s.query for s in samples}),
            "averageResultCount": (
                sum(s.result_count for s in samples) / total if total else 0
            ),
            "noResultRate": zero / total if total else 0,
            "popularTerms": self.popular_terms(5),
            "noResultQueries": self.no_result_queries(5),
        }

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()
        if self.storage_path is not None:
            try:
                self.storage_path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning(f"Failed to remove search analytics: {exc}")

    def persist(self) -> bool:
        """Write the most recent samples to storage. Returns False on failure."""
        if self.storage_path is None:
            return False
        recent = self.samples()[-self.persist_entries :] if self.persist_entries else []
        try:
            self.storage_path.parent.mkdir(parents=True, exist_ok=True)
            self.storage_path.write_text(
                json.dumps([s.to_dict() for s in recent]), encoding="utf-8"
            )
        except (OSError, TypeError, ValueError) as exc:
            logger.warning(f"Failed to store search analytics: {exc}")
            return False
        return True

    def load_from_storage(self) -> int:
        """Replace the buffer with stored samples; returns how many were loaded."""
        if self.storage_path is None or not self.storage_path.is_file():
            return 0
        try:
            data = json.loads(self.storage_path.read_text(encoding="utf-8"))
            if not isinstance(data, list):
                raise ValueError("analytics file must hold a list")
            loaded = [AnalyticsSample.from_dict(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning(f"Failed to load search analytics: {exc}")
            return 0
        with self._lock:
            self._samples.clear()
            self._samples.extend(loaded)
        return len(loaded)
