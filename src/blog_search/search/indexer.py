"""
Search Index Builder

Builds the in-memory search index from the content collaborator and
persists/loads it as a JSON snapshot for fast cold starts.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from blog_search.search.extractor import extract_document
from blog_search.search.models import SearchableDocument, SearchIndex, format_timestamp

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0.0"


class ContentSource(Protocol):
    """What the indexer needs from the content collaborator."""

    def list_document_ids(self) -> list[str]: ...

    def read_document(self, slug: str) -> str | None: ...


class SearchIndexer:
    """Builds, saves and loads SearchIndex snapshots."""

    def __init__(
        self,
        source: ContentSource,
        url_prefix: str = "/blog",
        schema_version: str = SCHEMA_VERSION,
    ):
        self.source = source
        self.url_prefix = url_prefix
        self.schema_version = schema_version

    def build_index(self) -> SearchIndex:
        """
        Extract every post and return a new index, newest first.

        Posts that cannot be read or parsed are skipped with a warning.

        Raises:
            ContentUnavailableError: if the content source cannot be enumerated
        """
        logger.info("Building search index...")
        slugs = self.source.list_document_ids()

        documents: list[SearchableDocument] = []
        seen: set[str] = set()
        for slug in slugs:
            if slug in seen:
                logger.warning("Duplicate post slug skipped: %s", slug)
                continue
            document = self._process_post(slug)
            if document is not None:
                documents.append(document)
                seen.add(slug)

        # Stable sort: equal timestamps keep enumeration order
        documents.sort(key=lambda doc: doc.created, reverse=True)

        index = SearchIndex(
            documents=tuple(documents),
            built_at=format_timestamp(datetime.now(timezone.utc)),
            schema_version=self.schema_version,
        )
        logger.info("Search index built with %d posts", len(documents))
        return index

    def _process_post(self, slug: str) -> SearchableDocument | None:
        try:
            source = self.source.read_document(slug)
            if source is None:
                return None
            return extract_document(slug, source, url_prefix=self.url_prefix)
        except Exception as e:
            logger.warning("Error processing post %s: %s", slug, e)
            return None

    def save_index(self, index: SearchIndex, path: str | os.PathLike) -> None:
        """Write the snapshot atomically, creating parent directories."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(index.to_dict(), indent=2, ensure_ascii=False)
        _write_atomic(target, payload)
        logger.info("Search index saved to: %s", target)

    def load_index(self, path: str | os.PathLike) -> SearchIndex | None:
        """
        Load a snapshot, or return None if it is missing, unparsable or was
        written with a different schema version.
        """
        source = Path(path)
        if not source.is_file():
            logger.warning("Search index not found: %s", source)
            return None

        try:
            data = json.loads(source.read_text(encoding="utf-8"))
            index = SearchIndex.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error("Error loading search index from %s: %s", source, e)
            return None

        if index.schema_version != self.schema_version:
            logger.warning(
                "Ignoring search index %s: version %s, expected %s",
                source,
                index.schema_version,
                self.schema_version,
            )
            return None
        return index

    def generate_index(self, path: str | os.PathLike) -> SearchIndex:
        """Build a fresh index and save it to `path`."""
        index = self.build_index()
        self.save_index(index, path)
        return index


@retry(
    retry=retry_if_exception_type(PermissionError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, max=1),
    reraise=True,
)
def _write_atomic(target: Path, payload: str) -> None:
    """Write via a temp file in the same directory, then replace."""
    fd, tmp_name = tempfile.mkstemp(
        dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise
