"""
Post Repository

Enumerates and reads raw MDX posts from the content directory.
One file per post; the slug is the file name without the `.mdx` suffix.
"""

import logging
import os
from pathlib import Path

from blog_search.search.errors import ContentUnavailableError

logger = logging.getLogger(__name__)

POST_SUFFIX = ".mdx"


class PostRepository:
    """Read-only access to the posts directory."""

    def __init__(self, posts_dir: str | os.PathLike):
        self.posts_dir = Path(posts_dir)

    def list_document_ids(self) -> list[str]:
        """
        Return all post slugs, sorted.

        Raises:
            ContentUnavailableError: if the posts directory does not exist
        """
        if not self.posts_dir.is_dir():
            raise ContentUnavailableError(f"Posts directory not found: {self.posts_dir}")

        return sorted(
            entry.name[: -len(POST_SUFFIX)]
            for entry in self.posts_dir.iterdir()
            if entry.is_file() and entry.name.endswith(POST_SUFFIX)
        )

    def read_document(self, slug: str) -> str | None:
        """Return the raw source of a post, or None if it does not exist."""
        path = self._path_for(slug)
        if path is None or not path.is_file():
            logger.warning("Post file not found: %s", path or slug)
            return None
        return path.read_text(encoding="utf-8")

    def _path_for(self, slug: str) -> Path | None:
        # Slugs come from file names; anything with a separator is not ours
        if not slug or "/" in slug or "\\" in slug or slug in (".", ".."):
            return None
        return self.posts_dir / f"{slug}{POST_SUFFIX}"
