#!/usr/bin/env python3
"""
Build the search index snapshot from the posts directory.

Run at build/deploy time so the API can cold-start from the snapshot
instead of extracting every post on its first request.

Usage:
    ENVIRONMENT=production python scripts/build_search_index.py \
        [--content-dir content/posts] [--output public/search-index.json]
"""

import argparse
import logging
import sys

from blog_search.content import PostRepository
from blog_search.core.config import settings
from blog_search.search.errors import ContentUnavailableError
from blog_search.search.indexer import SearchIndexer


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate the blog search index")
    parser.add_argument(
        "--content-dir", default=settings.CONTENT_DIR, help="Directory of .mdx posts"
    )
    parser.add_argument(
        "--output", default=settings.SEARCH_INDEX_PATH, help="Snapshot path to write"
    )
    parser.add_argument(
        "--url-prefix", default=settings.POST_URL_PREFIX, help="URL prefix for posts"
    )
    args = parser.parse_args(argv)

    indexer = SearchIndexer(
        PostRepository(args.content_dir),
        url_prefix=args.url_prefix,
        schema_version=settings.INDEX_SCHEMA_VERSION,
    )
    try:
        index = indexer.generate_index(args.output)
    except ContentUnavailableError as e:
        print(f"Error generating search index: {e}", file=sys.stderr)
        return 1

    tags = {tag for doc in index.documents for tag in doc.tags}
    print(f"Generated search index with {len(index.documents)} posts")
    print(f"Total tags: {len(tags)}")
    print(f"Index saved to: {args.output}")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())
