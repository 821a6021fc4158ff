"""Filesystem content collaborator."""

from blog_search.content.posts import PostRepository

__all__ = ["PostRepository"]
