"""In-process full-text search for the blog."""

__version__ = "0.1.0"
