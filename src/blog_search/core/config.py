"""
Search Service Configuration

Service-specific configuration for the blog search service.
Inherits infrastructure settings.
"""

import os

from blog_search.core.infrastructure_config import InfrastructureSettings


class Settings(InfrastructureSettings):
    """Search service configuration"""

    # Application
    APP_NAME: str = "Blog Search"
    APP_VERSION: str = "1.0.0"

    # Index lifecycle
    INDEX_TTL_SEC: int = int(os.getenv("INDEX_TTL_SEC", "300"))
    INDEX_SCHEMA_VERSION: str = os.getenv("INDEX_SCHEMA_VERSION", "1.0.0")
    POST_URL_PREFIX: str = os.getenv("POST_URL_PREFIX", "/blog")

    # Ranking
    FUZZY_THRESHOLD: float = float(os.getenv("FUZZY_THRESHOLD", "0.4"))
    MIN_MATCH_CHAR_LENGTH: int = int(os.getenv("MIN_MATCH_CHAR_LENGTH", "2"))

    # Query cache
    SEARCH_CACHE_TTL_SEC: int = int(os.getenv("SEARCH_CACHE_TTL_SEC", "300"))
    SEARCH_CACHE_MAX_SIZE: int = int(os.getenv("SEARCH_CACHE_MAX_SIZE", "50"))
    CACHE_SWEEP_INTERVAL_SEC: int = int(os.getenv("CACHE_SWEEP_INTERVAL_SEC", "300"))

    # Analytics
    ANALYTICS_MAX_ENTRIES: int = int(os.getenv("ANALYTICS_MAX_ENTRIES", "1000"))
    ANALYTICS_PERSIST_ENTRIES: int = int(os.getenv("ANALYTICS_PERSIST_ENTRIES", "100"))

    # Rate limiting (fixed window, per client IP)
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() != "false"
    RATE_LIMIT_MAX_REQUESTS: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "30"))
    RATE_LIMIT_WINDOW_SEC: int = int(os.getenv("RATE_LIMIT_WINDOW_SEC", "60"))

    # Request caps
    MAX_QUERY_LEN: int = int(os.getenv("MAX_QUERY_LEN", "100"))
    MAX_AUTOCOMPLETE_QUERY_LEN: int = int(os.getenv("MAX_AUTOCOMPLETE_QUERY_LEN", "50"))
    MIN_AUTOCOMPLETE_QUERY_LEN: int = int(os.getenv("MIN_AUTOCOMPLETE_QUERY_LEN", "2"))
    RESULTS_LIMIT: int = int(os.getenv("RESULTS_LIMIT", "10"))
    MAX_RESULTS_LIMIT: int = int(os.getenv("MAX_RESULTS_LIMIT", "50"))
    AUTOCOMPLETE_LIMIT: int = int(os.getenv("AUTOCOMPLETE_LIMIT", "5"))
    MAX_AUTOCOMPLETE_LIMIT: int = int(os.getenv("MAX_AUTOCOMPLETE_LIMIT", "10"))
    MAX_POPULAR_TAGS_LIMIT: int = int(os.getenv("MAX_POPULAR_TAGS_LIMIT", "20"))
    MAX_RECENT_LIMIT: int = int(os.getenv("MAX_RECENT_LIMIT", "10"))
    MAX_BATCH_QUERIES: int = int(os.getenv("MAX_BATCH_QUERIES", "5"))

    # Security
    ALLOWED_HOSTS: list[str] = os.getenv(
        "ALLOWED_HOSTS", "localhost,127.0.0.1,testclient,testserver"
    ).split(",")
    CORS_ORIGINS: list[str] = (
        os.getenv("CORS_ORIGINS", "").split(",") if os.getenv("CORS_ORIGINS") else []
    )

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"

    @property
    def RATE_LIMIT(self) -> str:
        """Rate limit in slowapi/limits notation, e.g. '30 per 60 seconds'."""
        return f"{self.RATE_LIMIT_MAX_REQUESTS} per {self.RATE_LIMIT_WINDOW_SEC} seconds"


settings = Settings()


def _validate(settings: Settings) -> None:
    """Reject settings the search core cannot honour."""
    problems = []
    if not 0.0 <= settings.FUZZY_THRESHOLD <= 1.0:
        problems.append("FUZZY_THRESHOLD must be between 0 and 1")
    if settings.MIN_MATCH_CHAR_LENGTH < 1:
        problems.append("MIN_MATCH_CHAR_LENGTH must be at least 1")
    for name in (
        "INDEX_TTL_SEC",
        "SEARCH_CACHE_TTL_SEC",
        "SEARCH_CACHE_MAX_SIZE",
        "ANALYTICS_MAX_ENTRIES",
        "RATE_LIMIT_MAX_REQUESTS",
        "RATE_LIMIT_WINDOW_SEC",
        "MAX_RESULTS_LIMIT",
    ):
        if getattr(settings, name) <= 0:
            problems.append(f"{name} must be positive")
    if problems:
        raise RuntimeError("Invalid configuration: " + "; ".join(problems))


_validate(settings)
