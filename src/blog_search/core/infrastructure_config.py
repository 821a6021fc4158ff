"""
Infrastructure Configuration

Where the blog's content, the index snapshot and analytics data live, and
which environment the process runs in. Service settings extend this class.
"""

import os
from enum import Enum
from pathlib import Path


class Environment(str, Enum):
    """Deployment environment"""

    PRODUCTION = "production"
    DEVELOPMENT = "development"
    TEST = "test"


_ENVIRONMENT_CHOICES = ", ".join(f"'{e.value}'" for e in Environment)


def _get_environment() -> Environment:
    """Read ENVIRONMENT; there is no default so a misdeployed process fails at import."""
    raw = os.getenv("ENVIRONMENT")
    if raw is None or not raw.strip():
        raise RuntimeError(f"ENVIRONMENT is required. Set to one of {_ENVIRONMENT_CHOICES}.")
    try:
        return Environment(raw.strip().lower())
    except ValueError:
        raise RuntimeError(
            f"Invalid ENVIRONMENT value: '{raw}'. Must be one of {_ENVIRONMENT_CHOICES}."
        )


class InfrastructureSettings:
    """Filesystem layout of the blog plus the deployment environment"""

    BASE_DIR: Path = Path(os.getenv("BLOG_BASE_DIR", Path.cwd()))
    DATA_DIR: Path = Path(os.getenv("DATA_DIR", str(BASE_DIR / "data")))

    # One .mdx file per post
    CONTENT_DIR: str = os.getenv("CONTENT_DIR", str(BASE_DIR / "content" / "posts"))

    # Index snapshot written at build time and read on cold start
    SEARCH_INDEX_PATH: str = os.getenv(
        "SEARCH_INDEX_PATH", str(BASE_DIR / "public" / "search-index.json")
    )

    # Best-effort analytics store
    ANALYTICS_PATH: str = os.getenv(
        "ANALYTICS_PATH", str(DATA_DIR / "search-analytics.json")
    )

    ENVIRONMENT: Environment = _get_environment()


settings = InfrastructureSettings()
