"""Test service configuration."""

import pytest

from blog_search.core import infrastructure_config
from blog_search.core.config import Settings, _validate, settings
from blog_search.core.infrastructure_config import Environment


class TestEnvironment:
    """Test ENVIRONMENT parsing."""

    def test_environment_is_required(self, monkeypatch):
        """A missing ENVIRONMENT should fail fast."""
        monkeypatch.delenv("ENVIRONMENT", raising=False)

        with pytest.raises(RuntimeError, match="ENVIRONMENT is required"):
            infrastructure_config._get_environment()

    def test_environment_is_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "Production")
        assert infrastructure_config._get_environment() is Environment.PRODUCTION

    def test_invalid_environment(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "staging")

        with pytest.raises(RuntimeError, match="Invalid ENVIRONMENT value"):
            infrastructure_config._get_environment()


class TestSettings:
    """Test Settings defaults and validation."""

    def test_defaults(self):
        assert settings.ENVIRONMENT is Environment.TEST
        assert settings.INDEX_TTL_SEC == 300
        assert settings.FUZZY_THRESHOLD == 0.4
        assert settings.SEARCH_CACHE_MAX_SIZE == 50
        assert settings.MAX_RESULTS_LIMIT == 50

    def test_has_path_fields(self):
        """Service settings should inherit infrastructure paths."""
        assert hasattr(settings, "CONTENT_DIR")
        assert hasattr(settings, "SEARCH_INDEX_PATH")
        assert hasattr(settings, "ANALYTICS_PATH")

    def test_rate_limit_notation(self):
        custom = Settings()
        custom.RATE_LIMIT_MAX_REQUESTS = 5
        custom.RATE_LIMIT_WINDOW_SEC = 10
        assert custom.RATE_LIMIT == "5 per 10 seconds"

    def test_validate_accepts_defaults(self):
        _validate(Settings())

    def test_validate_rejects_bad_threshold(self):
        custom = Settings()
        custom.FUZZY_THRESHOLD = 1.5

        with pytest.raises(RuntimeError, match="FUZZY_THRESHOLD"):
            _validate(custom)

    def test_validate_reports_every_problem(self):
        custom = Settings()
        custom.INDEX_TTL_SEC = 0
        custom.SEARCH_CACHE_MAX_SIZE = -1

        with pytest.raises(RuntimeError) as exc_info:
            _validate(custom)
        assert "INDEX_TTL_SEC" in str(exc_info.value)
        assert "SEARCH_CACHE_MAX_SIZE" in str(exc_info.value)
