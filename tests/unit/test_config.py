"""
Unit tests for application settings.
"""

import pytest
from pydantic import ValidationError

from api.src.config import MaskRule, Settings, clear_settings_cache, get_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    clear_settings_cache()
    yield
    clear_settings_cache()


class TestSettingsDefaults:
    """Test default values."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("USER_API_MONGO_URI", raising=False)
        settings = Settings(_env_file=None)

        assert settings.port == 8080
        assert settings.mongo_uri == "mongodb://localhost:27017"
        assert settings.mongo_database == "masterdata"
        assert settings.mongo_collection == "users"
        assert settings.pagination_default_limit == 20
        assert settings.pagination_max_limit == 1000
        assert settings.request_id_header == "X-Request-ID"
        assert "/health" in settings.log_skip_paths

    def test_default_mask_rules(self):
        settings = Settings(_env_file=None)

        assert settings.log_mask_rules["phone"] == MaskRule(start=0, end=3, char="*")
        assert settings.log_mask_rules["password"] == MaskRule()


class TestSettingsEnvironment:
    """Test environment variable overrides."""

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("USER_API_MONGO_URI", "mongodb://db:27017")
        monkeypatch.setenv("USER_API_PAGINATION_DEFAULT_LIMIT", "50")

        settings = Settings(_env_file=None)

        assert settings.mongo_uri == "mongodb://db:27017"
        assert settings.pagination_default_limit == 50

    def test_json_env_for_mappings(self, monkeypatch):
        monkeypatch.setenv("USER_API_LOG_MASK_RULES", '{"email": {"start": 1, "end": 4, "char": "#"}}')

        settings = Settings(_env_file=None)

        assert settings.log_mask_rules == {"email": MaskRule(start=1, end=4, char="#")}

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestSettingsValidation:
    """Test validators."""

    def test_log_level_normalized(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"log_level": "LOUD"},
            {"environment": "moon"},
            {"log_format": "xml"},
            {"pagination_default_limit": 0},
        ],
    )
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **overrides)

    def test_json_logs(self):
        assert Settings(_env_file=None, log_format="json").json_logs
        assert not Settings(_env_file=None, log_format="text").json_logs
