"""
Unit tests for Pydantic Settings configuration.

Tests defaults, environment loading and validation.
"""

import pytest
from unittest.mock import patch
from pydantic import ValidationError

from chatdesk.config.settings import Settings


class TestSettings:
    """Tests for Settings configuration."""

    def test_defaults(self):
        """Settings should have sensible defaults."""
        with patch.dict("os.environ", {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.poll_interval_seconds == 5.0
        assert settings.whatsapp_api_base_url == "https://api.whatsiplus.com"
        assert settings.default_country_code == "98"
        assert settings.trial_days == 7
        assert settings.reply_max_length == 200
        assert settings.poll_global_with_personal_tokens is True
        assert settings.database_url is None
        assert settings.is_development is True
        assert settings.is_production is False

    def test_loads_from_env(self):
        env = {
            "POLL_INTERVAL_SECONDS": "12.5",
            "POLL_GLOBAL_WITH_PERSONAL_TOKENS": "false",
            "ADMIN_API_KEY": "secret",
            "ENVIRONMENT": "production",
        }
        with patch.dict("os.environ", env, clear=True):
            settings = Settings(_env_file=None)

        assert settings.poll_interval_seconds == 12.5
        assert settings.poll_global_with_personal_tokens is False
        assert settings.admin_api_key == "secret"
        assert settings.is_production is True

    def test_country_code_plus_stripped(self):
        assert Settings(_env_file=None, default_country_code="+44").default_country_code == "44"

    @pytest.mark.parametrize("overrides", [
        {"poll_interval_seconds": 0},
        {"subscription_job_interval_seconds": -1},
        {"reply_max_length": 0},
        {"default_country_code": "98a"},
    ])
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **overrides)

    def test_allowed_origins_includes_localhost(self):
        """allowed_origins should include localhost for development."""
        settings = Settings(_env_file=None)

        assert "http://localhost:5173" in settings.allowed_origins
        assert "http://localhost:3000" in settings.allowed_origins
