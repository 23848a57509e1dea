"""
Tests for application configuration.
"""

import os
from unittest.mock import patch

import pytest


class TestAppModeEnum:
    """Tests for AppMode enum."""

    def test_app_mode_values(self):
        from config import AppMode

        assert AppMode.DEV.value == "dev"
        assert AppMode.PROD.value == "prod"

    def test_app_mode_from_string(self):
        from config import AppMode

        assert AppMode("dev") == AppMode.DEV
        assert AppMode("prod") == AppMode.PROD


class TestSettingsDefaults:
    """Tests for Settings default values."""

    def test_defaults(self):
        """Defaults favour local development."""
        with patch.dict(os.environ, {}, clear=True):
            from config import AppMode, Settings

            settings = Settings(_env_file=None)
            assert settings.APP_MODE == AppMode.DEV
            assert settings.DEBUG is False
            assert settings.HOST == "0.0.0.0"
            assert settings.PORT == 8000
            assert settings.STORAGE_BACKEND == "local"
            assert settings.UPLOAD_DIR == "uploads"
            assert settings.GENERATED_DIR == "generated"
            assert settings.S3_PUBLIC_READ is True
            assert settings.MAX_UPLOAD_SIZE_BYTES == 10 * 1024 * 1024

    def test_ai_disabled_without_key(self):
        with patch.dict(os.environ, {}, clear=True):
            from config import Settings

            assert Settings(_env_file=None).ai_enabled is False
            assert Settings(_env_file=None, GOOGLE_API_KEY="k").ai_enabled is True


class TestSettingsFromEnvironment:
    """Tests for reading settings from environment variables."""

    def test_env_overrides(self):
        env = {
            "APP_MODE": "prod",
            "STORAGE_BACKEND": "s3",
            "S3_BUCKET": "fluxstyle-assets",
            "GOOGLE_API_KEY": "secret",
            "API_TIMEOUT_SECONDS": "30",
        }
        with patch.dict(os.environ, env, clear=True):
            from config import AppMode, Settings

            settings = Settings(_env_file=None)
            assert settings.APP_MODE == AppMode.PROD
            assert settings.STORAGE_BACKEND == "s3"
            assert settings.S3_BUCKET == "fluxstyle-assets"
            assert settings.GOOGLE_API_KEY == "secret"
            assert settings.API_TIMEOUT_SECONDS == 30

    def test_unknown_env_vars_are_ignored(self):
        with patch.dict(os.environ, {"SOMETHING_ELSE": "x"}, clear=True):
            from config import Settings

            Settings(_env_file=None)


class TestCorsOrigins:
    """Tests for the CORS_ORIGINS property."""

    def test_dev_includes_localhost(self):
        from config import Settings

        settings = Settings(_env_file=None, APP_MODE="dev")
        assert "http://localhost:3000" in settings.CORS_ORIGINS
        assert "http://localhost:5173" in settings.CORS_ORIGINS

    def test_prod_only_custom_origins(self):
        from config import Settings

        settings = Settings(
            _env_file=None,
            APP_MODE="prod",
            CORS_ALLOWED_ORIGINS="https://fluxstyle.app, https://www.fluxstyle.app,",
        )
        assert settings.CORS_ORIGINS == ["https://fluxstyle.app", "https://www.fluxstyle.app"]


class TestValidateSettings:
    """Tests for _validate_settings."""

    def test_debug_in_production_is_fatal(self):
        from config import Settings, _validate_settings

        settings = Settings(_env_file=None, APP_MODE="prod", DEBUG=True)
        with pytest.raises(ValueError, match="DEBUG=True in production"):
            _validate_settings(settings)

    def test_missing_api_key_only_warns(self, caplog):
        from config import Settings, _validate_settings

        settings = Settings(_env_file=None, GOOGLE_API_KEY="")
        assert _validate_settings(settings) is settings
        assert "GOOGLE_API_KEY is not configured" in caplog.text

    def test_local_storage_in_production_warns(self, caplog):
        from config import Settings, _validate_settings

        settings = Settings(
            _env_file=None,
            APP_MODE="prod",
            STORAGE_BACKEND="local",
            GOOGLE_API_KEY="k",
            CORS_ALLOWED_ORIGINS="https://fluxstyle.app",
        )
        _validate_settings(settings)
        assert "STORAGE_BACKEND=local in production" in caplog.text

    def test_get_settings_is_cached(self):
        from config import get_settings

        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
