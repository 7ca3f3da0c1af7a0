"""Tests for application and auth settings."""

import pytest
from pydantic import ValidationError

from config.database import DatabaseSettings
from config.settings import (
    AuthSettings,
    Settings,
    StartupSecurityError,
    get_auth_settings,
    validate_startup_security,
)


class TestAuthSettings:

    def test_defaults(self):
        settings = AuthSettings()
        assert settings.undeclared_policy == "allow"
        assert not settings.deny_undeclared
        assert settings.builtin_admin_enabled
        assert settings.jwt_algorithm == "HS256"

    def test_undeclared_policy_from_environment(self, monkeypatch):
        monkeypatch.setenv("AUTH_UNDECLARED_POLICY", " DENY ")
        assert get_auth_settings().deny_undeclared

    def test_invalid_undeclared_policy(self):
        with pytest.raises(ValidationError):
            AuthSettings(undeclared_policy="maybe")

    def test_asymmetric_algorithm_rejected(self):
        with pytest.raises(ValidationError):
            AuthSettings(jwt_algorithm="RS256")

    def test_uses_default_secret(self, auth_settings):
        assert AuthSettings().uses_default_secret
        assert not auth_settings.uses_default_secret


class TestProductionValidation:

    def test_development_skips_checks(self):
        assert Settings(environment="development").validate_production_security() == []

    def test_default_secret_rejected_in_production(self):
        errors = Settings(environment="production").validate_production_security()
        assert any("AUTH_JWT_SECRET" in e for e in errors)

    def test_short_secret_rejected(self, monkeypatch):
        monkeypatch.setenv("AUTH_JWT_SECRET", "short")
        errors = Settings(environment="production").validate_production_security()
        assert errors == ["AUTH_JWT_SECRET: Must be at least 32 characters"]

    def test_default_seed_password_rejected(self, monkeypatch):
        monkeypatch.setenv("AUTH_JWT_SECRET", "x" * 64)
        monkeypatch.setenv("AUTH_SEED_ADMINS", "true")
        errors = Settings(environment="staging").validate_production_security()
        assert len(errors) == 1
        assert errors[0].startswith("AUTH_SEED_SUPER_ADMIN_PASSWORD")

    def test_startup_validation_raises(self):
        with pytest.raises(StartupSecurityError):
            validate_startup_security(Settings(environment="production"), exit_on_failure=False)

    def test_startup_validation_passes(self, monkeypatch):
        monkeypatch.setenv("AUTH_JWT_SECRET", "x" * 64)
        assert validate_startup_security(Settings(environment="production"), exit_on_failure=False)

    def test_log_level_uppercased(self):
        assert Settings(log_level="debug").log_level == "DEBUG"


class TestDatabaseSettings:

    def test_url_override(self):
        settings = DatabaseSettings(url="sqlite+aiosqlite:///:memory:")
        assert settings.async_url == "sqlite+aiosqlite:///:memory:"
        assert settings.is_sqlite
        assert settings.get_connect_args() == {"check_same_thread": False}

    def test_postgres_url(self):
        settings = DatabaseSettings(
            url=None, driver="postgresql+asyncpg", host="db", port=5433,
            name="market", user="app", password="pw",
        )
        assert settings.async_url == "postgresql+asyncpg://app:pw@db:5433/market"
        assert not settings.is_sqlite
        assert settings.get_connect_args() == {}
