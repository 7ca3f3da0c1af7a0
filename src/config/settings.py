"""Application settings using Pydantic Settings.

Centralized configuration for the marketplace admin API.

SECURITY: Production requires the following environment variables:
- AUTH_JWT_SECRET: JWT signing key (min 32 chars)
- AUTH_SEED_SUPER_ADMIN_PASSWORD: when admin seeding is enabled

Generate secrets with: python -c "import secrets; print(secrets.token_hex(32))"
"""

import sys
import logging
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_DEFAULT_JWT_SECRET = "change-me-in-production-INSECURE-development-secret"


class AuthSettings(BaseSettings):
    """Token verification, built-in administrator and seeding configuration."""

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Token verification
    jwt_secret: str = Field(
        default=_DEFAULT_JWT_SECRET,
        description="HS256 signing key - MUST be set in production",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    access_token_expire_hours: int = Field(default=8, ge=1, description="Access token lifetime")

    # Built-in administrator (no database row)
    builtin_admin_enabled: bool = Field(
        default=True,
        description="Accept tokens issued for the reserved administrator id",
    )
    builtin_admin_id: str = Field(default="ADMIN-001", description="Reserved administrator id")
    builtin_admin_email: str = Field(default="admin@marketplace.local")
    builtin_admin_name: str = Field(default="Administrator")

    # Routes without a declared requirement: "allow" or "deny"
    undeclared_policy: str = Field(
        default="allow",
        description="Permission guard policy for operations with no requirement",
    )

    # Admin seeding
    seed_admins: bool = Field(default=False, description="Seed admin accounts on startup")
    seed_super_admin_email: str = Field(default="superadmin@marketplace.local")
    seed_super_admin_password: str = Field(default="SuperAdmin123!")
    seed_super_admin_name: str = Field(default="Super Administrator")
    seed_content_admin_email: str = Field(default="content@marketplace.local")
    seed_content_admin_password: str = Field(default="ContentAdmin123!")
    seed_investment_admin_email: str = Field(default="investment@marketplace.local")
    seed_investment_admin_password: str = Field(default="InvestmentAdmin123!")
    seed_user_admin_email: str = Field(default="users@marketplace.local")
    seed_user_admin_password: str = Field(default="UserAdmin123!")

    @field_validator("undeclared_policy")
    @classmethod
    def _check_policy(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in ("allow", "deny"):
            raise ValueError("undeclared_policy must be 'allow' or 'deny'")
        return normalized

    @field_validator("jwt_algorithm")
    @classmethod
    def _check_algorithm(cls, value: str) -> str:
        if value not in ("HS256", "HS384", "HS512"):
            raise ValueError("Only HMAC JWT algorithms are supported")
        return value

    @property
    def deny_undeclared(self) -> bool:
        return self.undeclared_policy == "deny"

    @property
    def uses_default_secret(self) -> bool:
        return self.jwt_secret == _DEFAULT_JWT_SECRET


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application info
    name: str = Field(default="Marketplace Admin API", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    environment: str = Field(default="development", description="Environment name")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=False, description="Emit JSON log lines")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @property
    def auth(self) -> AuthSettings:
        return get_auth_settings()

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment in ("production", "prod", "staging")

    def validate_production_security(self) -> List[str]:
        """
        Validate all security requirements for production.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.is_production:
            return errors

        auth = self.auth
        if auth.uses_default_secret:
            errors.append(
                "AUTH_JWT_SECRET: Must be set in production. "
                "Generate with: python -c \"import secrets; print(secrets.token_hex(32))\""
            )
        elif len(auth.jwt_secret) < 32:
            errors.append("AUTH_JWT_SECRET: Must be at least 32 characters")

        if auth.seed_admins and auth.seed_super_admin_password == "SuperAdmin123!":
            errors.append("AUTH_SEED_SUPER_ADMIN_PASSWORD: Default password not allowed in production")

        return errors


# =============================================================================
# STARTUP VALIDATION
# =============================================================================

class StartupSecurityError(Exception):
    """Raised when security validation fails at startup."""
    pass


def validate_startup_security(settings: Settings, exit_on_failure: bool = True) -> bool:
    """
    Validate security settings at application startup.

    In production, fails fast if critical security settings are missing.

    Raises:
        StartupSecurityError: If validation fails and exit_on_failure is False
    """
    errors = settings.validate_production_security()

    if not errors:
        if settings.is_production:
            logger.info("Production security validation PASSED")
        return True

    error_msg = "Security configuration error:\n" + "\n".join(
        f"  {i}. {err}" for i, err in enumerate(errors, 1)
    )
    logger.critical(error_msg)

    if exit_on_failure:
        print(error_msg, file=sys.stderr)
        sys.exit(1)
    raise StartupSecurityError(error_msg)


@lru_cache
def get_auth_settings() -> AuthSettings:
    """Get cached auth settings instance."""
    return AuthSettings()


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Returns:
        Settings: Cached settings loaded from environment.
    """
    return Settings()


def get_validated_settings(exit_on_failure: bool = True) -> Settings:
    """Get settings with security validation. Call once at startup."""
    settings = get_settings()
    validate_startup_security(settings, exit_on_failure)
    return settings
