"""ScholarFund configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "secret_key": "insecure-dev-key-change-me",
    "api_key": "insecure-gateway-key-change-me",
}


class ScholarFundSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SCHOLARFUND_")

    environment: str = "development"
    secret_key: str = "insecure-dev-key-change-me"

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/scholarfund.db"

    # API
    api_title: str = "ScholarFund"
    api_version: str = "0.1.0"
    # Shared key held by the identity gateway that opens staff sessions
    api_key: str = "insecure-gateway-key-change-me"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Sessions
    session_max_age: int = 1800  # seconds

    # Audit: when true, a failed audit write aborts the business operation
    strict_audit: bool = False

    log_level: str = "INFO"

    # Dashboard feed size for /audit/recent
    recent_activity_limit: int = 10

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"SCHOLARFUND_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default keys — set SCHOLARFUND_SECRET_KEY and "
                "SCHOLARFUND_API_KEY for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> ScholarFundSettings:
    settings = ScholarFundSettings()
    settings.validate_for_production()
    return settings
