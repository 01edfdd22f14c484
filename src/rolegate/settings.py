"""
rolegate.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (e.g., JWT secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEV_SECRET = "dev-secret-change-me"


class Settings(BaseSettings):
    """
    Every field maps to a `ROLEGATE_*` environment variable.

    Defaults target local development; `env="prod"` refuses the bundled JWT secret.
    """

    model_config = SettingsConfigDict(env_prefix="ROLEGATE_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables and dev tokens.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "rolegate"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Session tokens
    jwt_alg: str = "HS256"
    jwt_issuer: str = "rolegate"
    jwt_audience: str = "rolegate-app"
    jwt_secret: str = Field(default=_DEV_SECRET, repr=False)
    session_ttl_minutes: int = 60

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./rolegate.db"

    # Remediation routes returned in RedirectTo decisions
    mfa_challenge_route: str = "/mfa-challenge"
    verification_route: str = "/verify-contact"
    pending_approval_route: str = "/pending-approval"

    # Policy knobs
    role_priority: Literal["alphabetical", "privilege"] = "alphabetical"
    require_approval: bool = False
    mfa_enforced_roles: list[str] = Field(default_factory=lambda: ["owner", "master"])

    # Remediation flows
    totp_issuer: str = "rolegate"
    verification_code_ttl_minutes: int = 10
    verification_max_attempts: int = 5
    backup_code_count: int = 10

    # Audit: persist to security_events, or log only
    audit_persist: bool = True
    audit_queue_size: int = 1000

    @model_validator(mode="after")
    def _no_dev_secret_in_prod(self) -> Settings:
        if self.env == "prod" and self.jwt_secret == _DEV_SECRET:
            raise ValueError("ROLEGATE_JWT_SECRET must be set in prod")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Route names here must match the routes the UI shell registers for its
# remediation screens; the engine only hands them back, it never navigates.
