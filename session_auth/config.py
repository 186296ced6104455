"""Auth configuration management."""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

# Load .env file before reading config
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path, override=True)
else:
    load_dotenv(override=True)


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


_ENVIRONMENT = os.getenv("ENVIRONMENT", "development").strip().lower()

# Generated per process; Config.validate() rejects them in production.
_DEFAULT_ACCESS_SECRET = secrets.token_urlsafe(32)
_DEFAULT_REFRESH_SECRET = secrets.token_urlsafe(32)


@dataclass(frozen=True)
class AuthConfig:
    """Configuration values for session credential flows."""

    ENVIRONMENT: str = _ENVIRONMENT

    ACCESS_TOKEN_SECRET: str = os.getenv("ACCESS_TOKEN_SECRET") or _DEFAULT_ACCESS_SECRET
    REFRESH_TOKEN_SECRET: str = os.getenv("REFRESH_TOKEN_SECRET") or _DEFAULT_REFRESH_SECRET
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))
    REFRESH_TOKEN_EXPIRE_HOURS: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_HOURS", "24"))
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")

    # Replace the stored refresh token on every successful refresh.
    ROTATE_REFRESH_TOKENS: bool = _parse_bool(os.getenv("ROTATE_REFRESH_TOKENS"), False)

    COOKIE_SECURE: bool = _parse_bool(os.getenv("COOKIE_SECURE"), _ENVIRONMENT == "production")
    COOKIE_HTTP_ONLY: bool = _parse_bool(os.getenv("COOKIE_HTTP_ONLY"), True)
    COOKIE_SAMESITE: str = os.getenv("COOKIE_SAME_SITE", "strict")
    COOKIE_DOMAIN: str | None = os.getenv("COOKIE_DOMAIN")
    ACCESS_COOKIE_NAME: str = os.getenv("ACCESS_COOKIE_NAME", "accessToken")
    REFRESH_COOKIE_NAME: str = os.getenv("REFRESH_COOKIE_NAME", "refreshToken")

    # Auth store: "postgres" (production) or "memory" (testing)
    AUTH_STORE: str = os.getenv("AUTH_STORE", "postgres")

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.ACCESS_TOKEN_EXPIRE_MINUTES)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return timedelta(hours=self.REFRESH_TOKEN_EXPIRE_HOURS)

    @property
    def uses_generated_secrets(self) -> bool:
        return (
            self.ACCESS_TOKEN_SECRET == _DEFAULT_ACCESS_SECRET
            or self.REFRESH_TOKEN_SECRET == _DEFAULT_REFRESH_SECRET
        )
