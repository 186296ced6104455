"""Value types passed between the session layer and its callers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TokenClaims:
    subject_id: str
    token_type: str
    token_id: str | None
    issued_at: datetime | None
    expires_at: datetime


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of a refresh; ``refresh_token`` is only set when it was rotated."""

    access_token: str
    refresh_token: str | None = None

    @property
    def rotated(self) -> bool:
        return self.refresh_token is not None


@dataclass(frozen=True)
class SessionContext:
    """Authenticated principal for the current request."""

    principal_id: str
    expires_at: datetime
