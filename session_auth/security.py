"""Security utilities for auth: token signing and password hashing."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

import bcrypt
from jose import JWTError, jwt

from session_auth.exceptions import InvalidToken
from session_auth.models import TokenClaims

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    password_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    try:
        password_bytes = password.encode("utf-8")
        hashed_bytes = hashed_password.encode("utf-8")
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        # Malformed stored hash
        return False


def mint_token(
    subject_id: str,
    ttl: timedelta,
    secret: str,
    token_type: str = ACCESS_TOKEN_TYPE,
    algorithm: str = "HS256",
) -> str:
    """Sign a token for ``subject_id`` that expires ``ttl`` from now."""
    now = datetime.now(timezone.utc)
    expire = now + ttl
    payload: dict[str, Any] = {
        "sub": str(subject_id),
        "type": token_type,
        "exp": expire,
        "iat": now,
        "jti": uuid4().hex,
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def verify_token(
    token: str,
    secret: str,
    token_type: str | None = None,
    algorithm: str = "HS256",
    now: datetime | None = None,
) -> TokenClaims:
    """
    Verify signature, structure and expiry of a token.

    Expiry is checked here rather than by jose so that a token whose
    ``exp`` equals the current second is already rejected.

    Raises:
        InvalidToken: on any failure.
    """
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"verify_exp": False},
        )
    except (JWTError, AttributeError, TypeError) as exc:
        raise InvalidToken() from exc

    subject_id = payload.get("sub")
    exp = payload.get("exp")
    if not subject_id or not isinstance(exp, (int, float)):
        raise InvalidToken()
    if token_type is not None and payload.get("type") != token_type:
        raise InvalidToken()

    expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
    current = now or datetime.now(timezone.utc)
    if expires_at <= current:
        raise InvalidToken()

    iat = payload.get("iat")
    issued_at = datetime.fromtimestamp(iat, tz=timezone.utc) if isinstance(iat, (int, float)) else None
    return TokenClaims(
        subject_id=str(subject_id),
        token_type=str(payload.get("type", "")),
        token_id=payload.get("jti"),
        issued_at=issued_at,
        expires_at=expires_at,
    )
