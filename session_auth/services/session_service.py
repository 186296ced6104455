"""Session credential lifecycle: login, refresh, logout."""

from __future__ import annotations

import asyncio
import hmac
import logging
from collections.abc import Awaitable
from typing import TypeVar

from session_auth.config import AuthConfig
from session_auth.exceptions import (
    AuthException,
    PersistenceError,
    PrincipalNotFound,
    SessionNotFound,
    TokenMismatch,
)
from session_auth.interfaces.credential_store import CredentialStore
from session_auth.models import RefreshResult, SessionContext, TokenPair
from session_auth.security import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    mint_token,
    verify_token,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionService:
    """
    Issues, verifies, rotates and revokes access/refresh token pairs.

    A principal holds at most one valid refresh token: the value in the
    credential store. Login overwrites it, logout clears it, and refresh only
    accepts a presented token that is both correctly signed and equal to the
    stored value.
    """

    def __init__(self, credential_store: CredentialStore, config: AuthConfig | None = None) -> None:
        self._store = credential_store
        self._config = config or AuthConfig()

    async def login(self, principal_id: str) -> TokenPair:
        """
        Start a session for a principal whose password was already checked.

        The pair is only returned once the refresh token is persisted.
        """
        tokens = TokenPair(
            access_token=self._mint_access(principal_id),
            refresh_token=self._mint_refresh(principal_id),
        )
        try:
            # The write completes or fails as a unit even if the caller goes away.
            await asyncio.shield(
                self._call_store(
                    self._store.set_refresh_token(principal_id, tokens.refresh_token),
                    "set",
                    principal_id,
                )
            )
        except PrincipalNotFound as exc:
            logger.error("Login for unknown principal %s; session not stored", principal_id)
            raise PersistenceError() from exc
        logger.info("Session started for principal %s", principal_id)
        return tokens

    async def refresh(self, presented_refresh_token: str) -> RefreshResult:
        """Mint a new access token from a valid, current refresh token."""
        claims = verify_token(
            presented_refresh_token,
            self._config.REFRESH_TOKEN_SECRET,
            token_type=REFRESH_TOKEN_TYPE,
            algorithm=self._config.JWT_ALGORITHM,
        )
        principal_id = claims.subject_id

        stored = await self._call_store(
            self._store.get_refresh_token(principal_id), "get", principal_id
        )
        if not stored:
            logger.info("Refresh rejected: no active session for principal %s", principal_id)
            raise SessionNotFound()

        if not hmac.compare_digest(stored.encode("utf-8"), presented_refresh_token.encode("utf-8")):
            logger.warning(
                "SECURITY: refresh token mismatch for principal %s (jti=%s); "
                "token was superseded or replayed",
                principal_id,
                claims.token_id,
            )
            raise TokenMismatch()

        access_token = self._mint_access(principal_id)
        if not self._config.ROTATE_REFRESH_TOKENS:
            return RefreshResult(access_token=access_token)

        new_refresh = self._mint_refresh(principal_id)
        swapped = await asyncio.shield(
            self._call_store(
                self._store.compare_and_set_refresh_token(
                    principal_id, presented_refresh_token, new_refresh
                ),
                "rotate",
                principal_id,
            )
        )
        if not swapped:
            logger.warning(
                "SECURITY: refresh token for principal %s was consumed concurrently (jti=%s)",
                principal_id,
                claims.token_id,
            )
            raise TokenMismatch()
        logger.info("Refresh token rotated for principal %s", principal_id)
        return RefreshResult(access_token=access_token, refresh_token=new_refresh)

    async def logout(self, principal_id: str) -> None:
        """End the principal's session. Logging out twice is not an error."""
        try:
            await self._call_store(
                self._store.clear_refresh_token(principal_id), "clear", principal_id
            )
        except PrincipalNotFound:
            logger.debug("Logout for unknown principal %s ignored", principal_id)
            return
        logger.info("Session ended for principal %s", principal_id)

    def authenticate(self, access_token: str) -> SessionContext:
        claims = verify_token(
            access_token,
            self._config.ACCESS_TOKEN_SECRET,
            token_type=ACCESS_TOKEN_TYPE,
            algorithm=self._config.JWT_ALGORITHM,
        )
        return SessionContext(principal_id=claims.subject_id, expires_at=claims.expires_at)

    def identify(self, refresh_token: str) -> str:
        """Return the subject of a valid refresh token without touching the store."""
        claims = verify_token(
            refresh_token,
            self._config.REFRESH_TOKEN_SECRET,
            token_type=REFRESH_TOKEN_TYPE,
            algorithm=self._config.JWT_ALGORITHM,
        )
        return claims.subject_id

    def _mint_access(self, principal_id: str) -> str:
        return mint_token(
            principal_id,
            self._config.access_token_ttl,
            self._config.ACCESS_TOKEN_SECRET,
            token_type=ACCESS_TOKEN_TYPE,
            algorithm=self._config.JWT_ALGORITHM,
        )

    def _mint_refresh(self, principal_id: str) -> str:
        return mint_token(
            principal_id,
            self._config.refresh_token_ttl,
            self._config.REFRESH_TOKEN_SECRET,
            token_type=REFRESH_TOKEN_TYPE,
            algorithm=self._config.JWT_ALGORITHM,
        )

    async def _call_store(self, call: Awaitable[T], operation: str, principal_id: str) -> T:
        """Await a store call, mapping unexpected backend errors to PersistenceError."""
        try:
            return await call
        except AuthException:
            raise
        except Exception as exc:
            logger.exception("Credential store %s failed for principal %s", operation, principal_id)
            raise PersistenceError() from exc
