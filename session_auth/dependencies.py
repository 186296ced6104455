"""Auth dependency helpers."""

from __future__ import annotations

from fastapi import Depends, Request, Response

from session_auth.config import AuthConfig
from session_auth.exceptions import InvalidToken
from session_auth.models import RefreshResult, SessionContext, TokenPair
from session_auth.services.account_service import AccountService
from session_auth.services.session_service import SessionService
from session_auth.stores.memory_store import MemoryUserStore
from session_auth.stores.postgres_store import PostgresUserStore

_memory_user_store = MemoryUserStore()
_postgres_user_store: PostgresUserStore | None = None


def get_user_store() -> MemoryUserStore | PostgresUserStore:
    """Get the user store based on AUTH_STORE config."""
    if AuthConfig.AUTH_STORE == "postgres":
        global _postgres_user_store
        if _postgres_user_store is None:
            _postgres_user_store = PostgresUserStore()
        return _postgres_user_store
    # Memory store for development/testing
    return _memory_user_store


def get_auth_config() -> AuthConfig:
    return AuthConfig()


def get_session_service(
    store=Depends(get_user_store),
    config: AuthConfig = Depends(get_auth_config),
) -> SessionService:
    return SessionService(credential_store=store, config=config)


def get_account_service(store=Depends(get_user_store)) -> AccountService:
    return AccountService(user_store=store)


async def get_session_context(
    request: Request,
    session_service: SessionService = Depends(get_session_service),
    config: AuthConfig = Depends(get_auth_config),
) -> SessionContext:
    """Resolve the caller from the access token cookie. Raises InvalidToken."""
    access_token = request.cookies.get(config.ACCESS_COOKIE_NAME)
    if not access_token:
        raise InvalidToken("Not authenticated")
    return session_service.authenticate(access_token)


def set_cookie(
    response: Response,
    key: str,
    value: str,
    config: AuthConfig,
    max_age: int | None = None,
) -> None:
    response.set_cookie(
        key=key,
        value=value,
        max_age=max_age,
        httponly=config.COOKIE_HTTP_ONLY,
        secure=config.COOKIE_SECURE,
        samesite=config.COOKIE_SAMESITE,
        domain=config.COOKIE_DOMAIN,
    )


def set_access_cookie(response: Response, token: str, config: AuthConfig) -> None:
    max_age = int(config.access_token_ttl.total_seconds())
    set_cookie(response, config.ACCESS_COOKIE_NAME, token, config, max_age=max_age)


def set_refresh_cookie(response: Response, token: str, config: AuthConfig) -> None:
    max_age = int(config.refresh_token_ttl.total_seconds())
    set_cookie(response, config.REFRESH_COOKIE_NAME, token, config, max_age=max_age)


def set_session_cookies(response: Response, tokens: TokenPair | RefreshResult, config: AuthConfig) -> None:
    set_access_cookie(response, tokens.access_token, config)
    if tokens.refresh_token:
        set_refresh_cookie(response, tokens.refresh_token, config)


def clear_session_cookies(response: Response, config: AuthConfig) -> None:
    for key in (config.ACCESS_COOKIE_NAME, config.REFRESH_COOKIE_NAME):
        response.delete_cookie(
            key,
            domain=config.COOKIE_DOMAIN,
            secure=config.COOKIE_SECURE,
            httponly=config.COOKIE_HTTP_ONLY,
            samesite=config.COOKIE_SAMESITE,
        )
