"""Auth API routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Cookie, Depends, Response, status

from session_auth.config import AuthConfig
from session_auth.dependencies import (
    clear_session_cookies,
    get_account_service,
    get_auth_config,
    get_session_service,
    set_session_cookies,
)
from session_auth.exceptions import InvalidToken, SessionNotFound
from session_auth.schemas import ApiResponse, AuthUser, LoginRequest, RegisterRequest
from session_auth.services.account_service import AccountService
from session_auth.services.session_service import SessionService

logger = logging.getLogger(__name__)

router = APIRouter()


def _auth_user(user: dict) -> dict:
    return AuthUser(id=user["id"], username=user["username"], email=user["email"]).model_dump()


@router.post("/register", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    account_service: AccountService = Depends(get_account_service),
) -> ApiResponse:
    user = await account_service.register(
        username=payload.username,
        email=payload.email,
        password=payload.password,
    )
    return ApiResponse(
        success=True,
        message="User successfully registered.",
        data=_auth_user(user),
    )


@router.post("/login", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: LoginRequest,
    response: Response,
    account_service: AccountService = Depends(get_account_service),
    session_service: SessionService = Depends(get_session_service),
    config: AuthConfig = Depends(get_auth_config),
) -> ApiResponse:
    user = await account_service.authenticate(payload.email, payload.password)
    # Cookies are only set once the refresh token is stored
    tokens = await session_service.login(user["id"])
    set_session_cookies(response, tokens, config)

    return ApiResponse(success=True, message="Login successful", data=_auth_user(user))


@router.post("/refresh-token", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def refresh_token(
    response: Response,
    refresh_cookie: str | None = Cookie(default=None, alias=AuthConfig.REFRESH_COOKIE_NAME),
    session_service: SessionService = Depends(get_session_service),
    config: AuthConfig = Depends(get_auth_config),
) -> ApiResponse:
    if not refresh_cookie:
        raise SessionNotFound()

    result = await session_service.refresh(refresh_cookie)
    set_session_cookies(response, result, config)

    return ApiResponse(
        success=True,
        message="Access token refreshed successfully",
        data={"rotated": result.rotated},
    )


@router.post("/logout", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def logout(
    response: Response,
    access_cookie: str | None = Cookie(default=None, alias=AuthConfig.ACCESS_COOKIE_NAME),
    refresh_cookie: str | None = Cookie(default=None, alias=AuthConfig.REFRESH_COOKIE_NAME),
    session_service: SessionService = Depends(get_session_service),
    config: AuthConfig = Depends(get_auth_config),
) -> ApiResponse:
    principal_id = _resolve_principal(session_service, access_cookie, refresh_cookie)
    if principal_id:
        await session_service.logout(principal_id)
    else:
        logger.debug("Logout without a valid session cookie; clearing cookies only")

    clear_session_cookies(response, config)
    return ApiResponse(success=True, message="Logged out successfully.", data=None)


def _resolve_principal(
    session_service: SessionService,
    access_token: str | None,
    refresh_token: str | None,
) -> str | None:
    """Find the principal behind the request, falling back to the refresh token."""
    if access_token:
        try:
            return session_service.authenticate(access_token).principal_id
        except InvalidToken:
            pass
    if refresh_token:
        try:
            return session_service.identify(refresh_token)
        except InvalidToken:
            pass
    return None
