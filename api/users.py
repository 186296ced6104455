"""User API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from session_auth.dependencies import get_account_service, get_session_context
from session_auth.models import SessionContext
from session_auth.schemas import ApiResponse
from session_auth.services.account_service import AccountService

router = APIRouter()


@router.get("/info", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def user_info(
    session: SessionContext = Depends(get_session_context),
    account_service: AccountService = Depends(get_account_service),
) -> ApiResponse:
    user = await account_service.get_profile(session.principal_id)
    return ApiResponse(success=True, message="User retrieved", data={"user": user})
