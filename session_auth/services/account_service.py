"""Account operations around the session core: registration and password checks."""

from __future__ import annotations

import logging
from typing import Any

from session_auth.exceptions import EmailAlreadyExists, InvalidCredentials, PrincipalNotFound
from session_auth.interfaces.credential_verifier import CredentialVerifier
from session_auth.interfaces.user_store import UserStore
from session_auth.security import hash_password, verify_password as check_password

logger = logging.getLogger(__name__)

PUBLIC_FIELDS = ("id", "username", "email", "created_at", "updated_at")


def public_user(user: dict[str, Any]) -> dict[str, Any]:
    """Strip credentials from a user record."""
    return {key: user.get(key) for key in PUBLIC_FIELDS}


class AccountService(CredentialVerifier):
    def __init__(self, user_store: UserStore) -> None:
        self._users = user_store

    async def register(self, username: str, email: str, password: str) -> dict[str, Any]:
        existing = await self._users.get_by_email(email)
        if existing:
            raise EmailAlreadyExists()

        user = await self._users.create_user(
            {
                "username": username,
                "email": email,
                "hashed_password": hash_password(password),
            }
        )
        logger.info("Registered user %s", user["id"])
        return public_user(user)

    async def authenticate(self, email: str, password: str) -> dict[str, Any]:
        """Return the user for a correct email/password pair."""
        user = await self._users.get_by_email(email)
        # Same error for unknown email and wrong password
        if not user:
            raise InvalidCredentials()
        hashed = user.get("hashed_password")
        if not hashed or not check_password(password, hashed):
            logger.info("Failed login for user %s", user["id"])
            raise InvalidCredentials()
        return public_user(user)

    async def verify_password(self, principal_id: str, plaintext: str) -> bool:
        user = await self._users.get_by_id(principal_id)
        if not user or not user.get("hashed_password"):
            return False
        return check_password(plaintext, user["hashed_password"])

    async def get_profile(self, principal_id: str) -> dict[str, Any]:
        user = await self._users.get_by_id(principal_id)
        if not user:
            raise PrincipalNotFound()
        return public_user(user)
