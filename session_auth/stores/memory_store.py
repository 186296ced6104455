"""In-memory user and credential store."""

from __future__ import annotations

import asyncio
import time
from typing import Any
from uuid import uuid4

from session_auth.exceptions import PrincipalNotFound


class MemoryUserStore:
    """
    User records kept in process memory.

    Implements both ``UserStore`` and ``CredentialStore``; the refresh token
    lives on the user record, as it does in the database.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._users_by_email: dict[str, dict[str, Any]] = {}
        self._users_by_id: dict[str, dict[str, Any]] = {}

    async def get_by_email(self, email: str) -> dict | None:
        async with self._lock:
            user = self._users_by_email.get(email.lower())
            return dict(user) if user else None

    async def get_by_id(self, user_id: str) -> dict | None:
        async with self._lock:
            user = self._users_by_id.get(user_id)
            return dict(user) if user else None

    async def create_user(self, data: dict) -> dict:
        async with self._lock:
            payload = dict(data)
            payload["id"] = payload.get("id") or uuid4().hex
            payload["email"] = payload["email"].lower()
            payload["refresh_token"] = None
            payload["created_at"] = payload.get("created_at", int(time.time()))
            payload["updated_at"] = payload.get("updated_at", payload["created_at"])
            self._users_by_email[payload["email"]] = payload
            self._users_by_id[payload["id"]] = payload
            return dict(payload)

    async def get_refresh_token(self, principal_id: str) -> str | None:
        async with self._lock:
            user = self._users_by_id.get(principal_id)
            return user.get("refresh_token") if user else None

    async def set_refresh_token(self, principal_id: str, token: str) -> None:
        async with self._lock:
            self._write_refresh_token(principal_id, token)

    async def clear_refresh_token(self, principal_id: str) -> None:
        async with self._lock:
            self._write_refresh_token(principal_id, None)

    async def compare_and_set_refresh_token(
        self, principal_id: str, expected: str, token: str
    ) -> bool:
        async with self._lock:
            user = self._users_by_id.get(principal_id)
            if not user or user.get("refresh_token") != expected:
                return False
            self._write_refresh_token(principal_id, token)
            return True

    def _write_refresh_token(self, principal_id: str, token: str | None) -> None:
        user = self._users_by_id.get(principal_id)
        if not user:
            raise PrincipalNotFound()
        user["refresh_token"] = token
        user["updated_at"] = int(time.time())
