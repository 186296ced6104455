"""Credential store interface for the per-principal refresh token."""

from __future__ import annotations

from typing import Protocol


class CredentialStore(Protocol):
    """
    Persistence surface for the single refresh token held per principal.

    Each call is atomic with respect to one principal record. ``set`` and
    ``clear`` raise ``PrincipalNotFound`` for unknown principals; backend
    failures raise ``PersistenceError``.
    """

    async def get_refresh_token(self, principal_id: str) -> str | None:
        ...

    async def set_refresh_token(self, principal_id: str, token: str) -> None:
        ...

    async def clear_refresh_token(self, principal_id: str) -> None:
        ...

    async def compare_and_set_refresh_token(
        self, principal_id: str, expected: str, token: str
    ) -> bool:
        ...
