"""Password verification capability consumed by the login route."""

from __future__ import annotations

from typing import Protocol


class CredentialVerifier(Protocol):
    async def verify_password(self, principal_id: str, plaintext: str) -> bool:
        ...
