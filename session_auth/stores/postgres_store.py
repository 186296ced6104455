"""PostgreSQL user and credential store using SQLAlchemy."""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from db.engine import get_session_factory
from db.models.user import User
from session_auth.exceptions import EmailAlreadyExists, PersistenceError, PrincipalNotFound

logger = logging.getLogger(__name__)


def _to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "hashed_password": user.hashed_password,
        "refresh_token": user.refresh_token,
        "created_at": int(user.created_at.timestamp()) if user.created_at else None,
        "updated_at": int(user.updated_at.timestamp()) if user.updated_at else None,
    }


class PostgresUserStore:
    """
    User store backed by PostgreSQL.

    Refresh-token writes are single ``UPDATE`` statements keyed by user id,
    so concurrent logins and logouts for one user cannot interleave a read
    with a write.
    """

    def __init__(self, session_factory: sessionmaker | None = None) -> None:
        self._session_factory = session_factory

    def _get_session(self) -> Session:
        factory = self._session_factory or get_session_factory()
        return factory()

    async def get_by_email(self, email: str) -> dict | None:
        try:
            with self._get_session() as db:
                user = db.execute(
                    select(User).where(User.email == email.lower())
                ).scalar_one_or_none()
                return _to_dict(user) if user else None
        except SQLAlchemyError as exc:
            logger.exception("User lookup by email failed")
            raise PersistenceError() from exc

    async def get_by_id(self, user_id: str) -> dict | None:
        try:
            with self._get_session() as db:
                user = db.get(User, user_id)
                return _to_dict(user) if user else None
        except SQLAlchemyError as exc:
            logger.exception("User lookup by id failed")
            raise PersistenceError() from exc

    async def create_user(self, data: dict) -> dict:
        try:
            with self._get_session() as db:
                user = User(
                    username=data["username"],
                    email=data["email"].lower(),
                    hashed_password=data["hashed_password"],
                )
                db.add(user)
                db.commit()
                db.refresh(user)
                return _to_dict(user)
        except IntegrityError as exc:
            raise EmailAlreadyExists() from exc
        except SQLAlchemyError as exc:
            logger.exception("User creation failed")
            raise PersistenceError() from exc

    async def get_refresh_token(self, principal_id: str) -> str | None:
        try:
            with self._get_session() as db:
                return db.execute(
                    select(User.refresh_token).where(User.id == principal_id)
                ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            logger.exception("Refresh token read failed for user %s", principal_id)
            raise PersistenceError() from exc

    async def set_refresh_token(self, principal_id: str, token: str) -> None:
        if not self._update_refresh_token(principal_id, token):
            raise PrincipalNotFound()

    async def clear_refresh_token(self, principal_id: str) -> None:
        if not self._update_refresh_token(principal_id, None):
            raise PrincipalNotFound()

    async def compare_and_set_refresh_token(
        self, principal_id: str, expected: str, token: str
    ) -> bool:
        return self._update_refresh_token(principal_id, token, expected=expected)

    def _update_refresh_token(
        self, principal_id: str, token: str | None, expected: str | None = None
    ) -> bool:
        statement = update(User).where(User.id == principal_id)
        if expected is not None:
            statement = statement.where(User.refresh_token == expected)
        statement = statement.values(refresh_token=token).execution_options(
            synchronize_session=False
        )
        try:
            with self._get_session() as db:
                result = db.execute(statement)
                db.commit()
                return result.rowcount == 1
        except SQLAlchemyError as exc:
            logger.exception("Refresh token write failed for user %s", principal_id)
            raise PersistenceError() from exc
