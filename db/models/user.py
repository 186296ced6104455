"""
User model.

User: authentication identity plus the one refresh token the account may
hold at a time.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, Text

from db.engine import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """User account for authentication."""
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=lambda: uuid4().hex)
    username = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(Text, nullable=False)
    # Current refresh token; NULL means no active session
    refresh_token = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"
