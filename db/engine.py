"""
SQLAlchemy engine and session factory.

The engine is created on first use so that importing the models does not
require a reachable database or an installed driver.

Usage:
    from db.engine import get_session_factory

    with get_session_factory()() as db:
        user = db.get(User, user_id)
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from config import Config


# Session factory, bound to the engine by get_engine()
SessionLocal = sessionmaker(autoflush=False)

# Base class for all models
Base = declarative_base()

_engine: Engine | None = None


def get_engine() -> Engine:
    """Get the SQLAlchemy engine, creating it on first call."""
    global _engine
    if _engine is None:
        options = {"pool_pre_ping": True}  # Verify connections before use
        if not Config.DATABASE_URL.startswith("sqlite"):
            options.update(pool_size=Config.DB_POOL_SIZE, max_overflow=20)
        _engine = create_engine(Config.DATABASE_URL, echo=Config.DB_ECHO, **options)
        SessionLocal.configure(bind=_engine)
    return _engine


def get_session_factory() -> sessionmaker:
    get_engine()
    return SessionLocal

