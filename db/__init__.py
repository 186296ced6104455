"""
Database module.

Provides the SQLAlchemy engine, session factory and models.
"""

from db.engine import get_engine, get_session_factory, SessionLocal, Base

__all__ = ["get_engine", "get_session_factory", "SessionLocal", "Base"]
