"""Database layer: SQLAlchemy models and session."""

from server.db.models import Base, User, Session, UserDocument
from server.db.session import get_engine, init_db, reset_engine

__all__ = [
    "Base",
    "User",
    "Session",
    "UserDocument",
    "get_engine",
    "init_db",
    "reset_engine",
]
