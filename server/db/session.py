"""Engine and session factory, cached per process."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from server.config import Settings
from server.db.models import Base


_engine = None
_SessionLocal = None


def get_engine(settings: Settings):
    global _engine
    if _engine is None:
        url = settings.database_url
        # FastAPI runs sync routes in a threadpool
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        _engine = create_engine(url, connect_args=connect_args)
    return _engine


def get_session_factory(settings: Settings) -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine(settings))
    return _SessionLocal


def reset_engine() -> None:
    """Drop the cached engine so the next call picks up new settings (tests)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def init_db(settings: Settings) -> None:
    Base.metadata.create_all(bind=get_engine(settings))
