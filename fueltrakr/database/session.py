"""
Fueltrakr — Database Session

SQLAlchemy engine, session factory, and declarative base for the decode
proxy's canonical vehicle store. SQLite by default; any SQLAlchemy URL
(e.g. PostgreSQL) can be configured via FUELTRAKR_DATABASE_URL.
"""

from __future__ import annotations

from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from fueltrakr.config import get_settings

settings = get_settings()


def engine_options(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        # FastAPI runs sync endpoints in a threadpool
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 10}


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal: sessionmaker[Session] = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""
    pass


def get_db():
    """FastAPI dependency — yields a DB session and closes it when done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
