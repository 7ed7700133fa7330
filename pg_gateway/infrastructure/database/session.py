"""Database engine and per-request session management"""

from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from pg_gateway.config import settings
from pg_gateway.infrastructure.database.models import Base


def build_engine(database_url: str) -> Engine:
    """
    Create an engine for the configured database.

    SQLite (tests, local demo) is shared across threads by FastAPI's
    threadpool; server databases get a bounded pool recycled hourly to avoid
    stale connections.
    """
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_schema(bind: Engine = engine) -> None:
    """Create missing tables (local runs; managed databases use migrations)"""
    Base.metadata.create_all(bind=bind)


def get_db() -> Iterator[Session]:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
