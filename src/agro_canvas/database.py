"""Database connection management for the SQL storage backend."""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


# Lazy-loaded engine (avoids import-time connections)
_engine = None


def create_storage_engine(url: str) -> Engine:
    """Create an engine, keeping SQLite usable from FastAPI's worker threads."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, connect_args=connect_args)


def get_engine() -> Engine:
    """Get or create the engine for the configured database URL."""
    global _engine
    if _engine is None:
        from agro_canvas.config import settings

        _engine = create_storage_engine(settings.database_url)
    return _engine


def create_tables(engine: Engine | None = None) -> None:
    """Create all tables owned by the application (idempotent)."""
    # Import models so they register with Base.metadata
    from agro_canvas import models  # noqa: F401

    Base.metadata.create_all(engine or get_engine())
