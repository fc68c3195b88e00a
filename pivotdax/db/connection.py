"""SQLAlchemy engine for the audit database.

Single shared engine, created lazily from ``DATABASE_URL``.  Defaults to a
local SQLite file so the service runs without any database server.
"""
from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from pivotdax.core.config import get_settings
from pivotdax.core.logging import get_logger

logger = get_logger(__name__)

_engine: Engine | None = None


def get_engine() -> Engine:
    """Return the shared SQLAlchemy engine (lazy-created, cached)."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine(
            settings.database_url,
            pool_pre_ping=True,
            echo=False,
        )
        logger.info("DB engine created  url=%s", _engine.url.render_as_string(hide_password=True))
    return _engine


def reset_engine() -> None:
    """Dispose the shared engine so the next call rebuilds it from settings."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None
