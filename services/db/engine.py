"""Database engine and connection management.

One pooled SQLAlchemy engine per process. Request handlers check a
connection out through ``get_connection`` and it goes back to the pool on
every exit path, including errors.
"""

import logging
from collections.abc import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.pool import QueuePool

from services.shared.config import Settings, get_settings
from services.shared.errors import ConfigurationError
from services.shared.logging_config import mask_url

logger = logging.getLogger(__name__)

_engine: Engine | None = None


def normalize_database_url(raw_url: str) -> str:
    """Point Postgres URLs at the psycopg driver and drop query parameters.

    Hosted Postgres URLs carry ``sslmode``/``channel_binding`` parameters
    that conflict with the explicit ``connect_args``.

    Args:
        raw_url: Connection string as configured

    Returns:
        URL string suitable for ``create_engine``
    """
    url = raw_url.split("?", 1)[0]
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix) :]
    return url


def create_db_engine(settings: Settings) -> Engine:
    """Create a pooled engine from settings.

    Raises:
        ConfigurationError: If no database URL is configured
    """
    if not settings.database_url:
        raise ConfigurationError(
            "Database configuration is missing. "
            "Set DATABASE_URL (or NETLIFY_DATABASE_URL) environment variable."
        )

    url = normalize_database_url(settings.database_url)
    logger.info(f"Connecting to database: {mask_url(url)}")

    if make_url(url).get_backend_name() != "postgresql":
        return create_engine(url)

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,
        pool_recycle=settings.database_pool_recycle_seconds,
        connect_args={"sslmode": settings.database_sslmode},
    )


def get_engine(settings: Settings | None = None) -> Engine:
    """Get or create the process-wide engine (lazy initialization)."""
    global _engine

    if _engine is None:
        _engine = create_db_engine(settings or get_settings())
        logger.info("Database engine created")
    return _engine


def dispose_engine() -> None:
    """Close all pooled connections and forget the engine."""
    global _engine

    if _engine is not None:
        _engine.dispose()
        _engine = None


def get_connection() -> Iterator[Connection]:
    """FastAPI dependency yielding a pooled connection.

    Writes commit explicitly; anything left uncommitted is rolled back when
    the connection returns to the pool.
    """
    with get_engine().connect() as conn:
        yield conn


def check_db_connection() -> bool:
    """Return True if ``SELECT 1`` succeeds."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database readiness check failed: {e}")
        return False
