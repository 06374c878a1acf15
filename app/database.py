# app/database.py
"""
Transaction ledger database: engine, sessions and health check.

SQLite (in-memory, test environment) runs on a StaticPool so every session
sees the same connection; PostgreSQL runs on a QueuePool sized by the
DB_POOL_* settings.
"""

import logging
from collections.abc import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool, QueuePool

from .config import settings
from .models import Base

logger = logging.getLogger(__name__)


def _create_engine() -> Engine:
    """Create the engine for the configured DATABASE_URL."""
    if settings.is_sqlite:
        logger.info("Configuring SQLite database (test mode)")
        return create_engine(
            settings.database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=settings.debug,
        )

    logger.info(
        f"Configuring PostgreSQL database pool: "
        f"size={settings.db_pool_size}, "
        f"max_overflow={settings.db_pool_max_overflow}, "
        f"recycle={settings.db_pool_recycle}s"
    )

    return create_engine(
        settings.database_url,
        poolclass=QueuePool,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_pool_max_overflow,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_timeout=30,
        echo=settings.debug,
    )


engine = _create_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create the ledger tables if they do not exist."""
    Base.metadata.create_all(bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session dependency, closed after the response."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_database_health() -> dict:
    """Run a trivial query; report status plus pool counters."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

        return {
            "status": "healthy",
            "database": "sqlite" if settings.is_sqlite else "postgresql",
            "pool": {
                "checked_in": engine.pool.checkedin() if hasattr(engine.pool, "checkedin") else None,
                "checked_out": engine.pool.checkedout() if hasattr(engine.pool, "checkedout") else None,
            },
        }
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "error": str(e),
        }
