"""
Database Session Management Module
==================================

Responsible for:
- Creating database engine with optimized settings
- Managing session lifecycle
- Providing dependency for FastAPI routes
- Connection pooling configuration

PostgreSQL is the production target. SQLite URLs (local runs, tests) get a
single-connection-friendly engine without the Postgres pool arguments.
"""

from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool

from staffhub.core.config import settings
from staffhub.core.logging import get_logger

# Initialize logger
logger = get_logger(__name__)


# ==========================
# Database Engine
# ==========================

def _build_engine():
    if settings.is_sqlite:
        sqlite_engine = create_engine(
            settings.DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=settings.DEBUG,
        )

        @event.listens_for(sqlite_engine, "connect")
        def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    return create_engine(
        settings.DATABASE_URL,
        # Connection Pool Settings
        poolclass=QueuePool,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
        echo=settings.DEBUG,
        connect_args={
            "connect_timeout": 10,
            "application_name": "staffhub-backend",
        },
    )


engine = _build_engine()


# ==========================
# Pool Event Listeners
# ==========================

@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection, connection_record):
    """Log new database connections."""
    logger.debug("New database connection established", extra={"event": "db_connect"})


@event.listens_for(engine, "checkout")
def receive_checkout(dbapi_connection, connection_record, connection_proxy):
    """Log connection checkout from pool."""
    logger.debug("Database connection checked out from pool", extra={"event": "db_checkout"})


# ==========================
# Session Factory
# ==========================

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


# ==========================
# Dependency for FastAPI
# ==========================

def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that provides a database session.

    The session is opened per request, rolled back on error and always
    closed afterwards.

    Usage:
        @router.get("/tasks")
        def list_tasks(db: Session = Depends(get_db)):
            return db.query(Task).all()
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error("Database session error", extra={"error": str(e)})
        db.rollback()
        raise
    finally:
        db.close()


# ==========================
# Database Health Check
# ==========================

def check_database_connection() -> bool:
    """
    Check if database connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("Database health check failed", extra={"error": str(e)})
        return False


def get_db_session() -> Session:
    """
    Get a database session for non-FastAPI contexts (scripts, schedulers).

    Remember to close the session when done.
    """
    return SessionLocal()
