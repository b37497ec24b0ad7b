"""
Database session management with lazy initialization.
The engine and session factory are created on first use, not at import time.
"""
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from equipment_tracker.core.config import settings

# Global variables for lazy initialization
_engine: Optional[Engine] = None
_SessionLocal = None


def _get_database_url() -> str:
    """Get database URL from settings (called lazily)."""
    url = settings.DB_URL
    if not url:
        raise ValueError("DB_URL not set in environment variables!")
    return url


def _enable_sqlite_savepoints(engine: Engine) -> None:
    # pysqlite issues its own BEGIN lazily, which breaks SAVEPOINT; take over
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str) -> Engine:
    """
    Build an engine for the given URL.

    Server databases get a bounded pool so a request waits at most
    DB_POOL_TIMEOUT seconds for a connection. SQLite is used for local runs
    and tests; in-memory databases share a single connection.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, **kwargs)
        _enable_sqlite_savepoints(engine)
        return engine

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        echo=False,
    )


def get_engine() -> Engine:
    """
    Lazy engine creation - database connection only happens on first query,
    not during FastAPI startup.
    """
    global _engine
    if _engine is None:
        _engine = build_engine(_get_database_url())
    return _engine


def get_session_factory():
    """Lazy session factory creation."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=get_engine(),
        )
    return _SessionLocal


class SessionLocal:
    """
    Drop-in replacement for sessionmaker() that supports lazy initialization.
    Usage: session = SessionLocal()
    """
    def __new__(cls) -> Session:
        factory = get_session_factory()
        return factory()


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.
    Use: db: Session = Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
