from __future__ import annotations

import time
from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar, cast

from loguru import logger
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine.interfaces import DBAPIConnection
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from ..common.utils import get_db_url

# Global session factory
SessionLocal: sessionmaker[Session] = cast(sessionmaker[Session], cast(object, None))
engine: Engine = cast(Engine, cast(object, None))

T = TypeVar("T")
P = ParamSpec("P")


def enable_wal_mode(
    dbapi_conn: DBAPIConnection,
    connection_record: object,
) -> None:
    """Enable WAL mode and set optimization pragmas for SQLite.

    WAL mode enables concurrent reads and single writer, needed because the
    API process and the file worker share the database.

    Note: WAL mode is skipped for in-memory databases as they don't support it,
    but foreign keys are still enabled for all SQLite databases.
    """
    _ = connection_record
    cursor = dbapi_conn.cursor()
    try:
        # In-memory databases have an empty string as the file path
        cursor.execute("PRAGMA database_list")
        db_list = cursor.fetchall()
        is_memory = any(
            cast(str, row[2]) == "" for row in cast(list[tuple[object, object, object]], db_list)
        )

        if not is_memory:
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA temp_store=MEMORY")
            cursor.execute("PRAGMA busy_timeout=60000")

        # Thumbnail rows rely on ON DELETE CASCADE
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def create_db_engine(
    db_url: str,
    *,
    echo: bool = False,
) -> Engine:
    """Create SQLAlchemy engine with WAL mode for SQLite.

    Args:
        db_url: Database URL (SQLite or other)
        echo: Enable SQL query logging

    Returns:
        SQLAlchemy engine instance
    """
    kwargs: dict[str, object] = {"echo": echo}

    if db_url.lower().startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        # In-memory SQLite uses StaticPool by default, which doesn't support pool_size
        if not (":memory:" in db_url or db_url.strip() == "sqlite://"):
            kwargs.update(
                {
                    "poolclass": QueuePool,
                    "pool_size": 20,
                    "max_overflow": 40,
                }
            )
    else:
        kwargs.update(
            {
                "pool_size": 20,
                "max_overflow": 40,
            }
        )

    engine = create_engine(db_url, **kwargs)

    if db_url.lower().startswith("sqlite"):
        event.listen(engine, "connect", enable_wal_mode)

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create session factory from engine."""
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        class_=Session,
        expire_on_commit=False,
    )


def init_db(db_url: str | None = None, create_tables: bool = True) -> None:
    """Initialize database connection and, optionally, the schema."""
    global SessionLocal, engine
    if SessionLocal is not None:
        return
    engine = create_db_engine(db_url or get_db_url(), echo=False)
    SessionLocal = create_session_factory(engine)

    if create_tables:
        from .models import Base

        Base.metadata.create_all(bind=engine)
        logger.info("Database schema ensured")


def reset_db() -> None:
    """Dispose the engine and forget the session factory (for tests and shutdown)."""
    global SessionLocal, engine
    if engine is not None:
        engine.dispose()
    SessionLocal = cast(sessionmaker[Session], cast(object, None))
    engine = cast(Engine, cast(object, None))


def with_retry(
    max_retries: int = 5, initial_delay: float = 0.5
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator to retry a function on SQLite locking errors."""

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            last_error: OperationalError | None = None
            delay = initial_delay
            for i in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except OperationalError as e:
                    if "database is locked" in str(e).lower():
                        last_error = e
                        logger.warning(
                            f"Database locked, retrying {i + 1}/{max_retries} after {delay}s..."
                        )
                        time.sleep(delay)
                        delay *= 2  # Exponential backoff
                    else:
                        raise
            if last_error:
                raise last_error
            raise OperationalError(
                "Max retries exceeded", None, cast(Exception, cast(object, None))
            )

        return wrapper

    return decorator
