"""
WMS Database Configuration
SQLAlchemy engine, session factory and the per-operation unit of work
"""
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, TypeVar

from sqlalchemy import MetaData, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from .config import settings
from .exceptions import ConcurrencyConflictError, StorageFailureError, WarehouseError
from .logging import get_logger

logger = get_logger("database")

T = TypeVar("T")

# SQLSTATEs for serialization failure, deadlock and lock timeout
RETRYABLE_SQLSTATES = {"40001", "40P01", "55P03"}

# Metadata with naming convention for constraints
Base = declarative_base(metadata=MetaData(naming_convention={
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}))


def build_engine(database_url: str, **kwargs) -> Engine:
    """
    Create an engine for the given URL

    SQLite connections start every transaction with BEGIN IMMEDIATE so that
    writers serialize on the database lock; other backends rely on the row
    locks taken by the services.
    """
    if database_url.startswith("sqlite"):
        new_engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": settings.SQLITE_BUSY_TIMEOUT},
            echo=settings.DATABASE_ECHO,
            **kwargs,
        )

        @event.listens_for(new_engine, "connect")
        def _on_connect(dbapi_conn, _):
            # let SQLAlchemy emit BEGIN itself
            dbapi_conn.isolation_level = None
            cursor = dbapi_conn.cursor()
            try:
                cursor.execute("PRAGMA foreign_keys=ON;")
                cursor.execute(f"PRAGMA busy_timeout={settings.SQLITE_BUSY_TIMEOUT * 1000};")
            finally:
                cursor.close()

        @event.listens_for(new_engine, "begin")
        def _on_begin(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return new_engine

    return create_engine(
        database_url,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_pre_ping=True,
        echo=settings.DATABASE_ECHO,
        **kwargs,
    )


def build_session_factory(bind: Engine) -> sessionmaker:
    """Session factory; loaded rows stay readable after commit"""
    return sessionmaker(bind=bind, autoflush=True, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = build_session_factory(engine)


def _is_retryable(exc: DBAPIError) -> bool:
    orig = exc.orig
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate in RETRYABLE_SQLSTATES:
        return True
    return "database is locked" in str(orig).lower()


@contextmanager
def session_scope(session_factory: Callable[[], Session]) -> Iterator[Session]:
    """
    One transaction for one engine operation

    Commits when the block exits cleanly. Any error rolls the whole
    transaction back; storage-layer errors are re-raised as
    StorageFailureError, lock and version conflicts as
    ConcurrencyConflictError. The session is always closed, so nothing
    loaded here outlives the operation.
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except WarehouseError:
        session.rollback()
        raise
    except StaleDataError as e:
        session.rollback()
        raise ConcurrencyConflictError(f"Row changed by a concurrent transaction: {e}") from e
    except DBAPIError as e:
        session.rollback()
        if _is_retryable(e):
            raise ConcurrencyConflictError(f"Lock conflict: {e.orig}") from e
        logger.error(f"Database error, transaction rolled back: {e}")
        raise StorageFailureError(str(e.orig)) from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Database error, transaction rolled back: {e}")
        raise StorageFailureError(str(e)) from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def run_in_transaction(
    session_factory: Callable[[], Session],
    work: Callable[[Session], T],
    present: Optional[Callable[[T], object]] = None,
    attempts: Optional[int] = None,
):
    """
    Run ``work`` in its own transaction, retrying only on concurrency conflicts

    Business errors (insufficient stock, capacity, bad transitions) are never
    retried here. ``present`` converts the result to a detached read model
    after the final flush and before commit.
    """
    attempts = attempts or settings.LOCK_RETRY_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            with session_scope(session_factory) as session:
                result = work(session)
                session.flush()
                return present(result) if present else result
        except ConcurrencyConflictError as e:
            if attempt >= attempts:
                logger.error(f"Giving up after {attempt} attempts: {e}")
                raise
            logger.warning(f"Concurrency conflict on attempt {attempt}, retrying: {e}")


def init_db(bind: Optional[Engine] = None):
    """
    Initialize database tables

    This function creates all tables defined in models
    """
    try:
        # Import all models to ensure they are registered with Base
        from wms import models  # noqa: F401

        Base.metadata.create_all(bind=bind or engine)
        logger.info("Database tables created successfully")

    except SQLAlchemyError as e:
        logger.error(f"Error initializing database: {e}")
        raise


def check_db_connection(bind: Optional[Engine] = None) -> bool:
    """
    Check if database connection is working

    Returns:
        True if connection is successful, False otherwise
    """
    try:
        with (bind or engine).connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        return False
