"""
Relational store access.

One Database per process. Every service operation runs inside
session_scope(): commit on success, rollback on any exception.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

import structlog
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from tenacity import retry, stop_after_attempt, wait_exponential

from ledgerdash.config import DatabaseSettings, get_settings
from ledgerdash.services.storage.interface import StorageConnectionError
from ledgerdash.services.storage.tables import Base


logger = structlog.get_logger()


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """
    Let SQLAlchemy emit BEGIN itself.

    pysqlite defers BEGIN until the first write, which breaks SAVEPOINT.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_database_engine(settings: DatabaseSettings) -> Engine:
    """Create SQLAlchemy engine from settings."""
    kwargs = {"echo": settings.echo}
    if settings.is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if settings.is_memory:
            # One shared connection, or every session sees an empty database
            kwargs["poolclass"] = StaticPool
    engine = create_engine(settings.url, **kwargs)
    if settings.is_sqlite:
        _enable_sqlite_savepoints(engine)
    return engine


class Database:
    """
    Engine + session factory.

    Sessions do not expire objects on commit, so rows loaded inside a
    scope can still be validated into models after it closes.
    """

    def __init__(self, settings: Optional[DatabaseSettings] = None):
        self._settings = settings or get_settings().database
        self._engine = create_database_engine(self._settings)
        self._session_factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def url(self) -> str:
        return self._settings.url

    @property
    def is_memory(self) -> bool:
        return self._settings.is_memory

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _ping(self) -> None:
        with self._engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def connect(self) -> None:
        """
        Verify the database is reachable.

        Retries with exponential backoff before giving up.

        Raises:
            StorageConnectionError: If the database cannot be reached
        """
        try:
            self._ping()
        except SQLAlchemyError as e:
            logger.error("database_connect_failed", url=self._settings.safe_url, error=str(e))
            raise StorageConnectionError(f"Failed to connect to database: {e}") from e
        logger.info("database_connected", url=self._settings.safe_url)

    def is_reachable(self) -> bool:
        """Single connection check, no retries."""
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.warning("database_unreachable", url=self._settings.safe_url, error=str(e))
            return False
        return True

    def create_tables(self) -> None:
        """Create all tables that do not exist yet."""
        Base.metadata.create_all(self._engine)

    def drop_tables(self) -> None:
        Base.metadata.drop_all(self._engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Provide a transactional scope around a series of operations.

        Usage:
            with db.session_scope() as session:
                session.add(row)
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self._engine.dispose()
