"""Database connection management for the audit trail."""

import os
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .models import Base


def get_database_url(
    host: Optional[str] = None,
    port: Optional[int] = None,
    database: Optional[str] = None,
    user: Optional[str] = None,
    password: Optional[str] = None,
) -> str:
    """
    Build a PostgreSQL database URL from parameters or environment variables.

    Args:
        host: Database host (default: POSTGRES_HOST or 'localhost')
        port: Database port (default: POSTGRES_PORT or 5432)
        database: Database name (default: POSTGRES_DB or 'clause_reconciliation')
        user: Database user (default: POSTGRES_USER or 'postgres')
        password: Database password (default: POSTGRES_PASSWORD or 'postgres')

    Returns:
        PostgreSQL connection URL string.
    """
    host = host or os.environ.get("POSTGRES_HOST", "localhost")
    port = port or int(os.environ.get("POSTGRES_PORT", "5432"))
    database = database or os.environ.get("POSTGRES_DB", "clause_reconciliation")
    user = user or os.environ.get("POSTGRES_USER", "postgres")
    password = password or os.environ.get("POSTGRES_PASSWORD", "postgres")

    return f"postgresql://{user}:{password}@{host}:{port}/{database}"


class DatabaseManager:
    """
    Database connection manager.

    Owns the engine and session factory; SQLite URLs skip the pool settings.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
    ):
        self._database_url = database_url or get_database_url()
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._echo = echo

    @property
    def database_url(self) -> str:
        return self._database_url

    @property
    def is_sqlite(self) -> bool:
        return self._database_url.startswith("sqlite")

    def engine_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``create_engine`` matching the URL's backend."""
        if self.is_sqlite:
            # Orchestrator worker threads share one engine.
            return {"echo": self._echo, "connect_args": {"check_same_thread": False}}
        return {
            "echo": self._echo,
            "pool_size": self._pool_size,
            "max_overflow": self._max_overflow,
            "pool_pre_ping": True,
        }

    @property
    def engine(self) -> Engine:
        """Lazily created engine for the audit database."""
        if self._engine is None:
            self._engine = create_engine(self._database_url, **self.engine_options())
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
            )
        return self._session_factory

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Get a database session that commits on success and rolls back on error.

        Example:
            with db_manager.get_session() as session:
                session.add(some_object)
        """
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_database(self) -> None:
        """Create all audit tables."""
        Base.metadata.create_all(self.engine)

    def close(self) -> None:
        """Close the database engine and release all connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None

    def health_check(self) -> bool:
        """Return True if a trivial query succeeds."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False
