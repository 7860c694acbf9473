"""
Store DB (remedy_tracker.db) connection and session management.

Sales, medicines, users and credentials share a single SQLite file.
One Database instance is created at startup and handed to every store
(no module-level session factory).
"""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker


logger = logging.getLogger(__name__)

# Base for every table in remedy_tracker.db
StoreBase = declarative_base()


def get_db_url(db_path: str | Path) -> str:
    """Return the SQLAlchemy URL for a SQLite file path."""

    p = Path(db_path)
    return f"sqlite:///{p}"


class Database:
    """Engine + session factory for remedy_tracker.db."""

    def __init__(self, db_url: str) -> None:
        self.db_url = str(db_url)

        # SQLite: allow use from the periodic thread and wait on locks.
        connect_args = {"check_same_thread": False, "timeout": 10.0} if self.db_url.startswith("sqlite") else {}
        self.engine = create_engine(self.db_url, future=True, connect_args=connect_args)
        self._session_factory = sessionmaker(bind=self.engine, autoflush=False, future=True)

        if self.db_url.startswith("sqlite"):

            @event.listens_for(self.engine, "connect")
            def _apply_sqlite_pragmas(dbapi_conn, connection_record):
                """Enable foreign keys on every SQLite connection."""
                dbapi_conn.execute("PRAGMA foreign_keys=ON")

    @classmethod
    def for_path(cls, db_path: str | Path) -> "Database":
        """Create the parent directory and return a Database for the file."""

        p = Path(db_path)
        p.parent.mkdir(parents=True, exist_ok=True)
        return cls(get_db_url(p))

    def init_schema(self) -> None:
        """Create all tables (no migrations)."""

        # --- table definitions must be imported before create_all ---
        import remedy_tracker.store.models  # noqa: F401

        StoreBase.metadata.create_all(bind=self.engine)
        logger.info("store DB initialized: %s", self.db_url)

    @contextlib.contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Session scope for `with` blocks.

        Commits on normal exit, rolls back on exception.
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
        """Close pooled connections."""

        self.engine.dispose()
