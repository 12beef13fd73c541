"""
Database engine and session wiring. Accepts any SQLAlchemy URL (Postgres in
production, SQLite for tests and local runs).
"""

from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from postboard.models import Base

IN_MEMORY_URL = "sqlite+pysqlite:///:memory:"


class Database:
    """Owns the engine and session factory for one database."""

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for Database")
        if database_url.startswith("sqlite") and ":memory:" in database_url:
            # One shared connection so every thread sees the same in-memory db.
            self.engine = create_engine(
                database_url,
                future=True,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                database_url,
                future=True,
                pool_pre_ping=True,
                pool_recycle=1800,
            )
        if self.engine.dialect.name == "sqlite":
            _enable_sqlite_savepoints(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)


def _enable_sqlite_savepoints(engine) -> None:
    # pysqlite defers BEGIN on its own, which breaks SAVEPOINT; emit it ourselves.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally (escape char `\\`)."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
