"""Database engine and helpers.

This module configures the SQLModel/SQLAlchemy engine from
`settings.DATABASE_URL` (a local SQLite file by default) and provides
small helpers used by the application, scripts and tests.
"""

from sqlalchemy import event
from sqlmodel import SQLModel, create_engine, Session
from .config import settings

_is_sqlite = settings.DATABASE_URL.startswith("sqlite")
engine = create_engine(
    settings.DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
)


if _is_sqlite:
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, _record):
        # SQLite ships with foreign key enforcement off
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_db_and_tables():
    """Create database tables using SQLModel metadata.

    Importing `models` registers every table on the shared metadata
    before `create_all` runs.
    """
    from . import models  # noqa: F401
    SQLModel.metadata.create_all(engine)


def get_session():
    """Yield a database `Session` for FastAPI dependency injection.

    The generator yields a session and ensures it is closed when the
    request scope finishes. FastAPI caches the dependency per request, so
    the authentication dependency and the handler share this session.
    """
    with Session(engine) as session:
        yield session
