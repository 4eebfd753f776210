"""Database engine and session management."""
import logging
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from klutterbox.config import settings
from klutterbox.errors import StorageError

logger = logging.getLogger(__name__)


def _ensure_sqlite_directory(url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return
    database = parsed.database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


def _unicode_lower(value):
    if isinstance(value, str):
        return value.lower()
    return value


def build_engine(url: str, **kwargs):
    """Create an engine; SQLite connections get foreign keys, WAL and a Unicode lower()."""
    connect_args = kwargs.pop("connect_args", {})
    is_sqlite = make_url(url).get_backend_name() == "sqlite"
    if is_sqlite:
        _ensure_sqlite_directory(url)
        # Sessions are opened and closed on whichever thread serves the request
        connect_args.setdefault("check_same_thread", False)

    engine = create_engine(url, connect_args=connect_args, **kwargs)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()
            # Built-in lower() only folds ASCII
            dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)

    return engine


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a database session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db, failure: str = "Database operation failed"):
    """Commit everything done in the block, or roll all of it back.

    Database errors are logged and re-raised as ``StorageError`` with the
    ``failure`` message; any other exception propagates unchanged.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("%s", failure)
        raise StorageError(failure) from exc
    except Exception:
        db.rollback()
        raise
