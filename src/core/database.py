"""Database connection and session management.

This module owns the process-wide SQLite handle: it creates the SQLAlchemy
engine, applies schema migrations when the store is opened, hands out
sessions, and disposes of the engine on shutdown.
"""

import atexit
import logging
import signal
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from config import DATABASE_URL, SQLITE_BUSY_TIMEOUT
from core.exceptions import StorageIOError, translate_db_error
from models.base import Base
# Import models to ensure they are registered with Base.metadata
import models  # noqa: F401

logger = logging.getLogger(__name__)


def _set_sqlite_pragmas(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    # Cascade deletes depend on this; SQLite leaves it off per connection
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def run_migrations(engine: Engine) -> None:
    """Create missing tables and add columns introduced since the file was made.

    Args:
        engine: Engine bound to the target database.
    """
    Base.metadata.create_all(bind=engine)

    inspector = inspect(engine)
    with engine.begin() as conn:
        for table in Base.metadata.sorted_tables:
            existing = {c["name"] for c in inspector.get_columns(table.name)}
            for column in table.columns:
                if column.name in existing:
                    continue
                ddl = (
                    f"ALTER TABLE {table.name} ADD COLUMN {column.name} "
                    f"{column.type.compile(dialect=engine.dialect)}"
                )
                if column.server_default is not None:
                    ddl += f" NOT NULL DEFAULT '{column.server_default.arg}'"
                logger.info("Migration: adding column %s.%s", table.name, column.name)
                conn.execute(text(ddl))


def _exit_on_sigterm(signum, frame) -> None:
    # SystemExit unwinds normally, so atexit hooks such as Store.close run
    raise SystemExit(128 + signum)


def install_sigterm_handler() -> bool:
    """Make SIGTERM exit through the interpreter's normal shutdown path.

    Only replaces the default disposition, so servers that manage their own
    signals (uvicorn) are left alone. Must run in the main thread.

    Returns:
        True if the handler was installed.
    """
    if threading.current_thread() is not threading.main_thread():
        return False
    if signal.getsignal(signal.SIGTERM) is not signal.SIG_DFL:
        return False
    signal.signal(signal.SIGTERM, _exit_on_sigterm)
    return True


class Store:
    """Process-wide handle on the room database.

    Construct once, ``open()`` at startup and ``close()`` at shutdown, or use
    it as a context manager. Managers receive sessions from ``session()``.
    """

    def __init__(self, url: str = DATABASE_URL, busy_timeout: float = SQLITE_BUSY_TIMEOUT):
        self.url = url
        self.busy_timeout = busy_timeout
        self.engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    def open(self) -> "Store":
        """Create the engine and bring the schema up to date.

        Returns:
            The store itself, for chaining.

        Raises:
            StorageIOError: If the database cannot be opened or migrated.
        """
        if self.is_open:
            return self

        database = make_url(self.url).database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)

        engine = create_engine(
            self.url,
            connect_args={"check_same_thread": False, "timeout": self.busy_timeout},
        )
        event.listen(engine, "connect", _set_sqlite_pragmas)

        try:
            with engine.connect() as conn:
                # Persistent for file databases; readers no longer block the writer
                conn.exec_driver_sql("PRAGMA journal_mode=WAL")
            run_migrations(engine)
        except SQLAlchemyError as exc:
            engine.dispose()
            raise translate_db_error(exc) from exc

        self.engine = engine
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        atexit.register(self.close)
        install_sigterm_handler()
        logger.info("Opened room store at %s", engine.url.render_as_string(hide_password=True))
        return self

    def close(self) -> None:
        """Dispose of the engine. Safe to call more than once."""
        if not self.is_open:
            return
        self.engine.dispose()
        self.engine = None
        self._session_factory = None
        atexit.unregister(self.close)
        logger.info("Closed room store")

    def new_session(self) -> Session:
        if not self.is_open:
            raise StorageIOError("Room store is not open")
        return self._session_factory()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session that is always closed afterwards."""
        db = self.new_session()
        try:
            yield db
        finally:
            db.close()

    def __enter__(self) -> "Store":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
