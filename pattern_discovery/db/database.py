"""Core database connection with ACID transaction support."""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Optional

from pattern_discovery.db.schema import MIGRATIONS, SCHEMA_DDL

logger = logging.getLogger(__name__)


class Database:
    """
    SQLite database wrapper with explicit ACID transaction support.

    Implements the Unit-of-Work pattern: every mutation goes through
    ``transaction()``, which commits on success and rolls back on failure.
    Transactions nest; only the outermost block commits, so a service can
    group several repository writes into one atomic unit.

    A single re-entrant lock guards the connection.  Reads take it too, so
    no reader sees a half-applied multi-step mutation.
    """

    def __init__(self, path: Optional[Path | str] = None):
        from pattern_discovery.config import get_db_path
        if path is None:
            self.path: Path = get_db_path()
        elif isinstance(path, str):
            self.path = Path(path)
        else:
            self.path = path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()
        self._depth = 0
        self._ready = False

    # -- connection lifecycle --------------------------------------------------

    def _ensure_dir(self) -> None:
        if str(self.path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def connection(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is None:
                self._ensure_dir()
                # isolation_level=None: BEGIN/COMMIT are issued by transaction()
                self._conn = sqlite3.connect(
                    str(self.path), check_same_thread=False, isolation_level=None
                )
                self._conn.row_factory = sqlite3.Row
                self._conn.execute("PRAGMA foreign_keys = ON")
                self._conn.execute("PRAGMA journal_mode = WAL")
            return self._conn

    def close(self) -> None:
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
            self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    def init(self) -> None:
        """Create all tables and apply column migrations (idempotent)."""
        with self._lock:
            conn = self.connection()
            conn.executescript(SCHEMA_DDL)
            for table, column, ddl in MIGRATIONS:
                self._add_column_if_missing(conn, table, column, ddl)
            self._ready = True

    def _add_column_if_missing(
        self, conn: sqlite3.Connection, table: str, column: str, ddl: str
    ) -> None:
        existing = {row["name"] for row in conn.execute(f"PRAGMA table_info({table})")}
        if column in existing:
            return
        try:
            conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}")
        except sqlite3.OperationalError as e:
            # another process added it between the check and the ALTER
            if "duplicate column" not in str(e).lower():
                raise
            return
        logger.info(f"Migrated {table}: added column {column}")

    def _require_ready(self) -> None:
        if not self._ready:
            raise RuntimeError("Database not initialised; call init() first")

    # -- transaction helpers ---------------------------------------------------

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """ACID transaction: commits on success, rolls back on exception."""
        with self._unit("BEGIN IMMEDIATE") as conn:
            yield conn

    @contextmanager
    def snapshot(self) -> Generator[sqlite3.Connection, None, None]:
        """Consistent read across several queries (deferred transaction)."""
        with self._unit("BEGIN") as conn:
            yield conn

    @contextmanager
    def _unit(self, begin_sql: str) -> Generator[sqlite3.Connection, None, None]:
        self._require_ready()
        with self._lock:
            conn = self.connection()
            outermost = self._depth == 0
            if outermost:
                conn.execute(begin_sql)
            self._depth += 1
            try:
                yield conn
            except BaseException:
                self._depth -= 1
                if outermost:
                    conn.execute("ROLLBACK")
                raise
            self._depth -= 1
            if outermost:
                conn.execute("COMMIT")

    # -- low-level query helpers -----------------------------------------------

    def fetchone(self, sql: str, params: tuple = ()) -> Optional[dict[str, Any]]:
        self._require_ready()
        with self._lock:
            row = self.connection().execute(sql, params).fetchone()
        return dict(row) if row else None

    def fetchall(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        self._require_ready()
        with self._lock:
            rows = self.connection().execute(sql, params).fetchall()
        return [dict(r) for r in rows]


# -- module singleton ----------------------------------------------------------

_default_db: Optional[Database] = None


def get_db(path: Optional[Path] = None) -> Database:
    """Return (and lazily initialise) the module-level Database singleton."""
    global _default_db
    if _default_db is None:
        _default_db = Database(path)
        _default_db.init()
    return _default_db


def reset_db() -> None:
    """Close and discard the singleton (useful in tests)."""
    global _default_db
    if _default_db is not None:
        _default_db.close()
        _default_db = None
