"""
core/common/db_interface.py
===========================

Shared interface + helpers for SQLite-backed modules.

Repositories of the feature packages (contracts, signature library, audit
log) derive from :class:`SQLiteRepository` and run multi-statement writes
through :func:`transaction` so that a failure between two statements never
leaves a half-written record set behind.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
import sqlite3


def create_sqlite_connection(
    db_path: Path,
    *,
    check_same_thread: bool = False,
    foreign_keys: bool = True,
) -> sqlite3.Connection:
    """Create a sqlite3 connection with common defaults."""
    db_path = Path(db_path)
    if str(db_path) != ":memory:":
        db_path.parent.mkdir(parents=True, exist_ok=True)
    # isolation_level=None: explicit BEGIN/COMMIT in transaction()
    conn = sqlite3.connect(str(db_path), check_same_thread=check_same_thread, isolation_level=None)
    conn.row_factory = sqlite3.Row
    if foreign_keys:
        conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    Run a block of statements as one unit.

    Commits on success, rolls back on any exception and re-raises it.
    Nested use joins the outer transaction.
    """
    if conn.in_transaction:
        yield conn
        return
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    else:
        conn.execute("COMMIT")


class DatabaseAccess(ABC):
    """Interface for modules that depend on a database."""

    @property
    @abstractmethod
    def db_path(self) -> Path:
        raise NotImplementedError

    @abstractmethod
    def connect(self) -> sqlite3.Connection:
        raise NotImplementedError


class SQLiteRepository(DatabaseAccess):
    """Default SQLite implementation with a shared, lazily opened connection."""

    def __init__(
        self,
        db_path: Path,
        *,
        check_same_thread: bool = False,
        foreign_keys: bool = True,
    ) -> None:
        self._db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._check_same_thread = check_same_thread
        self._foreign_keys = foreign_keys

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def conn(self) -> sqlite3.Connection:
        return self.connect()

    def connect(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = create_sqlite_connection(
                self._db_path,
                check_same_thread=self._check_same_thread,
                foreign_keys=self._foreign_keys,
            )
        return self._conn

    def transaction(self):
        """Shortcut for ``transaction(self.conn)``."""
        return transaction(self.conn)

    def executescript(self, script: str) -> None:
        self.conn.executescript(script)

    def close(self) -> None:
        if self._conn is not None:
            try:
                self._conn.close()
            finally:
                self._conn = None
