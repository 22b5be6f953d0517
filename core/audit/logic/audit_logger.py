"""
core/audit/logic/audit_logger.py
================================

Thread-safe audit logger with SQLite backend.

Business services record *what happened* here (contract created, owner
signed, submission received, export produced ...). Diagnostic output goes to
the standard ``logging`` module instead. A failing audit write is reported
through ``logging`` and never aborts the business action that triggered it.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from core.common.db_interface import SQLiteRepository
from core.audit.models.audit_entry import AuditEntry

logger = logging.getLogger(__name__)

_DDL = """
CREATE TABLE IF NOT EXISTS audit_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    user_id TEXT,
    feature TEXT NOT NULL,
    event TEXT NOT NULL,
    reference_id TEXT,
    message TEXT,
    log_level TEXT NOT NULL DEFAULT 'INFO'
);
"""


class AuditLogger(SQLiteRepository):
    """Append-only audit trail."""

    def __init__(self, db_path: Path) -> None:
        super().__init__(db_path, check_same_thread=False)
        self._lock = threading.Lock()
        self.executescript(_DDL)

    # ------------------------------------------------------------------ #
    #  Public API: log                                                   #
    # ------------------------------------------------------------------ #
    def log(
        self,
        feature: str,
        event: str,
        *,
        user_id: Optional[str] = None,
        level: str = "INFO",
        reference_id: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        """Persist one audit entry."""
        entry = AuditEntry(
            id=None,
            timestamp=datetime.now(timezone.utc),
            log_level=level,
            user_id=str(user_id) if user_id is not None else None,
            feature=feature,
            event=event,
            reference_id=reference_id,
            message=message,
        )
        try:
            with self._lock:
                self._insert(entry)
        except sqlite3.Error as ex:
            logger.error(f"Audit write failed ({feature}/{event}): {ex}")

    # ------------------------------------------------------------------ #
    #  Fetch / Query                                                     #
    # ------------------------------------------------------------------ #
    def fetch(self, limit: int = 100) -> List[AuditEntry]:
        rows = self.conn.execute(
            "SELECT * FROM audit_log ORDER BY id DESC LIMIT ?", (limit,)
        ).fetchall()
        return [AuditEntry.from_row(r) for r in rows]

    def query(
        self,
        *,
        user_id: Optional[str] = None,
        feature: Optional[str] = None,
        event: Optional[str] = None,
        reference_id: Optional[str] = None,
        level: Optional[str] = None,
        limit: int = 1_000,
    ) -> List[AuditEntry]:
        query = "SELECT * FROM audit_log WHERE 1=1"
        params: list[object] = []

        if user_id is not None:
            query += " AND user_id = ?"
            params.append(str(user_id))
        if feature is not None:
            query += " AND feature = ?"
            params.append(feature)
        if event is not None:
            query += " AND event = ?"
            params.append(event)
        if reference_id is not None:
            query += " AND reference_id = ?"
            params.append(reference_id)
        if level is not None:
            query += " AND log_level = ?"
            params.append(level)

        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)

        rows = self.conn.execute(query, params).fetchall()
        return [AuditEntry.from_row(r) for r in rows]

    # ------------------------------------------------------------------ #
    #  Internals                                                         #
    # ------------------------------------------------------------------ #
    def _insert(self, entry: AuditEntry) -> None:
        self.conn.execute(
            """
            INSERT INTO audit_log
                (timestamp, user_id, feature, event, reference_id, message, log_level)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.timestamp.isoformat(),
                entry.user_id,
                entry.feature,
                entry.event,
                entry.reference_id,
                entry.message,
                entry.log_level,
            ),
        )
