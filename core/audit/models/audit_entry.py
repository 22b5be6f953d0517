"""
audit_entry.py

One row of the audit trail: which feature did what to which record, and
on whose behalf. ``reference_id`` is the contract / signature id the event
is about; ``user_id`` is empty for anonymous share-link signers.
"""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class AuditEntry:
    id: Optional[int]
    timestamp: datetime          # always UTC
    log_level: str
    user_id: Optional[str]
    feature: str
    event: str
    reference_id: Optional[str]
    message: Optional[str]

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "AuditEntry":
        return cls(
            id=row["id"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
            log_level=row["log_level"] or "INFO",
            user_id=row["user_id"],
            feature=row["feature"],
            event=row["event"],
            reference_id=row["reference_id"],
            message=row["message"],
        )

    def as_dict(self) -> Dict[str, Any]:
        """Flat dict for export; timestamp as ISO-UTC string without microseconds."""
        data = asdict(self)
        data["timestamp"] = self.timestamp.replace(microsecond=0).isoformat()
        return data
