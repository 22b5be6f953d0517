"""
===============================================================================
SavedSignatureRepository – SQLite-backed signature library
-------------------------------------------------------------------------------
Purpose:
    Persist reusable signatures per user. The image data URL is encrypted
    with the SignatureCipher before it touches the database.

Design:
    - Timestamps are stored as ISO8601 strings.
    - At most one default signature per user; switching the default is one
      transaction.
    - sqlite3 errors are rolled back and surfaced as PersistenceError.
===============================================================================
"""
from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from core.common.db_interface import SQLiteRepository
from core.exceptions.errors import PersistenceError
from signature.logic.encryption import InvalidToken, SignatureCipher
from signature.models.saved_signature import SavedSignature

logger = logging.getLogger(__name__)

_DDL = """
CREATE TABLE IF NOT EXISTS saved_signatures (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    signature_data BLOB NOT NULL,
    is_default INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS ix_saved_signatures_user ON saved_signatures(user_id);
"""


class SavedSignatureRepository(SQLiteRepository):
    """
    Methods
    -------
    list_for_user(user_id) -> list[SavedSignature]
        Default first, then newest first.
    get(user_id, signature_id) -> Optional[SavedSignature]
    add(signature) -> None
    delete(user_id, signature_id) -> bool
    set_default(user_id, signature_id) -> bool
    """

    def __init__(self, db_path: Path, cipher: SignatureCipher) -> None:
        super().__init__(db_path)
        self._cipher = cipher
        self.executescript(_DDL)

    # ------------------------------------------------------------------ #
    def _to_model(self, row: sqlite3.Row) -> Optional[SavedSignature]:
        try:
            data = self._cipher.decrypt(bytes(row["signature_data"])).decode("ascii")
        except InvalidToken:
            # key rotated away: treat as unusable, do not break the listing
            logger.warning(f"Cannot decrypt saved signature {row['id']}")
            return None
        return SavedSignature(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            signature_data=data,
            is_default=bool(row["is_default"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def list_for_user(self, user_id: str) -> List[SavedSignature]:
        rows = self.conn.execute(
            "SELECT * FROM saved_signatures WHERE user_id=? "
            "ORDER BY is_default DESC, created_at DESC",
            (user_id,),
        ).fetchall()
        out = [self._to_model(r) for r in rows]
        return [s for s in out if s is not None]

    def get(self, user_id: str, signature_id: str) -> Optional[SavedSignature]:
        row = self.conn.execute(
            "SELECT * FROM saved_signatures WHERE user_id=? AND id=?",
            (user_id, signature_id),
        ).fetchone()
        return self._to_model(row) if row else None

    def add(self, signature: SavedSignature) -> None:
        token = self._cipher.encrypt(signature.signature_data.encode("ascii"))
        try:
            with self.transaction() as conn:
                if signature.is_default:
                    conn.execute(
                        "UPDATE saved_signatures SET is_default=0 WHERE user_id=?",
                        (signature.user_id,),
                    )
                conn.execute(
                    "INSERT INTO saved_signatures(id, user_id, name, signature_data, is_default, created_at) "
                    "VALUES (?,?,?,?,?,?)",
                    (signature.id, signature.user_id, signature.name, token,
                     int(signature.is_default), signature.created_at.isoformat()),
                )
        except sqlite3.Error as ex:
            logger.error(f"Saving signature failed: {ex}")
            raise PersistenceError(f"Could not save signature: {ex}") from ex

    def delete(self, user_id: str, signature_id: str) -> bool:
        try:
            with self.transaction() as conn:
                cur = conn.execute(
                    "DELETE FROM saved_signatures WHERE user_id=? AND id=?",
                    (user_id, signature_id),
                )
        except sqlite3.Error as ex:
            logger.error(f"Deleting signature {signature_id} failed: {ex}")
            raise PersistenceError(f"Could not delete signature: {ex}") from ex
        return cur.rowcount > 0

    def set_default(self, user_id: str, signature_id: str) -> bool:
        try:
            with self.transaction() as conn:
                exists = conn.execute(
                    "SELECT 1 FROM saved_signatures WHERE user_id=? AND id=?",
                    (user_id, signature_id),
                ).fetchone()
                if not exists:
                    return False
                conn.execute("UPDATE saved_signatures SET is_default=0 WHERE user_id=?", (user_id,))
                conn.execute(
                    "UPDATE saved_signatures SET is_default=1 WHERE user_id=? AND id=?",
                    (user_id, signature_id),
                )
        except sqlite3.Error as ex:
            logger.error(f"Setting default signature {signature_id} failed: {ex}")
            raise PersistenceError(f"Could not set default signature: {ex}") from ex
        return True
