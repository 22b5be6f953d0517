"""SQLite implementation of ContractRepository.

Lightweight repository - only CRUD and simple queries.
Business rules live in the services layer.

Multi-statement writes run inside ``transaction()``; any sqlite3 error is
rolled back and re-raised as ContractPersistenceError, so callers never see
a half-applied write.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from core.common.db_interface import SQLiteRepository
from contracts.enum.contract_status import ContractStatus
from contracts.enum.field_type import FieldType
from contracts.enum.signer_party import SignerParty
from contracts.exceptions.errors import ContractNotFoundError, ContractPersistenceError
from contracts.models.contract import Contract
from contracts.models.field import Field
from contracts.models.submission import Submission

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS contracts (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    source_document_ref TEXT NOT NULL,
    file_name TEXT NOT NULL,
    share_token TEXT NOT NULL UNIQUE,
    status TEXT NOT NULL DEFAULT 'draft'
        CHECK (status IN ('draft', 'active', 'completed', 'expired')),
    owner_signed_at TEXT,
    owner_field_values TEXT NOT NULL DEFAULT '{}',
    completed_artifact_ref TEXT,
    created_by TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS signature_fields (
    contract_id TEXT NOT NULL REFERENCES contracts(id) ON DELETE CASCADE,
    id TEXT NOT NULL,
    field_type TEXT NOT NULL CHECK (field_type IN ('text', 'date', 'signature')),
    label TEXT NOT NULL,
    page_number INTEGER NOT NULL,
    x_position REAL NOT NULL,
    y_position REAL NOT NULL,
    width REAL NOT NULL,
    height REAL NOT NULL,
    signer_party TEXT NOT NULL CHECK (signer_party IN ('owner', 'counterparty')),
    required INTEGER NOT NULL DEFAULT 1,
    display_order INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (contract_id, id)
);

CREATE TABLE IF NOT EXISTS signature_submissions (
    id TEXT PRIMARY KEY,
    contract_id TEXT NOT NULL REFERENCES contracts(id) ON DELETE CASCADE,
    signer_name TEXT NOT NULL,
    signer_email TEXT NOT NULL,
    field_values TEXT NOT NULL DEFAULT '{}',
    signed_at TEXT NOT NULL,
    user_agent TEXT
);

CREATE INDEX IF NOT EXISTS ix_fields_contract ON signature_fields(contract_id, display_order);
CREATE INDEX IF NOT EXISTS ix_submissions_contract ON signature_submissions(contract_id, signed_at);
"""


def _dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class SQLiteContractRepository(SQLiteRepository):
    """SQLite backend for contracts, their fields and submissions."""

    def __init__(self, db_path: Path) -> None:
        super().__init__(db_path, foreign_keys=True)
        self.executescript(_SCHEMA)

    # =========================================================================
    # Row mapping
    # =========================================================================

    @staticmethod
    def _contract(row: sqlite3.Row) -> Contract:
        return Contract(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            source_document_ref=row["source_document_ref"],
            file_name=row["file_name"],
            share_token=row["share_token"],
            status=ContractStatus(row["status"]),
            owner_signed_at=_dt(row["owner_signed_at"]),
            owner_field_values=json.loads(row["owner_field_values"] or "{}"),
            completed_artifact_ref=row["completed_artifact_ref"],
            created_by=row["created_by"],
            created_at=_dt(row["created_at"]),
            updated_at=_dt(row["updated_at"]),
        )

    @staticmethod
    def _field(row: sqlite3.Row) -> Field:
        return Field(
            id=row["id"],
            type=FieldType(row["field_type"]),
            label=row["label"],
            page_number=int(row["page_number"]),
            x=float(row["x_position"]),
            y=float(row["y_position"]),
            width=float(row["width"]),
            height=float(row["height"]),
            signer_party=SignerParty(row["signer_party"]),
            required=bool(row["required"]),
            display_order=int(row["display_order"]),
        )

    @staticmethod
    def _submission(row: sqlite3.Row) -> Submission:
        return Submission(
            id=row["id"],
            contract_id=row["contract_id"],
            signer_name=row["signer_name"],
            signer_email=row["signer_email"],
            field_values=json.loads(row["field_values"] or "{}"),
            signed_at=_dt(row["signed_at"]),
            user_agent=row["user_agent"],
        )

    def _fail(self, action: str, ex: sqlite3.Error) -> ContractPersistenceError:
        logger.error(f"{action} failed: {ex}")
        return ContractPersistenceError(f"{action} failed: {ex}")

    # =========================================================================
    # Contracts
    # =========================================================================

    def add_contract(self, contract: Contract, fields: Sequence[Field] = ()) -> None:
        try:
            with self.transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO contracts (id, title, description, source_document_ref, file_name,
                        share_token, status, owner_signed_at, owner_field_values,
                        completed_artifact_ref, created_by, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        contract.id, contract.title, contract.description,
                        contract.source_document_ref, contract.file_name, contract.share_token,
                        contract.status.value, _iso(contract.owner_signed_at),
                        json.dumps(contract.owner_field_values), contract.completed_artifact_ref,
                        contract.created_by, _iso(contract.created_at), _iso(contract.updated_at),
                    ),
                )
                self._insert_fields(conn, contract.id, fields)
        except sqlite3.Error as ex:
            raise self._fail(f"Creating contract {contract.id}", ex) from ex

    def get_contract(self, contract_id: str) -> Optional[Contract]:
        row = self.conn.execute("SELECT * FROM contracts WHERE id=?", (contract_id,)).fetchone()
        return self._contract(row) if row else None

    def list_contracts(self, *, status: Optional[ContractStatus] = None) -> List[Contract]:
        if status is None:
            rows = self.conn.execute("SELECT * FROM contracts ORDER BY created_at DESC").fetchall()
        else:
            rows = self.conn.execute(
                "SELECT * FROM contracts WHERE status=? ORDER BY created_at DESC", (status.value,)
            ).fetchall()
        return [self._contract(r) for r in rows]

    def find_by_share_token(self, token: str) -> Optional[Contract]:
        row = self.conn.execute("SELECT * FROM contracts WHERE share_token=?", (token,)).fetchone()
        return self._contract(row) if row else None

    def update_status(self, contract_id: str, status: ContractStatus, updated_at: datetime) -> bool:
        try:
            with self.transaction() as conn:
                cur = conn.execute(
                    "UPDATE contracts SET status=?, updated_at=? WHERE id=?",
                    (status.value, _iso(updated_at), contract_id),
                )
        except sqlite3.Error as ex:
            raise self._fail(f"Updating status of {contract_id}", ex) from ex
        return cur.rowcount > 0

    def set_completed_artifact(self, contract_id: str, artifact_ref: str, updated_at: datetime) -> bool:
        try:
            with self.transaction() as conn:
                cur = conn.execute(
                    "UPDATE contracts SET completed_artifact_ref=?, updated_at=? WHERE id=?",
                    (artifact_ref, _iso(updated_at), contract_id),
                )
        except sqlite3.Error as ex:
            raise self._fail(f"Recording artifact for {contract_id}", ex) from ex
        return cur.rowcount > 0

    def delete_contract(self, contract_id: str) -> bool:
        try:
            with self.transaction() as conn:
                cur = conn.execute("DELETE FROM contracts WHERE id=?", (contract_id,))
        except sqlite3.Error as ex:
            raise self._fail(f"Deleting contract {contract_id}", ex) from ex
        return cur.rowcount > 0

    # =========================================================================
    # Fields
    # =========================================================================

    def list_fields(self, contract_id: str) -> List[Field]:
        rows = self.conn.execute(
            "SELECT * FROM signature_fields WHERE contract_id=? ORDER BY display_order, rowid",
            (contract_id,),
        ).fetchall()
        return [self._field(r) for r in rows]

    def _delete_fields(self, conn: sqlite3.Connection, contract_id: str) -> None:
        conn.execute("DELETE FROM signature_fields WHERE contract_id=?", (contract_id,))

    def _insert_fields(self, conn: sqlite3.Connection, contract_id: str, fields: Sequence[Field]) -> None:
        conn.executemany(
            """
            INSERT INTO signature_fields (contract_id, id, field_type, label, page_number,
                x_position, y_position, width, height, signer_party, required, display_order)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (contract_id, f.id, f.type.value, f.label, f.page_number, f.x, f.y,
                 f.width, f.height, f.signer_party.value, int(f.required), order)
                for order, f in enumerate(fields)
            ],
        )

    def replace_fields(self, contract_id: str, fields: Sequence[Field], updated_at: datetime) -> None:
        try:
            with self.transaction() as conn:
                touched = conn.execute(
                    "UPDATE contracts SET updated_at=? WHERE id=?", (_iso(updated_at), contract_id)
                )
                if touched.rowcount == 0:
                    raise ContractNotFoundError(f"Contract {contract_id} not found.")
                self._delete_fields(conn, contract_id)
                self._insert_fields(conn, contract_id, fields)
        except sqlite3.Error as ex:
            raise self._fail(f"Saving fields of {contract_id}", ex) from ex

    # =========================================================================
    # Owner signing
    # =========================================================================

    def _write_owner_values(self, conn: sqlite3.Connection, contract_id: str, values: Dict[str, str]) -> None:
        cur = conn.execute(
            "UPDATE contracts SET owner_field_values=? WHERE id=?",
            (json.dumps(values), contract_id),
        )
        if cur.rowcount == 0:
            raise ContractNotFoundError(f"Contract {contract_id} not found.")

    def _mark_owner_signed(self, conn: sqlite3.Connection, contract_id: str, signed_at: datetime) -> None:
        conn.execute(
            "UPDATE contracts SET owner_signed_at=?, status=?, updated_at=? WHERE id=?",
            (_iso(signed_at), ContractStatus.ACTIVE.value, _iso(signed_at), contract_id),
        )

    def commit_owner_signing(self, contract_id: str, values: Dict[str, str], signed_at: datetime) -> None:
        try:
            with self.transaction() as conn:
                self._write_owner_values(conn, contract_id, values)
                self._mark_owner_signed(conn, contract_id, signed_at)
        except sqlite3.Error as ex:
            raise self._fail(f"Owner signing of {contract_id}", ex) from ex

    # =========================================================================
    # Submissions
    # =========================================================================

    def add_submission(self, submission: Submission) -> None:
        try:
            with self.transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO signature_submissions
                        (id, contract_id, signer_name, signer_email, field_values, signed_at, user_agent)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        submission.id, submission.contract_id, submission.signer_name,
                        submission.signer_email, json.dumps(submission.field_values),
                        _iso(submission.signed_at), submission.user_agent,
                    ),
                )
        except sqlite3.Error as ex:
            raise self._fail(f"Recording submission for {submission.contract_id}", ex) from ex

    def get_submission(self, submission_id: str) -> Optional[Submission]:
        row = self.conn.execute(
            "SELECT * FROM signature_submissions WHERE id=?", (submission_id,)
        ).fetchone()
        return self._submission(row) if row else None

    def list_submissions(self, contract_id: str) -> List[Submission]:
        rows = self.conn.execute(
            "SELECT * FROM signature_submissions WHERE contract_id=? ORDER BY signed_at DESC, rowid DESC",
            (contract_id,),
        ).fetchall()
        return [self._submission(r) for r in rows]

    def count_submissions(self, contract_id: str) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) AS n FROM signature_submissions WHERE contract_id=?", (contract_id,)
        ).fetchone()
        return int(row["n"])
