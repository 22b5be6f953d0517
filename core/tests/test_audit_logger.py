"""
core/tests/test_audit_logger.py

AuditLogger write/query behaviour.
Uses unittest to avoid external test dependencies.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from core.audit.logic.audit_logger import AuditLogger


class TestAuditLogger(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.audit = AuditLogger(Path(self._tmp.name) / "audit.db")

    def tearDown(self) -> None:
        self.audit.close()
        self._tmp.cleanup()

    def test_log_and_fetch_newest_first(self) -> None:
        self.audit.log("contracts", "create_contract", user_id="u1", reference_id="c1", message="NDA")
        self.audit.log("contracts", "owner_signed", user_id="u1", reference_id="c1")
        entries = self.audit.fetch()
        self.assertEqual([e.event for e in entries], ["owner_signed", "create_contract"])
        self.assertEqual(entries[1].message, "NDA")
        self.assertEqual(entries[1].log_level, "INFO")
        self.assertEqual(entries[1].as_dict()["reference_id"], "c1")

    def test_query_filters(self) -> None:
        self.audit.log("contracts", "export", reference_id="c1")
        self.audit.log("core_signature", "save_signature", user_id="u2", reference_id="s1")
        self.audit.log("contracts", "export", reference_id="c2", level="WARNING")

        self.assertEqual(len(self.audit.query(feature="contracts")), 2)
        self.assertEqual([e.reference_id for e in self.audit.query(level="WARNING")], ["c2"])
        self.assertEqual([e.event for e in self.audit.query(user_id="u2")], ["save_signature"])

    def test_write_failure_does_not_raise(self) -> None:
        self.audit.conn.execute("DROP TABLE audit_log")
        with self.assertLogs("core.audit.logic.audit_logger", level="ERROR"):
            self.audit.log("contracts", "export", reference_id="c1")


if __name__ == "__main__":
    unittest.main()
