"""
contracts/logic/export_service.py
=================================

Merge owner values and one counterparty submission onto the source PDF.

``export`` is read-only: it returns the signed PDF bytes and changes no
stored record. ``export_and_store`` additionally stores the artifact and
records it on the contract.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from core.audit.logic.audit_logger import AuditLogger
from core.models.user import User
from signature.logic.raster import decode_data_url, sniff_image_format
from signature.models.signature_enums import ImageFormat

from ..adapters.pdf_compositor import Compositor, PdfCompositor
from ..adapters.storage_adapter import StorageAdapter
from ..enum.field_type import FieldType
from ..exceptions.errors import (
    ContractNotFoundError,
    ContractPersistenceError,
    SubmissionNotFoundError,
)
from ..models.contract import Contract
from ..models.export_entry import ExportEntry
from ..models.submission import Submission
from ..repository.contract_repository import ContractRepository
from .contract_service import FEATURE_ID
from .reconciliation import build_export_payload, resolve_values

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def export_filename(title: str) -> str:
    return f"{_NON_ALNUM.sub('_', title or '')}_signed.pdf"


class ExportService:
    def __init__(
        self,
        *,
        repository: ContractRepository,
        storage: StorageAdapter,
        compositor: Optional[Compositor] = None,
        audit: Optional[AuditLogger] = None,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._repo = repository
        self._storage = storage
        self._compositor = compositor or PdfCompositor()
        self._audit = audit
        self._now = now

    def _contract(self, contract_id: str) -> Contract:
        contract = self._repo.get_contract(contract_id)
        if contract is None:
            raise ContractNotFoundError(f"Contract {contract_id} not found.")
        return contract

    def _submission(self, contract_id: str, submission_id: Optional[str]) -> Optional[Submission]:
        """The given submission, or the most recent one (None when nobody signed yet)."""
        if submission_id is None:
            submissions = self._repo.list_submissions(contract_id)
            return submissions[0] if submissions else None
        submission = self._repo.get_submission(submission_id)
        if submission is None or submission.contract_id != contract_id:
            raise SubmissionNotFoundError(f"Submission {submission_id} not found for contract {contract_id}.")
        return submission

    def payload(self, contract_id: str, submission_id: Optional[str] = None) -> List[ExportEntry]:
        """Resolved export entries, one per field, in field order."""
        contract = self._contract(contract_id)
        fields = self._repo.list_fields(contract_id)
        submission = self._submission(contract_id, submission_id)
        resolved = resolve_values(
            fields,
            contract.owner_field_values,
            submission.field_values if submission else None,
        )
        return build_export_payload(fields, resolved)

    def _read_source(self, contract: Contract) -> bytes:
        try:
            return self._storage.read(contract.source_document_ref)
        except OSError as ex:
            logger.error(f"Reading source document of {contract.id} failed: {ex}")
            raise ContractPersistenceError(f"Source document of {contract.id} is unavailable: {ex}") from ex

    def export(self, contract_id: str, submission_id: Optional[str] = None) -> bytes:
        contract = self._contract(contract_id)
        entries = self.payload(contract_id, submission_id)
        return self._compositor.compose(self._read_source(contract), entries)

    def archive_signatures(self, contract_id: str, submission_id: Optional[str] = None) -> Dict[str, str]:
        """Store each resolved signature raster as an image file; field id -> storage ref."""
        self._contract(contract_id)
        fields = self._repo.list_fields(contract_id)
        entries = self.payload(contract_id, submission_id)

        refs: Dict[str, str] = {}
        for f, entry in zip(fields, entries):
            if entry.type != FieldType.SIGNATURE or not entry.has_value:
                continue
            try:
                mime, data = decode_data_url(entry.value)
            except ValueError as ex:
                logger.warning(f"Signature of field '{f.label}' not archived: {ex}")
                continue
            fmt = ImageFormat.from_mime_type(mime) or sniff_image_format(data)
            try:
                refs[f.id] = self._storage.save_signature_image(
                    contract_id=contract_id, field_id=f.id, data=data,
                    extension=fmt.extension if fmt else ImageFormat.PNG.extension,
                )
            except OSError as ex:
                logger.error(f"Archiving signature {f.id} of {contract_id} failed: {ex}")
                raise ContractPersistenceError(f"Archiving signature failed: {ex}") from ex
        return refs

    def export_and_store(
        self,
        contract_id: str,
        submission_id: Optional[str] = None,
        user: Optional[User] = None,
    ) -> str:
        """Export, store the artifact and its signature images, record the artifact ref."""
        contract = self._contract(contract_id)
        data = self.export(contract_id, submission_id)
        name = export_filename(contract.title)
        try:
            ref = self._storage.save_artifact(contract_id=contract_id, file_name=name, data=data)
        except OSError as ex:
            logger.error(f"Storing artifact of {contract_id} failed: {ex}")
            raise ContractPersistenceError(f"Storing '{name}' failed: {ex}") from ex
        self.archive_signatures(contract_id, submission_id)
        self._repo.set_completed_artifact(contract_id, ref, self._now())

        logger.info(f"Contract {contract_id} exported to {ref}")
        if self._audit is not None:
            self._audit.log(FEATURE_ID, "export", user_id=user.id if user else None,
                            reference_id=contract_id, message=ref)
        return ref
