"""
contracts/logic/contract_service.py
===================================

Contract lifecycle and field authoring (no UI):

* create from an uploaded PDF/DOC/DOCX, list, load, delete
* free-form status changes (recorded in the audit log)
* bulk field save as one atomic replace, with duplicate-label lint
* duplicate a contract as a blank template
* share link and action enablement derived from status and signing state
"""
from __future__ import annotations

import logging
import re
import secrets
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from core.audit.logic.audit_logger import AuditLogger
from core.models.user import User

from ..adapters.document_renderer import PdfDocumentRenderer
from ..adapters.storage_adapter import StorageAdapter
from ..dto.controls_state import ContractControlsState
from ..enum.contract_status import ContractStatus
from ..enum.overlay_mode import OverlayMode
from ..enum.signer_party import SignerParty
from ..exceptions.errors import (
    ContractNotFoundError,
    ContractPersistenceError,
    ContractValidationError,
    UnsupportedDocumentTypeError,
)
from ..models.contract import Contract
from ..models.field import Field
from ..repository.contract_repository import ContractRepository
from .coordinates import clamp
from .overlay_controller import FieldDraft, FieldOverlayController, ScaleLimits

logger = logging.getLogger(__name__)

FEATURE_ID = "contracts"
SUPPORTED_EXTENSIONS = (".pdf", ".doc", ".docx")
SHARE_PATH = "/sign/"
COPY_SUFFIX = " (Copy)"

_SLUG_STRIP = re.compile(r"[^a-z0-9\s-]")
_SLUG_SPACES = re.compile(r"\s+")
_SLUG_DASHES = re.compile(r"-+")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_share_token() -> str:
    return secrets.token_urlsafe(24)


def slugify(title: str) -> str:
    """Title slug used by share links of older contracts."""
    slug = _SLUG_STRIP.sub("", (title or "").lower())
    slug = _SLUG_SPACES.sub("-", slug.strip())
    return _SLUG_DASHES.sub("-", slug)


def signed_by_both(owner_signed_at: Optional[datetime], submission_count: int) -> bool:
    return owner_signed_at is not None and submission_count > 0


def _check_document(file_name: str, data: bytes) -> str:
    ext = Path(file_name or "").suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedDocumentTypeError(
            f"Unsupported document type '{ext or file_name}'. Allowed: PDF, DOC, DOCX."
        )
    if not data:
        raise UnsupportedDocumentTypeError("The uploaded document is empty.")
    if ext == ".pdf" and b"%PDF-" not in data[:1024]:
        raise UnsupportedDocumentTypeError(f"'{file_name}' is not a PDF document.")
    return ext


class ContractService:
    def __init__(
        self,
        *,
        repository: ContractRepository,
        storage: StorageAdapter,
        audit: Optional[AuditLogger] = None,
        base_url: str = "",
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repo = repository
        self._storage = storage
        self._audit = audit
        self._base_url = base_url
        self._now = now

    def _log(self, event: str, contract_id: str, user: Optional[User] = None, message: Optional[str] = None) -> None:
        if self._audit is not None:
            self._audit.log(
                FEATURE_ID, event,
                user_id=user.id if user else None,
                reference_id=contract_id,
                message=message,
            )

    # -------- Contracts ------------------------------------------------------
    def create_contract(
        self,
        title: str,
        description: Optional[str],
        file_name: str,
        data: bytes,
        user: Optional[User] = None,
    ) -> Contract:
        """Validate and store the source document, then create a draft contract."""
        title = (title or "").strip()
        if not title:
            raise ContractValidationError("A contract title is required.")
        _check_document(file_name, data)

        contract_id = uuid.uuid4().hex
        try:
            ref = self._storage.save_source_document(contract_id=contract_id, file_name=file_name, data=data)
        except OSError as ex:
            logger.error(f"Storing source document for {contract_id} failed: {ex}")
            raise ContractPersistenceError(f"Storing '{file_name}' failed: {ex}") from ex

        now = self._now()
        contract = Contract(
            id=contract_id,
            title=title,
            description=(description or "").strip() or None,
            source_document_ref=ref,
            file_name=Path(file_name).name,
            share_token=new_share_token(),
            status=ContractStatus.DRAFT,
            created_by=user.id if user else None,
            created_at=now,
            updated_at=now,
        )
        try:
            self._repo.add_contract(contract)
        except ContractPersistenceError:
            self._discard_document(ref)
            raise
        logger.info(f"Contract {contract_id} '{title}' created")
        self._log("create_contract", contract_id, user, title)
        return contract

    def _discard_document(self, ref: str) -> None:
        try:
            self._storage.delete(ref)
        except OSError as ex:
            logger.warning(f"Orphaned source document {ref} could not be removed: {ex}")

    def list_contracts(self, *, status: Optional[ContractStatus] = None) -> List[Contract]:
        return self._repo.list_contracts(status=status)

    def get_contract(self, contract_id: str) -> Contract:
        contract = self._repo.get_contract(contract_id)
        if contract is None:
            raise ContractNotFoundError(f"Contract {contract_id} not found.")
        return contract

    def delete_contract(self, contract_id: str, user: Optional[User] = None) -> None:
        if not self._repo.delete_contract(contract_id):
            raise ContractNotFoundError(f"Contract {contract_id} not found.")
        logger.info(f"Contract {contract_id} deleted")
        self._log("delete_contract", contract_id, user)

    def set_status(self, contract_id: str, status: ContractStatus, user: Optional[User] = None) -> Contract:
        """Any status may follow any other."""
        try:
            status = ContractStatus(status)
        except ValueError as ex:
            raise ContractValidationError(f"Unknown contract status: {status!r}") from ex
        previous = self.get_contract(contract_id).status
        self._repo.update_status(contract_id, status, self._now())
        logger.info(f"Contract {contract_id} status {previous.value} -> {status.value}")
        self._log("set_status", contract_id, user, f"{previous.value} -> {status.value}")
        return self.get_contract(contract_id)

    # -------- Fields ---------------------------------------------------------
    def load_fields(self, contract_id: str) -> FieldDraft:
        self.get_contract(contract_id)
        return FieldDraft.of(self._repo.list_fields(contract_id))

    def save_fields(
        self,
        contract_id: str,
        fields: Iterable[Field],
        user: Optional[User] = None,
    ) -> List[str]:
        """
        Replace the contract's field list in one transaction.

        Geometry is clamped into the page and display_order follows list order.
        Returns labels used by more than one field (saved anyway).
        """
        draft = FieldDraft.of(
            clamp(f).with_changes(display_order=i) for i, f in enumerate(fields)
        )
        self.get_contract(contract_id)
        self._repo.replace_fields(contract_id, list(draft), self._now())

        duplicates = draft.duplicate_labels()
        if duplicates:
            logger.warning(
                f"Contract {contract_id} has duplicate field labels {duplicates}; "
                f"counterparty values will go to the first field with each label"
            )
        logger.info(f"Saved {len(draft)} field(s) for contract {contract_id}")
        self._log("save_fields", contract_id, user, f"{len(draft)} field(s)")
        return duplicates

    # -------- Templates ------------------------------------------------------
    def duplicate_contract(self, contract_id: str, user: Optional[User] = None) -> Contract:
        """New draft with the same document and fields, fresh ids and no signing state."""
        source = self.get_contract(contract_id)
        fields = self._repo.list_fields(contract_id)

        now = self._now()
        clone = Contract(
            id=uuid.uuid4().hex,
            title=f"{source.title}{COPY_SUFFIX}",
            description=source.description,
            source_document_ref=source.source_document_ref,
            file_name=source.file_name,
            share_token=new_share_token(),
            status=ContractStatus.DRAFT,
            created_by=user.id if user else source.created_by,
            created_at=now,
            updated_at=now,
        )
        cloned_fields = [f.with_changes(id=uuid.uuid4().hex) for f in fields]
        self._repo.add_contract(clone, cloned_fields)
        logger.info(f"Contract {contract_id} duplicated as {clone.id}")
        self._log("duplicate_contract", clone.id, user, f"from {contract_id}")
        return clone

    # -------- Derived state --------------------------------------------------
    def signed_by_both(self, contract_id: str) -> bool:
        contract = self.get_contract(contract_id)
        return signed_by_both(contract.owner_signed_at, self._repo.count_submissions(contract_id))

    def controls_state(self, contract_id: Optional[str]) -> ContractControlsState:
        if not contract_id:
            return ContractControlsState.disabled()
        contract = self.get_contract(contract_id)
        count = self._repo.count_submissions(contract_id)
        both = signed_by_both(contract.owner_signed_at, count)

        if both:
            hint = f"Signed by both parties ({count} submission(s))."
        elif not contract.owner_signed:
            hint = "Sign your fields to activate the share link."
        elif contract.status != ContractStatus.ACTIVE:
            hint = f"Contract is {contract.status.value}; the share link is disabled."
        else:
            hint = "Waiting for the counterparty to sign."

        return ContractControlsState(
            can_copy_link=contract.status == ContractStatus.ACTIVE,
            can_export=both,
            signed_by_both=both,
            info_hint=hint,
        )

    def share_link(self, contract_id: str, base_url: Optional[str] = None) -> str:
        contract = self.get_contract(contract_id)
        base = (base_url if base_url is not None else self._base_url).rstrip("/")
        return f"{base}{SHARE_PATH}{contract.share_token}"

    # -------- Document / overlay --------------------------------------------
    def read_source_document(self, contract_id: str) -> bytes:
        contract = self.get_contract(contract_id)
        try:
            return self._storage.read(contract.source_document_ref)
        except OSError as ex:
            logger.error(f"Reading source document of {contract_id} failed: {ex}")
            raise ContractPersistenceError(f"Source document of {contract_id} is unavailable: {ex}") from ex

    def open_renderer(self, contract_id: str) -> PdfDocumentRenderer:
        contract = self.get_contract(contract_id)
        if Path(contract.file_name).suffix.lower() != ".pdf":
            raise UnsupportedDocumentTypeError(f"'{contract.file_name}' cannot be paged; only PDF documents render.")
        return PdfDocumentRenderer(self.read_source_document(contract_id))

    def open_overlay(
        self,
        contract_id: str,
        mode: OverlayMode,
        *,
        actor_party: Optional[SignerParty] = None,
        scale_limits: Optional[ScaleLimits] = None,
    ) -> Tuple[FieldOverlayController, PdfDocumentRenderer]:
        """Controller over the stored fields plus the renderer that sizes its pages."""
        renderer = self.open_renderer(contract_id)
        contract = self.get_contract(contract_id)
        values = contract.owner_field_values if actor_party == SignerParty.OWNER else None
        controller = FieldOverlayController(
            fields=self._repo.list_fields(contract_id),
            page_count=renderer.page_count(),
            mode=mode,
            actor_party=actor_party,
            values=values,
            scale_limits=scale_limits or ScaleLimits(),
        )
        return controller, renderer
