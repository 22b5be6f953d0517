"""
contracts/logic/signing_workflow.py
===================================

The two signing phases.

Owner phase
    The owner fills every owner field; values, signed-at and status=active
    are written in one transaction. The share link works from then on.

Counterparty phase
    Whoever holds the share link of an *active* contract fills the
    counterparty fields and submits once per signing. Values are stored
    keyed by field label; each submission is kept.

Both writes are guarded: a second trigger while the first is still running
fails with OperationInProgressError instead of writing twice.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from core.audit.logic.audit_logger import AuditLogger
from core.common.single_flight import SingleFlight
from core.models.user import User
from signature.logic.raster import is_image_data_url

from ..dto.shared_contract_view import SharedContractView
from ..enum.contract_status import ContractStatus
from ..enum.field_type import FieldType
from ..enum.signer_party import SignerParty
from ..exceptions.errors import (
    ContractNotFoundError,
    ContractValidationError,
    InvalidFieldValueError,
    MissingFieldValueError,
    OperationInProgressError,
    ShareLinkNotFoundError,
)
from ..models.contract import Contract
from ..models.field import Field
from ..models.submission import Submission
from ..repository.contract_repository import ContractRepository
from .contract_service import FEATURE_ID, slugify
from .reconciliation import rekey_by_label

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _busy(key) -> OperationInProgressError:
    action, ref = key
    return OperationInProgressError(f"{action} for {ref} is already in progress.")


def _check_values(
    party: SignerParty,
    party_fields: Sequence[Field],
    values: Mapping[str, str],
) -> Dict[str, str]:
    """
    Validate id-keyed values for one party's fields.

    Unknown ids and ids of the other party are rejected, signature values
    must be image data URLs and every required field needs a value.
    Returns the non-empty values.
    """
    by_id = {f.id: f for f in party_fields}
    foreign = [fid for fid in values if fid not in by_id]
    if foreign:
        raise InvalidFieldValueError(
            f"Values for fields that are not {party.value} fields: {', '.join(sorted(foreign))}"
        )

    cleaned: Dict[str, str] = {}
    for fid, raw in values.items():
        value = (raw or "").strip()
        if not value:
            continue
        f = by_id[fid]
        if f.type == FieldType.SIGNATURE and not is_image_data_url(value):
            raise InvalidFieldValueError(f"Field '{f.label}' needs a captured signature.")
        cleaned[fid] = value

    missing = [f.label for f in party_fields if f.required and f.id not in cleaned]
    if missing:
        raise MissingFieldValueError(missing)
    return cleaned


class SigningWorkflow:
    def __init__(
        self,
        *,
        repository: ContractRepository,
        audit: Optional[AuditLogger] = None,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repo = repository
        self._audit = audit
        self._now = now
        self._guard = SingleFlight(_busy)

    def _log(self, event: str, contract_id: str, *, user_id: Optional[str] = None,
             message: Optional[str] = None) -> None:
        if self._audit is not None:
            self._audit.log(FEATURE_ID, event, user_id=user_id, reference_id=contract_id, message=message)

    def _contract(self, contract_id: str) -> Contract:
        contract = self._repo.get_contract(contract_id)
        if contract is None:
            raise ContractNotFoundError(f"Contract {contract_id} not found.")
        return contract

    def _party_fields(self, contract_id: str, party: SignerParty) -> List[Field]:
        return [f for f in self._repo.list_fields(contract_id) if f.signer_party == party]

    # -------- Owner phase ----------------------------------------------------
    def owner_fields(self, contract_id: str) -> List[Field]:
        self._contract(contract_id)
        return self._party_fields(contract_id, SignerParty.OWNER)

    def commit_owner_signing(
        self,
        contract_id: str,
        values: Mapping[str, str],
        user: Optional[User] = None,
    ) -> Contract:
        """Persist owner values and activate the contract, all or nothing."""
        with self._guard.run(("Owner signing", contract_id)):
            self._contract(contract_id)
            owner_fields = self._party_fields(contract_id, SignerParty.OWNER)
            cleaned = _check_values(SignerParty.OWNER, owner_fields, values)

            signed_at = self._now()
            self._repo.commit_owner_signing(contract_id, cleaned, signed_at)

        logger.info(f"Owner signed contract {contract_id} ({len(cleaned)} value(s))")
        self._log("owner_signed", contract_id, user_id=user.id if user else None,
                  message=f"{len(cleaned)} value(s)")
        return self._contract(contract_id)

    # -------- Counterparty phase ---------------------------------------------
    def _resolve_token(self, token: str) -> Contract:
        token = (token or "").strip()
        if not token:
            raise ShareLinkNotFoundError("Empty share link.")

        contract = self._repo.find_by_share_token(token)
        if contract is None:
            # links handed out before share tokens existed carry the title slug
            contract = next(
                (c for c in self._repo.list_contracts(status=ContractStatus.ACTIVE) if slugify(c.title) == token),
                None,
            )
        if contract is None or contract.status != ContractStatus.ACTIVE:
            raise ShareLinkNotFoundError("This signing link is invalid or no longer active.")
        return contract

    def open_share_link(self, token: str) -> SharedContractView:
        contract = self._resolve_token(token)
        fields = self._repo.list_fields(contract.id)
        return SharedContractView(
            contract=contract,
            counterparty_fields=tuple(f for f in fields if f.signer_party == SignerParty.COUNTERPARTY),
            owner_fields=tuple(f for f in fields if f.signer_party == SignerParty.OWNER),
            owner_values=dict(contract.owner_field_values),
        )

    def submit_counterparty(
        self,
        token: str,
        signer_name: str,
        signer_email: str,
        values_by_field_id: Mapping[str, str],
        user_agent: Optional[str] = None,
    ) -> Submission:
        """Validate and record one counterparty submission."""
        with self._guard.run(("Submission", token)):
            view = self.open_share_link(token)

            name = (signer_name or "").strip()
            email = (signer_email or "").strip()
            if not name or not email:
                raise ContractValidationError("Please enter your name and email.")
            if "@" not in email:
                raise ContractValidationError(f"'{email}' is not a valid email address.")

            fields = list(view.counterparty_fields)
            cleaned = _check_values(SignerParty.COUNTERPARTY, fields, values_by_field_id)

            submission = Submission(
                id=uuid.uuid4().hex,
                contract_id=view.contract.id,
                signer_name=name,
                signer_email=email,
                field_values=rekey_by_label(fields, cleaned),
                signed_at=self._now(),
                user_agent=user_agent,
            )
            self._repo.add_submission(submission)

        logger.info(f"Submission {submission.id} recorded for contract {submission.contract_id}")
        self._log("counterparty_signed", submission.contract_id, message=f"{name} <{email}>")
        return submission

    def list_submissions(self, contract_id: str) -> List[Submission]:
        """Newest first."""
        self._contract(contract_id)
        return self._repo.list_submissions(contract_id)
