from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional

from contracts.enum.contract_status import ContractStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Contract:
    """
    Aggregate root of the signing feature.

    Notes:
    - 'source_document_ref'     storage reference of the uploaded document
    - 'owner_field_values'      field id -> value (signatures are data URLs)
    - 'completed_artifact_ref'  storage reference of the last stored export
    - fields and submissions are loaded separately through the repository
    """

    id: str
    title: str
    source_document_ref: str
    file_name: str
    share_token: str
    description: Optional[str] = None
    status: ContractStatus = ContractStatus.DRAFT

    # Owner signing phase
    owner_signed_at: Optional[datetime] = None
    owner_field_values: Dict[str, str] = field(default_factory=dict)

    completed_artifact_ref: Optional[str] = None

    created_by: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def owner_signed(self) -> bool:
        return self.owner_signed_at is not None
