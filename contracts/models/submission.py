from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional


@dataclass(frozen=True)
class Submission:
    """
    One completed counterparty signing pass.

    ``field_values`` is keyed by field *label*, not id; see
    ``contracts.logic.reconciliation`` for how it is mapped back.
    """
    id: str
    contract_id: str
    signer_name: str
    signer_email: str
    field_values: Dict[str, str]
    signed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_agent: Optional[str] = None
