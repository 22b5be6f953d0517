"""Contract status enumeration.

Operators may assign any status at any time; there is no transition table.
Whether both parties have signed is derived separately, see
``contracts.logic.contract_service.signed_by_both``.
"""
from __future__ import annotations

from enum import Enum


class ContractStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"
