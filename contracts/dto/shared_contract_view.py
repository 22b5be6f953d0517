"""What a counterparty sees after opening a share link."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Tuple

from contracts.models.contract import Contract
from contracts.models.field import Field


@dataclass(frozen=True)
class SharedContractView:
    """
    Immutable DTO - computed by SigningWorkflow.open_share_link().

    ``owner_values`` is keyed by field id and read-only for the counterparty.
    """

    contract: Contract
    counterparty_fields: Tuple[Field, ...]
    owner_fields: Tuple[Field, ...]
    owner_values: Dict[str, str]

    @property
    def all_fields(self) -> Tuple[Field, ...]:
        return tuple(sorted(self.owner_fields + self.counterparty_fields, key=lambda f: f.display_order))
