"""ContractControlsState DTO for action enablement."""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class ContractControlsState:
    """
    Which contract actions are available and the hint shown next to them.

    Immutable DTO - computed by ContractService.controls_state().
    """

    can_copy_link: bool
    can_export: bool
    signed_by_both: bool
    info_hint: str

    @staticmethod
    def disabled() -> "ContractControlsState":
        """Factory for fully disabled state (no contract selected)."""
        return ContractControlsState(
            can_copy_link=False,
            can_export=False,
            signed_by_both=False,
            info_hint="",
        )
