"""Signer party enumeration."""
from __future__ import annotations

from enum import Enum


class SignerParty(str, Enum):
    """Who fills a field. Fixed when the field is placed."""

    OWNER = "owner"
    COUNTERPARTY = "counterparty"

    @property
    def other(self) -> "SignerParty":
        return SignerParty.COUNTERPARTY if self is SignerParty.OWNER else SignerParty.OWNER
