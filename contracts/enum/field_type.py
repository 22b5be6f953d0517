"""Field type enumeration."""
from __future__ import annotations

from enum import Enum


class FieldType(str, Enum):
    """Kind of value a placed field accepts."""

    TEXT = "text"
    DATE = "date"
    SIGNATURE = "signature"

    @property
    def default_label(self) -> str:
        return f"{self.value.capitalize()} Field"
