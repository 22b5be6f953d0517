from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from contracts.enum.field_type import FieldType


@dataclass(frozen=True)
class ExportEntry:
    """One value to paint: page, percent geometry, type and resolved value (None = empty)."""
    page: int
    x: float
    y: float
    width: float
    height: float
    type: FieldType
    value: Optional[str] = None
    label: str = ""

    @property
    def has_value(self) -> bool:
        return bool(self.value)
