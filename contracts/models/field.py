from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Dict

from contracts.enum.field_type import FieldType
from contracts.enum.signer_party import SignerParty


@dataclass(frozen=True)
class Field:
    """
    A positioned, typed slot on one page of the source document.

    Geometry is in percent of the rendered page (top-left origin), so the
    same definition renders at any zoom level. ``label`` is shown to signers
    and is the key counterparty submissions use to refer back to a field.
    """

    id: str
    type: FieldType
    label: str
    page_number: int                  # 1-based
    x: float
    y: float
    width: float
    height: float
    signer_party: SignerParty
    required: bool = True
    display_order: int = 0

    def with_changes(self, **changes: Any) -> "Field":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "label": self.label,
            "page_number": self.page_number,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "signer_party": self.signer_party.value,
            "required": self.required,
            "display_order": self.display_order,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Field":
        return cls(
            id=str(data["id"]),
            type=FieldType(data["type"]),
            label=str(data.get("label") or ""),
            page_number=int(data.get("page_number", 1)),
            x=float(data.get("x", 0.0)),
            y=float(data.get("y", 0.0)),
            width=float(data["width"]),
            height=float(data["height"]),
            signer_party=SignerParty(data.get("signer_party") or SignerParty.COUNTERPARTY.value),
            required=bool(data.get("required", True)),
            display_order=int(data.get("display_order", 0)),
        )
