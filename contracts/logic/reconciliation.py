"""
Value reconciliation: owner values (keyed by field id) + one counterparty
submission (keyed by field label) -> one value per field id.

Label matching is a compatibility shim for submissions only. Everything
after ``resolve_values`` works with field ids.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from contracts.models.export_entry import ExportEntry
from contracts.models.field import Field

logger = logging.getLogger(__name__)


def label_index(fields: Iterable[Field]) -> Dict[str, Field]:
    """label -> first field carrying it, in field-list order."""
    index: Dict[str, Field] = {}
    for f in fields:
        index.setdefault(f.label, f)
    return index


def resolve_values(
    fields: Sequence[Field],
    owner_values: Optional[Mapping[str, str]],
    submission_values: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    1. start empty
    2. copy owner values by field id
    3. map each submission label to the first field with that label and
       overwrite; labels without a field are dropped
    """
    resolved: Dict[str, str] = {}
    for field_id, value in (owner_values or {}).items():
        resolved[field_id] = value

    by_label = label_index(fields)
    for label, value in (submission_values or {}).items():
        target = by_label.get(label)
        if target is None:
            logger.debug(f"Submission value for unknown label '{label}' dropped")
            continue
        resolved[target.id] = value
    return resolved


def build_export_payload(fields: Sequence[Field], resolved: Mapping[str, str]) -> List[ExportEntry]:
    """One entry per field in list order; fields without a value carry None."""
    return [
        ExportEntry(
            page=f.page_number,
            x=f.x,
            y=f.y,
            width=f.width,
            height=f.height,
            type=f.type,
            value=resolved.get(f.id) or None,
            label=f.label,
        )
        for f in fields
    ]


def rekey_by_label(fields: Sequence[Field], values_by_id: Mapping[str, str]) -> Dict[str, str]:
    """Counterparty boundary: id-keyed values -> label-keyed submission values."""
    out: Dict[str, str] = {}
    for f in fields:
        if f.id in values_by_id:
            out.setdefault(f.label, values_by_id[f.id])
    return out
