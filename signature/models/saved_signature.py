# signature/models/saved_signature.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class SavedSignature:
    """
    Reusable raster signature owned by one user.

    ``signature_data`` is a PNG/JPEG/... data URL. Applying it to a field
    copies the string; the library entry and the field value are independent
    afterwards.
    """
    id: str
    user_id: str
    name: str
    signature_data: str
    is_default: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
