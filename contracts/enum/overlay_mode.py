"""Overlay interaction modes."""
from __future__ import annotations

from enum import Enum


class OverlayMode(str, Enum):
    EDIT = "edit"   # author places, labels, drags, deletes
    SIGN = "sign"   # one party fills its own fields
    VIEW = "view"   # read-only
