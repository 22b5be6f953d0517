"""
user.py

Acting user as seen by the signing features.

Authentication lives outside this repository; callers hand in an already
identified user. ``id`` scopes the signature library, ``display_name`` is
what gets written into audit entries and submissions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class User:
    id: str
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.username
