# signature/logic/encryption.py
"""
At-rest encryption for saved signature images.

The key file holds one Fernet key per line: the first line is the current
key (used for ENCRYPT), further lines are legacy keys (DECRYPT only). The
file is created with a fresh key on first use.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

from cryptography.fernet import Fernet, InvalidToken, MultiFernet

logger = logging.getLogger(__name__)


def _read_keys(key_file: Path) -> List[bytes]:
    lines = key_file.read_text(encoding="ascii").splitlines()
    return [ln.strip().encode("ascii") for ln in lines if ln.strip()]


def _create_key_file(key_file: Path) -> None:
    key_file.parent.mkdir(parents=True, exist_ok=True)
    key_file.write_text(Fernet.generate_key().decode("ascii") + "\n", encoding="ascii")
    try:
        os.chmod(key_file, 0o600)
    except OSError:
        logger.warning(f"Could not restrict permissions on {key_file}")
    logger.info(f"Created signature key file {key_file}")


class SignatureCipher:
    """Fernet keyring bound to a key file."""

    def __init__(self, key_file: Path) -> None:
        self._key_file = Path(key_file)
        if not self._key_file.exists():
            _create_key_file(self._key_file)
        keys = _read_keys(self._key_file)
        if not keys:
            raise ValueError(f"Signature key file is empty: {self._key_file}")
        self._fernet = MultiFernet([Fernet(k) for k in keys])

    def encrypt(self, data: bytes) -> bytes:
        return self._fernet.encrypt(data)

    def decrypt(self, token: bytes) -> bytes:
        """Try the current key first, then legacy keys. Raises InvalidToken."""
        return self._fernet.decrypt(token)


__all__ = ["SignatureCipher", "InvalidToken"]
