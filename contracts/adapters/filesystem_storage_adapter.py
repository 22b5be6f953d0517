"""Filesystem implementation of StorageAdapter.

Stores contract files in local filesystem with structured directory layout::

    <root>/<contract_id>/source/<file_name>
    <root>/<contract_id>/signed/<file_name>
    <root>/<contract_id>/signatures/<field_id>.<png|jpeg|gif|webp>

References handed out are paths relative to the root, so a store can be
moved without rewriting database rows.
"""

from __future__ import annotations
from pathlib import Path
import logging
import os
import re

from contracts.adapters.storage_adapter import StorageAdapter

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_name(name: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("_", Path(name).name).strip("._")
    return cleaned or "file"


class FilesystemStorageAdapter(StorageAdapter):
    """Local filesystem implementation of StorageAdapter."""

    def __init__(self, root_path: str | Path):
        """
        Initialize filesystem storage.

        Args:
            root_path: Root directory for contract storage
        """
        self._root = Path(root_path)
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def _write(self, relative: Path, data: bytes) -> str:
        dest_path = self._root / relative
        dest_path.parent.mkdir(parents=True, exist_ok=True)

        # write-then-rename so readers never see a partial file
        tmp_path = dest_path.with_name(dest_path.name + ".part")
        tmp_path.write_bytes(data)
        os.replace(tmp_path, dest_path)

        logger.debug(f"Stored {len(data)} bytes at {dest_path}")
        return relative.as_posix()

    def _resolve(self, ref: str) -> Path:
        path = (self._root / ref).resolve()
        if self._root.resolve() not in path.parents:
            raise FileNotFoundError(f"Reference outside storage root: {ref}")
        return path

    def save_source_document(self, *, contract_id: str, file_name: str, data: bytes) -> str:
        """Save the uploaded document to the source directory."""
        return self._write(Path(contract_id) / "source" / _safe_name(file_name), data)

    def save_artifact(self, *, contract_id: str, file_name: str, data: bytes) -> str:
        """Save a signed PDF to the signed directory."""
        return self._write(Path(contract_id) / "signed" / _safe_name(file_name), data)

    def save_signature_image(self, *, contract_id: str, field_id: str, data: bytes, extension: str = "png") -> str:
        """Save a signature raster to the signatures directory."""
        suffix = _safe_name(extension.lower().lstrip(".") or "png")
        return self._write(Path(contract_id) / "signatures" / f"{_safe_name(field_id)}.{suffix}", data)

    def read(self, ref: str) -> bytes:
        return self._resolve(ref).read_bytes()

    def exists(self, ref: str) -> bool:
        """Check if file exists."""
        try:
            return self._resolve(ref).is_file()
        except FileNotFoundError:
            return False

    def delete(self, ref: str) -> bool:
        try:
            path = self._resolve(ref)
        except FileNotFoundError:
            return False
        if not path.is_file():
            return False
        path.unlink()
        logger.debug(f"Deleted {path}")
        return True
