"""Storage adapter abstraction.

Defines interface for contract file storage operations.
Allows switching between local filesystem, S3, Azure Blob, etc.
"""

from __future__ import annotations
from abc import ABC, abstractmethod


class StorageAdapter(ABC):
    """Abstract storage adapter for source documents, signed artifacts and signature images."""

    @abstractmethod
    def save_source_document(self, *, contract_id: str, file_name: str, data: bytes) -> str:
        """
        Persist the uploaded source document.

        Args:
            contract_id: Contract ID
            file_name: Original upload name (extension is kept)
            data: File content

        Returns:
            Storage reference of the stored file
        """
        raise NotImplementedError

    @abstractmethod
    def save_artifact(self, *, contract_id: str, file_name: str, data: bytes) -> str:
        """
        Persist a merged, signed PDF.

        Returns:
            Storage reference of the stored artifact
        """
        raise NotImplementedError

    @abstractmethod
    def save_signature_image(self, *, contract_id: str, field_id: str, data: bytes, extension: str = "png") -> str:
        """
        Persist a raster signature as a standalone image file.

        Args:
            extension: File extension matching the image format (without dot)

        Returns:
            Storage reference of the stored image
        """
        raise NotImplementedError

    @abstractmethod
    def read(self, ref: str) -> bytes:
        """
        Read a stored file.

        Raises:
            FileNotFoundError: when *ref* does not exist
        """
        raise NotImplementedError

    @abstractmethod
    def exists(self, ref: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def delete(self, ref: str) -> bool:
        """Remove a stored file. Returns False when nothing was stored under *ref*."""
        raise NotImplementedError
