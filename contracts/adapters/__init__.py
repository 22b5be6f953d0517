"""Adapters for external dependencies.

Provides abstraction layers for:
- File storage (filesystem/cloud-agnostic)
- Paging of the source document
- Composition of the signed PDF
"""

from contracts.adapters.storage_adapter import StorageAdapter
from contracts.adapters.filesystem_storage_adapter import FilesystemStorageAdapter
from contracts.adapters.document_renderer import DocumentRenderer, PdfDocumentRenderer
from contracts.adapters.pdf_compositor import Compositor, PdfCompositor

__all__ = [
    "StorageAdapter",
    "FilesystemStorageAdapter",
    "DocumentRenderer",
    "PdfDocumentRenderer",
    "Compositor",
    "PdfCompositor",
]
