"""Paging/rendering engine boundary.

The overlay only needs to know how many pages a document has and how big a
page is at a given zoom. ``PdfDocumentRenderer`` answers both from the PDF
page boxes: one PDF point at scale 1.0 is one pixel.
"""

from __future__ import annotations
from io import BytesIO
from typing import List, Protocol, Tuple
import logging

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from contracts.exceptions.errors import UnsupportedDocumentTypeError

logger = logging.getLogger(__name__)


class DocumentRenderer(Protocol):
    def page_count(self) -> int: ...

    def page_size(self, page: int, scale: float = 1.0) -> Tuple[float, float]:
        """(width_px, height_px) of 1-based *page* rendered at *scale*."""
        ...


class PdfDocumentRenderer:
    """Page geometry of a PDF held in memory."""

    def __init__(self, data: bytes) -> None:
        try:
            reader = PdfReader(BytesIO(data))
            self._sizes: List[Tuple[float, float]] = [self._visible_size(p) for p in reader.pages]
        except (PdfReadError, ValueError) as ex:
            raise UnsupportedDocumentTypeError(f"Document is not a readable PDF: {ex}") from ex
        logger.debug(f"Loaded PDF with {len(self._sizes)} page(s)")

    @staticmethod
    def _visible_size(page) -> Tuple[float, float]:
        box = page.mediabox
        w, h = float(box.width), float(box.height)
        rotation = page.rotation % 360
        return (h, w) if rotation in (90, 270) else (w, h)

    def page_count(self) -> int:
        return len(self._sizes)

    def page_size(self, page: int, scale: float = 1.0) -> Tuple[float, float]:
        if not 1 <= page <= len(self._sizes):
            raise IndexError(f"Page {page} out of range 1..{len(self._sizes)}")
        w, h = self._sizes[page - 1]
        return w * scale, h * scale
