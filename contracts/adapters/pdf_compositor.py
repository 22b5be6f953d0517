"""PDF compositor: paints resolved field values onto the source document.

Each page that carries at least one value gets a reportlab overlay of the
same size, merged onto the original page with pypdf. Field geometry is in
percent of the page as displayed (after /Rotate) with a top-left origin.
The overlay draws in that visible frame and a page transform maps it back
into the unrotated user space, so values stay upright where they were placed.
"""

from __future__ import annotations
from collections import defaultdict
from io import BytesIO
from typing import Dict, List, Protocol, Sequence, Tuple
import logging

from PIL import Image, UnidentifiedImageError
from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from contracts.enum.field_type import FieldType
from contracts.exceptions.errors import ExportError
from contracts.models.export_entry import ExportEntry
from signature.logic.raster import decode_data_url

logger = logging.getLogger(__name__)

FONT_NAME = "Helvetica"
FONT_SIZE = 12
TEXT_PADDING_X = 4
TEXT_BASELINE_FROM_BOTTOM = 6


class Compositor(Protocol):
    def compose(self, source_pdf: bytes, entries: Sequence[ExportEntry]) -> bytes: ...


class PdfCompositor:
    @staticmethod
    def _page_transform(rotation: int, left: float, bottom: float, width: float, height: float) -> Tuple[float, ...]:
        """
        Matrix (a, b, c, d, e, f) from the visible frame to PDF user space.

        The visible frame is the page as displayed after ``/Rotate``, origin
        bottom-left; *width*/*height* are the unrotated media box dimensions.
        """
        rotation %= 360
        if rotation == 90:
            return 0.0, 1.0, -1.0, 0.0, left + width, bottom
        if rotation == 180:
            return -1.0, 0.0, 0.0, -1.0, left + width, bottom + height
        if rotation == 270:
            return 0.0, -1.0, 1.0, 0.0, left, bottom + height
        return 1.0, 0.0, 0.0, 1.0, left, bottom

    @staticmethod
    def _box(entry: ExportEntry, page_w: float, page_h: float):
        """Percent geometry (top-left origin) -> (x, y, w, h) in visible points (bottom-left origin)."""
        w = entry.width / 100.0 * page_w
        h = entry.height / 100.0 * page_h
        x = entry.x / 100.0 * page_w
        y = page_h - (entry.y / 100.0 * page_h) - h
        return x, y, w, h

    @staticmethod
    def _draw_text(c: canvas.Canvas, entry: ExportEntry, x: float, y: float, w: float, h: float) -> None:
        c.setFillColorRGB(1, 1, 1)
        c.rect(x, y, w, h, stroke=0, fill=1)
        c.setFillColorRGB(0, 0, 0)
        c.setFont(FONT_NAME, FONT_SIZE)
        c.drawString(x + TEXT_PADDING_X, y + TEXT_BASELINE_FROM_BOTTOM, entry.value or "")

    @staticmethod
    def _draw_signature(c: canvas.Canvas, entry: ExportEntry, x: float, y: float, w: float, h: float) -> bool:
        try:
            _, payload = decode_data_url(entry.value or "")
            img = Image.open(BytesIO(payload))
            img.load()
        except (ValueError, UnidentifiedImageError, OSError) as ex:
            logger.warning(f"Signature value for '{entry.label}' is not a readable image: {ex}")
            return False
        c.drawImage(
            ImageReader(img.convert("RGBA")), x, y, width=w, height=h,
            mask="auto", preserveAspectRatio=True, anchor="c",
        )
        return True

    @classmethod
    def _make_overlay(cls, page, entries: List[ExportEntry]) -> bytes:
        box = page.mediabox
        left, bottom = float(box.left), float(box.bottom)
        width, height = float(box.width), float(box.height)
        rotation = page.rotation % 360
        page_w, page_h = (height, width) if rotation in (90, 270) else (width, height)

        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=(left + width, bottom + height))
        c.transform(*cls._page_transform(rotation, left, bottom, width, height))
        for entry in entries:
            x, y, w, h = cls._box(entry, page_w, page_h)
            if entry.type == FieldType.SIGNATURE:
                cls._draw_signature(c, entry, x, y, w, h)
            else:
                cls._draw_text(c, entry, x, y, w, h)
        c.save()
        return buf.getvalue()

    def compose(self, source_pdf: bytes, entries: Sequence[ExportEntry]) -> bytes:
        """
        Paint every entry with a value onto its page and return the merged PDF.
        Entries without a value or on a page the document does not have are skipped.
        """
        try:
            writer = PdfWriter(clone_from=PdfReader(BytesIO(source_pdf)))
        except (PdfReadError, ValueError) as ex:
            raise ExportError(f"Source document is not a readable PDF: {ex}") from ex
        page_count = len(writer.pages)

        by_page: Dict[int, List[ExportEntry]] = defaultdict(list)
        for entry in entries:
            if not entry.has_value:
                continue
            if not 1 <= entry.page <= page_count:
                logger.warning(f"Field '{entry.label}' is on page {entry.page}; document has {page_count}")
                continue
            by_page[entry.page].append(entry)

        for number, page_entries in by_page.items():
            page = writer.pages[number - 1]
            overlay_reader = PdfReader(BytesIO(self._make_overlay(page, page_entries)))
            page.merge_page(overlay_reader.pages[0])

        out = BytesIO()
        writer.write(out)
        logger.info(f"Composed {sum(len(v) for v in by_page.values())} value(s) onto {page_count} page(s)")
        return out.getvalue()
