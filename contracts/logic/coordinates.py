"""
Coordinate model: pixel space of a rendered page <-> percent geometry.

Pure arithmetic, no IO and no errors. Percent geometry uses a top-left
origin, matching what a rendering surface reports for pointer events.
"""
from __future__ import annotations

from dataclasses import dataclass

from contracts.models.field import Field


@dataclass(frozen=True)
class PixelPoint:
    x: float
    y: float


@dataclass(frozen=True)
class PercentPoint:
    x: float
    y: float


@dataclass(frozen=True)
class ContainerRect:
    """Bounding box of the rendered page in the same space as pointer events."""
    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class PixelRect:
    left: float
    top: float
    width: float
    height: float


def to_percent(point: PixelPoint, rect: ContainerRect) -> PercentPoint:
    """Pointer position -> percent of the page. A degenerate rect maps to (0, 0)."""
    if rect.width <= 0 or rect.height <= 0:
        return PercentPoint(0.0, 0.0)
    return PercentPoint(
        x=(point.x - rect.left) / rect.width * 100.0,
        y=(point.y - rect.top) / rect.height * 100.0,
    )


def clamp(field: Field, page_width_percent: float = 100.0, page_height_percent: float = 100.0) -> Field:
    """
    Force *field* inside the page: ``0 <= x <= page_w - width`` and the same
    for y. Sizes larger than the page shrink to the page first.
    """
    width = min(max(field.width, 0.0), page_width_percent)
    height = min(max(field.height, 0.0), page_height_percent)
    x = max(0.0, min(field.x, page_width_percent - width))
    y = max(0.0, min(field.y, page_height_percent - height))
    if (x, y, width, height) == (field.x, field.y, field.width, field.height):
        return field
    return field.with_changes(x=x, y=y, width=width, height=height)


def to_pixels(field: Field, page_width_px: float, page_height_px: float) -> PixelRect:
    """Percent geometry -> pixel box on a page rendered at the given size."""
    return PixelRect(
        left=field.x / 100.0 * page_width_px,
        top=field.y / 100.0 * page_height_px,
        width=field.width / 100.0 * page_width_px,
        height=field.height / 100.0 * page_height_px,
    )


def clamp_scale(scale: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(scale, maximum))


def clamp_page(page: int, page_count: int) -> int:
    """Page index clamped to [1, page_count] (1 when the document has no pages)."""
    return max(1, min(int(page), max(1, int(page_count))))
