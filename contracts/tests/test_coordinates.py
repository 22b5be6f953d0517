"""Coordinate model: pixel <-> percent mapping and bounds clamping."""
from __future__ import annotations

import itertools

import pytest

from contracts.logic.coordinates import (
    ContainerRect,
    PixelPoint,
    clamp,
    clamp_page,
    clamp_scale,
    to_percent,
    to_pixels,
)
from contracts.tests.conftest import make_field


def test_to_percent_relative_to_container():
    rect = ContainerRect(left=100, top=50, width=600, height=800)
    p = to_percent(PixelPoint(400, 450), rect)
    assert p.x == pytest.approx(50.0)
    assert p.y == pytest.approx(50.0)


def test_to_percent_degenerate_rect_is_origin():
    p = to_percent(PixelPoint(10, 10), ContainerRect(0, 0, 0, 300))
    assert (p.x, p.y) == (0.0, 0.0)


def test_clamp_leaves_valid_field_untouched():
    f = make_field("a", x=30, y=40, width=20, height=4)
    assert clamp(f) is f


@pytest.mark.parametrize(
    "x, y, width, height",
    list(itertools.product((-50.0, -0.1, 0.0, 42.0, 80.0, 99.9, 150.0),
                           (-10.0, 0.0, 50.0, 96.0, 120.0),
                           (1.0, 25.0, 100.0, 130.0),
                           (1.0, 8.0, 100.0, 110.0))),
)
def test_clamp_bounds_invariant(x, y, width, height):
    f = clamp(make_field("a", x=x, y=y, width=width, height=height))
    assert 0.0 <= f.x <= 100.0 - f.width
    assert 0.0 <= f.y <= 100.0 - f.height
    assert f.width <= 100.0 and f.height <= 100.0


def test_clamp_pins_to_far_edge():
    f = clamp(make_field("a", x=95, y=99, width=20, height=4))
    assert f.x == pytest.approx(80.0)
    assert f.y == pytest.approx(96.0)


@pytest.mark.parametrize("scale", [0.5, 0.75, 1.0, 1.5, 2.0])
def test_scale_independence(scale):
    page_w, page_h = 595.0 * scale, 842.0 * scale
    rect = ContainerRect(left=12, top=30, width=page_w, height=page_h)
    click = PixelPoint(12 + 0.3 * page_w, 30 + 0.6 * page_h)

    p = to_percent(click, rect)
    assert p.x == pytest.approx(30.0)
    assert p.y == pytest.approx(60.0)

    # the stored percentages map back onto the same relative pixel box at any zoom
    f = make_field("a", x=p.x, y=p.y, width=20, height=4)
    box = to_pixels(f, page_w, page_h)
    assert box.left / page_w == pytest.approx(0.30)
    assert box.top / page_h == pytest.approx(0.60)
    assert box.width / page_w == pytest.approx(0.20)


def test_clamp_scale_and_page():
    assert clamp_scale(3.0, 0.5, 2.0) == 2.0
    assert clamp_scale(0.1, 0.5, 2.0) == 0.5
    assert clamp_scale(1.25, 0.5, 2.0) == 1.25
    assert clamp_page(0, 3) == 1
    assert clamp_page(7, 3) == 3
    assert clamp_page(2, 0) == 1
