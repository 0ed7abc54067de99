from __future__ import annotations

import io

import pytest
from PIL import Image

from charts import CANVAS_HEIGHT, CANVAS_WIDTH, ChartStore, chart_points, render_line_chart

LINE_COLOR = (0xFF, 0x57, 0x33)


def _open(png: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(png))
    image.load()
    return image.convert("RGB")


def test_rising_series_draws_visible_polyline():
    image = _open(render_line_chart([1, 2, 3], "Weight trend"))
    assert image.size == (CANVAS_WIDTH, CANVAS_HEIGHT)

    colors = {color for _, color in image.getcolors(maxcolors=CANVAS_WIDTH * CANVAS_HEIGHT)}
    assert LINE_COLOR in colors
    assert len(colors) > 2

    # Middle point sits at (220, ~116.7).
    column = [image.getpixel((220, y)) for y in range(105, 130)]
    assert LINE_COLOR in column


def test_points_scale_to_maximum_and_spread_over_width():
    points = chart_points([1, 2, 4])
    assert points[0] == pytest.approx((50.0, 200.0))
    assert points[1] == pytest.approx((220.0, 150.0))
    assert points[2] == pytest.approx((390.0, 50.0))


@pytest.mark.parametrize("series", [[], [5], [0, 0, 0], [0]])
def test_degenerate_series_render_valid_image(series):
    image = _open(render_line_chart(series, "Calories"))
    assert image.size == (CANVAS_WIDTH, CANVAS_HEIGHT)


def test_single_point_and_zero_series_do_not_divide_by_zero():
    assert chart_points([5]) == [(50.0, 50.0)]
    assert chart_points([0, 0]) == [(50.0, 250.0), (390.0, 250.0)]
    assert chart_points([]) == []


def test_chart_store_produces_no_image_without_public_base():
    store = ChartStore()
    assert store.enabled is False
    assert store.image_message(b"\x89PNGdata") is None
    assert len(store) == 0


def test_chart_store_serves_urls_and_evicts_oldest():
    store = ChartStore(public_base_url="https://bot.example.com/", max_entries=2)
    message = store.image_message(b"first")
    assert message["originalContentUrl"].startswith("https://bot.example.com/charts/")
    chart_id = message["originalContentUrl"].rsplit("/", 1)[1].removesuffix(".png")
    assert store.get(chart_id) == b"first"

    store.put(b"second")
    store.put(b"third")
    assert store.get(chart_id) is None
    assert len(store) == 2
