"""Line chart rendering for metric history.

Fixed 400x300 canvas: the y axis runs from (50, 10) to (50, 250), the x axis
from (50, 250) to (390, 250). The series maximum maps to 200px above the
baseline and points are spread evenly over 340px.
"""

from __future__ import annotations

import io
from typing import Sequence

from PIL import Image, ImageDraw, ImageFont

CANVAS_WIDTH = 400
CANVAS_HEIGHT = 300

_ORIGIN_X = 50
_BASELINE_Y = 250
_TOP_Y = 10
_RIGHT_X = 390
_PLOT_WIDTH = 340
_PLOT_HEIGHT = 200


def chart_points(series: Sequence[float]) -> list[tuple[float, float]]:
    values = [float(v) for v in series]
    if not values:
        return []
    step_x = _PLOT_WIDTH / (len(values) - 1 or 1)
    peak = max(values)
    points: list[tuple[float, float]] = []
    for index, value in enumerate(values):
        ratio = value / peak if peak > 0 else 0.0
        points.append((_ORIGIN_X + step_x * index, _BASELINE_Y - ratio * _PLOT_HEIGHT))
    return points


def render_line_chart(series: Sequence[float], label: str, color: str = "#FF5733") -> bytes:
    image = Image.new("RGB", (CANVAS_WIDTH, CANVAS_HEIGHT), "#FFFFFF")
    draw = ImageDraw.Draw(image)

    draw.line(
        [(_ORIGIN_X, _TOP_Y), (_ORIGIN_X, _BASELINE_Y), (_RIGHT_X, _BASELINE_Y)],
        fill="#000000",
        width=1,
    )

    points = chart_points(series)
    if len(points) >= 2:
        draw.line(points, fill=color, width=2)
    elif points:
        x, y = points[0]
        draw.ellipse((x - 2, y - 2, x + 2, y + 2), fill=color)

    if label:
        draw.text((_ORIGIN_X, 280), label, fill="#000000", font=ImageFont.load_default())

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
