from .renderer import CANVAS_HEIGHT, CANVAS_WIDTH, chart_points, render_line_chart
from .store import ChartStore

__all__ = [
    "CANVAS_HEIGHT",
    "CANVAS_WIDTH",
    "ChartStore",
    "chart_points",
    "render_line_chart",
]
