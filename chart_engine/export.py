"""PNG/SVG export of rendered charts (vl-convert engine)."""
from __future__ import annotations

import io
import os
import tempfile
from contextlib import contextmanager

from chart_engine.config import get_settings
from chart_engine.errors import RenderFailure
from chart_engine.utils.logging import log_event


def rasterize(chart, scale: int | None = None) -> bytes:
    """Render the chart to PNG bytes."""
    scale = scale or get_settings().png_scale
    buffer = io.BytesIO()
    try:
        chart.save(buffer, format="png", scale_factor=scale)
    except Exception as exc:
        log_event("chart_rasterize_failed", {"error": str(exc)}, level="error")
        raise RenderFailure(f"Failed to rasterize chart: {exc}") from exc
    return buffer.getvalue()


def to_svg(chart) -> str:
    buffer = io.StringIO()
    try:
        chart.save(buffer, format="svg")
    except Exception as exc:
        log_event("chart_rasterize_failed", {"error": str(exc), "format": "svg"}, level="error")
        raise RenderFailure(f"Failed to export chart as SVG: {exc}") from exc
    return buffer.getvalue()


@contextmanager
def chart_png_file(chart, scale: int | None = None):
    """
    Write the chart to a temporary PNG for the lifetime of the block.
    The file is removed on exit.
    """
    data = rasterize(chart, scale)
    fd, path = tempfile.mkstemp(suffix=".png", prefix="chartmate-")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        yield path
    finally:
        if os.path.exists(path):
            os.remove(path)
