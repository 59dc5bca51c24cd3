"""
Plot assembler: (data, recommendation, styles) -> RenderConfig.

One synchronous pass per call. Validation and rendering failures never
escape: they come back as an ErrorRenderConfig that draws the message.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from chart_engine.config import Settings, get_settings
from chart_engine.errors import RenderFailure, ValidationError
from chart_engine.marks import MarkSpec
from chart_engine.renderer import render_config, render_error
from chart_engine.router import route_plot_type
from chart_engine.styles import GLOBAL_DEFAULTS, as_pixels, color_scale, merge_styles, normalize_keys
from chart_engine.utils.logging import log_event
from chart_engine.validator import as_records, validate


@dataclass
class RenderConfig:
    plot_type: str
    width: int
    height: int
    margins: Dict[str, int]
    marks: List[MarkSpec]
    x_label: Optional[str] = None
    y_label: Optional[str] = None
    title: Optional[str] = None
    color: Optional[Dict[str, str]] = None
    style: Dict[str, Any] = field(default_factory=dict)
    chart: Any = None

    is_error = False


@dataclass
class ErrorRenderConfig:
    message: str
    width: int = GLOBAL_DEFAULTS["width"]
    height: int = GLOBAL_DEFAULTS["height"]
    chart: Any = None

    is_error = True


AssembledChart = Union[RenderConfig, ErrorRenderConfig]


def error_config(message: str, style_config=None) -> ErrorRenderConfig:
    styles = normalize_keys(style_config)
    width = as_pixels(styles.get("width"), GLOBAL_DEFAULTS["width"])
    height = as_pixels(styles.get("height"), GLOBAL_DEFAULTS["height"])
    return ErrorRenderConfig(
        message=message,
        width=width,
        height=height,
        chart=render_error(message, width, height),
    )


def assemble(data, recommendation, style_config=None, *, settings: Settings | None = None) -> AssembledChart:
    settings = settings or get_settings()

    # ---------------------------------------------------------
    # 1. Validate
    # ---------------------------------------------------------
    try:
        rec = validate(data, recommendation, strict_aggregation=settings.strict_aggregation)
        records = as_records(data)
    except ValidationError as exc:
        log_event("chart_validation_failed", {"reason": exc.message}, level="warning")
        return error_config(exc.message, style_config)

    mapping = rec.data_mapping
    family = rec.plot_type
    styles = None

    try:
        # ---------------------------------------------------------
        # 2. Resolve family + styles
        # ---------------------------------------------------------
        family, builder = route_plot_type(rec.plot_type)
        styles = merge_styles(family, style_config)

        marks = builder(records, mapping, styles)

        x_label = mapping.x.label if mapping.x and mapping.x.label else None
        y_label = mapping.y.label if mapping.y and mapping.y.label else None
        if any(mark.mark == "barX" for mark in marks):
            # Horizontal bars: categories run down the y axis
            x_label, y_label = y_label, x_label

        config = RenderConfig(
            plot_type=family,
            width=styles["width"],
            height=styles["height"],
            margins=styles["margins"],
            marks=marks,
            x_label=x_label,
            y_label=y_label,
            title=rec.title or None,
            color=color_scale(family, mapping, styles),
            style=styles,
        )

        # ---------------------------------------------------------
        # 3. Materialize through Altair
        # ---------------------------------------------------------
        config.chart = render_config(config, records)
    except Exception as exc:
        failure = RenderFailure(str(exc) or exc.__class__.__name__)
        log_event(
            "chart_render_failed",
            {"plot_type": family, "id": rec.id, "error": failure.message, "error_type": exc.__class__.__name__},
            level="error",
        )
        return error_config(failure.message, styles or style_config)

    log_event("chart_assembled", {"plot_type": family, "id": rec.id, "marks": [m.mark for m in marks]})
    return config


def generate_chart(data, recommendation, style_config=None, *, settings: Settings | None = None):
    """Altair chart for the recommendation (an error chart when it cannot be drawn)."""
    return assemble(data, recommendation, style_config, settings=settings).chart
