"""
Mark builders: one per chart family.

Each builder is (data, mapping, styles) -> list[MarkSpec]. Builders only read
data (to infer channel types when the mapping leaves them open) and return
declarative mark descriptors in Observable Plot vocabulary; the renderer turns
them into Altair layers.
"""
from __future__ import annotations

import numbers
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from chart_engine.aggregation import resolve
from chart_engine.utils.logging import log_event

_ROLE_TYPES = {
    "categorical": "nominal",
    "numerical": "quantitative",
    "temporal": "temporal",
}


@dataclass
class Channel:
    field: Optional[str]
    type: str = "nominal"
    # Display name when the field is an internal column (reducer output, bin edge)
    title: Optional[str] = None

    @property
    def name(self) -> Optional[str]:
        return self.title or self.field


@dataclass
class MarkSpec:
    mark: str
    channels: Dict[str, Channel] = field(default_factory=dict)
    transform: Optional[str] = None
    reducers: Dict[str, str] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)
    baseline: bool = False


# ---------------------------------------------------------
# HELPERS
# ---------------------------------------------------------
def _column(role) -> Optional[str]:
    return role.column if role is not None else None


def _aggregation(role) -> Optional[str]:
    return role.aggregation if role is not None and role.aggregation else None


def _infer_type(data, column) -> str:
    for row in data:
        value = row.get(column)
        if value is None:
            continue
        if isinstance(value, bool):
            return "nominal"
        if isinstance(value, numbers.Number):
            return "quantitative"
        if isinstance(value, (date, datetime)):
            return "temporal"
        return "nominal"
    return "nominal"


def _channel(role, data) -> Channel:
    if role.type in _ROLE_TYPES:
        return Channel(role.column, _ROLE_TYPES[role.type])
    return Channel(role.column, _infer_type(data, role.column))


def _band_channel(role, data) -> Channel:
    """Channel on a discrete (band) axis: bars, boxes, cells, slices."""
    kind = _channel(role, data).type
    return Channel(role.column, "nominal" if kind == "nominal" else "ordinal")


def _value_channel(source: Optional[str], reducers: Dict[str, str], channel: str) -> Channel:
    # count ignores its source column
    if reducers.get(channel) == "count":
        return Channel(None, "quantitative")
    return Channel(source, "quantitative")


def _color_channel(role) -> Channel:
    return Channel(role.column, "quantitative" if role.type == "numerical" else "nominal")


def _apply_fill(mapping, styles, channels, options):
    """Categorical fill when mapped, otherwise the configured solid colour."""
    if mapping.fill is not None and mapping.fill.column:
        channels["fill"] = _color_channel(mapping.fill)
    else:
        options["fill"] = styles.get("color")


def _baseline(axis: str = "y") -> MarkSpec:
    return MarkSpec("ruleY" if axis == "y" else "ruleX", options={"value": 0}, baseline=True)


def _is_vertical(mapping) -> bool:
    y = mapping.y
    if y is None:
        return True
    if y.type == "numerical" or y.column:
        return True
    return _aggregation(mapping.x) is None


# ---------------------------------------------------------
# BAR CHART
# ---------------------------------------------------------
def build_bar_marks(data, mapping, styles) -> List[MarkSpec]:
    x, y = mapping.x, mapping.y
    grouped = bool(_aggregation(x) or _aggregation(y) or not _column(y))
    options = {
        "fill_opacity": styles.get("fill_opacity"),
        "padding": styles.get("bar_padding", 0.1),
        "tip": styles.get("show_tooltip"),
    }

    if not _is_vertical(mapping):
        # Count-style value on x, categories down the y axis
        reducers = resolve("x", _aggregation(x) or "count")
        channels = {
            "y": _band_channel(x, data),
            "x": _value_channel(x.column, reducers, "x"),
        }
        _apply_fill(mapping, styles, channels, options)
        return [
            _baseline("x"),
            MarkSpec("barX", channels, transform="groupY", reducers=reducers, options=options),
        ]

    marks = []
    value_numeric = grouped or y.type in (None, "numerical")
    if value_numeric:
        marks.append(_baseline("y"))

    if grouped:
        reducers = resolve("y", _aggregation(y) or "count")
        channels = {
            "x": _band_channel(x, data),
            "y": _value_channel(_column(y), reducers, "y"),
        }
        _apply_fill(mapping, styles, channels, options)
        marks.append(MarkSpec("barY", channels, transform="groupX", reducers=reducers, options=options))
    else:
        channels = {
            "x": _band_channel(x, data),
            "y": _channel(y, data) if y.type else Channel(y.column, "quantitative"),
        }
        _apply_fill(mapping, styles, channels, options)
        marks.append(MarkSpec("barY", channels, options=options))
    return marks


# ---------------------------------------------------------
# LINE CHART
# ---------------------------------------------------------
def build_line_marks(data, mapping, styles) -> List[MarkSpec]:
    x, y = mapping.x, mapping.y
    grouped = bool(_aggregation(x) or _aggregation(y) or not _column(y))

    stroke_role = mapping.color if mapping.color is not None and mapping.color.column else mapping.fill
    line_channels = {"x": _channel(x, data)}
    line_options = {
        "stroke_width": styles.get("stroke_width"),
        "curve": styles.get("curve_type") or "linear",
        "tip": styles.get("show_tooltip"),
    }
    dot_channels = {"x": line_channels["x"]}
    dot_options = {
        "r": styles.get("point_radius"),
        "stroke": styles.get("point_stroke"),
        "stroke_width": styles.get("point_stroke_width"),
        "tip": styles.get("show_tooltip"),
    }

    if stroke_role is not None and stroke_role.column:
        line_channels["stroke"] = _color_channel(stroke_role)
        dot_channels["fill"] = _color_channel(stroke_role)
    else:
        line_options["stroke"] = styles.get("color")
        dot_options["fill"] = styles.get("color")

    if grouped:
        default = "mean" if _column(y) else "count"
        reducers = resolve("y", _aggregation(y) or default)
        line_channels["y"] = _value_channel(_column(y), reducers, "y")
        dot_channels["y"] = line_channels["y"]
        transform = "groupX"
    else:
        reducers = {}
        line_channels["y"] = _channel(y, data)
        dot_channels["y"] = line_channels["y"]
        transform = None

    marks = [MarkSpec("line", line_channels, transform=transform, reducers=dict(reducers), options=line_options)]
    if styles.get("show_points"):
        marks.append(MarkSpec("dot", dot_channels, transform=transform, reducers=dict(reducers), options=dot_options))
    return marks


# ---------------------------------------------------------
# SCATTER PLOT
# ---------------------------------------------------------
def build_scatter_marks(data, mapping, styles) -> List[MarkSpec]:
    x, y, size = mapping.x, mapping.y, mapping.size
    x_agg, y_agg, size_agg = _aggregation(x), _aggregation(y), _aggregation(size)
    options = {
        "fill_opacity": styles.get("fill_opacity"),
        "symbol": styles.get("point_shape", "circle"),
        "tip": styles.get("show_tooltip"),
    }
    channels: Dict[str, Channel] = {}

    if not (x_agg or y_agg or size_agg or not _column(y)):
        channels["x"] = _channel(x, data)
        channels["y"] = _channel(y, data)
        if size is not None and size.column:
            channels["r"] = Channel(size.column, "quantitative")
        else:
            options["r"] = styles.get("point_radius")
        _apply_fill(mapping, styles, channels, options)
        return [MarkSpec("dot", channels, options=options)]

    reducers: Dict[str, str] = {}
    if x_agg and _column(y):
        # x carries the aggregation: one dot per y value
        reducers.update(resolve("x", x_agg))
        channels["y"] = _channel(y, data)
        channels["x"] = _value_channel(x.column, reducers, "x")
        transform = "groupY"
    else:
        default = "mean" if _column(y) else "count"
        reducers.update(resolve("y", y_agg or default))
        channels["x"] = _channel(x, data)
        channels["y"] = _value_channel(_column(y), reducers, "y")
        transform = "groupX"

    if size_agg:
        reducers.update(resolve("r", size_agg))
        channels["r"] = _value_channel(size.column, reducers, "r")
    else:
        options["r"] = styles.get("point_radius")

    _apply_fill(mapping, styles, channels, options)
    return [MarkSpec("dot", channels, transform=transform, reducers=reducers, options=options)]


# ---------------------------------------------------------
# HISTOGRAM
# ---------------------------------------------------------
def build_histogram_marks(data, mapping, styles) -> List[MarkSpec]:
    x, y = mapping.x, mapping.y
    reducers = resolve("y", _aggregation(y) or "count")
    x_type = "temporal" if x.type == "temporal" else "quantitative"
    channels = {
        "x": Channel(x.column, x_type),
        "y": _value_channel(_column(y), reducers, "y"),
    }
    options = {
        "fill_opacity": styles.get("fill_opacity"),
        "thresholds": styles.get("bins"),
        "tip": styles.get("show_tooltip"),
    }
    # Stacked bins by fill keep the binning on x
    _apply_fill(mapping, styles, channels, options)
    return [
        _baseline("y"),
        MarkSpec("rectY", channels, transform="binX", reducers=reducers, options=options),
    ]


# ---------------------------------------------------------
# AREA CHART
# ---------------------------------------------------------
def build_area_marks(data, mapping, styles) -> List[MarkSpec]:
    x, y = mapping.x, mapping.y
    grouped = bool(_aggregation(y) or not _column(y))
    options = {
        "fill_opacity": styles.get("fill_opacity"),
        "curve": styles.get("curve_type") or "linear",
        "tip": styles.get("show_tooltip"),
    }
    channels = {"x": _channel(x, data)}

    if grouped:
        reducers = resolve("y", _aggregation(y) or "count")
        channels["y"] = _value_channel(_column(y), reducers, "y")
        transform = "groupX"
    else:
        reducers = {}
        channels["y"] = _channel(y, data)
        transform = None
    _apply_fill(mapping, styles, channels, options)

    marks = []
    if grouped or channels["y"].type == "quantitative":
        marks.append(_baseline("y"))
    marks.append(MarkSpec("areaY", channels, transform=transform, reducers=dict(reducers), options=options))

    if styles.get("show_line"):
        line_channels = {"x": channels["x"], "y": channels["y"]}
        line_options = {
            "stroke_width": styles.get("stroke_width"),
            "curve": options["curve"],
        }
        if "fill" in channels:
            line_channels["stroke"] = channels["fill"]
        else:
            line_options["stroke"] = styles.get("color")
        marks.append(MarkSpec("line", line_channels, transform=transform, reducers=dict(reducers), options=line_options))
    return marks


# ---------------------------------------------------------
# BOX PLOT
# ---------------------------------------------------------
def build_box_marks(data, mapping, styles) -> List[MarkSpec]:
    x, y = mapping.x, mapping.y
    if _aggregation(x) or _aggregation(y):
        log_event(
            "box_aggregation_ignored",
            {"x_aggregation": _aggregation(x), "y_aggregation": _aggregation(y)},
            level="warning",
        )

    channels = {
        "x": _band_channel(x, data),
        "y": Channel(y.column, "quantitative"),
    }
    options = {
        "fill_opacity": styles.get("fill_opacity"),
        "outliers": bool(styles.get("show_outliers", True)),
        "tip": styles.get("show_tooltip"),
    }
    _apply_fill(mapping, styles, channels, options)
    return [MarkSpec("boxY", channels, options=options)]


# ---------------------------------------------------------
# HEATMAP
# ---------------------------------------------------------
def build_heatmap_marks(data, mapping, styles) -> List[MarkSpec]:
    x, y = mapping.x, mapping.y
    fill_role = mapping.fill if mapping.fill is not None and mapping.fill.column else mapping.z
    fill_column = _column(fill_role)
    aggregation = _aggregation(mapping.fill) or _aggregation(mapping.z)

    channels = {
        "x": _band_channel(x, data),
        "y": _band_channel(y, data),
    }
    options = {
        "inset": styles.get("cell_padding", 0),
        "tip": styles.get("show_tooltip"),
    }

    if aggregation and fill_column:
        reducers = resolve("fill", aggregation)
        channels["fill"] = _value_channel(fill_column, reducers, "fill")
        transform = "group"
    else:
        reducers = {}
        kind = _channel(fill_role, data).type
        channels["fill"] = Channel(fill_column, "quantitative" if kind == "quantitative" else "nominal")
        transform = None

    marks = [MarkSpec("cell", channels, transform=transform, reducers=reducers, options=options)]
    if styles.get("show_values"):
        text_channels = {"x": channels["x"], "y": channels["y"], "text": channels["fill"]}
        text_reducers = {"text": reducers["fill"]} if reducers else {}
        marks.append(MarkSpec("text", text_channels, transform=transform, reducers=text_reducers,
                              options={"font_size": styles.get("font_size")}))
    return marks


# ---------------------------------------------------------
# PIE CHART
# ---------------------------------------------------------
def build_pie_marks(data, mapping, styles) -> List[MarkSpec]:
    x, y = mapping.x, mapping.y
    default = "sum" if _column(y) else "count"
    reducers = resolve("theta", _aggregation(y) or default)
    channels = {
        "x": Channel(x.column, "nominal"),
        "theta": _value_channel(_column(y), reducers, "theta"),
    }
    options = {
        "inner_radius": styles.get("inner_radius", 0),
        "fill_opacity": styles.get("fill_opacity", 1),
        "tip": styles.get("show_tooltip"),
    }

    marks = [MarkSpec("arc", channels, transform="group", reducers=reducers, options=options)]
    if styles.get("show_labels"):
        marks.append(MarkSpec(
            "text",
            dict(channels),
            transform="group",
            reducers=dict(reducers),
            options={"label_type": styles.get("label_type", "percentage"), "font_size": styles.get("font_size")},
        ))
    return marks


BUILDERS = {
    "bar": build_bar_marks,
    "line": build_line_marks,
    "scatter": build_scatter_marks,
    "histogram": build_histogram_marks,
    "area": build_area_marks,
    "box": build_box_marks,
    "heatmap": build_heatmap_marks,
    "pie": build_pie_marks,
}
