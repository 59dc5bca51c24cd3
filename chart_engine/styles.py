"""
Style defaults and merging.

Precedence: explicit user style > chart-family default > global default.
Keys are snake_case internally; camelCase keys from the UI/JSON are accepted.
"""
from __future__ import annotations

import re
from collections.abc import Mapping

GLOBAL_DEFAULTS = {
    "width": 640,
    "height": 400,
    "margins": {"top": 20, "right": 20, "bottom": 30, "left": 40},
    "color": "steelblue",
    "fill_opacity": 0.7,
    "stroke_width": 2,
    "font_size": 12,
    "show_grid": True,
    "show_legend": True,
    "show_tooltip": True,
    "point_radius": 4,
    "bins": 20,
    "curve_type": "linear",
}

_BASE_FAMILY = {
    "width": 800,
    "height": 400,
    "margins": {"top": 40, "right": 40, "bottom": 80, "left": 80},
    "show_grid": True,
    "show_legend": True,
    "show_tooltip": True,
}

FAMILY_DEFAULTS = {
    "bar": {
        **_BASE_FAMILY,
        "color_scheme": "category10",
        "fill_opacity": 0.8,
        "stroke_width": 1,
        "bar_padding": 0.1,
    },
    "line": {
        **_BASE_FAMILY,
        "color_scheme": "category10",
        "stroke_width": 3,
        "curve_type": "catmull-rom",
        "show_points": True,
        "point_radius": 4,
        "point_stroke": "white",
        "point_stroke_width": 2,
    },
    "scatter": {
        **_BASE_FAMILY,
        "color_scheme": "viridis",
        "point_radius": 5,
        "fill_opacity": 0.7,
        "stroke_width": 1,
        "point_shape": "circle",
    },
    "histogram": {
        **_BASE_FAMILY,
        "color_scheme": "blues",
        "fill_opacity": 0.7,
        "stroke_width": 1,
        "bins": 20,
    },
    "area": {
        **_BASE_FAMILY,
        "color_scheme": "blues",
        "fill_opacity": 0.4,
        "stroke_width": 2,
        "curve_type": "basis",
        "show_line": True,
    },
    "heatmap": {
        **_BASE_FAMILY,
        "color_scheme": "viridis",
        "cell_padding": 0.05,
        "show_values": False,
    },
    "box": {
        **_BASE_FAMILY,
        "color_scheme": "set2",
        "fill_opacity": 0.7,
        "stroke_width": 1,
        "show_outliers": True,
    },
    "pie": {
        **_BASE_FAMILY,
        "height": 500,
        "color_scheme": "category10",
        "show_labels": True,
        "label_type": "percentage",
        "inner_radius": 0,
    },
}

CATEGORICAL_SCHEMES = {
    "category10", "category20", "category20b", "category20c", "observable10",
    "tableau10", "tableau20", "dark2", "set1", "set2", "set3",
    "accent", "paired", "pastel1", "pastel2",
}
SEQUENTIAL_SCHEMES = {
    "blues", "greens", "reds", "viridis", "plasma", "magma", "cividis", "inferno", "turbo",
}
DIVERGING_SCHEMES = {
    "rdbu", "rdylbu", "spectral", "brbg", "piyg", "prgn", "puor", "rdgy", "rdylgn",
}

# Vega scheme names differ from the d3 lowercase ones
VEGA_SCHEMES = {
    "category10": "category10",
    "category20": "category20",
    "category20b": "category20b",
    "category20c": "category20c",
    "observable10": "observable10",
    "tableau10": "tableau10",
    "tableau20": "tableau20",
    "dark2": "dark2",
    "set1": "set1",
    "set2": "set2",
    "set3": "set3",
    "accent": "accent",
    "paired": "paired",
    "pastel1": "pastel1",
    "pastel2": "pastel2",
    "rdbu": "redblue",
    "rdylbu": "redyellowblue",
    "rdgy": "redgrey",
    "rdylgn": "redyellowgreen",
    "brbg": "brownbluegreen",
    "piyg": "pinkyellowgreen",
    "prgn": "purplegreen",
    "puor": "purpleorange",
}

_MARGIN_KEYS = {
    "margin_top": "top",
    "margin_right": "right",
    "margin_bottom": "bottom",
    "margin_left": "left",
}

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


def snake_key(key: str) -> str:
    return _CAMEL.sub("_", str(key)).lower()


def normalize_keys(styles) -> dict:
    if not styles or not isinstance(styles, Mapping):
        return {}
    return {snake_key(k): v for k, v in styles.items()}


def as_pixels(value, default: int) -> int:
    """Whole pixels from a number or numeric string; default when it does not parse."""
    if isinstance(value, bool):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def family_defaults(plot_type: str) -> dict:
    return dict(FAMILY_DEFAULTS.get((plot_type or "").lower(), _BASE_FAMILY))


def merge_styles(plot_type: str, user_styles=None) -> dict:
    """
    Merge user styles over family defaults over global defaults.
    margins merge side by side; margin_top etc. override a single side.
    Sizes and margins that do not parse keep the default value.
    """
    family = family_defaults(plot_type)
    user = normalize_keys(user_styles)
    defaults = {**GLOBAL_DEFAULTS, **family}

    merged = {**defaults, **user}
    for key in ("width", "height"):
        merged[key] = as_pixels(merged.get(key), defaults[key])

    default_margins = dict(GLOBAL_DEFAULTS["margins"])
    default_margins.update(family.get("margins") or {})
    margins = dict(default_margins)
    if isinstance(user.get("margins"), Mapping):
        margins.update(user["margins"])
    for key, side in _MARGIN_KEYS.items():
        if user.get(key) is not None:
            margins[side] = user[key]
        merged.pop(key, None)
    merged["margins"] = {
        side: as_pixels(margins.get(side), default) for side, default in default_margins.items()
    }
    return merged


def scheme_kind(scheme) -> str | None:
    name = str(scheme or "").lower()
    if name in CATEGORICAL_SCHEMES:
        return "categorical"
    if name in SEQUENTIAL_SCHEMES:
        return "sequential"
    if name in DIVERGING_SCHEMES:
        return "diverging"
    return None


def vega_scheme(scheme) -> str:
    name = str(scheme or "").lower()
    return VEGA_SCHEMES.get(name, name)


def color_scale(plot_type: str, mapping, styles: dict) -> dict | None:
    """
    Scale for the colour channel.
    - categorical when a non-numerical fill (or line colour) column is mapped
    - sequential for heatmap cells
    - None when marks use the solid configured colour
    """
    scheme = styles.get("color_scheme")
    kind = scheme_kind(scheme)

    if plot_type == "heatmap":
        if kind not in ("sequential", "diverging"):
            scheme = "viridis"
        return {"type": "sequential", "scheme": vega_scheme(scheme)}

    role = mapping.fill or mapping.color
    if plot_type == "pie":
        role = mapping.x
    if role is None or not role.column:
        return None

    if role.type == "numerical":
        if kind not in ("sequential", "diverging"):
            scheme = "blues"
        return {"type": "sequential", "scheme": vega_scheme(scheme)}

    if kind != "categorical":
        scheme = "category10"
    return {"type": "categorical", "scheme": vega_scheme(scheme)}
