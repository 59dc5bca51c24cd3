import math

import altair as alt
import pandas as pd

from chart_engine.aggregation import pandas_reducer
from chart_engine.marks import Channel

# Records are small but the user decides the file size
alt.data_transformers.disable_max_rows()

_CURVES = {
    "linear": "linear",
    "basis": "basis",
    "cardinal": "cardinal",
    "catmull-rom": "catmull-rom",
    "monotone-x": "monotone",
    "monotone": "monotone",
    "natural": "natural",
    "step": "step",
    "step-after": "step-after",
    "step-before": "step-before",
}

_SHAPES = {
    "circle": "circle",
    "square": "square",
    "diamond": "diamond",
    "triangle": "triangle-up",
    "cross": "cross",
}


# ---------------------------------------------------------
# ENTRYPOINT
# ---------------------------------------------------------
def render_config(config, records):
    """
    Materialize a RenderConfig as an Altair chart.
    Reducers and bins are applied with pandas first, so every layer
    plots an already-aggregated table as-is.
    """
    df = pd.DataFrame.from_records(list(records))

    layers = [None] * len(config.marks)
    titles = {}

    # Data marks first so baseline rules can share the value-axis title
    for index, mark in enumerate(config.marks):
        if mark.baseline:
            continue
        renderer = _MARK_RENDERERS.get(mark.mark)
        if renderer is None:
            raise ValueError(f"Unsupported mark type: {mark.mark}")
        frame, channels = _apply_transform(mark, df)
        layers[index] = renderer(mark, frame, channels, config, titles)

    for index, mark in enumerate(config.marks):
        if mark.baseline:
            layers[index] = _render_rule(mark, titles)

    chart = layers[0] if len(layers) == 1 else alt.layer(*layers)
    chart = chart.properties(
        width=config.width,
        height=config.height,
        padding=dict(config.margins),
    )
    if config.title:
        chart = chart.properties(title=config.title)
    return _configure(chart, config.style)


def render_error(message, width=640, height=400):
    """A chart that only shows the error message, centred and in red."""
    frame = pd.DataFrame({"x": [0.5], "y": [0.5], "message": [f"Error: {message}"]})
    return (
        alt.Chart(frame)
        .mark_text(color="red", fontSize=14, align="center", baseline="middle")
        .encode(
            x=alt.X("x:Q", scale=alt.Scale(domain=[0, 1]), axis=None),
            y=alt.Y("y:Q", scale=alt.Scale(domain=[0, 1]), axis=None),
            text="message:N",
        )
        .properties(width=width, height=height)
        .configure_view(stroke=None)
    )


# ---------------------------------------------------------
# TRANSFORMS (groupX / groupY / group / binX)
# ---------------------------------------------------------
def _apply_transform(mark, df):
    channels = dict(mark.channels)
    if mark.transform is None:
        return df, channels

    for channel in channels.values():
        if channel.field and channel.field not in df.columns:
            raise KeyError(f"Column '{channel.field}' not found in data")

    if mark.transform == "binX":
        df, channels = _bin_x(df, channels, mark.options.get("thresholds"))
        primary = ["x", "x2"]
    elif mark.transform == "groupX":
        primary = ["x"]
    elif mark.transform == "groupY":
        primary = ["y"]
    elif mark.transform == "group":
        primary = ["x", "y"]
    else:
        raise ValueError(f"Unsupported transform: {mark.transform}")

    keys = []
    for name in primary + ["fill", "stroke"]:
        channel = channels.get(name)
        if channel is None or not channel.field or name in mark.reducers:
            continue
        if channel.field not in keys:
            keys.append(channel.field)
    if not keys:
        raise ValueError(f"Nothing to group by for mark {mark.mark}")

    return _aggregate(df, keys, mark.reducers, channels)


def _free_name(name, taken):
    """name, or name prefixed with underscores until no column uses it."""
    taken = {str(column) for column in taken}
    candidate = name
    while candidate in taken:
        candidate = f"_{candidate}"
    return candidate


def _aggregate(df, keys, reducers, channels):
    grouped = df.groupby(keys, dropna=False, sort=True)
    columns = {}

    for name, reducer in reducers.items():
        source = channels[name].field if name in channels else None
        if reducer == "count" or not source:
            title = "count"
            series = grouped.size()
        else:
            title = f"{reducer}({source})"
            values = df[source]
            if reducer not in ("first", "last"):
                values = pd.to_numeric(values, errors="coerce")
            series = values.groupby([df[key] for key in keys], dropna=False, sort=True).agg(
                pandas_reducer(reducer)
            )
        # Output columns sit next to the group keys after reset_index
        label = _free_name(title, list(keys) + list(columns))
        columns[label] = series
        kind = "quantitative" if pd.api.types.is_numeric_dtype(series) else "nominal"
        channels[name] = Channel(label, kind, title=title)

    table = pd.DataFrame(columns).reset_index()
    return table, channels


def _bin_x(df, channels, thresholds):
    x = channels["x"]
    if x.type == "temporal":
        values = pd.to_datetime(df[x.field], errors="coerce")
    else:
        values = pd.to_numeric(df[x.field], errors="coerce")

    valid = values.notna()
    if not valid.any():
        raise ValueError(f"Column '{x.field}' has no values to bin")

    bins = int(thresholds or 20)
    codes, edges = pd.cut(values[valid], bins=bins, labels=False, retbins=True)
    codes = codes.astype(int).to_numpy()

    start = _free_name(f"{x.field} (bin start)", df.columns)
    end = _free_name(f"{x.field} (bin end)", list(df.columns) + [start])
    frame = df.loc[valid].copy()
    frame[start] = edges[codes]
    frame[end] = edges[codes + 1]

    channels["x"] = Channel(start, x.type, title=x.name)
    channels["x2"] = Channel(end, x.type)
    return frame, channels


# ---------------------------------------------------------
# ENCODING HELPERS
# ---------------------------------------------------------
def _field(name):
    # Vega-Lite reads dots and brackets as nested access
    return (
        str(name)
        .replace("\\", "\\\\")
        .replace(".", "\\.")
        .replace("[", "\\[")
        .replace("]", "\\]")
    )


def _title(config, axis, channel, titles):
    label = config.x_label if axis == "x" else config.y_label
    title = label or channel.name
    titles.setdefault(axis, title)
    return titles[axis]


def _x(channel, config, titles, **kwargs):
    return alt.X(field=_field(channel.field), type=channel.type,
                 title=_title(config, "x", channel, titles), **kwargs)


def _y(channel, config, titles, **kwargs):
    return alt.Y(field=_field(channel.field), type=channel.type,
                 title=_title(config, "y", channel, titles), **kwargs)


def _color(channel, config):
    scale = alt.Undefined
    if config.color:
        scale = alt.Scale(scheme=config.color["scheme"])
    return alt.Color(field=_field(channel.field), type=channel.type, scale=scale, title=channel.name)


def _tooltip(mark, channels):
    if not mark.options.get("tip"):
        return alt.Undefined
    tips = []
    for name, channel in channels.items():
        if name == "x2" or not channel.field:
            continue
        tips.append(alt.Tooltip(field=_field(channel.field), type=channel.type, title=channel.name))
    return tips


def _fill_encoding(mark, channels, config, name="fill"):
    channel = channels.get(name)
    if channel is not None and channel.field:
        return {"color": _color(channel, config)}
    return {}


def _opacity(mark):
    value = mark.options.get("fill_opacity")
    return alt.Undefined if value is None else value


def _paint(mark, key="fill"):
    value = mark.options.get(key)
    return {"color": value} if value else {}


def _band_scale(mark):
    padding = mark.options.get("padding")
    if padding is None:
        return alt.Undefined
    return alt.Scale(paddingInner=padding)


# ---------------------------------------------------------
# MARKS
# ---------------------------------------------------------
def _render_rule(mark, titles):
    frame = pd.DataFrame({"value": [mark.options.get("value", 0)]})
    if mark.mark == "ruleX":
        encoding = {"x": alt.X("value:Q", title=titles.get("x"))}
    else:
        encoding = {"y": alt.Y("value:Q", title=titles.get("y"))}
    return alt.Chart(frame).mark_rule(color="black").encode(**encoding)


def _render_bar_y(mark, frame, channels, config, titles):
    return (
        alt.Chart(frame)
        .mark_bar(opacity=_opacity(mark), **_paint(mark))
        .encode(
            x=_x(channels["x"], config, titles, scale=_band_scale(mark)),
            y=_y(channels["y"], config, titles),
            tooltip=_tooltip(mark, channels),
            **_fill_encoding(mark, channels, config),
        )
    )


def _render_bar_x(mark, frame, channels, config, titles):
    return (
        alt.Chart(frame)
        .mark_bar(opacity=_opacity(mark), **_paint(mark))
        .encode(
            x=_x(channels["x"], config, titles),
            y=_y(channels["y"], config, titles, scale=_band_scale(mark)),
            tooltip=_tooltip(mark, channels),
            **_fill_encoding(mark, channels, config),
        )
    )


def _render_line(mark, frame, channels, config, titles):
    curve = _CURVES.get(str(mark.options.get("curve") or "linear").lower(), "linear")
    return (
        alt.Chart(frame)
        .mark_line(
            interpolate=curve,
            strokeWidth=mark.options.get("stroke_width") or 2,
            **_paint(mark, "stroke"),
        )
        .encode(
            x=_x(channels["x"], config, titles),
            y=_y(channels["y"], config, titles),
            tooltip=_tooltip(mark, channels),
            **_fill_encoding(mark, channels, config, "stroke"),
        )
    )


def _render_dot(mark, frame, channels, config, titles):
    encoding = {
        "x": _x(channels["x"], config, titles),
        "y": _y(channels["y"], config, titles),
        "tooltip": _tooltip(mark, channels),
    }
    encoding.update(_fill_encoding(mark, channels, config))

    mark_kwargs = {
        "filled": True,
        "shape": _SHAPES.get(str(mark.options.get("symbol") or "circle"), "circle"),
        "opacity": _opacity(mark),
    }
    mark_kwargs.update(_paint(mark))
    if mark.options.get("stroke"):
        mark_kwargs["stroke"] = mark.options["stroke"]
        mark_kwargs["strokeWidth"] = mark.options.get("stroke_width") or 1
    size = channels.get("r")
    if size is not None and size.field:
        encoding["size"] = alt.Size(field=_field(size.field), type="quantitative", title=size.name)
    else:
        # Plot sizes dots by radius; Vega-Lite by area
        radius = float(mark.options.get("r") or 4)
        mark_kwargs["size"] = round(math.pi * radius * radius, 2)

    return alt.Chart(frame).mark_point(**mark_kwargs).encode(**encoding)


def _render_area_y(mark, frame, channels, config, titles):
    curve = _CURVES.get(str(mark.options.get("curve") or "linear").lower(), "linear")
    return (
        alt.Chart(frame)
        .mark_area(interpolate=curve, opacity=_opacity(mark), **_paint(mark))
        .encode(
            x=_x(channels["x"], config, titles),
            y=_y(channels["y"], config, titles),
            tooltip=_tooltip(mark, channels),
            **_fill_encoding(mark, channels, config),
        )
    )


def _render_rect_y(mark, frame, channels, config, titles):
    x = channels["x"]
    bin_kwargs = {} if x.type == "temporal" else {"bin": "binned"}
    return (
        alt.Chart(frame)
        .mark_bar(opacity=_opacity(mark), binSpacing=1, **_paint(mark))
        .encode(
            x=_x(x, config, titles, **bin_kwargs),
            x2=alt.X2(field=_field(channels["x2"].field)),
            y=_y(channels["y"], config, titles),
            tooltip=_tooltip(mark, channels),
            **_fill_encoding(mark, channels, config),
        )
    )


def _render_box_y(mark, frame, channels, config, titles):
    return (
        alt.Chart(frame)
        .mark_boxplot(
            extent=1.5,
            outliers=bool(mark.options.get("outliers", True)),
            opacity=_opacity(mark),
            **_paint(mark),
        )
        .encode(
            x=_x(channels["x"], config, titles),
            y=_y(channels["y"], config, titles),
            **_fill_encoding(mark, channels, config),
        )
    )


def _render_cell(mark, frame, channels, config, titles):
    inset = mark.options.get("inset") or 0
    scale = alt.Scale(paddingInner=inset)
    return (
        alt.Chart(frame)
        .mark_rect()
        .encode(
            x=_x(channels["x"], config, titles, scale=scale),
            y=_y(channels["y"], config, titles, scale=scale),
            color=_color(channels["fill"], config),
            tooltip=_tooltip(mark, channels),
        )
    )


def _render_text(mark, frame, channels, config, titles):
    if "theta" in channels:
        return _render_arc_labels(mark, frame, channels, config)

    return (
        alt.Chart(frame)
        .mark_text(fontSize=mark.options.get("font_size") or 12)
        .encode(
            x=_x(channels["x"], config, titles),
            y=_y(channels["y"], config, titles),
            text=alt.Text(field=_field(channels["text"].field), type=channels["text"].type),
        )
    )


def _render_arc(mark, frame, channels, config, titles):
    radius = _pie_radius(config)
    return (
        alt.Chart(frame)
        .mark_arc(
            innerRadius=radius * float(mark.options.get("inner_radius") or 0),
            outerRadius=radius,
            opacity=_opacity(mark),
        )
        .encode(
            theta=alt.Theta(field=_field(channels["theta"].field), type="quantitative", stack=True),
            color=_color(channels["x"], config),
            tooltip=_tooltip(mark, channels),
        )
    )


def _render_arc_labels(mark, frame, channels, config):
    theta = channels["theta"].field
    total = pd.to_numeric(frame[theta], errors="coerce").sum()
    frame = frame.copy()
    text = _free_name("label", frame.columns)
    if mark.options.get("label_type") == "percentage" and total:
        frame[text] = (frame[theta] / total * 100).map(lambda v: f"{v:.1f}%")
    else:
        frame[text] = frame[theta].map(str)

    return (
        alt.Chart(frame)
        .mark_text(radius=_pie_radius(config) + 18, fontSize=mark.options.get("font_size") or 12)
        .encode(
            theta=alt.Theta(field=_field(theta), type="quantitative", stack=True),
            text=alt.Text(field=_field(text), type="nominal"),
            detail=alt.Detail(field=_field(channels["x"].field), type="nominal"),
        )
    )


def _pie_radius(config):
    return max(min(config.width, config.height) / 2 - 40, 20)


_MARK_RENDERERS = {
    "barY": _render_bar_y,
    "barX": _render_bar_x,
    "line": _render_line,
    "dot": _render_dot,
    "areaY": _render_area_y,
    "rectY": _render_rect_y,
    "boxY": _render_box_y,
    "cell": _render_cell,
    "text": _render_text,
    "arc": _render_arc,
}


# ---------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------
def _configure(chart, style):
    font_size = style.get("font_size") or 12
    return (
        chart.configure_axis(
            grid=bool(style.get("show_grid", True)),
            labelFontSize=font_size,
            titleFontSize=font_size + 2,
        )
        .configure_legend(
            disable=not style.get("show_legend", True),
            labelFontSize=font_size,
            titleFontSize=font_size + 2,
        )
        .configure_title(fontSize=font_size + 6)
        .configure_view(stroke=None)
    )
