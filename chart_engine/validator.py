from __future__ import annotations

from collections.abc import Mapping, Sequence

import pandas as pd
from pydantic import ValidationError as SchemaError

from chart_engine.aggregation import is_supported
from chart_engine.errors import ValidationError
from chart_engine.models import PlotRecommendation

# Families whose value axis can be a bare row count
COUNT_ONLY_FAMILIES = {"bar", "histogram", "pie"}
# Families that need a bound y column
Y_COLUMN_FAMILIES = {"box", "heatmap"}


def as_records(data) -> list:
    """
    Normalize the dataset to a list of records.
    DataFrames are converted with NaN -> None.
    """
    if isinstance(data, pd.DataFrame):
        frame = data.astype(object).where(pd.notna(data), None)
        return frame.to_dict(orient="records")

    if isinstance(data, (str, bytes)) or not isinstance(data, Sequence):
        raise ValidationError("Invalid or empty data array")
    return list(data)


def coerce_recommendation(recommendation) -> PlotRecommendation:
    if recommendation is None:
        raise ValidationError("Invalid chart recommendation or missing data mapping")

    if isinstance(recommendation, PlotRecommendation):
        return recommendation

    if not isinstance(recommendation, Mapping):
        raise ValidationError("Invalid chart recommendation or missing data mapping")

    try:
        return PlotRecommendation.model_validate(dict(recommendation))
    except SchemaError as exc:
        first = exc.errors()[0]
        where = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(f"Invalid chart recommendation at '{where}': {first.get('msg')}") from None


def validate(data, recommendation, *, strict_aggregation: bool = True) -> PlotRecommendation:
    """
    Reject malformed (data, recommendation) pairs before any encoding work.
    Returns the parsed recommendation. The first record is the schema sample.
    """
    records = _validate_data(data)
    rec = coerce_recommendation(recommendation)
    mapping = rec.data_mapping
    if mapping is None:
        raise ValidationError("Invalid chart recommendation or missing data mapping")

    plot_type = (rec.plot_type or "").strip().lower()
    sample = records[0]

    _validate_x(mapping, sample)
    _validate_y(mapping, sample, plot_type)
    if strict_aggregation:
        _validate_aggregations(mapping)
    _validate_heatmap(mapping, plot_type)
    _validate_optional_channels(mapping, sample)
    return rec


def _validate_data(data) -> list:
    if data is None:
        raise ValidationError("Invalid or empty data array")

    records = as_records(data)
    if not records:
        raise ValidationError("Invalid or empty data array")

    if not all(isinstance(row, Mapping) for row in records):
        raise ValidationError("Invalid or empty data array")
    return records


def _validate_x(mapping, sample):
    x = mapping.x
    if x is None or not x.column:
        raise ValidationError("Missing x-axis column mapping")

    if x.column not in sample:
        raise ValidationError(f"Column '{x.column}' not found in data")


def _validate_y(mapping, sample, plot_type):
    y = mapping.y
    if y is None:
        if plot_type not in COUNT_ONLY_FAMILIES:
            raise ValidationError("Missing y-axis mapping")
        return

    if y.column and y.column not in sample:
        raise ValidationError(f"Column '{y.column}' not found in data")

    if plot_type in Y_COLUMN_FAMILIES and not y.column:
        raise ValidationError(f"{plot_type.capitalize()} requires a y-axis column mapping")


def _validate_aggregations(mapping):
    for axis in ("x", "y"):
        role = getattr(mapping, axis)
        if role is None or not role.aggregation:
            continue
        if not is_supported(role.aggregation):
            raise ValidationError(f"Unsupported {axis}-axis aggregation: {role.aggregation}")


def _validate_heatmap(mapping, plot_type):
    if plot_type != "heatmap":
        return

    fill_column = mapping.fill.column if mapping.fill else None
    z_column = mapping.z.column if mapping.z else None
    if not fill_column and not z_column:
        raise ValidationError("Heatmap requires a fill or z column mapping")


def _validate_optional_channels(mapping, sample):
    for channel in ("fill", "size", "z", "color"):
        role = getattr(mapping, channel)
        if role is None or not role.column:
            continue
        if role.column not in sample:
            raise ValidationError(f"{channel.capitalize()} column '{role.column}' not found in data")
