"""Aggregation keywords and the reducers they map to."""
from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from chart_engine.errors import UnsupportedAggregationError
from chart_engine.utils.logging import log_event


class AggregationKind(str, Enum):
    COUNT = "count"
    SUM = "sum"
    MEAN = "mean"
    MEDIAN = "median"
    MIN = "min"
    MAX = "max"
    FIRST = "first"
    LAST = "last"
    STD = "std"
    VARIANCE = "variance"


SYNONYMS = {
    "average": AggregationKind.MEAN,
    "minimum": AggregationKind.MIN,
    "maximum": AggregationKind.MAX,
    "stddev": AggregationKind.STD,
}

# Plotting vocabulary
REDUCERS = {
    AggregationKind.COUNT: "count",
    AggregationKind.SUM: "sum",
    AggregationKind.MEAN: "mean",
    AggregationKind.MEDIAN: "median",
    AggregationKind.MIN: "min",
    AggregationKind.MAX: "max",
    AggregationKind.FIRST: "first",
    AggregationKind.LAST: "last",
    AggregationKind.STD: "deviation",
    AggregationKind.VARIANCE: "variance",
}

_PANDAS_REDUCERS = {
    "count": "size",
    "sum": "sum",
    "mean": "mean",
    "median": "median",
    "min": "min",
    "max": "max",
    "first": "first",
    "last": "last",
    "deviation": "std",
    "variance": "var",
}


def normalize_aggregation(kind) -> AggregationKind:
    """
    Canonical form of an aggregation keyword.
    - case-insensitive
    - average/minimum/maximum/stddev are accepted as synonyms
    Raises UnsupportedAggregationError for anything else.
    """
    if isinstance(kind, AggregationKind):
        return kind

    text = str(kind or "").strip().lower()
    if text in SYNONYMS:
        return SYNONYMS[text]
    try:
        return AggregationKind(text)
    except ValueError:
        raise UnsupportedAggregationError(f"Unsupported aggregation type: {kind}") from None


def is_supported(kind) -> bool:
    try:
        normalize_aggregation(kind)
    except UnsupportedAggregationError:
        return False
    return True


def resolve(channel: str, kind: Optional[str]) -> Dict[str, str]:
    """
    Bind a channel to a reducer, e.g. resolve("y", "average") -> {"y": "mean"}.
    Unknown keywords log a warning and fall back to count.
    """
    if kind is None:
        return {channel: REDUCERS[AggregationKind.COUNT]}

    try:
        canonical = normalize_aggregation(kind)
    except UnsupportedAggregationError as exc:
        log_event(
            "aggregation_fallback",
            {"channel": channel, "aggregation": str(kind), "reason": exc.message, "fallback": "count"},
            level="warning",
        )
        canonical = AggregationKind.COUNT
    return {channel: REDUCERS[canonical]}


def pandas_reducer(reducer: str) -> str:
    """pandas groupby aggregation name for a plotting reducer."""
    return _PANDAS_REDUCERS.get(reducer, "size")
