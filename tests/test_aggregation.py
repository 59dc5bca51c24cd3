from __future__ import annotations

import logging

import pytest

from chart_engine.aggregation import (
    AggregationKind,
    is_supported,
    normalize_aggregation,
    pandas_reducer,
    resolve,
)
from chart_engine.errors import UnsupportedAggregationError


def test_resolve_synonyms_match_canonical() -> None:
    assert resolve("y", "average") == resolve("y", "mean") == {"y": "mean"}
    assert resolve("y", "minimum") == {"y": "min"}
    assert resolve("y", "maximum") == {"y": "max"}


def test_resolve_is_case_insensitive() -> None:
    assert resolve("x", "SUM") == {"x": "sum"}
    assert resolve("fill", " Median ") == {"fill": "median"}


def test_resolve_missing_kind_counts() -> None:
    assert resolve("y", None) == {"y": "count"}


def test_resolve_std_maps_to_deviation() -> None:
    assert resolve("y", "std") == {"y": "deviation"}
    assert resolve("y", "stddev") == {"y": "deviation"}
    assert resolve("y", "variance") == {"y": "variance"}


def test_resolve_unknown_falls_back_to_count_with_warning(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="chartmate"):
        result = resolve("y", "bogus")

    assert result == {"y": "count"}
    messages = [record.getMessage() for record in caplog.records if record.levelno == logging.WARNING]
    assert any("aggregation_fallback" in message and "bogus" in message for message in messages)


def test_normalize_aggregation_raises_for_unknown() -> None:
    assert normalize_aggregation("Average") is AggregationKind.MEAN

    with pytest.raises(UnsupportedAggregationError, match="bogus"):
        normalize_aggregation("bogus")


def test_is_supported() -> None:
    assert is_supported("count")
    assert is_supported("LAST")
    assert not is_supported("p95")
    assert not is_supported("")


def test_pandas_reducer_names() -> None:
    assert pandas_reducer("count") == "size"
    assert pandas_reducer("deviation") == "std"
    assert pandas_reducer("variance") == "var"
    assert pandas_reducer("first") == "first"
