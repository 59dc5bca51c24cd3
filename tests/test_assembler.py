from __future__ import annotations

import copy
import logging

import pytest

from chart_engine.assembler import ErrorRenderConfig, RenderConfig, assemble, generate_chart

DATA = [{"category": "A", "value": 10}, {"category": "B", "value": 20}]


def _bar(y: dict) -> dict:
    return {
        "id": "bar_value_by_category",
        "plotType": "bar",
        "title": "Value by category",
        "dataMapping": {"x": {"column": "category", "type": "categorical", "label": "Category"}, "y": y},
    }


def test_scenario_vertical_bar_with_baseline(settings) -> None:
    result = assemble(DATA, _bar({"column": "value", "type": "numerical", "label": "Value"}), settings=settings)

    assert isinstance(result, RenderConfig)
    assert not result.is_error
    assert [mark.mark for mark in result.marks] == ["ruleY", "barY"]
    assert result.marks[1].transform is None
    assert result.marks[1].reducers == {}
    assert result.x_label == "Category"
    assert result.y_label == "Value"
    assert result.chart is not None


def test_scenario_count_bars_per_category(settings) -> None:
    result = assemble(DATA, _bar({"column": None, "aggregation": "count"}), settings=settings)

    assert isinstance(result, RenderConfig)
    bar = result.marks[-1]
    assert bar.mark == "barY"
    assert bar.transform == "groupX"
    assert bar.reducers == {"y": "count"}


def test_scenario_heatmap_without_fill_returns_error_config(settings) -> None:
    rec = {
        "plotType": "heatmap",
        "dataMapping": {"x": {"column": "category"}, "y": {"column": "value"}},
    }

    result = assemble(DATA, rec, settings=settings)

    assert isinstance(result, ErrorRenderConfig)
    assert result.is_error
    assert "fill or z column" in result.message
    spec = result.chart.to_dict()
    assert spec["mark"]["type"] == "text"
    assert spec["mark"]["color"] == "red"


def test_scenario_bogus_aggregation_degrades_to_count(settings, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="chartmate"):
        result = assemble(DATA, _bar({"column": "value", "aggregation": "bogus"}), settings=settings)

    assert isinstance(result, RenderConfig)
    assert result.marks[-1].reducers == {"y": "count"}
    assert any("aggregation_fallback" in record.getMessage() for record in caplog.records)


def test_strict_aggregation_setting_rejects_bogus(settings) -> None:
    strict = settings.model_copy(update={"strict_aggregation": True})

    result = assemble(DATA, _bar({"column": "value", "aggregation": "bogus"}), settings=strict)

    assert result.is_error
    assert result.message == "Unsupported y-axis aggregation: bogus"


@pytest.mark.parametrize(
    "data, rec",
    [
        (None, {"plotType": "bar", "dataMapping": {"x": {"column": "category"}}}),
        ([], {"plotType": "bar", "dataMapping": {"x": {"column": "category"}}}),
        (DATA, None),
        (DATA, "bar"),
        (DATA, {"plotType": "bar", "dataMapping": {"x": {"column": "missing"}}}),
        (DATA, {"plotType": "line", "dataMapping": {"x": {"column": "category"}}}),
    ],
)
def test_assemble_never_raises(settings, data, rec) -> None:
    result = assemble(data, rec, {"width": 300, "height": 200}, settings=settings)

    assert isinstance(result, ErrorRenderConfig)
    assert result.width == 300
    assert result.height == 200
    assert result.chart is not None


def test_unknown_plot_type_renders_as_scatter(settings) -> None:
    rec = {
        "plotType": "sankey",
        "dataMapping": {"x": {"column": "category"}, "y": {"column": "value", "type": "numerical"}},
    }

    result = assemble(DATA, rec, settings=settings)

    assert isinstance(result, RenderConfig)
    assert result.plot_type == "scatter"
    assert [mark.mark for mark in result.marks] == ["dot"]


def test_render_failure_becomes_error_config(settings, monkeypatch) -> None:
    def _boom(config, records):
        raise RuntimeError("boom")

    monkeypatch.setattr("chart_engine.assembler.render_config", _boom)

    result = assemble(DATA, _bar({"column": "value", "type": "numerical"}), settings=settings)

    assert isinstance(result, ErrorRenderConfig)
    assert result.message == "boom"
    assert result.width == 800


@pytest.mark.parametrize(
    "style_config",
    [
        {"margins": {"top": None}},
        {"marginTop": "auto"},
        {"width": "wide", "height": None},
        {"margins": "10px"},
        "not a style mapping",
    ],
)
def test_malformed_styles_fall_back_to_defaults(settings, style_config) -> None:
    result = assemble(DATA, _bar({"column": "value", "type": "numerical"}), style_config, settings=settings)

    assert isinstance(result, RenderConfig)
    assert result.width == 800
    assert result.height == 400
    assert result.margins == {"top": 40, "right": 40, "bottom": 80, "left": 80}


def test_style_merge_failure_becomes_error_config(settings, monkeypatch) -> None:
    def _broken(plot_type, user_styles=None):
        raise ValueError("bad style")

    monkeypatch.setattr("chart_engine.assembler.merge_styles", _broken)

    result = assemble(DATA, _bar({"column": "value", "type": "numerical"}), {"width": "auto"}, settings=settings)

    assert isinstance(result, ErrorRenderConfig)
    assert result.message == "bad style"
    assert result.width == 640


def test_horizontal_bar_swaps_axis_labels(settings) -> None:
    rec = {
        "plotType": "bar",
        "dataMapping": {
            "x": {"column": "category", "aggregation": "count", "label": "Category"},
            "y": {"label": "Rows"},
        },
    }

    result = assemble(DATA, rec, settings=settings)

    assert [mark.mark for mark in result.marks] == ["ruleX", "barX"]
    assert result.x_label == "Rows"
    assert result.y_label == "Category"


def test_style_config_reaches_the_chart(settings) -> None:
    result = assemble(
        DATA,
        _bar({"column": "value", "type": "numerical"}),
        {"width": 500, "height": 250, "showLegend": False},
        settings=settings,
    )

    spec = result.chart.to_dict()
    assert spec["width"] == 500
    assert spec["height"] == 250
    assert spec["title"] == "Value by category"
    assert spec["config"]["legend"]["disable"] is True


def test_generate_chart_returns_altair_chart(settings) -> None:
    chart = generate_chart(DATA, _bar({"column": "value", "type": "numerical"}), settings=settings)

    assert "layer" in chart.to_dict()


SALES_RECOMMENDATIONS = [
    ("bar", {"x": {"column": "store", "type": "categorical"},
             "y": {"column": "revenue", "type": "numerical", "aggregation": "sum"},
             "fill": {"column": "product", "type": "categorical"}}),
    ("line", {"x": {"column": "month", "type": "temporal"},
              "y": {"column": "units", "type": "numerical", "aggregation": "sum"},
              "color": {"column": "region", "type": "categorical"}}),
    ("scatter", {"x": {"column": "units", "type": "numerical"},
                 "y": {"column": "revenue", "type": "numerical"},
                 "size": {"column": "returns", "type": "numerical"}}),
    ("histogram", {"x": {"column": "revenue", "type": "numerical"}}),
    ("area", {"x": {"column": "month", "type": "temporal"},
              "y": {"column": "revenue", "type": "numerical", "aggregation": "mean"}}),
    ("box", {"x": {"column": "region", "type": "categorical"},
             "y": {"column": "revenue", "type": "numerical"}}),
    ("heatmap", {"x": {"column": "store", "type": "categorical"},
                 "y": {"column": "product", "type": "categorical"},
                 "fill": {"column": "revenue", "type": "numerical", "aggregation": "mean"}}),
    ("pie", {"x": {"column": "region", "type": "categorical"},
             "y": {"column": "units", "type": "numerical"}}),
]


@pytest.mark.parametrize("plot_type, mapping", SALES_RECOMMENDATIONS)
def test_every_family_renders_sample_sales(settings, sales_records, plot_type, mapping) -> None:
    rec = {"id": f"{plot_type}_sales", "plotType": plot_type, "title": plot_type, "dataMapping": mapping}

    result = assemble(sales_records, rec, settings=settings)

    assert not result.is_error, getattr(result, "message", "")
    assert result.plot_type == plot_type
    assert result.chart.to_dict()


@pytest.mark.parametrize("plot_type, mapping", SALES_RECOMMENDATIONS)
def test_assemble_leaves_records_untouched(settings, sales_records, plot_type, mapping) -> None:
    records = copy.deepcopy(sales_records)
    rec = {"plotType": plot_type, "dataMapping": mapping}

    assemble(records, rec, {"width": 500, "margins": {"top": 10}}, settings=settings)

    assert records == sales_records
