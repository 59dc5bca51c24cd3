from __future__ import annotations

from chart_engine.models import DataMapping
from chart_engine.styles import as_pixels, color_scale, family_defaults, merge_styles, scheme_kind, snake_key


def test_merge_precedence_user_over_family_over_global() -> None:
    styles = merge_styles("bar", {"width": 500})

    assert styles["width"] == 500
    assert styles["height"] == 400
    assert styles["fill_opacity"] == 0.8
    assert styles["font_size"] == 12
    assert styles["color"] == "steelblue"


def test_merge_accepts_camel_case_keys() -> None:
    styles = merge_styles("scatter", {"fillOpacity": 0.3, "pointRadius": 9})

    assert styles["fill_opacity"] == 0.3
    assert styles["point_radius"] == 9
    assert "fillOpacity" not in styles


def test_merge_margins_side_by_side() -> None:
    styles = merge_styles("line", {"margins": {"top": 5}, "marginLeft": 10})

    assert styles["margins"] == {"top": 5, "right": 40, "bottom": 80, "left": 10}
    assert "margin_left" not in styles


def test_unknown_family_uses_base_defaults() -> None:
    styles = merge_styles("sankey")

    assert styles["width"] == 800
    assert styles["bins"] == 20
    assert family_defaults("PIE")["height"] == 500


def test_snake_key() -> None:
    assert snake_key("showGrid") == "show_grid"
    assert snake_key("fill_opacity") == "fill_opacity"


def test_scheme_kind() -> None:
    assert scheme_kind("Category10") == "categorical"
    assert scheme_kind("viridis") == "sequential"
    assert scheme_kind("rdbu") == "diverging"
    assert scheme_kind("nope") is None


def test_color_scale_per_family() -> None:
    categorical = DataMapping.model_validate(
        {"x": {"column": "a"}, "y": {"column": "b"}, "fill": {"column": "c", "type": "categorical"}}
    )
    numerical = DataMapping.model_validate(
        {"x": {"column": "a"}, "y": {"column": "b"}, "fill": {"column": "c", "type": "numerical"}}
    )
    plain = DataMapping.model_validate({"x": {"column": "a"}, "y": {"column": "b"}})

    assert color_scale("heatmap", numerical, {"color_scheme": "set2"}) == {"type": "sequential", "scheme": "viridis"}
    assert color_scale("heatmap", numerical, {"color_scheme": "rdbu"}) == {"type": "sequential", "scheme": "redblue"}
    assert color_scale("bar", categorical, {"color_scheme": "viridis"}) == {
        "type": "categorical",
        "scheme": "category10",
    }
    assert color_scale("scatter", numerical, {"color_scheme": "category10"}) == {
        "type": "sequential",
        "scheme": "blues",
    }
    assert color_scale("bar", plain, {"color_scheme": "category10"}) is None
    assert color_scale("pie", plain, {"color_scheme": "set2"}) == {"type": "categorical", "scheme": "set2"}


def test_as_pixels_coerces_or_defaults() -> None:
    assert as_pixels("12", 0) == 12
    assert as_pixels(12.7, 0) == 12
    assert as_pixels(None, 40) == 40
    assert as_pixels("auto", 40) == 40
    assert as_pixels(True, 40) == 40
    assert as_pixels(float("inf"), 40) == 40


def test_merge_keeps_default_side_for_unparseable_margins() -> None:
    styles = merge_styles("bar", {"margins": {"top": None, "left": "12"}, "marginRight": "auto", "width": "wide"})

    assert styles["margins"] == {"top": 40, "right": 40, "bottom": 80, "left": 12}
    assert styles["width"] == 800
