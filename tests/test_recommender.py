from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from chart_engine.assembler import RenderConfig, assemble
from chart_engine.config import GeminiSettings
from chart_engine.errors import RecommendationError
from chart_engine.recommender import build_prompt, get_gemini_client, parse_response, recommend_charts

DATA = [
    {"store": "North", "region": "urban", "revenue": 1200.0},
    {"store": "South", "region": "rural", "revenue": 640.0},
]


def _payload(plot_type: str = "bar") -> dict:
    return {
        "dataAnalysis": {
            "summary": "Revenue per store.",
            "keyFindings": ["North sells the most"],
            "dataTypes": [
                {"column": "store", "type": "categorical", "uniqueValues": 2, "isVisualizationReady": True},
                {"column": "revenue", "type": "numerical", "uniqueValues": 2, "isVisualizationReady": True},
            ],
            "recordCount": 2,
            "potentialIssues": [],
        },
        "plotRecommendations": [
            {
                "id": "bar_revenue_by_store",
                "plotType": plot_type,
                "title": "Revenue by store",
                "description": "Total revenue per store",
                "category": "bivariate",
                "priority": "high",
                "reasoning": "Compare a numeric value across categories",
                "dataMapping": {
                    "x": {"column": "store", "type": "categorical", "label": "Store"},
                    "y": {"column": "revenue", "type": "numerical", "label": "Revenue", "aggregation": "sum"},
                },
                "plotMarks": [
                    {"markType": "ruleY", "channels": {}, "isBaseline": True},
                    {"markType": "barY", "channels": {"x": "store", "y": "revenue"}},
                ],
                "insights": "North leads",
                "confidence": 0.9,
                "suggestedDefaultSize": {"width": 800, "height": 400},
            }
        ],
        "additionalSuggestions": ["Split by region"],
    }


class _FakeModels:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def _client(text=None, error=None):
    return SimpleNamespace(models=_FakeModels(text, error))


def test_parse_response_returns_typed_recommendations() -> None:
    result = parse_response(json.dumps(_payload()))

    rec = result.recommendation("bar_revenue_by_store")
    assert rec is not None
    assert rec.plot_type == "bar"
    assert rec.data_mapping.y.aggregation == "sum"
    assert rec.plot_marks[0].is_baseline is True
    assert result.data_analysis.data_types[0].is_visualization_ready is True
    assert result.recommendation("missing") is None


@pytest.mark.parametrize(
    "text, message",
    [
        ("", "empty"),
        (None, "empty"),
        ("not json", "not valid JSON"),
        ("[1, 2]", "not a JSON object"),
        (json.dumps(_payload("sankey")), "does not match the schema"),
        (json.dumps({"dataAnalysis": {}}), "does not match the schema"),
    ],
)
def test_parse_response_rejects_bad_payloads(text, message) -> None:
    with pytest.raises(RecommendationError, match=message):
        parse_response(text)


def test_recommend_charts_calls_model_once(settings) -> None:
    client = _client(text=json.dumps(_payload()))

    result = recommend_charts(DATA, client=client, settings=settings)

    assert len(result.plot_recommendations) == 1
    assert len(client.models.calls) == 1
    call = client.models.calls[0]
    assert call["model"] == "gemini-test"
    assert "North" in call["contents"]


def test_recommend_charts_wraps_request_errors(settings) -> None:
    client = _client(error=RuntimeError("quota exceeded"))

    with pytest.raises(RecommendationError, match="Failed to get LLM response"):
        recommend_charts(DATA, client=client, settings=settings)


@pytest.mark.parametrize("data", [None, [], "text"])
def test_recommend_charts_requires_data(settings, data) -> None:
    with pytest.raises(RecommendationError, match="No data provided"):
        recommend_charts(data, client=_client(text="{}"), settings=settings)


def test_get_gemini_client_requires_api_key(settings) -> None:
    with pytest.raises(RecommendationError, match="GEMINI_API_KEY"):
        get_gemini_client(settings.model_copy(update={"gemini": GeminiSettings(api_key="")}))


def test_build_prompt_samples_rows() -> None:
    prompt = build_prompt(DATA, 1)

    assert "North" in prompt
    assert "South" not in prompt


def test_recommendation_feeds_the_assembler(settings) -> None:
    result = recommend_charts(DATA, client=_client(text=json.dumps(_payload())), settings=settings)

    config = assemble(DATA, result.plot_recommendations[0], settings=settings)

    assert isinstance(config, RenderConfig)
    assert [mark.mark for mark in config.marks] == ["ruleY", "barY"]
    assert config.marks[1].reducers == {"y": "sum"}
