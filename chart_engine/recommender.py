"""
Gemini chart recommendations.

Sends a sample of the dataset to Gemini and validates the JSON it returns
against AnalysisResponse. One request per call: no retries.
"""
from __future__ import annotations

import json
from time import perf_counter

from pydantic import ValidationError as SchemaError

from chart_engine.config import Settings, get_settings
from chart_engine.errors import RecommendationError, ValidationError
from chart_engine.models import AnalysisResponse
from chart_engine.utils.logging import log_event
from chart_engine.validator import as_records

SYSTEM_INSTRUCTION = """You are an expert data visualization consultant.

Your task is to analyze the provided dataset and produce structured JSON output for automatic chart generation.

1. DATA ANALYSIS
- Brief summary of what the dataset represents
- Key statistical insights (patterns, trends, correlations, outliers)
- Data type per column: "categorical", "numerical", "temporal" or "boolean"
- Unique value count per column
- isVisualizationReady: false for high-cardinality categorical columns (>50 unique values),
  ID columns, emails, phone numbers, URLs and sequential identifiers
- Record count and potential data quality issues

2. PLOT RECOMMENDATIONS
Generate 3-5 recommendations. For each:
- id: "plotType_xColumn_by_yColumn", e.g. "line_temp_by_month"
- plotType: "bar", "line", "scatter", "histogram", "heatmap", "box", "area" or "pie"
- title, description
- category: "univariate", "bivariate" or "multivariate"
- priority: "high", "medium" or "low"
- reasoning: why this plot type fits the data
- dataMapping:
    x: {"column": "...", "type": "categorical|numerical|temporal", "label": "..."}
    y: {"column": "..." or null, "type": "categorical|numerical|temporal", "label": "...",
        "aggregation": "count|sum|mean|median|min|max"}
    fill: {"column": "...", "type": "categorical|numerical"} (optional)
    size: {"column": "...", "type": "numerical"} (optional)
- plotMarks: [{"markType": "barY|barX|line|dot|area|areaY|cell|boxY|boxX|rectY|ruleY|ruleX|text|frame",
               "channels": {"x": "...", "y": "...", "fill": "..."}, "isBaseline": false}]
  Always include a baseline rule (ruleY or ruleX at 0) for bar and area charts.
- insights: what the chart will reveal
- confidence: 0-1
- suggestedDefaultSize: {"width": 600-1000, "height": 300-600}
- Heatmaps need a fill column. When an aggregation needs no column (count), set "column" to null.

3. ADDITIONAL SUGGESTIONS
2-3 suggestions for deeper analysis.

Return ONLY a raw JSON object with the keys "dataAnalysis", "plotRecommendations" and
"additionalSuggestions". No markdown fences, no conversational text. Use only the listed enum values."""

USER_PROMPT = "What is the best chart to visualize this data? "


def get_gemini_client(settings: Settings | None = None):
    settings = settings or get_settings()
    if not settings.gemini.api_key:
        raise RecommendationError("No API key found. Set the GEMINI_API_KEY environment variable.")

    from google import genai

    return genai.Client(api_key=settings.gemini.api_key)


def build_prompt(records, sample_rows: int) -> str:
    sample = records[:sample_rows]
    return USER_PROMPT + json.dumps(sample, ensure_ascii=False, default=str)


def parse_response(text: str) -> AnalysisResponse:
    """Strictly parse the model output."""
    raw = str(text or "").strip()
    if not raw:
        raise RecommendationError("LLM response was empty. Please try again.")

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        log_event("recommendation_parse_failed", {"raw": raw[:500]}, level="error")
        raise RecommendationError("LLM response was not valid JSON. Please try again or refine prompt.") from None

    if not isinstance(payload, dict):
        raise RecommendationError("LLM response was not a JSON object.")

    try:
        return AnalysisResponse.model_validate(payload)
    except SchemaError as exc:
        first = exc.errors()[0]
        where = ".".join(str(part) for part in first.get("loc", ()))
        raise RecommendationError(f"LLM response does not match the schema at '{where}': {first.get('msg')}") from None


def recommend_charts(data, *, client=None, settings: Settings | None = None) -> AnalysisResponse:
    """
    Ask Gemini for chart recommendations for a dataset.
    Raises RecommendationError for empty data, API failures and bad payloads.
    """
    settings = settings or get_settings()

    if data is None:
        raise RecommendationError("No data provided for analysis.")
    try:
        records = as_records(data)
    except ValidationError:
        raise RecommendationError("No data provided for analysis.") from None
    if not records:
        raise RecommendationError("No data provided for analysis.")

    from google.genai import types

    client = client or get_gemini_client(settings)
    start = perf_counter()
    try:
        response = client.models.generate_content(
            model=settings.gemini.model,
            contents=build_prompt(records, settings.sample_rows),
            config=types.GenerateContentConfig(
                system_instruction=SYSTEM_INSTRUCTION,
                response_mime_type="application/json",
            ),
        )
    except Exception as exc:
        log_event("recommendation_request_failed", {"error": str(exc)}, level="error")
        raise RecommendationError("Failed to get LLM response. Please try again.") from exc

    result = parse_response(getattr(response, "text", None))
    log_event(
        "recommendation_received",
        {
            "model": settings.gemini.model,
            "recommendations": len(result.plot_recommendations),
            "latency_ms": round((perf_counter() - start) * 1000, 1),
        },
    )
    return result
