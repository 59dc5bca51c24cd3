"""chartmate: compile chart recommendations into Altair charts."""

from chart_engine.assembler import ErrorRenderConfig, RenderConfig, assemble, generate_chart
from chart_engine.errors import (
    ChartEngineError,
    FileParseError,
    RecommendationError,
    RenderFailure,
    UnsupportedAggregationError,
    UnsupportedPlotTypeError,
    ValidationError,
)
from chart_engine.validator import validate

__all__ = [
    "ChartEngineError",
    "ErrorRenderConfig",
    "FileParseError",
    "RecommendationError",
    "RenderConfig",
    "RenderFailure",
    "UnsupportedAggregationError",
    "UnsupportedPlotTypeError",
    "ValidationError",
    "assemble",
    "generate_chart",
    "validate",
]
