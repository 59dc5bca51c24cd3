"""Recommendation and AI-response types."""
from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ColumnType = Literal["categorical", "numerical", "temporal"]

PLOT_TYPES = ("bar", "line", "scatter", "histogram", "heatmap", "box", "area", "pie")


class _CamelModel(BaseModel):
    # JSON from the model uses camelCase; Python code uses snake_case
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ColumnRole(_CamelModel):
    column: Optional[str] = None
    type: Optional[ColumnType] = None
    label: Optional[str] = None
    # Raw keyword; normalized by chart_engine.aggregation
    aggregation: Optional[str] = None


class DataMapping(_CamelModel):
    x: Optional[ColumnRole] = None
    y: Optional[ColumnRole] = None
    fill: Optional[ColumnRole] = None
    size: Optional[ColumnRole] = None
    # Third dimension for heatmaps when fill is not used
    z: Optional[ColumnRole] = None
    # Stroke grouping for line charts
    color: Optional[ColumnRole] = None


class MarkHint(_CamelModel):
    """A mark the recommender suggested. Informational; marks are rebuilt locally."""

    mark_type: str = Field(alias="markType")
    channels: Dict[str, Optional[str]] = Field(default_factory=dict)
    is_baseline: bool = Field(default=False, alias="isBaseline")


class PlotRecommendation(_CamelModel):
    id: str = ""
    plot_type: str = Field(default="scatter", alias="plotType")
    category: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    data_mapping: Optional[DataMapping] = Field(default=None, alias="dataMapping")
    plot_marks: List[MarkHint] = Field(default_factory=list, alias="plotMarks")


# ---------------------------------------------------------
# AI RESPONSE (strict)
# ---------------------------------------------------------
class ColumnProfile(_CamelModel):
    column: str
    type: Literal["categorical", "numerical", "temporal", "boolean"]
    unique_values: float = Field(alias="uniqueValues")
    is_visualization_ready: bool = Field(alias="isVisualizationReady")


class DataAnalysis(_CamelModel):
    summary: str
    key_findings: List[str] = Field(alias="keyFindings")
    data_types: List[ColumnProfile] = Field(alias="dataTypes")
    record_count: float = Field(alias="recordCount")
    potential_issues: List[str] = Field(alias="potentialIssues")


class SuggestedSize(_CamelModel):
    width: float
    height: float


class ChartRecommendation(PlotRecommendation):
    """A recommendation as the AI collaborator must return it."""

    id: str
    plot_type: Literal[PLOT_TYPES] = Field(alias="plotType")
    title: str
    description: str
    category: Literal["univariate", "bivariate", "multivariate"]
    priority: Literal["high", "medium", "low"]
    reasoning: str
    data_mapping: DataMapping = Field(alias="dataMapping")
    plot_marks: List[MarkHint] = Field(alias="plotMarks")
    insights: str
    confidence: float
    suggested_default_size: SuggestedSize = Field(alias="suggestedDefaultSize")


class AnalysisResponse(_CamelModel):
    data_analysis: DataAnalysis = Field(alias="dataAnalysis")
    plot_recommendations: List[ChartRecommendation] = Field(alias="plotRecommendations")
    additional_suggestions: List[str] = Field(alias="additionalSuggestions")

    def recommendation(self, rec_id: str) -> Optional[ChartRecommendation]:
        for rec in self.plot_recommendations:
            if rec.id == rec_id:
                return rec
        return None
