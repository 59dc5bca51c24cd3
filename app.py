import streamlit as st
import pandas as pd

from chart_engine.assembler import assemble
from chart_engine.errors import FileParseError, RecommendationError, RenderFailure
from chart_engine.export import rasterize
from chart_engine.loader import read_table
from chart_engine.recommender import recommend_charts
from chart_engine.sample_data import load_sample_sales_data
from chart_engine.styles import (
    CATEGORICAL_SCHEMES,
    DIVERGING_SCHEMES,
    SEQUENTIAL_SCHEMES,
    family_defaults,
)

CSS_VERSION = "v2025_10_18_01"   # increment this anytime you change CSS

CURVE_TYPES = ["linear", "basis", "catmull-rom", "step-after", "step-before", "cardinal"]
POINT_SHAPES = ["circle", "square", "diamond", "triangle", "cross"]

st.markdown(
    f"""
    <style id="{CSS_VERSION}">

    /* -------------------------------------------------- */
    /* GLOBAL BACKGROUND                                  */
    /* -------------------------------------------------- */
    .stApp {{
        background-color: #f4f6f9;
    }}

    /* -------------------------------------------------- */
    /* CHART CARDS                                        */
    /* -------------------------------------------------- */
    .chart-meta {{
        font-size: 13px !important;
        color: #6b7280 !important;
        margin-bottom: 6px !important;
    }}

    /* -------------------------------------------------- */
    /* WIDEN FILE UPLOADER                                */
    /* -------------------------------------------------- */
    div[data-testid="stFileUploader"] section {{
        padding: 32px !important;
        min-height: 150px !important;
    }}

    </style>
    """,
    unsafe_allow_html=True
)


# ---------------------------------------------------------
# Style controls (one set per recommendation)
# ---------------------------------------------------------
def available_schemes(rec):
    fill = rec.data_mapping.fill if rec.data_mapping else None
    if rec.plot_type in ("heatmap", "histogram"):
        return sorted(SEQUENTIAL_SCHEMES) + sorted(DIVERGING_SCHEMES)
    if fill is not None and fill.type == "categorical":
        return sorted(CATEGORICAL_SCHEMES)
    return sorted(CATEGORICAL_SCHEMES) + sorted(SEQUENTIAL_SCHEMES)


def style_controls(rec):
    defaults = family_defaults(rec.plot_type)
    key = rec.id or rec.plot_type
    styles = {}

    col1, col2 = st.columns(2)
    with col1:
        styles["width"] = st.number_input("Width (px)", 300, 1200, int(defaults["width"]), key=f"{key}_w")
    with col2:
        styles["height"] = st.number_input("Height (px)", 200, 800, int(defaults["height"]), key=f"{key}_h")

    schemes = available_schemes(rec)
    default_scheme = defaults.get("color_scheme")
    index = schemes.index(default_scheme) if default_scheme in schemes else 0
    styles["color_scheme"] = st.selectbox("Color scheme", schemes, index=index, key=f"{key}_scheme")
    styles["color"] = st.color_picker("Solid color", "#4682b4", key=f"{key}_color")

    if "fill_opacity" in defaults:
        styles["fill_opacity"] = st.slider(
            "Fill opacity", 0.1, 1.0, float(defaults["fill_opacity"]), 0.05, key=f"{key}_opacity"
        )

    if rec.plot_type in ("line", "area"):
        curve = defaults.get("curve_type", "linear")
        styles["curve_type"] = st.selectbox(
            "Curve", CURVE_TYPES, index=CURVE_TYPES.index(curve) if curve in CURVE_TYPES else 0, key=f"{key}_curve"
        )
        styles["stroke_width"] = st.slider("Stroke width", 1, 8, int(defaults.get("stroke_width", 2)), key=f"{key}_sw")
    if rec.plot_type == "line":
        styles["show_points"] = st.checkbox("Show points", defaults.get("show_points", True), key=f"{key}_pts")
    if rec.plot_type == "scatter":
        styles["point_radius"] = st.slider("Point radius", 1, 15, int(defaults.get("point_radius", 4)), key=f"{key}_r")
        styles["point_shape"] = st.selectbox("Point shape", POINT_SHAPES, key=f"{key}_shape")
    if rec.plot_type == "histogram":
        styles["bins"] = st.slider("Bins", 5, 100, int(defaults.get("bins", 20)), key=f"{key}_bins")
    if rec.plot_type == "heatmap":
        styles["show_values"] = st.checkbox("Show values", defaults.get("show_values", False), key=f"{key}_vals")
    if rec.plot_type == "box":
        styles["show_outliers"] = st.checkbox("Show outliers", defaults.get("show_outliers", True), key=f"{key}_out")
    if rec.plot_type == "pie":
        styles["inner_radius"] = st.slider("Donut hole", 0.0, 0.9, float(defaults.get("inner_radius", 0)), 0.05,
                                           key=f"{key}_inner")
        styles["show_labels"] = st.checkbox("Show labels", defaults.get("show_labels", True), key=f"{key}_labels")

    col3, col4, col5 = st.columns(3)
    with col3:
        styles["show_grid"] = st.checkbox("Grid", True, key=f"{key}_grid")
    with col4:
        styles["show_legend"] = st.checkbox("Legend", True, key=f"{key}_legend")
    with col5:
        styles["show_tooltip"] = st.checkbox("Tooltip", True, key=f"{key}_tip")
    return styles


# ---------------------------------------------------------
# Session state
# ---------------------------------------------------------
CATEGORY_ORDER = ["univariate", "bivariate", "multivariate"]


def source_analysis(state, source):
    """The stored analysis, or None once the data source has changed."""
    if state.get("analysis_source") != source:
        state.pop("analysis", None)
        state["analysis_source"] = source
    return state.get("analysis")


def group_by_category(recommendations):
    groups = {}
    for rec in recommendations:
        groups.setdefault(rec.category or "other", []).append(rec)
    ordered = [name for name in CATEGORY_ORDER if name in groups]
    return {name: groups[name] for name in ordered + sorted(set(groups) - set(ordered))}


# ---------------------------------------------------------
# One chart card
# ---------------------------------------------------------
def render_card(records, rec):
    st.markdown(f"### {rec.title or rec.id}")
    st.markdown(
        f"<div class='chart-meta'>{rec.plot_type} · {rec.category} · priority {rec.priority} · "
        f"confidence {rec.confidence:.0%}</div>",
        unsafe_allow_html=True
    )
    if rec.description:
        st.write(rec.description)

    with st.expander("Why this chart"):
        st.write(rec.reasoning)
        st.write(rec.insights)

    with st.expander("Customize"):
        styles = style_controls(rec)

    result = assemble(records, rec, styles)
    st.altair_chart(result.chart, use_container_width=False, theme=None)

    if result.is_error:
        st.warning(result.message)
        return

    # No host document here: the PNG goes out as a download
    try:
        png = rasterize(result.chart)
    except RenderFailure as e:
        st.error(str(e))
        return
    st.download_button(
        "Download PNG",
        data=png,
        file_name=f"{rec.id or rec.plot_type}.png",
        mime="image/png",
        key=f"{rec.id}_download",
    )


# ---------------------------------------------------------
# Streamlit UI
# ---------------------------------------------------------
def main():
    st.set_page_config(
        page_title="chartmate",
        layout="wide",
        initial_sidebar_state="collapsed"
    )

    st.title("chartmate")
    st.markdown(
        "Upload a CSV or XLSX file, let Gemini suggest charts, then style them and export a PNG."
    )
    st.markdown("---")

    # ---------------------------------------------------------
    # Data Source Section
    # ---------------------------------------------------------
    st.subheader("1. Data Source")
    use_demo = st.checkbox("Use synthetic demo data (ignore file upload)")

    df = None
    source = None
    if use_demo:
        df = load_sample_sales_data()
        source = "demo"
        st.success("Using synthetic demo data.")
    else:
        uploaded = st.file_uploader("Select a CSV or XLSX file", type=["csv", "xlsx", "xls"])
        if uploaded is not None:
            source = (uploaded.name, uploaded.size)
            try:
                table = read_table(uploaded, uploaded.name)
                df = table.frame
                st.success(f"Loaded {table.record_count} rows from {table.file_name}.")
            except FileParseError as e:
                st.error(str(e))

    if df is None:
        return

    with st.expander("Preview data"):
        st.dataframe(pd.DataFrame(df).head(20))

    records = df.to_dict(orient="records")
    st.markdown("---")

    # ---------------------------------------------------------
    # Recommendations
    # ---------------------------------------------------------
    st.subheader("2. Recommended Charts")
    source_analysis(st.session_state, source)
    if st.button("Analyze with AI"):
        with st.spinner("Asking Gemini for chart recommendations..."):
            try:
                st.session_state["analysis"] = recommend_charts(records)
            except RecommendationError as e:
                st.error(str(e))

    analysis = st.session_state.get("analysis")
    if analysis is None:
        return

    with st.expander("Data analysis"):
        st.write(analysis.data_analysis.summary)
        for finding in analysis.data_analysis.key_findings:
            st.markdown(f"- {finding}")

    groups = group_by_category(analysis.plot_recommendations)
    if not groups:
        st.info("No chart recommendations were returned.")
    for tab, recs in zip(st.tabs([name.title() for name in groups]), groups.values()):
        with tab:
            for rec in recs:
                render_card(records, rec)
                st.markdown("---")

    if analysis.additional_suggestions:
        st.markdown("---")
        st.subheader("Further ideas")
        for idea in analysis.additional_suggestions:
            st.markdown(f"- {idea}")


if __name__ == "__main__":
    main()
