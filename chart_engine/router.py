# router.py
# Picks the mark builder for a chart family.

from chart_engine.errors import UnsupportedPlotTypeError
from chart_engine.marks import BUILDERS, build_scatter_marks
from chart_engine.utils.logging import log_event

DEFAULT_FAMILY = "scatter"


def lookup_builder(plot_type):
    """
    Strict lookup, case-insensitive.
    Raises UnsupportedPlotTypeError for unknown families.
    """
    key = str(plot_type or "").strip().lower()
    if key not in BUILDERS:
        raise UnsupportedPlotTypeError(f"Unsupported plot type: {plot_type}")
    return key, BUILDERS[key]


def route_plot_type(plot_type):
    """
    Lenient lookup used by the assembler.
    Unknown families degrade to the scatter builder with a warning.
    Returns (family, builder).
    """
    try:
        return lookup_builder(plot_type)
    except UnsupportedPlotTypeError as exc:
        log_event(
            "plot_type_fallback",
            {"plot_type": str(plot_type), "reason": exc.message, "fallback": DEFAULT_FAMILY},
            level="warning",
        )
        return DEFAULT_FAMILY, build_scatter_marks
