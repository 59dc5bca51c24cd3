class ChartEngineError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ChartEngineError):
    """Malformed recommendation or a mapping that points at missing columns."""


class UnsupportedAggregationError(ChartEngineError):
    """Unknown aggregation keyword. Soft: the resolver degrades to count."""


class UnsupportedPlotTypeError(ChartEngineError):
    """Unknown chart family. Soft: the router degrades to scatter."""


class RenderFailure(ChartEngineError):
    """The plotting library raised while materializing a chart."""


class FileParseError(ChartEngineError):
    pass


class RecommendationError(ChartEngineError):
    pass
