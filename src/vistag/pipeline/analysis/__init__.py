from .analysis import AnalysisPipeline, build_request
from .types import (
    AnalysisError,
    AnalysisLimits,
    AnalysisOutput,
    AnalysisRequest,
    AnalysisResult,
    BadRequest,
    ExtractionError,
    ImagePayloadError,
    ParseError,
    ShapeError,
)
