import re
from typing import Any, Iterable, List, Mapping

from .types import AnalysisLimits, AnalysisResult

ELLIPSIS = "..."
TAG_SEPARATOR = ", "

_TAG_NOISE = re.compile(r"[#\s]+")


def fit_text(text: str, limit: int) -> str:
    """
    Truncate ``text`` to ``limit`` characters, ending in an ellipsis.

    Limits too small to hold the ellipsis truncate plainly (a limit of zero or
    less yields an empty string).
    """
    if len(text) <= limit:
        return text
    if limit < len(ELLIPSIS):
        return text[:max(limit, 0)]
    return text[:limit - len(ELLIPSIS)] + ELLIPSIS


def normalize_tag(tag: str) -> str:
    return _TAG_NOISE.sub(" ", tag).strip()


def normalize_tags(tags: Iterable[Any]) -> List[str]:
    normalized = (normalize_tag(t) for t in tags if isinstance(t, str))
    return [t for t in normalized if t]


def fit_tags(tags: Iterable[Any], limit: int) -> List[str]:
    """
    Keep the longest prefix of normalized tags whose ", "-joined length fits.

    Accumulation stops at the first tag that does not fit; later, shorter
    tags are never tried.
    """
    fitted: List[str] = []
    length = 0
    for tag in normalize_tags(tags):
        separator = len(TAG_SEPARATOR) if fitted else 0
        if length + separator + len(tag) > limit:
            break
        fitted.append(tag)
        length += separator + len(tag)
    return fitted


def fit_result(candidate: Mapping[str, Any], limits: AnalysisLimits) -> AnalysisResult:
    return AnalysisResult(
        title=fit_text(candidate["title"], limits.title),
        description=fit_text(candidate["description"], limits.description),
        tags=fit_tags(candidate["tags"], limits.tags),
    )
