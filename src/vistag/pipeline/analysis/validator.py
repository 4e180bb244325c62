from typing import Any, Dict

from .types import ShapeError


def _is_filled_string(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


def validate_shape(candidate: Any) -> Dict[str, Any]:
    """
    Gate a parsed completion before fitting.

    Only presence and type are checked; nothing is repaired or coerced.
    """
    if not isinstance(candidate, dict):
        raise ShapeError(f"Expected a JSON object, got {type(candidate).__name__}")
    if not _is_filled_string(candidate.get("title")):
        raise ShapeError("Response is missing a non-empty 'title'")
    if not _is_filled_string(candidate.get("description")):
        raise ShapeError("Response is missing a non-empty 'description'")
    if not isinstance(candidate.get("tags"), list):
        raise ShapeError("Response 'tags' is not a list")
    return candidate
