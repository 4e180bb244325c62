"""
JSON extraction from free-form model completions.

Models tend to wrap the requested object in prose ("Sure! {...} Hope that
helps!"). The extractor takes the greedy span from the first ``{`` to the last
``}`` and parses it. This is not a balanced-brace parse: a completion holding
two objects, or an unbalanced brace inside a string value, yields a span that
fails to parse (or parses to the wrong object). That limitation is accepted;
callers fall back rather than guess.
"""

import json
from typing import Any, Tuple

from .types import ExtractionError, ParseError


def find_json_span(text: str) -> Tuple[int, int]:
    """Return ``(start, end)`` so that ``text[start:end]`` is the candidate span."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise ExtractionError("No JSON object found in model response")
    return start, end + 1


def extract_json(text: str) -> Any:
    if not text:
        raise ExtractionError("Model response is empty")

    start, end = find_json_span(text)
    try:
        return json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse model response: {e}") from e
