import math
from typing import Any, Dict

from .types import AnalysisLimits

PROMPT_REF = "analysis/describe@v1"
TEMPERATURE = 0.9
MIN_OUTPUT_TOKENS = 512
OUTPUT_TOKEN_HEADROOM = 256


def build_prompt_variables(limits: AnalysisLimits) -> Dict[str, Any]:
    return {
        "title_limit": limits.title,
        "description_limit": limits.description,
        "tags_limit": limits.tags,
    }


def max_output_tokens(limits: AnalysisLimits) -> int:
    """Generation budget large enough that the JSON is not cut off mid-object."""
    return max(MIN_OUTPUT_TOKENS, math.ceil((limits.description + limits.title) / 2) + OUTPUT_TOKEN_HEADROOM)

