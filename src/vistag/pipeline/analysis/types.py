from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Union
from pydantic import BaseModel, Field

from vistag.utils.image_converter import DEFAULT_MIME_TYPE

DEFAULT_TITLE_LIMIT = 120
DEFAULT_DESCRIPTION_LIMIT = 600
DEFAULT_TAGS_LIMIT = 60

# Error taxonomy
class AnalysisError(Exception):
    """The image or the model completion could not be turned into a result."""

class ExtractionError(AnalysisError):
    """The completion contains no JSON object at all."""

class ParseError(AnalysisError):
    """The bracketed span of the completion is not valid JSON."""

class ShapeError(AnalysisError):
    """The JSON parsed but lacks a title, a description or a tags list."""

class ImagePayloadError(AnalysisError):
    """The image payload is not decodable base64; treated like a failed inference call."""

class BadRequest(ValueError):
    """The inbound request is missing required input; never recovered."""

# Input types
@dataclass(frozen=True)
class AnalysisLimits:
    title: int = DEFAULT_TITLE_LIMIT
    description: int = DEFAULT_DESCRIPTION_LIMIT
    tags: int = DEFAULT_TAGS_LIMIT

@dataclass(frozen=True)
class AnalysisRequest:
    image: Union[bytes, str] #raw bytes, or base64 text as received (decoded by the pipeline)
    mime_type: str = DEFAULT_MIME_TYPE
    limits: AnalysisLimits = field(default_factory=AnalysisLimits)

# Output types
class AnalysisResult(BaseModel):
    title: str = Field(..., description="Title fitted to the title budget")
    description: str = Field(..., description="Description fitted to the description budget")
    tags: List[str] = Field(default_factory=list, description="Tags whose ', ' rendering fits the tags budget")

@dataclass
class AnalysisOutput:
    result: AnalysisResult
    used_fallback: bool
    fallback_reason: Optional[str] = None
    processing_metadata: Dict[str, Any] = field(default_factory=dict)
