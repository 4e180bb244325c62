"""
API models for the image analysis endpoint.

Field names follow the browser client's camelCase payload.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional

from vistag.pipeline.analysis.types import (
    AnalysisLimits,
    DEFAULT_DESCRIPTION_LIMIT,
    DEFAULT_TAGS_LIMIT,
    DEFAULT_TITLE_LIMIT,
)


class AnalyzeImageRequest(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "image": "/9j/4AAQSkZJRgABAQ...",
                "mimeType": "image/jpeg",
                "titleLength": 120,
                "descriptionLength": 600,
                "tagsLength": 60,
            }
        },
    )

    image: Optional[str] = Field(None, description="Base64 image data, optionally as a data: URL")
    # Not constrained to str: anything that is not an image/* string falls back to image/jpeg
    mime_type: Any = Field(None, alias="mimeType", description="Declared image mime type")
    title_length: int = Field(DEFAULT_TITLE_LIMIT, gt=0, alias="titleLength", description="Title character budget")
    description_length: int = Field(DEFAULT_DESCRIPTION_LIMIT, gt=0, alias="descriptionLength", description="Description character budget")
    tags_length: int = Field(DEFAULT_TAGS_LIMIT, gt=0, alias="tagsLength", description="Budget for the tags joined by ', '")

    def limits(self) -> AnalysisLimits:
        return AnalysisLimits(
            title=self.title_length,
            description=self.description_length,
            tags=self.tags_length,
        )


class ServiceInfo(BaseModel):
    message: str
    timestamp: str
    api: str
