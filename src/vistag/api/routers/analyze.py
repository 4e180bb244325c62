"""
Image analysis endpoints.
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..models.analysis import AnalyzeImageRequest, ServiceInfo
from ..models.common import APIError, ErrorCode
from ..dependencies.manager import get_model_manager
from vistag.models.manager import ModelManager
from vistag.pipeline.analysis import AnalysisPipeline, AnalysisResult, BadRequest, build_request

logger = logging.getLogger(__name__)

router = APIRouter()


def _error_response(status_code: int, error: APIError) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error.model_dump(mode="json"))


@router.get("/test", response_model=ServiceInfo)
async def test_endpoint():
    """Connectivity check used by the upload page before submitting."""
    return ServiceInfo(
        message="Server is running!",
        timestamp=datetime.now(timezone.utc).isoformat(),
        api="Vision language model image analysis",
    )


# Plain def: FastAPI runs it in the threadpool while the provider call blocks
@router.post(
    "/analyze-image",
    response_model=AnalysisResult,
    responses={400: {"model": APIError}, 500: {"model": APIError}},
)
def analyze_image(
    request: AnalyzeImageRequest,
    model_manager: ModelManager = Depends(get_model_manager),
):
    """
    Generate a title, description and tags for a base64 image.

    Model failures come back as a generic fallback result, never as an
    error; only a malformed request or an unexpected fault does.
    """
    start_time = time.time()
    try:
        analysis_request = build_request(request.image, request.mime_type, request.limits())
    except BadRequest as e:
        logger.info("Rejected analysis request: %s", e)
        return _error_response(400, APIError(error=str(e), error_code=ErrorCode.BAD_REQUEST))

    logger.info("Image size: %d characters", len(request.image))

    try:
        output = AnalysisPipeline(model_manager).process(analysis_request)
    except Exception as e:
        logger.exception("Error analyzing image")
        return _error_response(
            500,
            APIError(
                error="Failed to analyze image",
                error_code=ErrorCode.INTERNAL_ERROR,
                details={"message": str(e), "type": type(e).__name__},
            ),
        )

    logger.info(
        "Analysis finished in %.2fs (fallback=%s)", time.time() - start_time, output.used_fallback
    )
    return output.result
