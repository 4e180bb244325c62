import logging
from typing import Any, Optional

from vistag.models.manager import ModelManager
from vistag.models.providers.base import ImagePart, ModelError
from vistag.utils.image_converter import decode_base64_image, normalize_mime_type, split_data_url
from .extractor import extract_json
from .fallback import fallback_result
from .fitter import fit_result
from .prompt import PROMPT_REF, TEMPERATURE, build_prompt_variables, max_output_tokens
from .types import AnalysisError, AnalysisLimits, AnalysisOutput, AnalysisRequest, BadRequest, ImagePayloadError
from .validator import validate_shape

logger = logging.getLogger(__name__)


def build_request(image: Optional[str], mime_type: Any = None, limits: Optional[AnalysisLimits] = None) -> AnalysisRequest:
    """
    Turn the inbound base64 payload into an AnalysisRequest.

    Only a missing payload is rejected here. The text is decoded later by the
    pipeline, so an undecodable image ends in the fallback result like any
    other failed inference. A ``data:`` URL prefix is accepted; its mime type
    is used when the caller did not send one.
    """
    if not image or not isinstance(image, str) or not image.strip():
        raise BadRequest("No image provided")

    url_mime, payload = split_data_url(image.strip())
    return AnalysisRequest(
        image=payload,
        mime_type=normalize_mime_type(mime_type if mime_type is not None else url_mime),
        limits=limits or AnalysisLimits(),
    )


class AnalysisPipeline:
    def __init__(self, manager: ModelManager, task: str = "analysis", prompt_ref: str = PROMPT_REF):
        self.model_manager = manager
        self.task = task
        self.prompt_ref = prompt_ref

    @staticmethod
    def _image_part(request: AnalysisRequest) -> ImagePart:
        if isinstance(request.image, bytes):
            return ImagePart(data=request.image, mime_type=request.mime_type)
        try:
            return ImagePart(data=decode_base64_image(request.image), mime_type=request.mime_type)
        except ValueError as e:
            raise ImagePayloadError(str(e)) from e

    def process(self, request: AnalysisRequest) -> AnalysisOutput:
        """
        Run prompt -> inference -> extract -> validate -> fit.

        Inference and shaping failures are recovered with the fallback
        result; anything else propagates to the caller.
        """
        limits = request.limits
        logger.info(
            "Analyzing image (%d byte payload, %s) with limits title=%d description=%d tags=%d",
            len(request.image), request.mime_type, limits.title, limits.description, limits.tags,
        )

        try:
            image = self._image_part(request)
            response = self.model_manager.call(
                task=self.task,
                prompt_ref=self.prompt_ref,
                variables=build_prompt_variables(limits),
                images=[image],
                max_output_tokens=max_output_tokens(limits),
                temperature=TEMPERATURE,
            )
            logger.debug("Model response: %s", response.content)
            candidate = validate_shape(extract_json(response.content))
        except (ModelError, AnalysisError) as e:
            reason = f"{type(e).__name__}: {e}"
            logger.warning("Analysis failed, using fallback result (%s)", reason)
            return AnalysisOutput(
                result=fallback_result(limits),
                used_fallback=True,
                fallback_reason=reason,
                processing_metadata={"prompt_version": self.prompt_ref},
            )

        result = fit_result(candidate, limits)
        logger.info("Final processed result: %s", result.model_dump())
        return AnalysisOutput(
            result=result,
            used_fallback=False,
            processing_metadata={
                "prompt_version": self.prompt_ref,
                "model_meta": response.meta,
                "raw_response_length": len(response.content),
            },
        )
