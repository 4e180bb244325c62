from __future__ import annotations
from typing import Dict, Any, Optional, List
import time
from os import getenv

from openai import OpenAI
from openai import APIError, APIStatusError, APITimeoutError, APIConnectionError
from tenacity import retry, stop_after_attempt, wait_exponential_jitter, retry_if_exception

from .base import ModelProvider, ChatRequest, ModelResponse, ModelError, ModelRetryable, ModelTimeout, ImagePart, RETRYABLE_STATUS
from ...utils.image_converter import to_data_url

DEFAULT_BASE_URL = "https://api.openai.com/v1"

def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, (APITimeoutError, APIConnectionError, ModelTimeout, ModelRetryable)):
        return True
    return isinstance(exc, APIStatusError) and exc.status_code in RETRYABLE_STATUS

def _image_block(img: ImagePart) -> Dict[str, Any]:
    return {"type": "image_url", "image_url": {"url": to_data_url(img.data, img.mime_type), "detail": "high"}}

class OpenAIProvider(ModelProvider):
    """
    Chat completions against OpenAI or any OpenAI-compatible endpoint
    (OpenRouter, vLLM, LM Studio) selected with ``base_url``.
    """

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None, default_headers: Optional[Dict[str, str]] = None, timeout: float = 60.0, **kwargs):
        self.base_url = base_url
        self.timeout = timeout
        self.client = OpenAI(
            base_url=base_url,
            api_key=api_key or getenv("OPENAI_API_KEY"),
            default_headers=default_headers or {},
            timeout=timeout,
            **kwargs
        )

    @staticmethod
    def _with_images(messages: List[Dict[str, Any]], images: List[ImagePart]) -> List[Dict[str, Any]]:
        """First user turn becomes a content array: its text, then one image_url block per image."""
        if not images:
            return messages
        blocks = [_image_block(img) for img in images]
        out = []
        pending = True
        for msg in messages:
            if pending and msg.get("role") == "user":
                msg = {**msg, "content": [{"type": "text", "text": msg.get("content", "")}, *blocks]}
                pending = False
            out.append(msg)
        return out

    @retry(reraise=True, wait=wait_exponential_jitter(initial=0.5, max=4), stop=stop_after_attempt(3), retry=retry_if_exception(_is_retryable))
    def chat(self, req: ChatRequest) -> ModelResponse:
        params = dict(req.params or {})
        # chat completions names the output budget max_tokens
        if "max_output_tokens" in params:
            params["max_tokens"] = params.pop("max_output_tokens")
        if "stop_sequences" in params:
            params["stop"] = params.pop("stop_sequences")

        t0 = time.perf_counter()
        try:
            response = self.client.chat.completions.create(
                model=req.model,
                messages=self._with_images(req.messages, req.images or []),
                **params,
            )
        except APITimeoutError as e:
            raise ModelTimeout(f"OpenAI timeout: {e}") from e
        except APIError as e:
            if _is_retryable(e):
                raise ModelRetryable(f"OpenAI API error: {e}") from e
            raise ModelError(f"OpenAI API error: {e}") from e
        except Exception as e:
            raise ModelError(f"OpenAI provider error: {e}") from e
        latency = time.perf_counter() - t0

        try:
            choice = response.choices[0]
            content = choice.message.content or ""
        except (IndexError, AttributeError, TypeError) as e:
            raise ModelError(f"Invalid response structure from OpenAI API: {e}") from e

        meta = {
            "provider": "openai",
            "model": getattr(response, "model", None) or req.model,
            "latency": latency,
            "base_url": self.base_url or DEFAULT_BASE_URL,
            "finish_reason": getattr(choice, "finish_reason", None),
        }
        usage = getattr(response, "usage", None)
        if usage is not None:
            meta["usage"] = {
                "prompt_tokens": getattr(usage, "prompt_tokens", None),
                "completion_tokens": getattr(usage, "completion_tokens", None),
                "total_tokens": getattr(usage, "total_tokens", None),
            }
        if getattr(response, "id", None):
            meta["id"] = response.id

        return ModelResponse(content=content, raw=response, meta=meta)

    def health_check(self) -> bool:
        try:
            self.client.models.list()
            return True
        except Exception:
            return False
