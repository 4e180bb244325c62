from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
import time
from os import getenv

import httpx
from google import genai
from google.genai import errors, types
from tenacity import retry, stop_after_attempt, wait_exponential_jitter, retry_if_exception

from .base import ModelProvider, ChatRequest, ModelResponse, ModelError, ModelRetryable, ModelTimeout, ImagePart, RETRYABLE_STATUS

_TIMEOUTS = (httpx.ReadTimeout, httpx.ConnectTimeout, httpx.WriteTimeout, httpx.PoolTimeout)
_CONNECTION_ERRORS = (httpx.ConnectError, httpx.RemoteProtocolError)

def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, _TIMEOUTS + _CONNECTION_ERRORS + (ModelTimeout, ModelRetryable)):
        return True
    if isinstance(exc, errors.APIError):
        try:
            return int(getattr(exc, "code", 0) or 0) in RETRYABLE_STATUS
        except (TypeError, ValueError):
            return False
    return False

class GeminiProvider(ModelProvider):
    def __init__(self, api_key: Optional[str] = None, request_timeout_s: float = 60.0):
        self.api_key = api_key or getenv("GEMINI_API_KEY")
        self.request_timeout_s = request_timeout_s
        self.client = genai.Client(
            api_key=self.api_key,
            http_options=types.HttpOptions(timeout=int(request_timeout_s * 1000)),
        )

    def _build_contents(self, messages: List[Dict[str, Any]], images: List[ImagePart]) -> Tuple[Optional[str], List[types.Content]]:
        """Split system messages out and attach images to the first user turn."""
        system_parts = []
        contents = []
        images_added = False
        for msg in messages:
            role = msg.get("role", "user")
            text = msg.get("content", "")
            if role == "system":
                system_parts.append(text)
                continue
            parts = [types.Part.from_text(text=text)]
            if role == "user" and not images_added:
                parts.extend(types.Part.from_bytes(data=img.data, mime_type=img.mime_type) for img in images)
                images_added = True
            contents.append(types.Content(role="model" if role == "assistant" else "user", parts=parts))
        system_instruction = "\n\n".join(system_parts) if system_parts else None
        return system_instruction, contents

    @retry(reraise=True, wait=wait_exponential_jitter(initial=0.5, max=4), stop=stop_after_attempt(3), retry=retry_if_exception(_is_retryable))
    def chat(self, req: ChatRequest) -> ModelResponse:
        params = dict(req.params or {})
        timeout = params.pop("timeout", None)
        system_instruction, contents = self._build_contents(req.messages, req.images or [])

        if timeout is not None:
            params["http_options"] = types.HttpOptions(timeout=int(float(timeout) * 1000))
        config = types.GenerateContentConfig(system_instruction=system_instruction, **params)

        t0 = time.perf_counter()
        try:
            response = self.client.models.generate_content(
                model=req.model,
                contents=contents,
                config=config,
            )
        except _TIMEOUTS as e:
            raise ModelTimeout(f"Gemini timeout: {e}") from e
        except _CONNECTION_ERRORS as e:
            raise ModelRetryable(f"Gemini connection error: {e}") from e
        except errors.APIError as e:
            msg = f"Gemini API error: {e}"
            if _is_retryable(e):
                raise ModelRetryable(msg) from e
            raise ModelError(msg) from e
        except Exception as e:
            raise ModelError(f"Gemini provider error: {e}") from e

        dt = time.perf_counter() - t0

        # .text raises on blocked candidates in some SDK versions
        try:
            content = response.text or ""
        except (ValueError, AttributeError) as e:
            raise ModelError(f"Invalid response structure from Gemini API: {e}") from e

        meta = {
            "provider": "gemini",
            "model": getattr(response, "model_version", None) or req.model,
            "latency": dt,
        }
        usage = getattr(response, "usage_metadata", None)
        if usage is not None:
            meta["usage"] = {
                "prompt_tokens": getattr(usage, "prompt_token_count", None),
                "completion_tokens": getattr(usage, "candidates_token_count", None),
                "total_tokens": getattr(usage, "total_token_count", None),
            }
        candidates = getattr(response, "candidates", None)
        if candidates:
            finish_reason = getattr(candidates[0], "finish_reason", None)
            meta["finish_reason"] = str(finish_reason) if finish_reason is not None else None

        return ModelResponse(content=content, raw=response, meta=meta)

    def health_check(self) -> bool:
        try:
            next(iter(self.client.models.list()), None)
            return True
        except Exception:
            return False
