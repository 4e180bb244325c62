from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
import time
import httpx
from tenacity import retry, stop_after_attempt, wait_exponential_jitter, retry_if_exception
from ollama import Client, ResponseError
from .base import ModelProvider, ChatRequest, ModelResponse, ModelError, ModelRetryable, ModelTimeout, ImagePart, RETRYABLE_STATUS
from ...utils.image_converter import to_base64

#response fields copied into ModelResponse.meta when the server reports them
_META_FIELDS = ("total_duration", "prompt_eval_count", "eval_count", "done_reason")

_TIMEOUTS = (httpx.ReadTimeout, httpx.ConnectTimeout, httpx.WriteTimeout, httpx.PoolTimeout)
_CONNECTION_ERRORS = (httpx.ConnectError, httpx.RemoteProtocolError)

def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, _TIMEOUTS + _CONNECTION_ERRORS + (ModelTimeout,)):
        return True
    if isinstance(exc, ResponseError):
        return getattr(exc, "status_code", None) in RETRYABLE_STATUS
    return isinstance(exc, ModelRetryable)

def _read_response(response: Any, default_model: str) -> Tuple[str, str, Dict[str, Any]]:
    """Normalise a dict or typed ChatResponse into (content, model, fields)."""
    if isinstance(response, dict):
        message = response.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        return content or "", response.get("model") or default_model, response
    message = getattr(response, "message", None)
    if message is not None and hasattr(message, "content"):
        fields = {key: getattr(response, key) for key in _META_FIELDS if getattr(response, key, None) is not None}
        return message.content or "", getattr(response, "model", None) or default_model, fields
    raise ModelError(f"Received unexpected response structure from Ollama: {response!r}")

class OllamaProvider(ModelProvider):
    """Local vision models served by Ollama (llava, qwen2.5vl, ...)."""

    def __init__(self, host: str = "http://localhost:11434", request_timeout_s: float = 300, keep_alive: str = "5m"):
        self.host = host
        self.request_timeout_s = request_timeout_s
        self.keep_alive = keep_alive
        self.client = Client(host=host, timeout=request_timeout_s)

    def _client_for(self, timeout: float) -> Client:
        if timeout == self.request_timeout_s:
            return self.client
        return Client(host=self.host, timeout=timeout)

    @staticmethod
    def _attach_images(messages: List[Dict[str, Any]], images: Optional[List[ImagePart]]) -> List[Dict[str, Any]]:
        #ollama takes base64 strings in an 'images' list on the message itself
        if not images:
            return messages
        encoded = [to_base64(img) for img in images]
        out = [dict(m) for m in messages]
        for msg in out:
            if msg.get("role") == "user":
                msg["images"] = encoded
                break
        return out

    @retry(reraise=True, wait=wait_exponential_jitter(initial=0.5, max=4), stop=stop_after_attempt(3), retry=retry_if_exception(_is_retryable))
    def chat(self, req: ChatRequest) -> ModelResponse:
        options = dict(req.params or {})
        keep_alive = options.pop("keep_alive", self.keep_alive)
        timeout = options.pop("timeout", self.request_timeout_s)
        if "max_output_tokens" in options:
            options["num_predict"] = options.pop("max_output_tokens")
        if "stop_sequences" in options:
            options["stop"] = options.pop("stop_sequences")

        t0 = time.perf_counter()
        try:
            response = self._client_for(timeout).chat(
                model=req.model,
                messages=self._attach_images(req.messages, req.images),
                options=options,
                keep_alive=keep_alive,
            )
        except _TIMEOUTS as e:
            raise ModelTimeout(f"Ollama timeout after {timeout}s: {e}") from e
        except _CONNECTION_ERRORS as e:
            raise ModelRetryable(f"Ollama unreachable at {self.host}: {e}") from e
        except ResponseError as e:
            if _is_retryable(e):
                raise ModelRetryable(f"Ollama server error: {e}") from e
            raise ModelError(f"Ollama request rejected: {e}") from e
        except Exception as e:
            raise ModelError(f"Ollama request failed: {e}") from e
        latency = time.perf_counter() - t0

        content, model_name, fields = _read_response(response, req.model)
        meta = {"provider": "ollama", "model": model_name, "latency": latency}
        meta.update({key: fields[key] for key in _META_FIELDS if key in fields})
        return ModelResponse(content=content, raw=response, meta=meta)

    def health_check(self) -> bool:
        try:
            self.client.list()
            return True
        except Exception:
            return False
