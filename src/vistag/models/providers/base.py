from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Any, Optional, List

#unified model errors
class ModelError(RuntimeError): ...
class ModelTimeout(ModelError): ...
class ModelRetryable(ModelError): ...

RETRYABLE_STATUS = {408, 409, 429, 500, 502, 503, 504}

@dataclass(frozen=True)
class ImagePart:
    data: bytes #raw image bytes, providers handle their own encoding
    mime_type: str = "image/jpeg"

@dataclass(frozen=True)
class ChatRequest:
    model: str
    messages: List[Dict[str, Any]]
    params: Dict[str, Any] | None = None #provider-neutral: temperature, max_output_tokens, stop_sequences, timeout
    images: Optional[List[ImagePart]] = None #attached to the first user message

@dataclass(frozen=True)
class ModelResponse:
    content: str
    raw: Any #provider-native response obj/dict
    meta: Dict[str, Any] #timings, token counts, model, finish reason, etc.

class ModelProvider(ABC):
    @abstractmethod
    def chat(self, req: ChatRequest) -> ModelResponse:
        raise NotImplementedError

    @abstractmethod
    def health_check(self) -> bool:
        raise NotImplementedError
