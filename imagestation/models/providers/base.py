from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List

#unified model errors
class ModelError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail #vendor supplied, human readable

class ModelTimeout(ModelError): ...
class ModelRetryable(ModelError): ...
class ModelAuthError(ModelError): ...
class ModelRateLimited(ModelRetryable): ...
class ModelResponseFormatError(ModelError): ...
class ModelConfigError(ModelError): ... #unknown task, provider or service at call time


RETRYABLE_STATUS = {408, 409, 429, 500, 502, 503, 504}


def error_for_status(status_code: int, message: str, detail: Optional[str] = None) -> ModelError:
    """Pick the ModelError subclass matching a vendor HTTP status."""
    if status_code == 401:
        return ModelAuthError(message, status_code=status_code, detail=detail)
    if status_code == 429:
        return ModelRateLimited(message, status_code=status_code, detail=detail)
    if status_code in RETRYABLE_STATUS:
        return ModelRetryable(message, status_code=status_code, detail=detail)
    return ModelError(message, status_code=status_code, detail=detail)


@dataclass(frozen=True)
class InlineImage:
    data: bytes
    format: str = "jpeg" #png | jpeg | webp

    @property
    def media_type(self) -> str:
        return f"image/{self.format}"

@dataclass(frozen=True)
class ChatRequest:
    model: str
    messages: List[Dict[str, Any]]
    params: Dict[str, Any] | None = None
    extra_body: Optional[Dict[str, Any]] = None #vendor only args
    images: Optional[List[InlineImage]] = None #images to include in the chat

@dataclass(frozen=True)
class ModelResponse:
    content: str
    raw: Any #provider-native response obj/dict
    meta: Dict[str, Any] #timings, token  counts, model, created_at, etc.

@dataclass(frozen=True)
class ImageGenerationRequest:
    model: str
    prompt: str
    size: str
    params: Dict[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class ImageGenerationResponse:
    urls: List[Optional[str]] #positional, None where an item carried no url
    raw: Any
    meta: Dict[str, Any]

class ModelProvider(ABC):
    @abstractmethod
    def chat(self, req: ChatRequest) -> ModelResponse:
        raise NotImplementedError

    @abstractmethod
    def generate_image(self, req: ImageGenerationRequest) -> ImageGenerationResponse:
        raise NotImplementedError
