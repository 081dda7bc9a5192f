from __future__ import annotations
from typing import Dict, Any, Optional, List
import logging
import time
from os import getenv

from openai import OpenAI
from openai import APIError, APIStatusError, APITimeoutError, APIConnectionError
from tenacity import Retrying, stop_after_attempt, wait_exponential_jitter, retry_if_exception_type

from .base import (
    ModelProvider, ChatRequest, ModelResponse, ImageGenerationRequest, ImageGenerationResponse,
    InlineImage, ModelError, ModelRetryable, ModelTimeout, ModelAuthError, ModelResponseFormatError,
    error_for_status,
)
from ...utils.image_converter import to_data_url

logger = logging.getLogger(__name__)


def _translate(exc: APIError, action: str) -> ModelError:
    """Map an OpenAI SDK exception onto the unified model errors."""
    if isinstance(exc, APITimeoutError):
        return ModelTimeout(f"{action} timed out: {exc}")
    if isinstance(exc, APIConnectionError):
        return ModelRetryable(f"{action} connection failed: {exc}")
    if isinstance(exc, APIStatusError):
        logger.error(f"{action} failed with status {exc.status_code}: {exc.body}")
        return error_for_status(exc.status_code, f"{action} API error: {exc}")
    return ModelError(f"{action} API error: {exc}")


class OpenAIProvider(ModelProvider):
    """OpenAI-compatible vendor endpoint (chat completions and image generation)."""

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None, api_key_env: str = "OPENAI_API_KEY", default_headers: Optional[Dict[str, str]] = None, timeout: float = 60.0, max_attempts: int = 1, **kwargs):
        api_key = api_key or getenv(api_key_env)
        if not api_key:
            raise ModelAuthError(f"No API key configured, set {api_key_env}", status_code=401)
        self.client = OpenAI(
            base_url=base_url,
            api_key=api_key,
            default_headers=default_headers or {},
            timeout=timeout,
            max_retries=0,
            **kwargs
        )
        self.base_url = base_url
        self.timeout = timeout
        self.max_attempts = max(1, int(max_attempts))

    def _retrying(self) -> Retrying:
        return Retrying(
            reraise=True,
            wait=wait_exponential_jitter(initial=0.5, max=4),
            stop=stop_after_attempt(self.max_attempts),
            retry=retry_if_exception_type((ModelRetryable, ModelTimeout)),
        )

    def _format_messages(self, messages: List[Dict[str, Any]], images: List[InlineImage]) -> List[Dict[str, Any]]:
        """Format messages with images for OpenAI - converts to content array format"""
        if not images:
            return messages

        image_contents = [
            {"type": "image_url", "image_url": {"url": to_data_url(img.data, img.media_type)}}
            for img in images
        ]

        # images go after the text of the first user message
        processed_messages = []
        images_added = False

        for msg in messages:
            if msg.get("role") == "user" and not images_added:
                processed_msg = msg.copy()
                content_array = [{"type": "text", "text": msg.get("content", "")}]
                content_array.extend(image_contents)
                processed_msg["content"] = content_array
                processed_messages.append(processed_msg)
                images_added = True
            else:
                processed_messages.append(msg)

        return processed_messages

    def chat(self, req: ChatRequest) -> ModelResponse:
        return self._retrying()(self._chat_once, req)

    def _chat_once(self, req: ChatRequest) -> ModelResponse:
        params = dict(req.params or {})
        messages = self._format_messages(req.messages, req.images or [])

        completion_params = {
            "model": req.model,
            "messages": messages,
            **params
        }
        if req.extra_body:
            completion_params["extra_body"] = req.extra_body

        t0 = time.perf_counter()
        try:
            response = self.client.chat.completions.create(**completion_params)
        except APIError as e:
            raise _translate(e, "Chat completion") from e

        dt = time.perf_counter() - t0

        try:
            message = response.choices[0].message
        except (IndexError, AttributeError, TypeError) as e:
            raise ModelResponseFormatError(f"Invalid response structure from chat API: {e}") from e
        if message is None:
            raise ModelResponseFormatError("Chat API returned a choice without a message")
        content = message.content or ""

        meta = {
            "provider": "openai",
            "model": getattr(response, 'model', req.model),
            "latency": dt,
            "base_url": self.base_url or "https://api.openai.com/v1",
            "finish_reason": getattr(response.choices[0], 'finish_reason', None),
        }
        if getattr(response, 'usage', None):
            meta["usage"] = response.usage.model_dump()
        if hasattr(response, 'id'):
            meta["id"] = response.id

        return ModelResponse(content=content, raw=response, meta=meta)

    def generate_image(self, req: ImageGenerationRequest) -> ImageGenerationResponse:
        return self._retrying()(self._generate_image_once, req)

    def _generate_image_once(self, req: ImageGenerationRequest) -> ImageGenerationResponse:
        params = dict(req.params or {})
        response_format = params.pop("response_format", "url")
        extra_body = params.pop("extra_body", None)

        t0 = time.perf_counter()
        try:
            response = self.client.images.generate(
                model=req.model,
                prompt=req.prompt,
                size=req.size,
                response_format=response_format,
                extra_body=extra_body,
                **params
            )
        except APIError as e:
            raise _translate(e, "Image generation") from e

        dt = time.perf_counter() - t0

        data = getattr(response, "data", None) or []
        urls = [getattr(item, "url", None) for item in data]

        meta = {
            "provider": "openai",
            "model": getattr(response, 'model', None) or req.model,
            "latency": dt,
            "created": getattr(response, 'created', None),
            "count": len(urls),
        }
        return ImageGenerationResponse(urls=urls, raw=response, meta=meta)
