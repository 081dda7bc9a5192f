from __future__ import annotations
import logging
import time
from os import getenv
from typing import Optional

import httpx
from tenacity import Retrying, stop_after_attempt, wait_exponential_jitter, retry_if_exception_type

from .base import BackgroundRemover, BackgroundRemovalRequest, BackgroundRemovalResponse
from ..providers.base import (
    ModelRetryable, ModelTimeout, ModelAuthError, ModelResponseFormatError, error_for_status,
)

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.remove.bg/v1.0/removebg"


def _vendor_error_title(response: httpx.Response) -> Optional[str]:
    """remove.bg reports failures as {"errors": [{"title": ...}]}."""
    try:
        payload = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    errors = payload.get("errors") or []
    if errors and isinstance(errors[0], dict):
        return errors[0].get("title")
    return None


class RemoveBgService(BackgroundRemover):
    def __init__(self, endpoint: str = DEFAULT_ENDPOINT, api_key: Optional[str] = None, api_key_env: str = "REMOVE_BG_API_KEY", size: str = "auto", timeout: float = 60.0, max_attempts: int = 1, transport: Optional[httpx.BaseTransport] = None):
        self.endpoint = endpoint
        self.api_key = api_key or getenv(api_key_env)
        self.api_key_env = api_key_env
        self.size = size
        self.timeout = timeout
        self.max_attempts = max(1, int(max_attempts))
        self.client = httpx.Client(timeout=timeout, transport=transport)
        logger.info(f"RemoveBgService initialized for {endpoint}")

    def remove_background(self, req: BackgroundRemovalRequest) -> BackgroundRemovalResponse:
        if not self.api_key:
            raise ModelAuthError(f"No API key configured, set {self.api_key_env}", status_code=401)

        retrying = Retrying(
            reraise=True,
            wait=wait_exponential_jitter(initial=0.5, max=4),
            stop=stop_after_attempt(self.max_attempts),
            retry=retry_if_exception_type((ModelRetryable, ModelTimeout)),
        )
        return retrying(self._remove_once, req)

    def _remove_once(self, req: BackgroundRemovalRequest) -> BackgroundRemovalResponse:
        t0 = time.perf_counter()
        try:
            response = self.client.post(
                self.endpoint,
                headers={"X-Api-Key": self.api_key},
                files={"image_file": (req.filename, req.image, req.content_type)},
                data={"size": req.size or self.size},
            )
        except httpx.TimeoutException as e:
            raise ModelTimeout(f"Background removal timed out after {self.timeout}s: {e}") from e
        except httpx.TransportError as e:
            raise ModelRetryable(f"Background removal request failed: {e}") from e

        dt = time.perf_counter() - t0

        if response.is_error:
            title = _vendor_error_title(response)
            logger.error(f"Background removal failed with status {response.status_code}: {response.text[:500]}")
            raise error_for_status(
                response.status_code,
                f"Background removal API error {response.status_code}: {title or response.reason_phrase}",
                detail=title,
            )

        media_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        if not media_type.startswith("image/"):
            raise ModelResponseFormatError(f"Background removal returned {media_type or 'no content type'} instead of an image")
        if not response.content:
            raise ModelResponseFormatError("Background removal returned an empty body")

        meta = {
            "provider": "removebg",
            "latency": dt,
            "credits_charged": response.headers.get("x-credits-charged"),
            "foreground_type": response.headers.get("x-type"),
        }
        return BackgroundRemovalResponse(data=response.content, media_type=media_type, meta=meta)

    def cleanup(self):
        self.client.close()
