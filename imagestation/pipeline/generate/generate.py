import logging
from typing import List, Optional

import httpx

from imagestation.models.manager import ModelManager
from imagestation.models.providers.base import (
    ModelResponseFormatError, ModelRetryable, ModelTimeout, error_for_status,
)
from .types import GenerationInput, GenerationOutput, SIZES

logger = logging.getLogger(__name__)


class GenerationPipeline:
    def __init__(self, manager: ModelManager, task: str = "generation"):
        self.model_manager = manager
        self.task = task

    @property
    def sizes(self) -> List[str]:
        configured = self.model_manager.app_settings.get("generation_sizes")
        if configured:
            return [item["value"] if isinstance(item, dict) else str(item) for item in configured]
        return list(SIZES)

    def process(self, generation_input: GenerationInput) -> GenerationOutput:
        prompt = (generation_input.prompt or "").strip()
        if not prompt:
            raise ValueError("Please enter an image description")
        if generation_input.size not in self.sizes:
            raise ValueError(f"Unsupported size {generation_input.size!r}, choose one of {', '.join(self.sizes)}")

        logger.info(f"Generating {generation_input.size} image for prompt: {prompt[:100]}")
        response = self.model_manager.generate_image(
            task=self.task,
            prompt=prompt,
            size=generation_input.size,
        )

        # only the first image is surfaced
        if not response.urls or not response.urls[0]:
            raise ModelResponseFormatError("Image generation response carried no image URL")

        return GenerationOutput(
            url=response.urls[0],
            prompt=prompt,
            size=generation_input.size,
            processing_metadata=response.meta,
        )

    def download(self, url: str, timeout: Optional[float] = None, transport: Optional[httpx.BaseTransport] = None) -> bytes:
        """Fetch a generated image so it can be served as an attachment."""
        timeout = timeout or self.model_manager.app_settings.get("download_timeout", 60)
        try:
            with httpx.Client(timeout=timeout, follow_redirects=True, transport=transport) as client:
                response = client.get(url)
        except httpx.TimeoutException as e:
            raise ModelTimeout(f"Downloading generated image timed out: {e}") from e
        except httpx.TransportError as e:
            raise ModelRetryable(f"Downloading generated image failed: {e}") from e

        if response.is_error:
            raise error_for_status(response.status_code, f"Downloading generated image failed with status {response.status_code}")
        return response.content
