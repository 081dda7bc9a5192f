import logging

from imagestation.models.manager import ModelManager
from imagestation.utils.image_converter import is_image_content_type, replace_extension
from .types import BackgroundRemovalInput, BackgroundRemovalOutput

logger = logging.getLogger(__name__)


class BackgroundRemovalPipeline:
    def __init__(self, manager: ModelManager, task: str = "background_removal"):
        self.model_manager = manager
        self.task = task

    def process(self, removal_input: BackgroundRemovalInput) -> BackgroundRemovalOutput:
        if not removal_input.image_bytes:
            raise ValueError("Please choose an image to process")
        if not is_image_content_type(removal_input.content_type):
            raise ValueError(f"Unsupported file type: {removal_input.content_type or 'unknown'}. Please choose an image file")

        logger.info(f"Removing background from {removal_input.filename!r} ({len(removal_input.image_bytes)} bytes)")
        response = self.model_manager.remove_background(
            task=self.task,
            image=removal_input.image_bytes,
            filename=removal_input.filename or "image",
            content_type=removal_input.content_type,
        )

        return BackgroundRemovalOutput(
            data=response.data,
            filename=replace_extension(removal_input.filename, ".png", prefix="no-bg_"),
            media_type=response.media_type,
            original_size=len(removal_input.image_bytes),
            processed_size=len(response.data),
            processing_metadata=response.meta,
        )
