import re
import logging
from typing import List

from imagestation.models.manager import ModelManager
from imagestation.models.providers.base import InlineImage
from imagestation.utils.image_converter import image_format_from_mime
from .types import RecognitionInput, RecognitionOutput

logger = logging.getLogger(__name__)

PROMPT_REF = "recognize/describe@v1"
PRESETS_NAME = "recognize/presets"
_FORMAT_PATTERN = re.compile(r"^[a-z0-9.+-]+$")


def normalize_image_format(image_format: str) -> str:
    """Accept `png`, `JPG`, `image/webp`... and return the data-URL subtype."""
    value = (image_format or "").strip().lower()
    if "/" in value:
        return image_format_from_mime(value)
    if value == "jpg":
        return "jpeg"
    if not _FORMAT_PATTERN.match(value):
        raise ValueError(f"Invalid image format: {image_format!r}")
    return value


class RecognitionPipeline:
    def __init__(self, manager: ModelManager, task: str = "recognition"):
        self.model_manager = manager
        self.task = task

    def default_question(self) -> str:
        return self.model_manager.prompts.load_prompt(PROMPT_REF).defaults.get("question", "")

    def preset_questions(self) -> List[str]:
        return [
            question
            for group in self.model_manager.prompts.load_suggestions(PRESETS_NAME)
            for question in group.templates
        ]

    def process(self, recognition_input: RecognitionInput) -> RecognitionOutput:
        if not recognition_input.image_data or not recognition_input.image_format:
            raise ValueError("Missing image data or format")

        image_format = normalize_image_format(recognition_input.image_format)
        question = (recognition_input.question or "").strip() or self.default_question()

        logger.info(f"Recognizing {image_format} image ({len(recognition_input.image_data)} bytes)")
        response = self.model_manager.call(
            task=self.task,
            prompt_ref=PROMPT_REF,
            variables={"question": question},
            images=[InlineImage(data=recognition_input.image_data, format=image_format)],
        )

        return RecognitionOutput(
            analysis=response.content,
            question=question,
            image_format=image_format,
            processing_metadata={
                "prompt_version": PROMPT_REF,
                **response.meta,
            },
        )
