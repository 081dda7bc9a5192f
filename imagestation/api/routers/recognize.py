"""
Image recognition endpoint.
"""

import time
from typing import Optional
from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from ..models.recognize import RecognizeRequest, RecognizeResponse, RecognizeData, RecognizeOptions
from ..dependencies.session import get_model_manager
from ..errors import failure_exception
from imagestation.models.manager import ModelManager
from imagestation.pipeline.recognize.recognize import RecognitionPipeline
from imagestation.pipeline.recognize.types import RecognitionInput
from imagestation.utils.image_converter import from_base64

router = APIRouter()


async def run_recognition(image_data: bytes, image_format: Optional[str], question: Optional[str], model_manager: ModelManager) -> RecognizeData:
    start_time = time.time()
    try:
        recognition_input = RecognitionInput(image_data=image_data, image_format=image_format, question=question)
        output = await run_in_threadpool(RecognitionPipeline(model_manager).process, recognition_input)
    except Exception as e:
        raise failure_exception(e, "recognize") from e

    return RecognizeData(
        analysis=output.analysis,
        question=output.question,
        image_format=output.image_format,
        processing_time=time.time() - start_time,
        processing_metadata=output.processing_metadata,
    )


def recognition_options(model_manager: ModelManager) -> RecognizeOptions:
    pipeline = RecognitionPipeline(model_manager)
    return RecognizeOptions(default_question=pipeline.default_question(), presets=pipeline.preset_questions())


@router.post("/recognize", response_model=RecognizeResponse)
async def recognize_image(
    request: RecognizeRequest,
    model_manager: ModelManager = Depends(get_model_manager)
):
    """
    Ask the vision model a question about a base64 image.

    A blank question falls back to a request for a detailed description.
    """
    try:
        image_data = from_base64(request.image_data) if request.image_data else b""
    except ValueError as e:
        raise failure_exception(e, "recognize") from e

    data = await run_recognition(image_data, request.image_format, request.question, model_manager)
    return RecognizeResponse(success=True, message="Image recognized successfully", data=data)


@router.get("/recognize/options", response_model=RecognizeOptions)
async def get_recognition_options(model_manager: ModelManager = Depends(get_model_manager)):
    """Default question and preset questions for the recognition form."""
    return recognition_options(model_manager)
