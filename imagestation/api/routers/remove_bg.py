"""
Background removal endpoint.
"""

import time
from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool

from ..models.remove_bg import RemoveBackgroundResponse, RemoveBackgroundData
from ..dependencies.session import ResultStore, get_result_store, get_model_manager
from ..errors import failure_exception
from .results import download_path
from imagestation.models.manager import ModelManager
from imagestation.pipeline.remove_bg.remove_bg import BackgroundRemovalPipeline
from imagestation.pipeline.remove_bg.types import BackgroundRemovalInput
from imagestation.utils.image_converter import format_file_size, to_data_url

router = APIRouter()


async def run_background_removal(image_bytes: bytes, filename: str, content_type: str, model_manager: ModelManager, result_store: ResultStore) -> RemoveBackgroundData:
    start_time = time.time()
    try:
        removal_input = BackgroundRemovalInput(
            image_bytes=image_bytes,
            filename=filename or "image",
            content_type=content_type or "",
        )
        output = await run_in_threadpool(BackgroundRemovalPipeline(model_manager).process, removal_input)
    except Exception as e:
        raise failure_exception(e, "remove_bg") from e

    result_id = result_store.save(filename=output.filename, media_type=output.media_type, data=output.data)
    return RemoveBackgroundData(
        result_id=result_id,
        filename=output.filename,
        media_type=output.media_type,
        download_url=download_path(result_id),
        original_size=output.original_size,
        processed_size=output.processed_size,
        original_size_human=format_file_size(output.original_size),
        processed_size_human=format_file_size(output.processed_size),
        preview=to_data_url(output.data, output.media_type),
        processing_time=time.time() - start_time,
    )


@router.post("/remove-bg", response_model=RemoveBackgroundResponse)
async def remove_background(
    file: UploadFile = File(...),
    result_store: ResultStore = Depends(get_result_store),
    model_manager: ModelManager = Depends(get_model_manager)
):
    """Send an uploaded image to the background removal service and keep the PNG it returns."""
    data = await run_background_removal(await file.read(), file.filename, file.content_type, model_manager, result_store)
    return RemoveBackgroundResponse(success=True, message="Background removed successfully", data=data)
