"""
Image compression endpoint.
"""

import time
from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool

from ..models.compress import CompressResponse, CompressData
from ..dependencies.session import ResultStore, get_result_store
from ..errors import failure_exception
from .results import download_path
from imagestation.pipeline.compress.compress import CompressionPipeline
from imagestation.pipeline.compress.types import CompressionInput, CompressionOutput, DEFAULT_QUALITY
from imagestation.utils.image_converter import format_file_size, to_data_url

router = APIRouter()


def to_compress_data(output: CompressionOutput, result_id: str, processing_time: float) -> CompressData:
    return CompressData(
        result_id=result_id,
        filename=output.filename,
        media_type=output.media_type,
        download_url=download_path(result_id),
        original_size=output.original_size,
        compressed_size=output.compressed_size,
        original_size_human=format_file_size(output.original_size),
        compressed_size_human=format_file_size(output.compressed_size),
        quality=output.quality,
        compression_ratio=round(output.compression_ratio, 1),
        width=output.width,
        height=output.height,
        preview=to_data_url(output.data, output.media_type),
        processing_time=processing_time,
    )


async def run_compression(image_bytes: bytes, filename: str, quality: int, result_store: ResultStore) -> CompressData:
    start_time = time.time()
    try:
        compression_input = CompressionInput(
            image_bytes=image_bytes,
            filename=filename or "image",
            quality=quality,
        )
        output = await run_in_threadpool(CompressionPipeline().process, compression_input)
    except Exception as e:
        raise failure_exception(e, "compress") from e

    result_id = result_store.save(
        filename=output.filename,
        media_type=output.media_type,
        data=output.data,
        metadata={"quality": output.quality},
    )
    return to_compress_data(output, result_id, time.time() - start_time)


@router.post("/compress", response_model=CompressResponse)
async def compress_image(
    file: UploadFile = File(...),
    quality: int = Form(DEFAULT_QUALITY),
    result_store: ResultStore = Depends(get_result_store)
):
    """
    Re-encode an uploaded image as JPEG.

    `quality` ranges from 10 to 100. The result can be previewed from the
    returned data URL or downloaded through `download_url`.
    """
    data = await run_compression(await file.read(), file.filename, quality, result_store)
    return CompressResponse(success=True, message="Image compressed successfully", data=data)
