"""
Download endpoint for stored results.
"""

from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Path
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from ..dependencies.session import ResultStore, get_result_store, get_model_manager
from ..errors import failure_exception
from imagestation.models.manager import ModelManager
from imagestation.pipeline.generate.generate import GenerationPipeline

router = APIRouter()


def download_path(result_id: str) -> str:
    return f"/api/v1/results/{result_id}/download"


def attachment_headers(filename: str) -> dict:
    return {"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"}


@router.get("/{result_id}/download")
async def download_result(
    result_id: str = Path(..., description="ID returned by a processing endpoint"),
    result_store: ResultStore = Depends(get_result_store),
    model_manager: ModelManager = Depends(get_model_manager)
):
    """Serve a stored result as an attachment, fetching generated images on first use."""
    result = result_store.get(result_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Result not found or expired")

    data = result.data
    if data is None:
        try:
            data = await run_in_threadpool(GenerationPipeline(model_manager).download, result.source_url)
        except Exception as e:
            raise failure_exception(e, "download") from e
        result_store.attach_data(result_id, data)

    return Response(content=data, media_type=result.media_type, headers=attachment_headers(result.filename))
