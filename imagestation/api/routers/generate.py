"""
Text-to-image endpoints.
"""

import time
from typing import Optional
from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from ..models.generate import GenerateRequest, GenerateResponse, GenerateData, GenerateOptions, SizeOption, PromptCategory
from ..dependencies.session import ResultStore, get_result_store, get_model_manager
from ..errors import failure_exception
from .results import download_path
from imagestation.models.manager import ModelManager
from imagestation.pipeline.generate.generate import GenerationPipeline
from imagestation.pipeline.generate.types import GenerationInput, DEFAULT_SIZE

router = APIRouter()


async def run_generation(prompt: Optional[str], size: str, model_manager: ModelManager, result_store: ResultStore) -> GenerateData:
    start_time = time.time()
    try:
        output = await run_in_threadpool(GenerationPipeline(model_manager).process, GenerationInput(prompt=prompt, size=size))
    except Exception as e:
        raise failure_exception(e, "generate") from e

    result_id = result_store.save(
        filename=output.download_filename,
        media_type="image/png",
        source_url=output.url,
        metadata={"prompt": output.prompt, "size": output.size},
    )
    return GenerateData(
        result_id=result_id,
        filename=output.download_filename,
        media_type="image/png",
        download_url=download_path(result_id),
        url=output.url,
        prompt=output.prompt,
        size=output.size,
        created_at=output.created_at,
        processing_time=time.time() - start_time,
    )


def generation_options(model_manager: ModelManager) -> GenerateOptions:
    settings = model_manager.app_settings
    configured = settings.get("generation_sizes") or [{"value": s, "label": s} for s in GenerationPipeline(model_manager).sizes]
    sizes = [SizeOption(**item) if isinstance(item, dict) else SizeOption(value=str(item), label=str(item)) for item in configured]
    suggestions = [
        PromptCategory(category=s.category, templates=s.templates)
        for s in model_manager.prompts.load_suggestions("generate/suggestions")
    ]
    return GenerateOptions(sizes=sizes, default_size=settings.get("default_size", DEFAULT_SIZE), suggestions=suggestions)


@router.post("/generate", response_model=GenerateResponse)
async def generate_image(
    request: GenerateRequest,
    model_manager: ModelManager = Depends(get_model_manager),
    result_store: ResultStore = Depends(get_result_store)
):
    """
    Generate an image from a text description.

    Returns the vendor URL of the first generated image. The image itself is
    only fetched when `download_url` is requested.
    """
    data = await run_generation(request.prompt, request.size, model_manager, result_store)
    return GenerateResponse(success=True, message="Image generated successfully", data=data)


@router.get("/generate/options", response_model=GenerateOptions)
async def get_generation_options(model_manager: ModelManager = Depends(get_model_manager)):
    """Size choices and example prompts for the generation form."""
    return generation_options(model_manager)
