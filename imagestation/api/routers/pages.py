"""
Browser screens.

Each feature page is a plain HTML form posting back to itself. The handlers
reuse the JSON endpoints' helpers, so a failure renders the same message the
API would return, inline next to the form.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from ..dependencies.session import ResultStore, get_result_store, get_model_manager
from .compress import run_compression
from .remove_bg import run_background_removal
from .recognize import run_recognition, recognition_options
from .generate import run_generation, generation_options
from imagestation.models.manager import ModelManager
from imagestation.pipeline.compress.types import DEFAULT_QUALITY, MIN_QUALITY, MAX_QUALITY
from imagestation.utils.image_converter import (
    format_file_size, image_format_from_mime, is_image_content_type, to_data_url,
)

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).parents[1] / "templates"))
templates.env.filters["filesize"] = format_file_size

FEATURES = [
    {"path": "/compress", "title": "Image compression", "blurb": "Shrink file size while keeping the picture looking good."},
    {"path": "/remove-bg", "title": "Background removal", "blurb": "Cut out the subject and get a transparent PNG."},
    {"path": "/recognize", "title": "Image recognition", "blurb": "Ask a vision model what is in a picture."},
    {"path": "/generate", "title": "AI image generation", "blurb": "Turn a text description into an image."},
]


def _error_message(exc: HTTPException) -> str:
    if isinstance(exc.detail, dict):
        return exc.detail.get("error", "")
    return str(exc.detail)


def _render(request: Request, template: str, context: Dict[str, Any], status_code: int = 200) -> HTMLResponse:
    return templates.TemplateResponse(request, template, {"features": FEATURES, **context}, status_code=status_code)


def _upload_preview(image_bytes: bytes, content_type: Optional[str]) -> Optional[Dict[str, Any]]:
    if not image_bytes or not is_image_content_type(content_type):
        return None
    return {"src": to_data_url(image_bytes, content_type), "size": len(image_bytes)}


@router.get("/", response_class=HTMLResponse)
async def index(request: Request):
    return _render(request, "index.html", {})


@router.get("/compress", response_class=HTMLResponse)
async def compress_page(request: Request, model_manager: ModelManager = Depends(get_model_manager)):
    quality = model_manager.app_settings.get("default_quality", DEFAULT_QUALITY)
    return _render(request, "compress.html", {"quality": quality, "min_quality": MIN_QUALITY, "max_quality": MAX_QUALITY})


@router.post("/compress", response_class=HTMLResponse)
async def compress_submit(
    request: Request,
    file: Optional[UploadFile] = File(None),
    quality: int = Form(DEFAULT_QUALITY),
    result_store: ResultStore = Depends(get_result_store)
):
    image_bytes = await file.read() if file else b""
    context = {
        "quality": quality,
        "min_quality": MIN_QUALITY,
        "max_quality": MAX_QUALITY,
        "original": _upload_preview(image_bytes, file.content_type if file else None),
    }
    try:
        context["result"] = await run_compression(image_bytes, file.filename if file else "", quality, result_store)
    except HTTPException as e:
        return _render(request, "compress.html", {**context, "error": _error_message(e)}, status_code=e.status_code)
    return _render(request, "compress.html", context)


@router.get("/remove-bg", response_class=HTMLResponse)
async def remove_bg_page(request: Request):
    return _render(request, "remove_bg.html", {})


@router.post("/remove-bg", response_class=HTMLResponse)
async def remove_bg_submit(
    request: Request,
    file: Optional[UploadFile] = File(None),
    result_store: ResultStore = Depends(get_result_store),
    model_manager: ModelManager = Depends(get_model_manager)
):
    image_bytes = await file.read() if file else b""
    content_type = file.content_type if file else ""
    context = {"original": _upload_preview(image_bytes, content_type)}
    try:
        context["result"] = await run_background_removal(
            image_bytes, file.filename if file else "", content_type, model_manager, result_store
        )
    except HTTPException as e:
        return _render(request, "remove_bg.html", {**context, "error": _error_message(e)}, status_code=e.status_code)
    return _render(request, "remove_bg.html", context)


@router.get("/recognize", response_class=HTMLResponse)
async def recognize_page(request: Request, model_manager: ModelManager = Depends(get_model_manager)):
    options = recognition_options(model_manager)
    return _render(request, "recognize.html", {"options": options, "question": options.default_question})


@router.post("/recognize", response_class=HTMLResponse)
async def recognize_submit(
    request: Request,
    file: Optional[UploadFile] = File(None),
    question: str = Form(""),
    model_manager: ModelManager = Depends(get_model_manager)
):
    image_bytes = await file.read() if file else b""
    content_type = file.content_type if file else ""
    context = {
        "options": recognition_options(model_manager),
        "question": question,
        "original": _upload_preview(image_bytes, content_type),
    }

    if image_bytes and not is_image_content_type(content_type):
        return _render(request, "recognize.html", {**context, "error": "Please choose an image file"}, status_code=400)

    image_format = image_format_from_mime(content_type) if image_bytes else ""
    try:
        result = await run_recognition(image_bytes, image_format, question, model_manager)
    except HTTPException as e:
        return _render(request, "recognize.html", {**context, "error": _error_message(e)}, status_code=e.status_code)
    context.update(result=result, question=result.question)
    return _render(request, "recognize.html", context)


@router.get("/generate", response_class=HTMLResponse)
async def generate_page(request: Request, model_manager: ModelManager = Depends(get_model_manager)):
    options = generation_options(model_manager)
    return _render(request, "generate.html", {"options": options, "prompt": "", "size": options.default_size})


@router.post("/generate", response_class=HTMLResponse)
async def generate_submit(
    request: Request,
    prompt: str = Form(""),
    size: str = Form("2K"),
    model_manager: ModelManager = Depends(get_model_manager),
    result_store: ResultStore = Depends(get_result_store)
):
    context = {"options": generation_options(model_manager), "prompt": prompt, "size": size}
    try:
        context["result"] = await run_generation(prompt, size, model_manager, result_store)
    except HTTPException as e:
        return _render(request, "generate.html", {**context, "error": _error_message(e)}, status_code=e.status_code)
    return _render(request, "generate.html", context)
