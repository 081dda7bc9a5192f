from __future__ import annotations
from pathlib import Path
from typing import Optional
import base64


def to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode('utf-8')


def from_base64(data: str) -> bytes:
    """Decode base64 image data, tolerating a leading data-URL prefix."""
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        return base64.b64decode(data, validate=True)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Image data is not valid base64: {e}") from e


def image_format_from_mime(content_type: Optional[str]) -> str:
    """Map an upload MIME type to the short format name used in data URLs."""
    mime = (content_type or "").lower()
    if "png" in mime:
        return "png"
    if "jpeg" in mime or "jpg" in mime:
        return "jpeg"
    if "webp" in mime:
        return "webp"
    return "jpeg"


def to_data_url(data: bytes, media_type: str) -> str:
    return f"data:{media_type};base64,{to_base64(data)}"


def format_file_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"


def replace_extension(filename: Optional[str], extension: str, prefix: str = "") -> str:
    """`photo.webp` -> `<prefix>photo<extension>`; falls back to `image` for empty names."""
    name = Path(filename or "").name
    stem = Path(name).stem if name else "image"
    return f"{prefix}{stem or 'image'}{extension}"


def is_image_content_type(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.lower().startswith("image/")
