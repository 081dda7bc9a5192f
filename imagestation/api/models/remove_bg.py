"""
API models for the background removal endpoint.
"""

from pydantic import Field
from typing import Optional

from .common import APIResponse, StoredImage

class RemoveBackgroundData(StoredImage):
    original_size: int
    processed_size: int
    original_size_human: str
    processed_size_human: str
    preview: str = Field(..., description="Transparent PNG as a data URL")
    processing_time: float

class RemoveBackgroundResponse(APIResponse):
    data: Optional[RemoveBackgroundData] = None
