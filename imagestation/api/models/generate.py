"""
API models for the text-to-image endpoints.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from .common import APIResponse, StoredImage

class GenerateRequest(BaseModel):
    prompt: Optional[str] = Field(None, description="Image description")
    size: str = Field("2K", description="1K, 2K or 4K")

    class Config:
        json_schema_extra = {
            "example": {
                "prompt": "Beach at sunset, golden light, romantic atmosphere, photographic quality",
                "size": "2K"
            }
        }

class GenerateData(StoredImage):
    url: str = Field(..., description="Vendor-hosted image URL")
    prompt: str
    size: str
    created_at: datetime
    processing_time: float

class GenerateResponse(APIResponse):
    data: Optional[GenerateData] = None

class SizeOption(BaseModel):
    value: str
    label: str

class PromptCategory(BaseModel):
    category: str
    templates: List[str]

class GenerateOptions(BaseModel):
    sizes: List[SizeOption]
    default_size: str
    suggestions: List[PromptCategory]
