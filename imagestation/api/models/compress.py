"""
API models for the compression endpoint.
"""

from pydantic import Field
from typing import Optional

from .common import APIResponse, StoredImage

class CompressData(StoredImage):
    original_size: int = Field(..., description="Upload size in bytes")
    compressed_size: int = Field(..., description="Re-encoded size in bytes")
    original_size_human: str
    compressed_size_human: str
    quality: int = Field(..., ge=10, le=100)
    compression_ratio: float = Field(..., description="Percentage saved, negative if the file grew")
    width: int
    height: int
    preview: str = Field(..., description="Result as a data URL")
    processing_time: float

    class Config:
        json_schema_extra = {
            "example": {
                "result_id": "3f2b4c1e-9d1a-4c55-8f60-0b7e4f2d9a10",
                "filename": "compressed_holiday.jpg",
                "media_type": "image/jpeg",
                "download_url": "/api/v1/results/3f2b4c1e-9d1a-4c55-8f60-0b7e4f2d9a10/download",
                "original_size": 2483021,
                "compressed_size": 412876,
                "original_size_human": "2.4 MB",
                "compressed_size_human": "403.2 KB",
                "quality": 80,
                "compression_ratio": 83.4,
                "width": 4032,
                "height": 3024,
                "preview": "data:image/jpeg;base64,...",
                "processing_time": 0.21
            }
        }

class CompressResponse(APIResponse):
    data: Optional[CompressData] = None
