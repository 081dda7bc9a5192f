"""
API models for the image recognition endpoint.

The request mirrors what a browser front end sends after reading a file:
base64 image data without its data-URL prefix, the image subtype and an
optional question.
"""

from pydantic import BaseModel, Field
from typing import Dict, Any, List, Optional

from .common import APIResponse

class RecognizeRequest(BaseModel):
    image_data: Optional[str] = Field(None, alias="imageData", description="Base64 image data")
    image_format: Optional[str] = Field(None, alias="imageFormat", description="png, jpeg or webp")
    question: Optional[str] = Field(None, description="What to ask about the image; blank uses the default")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "imageData": "iVBORw0KGgoAAAANSUhEUgAA...",
                "imageFormat": "png",
                "question": "What breed is the dog in this photo?"
            }
        }

class RecognizeData(BaseModel):
    analysis: str = Field(..., description="The model's answer")
    question: str = Field(..., description="The question actually asked")
    image_format: str
    processing_time: float
    processing_metadata: Dict[str, Any]

class RecognizeResponse(APIResponse):
    data: Optional[RecognizeData] = None

class RecognizeOptions(BaseModel):
    default_question: str = Field(..., description="Asked when the question is left blank")
    presets: List[str] = Field(..., description="One-click questions for the question box")
