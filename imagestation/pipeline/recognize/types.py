from dataclasses import dataclass, field
from typing import Optional, Dict, Any

# Input types
@dataclass
class RecognitionInput:
    image_data: bytes
    image_format: Optional[str]  # png | jpeg | webp
    question: Optional[str] = None  # blank falls back to the prompt default

# Output types
@dataclass
class RecognitionOutput:
    analysis: str
    question: str
    image_format: str
    processing_metadata: Dict[str, Any] = field(default_factory=dict)
