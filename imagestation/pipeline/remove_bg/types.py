from dataclasses import dataclass, field
from typing import Dict, Any

# Input types
@dataclass
class BackgroundRemovalInput:
    image_bytes: bytes
    filename: str
    content_type: str

# Output types
@dataclass
class BackgroundRemovalOutput:
    data: bytes
    filename: str  # download name, always .png
    media_type: str
    original_size: int
    processed_size: int
    processing_metadata: Dict[str, Any] = field(default_factory=dict)
