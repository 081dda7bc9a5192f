from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

@dataclass(frozen=True)
class BackgroundRemovalRequest:
    image: bytes
    filename: str
    content_type: str
    size: Optional[str] = None  # vendor output size, falls back to the service default

@dataclass(frozen=True)
class BackgroundRemovalResponse:
    data: bytes            # binary image, never JSON
    media_type: str
    meta: Dict[str, Any]   # latency, credits charged, vendor headers

class BackgroundRemover:
    def remove_background(self, req: BackgroundRemovalRequest) -> BackgroundRemovalResponse: raise NotImplementedError
