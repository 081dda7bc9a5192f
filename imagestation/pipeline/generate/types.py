from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, Optional

SIZES = ("1K", "2K", "4K")
DEFAULT_SIZE = "2K"

# Input types
@dataclass
class GenerationInput:
    prompt: Optional[str]  # blank or missing is rejected before any vendor call
    size: str = DEFAULT_SIZE

# Output types
@dataclass
class GenerationOutput:
    url: str
    prompt: str
    size: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    processing_metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def download_filename(self) -> str:
        return f"ai-generated-{int(self.created_at.timestamp() * 1000)}.png"
