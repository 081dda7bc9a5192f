from dataclasses import dataclass

MIN_QUALITY = 10
MAX_QUALITY = 100
DEFAULT_QUALITY = 80

# Input types
@dataclass
class CompressionInput:
    image_bytes: bytes
    filename: str
    quality: int = DEFAULT_QUALITY

# Output types
@dataclass
class CompressionOutput:
    data: bytes
    filename: str  # download name, always .jpg
    media_type: str
    original_size: int
    compressed_size: int
    quality: int
    width: int
    height: int

    @property
    def compression_ratio(self) -> float:
        """Percentage saved; negative when re-encoding grew the file."""
        if not self.original_size:
            return 0.0
        return (self.original_size - self.compressed_size) / self.original_size * 100
