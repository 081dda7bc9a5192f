import io
import logging
from PIL import Image, ImageOps, UnidentifiedImageError

from imagestation.utils.image_converter import replace_extension
from .types import CompressionInput, CompressionOutput, MIN_QUALITY, MAX_QUALITY

logger = logging.getLogger(__name__)


class CompressionPipeline:
    """Re-encodes an upload as JPEG at the requested quality. No vendor call is involved."""

    def process(self, compression_input: CompressionInput) -> CompressionOutput:
        quality = self._validate_quality(compression_input.quality)
        if not compression_input.image_bytes:
            raise ValueError("Please choose an image to compress")

        try:
            with Image.open(io.BytesIO(compression_input.image_bytes)) as img:
                img = ImageOps.exif_transpose(img)
                rgb = self._to_rgb(img)
        except (UnidentifiedImageError, OSError) as e:
            raise ValueError(f"Unable to decode image: {e}") from e

        buffer = io.BytesIO()
        rgb.save(buffer, format="JPEG", quality=quality)
        data = buffer.getvalue()

        output = CompressionOutput(
            data=data,
            filename=replace_extension(compression_input.filename, ".jpg", prefix="compressed_"),
            media_type="image/jpeg",
            original_size=len(compression_input.image_bytes),
            compressed_size=len(data),
            quality=quality,
            width=rgb.width,
            height=rgb.height,
        )
        logger.info(
            f"Compressed {compression_input.filename!r} at quality {quality}: "
            f"{output.original_size} -> {output.compressed_size} bytes ({output.compression_ratio:.1f}%)"
        )
        return output

    @staticmethod
    def _validate_quality(quality) -> int:
        try:
            quality = int(quality)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Quality must be an integer between {MIN_QUALITY} and {MAX_QUALITY}") from e
        if not MIN_QUALITY <= quality <= MAX_QUALITY:
            raise ValueError(f"Quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}")
        return quality

    @staticmethod
    def _to_rgb(img: Image.Image) -> Image.Image:
        # JPEG has no alpha channel; flatten transparent pixels onto black like a canvas export
        if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
            rgba = img.convert("RGBA")
            background = Image.new("RGB", rgba.size, (0, 0, 0))
            background.paste(rgba, mask=rgba.split()[-1])
            return background
        return img.convert("RGB")
