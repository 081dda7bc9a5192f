import io

import pytest
from PIL import Image

from imagestation.pipeline.compress.compress import CompressionPipeline
from imagestation.pipeline.compress.types import CompressionInput, CompressionOutput


@pytest.fixture
def pipeline():
    return CompressionPipeline()


class TestCompressionPipeline:
    def test_outputs_jpeg(self, pipeline, png_bytes):
        output = pipeline.process(CompressionInput(image_bytes=png_bytes, filename="photo.png", quality=60))

        assert output.media_type == "image/jpeg"
        assert output.filename == "compressed_photo.jpg"
        assert output.quality == 60
        assert (output.width, output.height) == (32, 32)
        assert output.original_size == len(png_bytes)
        assert output.compressed_size == len(output.data)
        with Image.open(io.BytesIO(output.data)) as img:
            assert img.format == "JPEG"

    def test_size_grows_with_quality(self, pipeline, noisy_png_bytes):
        """
        Test: Quality controls file size
        How: Compress the same noisy image at increasing quality
        Ensures: Higher quality never produces a smaller file
        """
        sizes = [
            pipeline.process(CompressionInput(image_bytes=noisy_png_bytes, filename="noise.png", quality=q)).compressed_size
            for q in (10, 30, 50, 70, 90, 100)
        ]

        assert sizes == sorted(sizes)
        assert sizes[0] < sizes[-1]

    def test_transparency_is_flattened(self, pipeline, rgba_png_bytes):
        output = pipeline.process(CompressionInput(image_bytes=rgba_png_bytes, filename="logo.png", quality=100))

        with Image.open(io.BytesIO(output.data)) as img:
            assert img.mode == "RGB"
            left = img.getpixel((5, 10))
            right = img.getpixel((35, 10))
        assert left[2] > 200
        assert max(right) < 30

    @pytest.mark.parametrize("quality", [9, 101, 0, -5])
    def test_quality_out_of_range(self, pipeline, png_bytes, quality):
        with pytest.raises(ValueError, match="between 10 and 100"):
            pipeline.process(CompressionInput(image_bytes=png_bytes, filename="a.png", quality=quality))

    def test_quality_not_a_number(self, pipeline, png_bytes):
        with pytest.raises(ValueError, match="integer"):
            pipeline.process(CompressionInput(image_bytes=png_bytes, filename="a.png", quality="high"))

    @pytest.mark.parametrize("quality", [10, 100])
    def test_quality_bounds_are_inclusive(self, pipeline, png_bytes, quality):
        assert pipeline.process(CompressionInput(image_bytes=png_bytes, filename="a.png", quality=quality)).quality == quality

    def test_empty_upload(self, pipeline):
        with pytest.raises(ValueError, match="choose an image"):
            pipeline.process(CompressionInput(image_bytes=b"", filename="a.png"))

    def test_not_an_image(self, pipeline):
        with pytest.raises(ValueError, match="Unable to decode image"):
            pipeline.process(CompressionInput(image_bytes=b"plain text, not pixels", filename="notes.txt"))

    def test_missing_filename(self, pipeline, png_bytes):
        assert pipeline.process(CompressionInput(image_bytes=png_bytes, filename="")).filename == "compressed_image.jpg"


class TestCompressionOutput:
    def _output(self, original_size, compressed_size):
        return CompressionOutput(
            data=b"", filename="x.jpg", media_type="image/jpeg",
            original_size=original_size, compressed_size=compressed_size,
            quality=80, width=1, height=1,
        )

    def test_ratio(self):
        assert self._output(1000, 250).compression_ratio == 75.0

    def test_ratio_when_file_grew(self):
        assert self._output(100, 150).compression_ratio == -50.0

    def test_ratio_for_empty_original(self):
        assert self._output(0, 10).compression_ratio == 0.0
