import io
import random

import pytest
from PIL import Image


def encode_image(img: Image.Image, fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    """A small opaque PNG"""
    return encode_image(Image.new("RGB", (32, 32), color="red"))


@pytest.fixture
def rgba_png_bytes():
    """A PNG with a transparent half"""
    img = Image.new("RGBA", (40, 20), (0, 0, 255, 255))
    img.paste((0, 0, 0, 0), (20, 0, 40, 20))
    return encode_image(img)


@pytest.fixture
def noisy_png_bytes():
    """Random pixels, so JPEG size reacts strongly to quality"""
    rng = random.Random(1234)
    width, height = 96, 96
    pixels = bytes(rng.randrange(256) for _ in range(width * height * 3))
    return encode_image(Image.frombytes("RGB", (width, height), pixels))
