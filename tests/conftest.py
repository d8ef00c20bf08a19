"""Shared test fixtures."""

from __future__ import annotations

from io import BytesIO

import numpy as np
import pytest
from PIL import Image as PILImage

from models.pixel_buffer import PixelBuffer
from models.source_image import SourceImage

LEAF_GREEN = (34, 139, 34)
LESION_BROWN = (139, 69, 19)


def encode(pixels: np.ndarray, fmt: str = "PNG", **save_kwargs) -> bytes:
    out = BytesIO()
    PILImage.fromarray(pixels).save(out, format=fmt, **save_kwargs)
    return out.getvalue()


def rgba(height: int, width: int, color, alpha: int = 255) -> np.ndarray:
    arr = np.empty((height, width, 4), dtype=np.uint8)
    arr[:, :, :3] = color
    arr[:, :, 3] = alpha
    return arr


def checkerboard(height: int, width: int, a=LEAF_GREEN, b=LESION_BROWN) -> np.ndarray:
    arr = rgba(height, width, a)
    yy, xx = np.indices((height, width))
    arr[(yy + xx) % 2 == 1, :3] = b
    return arr


def png_source(pixels: np.ndarray, name: str = "leaf.png") -> SourceImage:
    return SourceImage(data=encode(pixels, "PNG"), mime_type="image/png", name=name)


def jpeg_source(rgb: np.ndarray, name: str = "leaf.jpg", quality: int = 95) -> SourceImage:
    return SourceImage(data=encode(rgb, "JPEG", quality=quality), mime_type="image/jpeg", name=name)


class RecordingEncoder:
    """Encoder stand-in that keeps the buffer it was given."""

    def __init__(self, payload: bytes = b""):
        self.payload = payload
        self.buffer: PixelBuffer | None = None

    def __call__(self, buffer: PixelBuffer) -> bytes:
        self.buffer = buffer
        return self.payload


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def noise_rgba(rng):
    """32x48 random colors with random alpha."""
    return rng.integers(0, 256, size=(32, 48, 4), dtype=np.uint8)


@pytest.fixture
def flat_jpeg_source():
    rgb = np.empty((10, 10, 3), dtype=np.uint8)
    rgb[:] = LEAF_GREEN
    return jpeg_source(rgb)


@pytest.fixture
def transparent_png_source():
    return png_source(rgba(12, 12, LEAF_GREEN, alpha=0))
