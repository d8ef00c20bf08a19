"""Tests for decoding, resizing and encoding."""

from __future__ import annotations

import numpy as np
import pytest
from PIL import Image as PILImage

from models.errors import DecodeError, ImageReadError, RenderError
from models.pixel_buffer import PixelBuffer
from repositories.image_repository import ImageRepository
from tests.conftest import encode, rgba, LEAF_GREEN


@pytest.fixture
def repo():
    return ImageRepository()


class TestScaledDimensions:
    @pytest.mark.parametrize("w,h,expected", [
        (200, 100, (200, 100)),
        (256, 256, (256, 256)),
        (300, 300, (256, 256)),
        (300, 100, (256, 85)),
        (100, 301, (85, 256)),
        (512, 1, (256, 1)),
        (4000, 1, (256, 1)),
    ])
    def test_longer_side_clamped(self, w, h, expected):
        assert ImageRepository.scaled_dimensions(w, h, 256) == expected

    def test_rounds_half_up(self):
        # 5 * 256 / 512 = 2.5
        assert ImageRepository.scaled_dimensions(512, 5, 256) == (256, 3)


class TestDecode:
    def test_png_keeps_alpha_and_size(self, repo, noise_rgba):
        buf = repo.decode(encode(noise_rgba), "image/png")
        assert (buf.width, buf.height) == (48, 32)
        np.testing.assert_array_equal(buf.pixels, noise_rgba)

    def test_jpeg_is_opaque(self, repo):
        rgb = np.zeros((8, 8, 3), dtype=np.uint8)
        buf = repo.decode(encode(rgb, "JPEG"), "image/jpeg")
        assert buf.pixels.shape == (8, 8, 4)
        assert (buf.alpha == 255).all()

    def test_large_image_downscaled(self, repo):
        data = encode(rgba(256, 512, LEAF_GREEN))
        buf = repo.decode(data, "image/png")
        assert (buf.width, buf.height) == (256, 128)
        assert buf.pixels.dtype == np.uint8

    def test_exif_orientation_applied(self, repo):
        # 32 wide x 16 tall, left half black, right half white
        rgb = np.zeros((16, 32, 3), dtype=np.uint8)
        rgb[:, 16:] = 255
        exif = PILImage.Exif()
        exif[0x0112] = 6  # rotate 90 degrees clockwise for display
        data = encode(rgb, "JPEG", quality=95, exif=exif.tobytes())

        buf = repo.decode(data, "image/jpeg")

        assert (buf.width, buf.height) == (16, 32)
        # the former left half ends up on top
        assert buf.rgb[:12].mean() < 40
        assert buf.rgb[20:].mean() > 215

    def test_large_jpeg_still_reaches_max_dimension(self, repo):
        rgb = np.full((1200, 2400, 3), 90, dtype=np.uint8)
        buf = repo.decode(encode(rgb, "JPEG", quality=80), "image/jpeg")
        assert (buf.width, buf.height) == (256, 128)

    def test_decompression_bomb_is_a_decode_error(self, repo, monkeypatch):
        data = encode(rgba(64, 64, LEAF_GREEN))
        # 4096 pixels is more than twice this limit
        monkeypatch.setattr(PILImage, "MAX_IMAGE_PIXELS", 1000)
        with pytest.raises(DecodeError, match="too large"):
            repo.decode(data, "image/png")

    def test_garbage_bytes(self, repo):
        with pytest.raises(DecodeError):
            repo.decode(b"definitely not an image", "image/png")

    def test_unsupported_mime(self, repo, noise_rgba):
        with pytest.raises(DecodeError, match="Unsupported image type"):
            repo.decode(encode(noise_rgba), "image/webp")

    def test_unsupported_payload_format(self, repo):
        gif = encode(np.zeros((4, 4, 3), dtype=np.uint8), "GIF")
        with pytest.raises(DecodeError, match="GIF"):
            repo.decode(gif, "image/png")


class TestEncode:
    def test_png_is_lossless(self, repo, noise_rgba):
        data = ImageRepository.encode_png(PixelBuffer(noise_rgba))
        assert data[:8] == b"\x89PNG\r\n\x1a\n"
        np.testing.assert_array_equal(repo.decode(data, "image/png").pixels, noise_rgba)

    def test_opaque_written_without_alpha(self):
        # IHDR colour type: 2 = RGB, 6 = RGBA
        opaque = ImageRepository.encode_png(PixelBuffer(rgba(6, 6, LEAF_GREEN)))
        translucent = ImageRepository.encode_png(PixelBuffer(rgba(6, 6, LEAF_GREEN, alpha=200)))
        assert opaque[25] == 2
        assert translucent[25] == 6

    def test_unencodable_buffer(self):
        with pytest.raises(RenderError):
            ImageRepository.encode_png(PixelBuffer(np.full((2, 2, 4), 255.0)))


class TestRead:
    def test_reads_bytes_and_mime(self, tmp_path):
        path = tmp_path / "leaf.JPG"
        path.write_bytes(b"abc")
        source = ImageRepository.read(path)
        assert source.data == b"abc"
        assert source.mime_type == "image/jpeg"
        assert source.name == "leaf.JPG"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ImageReadError) as exc:
            ImageRepository.read(tmp_path / "missing.png")
        assert isinstance(exc.value, OSError)

    def test_unknown_extension(self, tmp_path):
        path = tmp_path / "leaf.bmp"
        path.write_bytes(b"abc")
        with pytest.raises(DecodeError):
            ImageRepository.read(path)
