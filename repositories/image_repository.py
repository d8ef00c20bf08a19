from pathlib import Path
from typing import Union
from io import BytesIO
import os
import numpy as np
import cv2
from PIL import Image as PILImage, ImageOps, UnidentifiedImageError
from dotenv import load_dotenv
from models.pixel_buffer import PixelBuffer
from models.source_image import SourceImage
from models.errors import DecodeError, RenderError, ImageReadError

# Load environment variables
load_dotenv()

SUPPORTED_FORMATS = {"image/png": "PNG", "image/jpeg": "JPEG"}
EXT_TO_MIME = {".png": "image/png", ".jpg": "image/jpeg", ".jpeg": "image/jpeg"}


class ImageRepository:
    """
    Handles byte I/O and raster codec work for PixelBuffer entities.
    """
    def __init__(self):
        self.MAX_DIMENSION = int(os.getenv("VQ_MAX_DIMENSION", "256"))
        self.VALID_EXTS = {
            ext.strip().lower()
            for ext in os.getenv("VALID_IMAGE_EXTENSIONS", ".png,.jpg,.jpeg").split(",")
        }

    @staticmethod
    def read(path: Union[str, Path]) -> SourceImage:
        path = Path(path)
        mime_type = EXT_TO_MIME.get(path.suffix.lower())
        if mime_type is None:
            raise DecodeError(f"Unsupported image extension: {path.suffix or path.name}")
        try:
            data = path.read_bytes()
        except OSError as err:
            raise ImageReadError(f"Failed to read the selected file: {path}") from err
        return SourceImage(data=data, mime_type=mime_type, name=path.name, path=path)

    @staticmethod
    def write(data: bytes, path: Union[str, Path]) -> None:
        Path(path).write_bytes(data)

    @staticmethod
    def scaled_dimensions(width: int, height: int, max_dim: int):
        """
        Longer side clamped to *max_dim*, shorter side scaled proportionally
        and rounded half up. Images already within bounds are untouched.
        """
        if width > height:
            if width > max_dim:
                height = max(1, int(np.floor(height * max_dim / width + 0.5)))
                width = max_dim
        elif height > max_dim:
            width = max(1, int(np.floor(width * max_dim / height + 0.5)))
            height = max_dim
        return width, height

    def decode(self, data: bytes, mime_type: str) -> PixelBuffer:
        if mime_type not in SUPPORTED_FORMATS:
            raise DecodeError(f"Unsupported image type: {mime_type}")

        try:
            pil_img = PILImage.open(BytesIO(data))
            if pil_img.format == "JPEG":
                # let libjpeg decode at 1/2, 1/4 or 1/8 scale when the
                # result still covers MAX_DIMENSION on both sides
                pil_img.draft(pil_img.mode, (self.MAX_DIMENSION, self.MAX_DIMENSION))
            pil_img.load()
        except PILImage.DecompressionBombError as err:
            raise DecodeError(f"Image is too large to decode: {err}") from err
        except (UnidentifiedImageError, OSError, ValueError) as err:
            raise DecodeError("Failed to load image for Vector Quantization. "
                              "The file may be corrupt.") from err

        if pil_img.format not in SUPPORTED_FORMATS.values():
            raise DecodeError(f"Unsupported raster format: {pil_img.format}")

        # browsers honour EXIF orientation when drawing, so do we
        pil_img = ImageOps.exif_transpose(pil_img)
        arr = np.asarray(pil_img.convert("RGBA"), dtype=np.uint8)

        h, w = arr.shape[:2]
        new_w, new_h = self.scaled_dimensions(w, h, self.MAX_DIMENSION)
        if (new_w, new_h) != (w, h):
            try:
                arr = cv2.resize(arr, (new_w, new_h), interpolation=cv2.INTER_AREA)
            except cv2.error as err:
                raise RenderError(f"Failed to resample image to {new_w}x{new_h}") from err

        return PixelBuffer(pixels=np.ascontiguousarray(arr))

    @staticmethod
    def encode_png(buffer: PixelBuffer) -> bytes:
        """
        Lossless PNG encoding. Fully opaque buffers are written without the
        alpha channel.
        """
        pixels = buffer.pixels
        if not pixels.flags['C_CONTIGUOUS']:
            pixels = np.ascontiguousarray(pixels)
        if (pixels[:, :, 3] == 255).all():
            pixels = np.ascontiguousarray(pixels[:, :, :3])

        out = BytesIO()
        try:
            PILImage.fromarray(pixels).save(out, format="PNG", optimize=True)
        except (OSError, ValueError, TypeError) as err:
            raise RenderError("Failed to encode quantized image as PNG") from err
        return out.getvalue()
