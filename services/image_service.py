from pathlib import Path
from typing import Union
import logging
from models.pixel_buffer import PixelBuffer
from models.source_image import SourceImage
from repositories.image_repository import ImageRepository

logger = logging.getLogger(__name__)


class ImageService:
    """Decode/encode helpers.  No clustering logic here."""
    def __init__(self):
        self.image_repository = ImageRepository()

    def load(self, path: Union[str, Path]) -> SourceImage:
        """Read a single image file from disk, still encoded."""
        return self.image_repository.read(path)

    def save(self, data: bytes, path: Union[str, Path]) -> None:
        self.image_repository.write(data, path)

    def is_supported_file(self, path: Union[str, Path]) -> bool:
        return Path(path).suffix.lower() in self.image_repository.VALID_EXTS

    def decode(self, source: SourceImage) -> PixelBuffer:
        """
        Decode a SourceImage into an RGBA PixelBuffer, downscaled so its
        longer side does not exceed the configured maximum.
        """
        buffer = self.image_repository.decode(source.data, source.mime_type)
        logger.debug(f"Decoded {source.name or 'image'} to {buffer.width}x{buffer.height}")
        return buffer

    def encode_png(self, buffer: PixelBuffer) -> bytes:
        return self.image_repository.encode_png(buffer)
