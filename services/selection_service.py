from typing import Callable
import logging
from models.pixel_buffer import PixelBuffer
from models.source_image import SourceImage
from models.compression_result import CompressionResult, CompressionStats, QUANTIZED_MIME_TYPE
from services.image_service import ImageService

logger = logging.getLogger(__name__)

Encoder = Callable[[PixelBuffer], bytes]


class SelectionService:
    """
    Keeps the quantized image only when its encoding is strictly smaller
    than the original file, so callers never get a bigger output.
    """

    def __init__(self, encoder: Encoder = None):
        self.encoder = encoder or ImageService().encode_png

    def select(self, source: SourceImage, quantized: PixelBuffer, encoder: Encoder = None) -> CompressionResult:
        encode = encoder or self.encoder
        encoded = encode(quantized)

        original_size = source.size
        compressed_size = len(encoded)

        if compressed_size < original_size:
            reduction = (original_size - compressed_size) / original_size * 100
            logger.info(f"VQ applied: {original_size} → {compressed_size} bytes (-{reduction:.1f}%)")
            return CompressionResult(
                data=encoded,
                mime_type=QUANTIZED_MIME_TYPE,
                stats=CompressionStats(original_size, compressed_size, reduction),
                compression_applied=True,
            )

        logger.info(f"VQ skipped: quantized {compressed_size} bytes is not below original {original_size} bytes")
        return CompressionResult(
            data=source.data,
            mime_type=source.mime_type,
            stats=CompressionStats(original_size, original_size, 0.0),
            compression_applied=False,
        )
