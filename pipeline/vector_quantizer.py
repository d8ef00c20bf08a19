# pipeline/vector_quantizer.py
"""
Vector Quantization Pipeline
Decode → sample → cluster → map → select, for a single image.
"""
from pathlib import Path
from typing import Union
import logging

import numpy as np

from models.source_image import SourceImage
from models.compression_result import CompressionResult
from services.image_service import ImageService
from services.sampling_service import SamplingService
from services.clustering_service import ClusteringService
from services.mapping_service import MappingService
from services.selection_service import SelectionService, Encoder

logger = logging.getLogger(__name__)


def compress_with_vector_quantization(
    source: SourceImage,
    *,
    rng: np.random.Generator | None = None,
    encoder: Encoder | None = None,
    image_service: ImageService = ImageService(),
    sampling_service: SamplingService = SamplingService(),
    clustering_service: ClusteringService = ClusteringService(),
    mapping_service: MappingService = MappingService(),
    selection_service: SelectionService = SelectionService(),
) -> CompressionResult:
    """
    Compress one image with K-means color quantization.

    The quantized PNG replaces the original only when it is strictly smaller.
    All intermediate state (pixel buffer, training set, codebook, color
    lookup) is local to this call.

    Args:
        source: Encoded input image (PNG or JPEG).
        rng: Random source for subsampling and cluster re-seeding. A fresh,
            unseeded generator is created when omitted.
        encoder: Lossless encoder for the quantized buffer, defaults to PNG.

    Returns:
        CompressionResult: Final bytes, MIME type, size stats and flag.
    """
    if rng is None:
        rng = np.random.default_rng()

    # 1. decode + downscale
    buffer = image_service.decode(source)

    # 2. training set from visible pixels
    training = sampling_service.sample(buffer, rng)
    logger.info(f"Decoded {buffer.width}x{buffer.height}, training on {len(training)} colors")

    # 3. codebook
    codebook = clustering_service.fit(training, rng)

    # 4. re-quantize the full buffer, not the subsample
    quantized = mapping_service.quantize(buffer, codebook)

    # 5. keep whichever is smaller
    return selection_service.select(source, quantized, encoder=encoder)


def compress_file(
    path: Union[str, Path],
    *,
    image_service: ImageService = ImageService(),
    **kwargs,
) -> tuple[SourceImage, CompressionResult]:
    """
    Load an image file and compress it. Returns the source alongside the
    result so callers can derive download names and compare sizes.
    """
    source = image_service.load(path)
    return source, compress_with_vector_quantization(source, image_service=image_service, **kwargs)
