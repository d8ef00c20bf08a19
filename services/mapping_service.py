import logging
import numpy as np
from models.pixel_buffer import PixelBuffer
from models.codebook import Codebook
from services.clustering_service import nearest_index

logger = logging.getLogger(__name__)


class MappingService:
    """
    Re-quantizes every pixel of a full buffer against a codebook.
    Alpha is copied through untouched.
    """

    @staticmethod
    def _pack(rgb: np.ndarray) -> np.ndarray:
        rgb = rgb.astype(np.uint32)
        return (rgb[:, 0] << 16) | (rgb[:, 1] << 8) | rgb[:, 2]

    def color_lookup(self, rgb: np.ndarray, codebook: Codebook) -> dict:
        """
        Nearest codebook index for every distinct RGB triplet in *rgb*,
        keyed by the packed 0xRRGGBB value. Lives for one call only.
        """
        keys = np.unique(self._pack(rgb))
        distinct = np.stack([(keys >> 16) & 0xFF, (keys >> 8) & 0xFF, keys & 0xFF], axis=1)
        indices = nearest_index(distinct, codebook.colors)
        return dict(zip(keys.tolist(), indices.tolist()))

    def quantize(self, buffer: PixelBuffer, codebook: Codebook) -> PixelBuffer:
        flat = buffer.pixels.reshape(-1, 4)
        keys = self._pack(flat[:, :3])

        lookup = self.color_lookup(flat[:, :3], codebook)
        distinct_keys = np.fromiter(lookup.keys(), dtype=np.uint32, count=len(lookup))
        distinct_idx = np.fromiter(lookup.values(), dtype=np.int64, count=len(lookup))
        # lookup keys come out of np.unique already sorted
        pixel_idx = distinct_idx[np.searchsorted(distinct_keys, keys)]

        out = np.empty_like(flat)
        out[:, :3] = codebook.colors[pixel_idx]
        out[:, 3] = flat[:, 3]

        logger.debug(f"Mapped {len(flat)} pixels ({len(lookup)} distinct colors) "
                     f"onto {len(codebook)} codebook entries")
        return PixelBuffer(pixels=out.reshape(buffer.pixels.shape))
