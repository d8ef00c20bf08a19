import os
import logging
import numpy as np
from dotenv import load_dotenv
from models.pixel_buffer import PixelBuffer
from models.errors import EmptyImageError

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

ALPHA_THRESHOLD = 128  # pixel is visible iff alpha > 128


class SamplingService:
    """
    Builds the K-means training set from the visible pixels of a buffer.
    """
    def __init__(self, sample_size: int = None):
        if sample_size is None:
            sample_size = int(os.getenv("VQ_PIXEL_SAMPLE_SIZE", "40000"))
        if sample_size < 1:
            raise ValueError(f"sample_size must be >= 1, got {sample_size}")
        self.sample_size = sample_size

    @staticmethod
    def visible_colors(buffer: PixelBuffer) -> np.ndarray:
        """
        Returns (N, 3) int64 RGB vectors of visible pixels, in scan order.
        """
        mask = buffer.alpha.reshape(-1) > ALPHA_THRESHOLD
        colors = buffer.rgb.reshape(-1, 3)[mask].astype(np.int64)
        if len(colors) == 0:
            raise EmptyImageError("Image appears to be empty or fully transparent.")
        return colors

    def training_set(self, colors: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        """
        Uniform subset of exactly *sample_size* rows (without replacement)
        when there are more visible colors than that, otherwise all of them.
        """
        if len(colors) <= self.sample_size:
            return colors
        idx = rng.choice(len(colors), size=self.sample_size, replace=False)
        logger.debug(f"Subsampled {len(colors)} visible pixels to {self.sample_size}")
        return colors[idx]

    def sample(self, buffer: PixelBuffer, rng: np.random.Generator) -> np.ndarray:
        return self.training_set(self.visible_colors(buffer), rng)
