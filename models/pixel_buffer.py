from __future__ import annotations
from dataclasses import dataclass
import numpy as np


@dataclass
class PixelBuffer:
    """
    Simple data object: RGBA pixels of one decoded (and downscaled) image.
    No codec logic outside the image repository.
    """
    pixels: np.ndarray # Shape (H, W, 4), dtype uint8, RGBA order.

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def rgb(self) -> np.ndarray:
        return self.pixels[:, :, :3]

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[:, :, 3]
