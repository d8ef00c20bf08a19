from __future__ import annotations
from dataclasses import dataclass
import numpy as np


@dataclass
class Codebook:
    """
    Data object holding the K representative colors produced by clustering.
    The number of entries never changes once created.
    """
    colors: np.ndarray  # Shape (K, 3), dtype uint8, RGB order.
    iterations: int     # K-means iterations actually run
    converged: bool     # True when the loop exited before the iteration cap

    def __len__(self) -> int:
        return len(self.colors)
