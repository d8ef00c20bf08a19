from __future__ import annotations

import os
import logging

import numpy as np
from dotenv import load_dotenv

from models.codebook import Codebook

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

CONVERGENCE_THRESHOLD = 1e-4  # squared RGB distance


def squared_distances(vectors: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """
    (N, 3) x (K, 3) → (N, K) exact integer squared Euclidean distances.
    """
    vectors = vectors.astype(np.int64)
    centroids = centroids.astype(np.int64)
    return (
        (vectors * vectors).sum(axis=1)[:, None]
        - 2 * vectors @ centroids.T
        + (centroids * centroids).sum(axis=1)[None, :]
    )


def nearest_index(vectors: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    # argmin returns the first minimum, i.e. the lowest tied index
    return squared_distances(vectors, centroids).argmin(axis=1)


class ClusteringService:
    """
    Bounded-iteration K-means in RGB space.
    *   Seeds deterministically with the first K training vectors.
    *   Empty clusters are re-seeded from the training set, never dropped,
        so the codebook always has exactly K entries.
    """

    def __init__(self, num_colors: int = None, max_iterations: int = None):
        if num_colors is None:
            num_colors = int(os.getenv("VQ_NUM_COLORS", "64"))
        if max_iterations is None:
            max_iterations = int(os.getenv("VQ_MAX_ITERATIONS", "10"))
        if num_colors < 1 or max_iterations < 1:
            raise ValueError(f"num_colors and max_iterations must be >= 1, "
                             f"got {num_colors} and {max_iterations}")
        self.num_colors = num_colors
        self.max_iterations = max_iterations

    # ─── Internal helpers ──────────────────────────────────────────
    def _seed(self, training: np.ndarray) -> np.ndarray:
        # fewer than K vectors: cycle through them to fill every slot
        if len(training) >= self.num_colors:
            return training[: self.num_colors].copy()
        return np.resize(training, (self.num_colors, 3)).copy()

    def _update(
        self,
        training: np.ndarray,
        assignments: np.ndarray,
        codebook: np.ndarray,
        rng: np.random.Generator,
    ) -> tuple[np.ndarray, bool]:
        k = self.num_colors
        counts = np.bincount(assignments, minlength=k)
        sums = np.stack(
            [np.bincount(assignments, weights=training[:, c], minlength=k) for c in range(3)],
            axis=1,
        ).astype(np.int64)

        updated = codebook.copy()
        filled = counts > 0
        # integer mean rounded half up: floor(sum / n + 1/2)
        n = counts[filled][:, None]
        updated[filled] = (2 * sums[filled] + n) // (2 * n)

        moved = ((updated[filled] - codebook[filled]) ** 2).sum(axis=1)
        has_changed = bool((moved > CONVERGENCE_THRESHOLD).any())

        empty = np.flatnonzero(~filled)
        if len(empty):
            updated[empty] = training[rng.integers(0, len(training), size=len(empty))]
        return updated, has_changed

    # ─── Public API ────────────────────────────────────────────────
    def fit(self, training: np.ndarray, rng: np.random.Generator) -> Codebook:
        """
        Args:
            training: (N, 3) integer RGB vectors, N >= 1.
            rng: random source for empty-cluster re-seeding.

        Returns:
            Codebook with exactly ``num_colors`` entries.
        """
        if len(training) == 0:
            raise ValueError("Cannot fit a codebook on an empty training set")

        training = training.astype(np.int64)
        codebook = self._seed(training)
        converged = False
        iterations = 0

        for iterations in range(1, self.max_iterations + 1):
            assignments = nearest_index(training, codebook)
            codebook, has_changed = self._update(training, assignments, codebook, rng)
            if not has_changed:
                converged = True
                break

        logger.info(
            f"K-means finished after {iterations} iteration(s) "
            f"({'converged' if converged else 'iteration cap'}) on {len(training)} vectors"
        )
        return Codebook(colors=codebook.astype(np.uint8), iterations=iterations, converged=converged)
