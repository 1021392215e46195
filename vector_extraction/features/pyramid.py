from __future__ import annotations

from typing import Tuple

import numpy as np

from vector_extraction.features.pixels import euclidean_distance
from vector_extraction.mnist_data import shrunken


class Pyramid:
    """Successively halved copies of an image, largest first, down to side 2."""

    def __init__(self, src: np.ndarray, reduction: int = 2):
        levels = []
        image = np.array(src, copy=True)
        while image.shape[0] >= 2:
            smaller = shrunken(image, reduction)
            levels.append(image)
            image = smaller
        self.levels: Tuple[np.ndarray, ...] = tuple(levels)

    def __len__(self) -> int:
        return len(self.levels)


def pyramid_distance(p1: Pyramid, p2: Pyramid) -> float:
    if len(p1) != len(p2):
        raise ValueError(f"Pyramid depths differ: {len(p1)} != {len(p2)}")
    return sum(euclidean_distance(a, b) for a, b in zip(p1.levels, p2.levels))
