"""
BRIEF descriptors: a fixed random set of pixel pairs, each pair yielding one
bit telling whether the first pixel is darker than the second.
"""
from __future__ import annotations

from typing import List, Tuple

import numpy as np
from sklearn.utils import check_random_state

from vector_extraction.bits import BitSequence, real_distance


class Descriptor:
    def __init__(self, n: int, width: int, height: int, random_state=None):
        """
        Sample ``n`` point pairs, each coordinate normally distributed around
        the image center with a standard deviation of half the side, clipped
        to the image.
        """
        rng = check_random_state(random_state)
        self.width = width
        self.height = height
        x_center, y_center = width // 2, height // 2

        def sample(center, limit):
            values = rng.normal(center, center, size=n)
            return np.clip(values, 0, limit - 1).astype(np.intp)

        self._x1 = sample(x_center, width)
        self._y1 = sample(y_center, height)
        self._x2 = sample(x_center, width)
        self._y2 = sample(y_center, height)

    def __len__(self) -> int:
        return int(self._x1.size)

    @property
    def pairs(self) -> List[Tuple[Tuple[int, int], Tuple[int, int]]]:
        return [((int(x1), int(y1)), (int(x2), int(y2)))
                for x1, y1, x2, y2 in zip(self._x1, self._y1, self._x2, self._y2)]

    def apply_to(self, img: np.ndarray) -> BitSequence:
        if img.shape != (self.height, self.width):
            raise ValueError(f"Descriptor built for {self.width}x{self.height}, got image of shape {img.shape}")
        return BitSequence.from_bools(img[self._y1, self._x1] < img[self._y2, self._x2])


def brief_distance(a: BitSequence, b: BitSequence) -> float:
    return real_distance(a, b)
