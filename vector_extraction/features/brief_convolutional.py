"""
brief_convolutional.py

Binary convolution features. An image is first turned into a square bit
image of neighborhood comparisons; k-means then finds representative
``kernel_size`` sub-images (kernels) of that bit image, and the image is
projected through each kernel at a stride, giving one smaller bit image per
kernel. Repeating the process yields a list of bit images per source image.
"""
from __future__ import annotations

import math
from typing import List, Optional, Sequence

import numpy as np

from classifiers.histogram import Histogram
from classifiers.kmeans import KMeans
from vector_extraction import bits
from vector_extraction.bits import BitSequence
from vector_extraction.features.patch import patchify
from vector_extraction.mnist_data import neighborhoods
from vector_extraction.mnist_data import subimage as grid_subimage


# -----------------------------
# Bit images
# -----------------------------

def _side_for(num_bits: int) -> int:
    side = math.isqrt(num_bits)
    return side if side * side == num_bits else side + 1


class BitImage:
    """
    Square grid of bits stored row-major in a BitSequence.

    The side is the smallest square that holds every bit; a partially
    filled last row reads as False.
    """

    __hash__ = None

    def __init__(self, pixels: Optional[BitSequence] = None):
        self.pixels = pixels if pixels is not None else BitSequence()
        self.side = _side_for(len(self.pixels))

    @classmethod
    def from_grid(cls, grid: np.ndarray) -> "BitImage":
        return cls(BitSequence.from_bools(np.asarray(grid, dtype=bool).ravel()))

    def add(self, pixel: bool):
        self.pixels.add(pixel)
        self.side = _side_for(len(self.pixels))

    def get(self, x: int, y: int) -> bool:
        if not (0 <= x < self.side and 0 <= y < self.side):
            raise IndexError(f"({x}, {y}) outside {self.side}x{self.side} bit image")
        index = y * self.side + x
        return index < len(self.pixels) and self.pixels.get(index)

    def to_grid(self) -> np.ndarray:
        flat = np.zeros(self.side * self.side, dtype=bool)
        flat[:len(self.pixels)] = self.pixels.to_bools()
        return flat.reshape(self.side, self.side)

    def subimage(self, x_center: int, y_center: int, side: int) -> "BitImage":
        return BitImage.from_grid(grid_subimage(self.to_grid(), x_center, y_center, side, False))

    def find_kernels(self,
                     num_kernels: int,
                     kernel_size: int = 3,
                     max_iterations: int = 300,
                     n_init: int = 10,
                     random_state=None) -> List["BitImage"]:
        """
        Cluster every centered sub-image into ``num_kernels`` representatives.

        Args:
            num_kernels: Number of kernels to find
            kernel_size: Side of each sub-image
            max_iterations: Bound on k-means iterations
            n_init: Number of k-means runs
            random_state: Seed for k-means++ seeding

        Returns:
            List of kernel bit images
        """
        windows = neighborhoods(self.to_grid(), kernel_size, False)
        candidates = [BitImage.from_grid(w) for w in windows.reshape(-1, kernel_size, kernel_size)]
        clustering = KMeans(num_kernels, candidates, real_distance, image_mean,
                            max_iterations=max_iterations, n_init=n_init, random_state=random_state)
        return list(clustering.means)

    def project_through(self, kernel: "BitImage", stride: int) -> "BitImage":
        """
        One bit per stride-sampled pixel: set when the sub-image around the
        pixel differs from ``kernel`` in more than half of the kernel's bits.
        """
        windows = neighborhoods(self.to_grid(), kernel.side, False)[::stride, ::stride]
        flat_windows = windows.reshape(windows.shape[0], windows.shape[1], -1)
        differences = np.count_nonzero(flat_windows != kernel.to_grid().ravel(), axis=2)
        return BitImage(BitSequence.from_bools((differences > len(kernel) // 2).ravel()))

    def __len__(self) -> int:
        return len(self.pixels)

    def __eq__(self, other) -> bool:
        if not isinstance(other, BitImage):
            return NotImplemented
        return self.side == other.side and self.pixels == other.pixels

    def __repr__(self) -> str:
        return f"BitImage(side={self.side}, bits={len(self.pixels)})"


# -----------------------------
# Distances and aggregation
# -----------------------------

def bit_image_distance(img1: BitImage, img2: BitImage) -> int:
    return bits.hamming_distance(img1.pixels, img2.pixels)


def real_distance(img1: BitImage, img2: BitImage) -> float:
    return bits.real_distance(img1.pixels, img2.pixels)


def image_mean(images: Sequence[BitImage]) -> BitImage:
    """Cell-wise majority of equally sized bit images; ties go to True."""
    value_counts: Histogram = Histogram()
    for img in images:
        grid = img.to_grid()
        for (y, x), value in np.ndenumerate(grid):
            value_counts.bump((x, y, bool(value)))

    side = images[0].side
    result = np.zeros((side, side), dtype=bool)
    for y in range(side):
        for x in range(side):
            result[y, x] = value_counts.get((x, y, True)) >= value_counts.get((x, y, False))
    return BitImage.from_grid(result)


# -----------------------------
# Kernelized representation
# -----------------------------

def binary_via_brief_patch(src: np.ndarray, patch_size: int) -> BitImage:
    return BitImage(patchify(src, patch_size))


def to_kernelized(img: np.ndarray,
                  levels: int,
                  num_kernels: int,
                  kernel_size: int = 3,
                  stride: int = 2,
                  max_iterations: int = 300,
                  n_init: int = 10,
                  random_state=None) -> List[BitImage]:
    """
    Convert an image into ``num_kernels ** levels`` projected bit images.

    Args:
        img: Source grayscale image
        levels: Number of find-kernels-then-project rounds
        num_kernels: Kernels found per bit image per round
        kernel_size: Side of patches and kernels
        stride: Sampling step of each projection
        max_iterations: Bound on k-means iterations
        n_init: Number of k-means runs per kernel search
        random_state: Seed for kernel search

    Returns:
        List of bit images
    """
    kernelized = [binary_via_brief_patch(img, kernel_size)]
    for _ in range(levels):
        iterated = []
        for src in kernelized:
            kernels = src.find_kernels(num_kernels, kernel_size, max_iterations=max_iterations,
                                       n_init=n_init, random_state=random_state)
            for kernel in kernels:
                iterated.append(src.project_through(kernel, stride))
        kernelized = iterated
    return kernelized


def kernelized_distance(k1: Sequence[BitImage], k2: Sequence[BitImage]) -> float:
    if len(k1) != len(k2):
        raise ValueError(f"Kernelized lengths differ: {len(k1)} != {len(k2)}")
    return sum(real_distance(a, b) for a, b in zip(k1, k2))
