"""
mnist_data.py

Loading of MNIST-style IDX files and the image helpers shared by the
feature-extraction strategies.

Images are square ``uint8`` arrays indexed ``img[y, x]``. Labeled data sets
are lists of ``(label, image)`` tuples.
"""
from __future__ import annotations

import struct
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import cv2
import joblib
import numpy as np
from skimage.util import view_as_windows

from classifiers.histogram import Histogram


IMAGE_DIMENSION = 28
IMAGE_BYTES = IMAGE_DIMENSION * IMAGE_DIMENSION

LABEL_MAGIC = 2049
IMAGE_MAGIC = 2051

LabeledImage = Tuple[int, np.ndarray]


# -----------------------------
# IDX file parsing
# -----------------------------

def _read_bytes(file_path: str) -> bytes:
    with open(file_path, "rb") as f:
        return f.read()


def read_label_file(file_path: str) -> np.ndarray:
    """
    Read an IDX1 label file.

    Args:
        file_path: Path to a ``*-labels-idx1-ubyte`` file

    Returns:
        uint8 array with one label per item

    Raises:
        ValueError: If the header is malformed or the item count is wrong
    """
    data = _read_bytes(file_path)
    if len(data) < 8:
        raise ValueError(f"Label file {file_path} is too short for an IDX header")
    magic, count = struct.unpack_from(">II", data, 0)
    if magic != LABEL_MAGIC:
        raise ValueError(f"Label file {file_path} has magic number {magic}, expected {LABEL_MAGIC}")
    labels = np.frombuffer(data, dtype=np.uint8, offset=8)
    if labels.size != count:
        raise ValueError(f"Label file {file_path} declares {count} labels but holds {labels.size}")
    return labels.copy()


def read_image_file(file_path: str) -> np.ndarray:
    """
    Read an IDX3 image file.

    Args:
        file_path: Path to a ``*-images-idx3-ubyte`` file

    Returns:
        uint8 array of shape (count, rows, cols)

    Raises:
        ValueError: If the header is malformed or the pixel count is wrong
    """
    data = _read_bytes(file_path)
    if len(data) < 16:
        raise ValueError(f"Image file {file_path} is too short for an IDX header")
    magic, count, rows, cols = struct.unpack_from(">IIII", data, 0)
    if magic != IMAGE_MAGIC:
        raise ValueError(f"Image file {file_path} has magic number {magic}, expected {IMAGE_MAGIC}")
    pixels = np.frombuffer(data, dtype=np.uint8, offset=16)
    if pixels.size != count * rows * cols:
        raise ValueError(
            f"Image file {file_path} declares {count} images of {rows}x{cols} "
            f"but holds {pixels.size} pixels"
        )
    return pixels.reshape(count, rows, cols).copy()


def init_from_files(image_file_path: str, label_file_path: str) -> List[LabeledImage]:
    labels = read_label_file(label_file_path)
    images = read_image_file(image_file_path)
    if len(labels) != len(images):
        raise ValueError(f"{len(images)} images but {len(labels)} labels")
    return [(int(label), image) for label, image in zip(labels, images)]


def load_data_set(base_path: str, file_prefix: str, cache_dir: Optional[str] = None) -> List[LabeledImage]:
    """
    Load ``<prefix>-images-idx3-ubyte`` and ``<prefix>-labels-idx1-ubyte``.

    Args:
        base_path: Directory holding the IDX files
        file_prefix: Data set prefix, e.g. ``train`` or ``t10k``
        cache_dir: Optional joblib cache directory for parsed data sets

    Returns:
        List of (label, image) tuples
    """
    base = Path(base_path)
    image_path = str(base / f"{file_prefix}-images-idx3-ubyte")
    label_path = str(base / f"{file_prefix}-labels-idx1-ubyte")
    if cache_dir is None:
        return init_from_files(image_path, label_path)
    memory = joblib.Memory(cache_dir, verbose=0)
    return memory.cache(init_from_files)(image_path, label_path)


# -----------------------------
# Data set helpers
# -----------------------------

def discard(items: Sequence[LabeledImage], shrink: int) -> List[LabeledImage]:
    """Keep every ``shrink``-th item, starting with the first."""
    if shrink < 1:
        raise ValueError(f"shrink must be positive, got {shrink}")
    return list(items[::shrink])


def label_counts(labeled: Sequence[Tuple[int, object]]) -> Histogram:
    counts: Histogram = Histogram()
    for label, _ in labeled:
        counts.bump(label)
    return counts


# -----------------------------
# Image helpers
# -----------------------------

def permuted(img: np.ndarray, permutation: Sequence[int]) -> np.ndarray:
    """Pixel ``i`` of the result is pixel ``permutation[i]`` of ``img``, row-major."""
    flat = img.ravel()
    if flat.size != len(permutation):
        raise ValueError(f"Permutation of length {len(permutation)} for image of {flat.size} pixels")
    return flat[np.asarray(permutation, dtype=np.intp)].reshape(img.shape)


def shrunken(img: np.ndarray, factor: int) -> np.ndarray:
    """
    Downscale by an integer factor, averaging each ``factor x factor`` block.

    Rows and columns that do not fill a whole block are dropped.
    """
    target = img.shape[0] // factor
    if target == 0:
        return np.zeros((0, 0), dtype=img.dtype)
    cropped = np.ascontiguousarray(img[:target * factor, :target * factor])
    return cv2.resize(cropped, (target, target), interpolation=cv2.INTER_AREA)


def neighborhoods(grid: np.ndarray, side: int, fill=0) -> np.ndarray:
    """
    Every ``side x side`` window centered on a cell of ``grid``.

    Windows start ``side // 2`` cells above and left of their center; cells
    outside the grid read as ``fill``.

    Returns:
        Array of shape (rows, cols, side, side), a read-only view
    """
    before = side // 2
    after = side - 1 - before
    padded = np.pad(grid, ((before, after), (before, after)), mode="constant", constant_values=fill)
    return view_as_windows(padded, (side, side))


def subimage(grid: np.ndarray, x_center: int, y_center: int, side: int, fill=0) -> np.ndarray:
    rows, cols = grid.shape
    if not (0 <= x_center < cols and 0 <= y_center < rows):
        raise IndexError(f"center ({x_center}, {y_center}) outside {cols}x{rows} grid")
    return neighborhoods(grid, side, fill)[y_center, x_center].copy()
