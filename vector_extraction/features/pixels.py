from __future__ import annotations

import numpy as np


def euclidean_distance(img1: np.ndarray, img2: np.ndarray) -> float:
    # Squared distance; ordering is the same as the true Euclidean distance
    if img1.shape != img2.shape:
        raise ValueError(f"Image shapes differ: {img1.shape} != {img2.shape}")
    diff = img1.astype(np.float64).ravel() - img2.astype(np.float64).ravel()
    return float(np.dot(diff, diff))


def raw_pixels(img: np.ndarray) -> np.ndarray:
    return np.array(img, copy=True)
