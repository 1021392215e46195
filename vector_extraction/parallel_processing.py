"""
parallel_processing.py

Parallel conversion of labeled images into a feature representation.
Results keep the input order so that training and testing stay reproducible.
"""
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, List, Sequence, Tuple

import numpy as np


# -----------------------------
# Parallel processing helpers
# -----------------------------

def convert_labeled(labeled: Sequence[Tuple[int, np.ndarray]],
                    conversion: Callable[[np.ndarray], Any],
                    max_workers: int = 1) -> List[Tuple[int, Any]]:
    """
    Apply a per-image conversion to a labeled data set.

    Args:
        labeled: List of (label, image) tuples
        conversion: Function turning one image into its representation
        max_workers: Number of worker threads (1 converts in the calling thread)

    Returns:
        List of (label, representation) tuples in input order
    """
    if max_workers <= 1:
        return [(label, conversion(img)) for label, img in labeled]

    results: List[Any] = [None] * len(labeled)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {
            executor.submit(conversion, img): index
            for index, (_, img) in enumerate(labeled)
        }

        for future in as_completed(future_to_index):
            index = future_to_index[future]
            try:
                results[index] = future.result()
            except Exception as exc:
                print(f"Image {index} generated an exception: {exc}")
                raise

    return [(label, converted) for (label, _), converted in zip(labeled, results)]
