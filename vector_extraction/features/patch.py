from __future__ import annotations

import numpy as np

from vector_extraction.bits import BitSequence
from vector_extraction.mnist_data import neighborhoods


def patchify(img: np.ndarray, patch_size: int) -> BitSequence:
    """
    Compare every pixel against each cell of its centered neighborhood.

    Pixels are visited row-major and so are the cells of each neighborhood;
    cells outside the image count as 0. A bit is set when the pixel is
    brighter than the cell.
    """
    values = img.astype(np.int16)
    windows = neighborhoods(values, patch_size, 0)
    brighter = values[:, :, np.newaxis, np.newaxis] > windows
    return BitSequence.from_bools(brighter.ravel())
