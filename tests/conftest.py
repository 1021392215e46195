import struct

import numpy as np
import pytest


def write_idx_images(path, images):
    images = np.asarray(images, dtype=np.uint8)
    count, rows, cols = images.shape
    path.write_bytes(struct.pack(">IIII", 2051, count, rows, cols) + images.tobytes())


def write_idx_labels(path, labels):
    labels = np.asarray(labels, dtype=np.uint8)
    path.write_bytes(struct.pack(">II", 2049, labels.size) + labels.tobytes())


def make_digit_images(rng, label, count, side=8):
    """Class 0 is bright on the left half, class 1 on the right half."""
    images = []
    for _ in range(count):
        img = rng.randint(0, 40, size=(side, side)).astype(np.uint8)
        if label == 0:
            img[:, : side // 2] += 200
        else:
            img[:, side // 2:] += 200
        images.append(img)
    return images


@pytest.fixture
def mnist_dir(tmp_path):
    """Tiny train/t10k IDX data sets; every test image also appears in training."""
    rng = np.random.RandomState(0)
    train_images, train_labels = [], []
    for i in range(6):
        for label in (0, 1):
            train_images.extend(make_digit_images(rng, label, 1))
            train_labels.append(label)

    test_images = [img.copy() for img in train_images[::2]] + [train_images[3].copy()]
    test_labels = train_labels[::2] + [train_labels[3]]

    write_idx_images(tmp_path / "train-images-idx3-ubyte", train_images)
    write_idx_labels(tmp_path / "train-labels-idx1-ubyte", train_labels)
    write_idx_images(tmp_path / "t10k-images-idx3-ubyte", test_images)
    write_idx_labels(tmp_path / "t10k-labels-idx1-ubyte", test_labels)
    return tmp_path
