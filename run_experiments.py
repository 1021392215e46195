"""
run_experiments.py

Compares feature-extraction strategies for k-nearest-neighbor digit
classification on MNIST. Each experiment converts the training and testing
images into one representation, trains a KNN classifier with the matching
distance, and reports the resulting error rate.

Experiments:
- baseline: raw pixels, Euclidean distance
- pyramid: image pyramids, summed Euclidean distance over levels
- brief: BRIEF descriptors, Hamming distance
- patch: neighborhood comparison bits, Hamming distance
- kernel: k-means kernels projected over patch bits, summed Hamming distance
"""
from __future__ import annotations

import argparse
import time
from contextlib import contextmanager
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from classifiers.KNN import KNNClassifier
from classifiers.training_harness import ConfusionMatrix
from experiment_config import EXPERIMENT_NAMES, build_config
from vector_extraction import mnist_data
from vector_extraction.bits import real_distance
from vector_extraction.features.brief import Descriptor, brief_distance
from vector_extraction.features.brief_convolutional import kernelized_distance, to_kernelized
from vector_extraction.features.patch import patchify
from vector_extraction.features.pixels import euclidean_distance, raw_pixels
from vector_extraction.features.pyramid import Pyramid, pyramid_distance
from vector_extraction.parallel_processing import convert_labeled
from vector_extraction.permutation import read_permutation

Strategy = Tuple[Callable[[np.ndarray], Any], Callable[[Any, Any], float]]


# -----------------------------
# Timing
# -----------------------------

@contextmanager
def timed_op(label: str):
    print(f"Started {label}...")
    start = time.perf_counter()
    yield
    print(f"Finished {label} after {int(time.perf_counter() - start)} seconds")


# -----------------------------
# Strategies
# -----------------------------

def build_strategies(config: Dict[str, Any], image_side: int) -> Dict[str, Strategy]:
    """
    Map each experiment name to its (conversion, distance) pair.

    Args:
        config: Full experiment configuration
        image_side: Side length of the (square) input images

    Returns:
        Dictionary of experiment name to (per-image conversion, distance)
    """
    strategies: Dict[str, Strategy] = {
        "baseline": (raw_pixels, euclidean_distance),
        "pyramid": (Pyramid, pyramid_distance),
        "patch": (partial(patchify, patch_size=config["patch"]["patch_size"]), real_distance),
    }

    if "brief" in config["experiments"]:
        descriptor = Descriptor(config["brief"]["pairs"], image_side, image_side,
                                random_state=config["random_state"])
        strategies["brief"] = (descriptor.apply_to, brief_distance)

    kernel_cfg = config["kernel"]
    kmeans_cfg = config["kmeans"]
    strategies["kernel"] = (
        partial(
            to_kernelized,
            levels=kernel_cfg["levels"],
            num_kernels=kernel_cfg["num_kernels"],
            kernel_size=kernel_cfg["kernel_size"],
            stride=kernel_cfg["stride"],
            max_iterations=kmeans_cfg["max_iterations"],
            n_init=kmeans_cfg["n_init"],
            random_state=config["random_state"],
        ),
        kernelized_distance,
    )
    return strategies


# -----------------------------
# Experiment execution
# -----------------------------

def build_and_test_model(label: str,
                         training: Sequence[Tuple[int, np.ndarray]],
                         testing: Sequence[Tuple[int, np.ndarray]],
                         conversion: Callable[[np.ndarray], Any],
                         distance: Callable[[Any, Any], float],
                         config: Dict[str, Any]) -> ConfusionMatrix:
    """
    Convert both data sets, train a KNN model, test it and print the outcome.

    Returns:
        ConfusionMatrix of the test run
    """
    max_workers = int(config["max_workers"])
    with timed_op(f"converting training images to {label}"):
        training_items = convert_labeled(training, conversion, max_workers)
    with timed_op(f"converting testing images to {label}"):
        testing_items = convert_labeled(testing, conversion, max_workers)

    k = int(config["k"])
    model = KNNClassifier(k, distance)
    with timed_op(f"training {label} model (k={k})"):
        model.train(training_items)
    with timed_op("testing"):
        outcome = model.test(testing_items, max_workers=max_workers)

    print(outcome, end="")
    print(f"Error rate: {outcome.error_rate() * 100.0}")
    return outcome


def run_all_tests_with(training: Sequence[Tuple[int, np.ndarray]],
                       testing: Sequence[Tuple[int, np.ndarray]],
                       config: Dict[str, Any]) -> Dict[str, ConfusionMatrix]:
    image_side = training[0][1].shape[0]
    strategies = build_strategies(config, image_side)
    outcomes: Dict[str, ConfusionMatrix] = {}
    for name in config["experiments"]:
        print(f"\n{'='*60}")
        print(f"{name.upper()}")
        print(f"{'='*60}")
        conversion, distance = strategies[name]
        outcomes[name] = build_and_test_model(name, training, testing, conversion, distance, config)
    return outcomes


def load_data_set(config: Dict[str, Any], file_prefix: str) -> List[Tuple[int, np.ndarray]]:
    with timed_op(f"loading mnist {file_prefix} images"):
        labeled = mnist_data.load_data_set(config["base_path"], file_prefix, cache_dir=config["cache_dir"])
    print(f"Number of {file_prefix} images: {len(labeled)}")
    return labeled


def permuted_data_set(permutation: Sequence[int],
                      data: Sequence[Tuple[int, np.ndarray]]) -> List[Tuple[int, np.ndarray]]:
    return [(label, mnist_data.permuted(img, permutation)) for label, img in data]


def see_label_counts(labeled: Sequence[Tuple[int, Any]], title: str):
    print(f"{title} labels: {mnist_data.label_counts(labeled)}")


def train_and_test(config: Dict[str, Any]) -> Dict[str, ConfusionMatrix]:
    """
    Run every configured experiment on MNIST, optionally again on permuted pixels.

    Returns:
        Dictionary of experiment name to ConfusionMatrix; permuted runs are
        keyed ``<name>-permuted``

    Raises:
        ValueError: If the training or testing set holds no images
    """
    training_images = load_data_set(config, "train")
    testing_images = load_data_set(config, "t10k")

    shrink = config["shrink"]
    if shrink:
        print(f"Shrinking by {shrink}")
        training_images = mnist_data.discard(training_images, shrink)
        testing_images = mnist_data.discard(testing_images, shrink)

    if not training_images or not testing_images:
        raise ValueError(
            f"No images to experiment on ({len(training_images)} training, "
            f"{len(testing_images)} testing) under {config['base_path']}"
        )

    see_label_counts(training_images, "Training")
    see_label_counts(testing_images, "Testing")

    outcomes = run_all_tests_with(training_images, testing_images, config)

    if config["permutation_file"]:
        print("Permuting images")
        permutation = read_permutation(config["permutation_file"])
        permuted_outcomes = run_all_tests_with(
            permuted_data_set(permutation, training_images),
            permuted_data_set(permutation, testing_images),
            config,
        )
        for name, outcome in permuted_outcomes.items():
            outcomes[f"{name}-permuted"] = outcome

    return outcomes


# -----------------------------
# Command line
# -----------------------------

def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Nearest-neighbor MNIST classification with several feature-extraction strategies"
    )
    parser.add_argument("experiments", nargs="*", metavar="EXPERIMENT",
                        help=f"experiments to run, any of {', '.join(EXPERIMENT_NAMES)} (default: baseline)")
    parser.add_argument("--base-path", default=None, help="directory holding the MNIST IDX files")
    parser.add_argument("--k", type=int, default=None, help="number of voting neighbors (default: 7)")
    parser.add_argument("--shrink", type=int, nargs="?", const=50, default=None,
                        help="use only 1 out of SHRINK training/testing images (default when given: 50)")
    parser.add_argument("--permute", metavar="PERMUTATION_FILE", default=None,
                        help="also run every experiment on images permuted by this file")
    parser.add_argument("--max-workers", type=int, default=None, help="worker threads for conversion and testing")
    parser.add_argument("--seed", type=int, default=None, help="random seed for BRIEF pairs and k-means")
    parser.add_argument("--cache-dir", default=None, help="joblib cache directory for parsed data sets")
    args = parser.parse_args(argv)

    unknown = [name for name in args.experiments if name not in EXPERIMENT_NAMES]
    if unknown:
        parser.error(f"unknown experiments: {', '.join(unknown)}")
    return args


def config_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    experiments = list(dict.fromkeys(args.experiments)) or ["baseline"]
    overrides: Dict[str, Any] = {"experiments": experiments}
    optional = {
        "base_path": args.base_path,
        "k": args.k,
        "shrink": args.shrink,
        "permutation_file": args.permute,
        "max_workers": args.max_workers,
        "random_state": args.seed,
        "cache_dir": args.cache_dir,
    }
    overrides.update({key: value for key, value in optional.items() if value is not None})
    return build_config(overrides)


def main(argv: Optional[Sequence[str]] = None) -> int:
    config = config_from_args(parse_args(argv))
    train_and_test(config)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
