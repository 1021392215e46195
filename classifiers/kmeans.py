"""
kmeans.py

Generic k-means clustering over arbitrary element types.

The caller supplies the metric and the aggregation used to recompute a
center, so the same engine clusters integers, pixel grids or bit images.
Seeding is k-means++; refinement is Lloyd iteration until the centers stop
changing or ``max_iterations`` is reached.
"""
from __future__ import annotations

import warnings
from typing import Callable, Generic, List, NamedTuple, Optional, Sequence, TypeVar

import numpy as np
from sklearn.exceptions import ConvergenceWarning
from sklearn.utils import check_random_state

T = TypeVar("T")

Distance = Callable[[T, T], float]
Mean = Callable[[List[T]], T]


class _Run(NamedTuple):
    means: List
    inertia: float
    n_iter: int
    converged: bool


# -----------------------------
# Clustering result
# -----------------------------

class KMeans(Generic[T]):
    """
    Cluster ``data`` into ``k`` groups and keep one representative per group.

    Clustering happens on construction; the resulting ``means`` never change
    afterwards.
    """

    def __init__(self,
                 k: int,
                 data: Sequence[T],
                 distance: Distance,
                 mean: Mean,
                 max_iterations: int = 300,
                 n_init: int = 10,
                 random_state=None):
        """
        Args:
            k: Number of clusters, between 1 and ``len(data)``
            data: Elements to cluster
            distance: Symmetric, non-negative distance between two elements
            mean: Builds the representative of a non-empty list of elements
            max_iterations: Upper bound on Lloyd iterations per run
            n_init: Number of independently seeded runs; the one with the
                    lowest inertia is kept
            random_state: None, an int seed, or a numpy RandomState

        Raises:
            ValueError: If data is empty, k is out of range, or the bounds
                        are not positive
        """
        data = list(data)
        if not data:
            raise ValueError("KMeans requires at least one data element")
        if not 1 <= k <= len(data):
            raise ValueError(f"k must be between 1 and {len(data)}, got {k}")
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be positive, got {max_iterations}")
        if n_init < 1:
            raise ValueError(f"n_init must be positive, got {n_init}")

        self.distance = distance
        rng = check_random_state(random_state)

        best: Optional[_Run] = None
        for _ in range(n_init):
            run = _kmeans_single(k, data, distance, mean, max_iterations, rng)
            if best is None or run.inertia < best.inertia:
                best = run

        self.means = tuple(best.means)
        self.inertia = best.inertia
        self.n_iter = best.n_iter
        self.converged = best.converged

        if not self.converged:
            warnings.warn(
                f"k-means did not converge within {max_iterations} iterations; "
                "returning the last centers",
                ConvergenceWarning,
            )

    @property
    def k(self) -> int:
        return len(self.means)

    def classification(self, sample: T) -> int:
        """Index of the center closest to ``sample``."""
        return classify(sample, self.means, self.distance)


# -----------------------------
# Algorithm steps
# -----------------------------

def classify(target: T, means: Sequence[T], distance: Distance) -> int:
    """Index of the nearest mean; the lowest index wins ties."""
    distances = [float(distance(target, m)) for m in means]
    return int(np.argmin(distances))


def initial_plus_plus(k: int, data: Sequence[T], distance: Distance, rng) -> List[T]:
    """
    Choose ``k`` starting centers with k-means++.

    The first center is uniform over the data. Each following center is
    drawn with weight ``1 + d**2``, where ``d`` is the distance to the
    nearest center chosen so far. The added one keeps every weight positive,
    so sampling stays defined when all points coincide with centers.
    """
    n = len(data)
    centers = [data[rng.randint(n)]]
    nearest = np.array([float(distance(datum, centers[0])) for datum in data])
    while len(centers) < k:
        weights = 1.0 + nearest ** 2
        index = rng.choice(n, p=weights / weights.sum())
        centers.append(data[index])
        latest = np.array([float(distance(datum, centers[-1])) for datum in data])
        nearest = np.minimum(nearest, latest)
    return centers


def _unchanged(previous, current) -> bool:
    if isinstance(previous, np.ndarray) or isinstance(current, np.ndarray):
        return np.array_equal(previous, current)
    return bool(previous == current)


def _inertia(data: Sequence[T], means: Sequence[T], distance: Distance) -> float:
    total = 0.0
    for datum in data:
        total += min(float(distance(datum, m)) for m in means) ** 2
    return total


def _kmeans_single(k: int,
                   data: Sequence[T],
                   distance: Distance,
                   mean: Mean,
                   max_iterations: int,
                   rng) -> _Run:
    means = initial_plus_plus(k, data, distance, rng)
    for iteration in range(1, max_iterations + 1):
        clusters: List[List[T]] = [[] for _ in range(k)]
        for datum in data:
            clusters[classify(datum, means, distance)].append(datum)

        previous = means
        # Empty clusters keep their old center
        means = [mean(cluster) if cluster else previous[i] for i, cluster in enumerate(clusters)]

        if all(_unchanged(p, m) for p, m in zip(previous, means)):
            return _Run(means, _inertia(data, means, distance), iteration, True)

    return _Run(means, _inertia(data, means, distance), max_iterations, False)
