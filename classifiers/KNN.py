"""
KNN.py

K-nearest neighbors classifier over any example representation.

Examples are kept as-is together with their labels; the caller supplies the
distance function, so raw pixel grids, pyramids and bit sequences all share
the same voting logic.
"""
from __future__ import annotations

import heapq
from typing import Callable, Generic, Iterable, List, Tuple, TypeVar

from classifiers.histogram import Histogram
from classifiers.training_harness import Classifier

T = TypeVar("T")


class KNNClassifier(Classifier, Generic[T]):
    """
    Majority vote among the ``k`` stored examples closest to a query.

    Distance ties keep training order, and the vote histogram is filled
    nearest first, so a tied vote goes to the label of the nearer neighbor.
    """

    def __init__(self, k: int, distance: Callable[[T, T], float]):
        """
        Args:
            k: Number of neighbors that vote
            distance: Non-negative, symmetric distance between examples
        """
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")
        self.k = k
        self.distance = distance
        self._examples: List[Tuple[int, T]] = []

    def add_example(self, label: int, example: T):
        self._examples.append((label, example))

    def train(self, examples: Iterable[Tuple[int, T]]):
        """Append labeled examples; repeated calls accumulate."""
        for label, example in examples:
            self.add_example(label, example)

    def classify(self, query: T) -> int:
        if self.k > len(self._examples):
            raise ValueError(
                f"k={self.k} exceeds the {len(self._examples)} stored examples"
            )
        distances = [(float(self.distance(query, example)), label) for label, example in self._examples]
        # nsmallest is equivalent to sorted(...)[:k], stable on ties
        nearest = heapq.nsmallest(self.k, distances, key=lambda pair: pair[0])

        votes: Histogram = Histogram()
        for _, label in nearest:
            votes.bump(label)
        return votes.mode()

    def __len__(self) -> int:
        return len(self._examples)

    def __repr__(self) -> str:
        return f"KNNClassifier(k={self.k}, examples={len(self._examples)})"
