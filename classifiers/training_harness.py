"""
training_harness.py

Shared train/test protocol for classifiers and the confusion matrix that
tallies test outcomes per true label.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from sklearn.metrics import classification_report, confusion_matrix

from classifiers.histogram import Histogram


# -----------------------------
# Confusion matrix
# -----------------------------

class ConfusionMatrix:
    """
    Right/wrong tallies per true label.

    Every recorded outcome is also kept as an ``(actual, predicted)`` pair so
    the full label-vs-label table can be produced for reporting.
    """

    def __init__(self):
        self.label_2_right: Histogram = Histogram()
        self.label_2_wrong: Histogram = Histogram()
        self.outcomes: List[Tuple[int, int]] = []

    def record(self, actual: int, predicted: int):
        if predicted == actual:
            self.label_2_right.bump(actual)
        else:
            self.label_2_wrong.bump(actual)
        self.outcomes.append((actual, predicted))

    def correct(self, label: int) -> int:
        return self.label_2_right.get(label)

    def incorrect(self, label: int) -> int:
        return self.label_2_wrong.get(label)

    def labels(self) -> List[int]:
        return sorted(self.label_2_right.all_keys() | self.label_2_wrong.all_keys())

    def total(self) -> int:
        return self.label_2_right.total() + self.label_2_wrong.total()

    def error_rate(self) -> float:
        """
        Fraction of recorded classifications that were wrong.

        Raises:
            ValueError: If nothing has been recorded
        """
        total = self.total()
        if total == 0:
            raise ValueError("error_rate() of an empty ConfusionMatrix")
        return self.label_2_wrong.total() / total

    def merge(self, other: "ConfusionMatrix") -> "ConfusionMatrix":
        self.label_2_right.update(other.label_2_right)
        self.label_2_wrong.update(other.label_2_wrong)
        self.outcomes.extend(other.outcomes)
        return self

    def matrix(self, labels: Optional[Sequence[int]] = None) -> np.ndarray:
        """
        Full confusion table, rows are actual labels and columns predicted.

        Args:
            labels: Label order for rows and columns (default: every label
                    seen as actual or predicted, sorted)

        Returns:
            Integer array of shape (len(labels), len(labels))
        """
        actual = [a for a, _ in self.outcomes]
        predicted = [p for _, p in self.outcomes]
        if labels is None:
            labels = sorted(set(actual) | set(predicted))
        return confusion_matrix(actual, predicted, labels=list(labels))

    def report(self) -> str:
        actual = [a for a, _ in self.outcomes]
        predicted = [p for _, p in self.outcomes]
        return classification_report(actual, predicted, zero_division=0)

    def __str__(self) -> str:
        lines = []
        for label in self.labels():
            right = self.correct(label)
            wrong = self.incorrect(label)
            pct = 100.0 * wrong / (right + wrong)
            lines.append(f"{label}: {right} correct, {wrong} incorrect ({pct:.2f}% error)")
        return "\n".join(lines) + "\n"


# -----------------------------
# Classifier protocol
# -----------------------------

class Classifier(ABC):
    """Supervised classifier over labeled examples of any representation."""

    @abstractmethod
    def train(self, examples: Iterable[Tuple[int, Any]]):
        ...

    @abstractmethod
    def classify(self, query: Any) -> int:
        ...

    def test(self, queries: Iterable[Tuple[int, Any]], max_workers: int = 1) -> ConfusionMatrix:
        """
        Classify every labeled query and tally the outcomes.

        Args:
            queries: ``(true_label, example)`` pairs
            max_workers: Worker threads; 1 classifies in the calling thread

        Returns:
            ConfusionMatrix of the outcomes
        """
        if max_workers > 1:
            from classifiers.parallel_training import evaluate_parallel
            return evaluate_parallel(self, queries, max_workers)

        result = ConfusionMatrix()
        for label, query in queries:
            result.record(label, self.classify(query))
        return result
