from __future__ import annotations

from collections import Counter
from typing import Generic, Hashable, Iterable, Iterator, Set, Tuple, TypeVar

K = TypeVar("K", bound=Hashable)


class Histogram(Generic[K]):
    """
    Occurrence counts keyed by any hashable value.

    Keys never bumped read as zero. ``mode`` breaks ties in favour of the
    key that was bumped first.
    """

    def __init__(self, keys: Iterable[K] = ()):
        self._counts: Counter = Counter()
        for key in keys:
            self.bump(key)

    def bump(self, key: K):
        self._counts[key] += 1

    def get(self, key: K) -> int:
        return self._counts[key]

    def mode(self) -> K:
        if not self._counts:
            raise ValueError("mode() of an empty Histogram")
        return max(self._counts.items(), key=lambda entry: entry[1])[0]

    def all_keys(self) -> Set[K]:
        return set(self._counts)

    def items(self) -> Iterator[Tuple[K, int]]:
        return iter(self._counts.items())

    def total(self) -> int:
        return sum(self._counts.values())

    def update(self, other: "Histogram[K]") -> "Histogram[K]":
        """Add every count of ``other`` into this histogram."""
        for key, count in other.items():
            self._counts[key] += count
        return self

    def __len__(self) -> int:
        return len(self._counts)

    def __str__(self) -> str:
        entries = ", ".join(f"{key}: {count}" for key, count in sorted(self._counts.items()))
        return "{" + entries + "}"

    def __repr__(self) -> str:
        return f"Histogram({dict(self._counts)!r})"
