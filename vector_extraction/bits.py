"""
bits.py

Densely packed, growable bit sequences with fast Hamming distance.

Bits are grouped into 64-bit words held in a numpy array. Bit ``i`` lives in
word ``i // 64`` at offset ``i % 64``; padding bits past the logical length
are always zero, so population counts can run over whole words.
"""
from __future__ import annotations

import operator
from typing import Iterable, Iterator, List

import numpy as np


WORD_BITS = 64

# Number of set bits for every byte value
_POPCOUNT_TABLE = np.array([bin(i).count("1") for i in range(256)], dtype=np.uint8)


# -----------------------------
# Word helpers
# -----------------------------

def _words_needed(size: int) -> int:
    return (size + WORD_BITS - 1) // WORD_BITS


def _popcount(words: np.ndarray) -> int:
    """
    Count set bits across an array of uint64 words.

    Args:
        words: Contiguous uint64 array

    Returns:
        Total number of set bits
    """
    if words.size == 0:
        return 0
    as_bytes = np.ascontiguousarray(words).view(np.uint8)
    return int(_POPCOUNT_TABLE[as_bytes].sum(dtype=np.int64))


# -----------------------------
# BitSequence
# -----------------------------

class BitSequence:
    """
    Growable sequence of booleans packed into 64-bit words.

    Created empty, grows only through ``add``; existing bits can be changed
    in place with ``set``. Sequences of different lengths never compare
    equal, and XOR or distance between them raises ``ValueError``.
    """

    __hash__ = None

    def __init__(self):
        self._words = np.zeros(1, dtype=np.uint64)
        self._size = 0

    @classmethod
    def from_bools(cls, values: Iterable[bool]) -> "BitSequence":
        """
        Build a sequence from booleans in one pass.

        Produces the same layout as calling ``add`` for every value.

        Args:
            values: Iterable (or array) of truth values

        Returns:
            New BitSequence holding the values in order
        """
        flags = np.asarray(values if isinstance(values, np.ndarray) else list(values), dtype=bool).ravel()
        size = int(flags.size)
        num_words = _words_needed(size)
        packed = np.packbits(flags, bitorder="little")
        padded = np.zeros(max(1, num_words) * 8, dtype=np.uint8)
        padded[:packed.size] = packed
        result = cls()
        result._words = padded.view("<u8").astype(np.uint64)
        result._size = size
        return result

    @classmethod
    def _from_words(cls, words: np.ndarray, size: int) -> "BitSequence":
        result = cls()
        storage = np.zeros(max(1, words.size), dtype=np.uint64)
        storage[:words.size] = words
        result._words = storage
        result._size = size
        return result

    # -----------------------------
    # Size and storage
    # -----------------------------

    def __len__(self) -> int:
        return self._size

    @property
    def words(self) -> np.ndarray:
        """Copy of the used words, ``ceil(len / 64)`` of them."""
        return self._words[:_words_needed(self._size)].copy()

    def _used_words(self) -> np.ndarray:
        return self._words[:_words_needed(self._size)]

    def _grow(self):
        capacity = self._words.size * 2
        grown = np.zeros(capacity, dtype=np.uint64)
        grown[:self._words.size] = self._words
        self._words = grown

    def _check_index(self, index) -> int:
        index = operator.index(index)
        if not 0 <= index < self._size:
            raise IndexError(f"bit index {index} out of range for length {self._size}")
        return index

    # -----------------------------
    # Element access
    # -----------------------------

    def add(self, value: bool):
        """
        Append one bit.

        A fresh zeroed word is claimed whenever the length is a multiple of
        the word size; storage doubles when it runs out.
        """
        if self._size % WORD_BITS == 0 and _words_needed(self._size) == self._words.size:
            self._grow()
        self._size += 1
        self.set(self._size - 1, value)

    def set(self, index: int, value: bool):
        index = self._check_index(index)
        word, offset = divmod(index, WORD_BITS)
        mask = np.uint64(1 << offset)
        if value:
            self._words[word] |= mask
        else:
            self._words[word] &= ~mask

    def get(self, index: int) -> bool:
        index = self._check_index(index)
        word, offset = divmod(index, WORD_BITS)
        return bool((int(self._words[word]) >> offset) & 1)

    def __getitem__(self, index: int) -> bool:
        return self.get(index)

    def __setitem__(self, index: int, value: bool):
        self.set(index, value)

    def __iter__(self) -> Iterator[bool]:
        return iter(self.to_bools())

    def to_bools(self) -> List[bool]:
        if self._size == 0:
            return []
        as_bytes = self._used_words().astype("<u8").view(np.uint8)
        return np.unpackbits(as_bytes, bitorder="little")[:self._size].astype(bool).tolist()

    def copy(self) -> "BitSequence":
        return BitSequence._from_words(self._used_words(), self._size)

    # -----------------------------
    # Counting and comparison
    # -----------------------------

    def count_set_bits(self) -> int:
        return _popcount(self._used_words())

    def xor(self, other: "BitSequence") -> "BitSequence":
        """
        Bitwise XOR with another sequence of the same length.

        Raises:
            ValueError: If the lengths differ
        """
        _require_same_length(self, other)
        return BitSequence._from_words(np.bitwise_xor(self._used_words(), other._used_words()), self._size)

    def __xor__(self, other: "BitSequence") -> "BitSequence":
        return self.xor(other)

    def __eq__(self, other) -> bool:
        if not isinstance(other, BitSequence):
            return NotImplemented
        return self._size == other._size and np.array_equal(self._used_words(), other._used_words())

    def __repr__(self) -> str:
        shown = "".join("1" if bit else "0" for bit in self.to_bools()[:64])
        suffix = "..." if self._size > 64 else ""
        return f"BitSequence('{shown}{suffix}', length={self._size})"


def _require_same_length(a: BitSequence, b: BitSequence):
    if len(a) != len(b):
        raise ValueError(f"BitSequence lengths differ: {len(a)} != {len(b)}")


# -----------------------------
# Distances
# -----------------------------

def hamming_distance(a: BitSequence, b: BitSequence) -> int:
    """Number of positions where two equal-length sequences differ."""
    _require_same_length(a, b)
    return _popcount(np.bitwise_xor(a._used_words(), b._used_words()))


def real_distance(a: BitSequence, b: BitSequence) -> float:
    return float(hamming_distance(a, b))
