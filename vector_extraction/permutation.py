from __future__ import annotations

from typing import List, Sequence

from sklearn.utils import check_random_state


def make_permutation(n: int, random_state=None) -> List[int]:
    rng = check_random_state(random_state)
    return [int(i) for i in rng.permutation(n)]


def is_permutation(nums: Sequence[int]) -> bool:
    return sorted(nums) == list(range(len(nums)))


def write_permutation(file_path: str, nums: Sequence[int]):
    # Every value is followed by a comma, including the last
    with open(file_path, "w") as f:
        f.write("".join(f"{n}," for n in nums))


def read_permutation(file_path: str) -> List[int]:
    """
    Read a comma-separated permutation file.

    Fields that are not non-negative integers (such as the empty field after
    the trailing comma) are skipped.
    """
    with open(file_path, "r") as f:
        contents = f.read()
    return [int(field) for field in (part.strip() for part in contents.split(",")) if field.isdigit()]
