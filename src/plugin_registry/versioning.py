"""
Version comparison for registry entries.

Versions are compared segment by segment on '.', numerically where both
segments are integers and lexically otherwise. Missing trailing segments
count as "0", so "1.2" and "1.2.0" are equal.
"""

from enum import Enum
from typing import List, Union

UNKNOWN_VERSION = "unknown"


class Ordering(Enum):
    LESS = -1
    EQUAL = 0
    GREATER = 1


def _segments(version: str) -> List[str]:
    return str(version).strip().split('.')


def _compare_segment(a: str, b: str) -> int:
    try:
        left: Union[int, str] = int(a)
        right: Union[int, str] = int(b)
    except ValueError:
        left, right = a, b
    if left == right:
        return 0
    return 1 if left > right else -1


def compare(a: str, b: str) -> Ordering:
    """
    Compare two version strings.

    Args:
        a: Left-hand version
        b: Right-hand version

    Returns:
        Ordering of a relative to b
    """
    left = _segments(a)
    right = _segments(b)
    width = max(len(left), len(right))
    left += ['0'] * (width - len(left))
    right += ['0'] * (width - len(right))

    for seg_a, seg_b in zip(left, right):
        result = _compare_segment(seg_a, seg_b)
        if result:
            return Ordering.GREATER if result > 0 else Ordering.LESS
    return Ordering.EQUAL


def is_greater(a: str, b: str) -> bool:
    """True if version a sorts after version b."""
    return compare(a, b) is Ordering.GREATER
