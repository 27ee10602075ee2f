# utils/partition.py
from typing import List, Tuple


def partition(n: int, parts: int) -> List[Tuple[int, int]]:
    """
    Split ``[0, n)`` into at most ``parts`` contiguous, non‑empty ranges.

    Range sizes differ by at most one; an empty interval yields no ranges.
    """
    parts = max(1, min(parts, n))
    base, extra = divmod(n, parts)
    ranges: List[Tuple[int, int]] = []
    start = 0
    for k in range(parts):
        stop = start + base + (1 if k < extra else 0)
        if stop > start:
            ranges.append((start, stop))
        start = stop
    return ranges
