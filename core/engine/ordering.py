# core/engine/ordering.py
from __future__ import annotations
from typing import Tuple

import numpy as np

from core.engine.permutation import Permutation, check_capacity, signed_dtype_for
from core.exceptions import InvariantViolation
from core.store.entry_store import EntryStore
from core.types import SortOrder
from utils.logging_config import get_logger

logger = get_logger(__name__)


def key_arrays(store: EntryStore, key: SortOrder) -> Tuple[np.ndarray, np.ndarray]:
    """(primary, secondary) index arrays for ``key``."""
    if key is SortOrder.ROW_MAJOR:
        return store.rows, store.cols
    if key is SortOrder.COL_MAJOR:
        return store.cols, store.rows
    raise ValueError(f"Unknown sort order: {key!r}")


def compute_order(store: EntryStore, key: SortOrder) -> Permutation:
    """
    Permutation that brings ``store`` into ``key`` order.

    Entries are unique in (row, col), so no two keys compare equal and an
    unstable sort gives the same answer as a stable one.  When
    ``primary * span + secondary`` fits in 64 bits the composite key is sorted
    with introsort; otherwise a lexicographic sort over both arrays is used.
    """
    slot_dtype = signed_dtype_for(store.rows.dtype)
    check_capacity(store.nvals, slot_dtype)
    if store.nvals == 0:
        return Permutation.identity(0, slot_dtype)

    primary, secondary = key_arrays(store, key)
    span = int(secondary.max()) + 1
    top = int(primary.max())

    if (top + 1) * span <= np.iinfo(np.uint64).max:
        composite = primary.astype(np.uint64) * np.uint64(span) + secondary.astype(np.uint64)
        order = np.argsort(composite, kind="quicksort")
    else:
        logger.debug("Composite key would overflow; using lexsort for %d entries", store.nvals)
        order = np.lexsort((secondary, primary))

    return Permutation(order.astype(slot_dtype, copy=False), validate=False)


def apply_in_place(store: EntryStore, permutation: Permutation, fused: bool = False) -> None:
    """
    Reorder every parallel array of ``store`` by ``permutation``.

    Default: apply to rows, reset, apply to cols, reset, then each value
    component in turn.  With ``fused`` a single cycle walk drives
    :meth:`EntryStore.swap`, moving whole entries at once.

    The permutation is left consumed in both modes.
    """
    if len(permutation) != store.nvals:
        raise InvariantViolation(
            f"Permutation length {len(permutation)} != entry count {store.nvals}"
        )

    if fused:
        permutation.apply_swaps(store.swap)
        return

    for k, array in enumerate(store.arrays()):
        if k:
            permutation.reset()
        permutation.apply(array)


def check_unique(store: EntryStore, key: SortOrder) -> None:
    """Raise if two adjacent entries of an ordered store share (row, col)."""
    if store.nvals < 2:
        return
    primary, secondary = key_arrays(store, key)
    same = (primary[1:] == primary[:-1]) & (secondary[1:] == secondary[:-1])
    if same.any():
        pos = int(np.flatnonzero(same)[0])
        raise InvariantViolation(
            f"Duplicate entry at row {store.rows[pos]}, col {store.cols[pos]}"
        )


def is_ordered(store: EntryStore, key: SortOrder) -> bool:
    """True if every adjacent pair is non‑decreasing under ``key``."""
    if store.nvals < 2:
        return True
    primary, secondary = key_arrays(store, key)
    p0, p1 = primary[:-1], primary[1:]
    s0, s1 = secondary[:-1], secondary[1:]
    return bool(np.all((p0 < p1) | ((p0 == p1) & (s0 <= s1))))
