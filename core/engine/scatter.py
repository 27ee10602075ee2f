# core/engine/scatter.py
"""
Materialize‑and‑scatter reordering.

The entry store is copied into one structured array of tuples
``(row, col, v0[, v1])``, the tuples are sorted by the key fields, and the
fields are copied back into the store.  This costs O(n) extra memory but needs
no permutation, no reset passes, and splits cleanly across workers:

1. each worker sorts a disjoint run of the buffer,
2. adjacent runs are merged pairwise, one merge per worker, until one run is left,
3. each worker copies a disjoint slice of every field back into the store.

Every phase waits for all of its futures before the next one starts.
"""
from __future__ import annotations
from concurrent.futures import Executor
from typing import List, Optional, Sequence, Tuple

import numpy as np

from core.store.entry_store import EntryStore
from core.types import SortOrder
from utils.logging_config import get_logger
from utils.partition import partition

logger = get_logger(__name__)

_KEY_FIELDS = {
    SortOrder.ROW_MAJOR: ("row", "col"),
    SortOrder.COL_MAJOR: ("col", "row"),
}


def _field_names(store: EntryStore) -> List[str]:
    return ["row", "col"] + [f"v{k}" for k in range(len(store.values.components()))]


def materialize(store: EntryStore) -> np.ndarray:
    """Copy the store into a structured tuple buffer."""
    names = _field_names(store)
    arrays = store.arrays()
    dtype = np.dtype([(name, arr.dtype) for name, arr in zip(names, arrays)])
    buf = np.empty(store.nvals, dtype=dtype)
    for name, arr in zip(names, arrays):
        buf[name] = arr
    return buf


def _sort_run(buf: np.ndarray, start: int, stop: int, keys: Sequence[str]) -> None:
    buf[start:stop].sort(order=list(keys))


def _merge_runs(buf: np.ndarray, start: int, mid: int, stop: int, keys: Sequence[str]) -> None:
    # [start, mid) and [mid, stop) are each sorted; the stable sort finds both runs
    buf[start:stop].sort(order=list(keys), kind="stable")


def _scatter(buf: np.ndarray, store: EntryStore, start: int, stop: int) -> None:
    for name, arr in zip(_field_names(store), store.arrays()):
        arr[start:stop] = buf[name][start:stop]


def _wait(futures) -> None:
    for f in futures:
        f.result()


def materialize_and_scatter(
    store: EntryStore,
    key: SortOrder,
    pool: Optional[Executor] = None,
    workers: int = 1,
) -> None:
    """
    Reorder ``store`` in place by sorting a tuple buffer.

    Args:
        store: Entry store to reorder.
        key: Ordering key.
        pool: Executor for the parallel phases.  ``None`` runs sequentially.
        workers: Number of disjoint runs the buffer is split into when a pool
            is given.
    """
    if store.nvals == 0:
        return

    keys = _KEY_FIELDS[key]
    buf = materialize(store)

    if pool is None or workers <= 1:
        buf.sort(order=list(keys))
        _scatter(buf, store, 0, store.nvals)
        return

    runs = partition(store.nvals, workers)
    logger.debug("Sorting %d entries in %d runs", store.nvals, len(runs))
    _wait([pool.submit(_sort_run, buf, a, b, keys) for a, b in runs])

    while len(runs) > 1:
        merged: List[Tuple[int, int]] = []
        futures = []
        for k in range(0, len(runs) - 1, 2):
            (a, m), (_, b) = runs[k], runs[k + 1]
            futures.append(pool.submit(_merge_runs, buf, a, m, b, keys))
            merged.append((a, b))
        if len(runs) % 2:
            merged.append(runs[-1])
        _wait(futures)
        runs = merged
        logger.debug("Merge round done, %d runs left", len(runs))

    _wait([pool.submit(_scatter, buf, store, a, b)
           for a, b in partition(store.nvals, workers)])
