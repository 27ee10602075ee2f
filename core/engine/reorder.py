# core/engine/reorder.py
"""
Single entry point for reordering an entry store with a selectable strategy.
"""
from concurrent.futures import ThreadPoolExecutor

from core.engine.ordering import compute_order, apply_in_place, check_unique
from core.engine.scatter import materialize_and_scatter
from core.store.entry_store import EntryStore
from core.types import SortOrder, Strategy
from utils.logging_config import get_logger

logger = get_logger(__name__)


def reorder(
    store: EntryStore,
    key: SortOrder = SortOrder.ROW_MAJOR,
    strategy: Strategy = Strategy.CYCLE,
    workers: int = 1,
) -> EntryStore:
    """
    Sort the entries of ``store`` by ``key`` in place and return it.

    Args:
        store: Entry store; mutated in place.
        key: Row‑major or column‑major order.
        strategy: ``cycle`` (per‑array cycle walk with resets), ``fused``
            (one cycle walk over whole entries) or ``scatter`` (tuple buffer).
        workers: Pool size for the ``scatter`` strategy; the cycle
            strategies always run on the calling thread.

    Raises:
        InvariantViolation: if two entries share a (row, col) pair.
    """
    strategy = Strategy(strategy)
    key = SortOrder(key)

    if strategy is Strategy.SCATTER:
        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                materialize_and_scatter(store, key, pool=pool, workers=workers)
        else:
            materialize_and_scatter(store, key)
    else:
        if workers > 1:
            logger.debug("Strategy '%s' is sequential; ignoring workers=%d", strategy, workers)
        permutation = compute_order(store, key)
        apply_in_place(store, permutation, fused=strategy is Strategy.FUSED)

    check_unique(store, key)
    return store
