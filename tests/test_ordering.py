import numpy as np
import pytest
from conftest import assert_stores_equal
from core.engine.ordering import apply_in_place, compute_order, check_unique, is_ordered
from core.engine.permutation import Permutation
from core.engine.reorder import reorder
from core.exceptions import InvariantViolation
from core.numeric.precision import Precision
from core.store.entry_store import EntryStore
from core.store.values import RealValues
from core.types import DataType, SortOrder, Strategy

ALL_TYPES = list(DataType)
ALL_ORDERS = list(SortOrder)


def _clone(store: EntryStore) -> EntryStore:
    import copy
    return copy.deepcopy(store)


@pytest.mark.parametrize("order", ALL_ORDERS)
def test_compute_order_is_bijection(make_store, order):
    store = make_store(400, DataType.REAL)
    perm = compute_order(store, order)
    idx = perm.to_array()
    assert len(perm) == store.nvals
    np.testing.assert_array_equal(np.sort(idx), np.arange(store.nvals))


def test_compute_order_matches_lexsort(make_store):
    store = make_store(300, DataType.BINARY)
    expected = np.lexsort((store.cols, store.rows))
    np.testing.assert_array_equal(compute_order(store, SortOrder.ROW_MAJOR).to_array(), expected)
    expected = np.lexsort((store.rows, store.cols))
    np.testing.assert_array_equal(compute_order(store, SortOrder.COL_MAJOR).to_array(), expected)


@pytest.mark.parametrize("data_type", ALL_TYPES)
@pytest.mark.parametrize("order", ALL_ORDERS)
def test_apply_in_place_sorts(make_store, data_type, order):
    store = make_store(500, data_type, seed=3)
    perm = compute_order(store, order)
    apply_in_place(store, perm)
    assert perm.consumed
    assert is_ordered(store, order)


@pytest.mark.parametrize("data_type", ALL_TYPES)
def test_payload_travels_with_coordinates(make_store, data_type):
    store = make_store(200, data_type, seed=11)
    before = {(int(r), int(c)): store.entry(i)[2] for i, (r, c) in enumerate(zip(store.rows, store.cols))}
    reorder(store, SortOrder.COL_MAJOR)
    after = {(int(r), int(c)): store.entry(i)[2] for i, (r, c) in enumerate(zip(store.rows, store.cols))}
    assert before == after


@pytest.mark.parametrize("strategy", list(Strategy))
@pytest.mark.parametrize("order", ALL_ORDERS)
def test_complex_components_stay_paired(make_store, strategy, order):
    store = make_store(300, DataType.COMPLEX, seed=5)
    rows0, cols0 = store.rows.copy(), store.cols.copy()
    reorder(store, order, strategy, workers=3)
    re, im = store.values.re, store.values.im
    np.testing.assert_array_equal(im, -re)
    origin = re.astype(np.int64)
    np.testing.assert_array_equal(store.rows, rows0[origin])
    np.testing.assert_array_equal(store.cols, cols0[origin])


@pytest.mark.parametrize("data_type", ALL_TYPES)
@pytest.mark.parametrize("order", ALL_ORDERS)
def test_strategies_equivalent(make_store, data_type, order):
    base = make_store(700, data_type, seed=21)
    results = {}
    for strategy, workers in [(Strategy.CYCLE, 1), (Strategy.FUSED, 1),
                              (Strategy.SCATTER, 1), (Strategy.SCATTER, 4)]:
        store = _clone(base)
        reorder(store, order, strategy, workers=workers)
        results[(strategy, workers)] = store
    reference = results[(Strategy.CYCLE, 1)]
    for store in results.values():
        assert_stores_equal(store, reference)


def test_pattern_only_moves_coordinates(make_store):
    store = make_store(100, DataType.BINARY)
    reorder(store, SortOrder.ROW_MAJOR, Strategy.SCATTER)
    assert len(store.arrays()) == 2
    assert is_ordered(store, SortOrder.ROW_MAJOR)


def test_int32_precision_uses_int32_permutation(make_store):
    store = make_store(50, DataType.INTEGER, precision=Precision(32, 32))
    perm = compute_order(store, SortOrder.ROW_MAJOR)
    assert perm.dtype == np.int32
    apply_in_place(store, perm)
    assert is_ordered(store, SortOrder.ROW_MAJOR)


def test_large_indices_fall_back_to_lexsort():
    rows = np.array([2**63, 1, 2**63, 7], dtype=np.uint64)
    cols = np.array([2**62, 5, 3, 2**63], dtype=np.uint64)
    store = EntryStore(2**64 - 1, 2**64 - 1, 4, rows, cols, RealValues(np.array([0.0, 1.0, 2.0, 3.0])))
    reorder(store, SortOrder.ROW_MAJOR)
    np.testing.assert_array_equal(store.values.data, [1.0, 3.0, 2.0, 0.0])


@pytest.mark.parametrize("strategy", list(Strategy))
def test_duplicate_entries_rejected(strategy):
    store = EntryStore(
        3, 3, 3,
        np.array([2, 1, 2], dtype=np.uint64),
        np.array([2, 1, 2], dtype=np.uint64),
        RealValues(np.array([1.0, 2.0, 3.0])),
    )
    with pytest.raises(InvariantViolation):
        reorder(store, SortOrder.ROW_MAJOR, strategy)


def test_check_unique_passes_on_distinct(make_store):
    store = make_store(100, DataType.REAL)
    reorder(store, SortOrder.ROW_MAJOR)
    check_unique(store, SortOrder.ROW_MAJOR)


def test_apply_in_place_length_mismatch(make_store):
    store = make_store(10, DataType.REAL)
    with pytest.raises(InvariantViolation):
        apply_in_place(store, Permutation.identity(9))


def test_fused_leaves_permutation_consumed(make_store):
    store = make_store(64, DataType.COMPLEX)
    perm = compute_order(store, SortOrder.COL_MAJOR)
    apply_in_place(store, perm, fused=True)
    assert perm.consumed
    assert is_ordered(store, SortOrder.COL_MAJOR)


@pytest.mark.parametrize("strategy", list(Strategy))
def test_empty_store_reorders(strategy):
    store = EntryStore.empty(DataType.REAL)
    reorder(store, SortOrder.ROW_MAJOR, strategy, workers=2)
    assert store.nvals == 0


def test_reorder_accepts_string_options(make_store):
    store = make_store(40, DataType.REAL)
    reorder(store, "col-major", "scatter")
    assert is_ordered(store, SortOrder.COL_MAJOR)
