import io
import numpy as np
import pytest
from core.numeric.precision import Precision, DEFAULT_PRECISION
from core.store.entry_store import EntryStore
from core.store.values import RealValues, ComplexValues, IntegerValues
from core.types import DataType

SCENARIO_TEXT = "2 2 3\n1 1 5.0\n2 2 3.0\n1 2 4.0\n"


@pytest.fixture
def scenario_text():
    return SCENARIO_TEXT


@pytest.fixture
def scenario_file(tmp_path):
    path = tmp_path / "scenario.mtx"
    path.write_text("%%MatrixMarket matrix coordinate real general\n% scenario\n" + SCENARIO_TEXT)
    return path


def build_store(nvals: int, data_type: DataType, nrows: int = 60, ncols: int = 45,
                seed: int = 0, precision: Precision = DEFAULT_PRECISION) -> EntryStore:
    """Random store with distinct 1-based (row, col) pairs in shuffled order."""
    rng = np.random.default_rng(seed)
    flat = rng.choice(nrows * ncols, size=nvals, replace=False)
    store = EntryStore.allocate(nrows, ncols, nvals, data_type, precision)
    store.rows[:] = flat // ncols + 1
    store.cols[:] = flat % ncols + 1
    values = store.values
    if isinstance(values, RealValues):
        values.data[:] = rng.standard_normal(nvals)
    elif isinstance(values, ComplexValues):
        # tag each entry with its original position
        values.re[:] = np.arange(nvals)
        values.im[:] = -np.arange(nvals)
    elif isinstance(values, IntegerValues):
        values.data[:] = rng.integers(-1000, 1000, size=nvals)
    return store


@pytest.fixture
def make_store():
    return build_store


@pytest.fixture
def make_file(tmp_path):
    """Write a store to a coordinate file and return its path."""
    from inout.mtx_writer import write_matrix

    def _make(store: EntryStore, name: str = "matrix.mtx", header_comment: str = "% generated\n"):
        buf = io.StringIO()
        write_matrix(store, buf)
        path = tmp_path / name
        path.write_text(header_comment + buf.getvalue())
        return path

    return _make


def assert_stores_equal(a: EntryStore, b: EntryStore) -> None:
    assert (a.nrows, a.ncols, a.nvals) == (b.nrows, b.ncols, b.nvals)
    assert a.data_type == b.data_type
    arrays_a, arrays_b = a.arrays(), b.arrays()
    assert len(arrays_a) == len(arrays_b)
    for x, y in zip(arrays_a, arrays_b):
        assert x.dtype == y.dtype
        assert x.tobytes() == y.tobytes()
