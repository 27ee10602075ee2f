# core/store/entry_store.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Tuple

import numpy as np
import scipy.sparse as sp

from core.exceptions import InvariantViolation
from core.numeric.precision import Precision, DEFAULT_PRECISION
from core.store.values import (
    Values, RealValues, ComplexValues, IntegerValues, PatternValues,
    allocate_values, data_type_of,
)
from core.types import DataType


@dataclass
class EntryStore:
    """
    In‑memory coordinate matrix held as parallel arrays.

    Attributes:
        nrows, ncols: Logical matrix dimensions from the header.
        nvals: Number of stored entries.
        rows, cols: Unsigned index arrays of length ``nvals``, kept exactly as
            read (0‑ or 1‑based).
        values: The payload variant, fixed for the life of the store.
    """
    nrows: int
    ncols: int
    nvals: int
    rows: np.ndarray
    cols: np.ndarray
    values: Values

    def __post_init__(self):
        self.validate()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def empty(cls, data_type: DataType, precision: Precision = DEFAULT_PRECISION) -> "EntryStore":
        """A 0×0 store with no entries and an empty payload of ``data_type``."""
        return cls.allocate(0, 0, 0, data_type, precision)

    @classmethod
    def allocate(cls, nrows: int, ncols: int, nvals: int, data_type: DataType,
                 precision: Precision = DEFAULT_PRECISION) -> "EntryStore":
        """Pre‑size every array for ``nvals`` entries; contents are undefined until filled."""
        return cls(
            nrows=nrows,
            ncols=ncols,
            nvals=nvals,
            rows=np.empty(nvals, dtype=precision.index_dtype),
            cols=np.empty(nvals, dtype=precision.index_dtype),
            values=allocate_values(data_type, nvals, precision),
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def data_type(self) -> DataType:
        return data_type_of(self.values)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.nrows, self.ncols

    def arrays(self) -> List[np.ndarray]:
        """Every parallel array: rows, cols, then the payload components."""
        return [self.rows, self.cols, *self.values.components()]

    def entry(self, i: int) -> Tuple[Any, Any, Any]:
        """(row, col, payload) at position ``i``; payload is None for patterns."""
        return self.rows[i], self.cols[i], self.values.at(i)

    def validate(self) -> None:
        """Check that every parallel array holds exactly ``nvals`` entries."""
        for arr in self.arrays():
            if arr.ndim != 1 or arr.shape[0] != self.nvals:
                raise InvariantViolation(
                    f"Array of shape {arr.shape} does not match nvals={self.nvals}"
                )

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def swap(self, i: int, j: int) -> None:
        """Exchange entries ``i`` and ``j`` across rows, cols and all value components."""
        for arr in self.arrays():
            arr[i], arr[j] = arr[j], arr[i]

    # ------------------------------------------------------------------
    # Interop
    # ------------------------------------------------------------------
    def to_coo(self, one_based: bool = False) -> sp.coo_matrix:
        """
        Convert to a scipy COO matrix without touching the store.

        Complex payloads become a complex dtype, patterns become ones and
        integer payloads keep their integer dtype.
        """
        rows = self.rows.astype(np.int64)
        cols = self.cols.astype(np.int64)
        if one_based:
            rows -= 1
            cols -= 1

        values = self.values
        if isinstance(values, RealValues):
            data = values.data.copy()
        elif isinstance(values, ComplexValues):
            data = values.re + 1j * values.im
        elif isinstance(values, IntegerValues):
            data = values.data.copy()
        elif isinstance(values, PatternValues):
            data = np.ones(self.nvals, dtype=np.int8)
        else:
            raise TypeError(f"Not a value payload: {type(values).__name__}")

        return sp.coo_matrix((data, (rows, cols)), shape=(self.nrows, self.ncols))

    def __repr__(self) -> str:
        return (f"EntryStore(shape={self.shape}, nvals={self.nvals}, "
                f"type={self.data_type.value}, index={self.rows.dtype})")
