# core/numeric/precision.py
from __future__ import annotations
from dataclasses import dataclass

import numpy as np

from core.exceptions import ConfigError

_WIDTHS = (32, 64)


@dataclass(frozen=True, slots=True)
class Precision:
    """
    Numeric width selection for one pipeline run.

    * ``float_bits`` → dtype of real values and complex parts.
    * ``index_bits`` → dtype of row/col indices (unsigned), integer payloads
      and permutation slots (signed).

    Only the dtypes change; no algorithm depends on the widths.
    """
    float_bits: int = 64
    index_bits: int = 64

    def __post_init__(self):
        if self.float_bits not in _WIDTHS:
            raise ConfigError(f"Unsupported float width: {self.float_bits}")
        if self.index_bits not in _WIDTHS:
            raise ConfigError(f"Unsupported index width: {self.index_bits}")

    @property
    def float_dtype(self) -> np.dtype:
        return np.dtype(np.float32 if self.float_bits == 32 else np.float64)

    @property
    def index_dtype(self) -> np.dtype:
        return np.dtype(np.uint32 if self.index_bits == 32 else np.uint64)

    @property
    def int_dtype(self) -> np.dtype:
        return np.dtype(np.int32 if self.index_bits == 32 else np.int64)

    @property
    def max_entries(self) -> int:
        """Largest entry count a permutation of this width can hold with its mark bit free."""
        return int(np.iinfo(self.int_dtype).max)


DEFAULT_PRECISION = Precision()
