# core/store/values.py
"""
Value payloads of an entry store.

The set of shapes is closed: every reader, engine and writer operation
dispatches on exactly these four classes.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Tuple, Union

import numpy as np

from core.numeric.precision import Precision, DEFAULT_PRECISION
from core.types import DataType


@dataclass
class RealValues:
    data: np.ndarray                    # float32 | float64

    def components(self) -> Tuple[np.ndarray, ...]:
        return (self.data,)

    def at(self, i: int) -> float:
        return self.data[i]


@dataclass
class ComplexValues:
    re: np.ndarray                      # real parts
    im: np.ndarray                      # imaginary parts, aligned with re

    def components(self) -> Tuple[np.ndarray, ...]:
        return (self.re, self.im)

    def at(self, i: int) -> Tuple[Any, Any]:
        return self.re[i], self.im[i]


@dataclass
class IntegerValues:
    data: np.ndarray                    # int32 | int64

    def components(self) -> Tuple[np.ndarray, ...]:
        return (self.data,)

    def at(self, i: int) -> int:
        return self.data[i]


@dataclass
class PatternValues:
    """Structure only; entries carry no numeric payload."""

    def components(self) -> Tuple[np.ndarray, ...]:
        return ()

    def at(self, i: int) -> None:
        return None


Values = Union[RealValues, ComplexValues, IntegerValues, PatternValues]


def allocate_values(data_type: DataType, nvals: int,
                    precision: Precision = DEFAULT_PRECISION) -> Values:
    """Pre-size the payload arrays for ``nvals`` entries of ``data_type``."""
    if data_type is DataType.REAL:
        return RealValues(np.empty(nvals, dtype=precision.float_dtype))
    if data_type is DataType.COMPLEX:
        return ComplexValues(np.empty(nvals, dtype=precision.float_dtype),
                             np.empty(nvals, dtype=precision.float_dtype))
    if data_type is DataType.INTEGER:
        return IntegerValues(np.empty(nvals, dtype=precision.int_dtype))
    if data_type is DataType.BINARY:
        return PatternValues()
    raise ValueError(f"Unknown data type: {data_type!r}")


def data_type_of(values: Values) -> DataType:
    if isinstance(values, RealValues):
        return DataType.REAL
    if isinstance(values, ComplexValues):
        return DataType.COMPLEX
    if isinstance(values, IntegerValues):
        return DataType.INTEGER
    if isinstance(values, PatternValues):
        return DataType.BINARY
    raise TypeError(f"Not a value payload: {type(values).__name__}")
