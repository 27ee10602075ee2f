# core/types.py
from enum import Enum


class DataType(str, Enum):
    """Declared element type of a coordinate file."""
    REAL = "real"
    COMPLEX = "complex"
    INTEGER = "integer"
    BINARY = "binary"

    def __str__(self) -> str:
        return self.value

    @property
    def payload_fields(self) -> int:
        """Number of value fields following ``row col`` on a data line."""
        return _PAYLOAD_FIELDS[self]


_PAYLOAD_FIELDS = {
    DataType.REAL: 1,
    DataType.COMPLEX: 2,
    DataType.INTEGER: 1,
    DataType.BINARY: 0,
}


class SortOrder(str, Enum):
    """Canonical traversal order of the stored entries."""
    ROW_MAJOR = "row-major"
    COL_MAJOR = "col-major"

    def __str__(self) -> str:
        return self.value


class Strategy(str, Enum):
    """How a computed order is applied to the entry store."""
    CYCLE = "cycle"        # per-array cycle walk with reset between arrays
    FUSED = "fused"        # single cycle walk swapping whole entries
    SCATTER = "scatter"    # tuple buffer sort, then scatter back

    def __str__(self) -> str:
        return self.value


class CommentPolicy(str, Enum):
    """Where ``%`` comment lines may appear in a coordinate file."""
    LEADING = "leading"      # only before the header
    ANYWHERE = "anywhere"    # filtered out at every position

    def __str__(self) -> str:
        return self.value
