# core/engine/permutation.py
"""
Index permutations and their in‑place application.

A permutation ``p`` reorders a sequence so that position ``i`` receives the
element previously at ``p[i]``.  Application follows each cycle of ``p`` and
swaps along it; the sign bit of every visited slot is flipped instead of
keeping a separate visited set, so the only extra memory is ``p`` itself.

Preconditions
-------------
* ``len(p)`` must fit in the signed range of the slot dtype
  (``2**31 - 1`` for int32, ``2**63 - 1`` for int64); the sign bit is the mark.
* After :meth:`Permutation.apply` every slot is marked and the permutation is
  *consumed*.  Call :meth:`Permutation.reset` before applying it again.
"""
from __future__ import annotations
from typing import Callable

import numpy as np

from core.exceptions import InvariantViolation
from utils.logging_config import get_logger

logger = get_logger(__name__)

SwapFn = Callable[[int, int], None]


def signed_dtype_for(index_dtype: np.dtype) -> np.dtype:
    """Signed slot dtype matching the width of an unsigned index dtype."""
    return np.dtype(np.int32 if np.dtype(index_dtype).itemsize == 4 else np.int64)


def check_capacity(nvals: int, dtype: np.dtype) -> None:
    """Fail if ``nvals`` entries cannot be indexed with the mark bit left free."""
    limit = int(np.iinfo(dtype).max)
    if nvals > limit:
        raise InvariantViolation(
            f"{nvals} entries exceed the {np.dtype(dtype).name} permutation limit of {limit}"
        )


class Permutation:
    """
    A bijection on ``[0, n)`` stored in a signed integer array.

    The object has two states: *ready* (no slot marked) and *consumed*
    (every slot marked).  ``apply``/``apply_swaps`` move ready → consumed;
    ``reset`` moves consumed → ready.
    """

    def __init__(self, indices: np.ndarray, validate: bool = True):
        indices = np.asarray(indices)
        if indices.ndim != 1 or indices.dtype.kind != "i":
            raise InvariantViolation("Permutation must be a 1-D signed integer array")
        check_capacity(indices.shape[0], indices.dtype)
        if validate:
            _check_bijection(indices)
        self._idx = indices
        self._mask = int(np.iinfo(indices.dtype).min)    # sign bit only
        self._consumed = False

    @classmethod
    def identity(cls, n: int, dtype=np.int64) -> "Permutation":
        check_capacity(n, np.dtype(dtype))
        return cls(np.arange(n, dtype=dtype), validate=False)

    def __len__(self) -> int:
        return self._idx.shape[0]

    @property
    def consumed(self) -> bool:
        return self._consumed

    @property
    def dtype(self) -> np.dtype:
        return self._idx.dtype

    def to_array(self) -> np.ndarray:
        """Copy of the index values; only meaningful in the ready state."""
        self._require_ready()
        return self._idx.copy()

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------
    def apply(self, array: np.ndarray) -> None:
        """Reorder ``array`` in place; leaves the permutation consumed."""
        if array.shape[0] != len(self):
            raise InvariantViolation(
                f"Permutation of length {len(self)} applied to array of length {array.shape[0]}"
            )

        def swap(a: int, b: int) -> None:
            array[a], array[b] = array[b], array[a]

        self.apply_swaps(swap)

    def apply_swaps(self, swap: SwapFn) -> None:
        """
        Walk every cycle, calling ``swap(j, p[j])`` along it.

        ``swap`` must exchange whatever positions ``j`` and ``p[j]`` denote in
        all of the caller's parallel sequences at once.
        """
        self._require_ready()
        perm = self._idx
        mask = self._mask

        for i in range(len(self)):
            i_idx = int(perm[i])
            if i_idx < 0:
                continue

            j, j_idx = i, i_idx
            # the walk closes when it points back at its start
            while j_idx != i:
                if j_idx < 0:
                    raise InvariantViolation(f"Slot {j} re-enters a visited cycle")
                perm[j] = j_idx ^ mask
                swap(j, j_idx)
                j = j_idx
                j_idx = int(perm[j])
            perm[j] = j_idx ^ mask

        self._consumed = True

    def reset(self) -> None:
        """Clear the mark bit of every slot; no data moves."""
        if not self._consumed:
            raise InvariantViolation("Permutation reset while not consumed")
        np.bitwise_xor(self._idx, self._idx.dtype.type(self._mask), out=self._idx)
        self._consumed = False

    def _require_ready(self) -> None:
        if self._consumed:
            raise InvariantViolation("Permutation already consumed; call reset() first")

    def __repr__(self) -> str:
        state = "consumed" if self._consumed else "ready"
        return f"Permutation(n={len(self)}, dtype={self.dtype}, {state})"


def _check_bijection(indices: np.ndarray) -> None:
    n = indices.shape[0]
    if n == 0:
        return
    if indices.min() < 0 or indices.max() >= n:
        raise InvariantViolation(f"Permutation values must lie in [0, {n})")
    counts = np.bincount(indices.astype(np.int64), minlength=n)
    if not np.all(counts == 1):
        dup = int(np.flatnonzero(counts > 1)[0])
        raise InvariantViolation(f"Permutation repeats index {dup}")
