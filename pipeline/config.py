# pipeline/config.py
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from core.numeric.precision import Precision
from core.types import CommentPolicy, DataType, SortOrder, Strategy


@dataclass(frozen=True)
class PipelineConfig:
    """
    Effective settings for one read → reorder → write run.

    Attributes:
        data_type: Declared element type of the input.
        order: Target entry order.
        strategy: How the order is applied (cycle, fused or scatter).
        workers: Pool size; > 1 enables the parallel reader and scatter phases.
        use_mmap: Read through a memory map instead of a buffered stream.
        comments: Where ``%`` lines are accepted.
        precision: Float and index widths.
        log_file: Optional extra log destination.
    """
    data_type: DataType = DataType.REAL
    order: SortOrder = SortOrder.ROW_MAJOR
    strategy: Strategy = Strategy.CYCLE
    workers: int = 1
    use_mmap: bool = False
    comments: CommentPolicy = CommentPolicy.LEADING
    precision: Precision = field(default_factory=Precision)
    log_file: Optional[str] = None

    @property
    def parallel(self) -> bool:
        return self.workers > 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineConfig":
        """Build from a validated config document; missing keys keep their defaults."""
        return cls().merged(data)

    def merged(self, overrides: Dict[str, Any]) -> "PipelineConfig":
        """
        Copy with the non‑None entries of ``overrides`` applied.

        Keys follow the YAML layout (``reader``, ``precision: {float, index}``).
        """
        changes: Dict[str, Any] = {}
        if overrides.get("data_type") is not None:
            changes["data_type"] = DataType(overrides["data_type"])
        if overrides.get("order") is not None:
            changes["order"] = SortOrder(overrides["order"])
        if overrides.get("strategy") is not None:
            changes["strategy"] = Strategy(overrides["strategy"])
        if overrides.get("workers") is not None:
            changes["workers"] = int(overrides["workers"])
        if overrides.get("reader") is not None:
            changes["use_mmap"] = overrides["reader"] == "mmap"
        if overrides.get("comments") is not None:
            changes["comments"] = CommentPolicy(overrides["comments"])
        if overrides.get("log_file") is not None:
            changes["log_file"] = overrides["log_file"]

        prec = overrides.get("precision") or {}
        if prec.get("float") is not None or prec.get("index") is not None:
            changes["precision"] = Precision(
                float_bits=prec.get("float") or self.precision.float_bits,
                index_bits=prec.get("index") or self.precision.index_bits,
            )
        return replace(self, **changes)
