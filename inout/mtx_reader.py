# inout/mtx_reader.py
"""
Coordinate sparse‑matrix reader.

Grammar (blank lines are ignored everywhere)::

    [% comment]*
    <nrows> <ncols> <nvals>
    <row> <col> [<value fields>]      × nvals

Value fields per element type: real 1, complex 2 (re im), integer 1,
binary 0.  Lines may be ``str`` or ``bytes``; ``int`` and ``float`` accept
both, so the stream reader and the memory‑mapped reader share one parser.
"""
from __future__ import annotations
import mmap
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from core.exceptions import ParseError
from core.numeric.precision import Precision, DEFAULT_PRECISION
from core.store.entry_store import EntryStore
from core.store.values import RealValues, ComplexValues, IntegerValues, PatternValues
from core.types import CommentPolicy, DataType
from utils.logging_config import get_logger
from utils.partition import partition

logger = get_logger(__name__)

Line = Union[str, bytes]

_INITIAL_CAPACITY = 1 << 16


def _text(line: Line) -> str:
    return line.decode("utf-8", errors="replace") if isinstance(line, bytes) else line


def _is_comment(line: Line) -> bool:
    return line[:1] in ("%", b"%")


def _is_blank(line: Line) -> bool:
    return not line.strip()


def _parse_header(line: Line, line_number: int) -> Tuple[int, int, int]:
    fields = line.split()
    if len(fields) != 3:
        raise ParseError(f"header needs 3 fields 'nrows ncols nvals', got {len(fields)}",
                         line_number, _text(line))
    try:
        nrows, ncols, nvals = (int(f) for f in fields)
    except ValueError:
        raise ParseError("header fields must be integers", line_number, _text(line)) from None
    if min(nrows, ncols, nvals) < 0:
        raise ParseError("header fields must be non-negative", line_number, _text(line))
    return nrows, ncols, nvals


def _check_capacity(nvals: int, precision: Precision, line_number: int, line: Line) -> None:
    if nvals > precision.max_entries:
        raise ParseError(f"nvals {nvals} exceeds the {precision.index_bits}-bit limit "
                         f"of {precision.max_entries} entries", line_number, _text(line))


def _resized(store: EntryStore, size: int, precision: Precision) -> EntryStore:
    """Copy of ``store`` with room for ``size`` entries; the filled prefix is kept."""
    grown = EntryStore.allocate(store.nrows, store.ncols, size, store.data_type, precision)
    keep = min(size, store.nvals)
    for src, dst in zip(store.arrays(), grown.arrays()):
        dst[:keep] = src[:keep]
    return grown


class EntryParser:
    """
    Parses data lines straight into the pre‑sized arrays of an entry store.

    ``parse_range`` only touches positions ``[start, start + len(lines))`` so
    several parsers may fill disjoint ranges of the same store concurrently.
    """

    def __init__(self, store: EntryStore):
        self.store = store
        self._index_max = int(np.iinfo(store.rows.dtype).max)
        values = store.values
        if isinstance(values, IntegerValues):
            info = np.iinfo(values.data.dtype)
            self._int_range = (int(info.min), int(info.max))
        self._width = 2 + store.data_type.payload_fields

    def _index(self, field: Line, what: str, line_number: int, line: Line) -> int:
        try:
            v = int(field)
        except ValueError:
            raise ParseError(f"{what} index {_text(field)!r} is not an integer",
                             line_number, _text(line)) from None
        if v < 0 or v > self._index_max:
            raise ParseError(f"{what} index {v} out of range", line_number, _text(line))
        return v

    def _real(self, field: Line, line_number: int, line: Line) -> float:
        try:
            return float(field)
        except ValueError:
            raise ParseError(f"value {_text(field)!r} is not a real number",
                             line_number, _text(line)) from None

    def _integer(self, field: Line, line_number: int, line: Line) -> int:
        try:
            v = int(field)
        except ValueError:
            raise ParseError(f"value {_text(field)!r} is not an integer",
                             line_number, _text(line)) from None
        lo, hi = self._int_range
        if not lo <= v <= hi:
            raise ParseError(f"integer value {v} out of range", line_number, _text(line))
        return v

    def parse(self, pos: int, line: Line, line_number: int) -> None:
        fields = line.split()
        if len(fields) < self._width:
            raise ParseError(f"expected {self._width} fields, got {len(fields)}",
                             line_number, _text(line))
        if len(fields) > self._width:
            raise ParseError(f"unexpected trailing fields (expected {self._width})",
                             line_number, _text(line))

        store = self.store
        store.rows[pos] = self._index(fields[0], "row", line_number, line)
        store.cols[pos] = self._index(fields[1], "column", line_number, line)

        values = store.values
        if isinstance(values, RealValues):
            values.data[pos] = self._real(fields[2], line_number, line)
        elif isinstance(values, ComplexValues):
            values.re[pos] = self._real(fields[2], line_number, line)
            values.im[pos] = self._real(fields[3], line_number, line)
        elif isinstance(values, IntegerValues):
            values.data[pos] = self._integer(fields[2], line_number, line)
        elif isinstance(values, PatternValues):
            pass
        else:
            raise TypeError(f"Not a value payload: {type(values).__name__}")

    def parse_range(self, start: int, lines: Sequence[Line], line_numbers: Sequence[int]) -> None:
        for offset, (line, line_number) in enumerate(zip(lines, line_numbers)):
            self.parse(start + offset, line, line_number)


def _skip(line: Line, line_number: int, comments: CommentPolicy) -> bool:
    """True for lines after the header that carry no entry."""
    if _is_blank(line):
        return True
    if _is_comment(line):
        if comments is CommentPolicy.ANYWHERE:
            return True
        raise ParseError("comment after header", line_number, _text(line))
    return False


def _find_header(numbered: Iterator[Tuple[int, Line]]) -> Optional[Tuple[int, Line]]:
    for line_number, line in numbered:
        if _is_blank(line) or _is_comment(line):
            continue
        return line_number, line
    return None


def read_matrix(
    stream: Iterable[Line],
    data_type: DataType = DataType.REAL,
    precision: Precision = DEFAULT_PRECISION,
    comments: CommentPolicy = CommentPolicy.LEADING,
) -> EntryStore:
    """
    Read a coordinate matrix from a text or binary stream.

    Returns an empty 0×0 store when the stream holds no header.

    Raises:
        ParseError: On a malformed header or data line, or when the number of
            data lines differs from ``nvals``, or when ``nvals`` is more than the
            index width can address.
    """
    data_type = DataType(data_type)
    comments = CommentPolicy(comments)
    numbered = enumerate(stream, start=1)

    header = _find_header(numbered)
    if header is None:
        logger.debug("No header found; returning empty %s matrix", data_type)
        return EntryStore.empty(data_type, precision)

    header_number, header_line = header
    nrows, ncols, nvals = _parse_header(header_line, header_number)
    _check_capacity(nvals, precision, header_number, header_line)
    # nvals is only trusted once that many lines have arrived
    store = EntryStore.allocate(nrows, ncols, min(nvals, _INITIAL_CAPACITY), data_type, precision)
    parser = EntryParser(store)

    pos = 0
    last_number = header_number
    for line_number, line in numbered:
        last_number = line_number
        if _skip(line, line_number, comments):
            continue
        if pos >= nvals:
            raise ParseError(f"more than {nvals} data lines", line_number, _text(line))
        if pos == store.nvals:
            store = _resized(store, min(2 * store.nvals, nvals), precision)
            parser = EntryParser(store)
        parser.parse(pos, line, line_number)
        pos += 1

    if pos < nvals:
        raise ParseError(f"expected {nvals} data lines, found {pos}", last_number)
    return store


def read_matrix_file(
    path: Union[str, os.PathLike],
    data_type: DataType = DataType.REAL,
    precision: Precision = DEFAULT_PRECISION,
    comments: CommentPolicy = CommentPolicy.LEADING,
) -> EntryStore:
    """Open ``path`` and read it with :func:`read_matrix`."""
    with open(path, "rb") as f:
        return read_matrix(f, data_type, precision, comments)


def _split_records(buf: mmap.mmap) -> Iterator[Tuple[int, bytes]]:
    """Yield ``(line_number, line)`` for every line of ``buf``, newline stripped."""
    size = len(buf)
    start, line_number = 0, 0
    while start < size:
        end = buf.find(b"\n", start)
        if end == -1:
            end = size
        line_number += 1
        yield line_number, buf[start:end]
        start = end + 1


def read_buffer(
    buf: mmap.mmap,
    data_type: DataType = DataType.REAL,
    precision: Precision = DEFAULT_PRECISION,
    comments: CommentPolicy = CommentPolicy.LEADING,
    workers: int = 1,
) -> EntryStore:
    """
    Read a coordinate matrix from a fully resident byte region.

    Line splitting, comment skipping and header extraction run sequentially;
    data lines are then parsed by ``workers`` threads, each filling a disjoint
    range of the pre‑sized store.  The result equals :func:`read_matrix` on
    the same bytes.
    """
    data_type = DataType(data_type)
    comments = CommentPolicy(comments)
    numbered = _split_records(buf)

    header = _find_header(numbered)
    if header is None:
        return EntryStore.empty(data_type, precision)

    header_number, header_line = header
    nrows, ncols, nvals = _parse_header(header_line, header_number)
    _check_capacity(nvals, precision, header_number, header_line)

    records: List[bytes] = []
    numbers: List[int] = []
    last_number = header_number
    for line_number, line in numbered:
        last_number = line_number
        if _skip(line, line_number, comments):
            continue
        if len(records) >= nvals:
            raise ParseError(f"more than {nvals} data lines", line_number, _text(line))
        records.append(line)
        numbers.append(line_number)

    if len(records) < nvals:
        raise ParseError(f"expected {nvals} data lines, found {len(records)}", last_number)

    store = EntryStore.allocate(nrows, ncols, nvals, data_type, precision)
    parser = EntryParser(store)
    ranges = partition(nvals, workers)

    if workers <= 1 or len(ranges) <= 1:
        parser.parse_range(0, records, numbers)
        return store

    logger.debug("Parsing %d data lines in %d ranges", nvals, len(ranges))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(parser.parse_range, a, records[a:b], numbers[a:b])
                   for a, b in ranges]
        # futures are in line order, so the first failure reported is the earliest one
        for future in futures:
            future.result()
    return store


def read_matrix_mmap(
    path: Union[str, os.PathLike],
    data_type: DataType = DataType.REAL,
    precision: Precision = DEFAULT_PRECISION,
    comments: CommentPolicy = CommentPolicy.LEADING,
    workers: int = 1,
) -> EntryStore:
    """Memory‑map ``path`` and read it with :func:`read_buffer`."""
    with open(path, "rb") as f:
        if os.fstat(f.fileno()).st_size == 0:
            # zero-length files cannot be mapped
            return EntryStore.empty(DataType(data_type), precision)
        with mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ) as buf:
            return read_buffer(buf, data_type, precision, comments, workers)
