# inout/mtx_writer.py
import os
from typing import Callable, Iterator, TextIO, Union

import numpy as np

from core.exceptions import WriteError
from core.store.entry_store import EntryStore
from core.store.values import RealValues, ComplexValues, IntegerValues, PatternValues
from utils.logging_config import get_logger

logger = get_logger(__name__)


def _float_formatter(dtype: np.dtype) -> Callable[[float], str]:
    """Shortest decimal text that reads back to the same value at ``dtype`` width."""
    if dtype == np.float32:
        return lambda x: str(np.float32(x))
    return repr


def format_lines(store: EntryStore) -> Iterator[str]:
    """Yield the header and one line per entry, each terminated by a newline."""
    yield f"{store.nrows} {store.ncols} {store.nvals}\n"

    rows = store.rows.tolist()
    cols = store.cols.tolist()
    values = store.values

    if isinstance(values, RealValues):
        fmt = _float_formatter(values.data.dtype)
        for r, c, x in zip(rows, cols, values.data.tolist()):
            yield f"{r} {c} {fmt(x)}\n"
    elif isinstance(values, ComplexValues):
        fmt = _float_formatter(values.re.dtype)
        for r, c, x, y in zip(rows, cols, values.re.tolist(), values.im.tolist()):
            yield f"{r} {c} {fmt(x)} {fmt(y)}\n"
    elif isinstance(values, IntegerValues):
        for r, c, x in zip(rows, cols, values.data.tolist()):
            yield f"{r} {c} {x}\n"
    elif isinstance(values, PatternValues):
        for r, c in zip(rows, cols):
            yield f"{r} {c}\n"
    else:
        raise TypeError(f"Not a value payload: {type(values).__name__}")


def write_matrix(store: EntryStore, stream: TextIO) -> None:
    """
    Serialize ``store`` to ``stream`` in its current entry order.

    Raises:
        WriteError: If the underlying stream fails.
    """
    try:
        stream.writelines(format_lines(store))
        stream.flush()
    except OSError as e:
        raise WriteError(f"Failed writing matrix: {e}") from e


def write_matrix_file(store: EntryStore, path: Union[str, os.PathLike]) -> None:
    """
    Create ``path`` and write ``store`` to it.

    Failure to create the file propagates as ``OSError``; failures while
    writing or closing become :class:`WriteError`.
    """
    f = open(path, "w", encoding="utf-8", newline="\n")
    try:
        write_matrix(store, f)
    finally:
        try:
            f.close()
        except OSError as e:
            raise WriteError(f"Failed closing {path}: {e}") from e
    logger.debug("Wrote %d entries to %s", store.nvals, path)
