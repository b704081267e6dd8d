from __future__ import annotations

import logging
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Sequence, TextIO

import numpy as np

from .errors import MissingInputError, SampleCountMismatchError
from .types import TableOptions

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL_S = 5.0


def read_input(path: Path) -> bytes:
    """Liest eine Eingabedatei vollständig ein."""

    if not path.is_file():
        raise MissingInputError(f"Eingabedatei fehlt: {path}")
    with path.open("rb") as f:
        return f.read()


@contextmanager
def open_output(target: str, overwrite: bool = False) -> Iterator[TextIO]:
    """'-' ist stdout. Eine vorhandene Datei wird nur mit overwrite=True ersetzt."""

    if target == "-":
        yield sys.stdout
        return

    path = Path(target)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        f = path.open("w" if overwrite else "x", encoding="utf-8", newline="\n")
    except FileExistsError:
        raise FileExistsError(f"Ausgabedatei existiert bereits: {path}") from None
    with f:
        yield f


def header_row(n_columns: int, options: TableOptions) -> list[str]:
    names = ["v"] if n_columns == 1 else [f"v{i}" for i in range(1, n_columns + 1)]
    if options.emit_time_column:
        names.insert(0, "t")
    return names


def format_value(value: float | int, precision: int | None) -> str:
    if isinstance(value, int):
        return str(value)
    if precision is None:
        return repr(value)
    return f"{value:.{precision}g}"


def check_lengths(
    time_axis: np.ndarray | None,
    columns: Sequence[np.ndarray],
    names: Sequence[str] | None = None,
) -> int:
    """Alle Spalten eines Laufs teilen sich eine Zeitachse und brauchen gleich viele Samples."""

    counts = [len(c) for c in columns]
    if time_axis is not None:
        counts.append(len(time_axis))
    if len(set(counts)) > 1:
        if names is not None:
            detail = ", ".join(f"{n}={c}" for n, c in zip(names, counts))
        else:
            detail = str(sorted(set(counts)))
        raise SampleCountMismatchError(f"Spalten unterschiedlich lang: {detail}")
    return counts[0] if counts else 0


def write_table(
    out: TextIO,
    time_axis: np.ndarray | None,
    columns: Sequence[np.ndarray],
    options: TableOptions = TableOptions(),
) -> int:
    """Schreibt Kopfzeile (optional) und eine Zeile pro Sample. Gibt die Zeilenzahl zurück."""

    if not options.emit_time_column:
        time_axis = None
    elif time_axis is None:
        raise ValueError("emit_time_column gesetzt, aber keine Zeitachse übergeben")
    count = check_lengths(time_axis, columns)
    sep = options.separator
    prec = options.precision

    if options.emit_header:
        out.write(sep.join(header_row(len(columns), options)) + "\n")

    series = [c.tolist() for c in columns]
    if time_axis is not None:
        series.insert(0, time_axis.tolist())

    t_last = time.monotonic()
    for i, row in enumerate(zip(*series)):
        out.write(sep.join(format_value(v, prec) for v in row) + "\n")
        if logger.isEnabledFor(logging.DEBUG):
            now = time.monotonic()
            if now - t_last > PROGRESS_INTERVAL_S:
                t_last = now
                logger.debug("%d%% geschrieben", 100 * i // count)
    return count
