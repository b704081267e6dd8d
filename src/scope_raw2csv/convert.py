from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import numpy as np

from . import sds, tds
from .chunks import ChunkReassembler, capture_file
from .errors import MissingInputError
from .io import check_lengths, open_output, read_input, write_table
from .stats import summarize
from .types import Channel, SdsCalibration, SdsPreamble, TableOptions, TdsPreamble, TransferFraming

logger = logging.getLogger(__name__)


def check_sample_counts(channels: Sequence[Channel]) -> int:
    if not channels:
        raise MissingInputError("Keine Kurvendaten angegeben")
    return check_lengths(None, [ch.samples.codes for ch in channels], [ch.name for ch in channels])


def load_sds_channels(
    preamble: SdsPreamble,
    data_paths: Sequence[Path],
    framing: TransferFraming = TransferFraming(),
) -> list[Channel]:
    channels: list[Channel] = []
    for path in data_paths:
        logger.info("Lese Kurvendaten: %s", path)
        samples = sds.decode_samples(read_input(path), preamble, framing)
        if preamble.wave_array_count and len(samples) != preamble.wave_array_count:
            logger.warning(
                "%s: %d Samples, Preamble meldet %d", path, len(samples), preamble.wave_array_count
            )
        channels.append(Channel(name=path.stem, samples=samples, preamble=preamble))
    check_sample_counts(channels)
    return channels


def sds_table(
    preamble: SdsPreamble,
    channels: Sequence[Channel],
    options: TableOptions = TableOptions(),
    calibration: SdsCalibration = SdsCalibration(),
) -> tuple[np.ndarray | None, list[np.ndarray]]:
    count = check_sample_counts(channels)
    time_axis = sds.times(count, preamble) if options.emit_time_column else None
    if options.emit_calibrated_voltage:
        columns = [sds.voltages(ch.samples, preamble, calibration) for ch in channels]
    else:
        columns = [ch.samples.codes for ch in channels]
    return time_axis, columns


def tds_table(
    preamble: TdsPreamble,
    channel: Channel,
    options: TableOptions = TableOptions(),
) -> tuple[np.ndarray | None, list[np.ndarray]]:
    codes = tds.split_points(channel.samples, preamble)
    time_axis = tds.times(len(codes[0]), preamble) if options.emit_time_column else None
    if options.emit_calibrated_voltage:
        columns = [tds.voltages(c, preamble) for c in codes]
    else:
        columns = codes
    return time_axis, columns


def _log_columns(names: Sequence[str], columns: Sequence[np.ndarray]) -> None:
    if logger.isEnabledFor(logging.INFO):
        for name, col in zip(names, columns):
            logger.info("%s: %s", name, summarize(col))


def convert_sds(
    preamble_path: Path,
    data_paths: Sequence[Path],
    output: str,
    options: TableOptions = TableOptions(),
    calibration: SdsCalibration = SdsCalibration(),
    framing: TransferFraming = TransferFraming(),
    overwrite: bool = False,
) -> int:
    """Siglent: ein Preamble, beliebig viele Kurvendateien (je eine Spannungsspalte)."""

    if not data_paths:
        raise MissingInputError("Mindestens eine Kurvendatei erforderlich")

    logger.info("Lese Preamble: %s", preamble_path)
    preamble = sds.decode_preamble(read_input(preamble_path))
    sds.log_report(preamble)

    channels = load_sds_channels(preamble, data_paths, framing)
    time_axis, columns = sds_table(preamble, channels, options, calibration)
    _log_columns([ch.name for ch in channels], columns)

    with open_output(output, overwrite=overwrite) as out:
        n = write_table(out, time_axis, columns, options)
    logger.info("Fertig: %d Zeilen", n)
    return n


def convert_tds(
    preamble_path: Path,
    data_path: Path,
    output: str,
    options: TableOptions = TableOptions(),
    overwrite: bool = False,
) -> int:
    """Tektronix: ein Preamble, genau eine Kurvendatei (im ENV-Format zwei Spannungsspalten)."""

    logger.info("Lese Preamble: %s", preamble_path)
    preamble = tds.decode_preamble(read_input(preamble_path))
    tds.log_report(preamble)

    logger.info("Lese Kurvendaten: %s", data_path)
    samples = tds.decode_samples(read_input(data_path), preamble)
    logger.info("%d Punkte gefunden", len(samples))
    channel = Channel(name=data_path.stem, samples=samples, preamble=preamble)

    time_axis, columns = tds_table(preamble, channel, options)
    _log_columns([f"v{i}" for i in range(1, len(columns) + 1)], columns)

    with open_output(output, overwrite=overwrite) as out:
        n = write_table(out, time_axis, columns, options)
    logger.info("Fertig: %d Zeilen", n)
    return n


def join_transfers(
    transfer_paths: Sequence[Path],
    output: Path,
    total_points: int,
    chunk_points: int,
    sample_width: int = 1,
    framing: TransferFraming = TransferFraming(),
    overwrite: bool = False,
) -> int:
    """Setzt gespeicherte Einzelübertragungen zu einer .dat-Datei zusammen. Gibt die Bytezahl zurück."""

    reassembler = ChunkReassembler(total_points, chunk_points, sample_width, framing)
    for path in transfer_paths:
        reassembler.feed(read_input(path))
    data = capture_file(reassembler.payload(), framing)

    output.parent.mkdir(parents=True, exist_ok=True)
    try:
        f = output.open("wb" if overwrite else "xb")
    except FileExistsError:
        raise FileExistsError(f"Ausgabedatei existiert bereits: {output}") from None
    with f:
        f.write(data)
    logger.info("%s: %d Punkte in %d Übertragungen", output, total_points, len(reassembler.plan))
    return len(data)
