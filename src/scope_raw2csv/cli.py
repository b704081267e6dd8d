from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .chunks import MAX_CHUNK_POINTS
from .convert import convert_sds, convert_tds, join_transfers
from .types import SdsCalibration, TableOptions, TransferFraming


def _add_table_args(p: argparse.ArgumentParser, default_precision: int | None) -> None:
    p.add_argument("-p", "--preamble", required=True, type=Path, metavar="DATEI", help="Datei mit den Preamble-Daten.")
    p.add_argument(
        "-o",
        "--output",
        required=True,
        metavar="DATEI",
        help="Ausgabedatei; '-' für stdout. Datei darf nicht existieren (außer mit --overwrite).",
    )
    p.add_argument("-s", "--separator", default=",", help="Spaltentrenner (Default: Komma).")
    p.add_argument("--no-title", action="store_true", help="Keine Kopfzeile ausgeben.")
    p.add_argument("--no-time", action="store_true", help="Keine Zeitspalte ausgeben.")
    p.add_argument("--ints", action="store_true", help="Rohe Integer-Codes statt Spannungen ausgeben.")
    p.add_argument(
        "--precision",
        type=int,
        default=default_precision,
        metavar="N",
        help="Signifikante Stellen (Default: %(default)s; ohne Angabe volle Genauigkeit).",
    )
    p.add_argument("--full-precision", action="store_const", const=None, dest="precision", help="Volle Genauigkeit.")
    p.add_argument("--overwrite", action="store_true", help="Vorhandene Ausgabedatei ersetzen.")


def _add_framing_args(p: argparse.ArgumentParser) -> None:
    default = TransferFraming()
    p.add_argument("--header-bytes", type=int, default=default.header_bytes, help="Kopfbytes pro Übertragung (Default: %(default)s).")
    p.add_argument("--trailer-bytes", type=int, default=default.trailer_bytes, help="Endbytes pro Übertragung (Default: %(default)s).")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="oszi-raw2csv",
        description="Wandelt Roh-Preamble und Kurvendaten von Siglent- und Tektronix-Oszilloskopen in CSV.",
    )
    p.add_argument("-v", "--verbose", action="count", default=0, help="Mehr Ausgaben (-v Fortschritt, -vv Debug).")
    sub = p.add_subparsers(dest="command", required=True)

    p_sds = sub.add_parser(
        "sds",
        help="Siglent SDS2000X+ (:WAVeform:PREamble? + :WAVeform:DATA?)",
        description="Jede Kurvendatei wird eine Spannungsspalte; alle teilen sich das Preamble.",
    )
    _add_table_args(p_sds, default_precision=None)
    _add_framing_args(p_sds)
    p_sds.add_argument("--code-per-div", type=float, help="Codes pro Division (Default: aus dem Preamble).")
    p_sds.add_argument("--probe-index", type=int, help="Tastkopf-Teiler per Tabellenindex statt aus dem Preamble.")
    p_sds.add_argument("data", nargs="+", type=Path, metavar="KURVE", help="Kurvendateien (.dat).")

    p_tds = sub.add_parser(
        "tds",
        help="Tektronix TDS2000/TDS3000B (:WFMPre? + :CURVe?)",
    )
    _add_table_args(p_tds, default_precision=5)
    p_tds.add_argument("data", type=Path, metavar="KURVE", help="Kurvendatei (Antwort auf :CURVe?).")

    p_join = sub.add_parser(
        "join",
        help="Einzelne :WAVeform:DATA?-Antworten zu einer .dat-Datei zusammensetzen",
    )
    p_join.add_argument("-n", "--points", type=int, required=True, help="Gesamtzahl der Punkte (:ACQuire:POINts?).")
    p_join.add_argument(
        "-x",
        "--xfer-size",
        type=int,
        required=True,
        help=f"Punkte pro Übertragung (höchstens {MAX_CHUNK_POINTS}).",
    )
    p_join.add_argument("--width", type=int, choices=(1, 2), default=1, help="Bytes pro Sample (Default: 1).")
    p_join.add_argument("-o", "--output", type=Path, required=True, metavar="DATEI")
    p_join.add_argument("--overwrite", action="store_true")
    _add_framing_args(p_join)
    p_join.add_argument("transfers", nargs="+", type=Path, metavar="XFER", help="Übertragungen in Reihenfolge.")

    return p.parse_args(argv)


def _setup_logging(verbose: int) -> None:
    level = logging.WARNING if verbose == 0 else logging.INFO if verbose == 1 else logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(name)s: %(asctime)s - %(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def _table_options(args: argparse.Namespace) -> TableOptions:
    return TableOptions(
        separator=args.separator,
        emit_header=not args.no_title,
        emit_calibrated_voltage=not args.ints,
        emit_time_column=not args.no_time,
        precision=args.precision,
    )


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    _setup_logging(args.verbose)

    try:
        if args.command == "sds":
            convert_sds(
                args.preamble,
                args.data,
                args.output,
                options=_table_options(args),
                calibration=SdsCalibration(codes_per_division=args.code_per_div, probe_index=args.probe_index),
                framing=TransferFraming(args.header_bytes, args.trailer_bytes),
                overwrite=args.overwrite,
            )
        elif args.command == "tds":
            convert_tds(args.preamble, args.data, args.output, options=_table_options(args), overwrite=args.overwrite)
        else:
            n = join_transfers(
                args.transfers,
                args.output,
                total_points=args.points,
                chunk_points=args.xfer_size,
                sample_width=args.width,
                framing=TransferFraming(args.header_bytes, args.trailer_bytes),
                overwrite=args.overwrite,
            )
            print(f"Wrote DAT: {args.output} ({n} Bytes)")
    except (OSError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(2)
