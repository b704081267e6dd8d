from __future__ import annotations

import logging
import re

import numpy as np

from .errors import DecodeError, PayloadLengthError, PreambleLengthError, TruncatedPayloadError
from .types import RawSamples, TdsPreamble

logger = logging.getLogger(__name__)

# Reihenfolge der Felder in der Antwort auf :WFMPre?
KEYS: tuple[tuple[str, str], ...] = (
    ("BYT_Nr", "byte_count"),
    ("BIT_Nr", "bit_count"),
    ("ENCdg", "encoding"),
    ("BN_Fmt", "binary_format"),
    ("BYT_Or", "byte_order"),
    ("NR_Pt", "point_count"),
    ("WFID", "waveform_id"),
    ("PT_FMT", "point_format"),
    ("XINcr", "x_increment"),
    ("PT_Off", "point_offset"),
    ("XZERo", "x_zero"),
    ("XUNit", "x_unit"),
    ("YMUlt", "y_multiplier"),
    ("YZEro", "y_zero"),
    ("YOFf", "y_offset"),
    ("YUNit", "y_unit"),
)

REQUIRED = frozenset(
    {"BYT_Nr", "ENCdg", "BN_Fmt", "BYT_Or", "PT_FMT", "XINcr", "PT_Off", "XZERo", "YMUlt", "YZEro", "YOFf"}
)

_PREFIX = re.compile(r"^.* +")
_CURVE_ECHO = re.compile(r"^.*:CURVE *")


def decode_preamble(raw: bytes | str) -> TdsPreamble:
    """Zerlegt "KEY wert;KEY wert;..." in ein TdsPreamble (Schlüssel-Präfixe werden entfernt)."""

    text = raw.decode("ascii", errors="replace") if isinstance(raw, bytes) else raw
    fields = text.strip().split(";")
    if len(fields) != len(KEYS):
        raise PreambleLengthError(f"Preamble hat {len(fields)} Felder, erwartet {len(KEYS)}")

    values: dict[str, str] = {}
    for (key, attr), field in zip(KEYS, fields):
        value = _PREFIX.sub("", field.strip())
        if key in REQUIRED and not value:
            raise DecodeError(f"Preamble-Feld {key} ist leer")
        values[attr] = value
    return TdsPreamble(**values)


def log_report(preamble: TdsPreamble) -> None:
    for key, attr in KEYS:
        if key in REQUIRED:
            logger.info("%9s : %s", key, getattr(preamble, attr))


def sample_width(preamble: TdsPreamble) -> int:
    if preamble.byte_count not in ("1", "2"):
        raise DecodeError(f"BYT_Nr muss 1 oder 2 sein, ist {preamble.byte_count!r}")
    return int(preamble.byte_count)


def _dtype(preamble: TdsPreamble) -> np.dtype:
    width = sample_width(preamble)
    kind = "i" if preamble.signed else "u"
    if width == 1:
        return np.dtype(f"{kind}1")
    order = "<" if preamble.byteorder == "little" else ">"
    return np.dtype(f"{order}{kind}2")


def decode_block(data: bytes, preamble: TdsPreamble) -> RawSamples:
    """Binärblock "#<n><länge><daten>"; alles nach <länge> Datenbytes wird ignoriert."""

    if data[:1] != b"#":
        raise DecodeError("Binärblock beginnt nicht mit '#'")
    if len(data) < 2 or data[1:2] not in b"123456789":
        raise TruncatedPayloadError("Binärblock: Stellenzahl der Länge fehlt")

    n_digits = int(chr(data[1]))
    p = 2
    digits = data[p : p + n_digits]
    if len(digits) < n_digits or not digits.isdigit():
        raise TruncatedPayloadError("Binärblock: Längenangabe unvollständig")
    length = int(digits.decode("ascii"))
    p += n_digits

    if len(data) - p < length:
        raise TruncatedPayloadError(f"Binärblock: {length} Bytes angekündigt, nur {len(data) - p} vorhanden")

    trailing = len(data) - p - length
    if trailing:
        logger.debug("Binärblock: %d Bytes nach den Daten ignoriert", trailing)

    dtype = _dtype(preamble)
    if length % dtype.itemsize:
        raise PayloadLengthError(f"Binärblock: {length} Bytes kein Vielfaches von {dtype.itemsize}")
    codes = np.frombuffer(data[p : p + length], dtype=dtype).astype(np.int64)
    return RawSamples(codes=codes, bits=8 * dtype.itemsize, signed=preamble.signed)


def decode_ascii(data: bytes, preamble: TdsPreamble) -> RawSamples:
    text = data.decode("ascii", errors="replace").rstrip("\r\n")
    text = _CURVE_ECHO.sub("", text).strip()
    if not text:
        raise DecodeError("Keine Messpunkte in der ASCII-Kurve")
    try:
        codes = np.array([int(x) for x in text.split(",")], dtype=np.int64)
    except ValueError as e:
        raise DecodeError(f"ASCII-Kurve: {e}") from e
    return RawSamples(codes=codes, bits=8 * sample_width(preamble), signed=preamble.signed)


def decode_samples(data: bytes, preamble: TdsPreamble) -> RawSamples:
    if preamble.is_binary:
        return decode_block(data, preamble)
    return decode_ascii(data, preamble)


def split_points(samples: RawSamples, preamble: TdsPreamble) -> list[np.ndarray]:
    """Im ENV-Format wechseln sich die Werte für v1 und v2 ab."""

    codes = samples.codes
    if not preamble.is_envelope:
        return [codes]
    if len(codes) % 2:
        raise PayloadLengthError(f"ENV-Format mit ungerader Punktzahl ({len(codes)})")
    return [codes[0::2], codes[1::2]]


def _number(preamble: TdsPreamble, attr: str) -> float:
    value = getattr(preamble, attr)
    try:
        return float(value)
    except ValueError as e:
        raise DecodeError(f"Preamble-Feld {attr}: keine Zahl ({value!r})") from e


def times(count: int, preamble: TdsPreamble) -> np.ndarray:
    x_zero = _number(preamble, "x_zero")
    x_increment = _number(preamble, "x_increment")
    point_offset = _number(preamble, "point_offset")
    return x_zero + (np.arange(count) - point_offset) * x_increment


def voltages(codes: np.ndarray, preamble: TdsPreamble) -> np.ndarray:
    y_zero = _number(preamble, "y_zero")
    y_offset = _number(preamble, "y_offset")
    y_multiplier = _number(preamble, "y_multiplier")
    return y_zero + (codes - y_offset) * y_multiplier
