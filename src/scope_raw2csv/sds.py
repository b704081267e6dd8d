from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from types import MappingProxyType

import numpy as np

from . import tables
from .errors import DecodeError, PayloadLengthError, PreambleLengthError
from .types import RawSamples, SdsCalibration, SdsPreamble, TransferFraming

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Field:
    """Ein Feld im Preamble: absoluter Offset plus struct-Format (immer little-endian)."""

    name: str
    offset: int
    fmt: str
    reserved: bool = False

    @property
    def size(self) -> int:
        return struct.calcsize(self.fmt)

    @property
    def end(self) -> int:
        return self.offset + self.size

    def read(self, buf: bytes) -> object:
        if self.end > len(buf):
            raise PreambleLengthError(
                f"Feld {self.name} braucht Bytes {self.offset}..{self.end - 1}, Puffer hat nur {len(buf)}"
            )
        (value,) = struct.unpack_from(self.fmt, buf, self.offset)
        return value


def _r(name: str, offset: int, fmt: str) -> Field:
    return Field(name, offset, fmt, reserved=True)


# Offsets absolut ab Dateianfang: 11 Byte Blockkopf "#9000000346", dann WAVEDESC.
# Reservierte Felder heißen nach ihrem Offset relativ zum WAVEDESC-Anfang.
LAYOUT: tuple[Field, ...] = (
    Field("header", 0, "<11s"),
    Field("descriptor_name", 11, "<16s"),
    Field("template_name", 27, "<16s"),
    Field("comm_type", 43, "<H"),
    Field("comm_order", 45, "<H"),
    Field("wave_desc_length", 47, "<I"),
    _r("reserved_040", 51, "<I"),
    _r("reserved_044", 55, "<I"),
    _r("reserved_048", 59, "<I"),
    _r("reserved_052", 63, "<I"),
    _r("reserved_056", 67, "<I"),
    Field("wave_array_1", 71, "<I"),
    _r("reserved_064", 75, "<I"),
    _r("reserved_068", 79, "<I"),
    _r("reserved_072", 83, "<I"),
    Field("instrument_name", 87, "<16s"),
    _r("reserved_092", 103, "<I"),
    _r("reserved_096", 107, "<16s"),
    _r("reserved_112", 123, "<I"),
    Field("wave_array_count", 127, "<I"),
    _r("reserved_120", 131, "<I"),
    _r("reserved_124", 135, "<I"),
    _r("reserved_128", 139, "<I"),
    Field("first_point", 143, "<I"),
    Field("data_interval", 147, "<I"),
    _r("reserved_140", 151, "<I"),
    Field("read_frames", 155, "<I"),
    Field("sum_frames", 159, "<I"),
    _r("reserved_152", 163, "<H"),
    _r("reserved_154", 165, "<H"),
    Field("vert_gain", 167, "<f"),
    Field("vert_offset", 171, "<f"),
    Field("code_per_div", 175, "<f"),
    _r("reserved_168", 179, "<f"),
    Field("adc_bit", 183, "<H"),
    Field("frame_index", 185, "<H"),
    Field("horiz_interval", 187, "<f"),
    Field("horiz_offset", 191, "<d"),
    _r("reserved_188", 199, "<d"),
    _r("reserved_196", 207, "<48s"),
    _r("reserved_244", 255, "<48s"),
    _r("reserved_292", 303, "<f"),
    _r("reserved_296", 307, "<16s"),
    _r("reserved_312", 323, "<f"),
    _r("reserved_316", 327, "<H"),
    _r("reserved_318", 329, "<H"),
    _r("reserved_320", 331, "<H"),
    _r("reserved_322", 333, "<H"),
    Field("time_base", 335, "<H"),
    Field("vert_coupling", 337, "<H"),
    Field("probe_attenuation", 339, "<f"),
    Field("fixed_vert_gain", 343, "<H"),
    Field("bandwidth_limit", 345, "<H"),
    _r("reserved_336", 347, "<f"),
    _r("reserved_340", 351, "<f"),
    Field("wave_source", 355, "<H"),
    Field("ending_lf", 357, "<1s"),
)

PREAMBLE_LENGTH = LAYOUT[-1].end

_TEXT_FIELDS = frozenset({"header", "descriptor_name", "template_name", "instrument_name"})

USED_FIELDS: tuple[str, ...] = (
    "comm_type",
    "comm_order",
    "vert_gain",
    "vert_offset",
    "code_per_div",
    "probe_attenuation",
    "horiz_interval",
    "horiz_offset",
    "time_base",
    "wave_source",
)


def _text(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode("ascii", errors="replace").strip()


def decode_preamble(buf: bytes) -> SdsPreamble:
    """Dekodiert die Antwort auf :WAVeform:PREamble? in ein SdsPreamble."""

    if len(buf) < PREAMBLE_LENGTH:
        raise PreambleLengthError(f"Preamble hat {len(buf)} Bytes, erwartet {PREAMBLE_LENGTH}")
    if len(buf) > PREAMBLE_LENGTH:
        logger.debug("Preamble: %d überzählige Bytes ignoriert", len(buf) - PREAMBLE_LENGTH)

    named: dict[str, object] = {}
    reserved: dict[str, object] = {}
    for f in LAYOUT:
        value = f.read(buf)
        if f.reserved:
            reserved[f.name] = value
        elif f.name in _TEXT_FIELDS:
            named[f.name] = _text(value)  # type: ignore[arg-type]
        else:
            named[f.name] = value

    preamble = SdsPreamble(**named, reserved=MappingProxyType(reserved))  # type: ignore[arg-type]

    # Enum-Felder gegen ihre Tabellen prüfen
    for prop in ("bits", "byteorder", "time_per_div", "source", "coupling", "bandwidth"):
        getattr(preamble, prop)
    return preamble


def log_report(preamble: SdsPreamble) -> None:
    for name in USED_FIELDS:
        logger.info("%25s : %r", name, getattr(preamble, name))
    if logger.isEnabledFor(logging.DEBUG):
        for f in LAYOUT:
            if f.name in USED_FIELDS:
                continue
            value = preamble.reserved[f.name] if f.reserved else getattr(preamble, f.name)
            logger.debug("%25s : %r", f.name, value)


def strip_framing(data: bytes, framing: TransferFraming) -> bytes:
    overhead = framing.header_bytes + framing.trailer_bytes
    if len(data) < overhead:
        raise PayloadLengthError(f"Daten ({len(data)} Bytes) kürzer als Kopf + Ende ({overhead} Bytes)")
    return data[framing.header_bytes : len(data) - framing.trailer_bytes]


def recenter(codes: np.ndarray, bits: int) -> np.ndarray:
    """Codes oberhalb der Bereichsmitte sind negative Auslenkungen: code - 2**bits."""
    full = 1 << bits
    return np.where(codes > full // 2 - 1, codes - full, codes)


def decode_samples(data: bytes, preamble: SdsPreamble, framing: TransferFraming = TransferFraming()) -> RawSamples:
    payload = strip_framing(data, framing)
    bits = preamble.bits
    width = bits // 8
    if len(payload) % width:
        raise PayloadLengthError(f"Nutzdaten ({len(payload)} Bytes) kein Vielfaches von {width}")

    if width == 1:
        dtype = np.dtype(np.uint8)
    else:
        dtype = np.dtype("<u2" if preamble.byteorder == "little" else ">u2")
    codes = np.frombuffer(payload, dtype=dtype).astype(np.int64)
    return RawSamples(codes=recenter(codes, bits), bits=bits, signed=True)


def voltages(samples: RawSamples, preamble: SdsPreamble, calibration: SdsCalibration = SdsCalibration()) -> np.ndarray:
    code_per_div = calibration.codes_per_division
    if code_per_div is None:
        code_per_div = preamble.code_per_div
    if not code_per_div > 0:
        raise DecodeError(f"code_per_div muss positiv sein, ist {code_per_div!r}")

    if calibration.probe_index is not None:
        probe = tables.probe_factor(calibration.probe_index)
    else:
        probe = preamble.probe_attenuation

    vdiv = preamble.vert_gain * probe
    voff = preamble.vert_offset * probe
    return samples.codes / code_per_div * vdiv - voff


def times(count: int, preamble: SdsPreamble) -> np.ndarray:
    full_scale = preamble.time_per_div * tables.SDS_HORIZONTAL_DIVISIONS
    start = -preamble.horiz_offset - full_scale / 2
    return start + np.arange(count) * preamble.horiz_interval
