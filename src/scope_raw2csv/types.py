from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Union

import numpy as np

from . import tables


@dataclass(frozen=True, slots=True)
class SdsPreamble:
    """WAVEDESC-Block der Siglent SDS-Serie (Antwort auf :WAVeform:PREamble?)."""

    header: str
    descriptor_name: str
    template_name: str
    comm_type: int
    comm_order: int
    wave_desc_length: int
    wave_array_1: int
    instrument_name: str
    wave_array_count: int
    first_point: int
    data_interval: int
    read_frames: int
    sum_frames: int
    vert_gain: float
    vert_offset: float
    code_per_div: float
    adc_bit: int
    frame_index: int
    horiz_interval: float
    horiz_offset: float
    time_base: int
    vert_coupling: int
    probe_attenuation: float
    fixed_vert_gain: int
    bandwidth_limit: int
    wave_source: int
    ending_lf: bytes = b"\n"
    reserved: Mapping[str, object] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def bits(self) -> int:
        return 16 if tables.lookup(tables.COMM_TYPE, self.comm_type, "comm_type") == "WORD" else 8

    @property
    def byteorder(self) -> str:
        return "big" if tables.lookup(tables.COMM_ORDER, self.comm_order, "comm_order") == "MSB" else "little"

    @property
    def time_per_div(self) -> float:
        return tables.lookup(tables.TIME_BASE, self.time_base, "time_base")

    @property
    def source(self) -> str:
        return tables.lookup(tables.WAVE_SOURCE, self.wave_source, "wave_source")

    @property
    def coupling(self) -> str:
        return tables.lookup(tables.VERT_COUPLING, self.vert_coupling, "vert_coupling")

    @property
    def bandwidth(self) -> str:
        return tables.lookup(tables.BANDWIDTH_LIMIT, self.bandwidth_limit, "bandwidth_limit")


@dataclass(frozen=True, slots=True)
class TdsPreamble:
    """WFMPre-Datensatz der Tektronix TDS-Serie. Werte bleiben Strings."""

    byte_count: str
    bit_count: str
    encoding: str
    binary_format: str
    byte_order: str
    point_count: str
    waveform_id: str
    point_format: str
    x_increment: str
    point_offset: str
    x_zero: str
    x_unit: str
    y_multiplier: str
    y_zero: str
    y_offset: str
    y_unit: str

    @property
    def is_binary(self) -> bool:
        return self.encoding.upper() == "BIN"

    @property
    def is_envelope(self) -> bool:
        return self.point_format.upper() != "Y"

    @property
    def signed(self) -> bool:
        return self.binary_format.upper() != "RP"

    @property
    def byteorder(self) -> str:
        return "little" if self.byte_order.upper() == "LSB" else "big"


Preamble = Union[SdsPreamble, TdsPreamble]


@dataclass(frozen=True, slots=True)
class RawSamples:
    codes: np.ndarray
    bits: int
    signed: bool = False

    def __post_init__(self) -> None:
        self.codes.flags.writeable = False

    def __len__(self) -> int:
        return len(self.codes)


@dataclass(frozen=True, slots=True)
class Channel:
    name: str
    samples: RawSamples
    preamble: Preamble

    def __len__(self) -> int:
        return len(self.samples)


@dataclass(frozen=True, slots=True)
class TransferFraming:
    """Rahmen um die Nutzdaten einer Übertragung: Kopf- und Endbytes werden verworfen."""

    header_bytes: int = 11
    trailer_bytes: int = 2


@dataclass(frozen=True, slots=True)
class SdsCalibration:
    codes_per_division: float | None = None
    probe_index: int | None = None


@dataclass(frozen=True, slots=True)
class TableOptions:
    separator: str = ","
    emit_header: bool = True
    emit_calibrated_voltage: bool = True
    emit_time_column: bool = True
    precision: int | None = None
