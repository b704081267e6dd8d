from __future__ import annotations

from typing import Sequence, TypeVar

from .errors import DecodeError, TableIndexError

T = TypeVar("T")

# Zeitbasis-Stufen (s/div) der SDS-Serie, Index aus dem Preamble-Feld time_base
TIME_BASE: tuple[float, ...] = (
    2e-10, 5e-10,
    1e-9, 2e-9, 5e-9,
    1e-8, 2e-8, 5e-8,
    1e-7, 2e-7, 5e-7,
    1e-6, 2e-6, 5e-6,
    1e-5, 2e-5, 5e-5,
    1e-4, 2e-4, 5e-4,
    1e-3, 2e-3, 5e-3,
    1e-2, 2e-2, 5e-2,
    1e-1, 2e-1, 5e-1,
    1e0, 2e0, 5e0,
    1e1, 2e1, 5e1,
    1e2, 2e2, 5e2,
    1e3,
)

# Tastkopf-Teiler; die CUST*-Einträge sind benutzerdefinierte Tastköpfe ohne festen Wert
PROBE_ATTENUATION: tuple[float | str, ...] = (
    1e-1, 2e-1, 5e-1,
    1e0, 2e0, 5e0,
    1e1, 2e1, 5e1,
    1e2, 2e2, 5e2,
    1e3, 2e3, 5e3,
    1e4,
    "CUSTA", "CUSTB", "CUSTC", "CUSTD",
)

WAVE_SOURCE: tuple[str, ...] = ("C1", "C2", "C3", "C4")
BANDWIDTH_LIMIT: tuple[str, ...] = ("OFF", "20M", "200M")
VERT_COUPLING: tuple[str, ...] = ("DC", "AC", "GND")
COMM_TYPE: tuple[str, ...] = ("BYTE", "WORD")
COMM_ORDER: tuple[str, ...] = ("LSB", "MSB")

SDS_HORIZONTAL_DIVISIONS = 10.0


def lookup(table: Sequence[T], index: int, name: str = "table") -> T:
    """Tabellenzugriff mit Bereichsprüfung; negative Indizes zählen nicht vom Ende."""
    if not 0 <= index < len(table):
        raise TableIndexError(f"{name}: Index {index} außerhalb 0..{len(table) - 1}")
    return table[index]


def probe_factor(index: int) -> float:
    value = lookup(PROBE_ATTENUATION, index, "probe_attenuation")
    if isinstance(value, str):
        raise DecodeError(f"probe_attenuation: Index {index} ist ein Custom-Tastkopf ({value}) ohne Faktor")
    return value
