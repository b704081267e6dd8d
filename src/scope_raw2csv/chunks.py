from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from .errors import DecodeError, PayloadLengthError, TruncatedPayloadError
from .sds import strip_framing
from .types import TransferFraming

logger = logging.getLogger(__name__)

MAX_CHUNK_POINTS = 10_000_000


@dataclass(frozen=True, slots=True)
class Chunk:
    start: int
    count: int


def chunk_plan(total_points: int, chunk_points: int) -> list[Chunk]:
    """Zerlegt eine Aufzeichnung in Übertragungen zu je höchstens chunk_points Punkten."""

    if total_points < 0:
        raise ValueError(f"Punktzahl darf nicht negativ sein: {total_points}")
    if not 0 < chunk_points <= MAX_CHUNK_POINTS:
        raise ValueError(f"Chunk-Größe muss in 1..{MAX_CHUNK_POINTS} liegen: {chunk_points}")
    return [
        Chunk(start=start, count=min(chunk_points, total_points - start))
        for start in range(0, total_points, chunk_points)
    ]


class ChunkReassembler:
    """Setzt die :WAVeform:DATA?-Antworten einer Aufzeichnung der Reihe nach zusammen."""

    def __init__(
        self,
        total_points: int,
        chunk_points: int,
        sample_width: int = 1,
        framing: TransferFraming = TransferFraming(),
    ) -> None:
        if sample_width not in (1, 2):
            raise ValueError(f"Sample-Breite muss 1 oder 2 Bytes sein: {sample_width}")
        self.plan = chunk_plan(total_points, chunk_points)
        self.sample_width = sample_width
        self.framing = framing
        self.buf = bytearray()
        self.next_index = 0

    @property
    def complete(self) -> bool:
        return self.next_index == len(self.plan)

    def feed(self, transfer: bytes) -> bool:
        """Nimmt die nächste Übertragung in Plan-Reihenfolge an. True, sobald alle da sind."""

        if self.complete:
            raise DecodeError("Alle Übertragungen wurden bereits verarbeitet")

        chunk = self.plan[self.next_index]
        payload = strip_framing(transfer, self.framing)
        expected = chunk.count * self.sample_width
        if len(payload) != expected:
            raise PayloadLengthError(
                f"Übertragung {self.next_index + 1}/{len(self.plan)} ab Punkt {chunk.start}: {len(payload)} Bytes, erwartet {expected}"
            )

        self.buf += payload
        self.next_index += 1
        logger.debug("Chunk %d/%d ab Punkt %d: %d Punkte", self.next_index, len(self.plan), chunk.start, chunk.count)
        return self.complete

    def payload(self) -> bytes:
        if not self.complete:
            raise TruncatedPayloadError(f"Erst {self.next_index} von {len(self.plan)} Übertragungen erhalten")
        return bytes(self.buf)


def reassemble(
    transfers: Iterable[bytes],
    total_points: int,
    chunk_points: int,
    sample_width: int = 1,
    framing: TransferFraming = TransferFraming(),
) -> bytes:
    reassembler = ChunkReassembler(total_points, chunk_points, sample_width, framing)
    for transfer in transfers:
        reassembler.feed(transfer)
    return reassembler.payload()


def capture_file(payload: bytes, framing: TransferFraming = TransferFraming()) -> bytes:
    """Rahmt zusammengesetzte Nutzdaten wie eine einzelne Antwort (Kopf aus 'X', Ende aus LF)."""
    return b"X" * framing.header_bytes + payload + b"\n" * framing.trailer_bytes
