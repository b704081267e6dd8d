from __future__ import annotations


class DecodeError(ValueError):
    """Eingabedaten passen nicht zum erwarteten Aufzeichnungsformat."""


class PreambleLengthError(DecodeError):
    pass


class TableIndexError(DecodeError, IndexError):
    pass


class PayloadLengthError(DecodeError):
    pass


class TruncatedPayloadError(DecodeError):
    pass


class SampleCountMismatchError(DecodeError):
    pass


class MissingInputError(FileNotFoundError):
    pass
