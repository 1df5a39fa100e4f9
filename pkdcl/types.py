"""Core enumerations, limits and exceptions shared by the compressor and decompressor."""

from __future__ import annotations

from enum import IntEnum

__all__ = [
    "CompressionMode",
    "DictionarySize",
    "MAX_REP_LENGTH",
    "PkLibError",
    "InvalidDataError",
    "InvalidCompressionModeError",
    "InvalidDictionaryBitsError",
    "DecompressionError",
    "InvalidLengthError",
    "InvalidDistanceError",
]

#: Longest repetition the format can express, in bytes.
MAX_REP_LENGTH = 0x204


class CompressionMode(IntEnum):
    """How literal bytes are coded; the value is the first header byte."""

    BINARY = 0
    ASCII = 1


class DictionarySize(IntEnum):
    """Sliding dictionary size in bytes."""

    SIZE_1K = 1024
    SIZE_2K = 2048
    SIZE_4K = 4096

    def bits(self) -> int:
        """Number of low distance bits stored verbatim; the second header byte."""
        return _DICTIONARY_BITS[self]


_DICTIONARY_BITS = {
    DictionarySize.SIZE_1K: 4,
    DictionarySize.SIZE_2K: 5,
    DictionarySize.SIZE_4K: 6,
}


class PkLibError(Exception):
    """Base class for every error raised by this package."""


class InvalidDataError(PkLibError):
    """The input is malformed or too short."""

    def __init__(self, message: str) -> None:
        super().__init__(f"invalid data: {message}")
        self.message = message


class InvalidCompressionModeError(PkLibError):
    """The header names a compression mode other than binary or ASCII."""

    def __init__(self, mode: int) -> None:
        super().__init__(f"invalid compression mode: {mode}")
        self.mode = mode


class InvalidDictionaryBitsError(PkLibError):
    """The header names a dictionary size outside 4..6 bits."""

    def __init__(self, bits: int) -> None:
        super().__init__(f"invalid dictionary size bits: {bits}")
        self.bits = bits


class DecompressionError(PkLibError):
    """The compressed stream could not be decoded."""

    def __init__(self, message: str) -> None:
        super().__init__(f"decompression error: {message}")
        self.message = message


class InvalidLengthError(PkLibError):
    """A repetition length cannot be encoded."""

    def __init__(self, length: int) -> None:
        super().__init__(f"invalid repetition length: {length}")
        self.length = length


class InvalidDistanceError(PkLibError):
    """A repetition distance cannot be encoded."""

    def __init__(self, distance: int) -> None:
        super().__init__(f"invalid repetition distance: {distance}")
        self.distance = distance