"""Decoder state of the explode algorithm: bit buffer, decode tables and code readers."""

from __future__ import annotations

from typing import BinaryIO, MutableSequence, Sequence

from .tables import (
    CH_BITS_ASC,
    CH_CODE_ASC,
    DIST_BITS,
    DIST_CODE,
    EX_LEN_BITS,
    LEN_BASE,
    LEN_BITS,
    LEN_CODE,
)
from .types import (
    CompressionMode,
    InvalidCompressionModeError,
    InvalidDataError,
    InvalidDictionaryBitsError,
)

__all__ = [
    "IN_BUFF_SIZE",
    "OUT_BUFF_SIZE",
    "LITERAL_END_OF_STREAM",
    "LITERAL_ERROR",
    "ExplodeState",
    "gen_decode_tabs",
]

#: Size of one block of compressed input read at a time.
IN_BUFF_SIZE = 0x800

#: Size of the output window (dictionary plus room for one long repetition).
OUT_BUFF_SIZE = 0x2204

#: Value returned by :meth:`ExplodeState.decode_lit` at the end of the stream.
LITERAL_END_OF_STREAM = 0x305

#: Value returned by :meth:`ExplodeState.decode_lit` when the stream cannot be decoded.
LITERAL_ERROR = 0x306

_CODES_SIZE = 0x100
_OFFSS_SIZE = 0x100
_OFFSS_SIZE1 = 0x80


def gen_decode_tabs(
    positions: MutableSequence[int],
    start_indexes: Sequence[int],
    length_bits: Sequence[int],
) -> None:
    """Fill ``positions`` so that every 8-bit lookahead maps to the code it starts with."""
    limit = min(0x100, len(positions))
    for code_index, (start, bits) in enumerate(zip(start_indexes, length_bits)):
        for index in range(start, limit, 1 << bits):
            positions[index] = code_index


class ExplodeState:
    """Everything the decoder needs between two codes."""

    def __init__(self) -> None:
        self.ctype = CompressionMode.BINARY
        self.output_pos = 0x1000
        self.dsize_bits = 0
        self.dsize_mask = 0
        self.bit_buff = 0
        self.extra_bits = 0
        self.in_pos = 0
        self.in_bytes = 0

        self.out_buff = bytearray(OUT_BUFF_SIZE)
        self.in_buff: bytes = b""

        self.dist_pos_codes = bytearray(_CODES_SIZE)
        self.length_codes = bytearray(_CODES_SIZE)
        self.offs_2c34 = bytearray(_OFFSS_SIZE)
        self.offs_2d34 = bytearray(_OFFSS_SIZE)
        self.offs_2e34 = bytearray(_OFFSS_SIZE1)
        self.offs_2eb4 = bytearray(_OFFSS_SIZE)
        self.ch_bits_asc = bytearray(len(CH_BITS_ASC))

        self.dist_bits: list[int] = [0] * len(DIST_BITS)
        self.len_bits: list[int] = [0] * len(LEN_BITS)
        self.ex_len_bits: list[int] = [0] * len(EX_LEN_BITS)
        self.len_base: list[int] = [0] * len(LEN_BASE)

    def initialize(self, header_data: bytes) -> None:
        """Parse the header at the start of ``header_data`` and build the decode tables.

        ``header_data`` becomes the first block of input; decoding continues
        from its fourth byte.
        """
        if len(header_data) < 4:
            raise InvalidDataError("Header too short")

        mode = header_data[0]
        if mode == CompressionMode.BINARY:
            self.ctype = CompressionMode.BINARY
        elif mode == CompressionMode.ASCII:
            self.ctype = CompressionMode.ASCII
        else:
            raise InvalidCompressionModeError(mode)

        self.in_buff = bytes(header_data)
        self.in_bytes = len(self.in_buff)
        self.dsize_bits = header_data[1]
        self.bit_buff = header_data[2]
        self.extra_bits = 0
        self.in_pos = 3

        if not 4 <= self.dsize_bits <= 6:
            raise InvalidDictionaryBitsError(self.dsize_bits)

        self.dsize_mask = 0xFFFF >> (16 - self.dsize_bits)

        self.dist_bits = list(DIST_BITS)
        self.len_bits = list(LEN_BITS)
        self.ex_len_bits = list(EX_LEN_BITS)
        self.len_base = list(LEN_BASE)

        gen_decode_tabs(self.length_codes, LEN_CODE, LEN_BITS)
        gen_decode_tabs(self.dist_pos_codes, DIST_CODE, DIST_BITS)

        if self.ctype is CompressionMode.ASCII:
            self.ch_bits_asc[:] = bytes(CH_BITS_ASC)
            self._gen_asc_tabs()

    def _gen_asc_tabs(self) -> None:
        for count in reversed(range(0x100)):
            code = CH_CODE_ASC[count]
            bits = self.ch_bits_asc[count]

            if bits <= 8:
                for acc in range(code, 0x100, 1 << bits):
                    self.offs_2c34[acc] = count
            elif code & 0xFF:
                self.offs_2c34[code & 0xFF] = 0xFF
                if code & 0x3F:
                    bits -= 4
                    self.ch_bits_asc[count] = bits
                    for acc in range(code >> 4, 0x100, 1 << bits):
                        self.offs_2d34[acc] = count
                else:
                    bits -= 6
                    self.ch_bits_asc[count] = bits
                    for acc in range(code >> 6, 0x80, 1 << bits):
                        self.offs_2e34[acc] = count
            else:
                bits -= 8
                self.ch_bits_asc[count] = bits
                for acc in range(code >> 8, 0x100, 1 << bits):
                    self.offs_2eb4[acc] = count

    def waste_bits(self, reader: BinaryIO, n_bits: int) -> bool:
        """Drop ``n_bits`` from the bit buffer, refilling it from ``reader`` when needed.

        Returns False when the input is exhausted.
        """
        if n_bits <= self.extra_bits:
            self.extra_bits -= n_bits
            self.bit_buff >>= n_bits
            return True

        self.bit_buff >>= self.extra_bits

        if self.in_pos >= self.in_bytes:
            self.in_pos = 0
            self.in_buff = reader.read(IN_BUFF_SIZE) or b""
            self.in_bytes = len(self.in_buff)
            if not self.in_bytes:
                return False

        self.bit_buff |= self.in_buff[self.in_pos] << 8
        self.in_pos += 1

        self.bit_buff >>= n_bits - self.extra_bits
        self.extra_bits = self.extra_bits + 8 - n_bits
        return True

    def decode_lit(self, reader: BinaryIO) -> int:
        """Decode the next literal.

        Returns a byte value (0x000-0x0FF), a repetition length plus 0xFE
        (0x100-0x304), :data:`LITERAL_END_OF_STREAM` or :data:`LITERAL_ERROR`.
        """
        if self.bit_buff & 1:
            if not self.waste_bits(reader, 1):
                return LITERAL_ERROR

            length_code = self.length_codes[self.bit_buff & 0xFF]
            if not self.waste_bits(reader, self.len_bits[length_code]):
                return LITERAL_ERROR

            extra_length_bits = self.ex_len_bits[length_code]
            final_length_code = length_code
            if extra_length_bits:
                extra_length = self.bit_buff & ((1 << extra_length_bits) - 1)
                if (
                    not self.waste_bits(reader, extra_length_bits)
                    and length_code + extra_length != 0x10E
                ):
                    return LITERAL_ERROR
                final_length_code = self.len_base[length_code] + extra_length

            return final_length_code + 0x100

        if not self.waste_bits(reader, 1):
            return LITERAL_ERROR

        if self.ctype is CompressionMode.BINARY:
            uncompressed_byte = self.bit_buff & 0xFF
            if not self.waste_bits(reader, 8):
                return LITERAL_ERROR
            return uncompressed_byte

        if self.bit_buff & 0xFF:
            value = self.offs_2c34[self.bit_buff & 0xFF]
            if value == 0xFF:
                if self.bit_buff & 0x3F:
                    if not self.waste_bits(reader, 4):
                        return LITERAL_ERROR
                    value = self.offs_2d34[self.bit_buff & 0xFF]
                else:
                    if not self.waste_bits(reader, 6):
                        return LITERAL_ERROR
                    value = self.offs_2e34[self.bit_buff & 0x7F]
        else:
            if not self.waste_bits(reader, 8):
                return LITERAL_ERROR
            value = self.offs_2eb4[self.bit_buff & 0xFF]

        if not self.waste_bits(reader, self.ch_bits_asc[value]):
            return LITERAL_ERROR
        return value

    def decode_dist(self, reader: BinaryIO, rep_length: int) -> int:
        """Decode the backward distance of a repetition; 0 means the input ran out."""
        dist_pos_code = self.dist_pos_codes[self.bit_buff & 0xFF]
        if not self.waste_bits(reader, self.dist_bits[dist_pos_code]):
            return 0

        if rep_length == 2:
            distance = (dist_pos_code << 2) | (self.bit_buff & 0x03)
            if not self.waste_bits(reader, 2):
                return 0
        else:
            distance = (dist_pos_code << self.dsize_bits) | (self.bit_buff & self.dsize_mask)
            if not self.waste_bits(reader, self.dsize_bits):
                return 0

        return distance + 1