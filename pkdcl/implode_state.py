"""Compressor state of the implode algorithm: code tables, buffers and the pair-hash index."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import accumulate
from typing import Sequence

from .tables import (
    CH_BITS_ASC,
    CH_CODE_ASC,
    DIST_BITS,
    DIST_CODE,
    EX_LEN_BITS,
    LEN_BITS,
    LEN_CODE,
)
from .types import CompressionMode, DictionarySize

__all__ = [
    "WORK_BUFF_SIZE",
    "OUT_BUFF_SIZE",
    "HASH_TABLE_SIZE",
    "OFFSS_SIZE2",
    "LITERALS_COUNT",
    "CompressionStats",
    "ImplodeState",
    "byte_pair_hash",
]

#: Work buffer size: dictionary plus uncompressed data.
WORK_BUFF_SIZE = 0x2204

#: Output buffer size for compressed data.
OUT_BUFF_SIZE = 0x802

#: Number of distinct byte-pair hash values.
HASH_TABLE_SIZE = 0x900

#: Size of the temporary offset buffer.
OFFSS_SIZE2 = 0x204

#: Number of literal codes: 256 bytes, 518 repetition lengths and the end marker.
LITERALS_COUNT = 0x306

_U16_MAX = 0xFFFF


def byte_pair_hash(buffer: Sequence[int]) -> int:
    """Hash of the first two bytes of ``buffer``: ``b0 * 4 + b1 * 5``."""
    return buffer[0] * 4 + buffer[1] * 5


@dataclass(frozen=True)
class CompressionStats:
    """Progress figures of a compression run."""

    bytes_processed: int
    compressed_bytes: int
    compression_ratio: float


class ImplodeState:
    """Everything the compressor keeps between blocks."""

    def __init__(
        self,
        mode: CompressionMode = CompressionMode.BINARY,
        dict_size: DictionarySize = DictionarySize.SIZE_2K,
    ) -> None:
        mode = CompressionMode(mode)
        dict_size = DictionarySize(dict_size)

        self.distance = 0
        self.out_bytes = 0
        self.out_bits = 0
        self.dsize_bits = dict_size.bits()
        self.dsize_mask = (1 << self.dsize_bits) - 1
        self.ctype = mode
        self.dsize_bytes = int(dict_size)

        self.dist_bits: list[int] = list(DIST_BITS)
        self.dist_codes: list[int] = list(DIST_CODE)
        self.literal_bits = bytearray(LITERALS_COUNT)
        self.literal_codes: list[int] = [0] * LITERALS_COUNT

        self.phash_to_index: list[int] = [0] * HASH_TABLE_SIZE
        self.out_buff = bytearray(OUT_BUFF_SIZE)
        self.work_buff = bytearray(WORK_BUFF_SIZE)
        self.phash_offs: list[int] = [0] * WORK_BUFF_SIZE
        self.offs_buffer: list[int] = [0] * OFFSS_SIZE2

        self.work_pos = 0
        self.input_pos = 0
        self.work_bytes = 0

        self._init_literal_tables()

    def _init_literal_tables(self) -> None:
        if self.ctype is CompressionMode.BINARY:
            for byte in range(0x100):
                self.literal_bits[byte] = 9
                self.literal_codes[byte] = byte * 2
        else:
            for byte, (bits, code) in enumerate(zip(CH_BITS_ASC, CH_CODE_ASC)):
                self.literal_bits[byte] = bits + 1
                self.literal_codes[byte] = (code * 2) & _U16_MAX

        n_count = 0x100
        for ex_bits, len_bits, len_code in zip(EX_LEN_BITS, LEN_BITS, LEN_CODE):
            for extra in range(1 << ex_bits):
                if n_count >= LITERALS_COUNT:
                    break
                self.literal_bits[n_count] = ex_bits + len_bits + 1
                self.literal_codes[n_count] = (
                    (extra << (len_bits + 1)) | ((len_code & 0xFF) * 2) | 1
                ) & _U16_MAX
                n_count += 1

    def reset(self) -> None:
        """Clear counters and buffers for a new run; the code tables are kept."""
        self.distance = 0
        self.out_bytes = 0
        self.out_bits = 0
        self.work_pos = 0
        self.input_pos = 0
        self.work_bytes = 0

        self.phash_to_index = [0] * HASH_TABLE_SIZE
        self.out_buff = bytearray(OUT_BUFF_SIZE)
        self.work_buff = bytearray(WORK_BUFF_SIZE)
        self.phash_offs = [0] * WORK_BUFF_SIZE
        self.offs_buffer = [0] * OFFSS_SIZE2

    def stats(self) -> CompressionStats:
        """Bytes consumed, bytes produced and their ratio so far."""
        ratio = self.out_bytes / self.input_pos if self.input_pos > 0 else 0.0
        return CompressionStats(
            bytes_processed=self.input_pos,
            compressed_bytes=self.out_bytes,
            compression_ratio=ratio,
        )

    def sort_buffer(self, buffer_begin: int, buffer_end: int) -> None:
        """Index every byte pair of ``work_buff[buffer_begin:buffer_end]`` by its hash.

        Afterwards ``phash_offs`` lists the pair offsets (relative to
        ``buffer_begin``) ordered by hash and then by position, and
        ``phash_to_index[h]`` is the first slot of hash ``h``.
        """
        if buffer_end <= buffer_begin + 1:
            return

        last = min(buffer_end - 1, len(self.work_buff) - 1)
        pairs = [
            (pos, byte_pair_hash(self.work_buff[pos:pos + 2]))
            for pos in range(buffer_begin, last)
        ]

        counts = [0] * HASH_TABLE_SIZE
        for _, hash_value in pairs:
            counts[hash_value] = min(counts[hash_value] + 1, _U16_MAX)

        self.phash_to_index = [
            min(total, _U16_MAX) for total in accumulate(counts)
        ]

        for pos, hash_value in reversed(pairs):
            index = max(self.phash_to_index[hash_value] - 1, 0)
            self.phash_to_index[hash_value] = index
            if index < len(self.phash_offs):
                self.phash_offs[index] = (pos - buffer_begin) & _U16_MAX

    def get_hash_index(self, hash_value: int) -> int | None:
        """First slot of ``hash_value`` in ``phash_offs``, or None if it holds no offset."""
        if not 0 <= hash_value < HASH_TABLE_SIZE:
            return None
        index = self.phash_to_index[hash_value]
        if index < len(self.phash_offs) and self.phash_offs[index] != 0:
            return index
        return None

    def get_hash_offset(self, index: int) -> int | None:
        """Offset stored at ``index``, or None if the slot is empty or out of range."""
        if 0 <= index < len(self.phash_offs):
            offset = self.phash_offs[index]
            if offset > 0:
                return offset
        return None

    def find_hash_positions(self, hash_value: int, current_pos: int) -> list[int]:
        """Earlier offsets within the dictionary window, walking from the hash's first slot."""
        start_index = self.get_hash_index(hash_value)
        if start_index is None:
            return []

        min_offset = max(current_pos - self.dsize_bytes, 0)
        positions: list[int] = []
        for index in range(start_index, len(self.phash_offs)):
            offset = self.get_hash_offset(index)
            if offset is None:
                break
            if min_offset <= offset < current_pos:
                positions.append(offset)
            elif offset >= current_pos:
                break
        return positions

    def update_hash_incremental(self, pos: int) -> None:
        """Record ``pos`` in the first empty slot of ``phash_offs``."""
        if pos + 1 >= len(self.work_buff):
            return
        if byte_pair_hash(self.work_buff[pos:pos + 2]) >= HASH_TABLE_SIZE:
            return
        try:
            slot = self.phash_offs.index(0)
        except ValueError:
            return
        self.phash_offs[slot] = pos & _U16_MAX

    def validate_hash_table(self, buffer_start: int, buffer_end: int) -> bool:
        """Check that every index is in range and every stored offset lies in the buffer."""
        if any(index >= len(self.phash_offs) for index in self.phash_to_index):
            return False
        return all(
            buffer_start <= offset < buffer_end
            for offset in self.phash_offs
            if offset != 0
        )