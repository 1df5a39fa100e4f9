"""Streaming decompression of PKWARE DCL ("imploded") data."""

from __future__ import annotations

import io
from typing import BinaryIO, Iterator

from .explode_state import (
    IN_BUFF_SIZE,
    LITERAL_END_OF_STREAM,
    LITERAL_ERROR,
    ExplodeState,
)
from .types import DecompressionError, InvalidDataError

__all__ = ["ExplodeReader", "explode_bytes"]

# The output window keeps the previous 4 KiB as dictionary in front of the
# block being decoded; a block is handed out once it reaches 4 KiB.
_WINDOW_START = 0x1000
_FLUSH_LIMIT = 0x2000


class ExplodeReader:
    """File-like reader that yields the decompressed contents of ``reader``.

    The header is read lazily, on the first call to :meth:`read`.
    """

    def __init__(self, reader: BinaryIO) -> None:
        self._reader = reader
        self._state = ExplodeState()
        self._initialized = False
        self._finished = False
        self._pending = bytearray()

    def readable(self) -> bool:
        return True

    def _initialize(self) -> None:
        data = self._reader.read(IN_BUFF_SIZE) or b""
        if len(data) <= 4:
            raise InvalidDataError("Not enough data")
        self._state.initialize(data)
        self._initialized = True

    def _fill(self) -> None:
        if not self._initialized:
            self._initialize()
        if not self._finished:
            self._expand()

    def _expand(self) -> int:
        """Decode until one window block is complete or the stream ends."""
        state = self._state
        out = state.out_buff
        produced = 0

        while True:
            literal = state.decode_lit(self._reader)

            if literal == LITERAL_END_OF_STREAM:
                self._finished = True
                break
            if literal == LITERAL_ERROR:
                raise DecompressionError("Decode error")

            if literal >= 0x100:
                rep_length = literal - 0xFE
                minus_dist = state.decode_dist(self._reader, rep_length)
                if minus_dist == 0:
                    raise DecompressionError("Invalid distance")

                target = state.output_pos
                source = max(0, target - minus_dist)
                if source >= len(out) or target + rep_length > len(out):
                    raise DecompressionError("Buffer overflow")

                _copy_repetition(out, source, target, rep_length)
                state.output_pos += rep_length
            else:
                if state.output_pos >= len(out):
                    raise DecompressionError("Output buffer overflow")
                out[state.output_pos] = literal
                state.output_pos += 1

            if state.output_pos >= _FLUSH_LIMIT:
                self._pending += out[_WINDOW_START:_FLUSH_LIMIT]
                produced += _FLUSH_LIMIT - _WINDOW_START
                keep = state.output_pos - _WINDOW_START
                out[0:keep] = out[_WINDOW_START:state.output_pos]
                state.output_pos = keep
                break

        if self._finished and state.output_pos > _WINDOW_START:
            self._pending += out[_WINDOW_START:state.output_pos]
            produced += state.output_pos - _WINDOW_START
            state.output_pos = _WINDOW_START

        return produced

    def read(self, size: int = -1) -> bytes:
        """Return up to ``size`` decompressed bytes, or everything left if ``size`` is negative.

        An empty result means the end of the stream.
        """
        if size is None or size < 0:
            while not self._finished:
                self._fill()
            data = bytes(self._pending)
            self._pending.clear()
            return data

        if size == 0:
            return b""

        while not self._pending and not self._finished:
            self._fill()

        chunk = bytes(self._pending[:size])
        del self._pending[:size]
        return chunk

    def __iter__(self) -> Iterator[bytes]:
        """Yield the decompressed data in chunks until the stream ends."""
        while chunk := self.read(IN_BUFF_SIZE):
            yield chunk


def _copy_repetition(out: bytearray, source: int, target: int, length: int) -> None:
    """Copy ``length`` bytes forward, repeating the source when it overlaps the target."""
    period = target - source
    if period >= length:
        out[target:target + length] = out[source:source + length]
        return
    pattern = bytes(out[source:target])
    repeats = length // period + 1
    out[target:target + length] = (pattern * repeats)[:length]


def explode_bytes(data: bytes) -> bytes:
    """Decompress a complete in-memory DCL stream."""
    return ExplodeReader(io.BytesIO(data)).read()