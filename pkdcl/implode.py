"""Streaming compression into the PKWARE DCL ("imploded") format."""

from __future__ import annotations

import io
from types import TracebackType
from typing import BinaryIO

from .implode_state import LITERALS_COUNT, WORK_BUFF_SIZE, ImplodeState
from .pattern import MatchResult, find_repetition
from .types import (
    CompressionMode,
    DictionarySize,
    InvalidDistanceError,
    InvalidLengthError,
)

__all__ = ["ImplodeWriter", "implode_bytes"]

# Input is compressed once this much of it has accumulated.
_PROCESS_THRESHOLD = 4096

# Compressed bytes are written out once the output buffer holds this many.
_OUTPUT_FLUSH_LIMIT = 0x800

# Literal index of the end-of-stream marker.
_END_MARKER = 0x305


class ImplodeWriter:
    """File-like writer that compresses everything written to it into ``writer``.

    Call :meth:`finish` (or leave a ``with`` block) to write the end marker
    and the last compressed bytes.
    """

    def __init__(
        self,
        writer: BinaryIO,
        mode: CompressionMode = CompressionMode.BINARY,
        dict_size: DictionarySize = DictionarySize.SIZE_2K,
    ) -> None:
        self._writer = writer
        self._state = ImplodeState(mode, dict_size)
        self._initialized = False
        self._finished = False
        self._input = bytearray()

    def writable(self) -> bool:
        return not self._finished

    def _initialize(self) -> None:
        if self._initialized:
            return
        state = self._state
        state.out_buff[:] = bytes(len(state.out_buff))
        state.out_buff[0] = int(state.ctype)
        state.out_buff[1] = state.dsize_bits
        state.out_bytes = 2
        state.out_bits = 0
        self._initialized = True

    def write(self, data: bytes) -> int:
        """Queue ``data`` for compression and return its length."""
        if self._finished:
            raise ValueError("write to a finished ImplodeWriter")
        self._input += data
        while len(self._input) >= _PROCESS_THRESHOLD:
            self._process_input()
        return len(data)

    def flush(self) -> None:
        """Compress all queued input and write out every complete compressed byte."""
        if not self._finished:
            self._process_input()
            self._flush_output_buffer()
        flush = getattr(self._writer, "flush", None)
        if flush is not None:
            flush()

    def finish(self) -> BinaryIO:
        """Compress what is left, write the end marker and return the underlying writer."""
        if not self._finished:
            self._initialize()
            while self._input:
                self._process_input()
            self._write_end_marker()
            self._flush_output_buffer()
            self._finished = True
        return self._writer

    def __enter__(self) -> ImplodeWriter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.finish()

    def _process_input(self) -> None:
        """Move queued input behind the dictionary in the work buffer and compress it."""
        self._initialize()
        if not self._input:
            return

        state = self._state
        keep = min(state.work_bytes, state.dsize_bytes)
        if keep:
            start = state.work_bytes - keep
            state.work_buff[:keep] = state.work_buff[start:state.work_bytes]
        state.work_pos = keep

        take = min(len(self._input), WORK_BUFF_SIZE - keep)
        state.work_buff[keep:keep + take] = self._input[:take]
        del self._input[:take]
        state.work_bytes = keep + take
        state.input_pos += take

        state.sort_buffer(0, state.work_bytes)
        self._compress_buffer()

    def _compress_buffer(self) -> None:
        state = self._state
        buff = state.work_buff
        pos = state.work_pos
        end = state.work_bytes

        while pos < end - 1:
            match = find_repetition(state, pos)
            if match.is_match():
                self._encode_match(match)
                pos += match.length
            else:
                self._encode_literal(buff[pos])
                pos += 1

        if pos < end:
            self._encode_literal(buff[pos])

        state.work_pos = end

    def _encode_literal(self, byte: int) -> None:
        state = self._state
        self._output_bits(state.literal_bits[byte], state.literal_codes[byte])

    def _encode_match(self, match: MatchResult) -> None:
        state = self._state
        length = match.length
        distance = match.distance

        length_code = length + 0xFE
        if length_code >= LITERALS_COUNT:
            raise InvalidLengthError(length)
        self._output_bits(state.literal_bits[length_code], state.literal_codes[length_code])

        dist_minus_one = distance - 1
        if length == 2:
            low_bits, low_mask = 2, 0x03
        else:
            low_bits, low_mask = state.dsize_bits, state.dsize_mask

        code_index = dist_minus_one >> low_bits
        if not 0 <= code_index < len(state.dist_bits):
            raise InvalidDistanceError(distance)
        self._output_bits(state.dist_bits[code_index], state.dist_codes[code_index])
        self._output_bits(low_bits, dist_minus_one & low_mask)

    def _output_bits(self, n_bits: int, bits: int) -> None:
        """Append the ``n_bits`` low bits of ``bits`` to the stream, least significant first."""
        while n_bits > 8:
            self._put_bits(8, bits)
            bits >>= 8
            n_bits -= 8
        self._put_bits(n_bits, bits)

    def _put_bits(self, n_bits: int, bits: int) -> None:
        state = self._state
        if state.out_bytes >= len(state.out_buff):
            self._flush_output_buffer()

        out = state.out_buff
        out_bits = state.out_bits
        out[state.out_bytes] |= (bits << out_bits) & 0xFF
        state.out_bits += n_bits

        if state.out_bits > 8:
            state.out_bytes += 1
            bits >>= 8 - out_bits
            if state.out_bytes < len(out):
                out[state.out_bytes] = bits & 0xFF
            state.out_bits &= 7
        else:
            state.out_bits &= 7
            if state.out_bits == 0:
                state.out_bytes += 1

        if state.out_bytes >= _OUTPUT_FLUSH_LIMIT:
            self._flush_output_buffer()

    def _flush_output_buffer(self) -> None:
        """Write the complete bytes and carry a partly filled byte over to the front."""
        state = self._state
        out = state.out_buff
        count = state.out_bytes
        if count <= 0 or count > len(out):
            return

        self._writer.write(bytes(out[:count]))
        save = out[count] if state.out_bits and count < len(out) else 0
        out[:] = bytes(len(out))
        state.out_bytes = 0
        if state.out_bits:
            out[0] = save

    def _write_end_marker(self) -> None:
        state = self._state
        self._output_bits(state.literal_bits[_END_MARKER], state.literal_codes[_END_MARKER])
        if state.out_bits > 0:
            state.out_bytes += 1


def implode_bytes(
    data: bytes,
    mode: CompressionMode = CompressionMode.BINARY,
    dict_size: DictionarySize = DictionarySize.SIZE_2K,
) -> bytes:
    """Compress ``data`` in memory."""
    output = io.BytesIO()
    writer = ImplodeWriter(output, mode, dict_size)
    writer.write(data)
    writer.finish()
    return output.getvalue()