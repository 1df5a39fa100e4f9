import io
import random

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from pkdcl.explode import ExplodeReader, explode_bytes
from pkdcl.tables import (
    CH_BITS_ASC,
    CH_CODE_ASC,
    DIST_BITS,
    DIST_CODE,
    EX_LEN_BITS,
    LEN_BASE,
    LEN_BITS,
    LEN_CODE,
)
from pkdcl.types import (
    DecompressionError,
    InvalidCompressionModeError,
    InvalidDataError,
    InvalidDictionaryBitsError,
    PkLibError,
)


class _BitWriter:
    def __init__(self):
        self.acc = 0
        self.count = 0

    def put(self, value, n_bits):
        self.acc |= (value & ((1 << n_bits) - 1)) << self.count
        self.count += n_bits

    def to_bytes(self):
        return self.acc.to_bytes((self.count + 7) // 8, "little")


def _encode(tokens, mode=0, dsize_bits=4):
    """Build a DCL stream from byte literals and (length, distance) pairs."""
    bits = _BitWriter()
    for token in tokens:
        if isinstance(token, int):
            bits.put(0, 1)
            if mode == 0:
                bits.put(token, 8)
            else:
                bits.put(CH_CODE_ASC[token], CH_BITS_ASC[token])
            continue
        length, distance = token
        code = length - 2
        index = max(i for i in range(16) if LEN_BASE[i] <= code)
        bits.put(1, 1)
        bits.put(LEN_CODE[index], LEN_BITS[index])
        if EX_LEN_BITS[index]:
            bits.put(code - LEN_BASE[index], EX_LEN_BITS[index])
        dist = distance - 1
        if length == 2:
            pos = dist >> 2
            bits.put(DIST_CODE[pos], DIST_BITS[pos])
            bits.put(dist & 3, 2)
        else:
            pos = dist >> dsize_bits
            bits.put(DIST_CODE[pos], DIST_BITS[pos])
            bits.put(dist & ((1 << dsize_bits) - 1), dsize_bits)
    bits.put(1, 1)
    bits.put(LEN_CODE[15], 7)
    bits.put(0xFF, 8)
    return bytes([mode, dsize_bits]) + bits.to_bytes()


def test_reference_stream():
    assert explode_bytes(bytes.fromhex("00048224258f807f")) == b"AIAIAIAIAIAIA"


def test_literal_stream():
    assert explode_bytes(_encode(list(b"Hello, World!"))) == b"Hello, World!"


def test_literals_across_window_flush():
    data = bytes(random.Random(7).randrange(256) for _ in range(10000))
    assert explode_bytes(_encode(list(data))) == data


def test_ascii_literals_all_bytes():
    data = bytes(range(256)) + b"The quick brown fox jumps over the lazy dog."
    assert explode_bytes(_encode(list(data), mode=1, dsize_bits=5)) == data


def test_two_byte_repetition():
    assert explode_bytes(_encode([ord("a"), ord("b"), (2, 2)])) == b"abab"


def test_overlapping_run():
    tokens = [ord("x")] + [(516, 1)] * 20
    assert explode_bytes(_encode(tokens)) == b"x" * (1 + 516 * 20)


def test_long_distance_repetition():
    data = bytes(random.Random(3).randrange(256) for _ in range(3000))
    stream = _encode(list(data) + [(10, 3000)], dsize_bits=6)
    assert explode_bytes(stream) == data + data[:10]


def test_repetition_after_window_flush():
    data = bytes(random.Random(5).randrange(256) for _ in range(5000))
    stream = _encode(list(data) + [(20, 4000)], dsize_bits=6)
    assert explode_bytes(stream) == data + data[1000:1020]


def test_extra_length_bits():
    tokens = list(b"abc") + [(100, 3)]
    assert explode_bytes(_encode(tokens, dsize_bits=5)) == (b"abc" * 40)[:103]


def test_too_short_input():
    with pytest.raises(InvalidDataError):
        explode_bytes(b"\x00\x04")


def test_empty_payload_is_not_enough_data():
    stream = _encode([])
    assert len(stream) == 4
    with pytest.raises(InvalidDataError):
        explode_bytes(stream)


def test_invalid_mode():
    with pytest.raises(InvalidCompressionModeError) as info:
        explode_bytes(b"\x02\x04\x00\x00\x00")
    assert info.value.mode == 2


@pytest.mark.parametrize("bits", [3, 7])
def test_invalid_dictionary_bits(bits):
    with pytest.raises(InvalidDictionaryBitsError) as info:
        explode_bytes(bytes([0, bits, 0, 0, 0]))
    assert info.value.bits == bits


def test_truncated_stream():
    with pytest.raises(DecompressionError):
        explode_bytes(b"\x00\x04\x82\x00\x00")


def test_reader_reads_lazily():
    reader = ExplodeReader(io.BytesIO(b"\x05\x04\x00\x00\x00"))
    with pytest.raises(InvalidCompressionModeError):
        reader.read(1)


def test_reader_partial_reads():
    data = bytes(range(200)) * 30
    reader = ExplodeReader(io.BytesIO(_encode(list(data))))
    first = reader.read(5)
    assert first == data[:5]
    rest = reader.read()
    assert first + rest == data
    assert reader.read(10) == b""


def test_reader_iteration():
    data = bytes(random.Random(11).randrange(256) for _ in range(9000))
    chunks = list(ExplodeReader(io.BytesIO(_encode(list(data)))))
    assert b"".join(chunks) == data
    assert len(chunks) > 1


@settings(max_examples=50, deadline=None)
@given(st.binary(min_size=1, max_size=3000))
def test_literal_round_trip(data):
    assert explode_bytes(_encode(list(data))) == data


@settings(max_examples=50, deadline=None)
@given(st.binary(min_size=1, max_size=500), st.sampled_from([4, 5, 6]))
def test_ascii_literal_round_trip(data, dsize_bits):
    assert explode_bytes(_encode(list(data), mode=1, dsize_bits=dsize_bits)) == data


@settings(max_examples=100, deadline=None)
@given(st.binary(max_size=1000))
def test_arbitrary_input_fails_cleanly(data):
    try:
        result = explode_bytes(data)
    except PkLibError as error:
        assert str(error)
    else:
        assert len(result) <= len(data) * 8 * 516