from fractions import Fraction
from itertools import combinations

import pytest

from pkdcl import tables


def _is_prefix_free(codes, bits):
    for (code_a, bits_a), (code_b, bits_b) in combinations(zip(codes, bits), 2):
        shorter = min(bits_a, bits_b)
        mask = (1 << shorter) - 1
        if code_a & mask == code_b & mask:
            return False
    return True


def _kraft_sum(bits):
    return sum(Fraction(1, 1 << b) for b in bits)


def test_prefix_codes_small_example():
    assert tables._prefix_codes((1, 2, 2)) == (1, 2, 0)


def test_prefix_codes_unsorted_lengths():
    assert tables._prefix_codes((2, 1, 2)) == (2, 1, 0)


def test_length_codes_pinned():
    assert tables._prefix_codes(tables.LEN_BITS) == (
        0x05, 0x03, 0x01, 0x06, 0x0A, 0x02, 0x0C, 0x14,
        0x04, 0x18, 0x08, 0x30, 0x10, 0x20, 0x40, 0x00,
    )


def test_distance_codes_pinned():
    codes = tables._prefix_codes(tables.DIST_BITS)
    assert len(codes) == 64
    assert codes[:16] == (
        0x03, 0x0D, 0x05, 0x19, 0x09, 0x11, 0x01, 0x3E,
        0x1E, 0x2E, 0x0E, 0x36, 0x16, 0x26, 0x06, 0x3A,
    )
    assert codes[-1] == 0x00


def test_ascii_codes_pinned():
    codes = tables._prefix_codes(tables.CH_BITS_ASC)
    assert len(codes) == 256
    assert codes[ord(" ")] == 0x000F
    assert codes[ord("E")] == 0x0017
    assert codes[0x00] == 0x0490
    assert codes[0x1A] == 0x1240
    assert codes[0xF3] == 0x0640
    assert codes[0xF4] == 0x0A40
    assert codes[0xFC] == 0x1800
    assert codes[0xFF] == 0x0000


def test_expand_runs():
    assert tables._expand_runs(((2, 1), (4, 2), (7, 0), (5, 3))) == (2, 4, 4, 5, 5, 5)


def test_bases_small_example():
    assert tables._bases((0, 0, 1, 2)) == (0, 1, 2, 4)


def test_length_bases_pinned_and_contiguous():
    bases = tables._bases(tables.EX_LEN_BITS)
    assert bases == (
        0x0000, 0x0001, 0x0002, 0x0003, 0x0004, 0x0005, 0x0006, 0x0007,
        0x0008, 0x000A, 0x000E, 0x0016, 0x0026, 0x0046, 0x0086, 0x0106,
    )
    for base, extra, next_base in zip(bases, tables.EX_LEN_BITS, bases[1:]):
        assert base + (1 << extra) == next_base


@pytest.mark.parametrize(
    "bits",
    [tables.DIST_BITS, tables.LEN_BITS, tables.CH_BITS_ASC],
)
def test_codes_fit_their_bit_lengths(bits):
    codes = tables._prefix_codes(bits)
    assert all(code < (1 << width) for code, width in zip(codes, bits))


@pytest.mark.parametrize(
    "bits",
    [tables.DIST_BITS, tables.LEN_BITS, tables.CH_BITS_ASC],
)
def test_codes_are_prefix_free_and_complete(bits):
    codes = tables._prefix_codes(bits)
    assert _is_prefix_free(codes, bits) is True
    assert _kraft_sum(bits) == 1