"""Static code tables of the PKWARE DCL format.

The code tables are canonical prefix codes, assigned from the top down and
stored least significant bit first, so they are derived from the bit lengths.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

DIST_SIZES = 64
CH_BITS_ASC_SIZE = 256
LENS_SIZES = 16


def _expand_runs(runs: Iterable[tuple[int, int]]) -> tuple[int, ...]:
    """Expand (value, count) pairs into a flat tuple."""
    return tuple(value for value, count in runs for _ in range(count))


def _reverse_bits(value: int, width: int) -> int:
    return int(format(value, f"0{width}b")[::-1], 2) if width else 0


def _prefix_codes(bit_lengths: Sequence[int]) -> tuple[int, ...]:
    """Assign the format's prefix codes to symbols of the given bit lengths."""
    codes = [0] * len(bit_lengths)
    code = 0
    previous = 0
    order = sorted(range(len(bit_lengths)), key=lambda symbol: (bit_lengths[symbol], symbol))
    for symbol in order:
        width = bit_lengths[symbol]
        code <<= width - previous
        previous = width
        codes[symbol] = _reverse_bits(~code & ((1 << width) - 1), width)
        code += 1
    return tuple(codes)


def _bases(extra_bits: Iterable[int]) -> tuple[int, ...]:
    """Base value of each code whose range spans 2**extra values."""
    bases = []
    base = 0
    for extra in extra_bits:
        bases.append(base)
        base += 1 << extra
    return tuple(bases)


#: Bit length of each distance position code.
DIST_BITS: tuple[int, ...] = _expand_runs(((2, 1), (4, 2), (5, 4), (6, 15), (7, 26), (8, 16)))

#: Distance position codes, least significant bit first.
DIST_CODE: tuple[int, ...] = _prefix_codes(DIST_BITS)

#: Extra bits that follow each length code.
EX_LEN_BITS: tuple[int, ...] = (0,) * 8 + tuple(range(1, 9))

#: Base value of each length code.
LEN_BASE: tuple[int, ...] = _bases(EX_LEN_BITS)

#: Bit length of each length code.
LEN_BITS: tuple[int, ...] = (3, 2, 3, 3, 4, 4, 4, 5, 5, 5, 5, 6, 6, 6, 7, 7)

#: Length codes, least significant bit first.
LEN_CODE: tuple[int, ...] = _prefix_codes(LEN_BITS)

_ASCII_LENGTH_ROWS = (
    "bcccccccc87cc7cc",
    "ccccccccccdccccc",
    "4a8caca877897678",
    "76777787788cb79b",
    "c676657886b96766",
    "7b66679899b8b9c8",
    "c566656665b75655",
    "6a55558788abbccc",
    "d" * 48,
    "c" * 48,
    "dcdddcdddcddddcd",
    "ddcccddddddddddd",
)

#: Bit length of each byte's code in ASCII mode.
CH_BITS_ASC: tuple[int, ...] = tuple(int(digit, 16) for digit in "".join(_ASCII_LENGTH_ROWS))

#: Code of each byte in ASCII mode, least significant bit first.
CH_CODE_ASC: tuple[int, ...] = _prefix_codes(CH_BITS_ASC)