"""Search for earlier repetitions of the data at a position in the work buffer."""

from __future__ import annotations

from dataclasses import dataclass

from .implode_state import ImplodeState, byte_pair_hash
from .types import MAX_REP_LENGTH

__all__ = [
    "MatchResult",
    "find_repetition",
    "compare_sequences",
    "find_run_length_match",
    "find_optimized_match",
    "quick_match_check",
]

# Two-byte repetitions this far back cost more than the two literals.
_MAX_SHORT_DISTANCE = 0x100


@dataclass(frozen=True)
class MatchResult:
    """A repetition found in the work buffer: its length and backward distance."""

    length: int = 0
    distance: int = 0

    @classmethod
    def no_match(cls) -> MatchResult:
        """The result that stands for "nothing found"."""
        return cls(0, 0)

    def is_match(self) -> bool:
        """True when the repetition is long enough to encode (at least two bytes)."""
        return self.length >= 2


def find_repetition(state: ImplodeState, input_pos: int) -> MatchResult:
    """Find the longest earlier repetition of the data at ``input_pos``.

    The hash index of ``state`` must have been built with ``sort_buffer``.
    On a match, ``state.distance`` is set to the distance minus one.
    """
    if input_pos + 1 >= state.work_bytes:
        return MatchResult.no_match()

    hash_value = byte_pair_hash(state.work_buff[input_pos:input_pos + 2])
    min_offset = max(input_pos - state.dsize_bytes, 0)

    positions = state.find_hash_positions(hash_value, input_pos)
    if not positions:
        return MatchResult.no_match()

    best = MatchResult.no_match()
    max_length = min(state.work_bytes - input_pos, MAX_REP_LENGTH)

    for match_pos in positions:
        if match_pos >= input_pos or match_pos < min_offset:
            continue

        distance = input_pos - match_pos

        if distance == 1:
            length = find_run_length_match(state, input_pos, max_length)
            if length > best.length:
                best = MatchResult(length, distance)
            continue

        length = compare_sequences(state, input_pos, match_pos, max_length)
        if length > best.length or (length == best.length and distance < best.distance):
            best = MatchResult(length, distance)
            if length >= MAX_REP_LENGTH:
                break

    if best.is_match() and best.length == 2 and best.distance >= _MAX_SHORT_DISTANCE:
        return MatchResult.no_match()

    if best.is_match():
        state.distance = best.distance - 1

    return best


def compare_sequences(state: ImplodeState, pos1: int, pos2: int, max_length: int) -> int:
    """Length of the common run at ``pos1`` and ``pos2``, or 0 if their first pairs differ."""
    buff = state.work_buff
    size = len(buff)
    if pos1 + 1 >= size or pos2 + 1 >= size:
        return 0

    if buff[pos1] != buff[pos2] or buff[pos1 + 1] != buff[pos2 + 1]:
        return 0

    length = 2
    while length < max_length:
        idx1 = pos1 + length
        idx2 = pos2 + length
        if idx1 >= size or idx2 >= size or buff[idx1] != buff[idx2]:
            break
        length += 1
    return length


def find_run_length_match(state: ImplodeState, pos: int, max_length: int) -> int:
    """Number of consecutive copies of the byte at ``pos``, up to ``max_length``."""
    buff = state.work_buff
    if pos >= len(buff):
        return 0

    byte_value = buff[pos]
    length = 1
    while length < max_length and pos + length < len(buff):
        if buff[pos + length] != byte_value:
            break
        length += 1
    return length


def find_optimized_match(
    state: ImplodeState, input_pos: int, current_best: MatchResult
) -> MatchResult:
    """Look for a strictly longer repetition than ``current_best`` at another distance.

    Only matches of ten bytes or more are reconsidered.
    """
    if not current_best.is_match() or current_best.length < 10:
        return current_best

    hash_value = byte_pair_hash(state.work_buff[input_pos:input_pos + 2])
    positions = state.find_hash_positions(hash_value, input_pos)

    best = current_best
    max_length = min(state.work_bytes - input_pos, MAX_REP_LENGTH)

    for match_pos in positions:
        if match_pos >= input_pos:
            continue

        distance = input_pos - match_pos
        if distance == best.distance:
            continue

        length = compare_sequences(state, input_pos, match_pos, max_length)
        if length > best.length:
            best = MatchResult(length, distance)
            state.distance = distance - 1

    return best


def quick_match_check(state: ImplodeState, pos1: int, pos2: int, min_length: int) -> bool:
    """Cheap pre-test: do the first and the ``min_length``-th bytes agree at both positions?"""
    buff = state.work_buff
    if pos1 + min_length > len(buff) or pos2 + min_length > len(buff):
        return False
    return (
        buff[pos1] == buff[pos2]
        and buff[pos1 + min_length - 1] == buff[pos2 + min_length - 1]
    )