"""
Initialized-tick lookup over the V4 tick bitmap.

The tick bitmap is organized in words of 256 bits, where each bit flags whether
the compressed tick (tick // tick_spacing) at that position is initialized.
Lookups scan at most `search_limit` words so a pathological range costs a
bounded number of RPC reads; exhaustion returns None instead of raising.
"""

import logging
from typing import Callable

from .config import BITMAP_WORD_BITS, DEFAULT_SEARCH_LIMIT

logger = logging.getLogger(__name__)

# (word_position) -> 256-bit bitmap word
WordReader = Callable[[int], int]


def compress_tick(tick: int, tick_spacing: int) -> int:
    """Compress a tick to its spacing index, rounding toward negative infinity."""
    return tick // tick_spacing


def tick_position(compressed: int) -> tuple[int, int]:
    """Split a compressed tick into (word_position, bit_position)."""
    return compressed >> 8, compressed & 0xFF


def find_initialized_tick_below(
    read_word: WordReader,
    tick: int,
    tick_spacing: int,
    search_limit: int = DEFAULT_SEARCH_LIMIT,
) -> int | None:
    """
    Find the nearest initialized tick at or below `tick`.

    Args:
        read_word: Callable returning the bitmap word at a word position
        tick: Starting tick
        tick_spacing: Pool's tick spacing
        search_limit: Maximum number of bitmap words to read

    Returns:
        The initialized tick, or None when none is found within the limit
    """
    start_word, start_bit = tick_position(compress_tick(tick, tick_spacing))

    for word_offset in range(search_limit):
        word_pos = start_word - word_offset
        bitmap = read_word(word_pos)
        if bitmap == 0:
            continue

        first_bit = start_bit if word_offset == 0 else BITMAP_WORD_BITS - 1
        for bit_pos in range(first_bit, -1, -1):
            if bitmap & (1 << bit_pos):
                return (word_pos * BITMAP_WORD_BITS + bit_pos) * tick_spacing

    logger.debug("No initialized tick below %d within %d words", tick, search_limit)
    return None


def find_initialized_tick_above(
    read_word: WordReader,
    tick: int,
    tick_spacing: int,
    search_limit: int = DEFAULT_SEARCH_LIMIT,
) -> int | None:
    """
    Find the nearest initialized tick at or above `tick`.

    Mirrors find_initialized_tick_below, scanning words upward.
    """
    start_word, start_bit = tick_position(compress_tick(tick, tick_spacing))

    for word_offset in range(search_limit):
        word_pos = start_word + word_offset
        bitmap = read_word(word_pos)
        if bitmap == 0:
            continue

        first_bit = start_bit if word_offset == 0 else 0
        for bit_pos in range(first_bit, BITMAP_WORD_BITS):
            if bitmap & (1 << bit_pos):
                return (word_pos * BITMAP_WORD_BITS + bit_pos) * tick_spacing

    logger.debug("No initialized tick above %d within %d words", tick, search_limit)
    return None

