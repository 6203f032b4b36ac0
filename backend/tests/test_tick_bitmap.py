"""
Tests for tick_bitmap module.

Run: cd backend && python tests/test_tick_bitmap.py
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from telx_rewards.tick_bitmap import (
    compress_tick,
    find_initialized_tick_above,
    find_initialized_tick_below,
    tick_position,
)


def word_reader(bitmap: dict[int, int], reads: list[int] | None = None):
    def read_word(word_pos: int) -> int:
        if reads is not None:
            reads.append(word_pos)
        return bitmap.get(word_pos, 0)
    return read_word


def test_compress_rounds_down() -> None:
    assert compress_tick(1020, 60) == 17
    assert compress_tick(-1, 60) == -1
    assert compress_tick(-60, 60) == -1
    assert compress_tick(-61, 60) == -2
    assert tick_position(-1) == (-1, 255)
    assert tick_position(256) == (1, 0)
    print("  [PASS] compress_rounds_down")


def test_above_exact_tick() -> None:
    tick = find_initialized_tick_above(word_reader({0: 1 << 17}), 1020, 60)
    assert tick == 1020, f"Expected 1020, got {tick}"
    print("  [PASS] above_exact_tick")


def test_above_same_word() -> None:
    tick = find_initialized_tick_above(word_reader({0: 1 << 20}), 1020, 60)
    assert tick == 1200, f"Expected 1200, got {tick}"
    print("  [PASS] above_same_word")


def test_above_next_word() -> None:
    tick = find_initialized_tick_above(word_reader({1: 1}), 0, 60)
    assert tick == 15360, f"Expected 15360, got {tick}"
    print("  [PASS] above_next_word")


def test_negative_tick() -> None:
    bitmap = {-1: 1 << 253}
    assert find_initialized_tick_above(word_reader(bitmap), -30, 10) == -30
    assert find_initialized_tick_below(word_reader(bitmap), -30, 10) == -30
    print("  [PASS] negative_tick")


def test_below_same_word() -> None:
    tick = find_initialized_tick_below(word_reader({0: (1 << 3) | (1 << 30)}), 1020, 60)
    assert tick == 180, f"Expected 180, got {tick}"
    print("  [PASS] below_same_word")


def test_below_previous_word() -> None:
    tick = find_initialized_tick_below(word_reader({-1: 1 << 255}), 0, 60)
    assert tick == -60, f"Expected -60, got {tick}"
    print("  [PASS] below_previous_word")


def test_search_limit_exhausted() -> None:
    reads: list[int] = []
    tick = find_initialized_tick_above(word_reader({5: 1}, reads), 0, 60, search_limit=2)
    assert tick is None
    assert reads == [0, 1], f"Expected exactly 2 reads, got {reads}"

    reads = []
    assert find_initialized_tick_below(word_reader({}, reads), 0, 60, search_limit=2) is None
    assert reads == [0, -1]
    print("  [PASS] search_limit_exhausted")


if __name__ == "__main__":
    print("=== test_tick_bitmap.py ===")
    test_compress_rounds_down()
    test_above_exact_tick()
    test_above_same_word()
    test_above_next_word()
    test_negative_tick()
    test_below_same_word()
    test_below_previous_word()
    test_search_limit_exhausted()
    print("\nAll tick bitmap tests passed.")
