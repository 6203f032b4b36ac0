"""
Tests for attribution module.

The fake reader grows fee growth inside by 1 token0 and 2 token1 per unit
of liquidity per block, so expected fees are liquidity * blocks.
Run: cd backend && python tests/test_attribution.py
"""

import os
import sys

sys.path.insert(0, os.path.dirname(__file__))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from fakes import FakeReader
from telx_rewards.attribution import attribute_fees, sub_period_bounds
from telx_rewards.config import Q128
from telx_rewards.fee_growth import FeeGrowthOracle
from telx_rewards.positions import LiquidityChange, PositionState

ALICE = "0x000000000000000000000000000000000000A11C"
BOB = "0x0000000000000000000000000000000000000B0B"


def position(*timeline: tuple) -> PositionState:
    changes = [LiquidityChange(*point) for point in timeline]
    return PositionState(-60, 60, liquidity=changes[-1].new_liquidity_amount,
                         liquidity_modifications=changes)


def oracle() -> FeeGrowthOracle:
    return FeeGrowthOracle(FakeReader(), 60)


def test_sub_period_bounds() -> None:
    assert sub_period_bounds(LiquidityChange(100, 1, None), LiquidityChange(110, 1, None)) == (100, 109)
    assert sub_period_bounds(LiquidityChange(110, 1, None), LiquidityChange(110, 1, None)) == (110, 110)
    print("  [PASS] sub_period_bounds")


def test_adjacent_sub_periods_do_not_overlap() -> None:
    positions = {1: position((100, 10, ALICE), (110, 10, ALICE), (120, 10, ALICE))}
    lp_data = attribute_fees(positions, oracle(), 100, 120)

    # windows [100, 109] and [110, 119]: 9 blocks each
    assert lp_data[ALICE].period_fees_currency0 == 10 * 18
    assert lp_data[ALICE].period_fees_currency1 == 2 * 10 * 18
    assert positions[1].fee_growth_inside_period0 == 18 * Q128
    print("  [PASS] adjacent_sub_periods_do_not_overlap")


def test_credits_owner_at_sub_period_end() -> None:
    positions = {1: position((100, 10, ALICE), (110, 10, BOB), (120, 10, BOB))}
    lp_data = attribute_fees(positions, oracle(), 100, 120)

    assert set(lp_data) == {BOB}
    assert lp_data[BOB].period_fees_currency0 == 10 * 18
    print("  [PASS] credits_owner_at_sub_period_end")


def test_falls_back_to_previous_owner() -> None:
    positions = {1: position((100, 10, ALICE), (110, 0, ALICE), (120, 0, None))}
    lp_data = attribute_fees(positions, oracle(), 100, 120)

    assert lp_data[ALICE].period_fees_currency0 == 10 * 9
    print("  [PASS] falls_back_to_previous_owner")


def test_zero_liquidity_skipped() -> None:
    positions = {1: position((100, 0, None), (105, 10, ALICE), (120, 10, ALICE))}
    lp_data = attribute_fees(positions, oracle(), 100, 120)

    assert lp_data[ALICE].period_fees_currency0 == 10 * 14
    print("  [PASS] zero_liquidity_skipped")


def test_ownerless_window_skipped() -> None:
    positions = {1: position((100, 10, None), (120, 10, None))}
    lp_data = attribute_fees(positions, oracle(), 100, 120)

    assert lp_data == {}
    print("  [PASS] ownerless_window_skipped")


def test_multiple_positions_aggregate_per_owner() -> None:
    positions = {
        1: position((100, 10, ALICE), (120, 10, ALICE)),
        2: position((100, 5, ALICE), (120, 5, ALICE)),
        3: position((100, 1, BOB), (120, 1, BOB)),
    }
    lp_data = attribute_fees(positions, oracle(), 100, 120)

    assert lp_data[ALICE].period_fees_currency0 == 15 * 19
    assert lp_data[BOB].period_fees_currency0 == 19
    assert lp_data[ALICE].reward is None
    print("  [PASS] multiple_positions_aggregate_per_owner")


def test_degenerate_period() -> None:
    reader = FakeReader()
    positions = {1: position((100, 10, ALICE), (100, 10, ALICE))}
    lp_data = attribute_fees(positions, FeeGrowthOracle(reader, 60), 100, 100)

    assert lp_data == {}
    assert reader.inside_calls == 0
    print("  [PASS] degenerate_period")


if __name__ == "__main__":
    print("=== test_attribution.py ===")
    test_sub_period_bounds()
    test_adjacent_sub_periods_do_not_overlap()
    test_credits_owner_at_sub_period_end()
    test_falls_back_to_previous_owner()
    test_zero_liquidity_skipped()
    test_ownerless_window_skipped()
    test_multiple_positions_aggregate_per_owner()
    test_degenerate_period()
    print("\nAll attribution tests passed.")
