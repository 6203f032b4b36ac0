"""
Attribution of period fees to LP addresses.

Walks each position's timeline sub-period by sub-period, measures fee growth
inside the position's range at both ends of the sub-period and credits the
resulting fees to the owner at the end of the sub-period, i.e. the holder who
could actually collect them.
"""

import logging
from dataclasses import dataclass

from .fee_growth import FeeGrowthOracle, calculate_fees, fee_growth_delta
from .positions import LiquidityChange, PositionState

logger = logging.getLogger(__name__)


@dataclass
class LPData:
    """Per-owner fee and reward totals for one period."""
    period_fees_currency0: int = 0
    period_fees_currency1: int = 0
    total_fees_common_denominator: int | None = None
    reward: int | None = None


def sub_period_bounds(prev: LiquidityChange, curr: LiquidityChange) -> tuple[int, int]:
    """Blocks at which fee growth is read for the window between two points.

    The end stops one block short of the next point so adjacent windows never
    share a boundary block.
    """
    sub_start = prev.block_number
    if curr.block_number > sub_start:
        sub_end = curr.block_number - 1
    else:
        sub_end = curr.block_number
    return sub_start, sub_end


def attribute_position(
    key: int,
    position: PositionState,
    oracle: FeeGrowthOracle,
    lp_data: dict[str, LPData],
) -> None:
    """Credit one position's fees for every non-empty sub-period."""
    timeline = position.liquidity_modifications
    for prev, curr in zip(timeline, timeline[1:]):
        if prev.new_liquidity_amount == 0:
            continue
        sub_start, sub_end = sub_period_bounds(prev, curr)
        if sub_end <= sub_start:
            continue

        owner = curr.owner if curr.owner is not None else prev.owner
        if owner is None:
            logger.warning(
                "Position %d has no owner for blocks %d-%d; fees not attributed",
                key, sub_start, sub_end,
            )
            continue

        start = oracle.fee_growth_inside(position.tick_lower, position.tick_upper, sub_start)
        end = oracle.fee_growth_inside(position.tick_lower, position.tick_upper, sub_end)

        fees0, fees1 = calculate_fees(
            prev.new_liquidity_amount,
            end.fee_growth0,
            end.fee_growth1,
            start.fee_growth0,
            start.fee_growth1,
        )
        position.fee_growth_inside_period0 += fee_growth_delta(start.fee_growth0, end.fee_growth0)
        position.fee_growth_inside_period1 += fee_growth_delta(start.fee_growth1, end.fee_growth1)

        entry = lp_data.setdefault(owner, LPData())
        entry.period_fees_currency0 += fees0
        entry.period_fees_currency1 += fees1


def attribute_fees(
    positions: dict[int, PositionState],
    oracle: FeeGrowthOracle,
    start_block: int,
    end_block: int,
) -> dict[str, LPData]:
    """
    Compute per-LP fee totals for a period.

    Args:
        positions: Positions with complete timelines for the period
        oracle: Fee growth lookups for the pool
        start_block: First block of the period
        end_block: Last block of the period

    Returns:
        Mapping of owner address -> LPData, owned by the caller
    """
    lp_data: dict[str, LPData] = {}
    if start_block == end_block:
        logger.info("Degenerate period at block %d; nothing to attribute", start_block)
        return lp_data

    for key, position in positions.items():
        attribute_position(key, position, oracle, lp_data)

    logger.info(
        "Attributed fees to %d LPs (%d oracle fallbacks)", len(lp_data), oracle.fallback_count
    )
    return lp_data
