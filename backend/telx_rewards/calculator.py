"""
One pool-period run of the TELx LP fee attribution pipeline.

Loads the previous checkpoint, validates that the requested range continues
it, rebuilds position timelines from the period's ModifyLiquidity events,
attributes fees, converts them to the denominator currency, distributes the
period reward and, only after all of that succeeded, writes the new checkpoint.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from .attribution import LPData, attribute_fees
from .checkpoint import Checkpoint, CheckpointStore, validate_period_start
from .config import PoolConfig
from .events import LiquidityModification, PoolKey
from .fee_growth import FeeGrowthOracle
from .positions import PositionState, build_position_timelines
from .reader import PoolStateReader
from .rewards import convert_to_common_denominator, distribute_rewards, period_price

logger = logging.getLogger(__name__)


@dataclass
class PeriodResult:
    positions: dict[int, PositionState]
    lp_data: dict[str, LPData]
    price: int
    allocated: int


def calculate_period(
    previous_positions: dict[int, PositionState],
    events: list[LiquidityModification],
    reader: PoolStateReader,
    oracle: FeeGrowthOracle,
    start_block: int,
    end_block: int,
    total_reward: int,
    denominator_index: int,
) -> PeriodResult:
    """
    Pure core of a period run: no persistence, all state passed in.

    Args:
        previous_positions: Position map of the previous checkpoint (left untouched)
        events: Chronological ModifyLiquidity events within the period
        reader: Pool state reads (owner lookups, global fee growth)
        oracle: Fee growth inside lookups
        start_block: First block of the period (inclusive)
        end_block: Last block of the period (inclusive)
        total_reward: Reward to distribute, in denominator base units
        denominator_index: 0 or 1, the currency rewards are priced in

    Returns:
        PeriodResult with the new position map and per-LP totals
    """
    positions = build_position_timelines(
        previous_positions,
        events,
        reader.owner_of,
        reader.is_position_closed,
        start_block,
        end_block,
    )
    lp_data = attribute_fees(positions, oracle, start_block, end_block)

    price = period_price(
        reader.fee_growth_globals(start_block),
        reader.fee_growth_globals(end_block),
        denominator_index,
    )
    convert_to_common_denominator(lp_data, price, denominator_index)
    allocated = distribute_rewards(lp_data, total_reward)
    return PeriodResult(positions, lp_data, price, allocated)


def run_period(
    pool: PoolConfig,
    pool_key: PoolKey,
    period: int,
    start_block: int,
    end_block: int,
    total_reward: int,
    reader: PoolStateReader,
    fetch_events: Callable[[int, int], list[LiquidityModification]],
    store: CheckpointStore,
    save: bool = True,
) -> Checkpoint:
    """
    Process one period of one pool and persist its checkpoint.

    Raises:
        ResumabilityError, NoProgressError: before any event or state is read
    """
    if period == 0:
        # a bootstrap checkpoint already on disk may have later periods built on it
        previous = store.load(pool.name, 0)
    else:
        previous = store.load(pool.name, period - 1)
    validate_period_start(previous, period, start_block, end_block, pool.pool_id)

    logger.info(
        "Processing %s period %d: blocks %d-%d, reward %d",
        pool.name, period, start_block, end_block, total_reward,
    )
    events = fetch_events(start_block, end_block)
    oracle = FeeGrowthOracle(reader, pool_key.tick_spacing, pool.initialize_block)
    result = calculate_period(
        previous.positions if previous is not None else {},
        events,
        reader,
        oracle,
        start_block,
        end_block,
        total_reward,
        pool.denominator_index,
    )

    currencies = (pool_key.currency0, pool_key.currency1)
    checkpoint = Checkpoint(
        network=pool.network,
        start_block=start_block,
        end_block=end_block,
        pool_id=pool.pool_id,
        denominator=currencies[pool.denominator_index],
        currency0=pool_key.currency0,
        currency1=pool_key.currency1,
        positions=result.positions,
        lp_data=result.lp_data,
    )
    if save:
        store.save(checkpoint, pool.name, period)
    else:
        logger.info("Dry run: checkpoint for period %d not written", period)
    return checkpoint
