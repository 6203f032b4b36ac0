"""
Common-denominator conversion and pro-rata reward distribution.

The period price is the ratio of the pool's global fee growth deltas over the
whole period. Fee growth accrues in proportion to traded volume, so the ratio
is a volume-weighted average rather than a spot price.

All divisions truncate; the undistributed remainder is left unallocated.
"""

import logging

from .attribution import LPData
from .config import PRICE_PRECISION
from .fee_growth import fee_growth_delta

logger = logging.getLogger(__name__)


def period_price(
    global_start: tuple[int, int],
    global_end: tuple[int, int],
    denominator_index: int,
) -> int:
    """
    Price of the non-denominator currency in denominator units, scaled by PRICE_PRECISION.

    Args:
        global_start: (fee_growth_global0, fee_growth_global1) at the period start
        global_end: (fee_growth_global0, fee_growth_global1) at the period end
        denominator_index: 0 or 1, the currency rewards are priced in

    Returns:
        Scaled price, or 0 when the other currency accrued no fee growth
    """
    delta0 = fee_growth_delta(global_start[0], global_end[0])
    delta1 = fee_growth_delta(global_start[1], global_end[1])
    denominator_delta, other_delta = (delta0, delta1) if denominator_index == 0 else (delta1, delta0)
    if other_delta == 0:
        logger.warning("No global fee growth in the non-denominator currency; price is 0")
        return 0
    return denominator_delta * PRICE_PRECISION // other_delta


def convert_to_common_denominator(
    lp_data: dict[str, LPData],
    price: int,
    denominator_index: int,
) -> None:
    """Set total_fees_common_denominator on every LP entry."""
    for entry in lp_data.values():
        if denominator_index == 0:
            native, other = entry.period_fees_currency0, entry.period_fees_currency1
        else:
            native, other = entry.period_fees_currency1, entry.period_fees_currency0
        entry.total_fees_common_denominator = native + other * price // PRICE_PRECISION


def distribute_rewards(lp_data: dict[str, LPData], total_reward: int) -> int:
    """
    Split `total_reward` pro rata to each LP's common-denominator fees.

    Returns:
        Sum of allocated rewards (never more than total_reward)
    """
    total_fees = sum(entry.total_fees_common_denominator or 0 for entry in lp_data.values())
    allocated = 0
    for entry in lp_data.values():
        if total_fees == 0:
            entry.reward = 0
        else:
            entry.reward = (entry.total_fees_common_denominator or 0) * total_reward // total_fees
        allocated += entry.reward

    logger.info(
        "Allocated %d of %d reward across %d LPs (remainder %d)",
        allocated, total_reward, len(lp_data), total_reward - allocated,
    )
    return allocated


def settlement_batch(lp_data: dict[str, LPData]) -> tuple[list[tuple[str, int]], int]:
    """
    (address, reward) pairs with non-zero rewards, sorted by address, and their total.

    This is the shape an operator submits to the issuance contract.
    """
    batch = sorted(
        (address, entry.reward) for address, entry in lp_data.items() if entry.reward
    )
    return batch, sum(reward for _, reward in batch)
