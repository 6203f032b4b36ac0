"""
Tabular summaries of a processed period for console output.
"""

from decimal import Decimal, getcontext

import pandas as pd

from .attribution import LPData
from .positions import PositionState

# uint256 values need more than the default 28 significant digits
getcontext().prec = 80


def format_units(value: int | None, decimals: int) -> Decimal | None:
    """Convert a base-unit integer to a token amount."""
    if value is None:
        return None
    return Decimal(value) / (Decimal(10) ** decimals)


def positions_frame(positions: dict[int, PositionState]) -> pd.DataFrame:
    """One row per position with its range, liquidity and period fee growth."""
    rows = [
        {
            "position_id": key,
            "last_owner": position.last_owner,
            "tick_lower": position.tick_lower,
            "tick_upper": position.tick_upper,
            "liquidity": position.liquidity,
            "modifications": len(position.liquidity_modifications),
            "fee_growth_inside_period0": position.fee_growth_inside_period0,
            "fee_growth_inside_period1": position.fee_growth_inside_period1,
        }
        for key, position in positions.items()
    ]
    columns = [
        "position_id", "last_owner", "tick_lower", "tick_upper", "liquidity",
        "modifications", "fee_growth_inside_period0", "fee_growth_inside_period1",
    ]
    return pd.DataFrame(rows, columns=columns)


def lp_rewards_frame(
    lp_data: dict[str, LPData],
    decimals0: int = 18,
    decimals1: int = 18,
    reward_decimals: int = 2,
) -> pd.DataFrame:
    """One row per LP, sorted by reward descending, amounts in token units."""
    rows = [
        {
            "lp_address": address,
            "fees_currency0": format_units(entry.period_fees_currency0, decimals0),
            "fees_currency1": format_units(entry.period_fees_currency1, decimals1),
            "total_fees_common_denominator": entry.total_fees_common_denominator,
            "reward": format_units(entry.reward, reward_decimals),
            "reward_raw": entry.reward or 0,
        }
        for address, entry in lp_data.items()
    ]
    df = pd.DataFrame(
        rows,
        columns=[
            "lp_address", "fees_currency0", "fees_currency1",
            "total_fees_common_denominator", "reward", "reward_raw",
        ],
    )
    df.sort_values("reward_raw", ascending=False, inplace=True)
    df.reset_index(drop=True, inplace=True)
    return df
