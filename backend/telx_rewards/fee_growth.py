"""
Fee growth inside a tick range, with an off-chain fallback.

The primary path asks StateView.getFeeGrowthInside directly. When that call
fails (e.g. it reverts for ticks that are no longer initialized), the value is
re-derived from slot0, the global counters and the fee growth outside of the
nearest initialized ticks, following the pool's own below/above selection.

All fee growth counters are uint256 X128 values that wrap, so every
subtraction here is taken modulo 2^256.
"""

import logging
from dataclasses import dataclass

from .config import DEFAULT_SEARCH_LIMIT, Q128, Q256
from .reader import PoolStateReader
from .tick_bitmap import find_initialized_tick_above, find_initialized_tick_below

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeeGrowthInside:
    """Cumulative fee growth per unit of liquidity inside a range at a block."""
    fee_growth0: int
    fee_growth1: int


@dataclass(frozen=True)
class DirectFeeGrowth(FeeGrowthInside):
    """Value returned by StateView.getFeeGrowthInside."""


@dataclass(frozen=True)
class DerivedFeeGrowth(FeeGrowthInside):
    """Value recomputed from tick-level reads; ticks are None if a lookup failed."""
    located_lower: int | None = None
    located_upper: int | None = None


def fee_growth_delta(start: int, end: int) -> int:
    """Growth between two readings of a wrapping uint256 counter."""
    return (end - start + Q256) % Q256


def calculate_fee_growth_inside(fee_growth_global: int, below: int, above: int) -> int:
    """global - below - above, wrapped to uint256."""
    return (fee_growth_global - below - above + Q256) % Q256


def calculate_fees(
    liquidity: int,
    end0: int,
    end1: int,
    start0: int,
    start1: int,
) -> tuple[int, int]:
    """
    Fees earned by `liquidity` between two fee growth readings.

    Truncates toward zero after de-scaling by 2^128, so residue is never
    credited.

    Returns:
        Tuple of (token0_fees, token1_fees)
    """
    token0_fees = liquidity * fee_growth_delta(start0, end0) // Q128
    token1_fees = liquidity * fee_growth_delta(start1, end1) // Q128
    return token0_fees, token1_fees


class FeeGrowthOracle:
    """
    Fee growth inside lookups for one pool.

    Results are memoised per (tick_lower, tick_upper, block) since every read
    is pinned to a block and therefore immutable.
    """

    def __init__(
        self,
        reader: PoolStateReader,
        tick_spacing: int,
        initialize_block: int = 0,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
    ):
        self.reader = reader
        self.tick_spacing = tick_spacing
        self.initialize_block = initialize_block
        self.search_limit = search_limit
        self._cache: dict[tuple[int, int, int], FeeGrowthInside] = {}
        self.fallback_count = 0

    def fee_growth_inside(self, tick_lower: int, tick_upper: int, block: int) -> FeeGrowthInside:
        """Direct read, falling back to the manual derivation on failure."""
        if block < self.initialize_block:
            raise ValueError(
                f"Block {block} precedes pool initialization at {self.initialize_block}"
            )
        key = (tick_lower, tick_upper, block)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            result: FeeGrowthInside = self.direct(tick_lower, tick_upper, block)
        except Exception:
            logger.warning(
                "getFeeGrowthInside(%d, %d) failed at block %d; deriving manually",
                tick_lower, tick_upper, block, exc_info=True,
            )
            self.fallback_count += 1
            result = self.derive(tick_lower, tick_upper, block)

        self._cache[key] = result
        return result

    def direct(self, tick_lower: int, tick_upper: int, block: int) -> DirectFeeGrowth:
        fee0, fee1 = self.reader.fee_growth_inside(tick_lower, tick_upper, block)
        return DirectFeeGrowth(fee0, fee1)

    def derive(self, tick_lower: int, tick_upper: int, block: int) -> DerivedFeeGrowth:
        """
        Recompute fee growth inside from tick-level state.

        Uses the nearest initialized tick at or below `tick_lower` and at or
        above `tick_upper`. Yields zero growth when either cannot be located
        within the search limit or the located range is empty.
        """
        current_tick, global0, global1 = self.reader.pool_snapshot(block)

        def read_word(word_pos: int) -> int:
            return self.reader.tick_bitmap(word_pos, block)

        lower = find_initialized_tick_below(read_word, tick_lower, self.tick_spacing, self.search_limit)
        upper = find_initialized_tick_above(read_word, tick_upper, self.tick_spacing, self.search_limit)

        if lower is None or upper is None or lower >= upper:
            logger.warning(
                "Range [%d, %d] unusable at block %d (located %s, %s); using zero fee growth",
                tick_lower, tick_upper, block, lower, upper,
            )
            return DerivedFeeGrowth(0, 0, lower, upper)

        lower_outside0, lower_outside1 = self.reader.fee_growth_outside(lower, block)
        upper_outside0, upper_outside1 = self.reader.fee_growth_outside(upper, block)

        if current_tick >= lower:
            below0, below1 = lower_outside0, lower_outside1
        else:
            below0 = fee_growth_delta(lower_outside0, global0)
            below1 = fee_growth_delta(lower_outside1, global1)

        if current_tick < upper:
            above0, above1 = upper_outside0, upper_outside1
        else:
            above0 = fee_growth_delta(upper_outside0, global0)
            above1 = fee_growth_delta(upper_outside1, global1)

        return DerivedFeeGrowth(
            calculate_fee_growth_inside(global0, below0, above0),
            calculate_fee_growth_inside(global1, below1, above1),
            lower,
            upper,
        )
