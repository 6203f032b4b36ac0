"""
Position state tracking and per-period liquidity timelines.

Each tracked position gets a timeline of LiquidityChange control points that
starts exactly at the period's start block and ends exactly at its end block.
Between two consecutive points the position's liquidity is constant, which lets
every position be attributed with the same sub-period loop regardless of how
many events it had.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Callable

from .errors import PositionInvariantError
from .events import LiquidityModification

logger = logging.getLogger(__name__)

# (position_key, block) -> owner address or None
OwnerLookup = Callable[[int, int], str | None]
# (position_key, block) -> True when the position has been burned
ClosedLookup = Callable[[int, int], bool]


@dataclass
class LiquidityChange:
    """From `block_number` (inclusive) until the next point, `owner` held `new_liquidity_amount`."""
    block_number: int
    new_liquidity_amount: int
    owner: str | None


@dataclass
class PositionState:
    """One LP deposit, tracked across periods. Tick bounds never change."""
    tick_lower: int
    tick_upper: int
    liquidity: int = 0
    last_owner: str | None = None
    fee_growth_inside_period0: int = 0
    fee_growth_inside_period1: int = 0
    liquidity_modifications: list[LiquidityChange] = field(default_factory=list)

    @classmethod
    def from_event(cls, event: LiquidityModification) -> "PositionState":
        """Create an empty (zero liquidity) position from its first event."""
        if event.tick_lower is None or event.tick_upper is None:
            raise PositionInvariantError(f"Position {event.key} created without tick bounds")
        if event.tick_lower >= event.tick_upper:
            raise PositionInvariantError(
                f"Position {event.key} has inverted range [{event.tick_lower}, {event.tick_upper}]"
            )
        return cls(tick_lower=event.tick_lower, tick_upper=event.tick_upper)

    def reset_period(self) -> None:
        """Clear period-scoped fields; liquidity and last owner persist."""
        self.fee_growth_inside_period0 = 0
        self.fee_growth_inside_period1 = 0
        self.liquidity_modifications = []


def carry_over_positions(
    previous_positions: dict[int, PositionState],
    is_closed: ClosedLookup,
    start_block: int,
) -> dict[int, PositionState]:
    """
    Copy the previous period's positions for a new period.

    Period fields are reset on the copy; zero-liquidity positions confirmed
    closed on-chain are dropped.
    """
    positions: dict[int, PositionState] = {}
    for key, previous in previous_positions.items():
        position = copy.deepcopy(previous)
        position.reset_period()
        if position.liquidity == 0 and is_closed(key, start_block):
            logger.debug("Dropping closed position %d", key)
            continue
        positions[key] = position
    return positions


def apply_modifications(
    positions: dict[int, PositionState],
    events: list[LiquidityModification],
    owner_of: OwnerLookup,
    start_block: int,
) -> None:
    """Append one control point per event, in order, creating unseen positions."""
    for event in events:
        owner = owner_of(event.key, event.block_number)
        position = positions.get(event.key)

        if position is None:
            position = PositionState.from_event(event)
            positions[event.key] = position
            position.liquidity_modifications.append(LiquidityChange(start_block, 0, None))
        elif (event.tick_lower, event.tick_upper) != (position.tick_lower, position.tick_upper):
            raise PositionInvariantError(
                f"Position {event.key} event range [{event.tick_lower}, {event.tick_upper}] "
                f"differs from [{position.tick_lower}, {position.tick_upper}]"
            )
        elif not position.liquidity_modifications:
            # first event this period: cover [start_block, event) at the carried liquidity
            position.liquidity_modifications.append(
                LiquidityChange(start_block, position.liquidity, owner)
            )

        position.liquidity += event.liquidity_delta
        if owner is not None:
            position.last_owner = owner
        position.liquidity_modifications.append(
            LiquidityChange(event.block_number, position.liquidity, owner)
        )


def close_timelines(
    positions: dict[int, PositionState],
    owner_of: OwnerLookup,
    start_block: int,
    end_block: int,
) -> None:
    """Terminate every timeline at `end_block`; idle zero-liquidity positions are removed."""
    for key in list(positions):
        position = positions[key]
        if not position.liquidity_modifications:
            if position.liquidity == 0:
                del positions[key]
                continue
            position.liquidity_modifications.append(
                LiquidityChange(start_block, position.liquidity, position.last_owner)
            )

        end_owner = owner_of(key, end_block)
        if end_owner is not None:
            position.last_owner = end_owner
        position.liquidity_modifications.append(
            LiquidityChange(end_block, position.liquidity, end_owner)
        )


def build_position_timelines(
    previous_positions: dict[int, PositionState],
    events: list[LiquidityModification],
    owner_of: OwnerLookup,
    is_closed: ClosedLookup,
    start_block: int,
    end_block: int,
) -> dict[int, PositionState]:
    """
    Build the complete per-position timelines for one period.

    Args:
        previous_positions: Position map from the previous checkpoint (not mutated)
        events: ModifyLiquidity events within [start_block, end_block], chronological
        owner_of: Owner lookup at a block
        is_closed: On-chain closure check at a block
        start_block: First block of the period (inclusive)
        end_block: Last block of the period (inclusive)

    Returns:
        New position map whose timelines all span [start_block, end_block]
    """
    positions = carry_over_positions(previous_positions, is_closed, start_block)
    apply_modifications(positions, events, owner_of, start_block)
    close_timelines(positions, owner_of, start_block, end_block)
    logger.info(
        "Built timelines for %d positions from %d events", len(positions), len(events)
    )
    return positions
