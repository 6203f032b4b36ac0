"""
Checkpoint persistence for resumable period processing.

A checkpoint stores the block range processed, the pool identity, the full
position map and the period's LP totals. Large integers are written as tagged
strings ("123n") so they survive JSON round trips losslessly.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .attribution import LPData
from .config import TELX_BASE_PATH
from .errors import NoProgressError, ResumabilityError
from .positions import LiquidityChange, PositionState

logger = logging.getLogger(__name__)

_TAGGED_INT = re.compile(r"^-?\d+n$")


def tag_int(value: int | None) -> str | None:
    return None if value is None else f"{value}n"


def untag_int(value: Any) -> int | None:
    """Parse a tagged ("123n"), plain string or numeric integer."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value[:-1] if _TAGGED_INT.match(value) else value)
    raise ValueError(f"Cannot parse integer from {value!r}")


@dataclass
class Checkpoint:
    network: str
    start_block: int
    end_block: int
    pool_id: str
    denominator: str
    currency0: str
    currency1: str
    positions: dict[int, PositionState] = field(default_factory=dict)
    lp_data: dict[str, LPData] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "blockRange": {
                "network": self.network,
                "startBlock": tag_int(self.start_block),
                "endBlock": tag_int(self.end_block),
            },
            "poolId": self.pool_id,
            "denominator": self.denominator,
            "currency0": self.currency0,
            "currency1": self.currency1,
            "positions": [
                [tag_int(key), _position_to_dict(position)]
                for key, position in self.positions.items()
            ],
            "lpData": [
                [owner, _lp_data_to_dict(entry)] for owner, entry in self.lp_data.items()
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Checkpoint":
        block_range = data["blockRange"]
        return cls(
            network=block_range.get("network", ""),
            start_block=untag_int(block_range["startBlock"]),
            end_block=untag_int(block_range["endBlock"]),
            pool_id=data["poolId"],
            denominator=data["denominator"],
            currency0=data["currency0"],
            currency1=data["currency1"],
            positions={
                untag_int(key): _position_from_dict(value) for key, value in data["positions"]
            },
            lp_data={owner: _lp_data_from_dict(value) for owner, value in data.get("lpData", [])},
        )


def _position_to_dict(position: PositionState) -> dict:
    return {
        "lastOwner": position.last_owner,
        "tickLower": position.tick_lower,
        "tickUpper": position.tick_upper,
        "liquidity": tag_int(position.liquidity),
        "feeGrowthInsidePeriod0": tag_int(position.fee_growth_inside_period0),
        "feeGrowthInsidePeriod1": tag_int(position.fee_growth_inside_period1),
        "liquidityModifications": [
            {
                "blockNumber": tag_int(change.block_number),
                "newLiquidityAmount": tag_int(change.new_liquidity_amount),
                "owner": change.owner,
            }
            for change in position.liquidity_modifications
        ],
    }


def _position_from_dict(data: dict) -> PositionState:
    return PositionState(
        tick_lower=int(data["tickLower"]),
        tick_upper=int(data["tickUpper"]),
        liquidity=untag_int(data["liquidity"]),
        last_owner=data.get("lastOwner"),
        fee_growth_inside_period0=untag_int(data.get("feeGrowthInsidePeriod0", 0)),
        fee_growth_inside_period1=untag_int(data.get("feeGrowthInsidePeriod1", 0)),
        liquidity_modifications=[
            LiquidityChange(
                block_number=untag_int(change["blockNumber"]),
                new_liquidity_amount=untag_int(change["newLiquidityAmount"]),
                owner=change.get("owner"),
            )
            for change in data.get("liquidityModifications", [])
        ],
    )


def _lp_data_to_dict(entry: LPData) -> dict:
    return {
        "periodFeesCurrency0": tag_int(entry.period_fees_currency0),
        "periodFeesCurrency1": tag_int(entry.period_fees_currency1),
        "totalFeesCommonDenominator": tag_int(entry.total_fees_common_denominator),
        "reward": tag_int(entry.reward),
    }


def _lp_data_from_dict(data: dict) -> LPData:
    return LPData(
        period_fees_currency0=untag_int(data["periodFeesCurrency0"]),
        period_fees_currency1=untag_int(data["periodFeesCurrency1"]),
        total_fees_common_denominator=untag_int(data.get("totalFeesCommonDenominator")),
        reward=untag_int(data.get("reward")),
    )


def validate_period_start(
    previous: Checkpoint | None,
    period: int,
    start_block: int,
    end_block: int,
    pool_id: str | None = None,
) -> None:
    """
    Reject a run that would not continue the previous checkpoint.

    Raises:
        NoProgressError: end_block precedes start_block
        ResumabilityError: checkpoint presence does not match the period index,
            the pool differs, or start_block is not previous end + 1
    """
    if end_block < start_block:
        raise NoProgressError(f"End block {end_block} is before start block {start_block}")

    if period == 0:
        if previous is not None:
            raise ResumabilityError("Period 0 must not resume from an existing checkpoint")
        return

    if previous is None:
        raise ResumabilityError(f"Period {period} requires the checkpoint of period {period - 1}")
    if pool_id is not None and previous.pool_id.lower() != pool_id.lower():
        raise ResumabilityError(
            f"Checkpoint belongs to pool {previous.pool_id}, not {pool_id}"
        )
    if start_block != previous.end_block + 1:
        raise ResumabilityError(
            f"Start block {start_block} must equal previous end block {previous.end_block} + 1"
        )


class CheckpointStore:
    """JSON checkpoints laid out as `<base_path>/<pool>-<period>.json`."""

    def __init__(self, base_path: Path | str = TELX_BASE_PATH):
        self.base_path = Path(base_path)

    def path_for(self, pool_name: str, period: int) -> Path:
        return self.base_path / f"{pool_name}-{period}.json"

    def exists(self, pool_name: str, period: int) -> bool:
        return self.path_for(pool_name, period).exists()

    def load(self, pool_name: str, period: int) -> Checkpoint | None:
        """Load a period's checkpoint. Returns None when it does not exist."""
        if period < 0:
            return None
        path = self.path_for(pool_name, period)
        if not path.exists():
            return None
        with open(path) as f:
            checkpoint = Checkpoint.from_dict(json.load(f))
        logger.info("Loaded checkpoint %s (%d positions)", path.name, len(checkpoint.positions))
        return checkpoint

    def save(self, checkpoint: Checkpoint, pool_name: str, period: int) -> Path:
        """Write a checkpoint atomically (temp file + rename)."""
        self.base_path.mkdir(parents=True, exist_ok=True)
        path = self.path_for(pool_name, period)
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w") as f:
            json.dump(checkpoint.to_dict(), f, indent=2)
            f.write("\n")
        os.replace(tmp_path, path)
        logger.info("Saved checkpoint %s", path)
        return path
