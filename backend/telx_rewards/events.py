"""
ModifyLiquidity and Initialize event retrieval from the V4 PoolManager.

Logs are decoded once here into frozen records; downstream code never
re-checks their shape.
"""

import logging
from dataclasses import dataclass
from typing import Any

from web3 import Web3

from .abis import POOL_MANAGER_ABI
from .config import LOG_CHUNK_SIZE, PoolConfig
from .errors import MalformedEventError

logger = logging.getLogger(__name__)

MODIFY_LIQUIDITY_FIELDS = ("tickLower", "tickUpper", "liquidityDelta", "salt")


@dataclass(frozen=True)
class LiquidityModification:
    """One ModifyLiquidity event; `key` is the position salt as an integer."""
    tick_lower: int
    tick_upper: int
    liquidity_delta: int
    key: int
    block_number: int
    log_index: int = 0


@dataclass(frozen=True)
class PoolKey:
    """Immutable pool parameters emitted by the Initialize event."""
    currency0: str
    currency1: str
    fee: int
    tick_spacing: int
    hooks: str
    block_number: int


def salt_to_key(salt: bytes | str) -> int:
    """Position key derived from the bytes32 salt (the PositionManager token id)."""
    if isinstance(salt, str):
        return int(salt, 16)
    return int.from_bytes(salt, "big")


def decode_modify_liquidity_log(log: Any) -> LiquidityModification:
    """Validate a decoded web3 log and convert it to a LiquidityModification."""
    args = log.get("args") or {}
    missing = [name for name in MODIFY_LIQUIDITY_FIELDS if args.get(name) is None]
    if missing or log.get("blockNumber") is None:
        raise MalformedEventError(
            f"ModifyLiquidity log missing {missing or ['blockNumber']}: {log.get('transactionHash')}"
        )
    return LiquidityModification(
        tick_lower=int(args["tickLower"]),
        tick_upper=int(args["tickUpper"]),
        liquidity_delta=int(args["liquidityDelta"]),
        key=salt_to_key(args["salt"]),
        block_number=int(log["blockNumber"]),
        log_index=int(log.get("logIndex") or 0),
    )


def sort_modifications(events: list[LiquidityModification]) -> list[LiquidityModification]:
    """Chronological order: block number, then log index."""
    return sorted(events, key=lambda e: (e.block_number, e.log_index))


def fetch_modify_liquidity_events(
    w3: Web3,
    pool: PoolConfig,
    from_block: int,
    to_block: int,
    chunk_size: int = LOG_CHUNK_SIZE,
) -> list[LiquidityModification]:
    """
    Fetch every ModifyLiquidity event of a pool in an inclusive block range.

    Args:
        w3: Web3 instance
        pool: Pool configuration
        from_block: First block (inclusive)
        to_block: Last block (inclusive)
        chunk_size: Blocks per eth_getLogs request

    Returns:
        Events sorted by (block_number, log_index)
    """
    pool_manager = w3.eth.contract(
        address=Web3.to_checksum_address(pool.pool_manager), abi=POOL_MANAGER_ABI
    )
    events: list[LiquidityModification] = []
    chunk_start = from_block
    while chunk_start <= to_block:
        chunk_end = min(chunk_start + chunk_size - 1, to_block)
        logs = pool_manager.events.ModifyLiquidity.get_logs(
            from_block=chunk_start,
            to_block=chunk_end,
            argument_filters={"id": pool.pool_id_bytes},
        )
        events.extend(decode_modify_liquidity_log(log) for log in logs)
        logger.debug("Blocks %d-%d: %d ModifyLiquidity logs", chunk_start, chunk_end, len(logs))
        chunk_start = chunk_end + 1

    logger.info("Fetched %d ModifyLiquidity events in [%d, %d]", len(events), from_block, to_block)
    return sort_modifications(events)


def fetch_pool_key(w3: Web3, pool: PoolConfig) -> PoolKey:
    """Read currencies and tick spacing from the pool's Initialize event."""
    pool_manager = w3.eth.contract(
        address=Web3.to_checksum_address(pool.pool_manager), abi=POOL_MANAGER_ABI
    )
    logs = pool_manager.events.Initialize.get_logs(
        from_block=pool.initialize_block,
        to_block=pool.initialize_block,
        argument_filters={"id": pool.pool_id_bytes},
    )
    if not logs:
        raise ValueError(
            f"Initialize event for {pool.name} not found at block {pool.initialize_block}"
        )
    args = logs[0]["args"]
    return PoolKey(
        currency0=Web3.to_checksum_address(args["currency0"]),
        currency1=Web3.to_checksum_address(args["currency1"]),
        fee=int(args["fee"]),
        tick_spacing=int(args["tickSpacing"]),
        hooks=Web3.to_checksum_address(args["hooks"]),
        block_number=int(logs[0]["blockNumber"]),
    )
