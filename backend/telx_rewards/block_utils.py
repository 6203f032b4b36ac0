"""
Block lookup and chain-safety utilities.

Resolves timestamps to block numbers by binary search and
guards period end blocks against reorgs.
"""

from web3 import Web3

from .errors import ReorgSafetyError


def get_latest_block(w3: Web3) -> int:
    """Get the latest block number."""
    return w3.eth.block_number


def ensure_reorg_safe(w3: Web3, end_block: int, depth: int) -> None:
    """Raise if `end_block` is within `depth` blocks of the chain head."""
    latest = get_latest_block(w3)
    if end_block > latest - depth:
        raise ReorgSafetyError(
            f"End block {end_block} is not reorg safe (latest {latest}, depth {depth})"
        )


def find_block_by_timestamp(w3: Web3, timestamp: int) -> int:
    """Binary search for the last block with a timestamp at or before `timestamp`."""
    low, high = 0, get_latest_block(w3)
    while low < high:
        mid = (low + high + 1) // 2
        block_ts = int(w3.eth.get_block(mid)["timestamp"])
        if block_ts <= timestamp:
            low = mid
        else:
            high = mid - 1
    return low
