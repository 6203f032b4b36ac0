"""
Pool state readers used by the fee attribution engine.

`PoolStateReader` is the interface the engine depends on; every read is pinned
to a block and is pure, so results can be cached or fetched in any order.
`StateViewReader` implements it against the V4 StateView and PositionManager
contracts through web3.
"""

import logging

from web3 import Web3
from web3.contract import Contract
from web3.exceptions import ContractLogicError

from .abis import POSITION_MANAGER_ABI, STATEVIEW_ABI
from .config import PoolConfig
from .multicall import (
    build_get_fee_growth_globals_call,
    build_get_slot0_call,
    decode_fee_growth_globals_result,
    decode_slot0_result,
    execute_multicall,
)

logger = logging.getLogger(__name__)


class PoolStateReader:
    """Block-pinned reads of one pool's state."""

    def fee_growth_inside(self, tick_lower: int, tick_upper: int, block: int) -> tuple[int, int]:
        raise NotImplementedError

    def fee_growth_globals(self, block: int) -> tuple[int, int]:
        raise NotImplementedError

    def current_tick(self, block: int) -> int:
        raise NotImplementedError

    def tick_bitmap(self, word_pos: int, block: int) -> int:
        raise NotImplementedError

    def fee_growth_outside(self, tick: int, block: int) -> tuple[int, int]:
        raise NotImplementedError

    def owner_of(self, key: int, block: int) -> str | None:
        """Holder of a position NFT at a block, or None when it does not exist."""
        raise NotImplementedError

    def is_position_closed(self, key: int, block: int) -> bool:
        raise NotImplementedError

    def pool_snapshot(self, block: int) -> tuple[int, int, int]:
        """Return (current_tick, fee_growth_global0, fee_growth_global1) at a block."""
        global0, global1 = self.fee_growth_globals(block)
        return self.current_tick(block), global0, global1


class StateViewReader(PoolStateReader):
    """PoolStateReader backed by StateView and PositionManager contract calls."""

    def __init__(self, w3: Web3, pool: PoolConfig):
        self.w3 = w3
        self.pool = pool
        self.pool_id = pool.pool_id_bytes
        self.stateview: Contract = w3.eth.contract(
            address=Web3.to_checksum_address(pool.state_view), abi=STATEVIEW_ABI
        )
        self.position_manager: Contract = w3.eth.contract(
            address=Web3.to_checksum_address(pool.position_manager), abi=POSITION_MANAGER_ABI
        )

    def fee_growth_inside(self, tick_lower: int, tick_upper: int, block: int) -> tuple[int, int]:
        fee0, fee1 = self.stateview.functions.getFeeGrowthInside(
            self.pool_id, tick_lower, tick_upper
        ).call(block_identifier=block)
        return fee0, fee1

    def fee_growth_globals(self, block: int) -> tuple[int, int]:
        global0, global1 = self.stateview.functions.getFeeGrowthGlobals(
            self.pool_id
        ).call(block_identifier=block)
        return global0, global1

    def current_tick(self, block: int) -> int:
        _, tick, _, _ = self.stateview.functions.getSlot0(self.pool_id).call(
            block_identifier=block
        )
        return tick

    def tick_bitmap(self, word_pos: int, block: int) -> int:
        return self.stateview.functions.getTickBitmap(self.pool_id, word_pos).call(
            block_identifier=block
        )

    def fee_growth_outside(self, tick: int, block: int) -> tuple[int, int]:
        _, _, outside0, outside1 = self.stateview.functions.getTickInfo(
            self.pool_id, tick
        ).call(block_identifier=block)
        return outside0, outside1

    def owner_of(self, key: int, block: int) -> str | None:
        try:
            owner = self.position_manager.functions.ownerOf(key).call(block_identifier=block)
        except ContractLogicError:
            # ownerOf reverts for burned or not-yet-minted tokens
            logger.debug("ownerOf(%d) reverted at block %d", key, block)
            return None
        return Web3.to_checksum_address(owner)

    def is_position_closed(self, key: int, block: int) -> bool:
        info = self.position_manager.functions.positionInfo(key).call(block_identifier=block)
        return info == 0

    def pool_snapshot(self, block: int) -> tuple[int, int, int]:
        """Read slot0 and both global fee growth counters in one multicall."""
        calls = [
            build_get_slot0_call(self.pool.state_view, self.pool_id),
            build_get_fee_growth_globals_call(self.pool.state_view, self.pool_id),
        ]
        (_, slot0_data), (_, globals_data) = execute_multicall(self.w3, calls, block)
        _, tick, _, _ = decode_slot0_result(slot0_data)
        global0, global1 = decode_fee_growth_globals_result(globals_data)
        return tick, global0, global1
