"""
Tests for multicall call building, result decoding and ABI tables (no RPC).

Run: cd backend && python tests/test_multicall.py
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from eth_abi.abi import encode
from web3 import Web3

from telx_rewards.abis import POSITION_MANAGER_ABI
from telx_rewards.config import BASE_ETH_TEL, BASE_STATE_VIEW
from telx_rewards.multicall import (
    GET_FEE_GROWTH_GLOBALS_SELECTOR,
    GET_SLOT0_SELECTOR,
    build_get_fee_growth_globals_call,
    build_get_slot0_call,
    decode_fee_growth_globals_result,
    decode_slot0_result,
)


def test_build_calls() -> None:
    pool_id = BASE_ETH_TEL.pool_id_bytes
    target, allow_failure, calldata = build_get_slot0_call(BASE_STATE_VIEW, pool_id)
    assert target == Web3.to_checksum_address(BASE_STATE_VIEW)
    assert allow_failure is False
    assert calldata[:4] == GET_SLOT0_SELECTOR
    assert calldata[4:] == pool_id

    _, _, calldata = build_get_fee_growth_globals_call(BASE_STATE_VIEW, pool_id)
    assert calldata[:4] == GET_FEE_GROWTH_GLOBALS_SELECTOR
    assert len(calldata) == 36
    print("  [PASS] build_calls")


def test_decode_results() -> None:
    slot0 = encode(["uint160", "int24", "uint24", "uint24"], [2**96, -887220, 0, 3000])
    assert decode_slot0_result(slot0) == (2**96, -887220, 0, 3000)

    big = 2**256 - 1
    globals_data = encode(["uint256", "uint256"], [big, 12345])
    assert decode_fee_growth_globals_result(globals_data) == (big, 12345)
    print("  [PASS] decode_results")


def test_position_manager_abi_is_minimal() -> None:
    names = {entry["name"] for entry in POSITION_MANAGER_ABI}
    assert names == {"ownerOf", "positionInfo"}, f"Unexpected entries: {names}"
    print("  [PASS] position_manager_abi_is_minimal")


if __name__ == "__main__":
    print("=== test_multicall.py ===")
    test_build_calls()
    test_decode_results()
    test_position_manager_abi_is_minimal()
    print("\nAll multicall tests passed.")
