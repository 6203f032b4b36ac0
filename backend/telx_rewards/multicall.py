"""
Multicall3 helper for batching StateView reads into a single RPC request.

Uses the Multicall3 contract deployed at a standard address on every
supported chain to aggregate view calls into one eth_call, optionally pinned
to a historical block.
"""

from eth_abi.abi import encode, decode
from web3 import Web3
from web3.contract import Contract


# Multicall3 contract address (same on all major EVM chains)
MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"

# Multicall3 ABI (minimal - only aggregate3)
MULTICALL3_ABI = [
    {
        "name": "aggregate3",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [
            {
                "name": "calls",
                "type": "tuple[]",
                "components": [
                    {"name": "target", "type": "address"},
                    {"name": "allowFailure", "type": "bool"},
                    {"name": "callData", "type": "bytes"},
                ],
            }
        ],
        "outputs": [
            {
                "name": "returnData",
                "type": "tuple[]",
                "components": [
                    {"name": "success", "type": "bool"},
                    {"name": "returnData", "type": "bytes"},
                ],
            }
        ],
    }
]

# StateView selectors
GET_SLOT0_SELECTOR = bytes.fromhex("c815641c")  # getSlot0(bytes32)
GET_FEE_GROWTH_GLOBALS_SELECTOR = Web3.keccak(text="getFeeGrowthGlobals(bytes32)")[:4]


def create_multicall3(w3: Web3) -> Contract:
    """Create a Multicall3 contract instance."""
    return w3.eth.contract(
        address=Web3.to_checksum_address(MULTICALL3_ADDRESS),
        abi=MULTICALL3_ABI
    )


def encode_call(target: str, calldata: bytes, allow_failure: bool = False) -> tuple[str, bool, bytes]:
    """
    Encode a single call for Multicall3.aggregate3.

    Args:
        target: Contract address to call
        calldata: Encoded function call data
        allow_failure: Whether a revert of this call may be tolerated

    Returns:
        Tuple of (target, allowFailure, callData) for aggregate3
    """
    return (Web3.to_checksum_address(target), allow_failure, calldata)


def execute_multicall(
    w3: Web3,
    calls: list[tuple[str, bool, bytes]],
    block: int | str = "latest",
) -> list[tuple[bool, bytes]]:
    """
    Execute multiple calls via Multicall3 at a given block.

    Args:
        w3: Web3 instance
        calls: List of (target, allowFailure, callData) tuples
        block: Block number (or tag) the calls are evaluated at

    Returns:
        List of (success, returnData) tuples
    """
    multicall = create_multicall3(w3)
    results = multicall.functions.aggregate3(calls).call(block_identifier=block)
    return [(r[0], r[1]) for r in results]


def build_get_slot0_call(stateview_address: str, pool_id: bytes) -> tuple[str, bool, bytes]:
    """Build a getSlot0 call for multicall."""
    calldata = GET_SLOT0_SELECTOR + encode(["bytes32"], [pool_id])
    return encode_call(stateview_address, calldata)


def build_get_fee_growth_globals_call(stateview_address: str, pool_id: bytes) -> tuple[str, bool, bytes]:
    """Build a getFeeGrowthGlobals call for multicall."""
    calldata = GET_FEE_GROWTH_GLOBALS_SELECTOR + encode(["bytes32"], [pool_id])
    return encode_call(stateview_address, calldata)


def decode_slot0_result(data: bytes) -> tuple[int, int, int, int]:
    """Decode getSlot0 return data."""
    result = decode(["uint160", "int24", "uint24", "uint24"], data)
    return (result[0], result[1], result[2], result[3])


def decode_fee_growth_globals_result(data: bytes) -> tuple[int, int]:
    """Decode getFeeGrowthGlobals return data."""
    result = decode(["uint256", "uint256"], data)
    return (result[0], result[1])

