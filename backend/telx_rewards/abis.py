"""
Contract ABIs for Uniswap V4 fee attribution.

Contains minimal ABIs for StateView, PoolManager events and the V4
PositionManager (ERC721 position NFTs).
"""

# StateView ABI (fee growth + tick bitmap reads)
STATEVIEW_ABI = [
    {
        "name": "getSlot0",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "poolId", "type": "bytes32"}],
        "outputs": [
            {"name": "sqrtPriceX96", "type": "uint160"},
            {"name": "tick", "type": "int24"},
            {"name": "protocolFee", "type": "uint24"},
            {"name": "lpFee", "type": "uint24"},
        ],
    },
    {
        "name": "getFeeGrowthInside",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "poolId", "type": "bytes32"},
            {"name": "tickLower", "type": "int24"},
            {"name": "tickUpper", "type": "int24"},
        ],
        "outputs": [
            {"name": "feeGrowthInside0X128", "type": "uint256"},
            {"name": "feeGrowthInside1X128", "type": "uint256"},
        ],
    },
    {
        "name": "getFeeGrowthGlobals",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "poolId", "type": "bytes32"}],
        "outputs": [
            {"name": "feeGrowthGlobal0", "type": "uint256"},
            {"name": "feeGrowthGlobal1", "type": "uint256"},
        ],
    },
    {
        "name": "getTickBitmap",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "poolId", "type": "bytes32"},
            {"name": "tick", "type": "int16"},
        ],
        "outputs": [{"name": "tickBitmap", "type": "uint256"}],
    },
    {
        "name": "getTickInfo",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "poolId", "type": "bytes32"},
            {"name": "tick", "type": "int24"},
        ],
        "outputs": [
            {"name": "liquidityGross", "type": "uint128"},
            {"name": "liquidityNet", "type": "int128"},
            {"name": "feeGrowthOutside0X128", "type": "uint256"},
            {"name": "feeGrowthOutside1X128", "type": "uint256"},
        ],
    },
]


# PoolManager ABI (events only)
POOL_MANAGER_ABI = [
    {
        "name": "ModifyLiquidity",
        "type": "event",
        "anonymous": False,
        "inputs": [
            {"name": "id", "type": "bytes32", "indexed": True},
            {"name": "sender", "type": "address", "indexed": True},
            {"name": "tickLower", "type": "int24", "indexed": False},
            {"name": "tickUpper", "type": "int24", "indexed": False},
            {"name": "liquidityDelta", "type": "int256", "indexed": False},
            {"name": "salt", "type": "bytes32", "indexed": False},
        ],
    },
    {
        "name": "Initialize",
        "type": "event",
        "anonymous": False,
        "inputs": [
            {"name": "id", "type": "bytes32", "indexed": True},
            {"name": "currency0", "type": "address", "indexed": True},
            {"name": "currency1", "type": "address", "indexed": True},
            {"name": "fee", "type": "uint24", "indexed": False},
            {"name": "tickSpacing", "type": "int24", "indexed": False},
            {"name": "hooks", "type": "address", "indexed": False},
            {"name": "sqrtPriceX96", "type": "uint160", "indexed": False},
            {"name": "tick", "type": "int24", "indexed": False},
        ],
    },
]


# V4 PositionManager ABI (minimal — ownership and packed position info)
POSITION_MANAGER_ABI = [
    {
        "name": "ownerOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "id", "type": "uint256"}],
        "outputs": [{"name": "owner", "type": "address"}],
    },
    {
        "name": "positionInfo",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "outputs": [{"name": "info", "type": "uint256"}],
    },
]


# ERC20 ABI (minimal — decimals for report formatting)
ERC20_ABI = [
    {
        "name": "decimals",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
]
