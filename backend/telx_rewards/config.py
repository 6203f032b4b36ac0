"""
Configuration constants for TELx LP fee attribution.

Centralizes contract addresses, pool and period definitions, fixed-point
constants, and environment-driven settings (RPC URLs, checkpoint directory).
"""

import os
from dataclasses import dataclass
from pathlib import Path

# ─── Fixed-point / modular arithmetic ───

Q128 = 2 ** 128  # feeGrowthX128 denominator
Q256 = 2 ** 256  # uint256 wraparound boundary
PRICE_PRECISION = 10 ** 18  # scale of the period-average conversion price

# ─── Tick bitmap search ───

BITMAP_WORD_BITS = 256
DEFAULT_SEARCH_LIMIT = 2560  # max bitmap words read per initialized-tick lookup

# ─── Log retrieval / chain safety ───

LOG_CHUNK_SIZE = 10_000  # blocks per eth_getLogs request
REORG_SAFE_DEPTH = {
    "base": 64,
    "polygon": 256,
}

# ─── Checkpoints ───

TELX_BASE_PATH = Path(os.getenv("TELX_BASE_PATH", "backend/checkpoints"))

# ─── RPC endpoints (from environment / .env) ───

RPC_URL_ENV = {
    "base": "BASE_RPC_URL",
    "polygon": "POLYGON_RPC_URL",
}


def rpc_url_for(network: str) -> str:
    """Return the RPC URL for a network, raising if its env variable is unset."""
    env_name = RPC_URL_ENV.get(network)
    if env_name is None:
        raise ValueError(f"Unsupported network: {network}")
    url = os.getenv(env_name)
    if not url:
        raise ValueError(f"{env_name} environment variable is not set")
    return url


# ─── Contract addresses ───

BASE_POOL_MANAGER = "0x498581fF718922c3f8e6A244956aF099B2652b2b"
BASE_POSITION_MANAGER = "0x7C5f5A4bBd8fD63184577525326123B519429bDc"
BASE_STATE_VIEW = "0xa3c0c9b65bad0b08107aa264b0f3db444b867a71"

POLYGON_POOL_MANAGER = "0x67366782805870060151383f4bbff9dab53e5cd6"
POLYGON_POSITION_MANAGER = "0x1Ec2eBf4F37E7363FDfe3551602425af0B3ceef9"
POLYGON_STATE_VIEW = "0x5ea1bd7974c8a611cbab0bdcafcb1d9cc9b3ba5a"


@dataclass(frozen=True)
class PoolConfig:
    """Static description of one incentivized pool.

    Currencies and tick spacing are not stored here; they are read from the
    pool's Initialize event so the checkpoint always reflects on-chain values.
    """
    name: str
    network: str
    pool_id: str
    pool_manager: str
    position_manager: str
    state_view: str
    initialize_block: int
    denominator_index: int  # 0 -> rewards priced in currency0, 1 -> currency1

    @property
    def pool_id_bytes(self) -> bytes:
        return bytes.fromhex(self.pool_id.removeprefix("0x"))


@dataclass(frozen=True)
class Period:
    """One contiguous accounting period; block bounds are inclusive."""
    index: int
    start_block: int
    end_block: int
    reward: int | None = None  # denominator-currency base units, None -> supplied at run time


# ─── Pools ───

BASE_ETH_TEL = PoolConfig(
    name="base-ETH-TEL",
    network="base",
    pool_id="0xb6d004fca4f9a34197862176485c45ceab7117c86f07422d1fe3d9cfd6e9d1da",
    pool_manager=BASE_POOL_MANAGER,
    position_manager=BASE_POSITION_MANAGER,
    state_view=BASE_STATE_VIEW,
    initialize_block=25_832_462,
    denominator_index=1,
)

POLYGON_ETH_TEL = PoolConfig(
    name="polygon-ETH-TEL",
    network="polygon",
    pool_id="0x9a005a0c12cc2ef01b34e9a7f3fb91a0e6304d377b5479bd3f08f8c29cdf5deb",
    pool_manager=POLYGON_POOL_MANAGER,
    position_manager=POLYGON_POSITION_MANAGER,
    state_view=POLYGON_STATE_VIEW,
    initialize_block=74_970_501,
    denominator_index=1,
)

POOLS = [BASE_ETH_TEL, POLYGON_ETH_TEL]

# ─── Periods ───
# Period 0 bootstraps position state from pool initialization up to program
# start and carries no reward.

BASE_PROGRAM_START = 33_954_126
BASE_PERIODS = [
    Period(0, BASE_ETH_TEL.initialize_block, BASE_PROGRAM_START, reward=0),
    Period(1, BASE_PROGRAM_START + 1, 34_429_326),
    Period(2, 34_429_327, 34_731_726),
    Period(3, 34_731_727, 35_034_126),
]

POLYGON_PERIODS = [
    Period(0, POLYGON_ETH_TEL.initialize_block, 75_417_060, reward=0),
]

PERIODS = {
    BASE_ETH_TEL.name: BASE_PERIODS,
    POLYGON_ETH_TEL.name: POLYGON_PERIODS,
}


def get_pool(name: str) -> PoolConfig:
    """Look up a configured pool by name."""
    for pool in POOLS:
        if pool.name == name:
            return pool
    raise ValueError(f"Unknown pool: {name}")


def get_period(pool_name: str, index: int) -> Period | None:
    """Look up a configured period, or None when the table has no entry."""
    for period in PERIODS.get(pool_name, []):
        if period.index == index:
            return period
    return None
