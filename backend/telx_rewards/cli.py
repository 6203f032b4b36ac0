"""
Command line entry point: process one period of one pool.

Usage:
    telx-rewards base-ETH-TEL 1 --reward 100000000
    python -m telx_rewards.cli base-ETH-TEL 2 --end-timestamp 1756857600 --dry-run
"""

import argparse
import logging
import sys

import pandas as pd
from dotenv import load_dotenv
from web3 import Web3

from .abis import ERC20_ABI
from .block_utils import ensure_reorg_safe, find_block_by_timestamp
from .calculator import run_period
from .checkpoint import CheckpointStore
from .config import REORG_SAFE_DEPTH, TELX_BASE_PATH, get_period, get_pool, rpc_url_for
from .errors import TelxError
from .events import fetch_modify_liquidity_events, fetch_pool_key
from .reader import StateViewReader
from .rewards import settlement_batch
from .summary import lp_rewards_frame, positions_frame

logger = logging.getLogger(__name__)

NATIVE_CURRENCY = "0x0000000000000000000000000000000000000000"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="TELx LP fee attribution for one pool period")
    parser.add_argument("pool", help="Configured pool name, e.g. base-ETH-TEL")
    parser.add_argument("period", type=int, help="Period index (0 = bootstrap)")
    parser.add_argument("--start-block", type=int, help="Override the period's start block")
    parser.add_argument("--end-block", type=int, help="Override the period's end block")
    parser.add_argument("--end-timestamp", type=int, help="Resolve the end block from a unix timestamp")
    parser.add_argument("--reward", type=int, help="Total period reward in denominator base units")
    parser.add_argument("--base-path", default=str(TELX_BASE_PATH), help="Checkpoint directory")
    parser.add_argument("--dry-run", action="store_true", help="Do not write the checkpoint")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def token_decimals(w3: Web3, currency: str) -> int:
    if currency == NATIVE_CURRENCY:
        return 18
    token = w3.eth.contract(address=Web3.to_checksum_address(currency), abi=ERC20_ABI)
    return token.functions.decimals().call()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_dotenv()

    try:
        pool = get_pool(args.pool)
        w3 = Web3(Web3.HTTPProvider(rpc_url_for(pool.network)))
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 1
    period = get_period(pool.name, args.period)

    start_block = args.start_block if args.start_block is not None else getattr(period, "start_block", None)
    end_block = args.end_block if args.end_block is not None else getattr(period, "end_block", None)
    if args.end_timestamp is not None:
        end_block = find_block_by_timestamp(w3, args.end_timestamp)
    reward = args.reward if args.reward is not None else getattr(period, "reward", None)
    if start_block is None or end_block is None or reward is None:
        logger.error(
            "Period %d of %s is not fully configured; pass --start-block, --end-block and --reward",
            args.period, pool.name,
        )
        return 2

    try:
        ensure_reorg_safe(w3, end_block, REORG_SAFE_DEPTH[pool.network])
        pool_key = fetch_pool_key(w3, pool)
        checkpoint = run_period(
            pool,
            pool_key,
            args.period,
            start_block,
            end_block,
            reward,
            StateViewReader(w3, pool),
            lambda start, end: fetch_modify_liquidity_events(w3, pool, start, end),
            CheckpointStore(args.base_path),
            save=not args.dry_run,
        )
    except (TelxError, ValueError) as e:
        logger.error("Run aborted: %s", e)
        return 1

    decimals = [token_decimals(w3, pool_key.currency0), token_decimals(w3, pool_key.currency1)]
    with pd.option_context("display.max_rows", None, "display.width", 200):
        print(positions_frame(checkpoint.positions).to_string(index=False))
        print()
        print(lp_rewards_frame(
            checkpoint.lp_data, decimals[0], decimals[1], decimals[pool.denominator_index]
        ).to_string(index=False))

    batch, total = settlement_batch(checkpoint.lp_data)
    print(f"\nTotal issuance for period {args.period}: {total} ({len(batch)} rewardees)")
    for address, amount in batch:
        print(f"  {address} {amount}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
