"""
End-to-end tests for calculator.run_period with an in-memory pool.

Run: cd backend && python tests/test_calculator.py
"""

import dataclasses
import os
import sys
import tempfile

sys.path.insert(0, os.path.dirname(__file__))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from fakes import FakeReader
from telx_rewards.calculator import run_period
from telx_rewards.checkpoint import CheckpointStore
from telx_rewards.config import BASE_ETH_TEL
from telx_rewards.errors import ResumabilityError
from telx_rewards.events import LiquidityModification, PoolKey

ALICE = "0x000000000000000000000000000000000000A11C"
BOB = "0x0000000000000000000000000000000000000B0B"
ETH = "0x0000000000000000000000000000000000000000"
TEL = "0x09bE1692ca16e06f536F0038fF11D1dA8524aDB1"

POOL = dataclasses.replace(BASE_ETH_TEL, initialize_block=0)
POOL_KEY = PoolKey(ETH, TEL, 3000, 60, ETH, 0)

EVENTS = [
    LiquidityModification(-60, 60, 100, 1, 100),
    LiquidityModification(-120, 120, 50, 2, 130),
]


class EventSource:
    """Serves EVENTS by block range and records each request."""

    def __init__(self):
        self.requests: list[tuple[int, int]] = []

    def __call__(self, start: int, end: int) -> list[LiquidityModification]:
        self.requests.append((start, end))
        return [e for e in EVENTS if start <= e.block_number <= end]


def reader() -> FakeReader:
    return FakeReader(owners={1: ALICE, 2: BOB})


def run(store: CheckpointStore, period: int, start: int, end: int, reward: int,
        source: EventSource | None = None, save: bool = True):
    return run_period(
        POOL, POOL_KEY, period, start, end, reward,
        reader(), source or EventSource(), store, save=save,
    )


def test_bootstrap_then_resume() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = CheckpointStore(tmp)

        first = run(store, 0, 100, 120, 1000)
        # 19 blocks * 100 liquidity; price 0.5 TEL per ETH unit
        alice = first.lp_data[ALICE]
        assert (alice.period_fees_currency0, alice.period_fees_currency1) == (1900, 3800)
        assert alice.total_fees_common_denominator == 3800 + 950
        assert alice.reward == 1000
        assert first.denominator == TEL
        assert store.exists(POOL.name, 0)

        second = run(store, 1, 121, 140, 500)
        assert set(second.lp_data) == {ALICE, BOB}
        assert second.lp_data[ALICE].period_fees_currency0 == 1800
        assert second.lp_data[BOB].period_fees_currency0 == 450
        assert second.lp_data[ALICE].reward == 400
        assert second.lp_data[BOB].reward == 100
        assert second.positions[1].liquidity_modifications[0].block_number == 121

        reloaded = store.load(POOL.name, 1)
        assert reloaded == second
    print("  [PASS] bootstrap_then_resume")


def test_gap_aborts_before_fetching() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = CheckpointStore(tmp)
        run(store, 0, 100, 120, 0)

        source = EventSource()
        try:
            run(store, 1, 125, 140, 500, source)
            raise AssertionError("Expected ResumabilityError for a gap")
        except ResumabilityError:
            pass
        assert source.requests == [], "events fetched before validation"
        assert not store.exists(POOL.name, 1)
    print("  [PASS] gap_aborts_before_fetching")


def test_missing_previous_checkpoint() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        source = EventSource()
        try:
            run(CheckpointStore(tmp), 2, 141, 160, 500, source)
            raise AssertionError("Expected ResumabilityError without a checkpoint")
        except ResumabilityError:
            pass
        assert source.requests == []
    print("  [PASS] missing_previous_checkpoint")


def test_bootstrap_rerun_rejected() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = CheckpointStore(tmp)
        run(store, 0, 100, 120, 0)
        run(store, 1, 121, 140, 500)
        path = store.path_for(POOL.name, 0)
        with open(path) as f:
            before = f.read()

        source = EventSource()
        try:
            run(store, 0, 100, 120, 0, source)
            raise AssertionError("Expected ResumabilityError when period 0 already exists")
        except ResumabilityError:
            pass
        assert source.requests == [], "events fetched before validation"
        with open(path) as f:
            assert f.read() == before, "bootstrap checkpoint rewritten"
    print("  [PASS] bootstrap_rerun_rejected")


def test_dry_run_writes_nothing() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = CheckpointStore(tmp)
        checkpoint = run(store, 0, 100, 120, 1000, save=False)
        assert checkpoint.lp_data[ALICE].reward == 1000
        assert not store.exists(POOL.name, 0)
    print("  [PASS] dry_run_writes_nothing")


if __name__ == "__main__":
    print("=== test_calculator.py ===")
    test_bootstrap_then_resume()
    test_gap_aborts_before_fetching()
    test_missing_previous_checkpoint()
    test_bootstrap_rerun_rejected()
    test_dry_run_writes_nothing()
    print("\nAll calculator tests passed.")
