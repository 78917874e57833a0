"""Pytest configuration and fixtures."""

from __future__ import annotations

from decimal import Decimal

import pytest

from poolside.pool import PoolGuard, PoolQuoter, ReserveLedgerView, TradingOrchestrator
from tests.helpers import ACCOUNT, DT, OCEAN, POOL, FakeLedger


@pytest.fixture
def ledger() -> FakeLedger:
    """A ledger with one balanced OCEAN/DT pool and 10 shares held by ACCOUNT.

    Reserves 1000/1000, weights 5/5, supply 100, fee 0.1%.
    """
    fake = FakeLedger()
    fake.add_pool(
        POOL,
        reserves={OCEAN: Decimal(1000), DT: Decimal(1000)},
        weights={OCEAN: Decimal(5), DT: Decimal(5)},
        supply=Decimal(100),
        fee=Decimal("0.001"),
    )
    fake.share_balances[(ACCOUNT, POOL)] = Decimal(10)
    return fake


@pytest.fixture
def view(ledger: FakeLedger) -> ReserveLedgerView:
    return ReserveLedgerView(ledger)


@pytest.fixture
def guard() -> PoolGuard:
    return PoolGuard()


@pytest.fixture
def quoter(view: ReserveLedgerView, guard: PoolGuard) -> PoolQuoter:
    return PoolQuoter(view, guard, quote_asset=OCEAN)


@pytest.fixture
def orchestrator(
    ledger: FakeLedger, view: ReserveLedgerView, guard: PoolGuard
) -> TradingOrchestrator:
    return TradingOrchestrator(view, ledger, ACCOUNT, quote_asset=OCEAN, guard=guard)
