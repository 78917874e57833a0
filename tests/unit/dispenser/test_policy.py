"""Tests for dispenser eligibility and dispensing."""

from decimal import Decimal

import pytest

from poolside.dispenser import DispenserPolicy, DispenserStatus, is_dispensable
from poolside.math.fixed_point import ONE_18
from poolside.pool import CollaboratorFailure, ConfigurationError, DispenseRejected
from tests.helpers import ACCOUNT, DT, THIRD, FakeLedger


def make_status(**overrides) -> DispenserStatus:
    """Active reservoir dispenser: 10 per request, recipients below 100, 50 left."""
    fields = {
        "active": True,
        "max_tokens": Decimal(10),
        "max_balance": Decimal(100),
        "balance": Decimal(50),
    }
    fields.update(overrides)
    return DispenserStatus(**fields)


class TestIsDispensable:
    def test_admissible_request(self) -> None:
        assert is_dispensable(make_status(), Decimal(0), Decimal(1))

    def test_inactive(self) -> None:
        assert not is_dispensable(make_status(active=False), Decimal(0), Decimal(1))
        assert not is_dispensable(make_status(active=False), Decimal(0), Decimal(0))

    def test_recipient_at_max_balance(self) -> None:
        assert not is_dispensable(make_status(), Decimal(100), Decimal(1))
        assert is_dispensable(make_status(), Decimal("99.9"), Decimal(1))

    def test_amount_over_max_tokens(self) -> None:
        assert is_dispensable(make_status(), Decimal(0), Decimal(10))
        assert not is_dispensable(make_status(), Decimal(0), Decimal(11))

    def test_reservoir_too_small(self) -> None:
        status = make_status(balance=Decimal(5))
        assert not is_dispensable(status, Decimal(0), Decimal(6))

    def test_minter_ignores_reservoir(self) -> None:
        status = make_status(balance=Decimal(0), is_minter=True)
        assert is_dispensable(status, Decimal(0), Decimal(6))

    def test_default_amount_is_one(self) -> None:
        assert is_dispensable(make_status(balance=Decimal(1)), Decimal(0))


class TestDispenserPolicy:
    @pytest.fixture
    def policy(self, ledger: FakeLedger) -> DispenserPolicy:
        ledger.dispensers[DT] = make_status()
        return DispenserPolicy(ledger, ledger, ledger)

    @pytest.mark.asyncio
    async def test_unknown_token(self, policy: DispenserPolicy) -> None:
        with pytest.raises(ConfigurationError):
            await policy.status(THIRD)

    @pytest.mark.asyncio
    async def test_reads_recipient_balance(
        self, policy: DispenserPolicy, ledger: FakeLedger
    ) -> None:
        assert await policy.is_dispensable(DT, ACCOUNT)
        ledger.token_balances[(DT, ACCOUNT)] = Decimal(100)
        assert not await policy.is_dispensable(DT, ACCOUNT)

    @pytest.mark.asyncio
    async def test_dispense(self, policy: DispenserPolicy, ledger: FakeLedger) -> None:
        receipt = await policy.dispense(DT, ACCOUNT, Decimal(2))

        assert ledger.actions == ["dispense"]
        assert ledger.args_of("dispense") == (DT, 2 * ONE_18, ACCOUNT)
        assert receipt.action == "dispense"
        assert receipt.details["amount"] == Decimal(2)

    @pytest.mark.asyncio
    async def test_dispense_to_other_destination(
        self, policy: DispenserPolicy, ledger: FakeLedger
    ) -> None:
        await policy.dispense(DT, ACCOUNT, destination=THIRD)
        assert ledger.args_of("dispense") == (DT, ONE_18, THIRD)

    @pytest.mark.asyncio
    async def test_inadmissible_request_is_not_issued(
        self, policy: DispenserPolicy, ledger: FakeLedger
    ) -> None:
        with pytest.raises(DispenseRejected):
            await policy.dispense(DT, ACCOUNT, Decimal(11))
        assert ledger.calls == []

    @pytest.mark.asyncio
    async def test_rejected_dispense(self, policy: DispenserPolicy, ledger: FakeLedger) -> None:
        ledger.reject["dispense"] = "ERR_MAX_BALANCE"
        with pytest.raises(CollaboratorFailure) as exc_info:
            await policy.dispense(DT, ACCOUNT)
        assert exc_info.value.diagnostic == "ERR_MAX_BALANCE"

    @pytest.mark.asyncio
    async def test_dispense_without_actions(self, ledger: FakeLedger) -> None:
        ledger.dispensers[DT] = make_status()
        policy = DispenserPolicy(ledger, ledger)
        with pytest.raises(ConfigurationError):
            await policy.dispense(DT, ACCOUNT)

    @pytest.mark.asyncio
    async def test_allowed_swapper_only(self, ledger: FakeLedger) -> None:
        ledger.dispensers[DT] = make_status(allowed_swapper=THIRD)
        policy = DispenserPolicy(ledger, ledger, ledger)

        assert not await policy.is_dispensable(DT, ACCOUNT)
        assert await policy.is_dispensable(DT, THIRD.upper())

        with pytest.raises(DispenseRejected):
            await policy.dispense(DT, ACCOUNT)
        assert ledger.calls == []
