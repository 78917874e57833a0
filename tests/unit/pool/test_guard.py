"""Tests for the pool guard: reserve ceilings, caller limits and share checks."""

from decimal import Decimal

import pytest

from poolside.math.fixed_point import ONE_18, Bfp
from poolside.pool import (
    GuardConfig,
    InsufficientShares,
    InvalidParameter,
    LimitExceeded,
    PoolGuard,
    ReserveCeilingExceeded,
)


def b(value: str | int) -> Bfp:
    return Bfp.from_decimal(Decimal(value))


class TestGuardConfig:
    def test_defaults(self) -> None:
        config = GuardConfig()
        assert config.max_in_fraction == Decimal("0.25")
        assert config.max_out_fraction == Decimal("0.25")
        assert config.boundary_factor == Decimal("0.9999")

    @pytest.mark.parametrize("fraction", [Decimal(0), Decimal("-0.1"), Decimal("1.5")])
    def test_fraction_out_of_range_raises(self, fraction: Decimal) -> None:
        with pytest.raises(InvalidParameter):
            GuardConfig(max_in_fraction=fraction)

    def test_negative_tolerance_raises(self) -> None:
        with pytest.raises(InvalidParameter):
            GuardConfig(boundary_tolerance=Decimal("-1e-9"))

    def test_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("POOLSIDE_MAX_IN_FRACTION", "0.5")
        monkeypatch.setenv("POOLSIDE_BOUNDARY_FACTOR", "0.999")
        monkeypatch.delenv("POOLSIDE_MAX_OUT_FRACTION", raising=False)

        config = GuardConfig.from_env()

        assert config.max_in_fraction == Decimal("0.5")
        assert config.max_out_fraction == Decimal("0.25")
        assert config.boundary_factor == Decimal("0.999")


class TestReserveCeilings:
    def test_ceiling_is_strictly_below_fraction(self) -> None:
        guard = PoolGuard()
        assert guard.max_in(b(1000)).value == 250 * ONE_18 - 1
        assert guard.max_out(b(1000)).value == 250 * ONE_18 - 1

    def test_empty_reserve_has_zero_ceiling(self) -> None:
        guard = PoolGuard()
        assert guard.max_in(Bfp.zero()).is_zero()
        assert guard.max_out(Bfp.from_wei(1)).is_zero()

    def test_configured_fractions(self) -> None:
        config = GuardConfig(max_in_fraction=Decimal("0.5"), max_out_fraction=Decimal("0.1"))
        guard = PoolGuard(config)
        assert guard.max_in(b(1000)).value == 500 * ONE_18 - 1
        assert guard.max_out(b(1000)).value == 100 * ONE_18 - 1

    def test_deposit_at_ceiling_passes(self) -> None:
        guard = PoolGuard()
        guard.check_deposit("dt", Bfp.from_wei(250 * ONE_18 - 1), b(1000))

    def test_deposit_at_fraction_raises(self) -> None:
        guard = PoolGuard()
        with pytest.raises(ReserveCeilingExceeded):
            guard.check_deposit("dt", b(250), b(1000))

    def test_withdrawal_over_ceiling_raises(self) -> None:
        guard = PoolGuard()
        with pytest.raises(ReserveCeilingExceeded):
            guard.check_withdrawal("dt", b(300), b(1000))


class TestCallerLimits:
    def test_check_positive(self) -> None:
        guard = PoolGuard()
        guard.check_positive("amount", b(1))
        with pytest.raises(InvalidParameter):
            guard.check_positive("amount", Bfp.zero())

    def test_max_in(self) -> None:
        guard = PoolGuard()
        guard.check_max_in(b(10), b(10))
        with pytest.raises(LimitExceeded):
            guard.check_max_in(Bfp.from_wei(10 * ONE_18 + 1), b(10))

    def test_min_out(self) -> None:
        guard = PoolGuard()
        guard.check_min_out(b(5), b(5))
        with pytest.raises(LimitExceeded):
            guard.check_min_out(b(4), b(5))

    def test_max_price(self) -> None:
        """10 in for 5 out is a price of 2."""
        guard = PoolGuard()
        guard.check_max_price(b(10), b(5), None)
        guard.check_max_price(b(10), b(5), b(2))
        with pytest.raises(LimitExceeded):
            guard.check_max_price(b(10), b(5), b("1.5"))

    def test_min_price(self) -> None:
        """5 out for 10 in is a price of 0.5."""
        guard = PoolGuard()
        guard.check_min_price(b(10), b(5), None)
        guard.check_min_price(b(10), b(5), b("0.5"))
        with pytest.raises(LimitExceeded):
            guard.check_min_price(b(10), b(5), b("0.6"))


class TestShareChecks:
    def test_share_balance(self) -> None:
        guard = PoolGuard()
        guard.check_share_balance(b(10), b(10))
        with pytest.raises(InsufficientShares):
            guard.check_share_balance(b(9), b(10))

    def test_requirement_below_ceiling_is_unchanged(self) -> None:
        guard = PoolGuard()
        assert guard.exit_share_ceiling(b(5), b(10)) == b(10)
        assert guard.exit_share_ceiling(Bfp.from_wei(10 * ONE_18 - 1), b(10)) == b(10)

    def test_requirement_equal_to_ceiling_reduces_it(self) -> None:
        guard = PoolGuard()
        adjusted = guard.exit_share_ceiling(b(10), b(10))
        assert adjusted < b(10)
        assert adjusted.value == 9_999 * 10**15

    def test_adjacent_requirement_reduces_ceiling(self) -> None:
        guard = PoolGuard()
        ceiling = b(10)
        # 10 * 1e-9 tolerance is 1e10 wei
        required = Bfp.from_wei(ceiling.value + 10**10)

        adjusted = guard.exit_share_ceiling(required, ceiling)

        assert adjusted == ceiling.mul_down(b("0.9999"))
        assert adjusted.value == 9_999 * 10**15

    def test_clearly_excessive_requirement_raises(self) -> None:
        guard = PoolGuard()
        with pytest.raises(InsufficientShares):
            guard.exit_share_ceiling(Bfp.from_wei(10 * ONE_18 + 10**12), b(10))

    def test_full_balance_exit_is_reduced(self) -> None:
        guard = PoolGuard()
        assert guard.full_exit_shares(b(10), b(10)).value == 9_999 * 10**15

    def test_partial_exit_is_unchanged(self) -> None:
        guard = PoolGuard()
        assert guard.full_exit_shares(b(4), b(10)) == b(4)

    def test_exit_above_balance_raises(self) -> None:
        guard = PoolGuard()
        with pytest.raises(InsufficientShares):
            guard.full_exit_shares(b(11), b(10))
