"""Tests for the weighted pool math.

This module tests:
- Swap formulas (calc_out_given_in, calc_in_given_out, calc_spot_price)
- Single-asset join/exit formulas and their inverses
- Rounding direction and domain errors
"""

from decimal import Decimal

import pytest

from poolside.math.fixed_point import Bfp
from poolside.pool import (
    InvalidParameter,
    InvalidQuote,
    calc_in_given_out,
    calc_out_given_in,
    calc_pool_in_given_single_out,
    calc_pool_out_given_single_in,
    calc_single_in_given_pool_out,
    calc_single_out_given_pool_in,
    calc_spot_price,
)


def b(value: str | int) -> Bfp:
    return Bfp.from_decimal(Decimal(value))


def close(actual: Bfp, expected: str, tolerance: str) -> bool:
    return abs(actual.to_decimal() - Decimal(expected)) < Decimal(tolerance)


class TestSwapMath:
    """Exact-input and exact-output swaps."""

    def test_out_given_in_equal_weights(self) -> None:
        """100/100 pool, 10 in, no fee: 100 * 10 / 110."""
        out = calc_out_given_in(b(100), b(1), b(100), b(1), b(10), b(0))
        assert close(out, "9.0909090909", "0.000001")
        # Rounded in the pool's favour
        assert out.to_decimal() < Decimal("9.0909090909090909")

    def test_in_given_out_unequal_weights(self) -> None:
        """100 * ((100 / 90)^(2/8) - 1) = 2.669009..."""
        amount_in = calc_in_given_out(b(100), b(8), b(100), b(2), b(10), b(0))
        assert amount_in > b("2.5")
        assert close(amount_in, "2.66901", "0.00001")

    def test_zero_amount_gives_zero(self) -> None:
        assert calc_out_given_in(b(100), b(1), b(100), b(1), b(0), b(0)).is_zero()
        assert calc_in_given_out(b(100), b(1), b(100), b(1), b(0), b(0)).is_zero()

    def test_fee_reduces_output(self) -> None:
        no_fee = calc_out_given_in(b(1000), b(5), b(1000), b(5), b(10), b(0))
        with_fee = calc_out_given_in(b(1000), b(5), b(1000), b(5), b(10), b("0.01"))
        assert with_fee < no_fee

    def test_fee_increases_required_input(self) -> None:
        no_fee = calc_in_given_out(b(1000), b(5), b(1000), b(5), b(10), b(0))
        with_fee = calc_in_given_out(b(1000), b(5), b(1000), b(5), b(10), b("0.01"))
        assert with_fee > no_fee

    def test_in_given_out_inverts_out_given_in(self) -> None:
        fee = b("0.001")
        out = calc_out_given_in(b(1000), b(5), b(1000), b(5), b(10), fee)
        amount_in = calc_in_given_out(b(1000), b(5), b(1000), b(5), out, fee)
        assert close(amount_in, "10", "0.00001")

    def test_out_given_in_inverts_in_given_out(self) -> None:
        fee = b("0.003")
        amount_in = calc_in_given_out(b(100), b(8), b(100), b(2), b(10), fee)
        out = calc_out_given_in(b(100), b(8), b(100), b(2), amount_in, fee)
        assert close(out, "10", "0.00001")

    def test_amount_out_equal_to_balance_raises(self) -> None:
        with pytest.raises(InvalidQuote):
            calc_in_given_out(b(100), b(1), b(100), b(1), b(100), b(0))

    def test_amount_out_above_half_the_reserve(self) -> None:
        """Taking 60 of 100 at equal weights needs 100 * (100 / 40 - 1) = 150."""
        amount_in = calc_in_given_out(b(100), b(5), b(100), b(5), b(60), b(0))
        assert amount_in > b(150)
        assert close(amount_in, "150", "0.00001")

    def test_zero_balance_raises(self) -> None:
        with pytest.raises(InvalidQuote):
            calc_out_given_in(b(0), b(1), b(100), b(1), b(10), b(0))

    def test_zero_weight_raises(self) -> None:
        with pytest.raises(InvalidQuote):
            calc_out_given_in(b(100), b(0), b(100), b(1), b(10), b(0))

    def test_fee_of_one_raises(self) -> None:
        with pytest.raises(InvalidParameter):
            calc_out_given_in(b(100), b(1), b(100), b(1), b(10), b(1))

    def test_negative_amount_raises(self) -> None:
        with pytest.raises(InvalidParameter):
            calc_out_given_in(b(100), b(1), b(100), b(1), Bfp.from_wei(-1), b(0))


class TestSpotPrice:
    def test_balanced_pool_without_fee_is_one(self) -> None:
        assert calc_spot_price(b(1000), b(5), b(1000), b(5), b(0)) == Bfp.one()

    def test_fee_raises_price(self) -> None:
        price = calc_spot_price(b(1000), b(5), b(1000), b(5), b("0.003"))
        assert close(price, "1.003009", "0.000001")

    def test_weights_shift_price(self) -> None:
        """(200 / 8) / (100 / 2) = 0.5"""
        price = calc_spot_price(b(200), b(8), b(100), b(2), b(0))
        assert price == b("0.5")


class TestSingleAssetJoin:
    """Minting shares for a single-asset deposit and its inverse."""

    def test_pool_out_given_single_in(self) -> None:
        """100 * (1.01^0.5 - 1) = 0.498756..."""
        shares = calc_pool_out_given_single_in(b(1000), b(5), b(100), b(10), b(10), b(0))
        assert close(shares, "0.4987562", "0.00001")

    def test_fee_reduces_shares(self) -> None:
        no_fee = calc_pool_out_given_single_in(b(1000), b(5), b(100), b(10), b(10), b(0))
        with_fee = calc_pool_out_given_single_in(
            b(1000), b(5), b(100), b(10), b(10), b("0.01")
        )
        assert with_fee < no_fee

    def test_single_in_inverts_pool_out(self) -> None:
        fee = b("0.001")
        shares = calc_pool_out_given_single_in(b(1000), b(5), b(100), b(10), b(10), fee)
        amount_in = calc_single_in_given_pool_out(b(1000), b(5), b(100), b(10), shares, fee)
        assert close(amount_in, "10", "0.00001")

    def test_zero_deposit_mints_nothing(self) -> None:
        assert calc_pool_out_given_single_in(b(1000), b(5), b(100), b(10), b(0), b(0)).is_zero()
        assert calc_single_in_given_pool_out(b(1000), b(5), b(100), b(10), b(0), b(0)).is_zero()

    def test_deposit_larger_than_reserve(self) -> None:
        """100 * (2500 / 1000)^0.5 - 100 = 58.113883..."""
        shares = calc_pool_out_given_single_in(b(1000), b(5), b(100), b(10), b(1500), b(0))
        assert close(shares, "58.113883", "0.00001")
        assert shares < b("58.1138830085")

    def test_zero_supply_raises(self) -> None:
        with pytest.raises(InvalidQuote):
            calc_single_in_given_pool_out(b(1000), b(5), b(0), b(10), b(1), b(0))


class TestSingleAssetExit:
    """Redeeming shares for a single asset and its inverse."""

    def test_pool_in_given_single_out(self) -> None:
        """100 * (1 - 0.99^0.5) = 0.501256..."""
        shares = calc_pool_in_given_single_out(b(1000), b(5), b(100), b(10), b(10), b(0))
        assert close(shares, "0.5012563", "0.00001")

    def test_fee_increases_shares_required(self) -> None:
        no_fee = calc_pool_in_given_single_out(b(1000), b(5), b(100), b(10), b(10), b(0))
        with_fee = calc_pool_in_given_single_out(
            b(1000), b(5), b(100), b(10), b(10), b("0.001")
        )
        assert with_fee > no_fee

    def test_single_out_inverts_pool_in(self) -> None:
        fee = b("0.001")
        shares = calc_pool_in_given_single_out(b(1000), b(5), b(100), b(10), b(10), fee)
        amount_out = calc_single_out_given_pool_in(b(1000), b(5), b(100), b(10), shares, fee)
        assert close(amount_out, "10", "0.00001")

    def test_single_out_given_pool_in(self) -> None:
        """1000 * (1 - 0.99^2) = 19.9"""
        amount_out = calc_single_out_given_pool_in(b(1000), b(5), b(100), b(10), b(1), b(0))
        assert close(amount_out, "19.9", "0.00001")
        assert amount_out < b("19.9")

    def test_redeeming_whole_supply_raises(self) -> None:
        with pytest.raises(InvalidQuote):
            calc_single_out_given_pool_in(b(1000), b(5), b(100), b(10), b(100), b(0))

    def test_withdrawing_whole_reserve_raises(self) -> None:
        with pytest.raises(InvalidQuote):
            calc_pool_in_given_single_out(b(1000), b(5), b(100), b(10), b(1000), b(0))

    def test_zero_withdrawal_needs_no_shares(self) -> None:
        assert calc_pool_in_given_single_out(b(1000), b(5), b(100), b(10), b(0), b(0)).is_zero()
        assert calc_single_out_given_pool_in(b(1000), b(5), b(100), b(10), b(0), b(0)).is_zero()


def relative_gap(actual: Bfp, expected: str) -> Decimal:
    return abs(actual.to_decimal() - Decimal(expected)) / Decimal(expected)


class TestRoundTrips:
    """Quoting one way and back lands on the starting amount."""

    @pytest.mark.parametrize(
        ("balance_in", "weight_in", "balance_out", "weight_out", "fee", "amount_out"),
        [
            ("100", "5", "100", "5", "0", "60"),
            ("100", "8", "100", "2", "0.003", "10"),
            ("1000", "2", "2000", "8", "0.01", "1000"),
            ("50", "3", "80", "7", "0.001", "64"),
            ("1000", "5", "1000", "5", "0.003", "100"),
            ("250", "1", "4000", "1", "0.05", "3000"),
        ],
    )
    def test_out_given_in_of_in_given_out(
        self,
        balance_in: str,
        weight_in: str,
        balance_out: str,
        weight_out: str,
        fee: str,
        amount_out: str,
    ) -> None:
        pool = (b(balance_in), b(weight_in), b(balance_out), b(weight_out))
        amount_in = calc_in_given_out(*pool, b(amount_out), b(fee))
        back = calc_out_given_in(*pool, amount_in, b(fee))
        assert relative_gap(back, amount_out) < Decimal("1e-6")

    @pytest.mark.parametrize(
        ("balance", "weight", "pool_supply", "total_weight", "fee", "amount_in"),
        [
            ("1000", "5", "100", "10", "0", "1500"),
            ("1000", "5", "100", "10", "0.003", "10"),
            ("500", "2", "1000", "10", "0.01", "800"),
            ("2000", "9", "50", "10", "0.001", "100"),
        ],
    )
    def test_single_in_of_pool_out(
        self,
        balance: str,
        weight: str,
        pool_supply: str,
        total_weight: str,
        fee: str,
        amount_in: str,
    ) -> None:
        pool = (b(balance), b(weight), b(pool_supply), b(total_weight))
        shares = calc_pool_out_given_single_in(*pool, b(amount_in), b(fee))
        back = calc_single_in_given_pool_out(*pool, shares, b(fee))
        assert relative_gap(back, amount_in) < Decimal("1e-6")
