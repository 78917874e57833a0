"""Unit conversion and fee helpers.

Caller-facing amounts are Decimals in token units; the ledger takes raw
integer base units. These functions are the only place the two meet.
"""

from decimal import ROUND_HALF_UP, Decimal, localcontext

from poolside.constants import DEFAULT_DECIMALS, UINT256_MAX
from poolside.math.fixed_point import DECIMAL_PRECISION, Bfp

from .errors import InvalidParameter


def amount_to_units(
    amount: Decimal,
    decimals: int = DEFAULT_DECIMALS,
    rounding: str = ROUND_HALF_UP,
) -> int:
    """Convert a token amount to raw base units.

    Args:
        amount: Amount in token units (e.g. Decimal("1.5"))
        decimals: Token decimals
        rounding: Decimal rounding mode for sub-unit remainders

    Returns:
        Raw integer amount

    Raises:
        InvalidParameter: If amount or decimals is negative, or the result
            does not fit in uint256
    """
    if decimals < 0:
        raise InvalidParameter(f"Decimals must be non-negative, got {decimals}")
    amount = Decimal(amount)
    if amount < 0:
        raise InvalidParameter(f"Amount must be non-negative, got {amount}")
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        units = int(amount.scaleb(decimals).quantize(Decimal("1"), rounding=rounding))
    if units > UINT256_MAX:
        raise InvalidParameter(f"Amount {amount} overflows uint256")
    return units


def units_to_amount(units: int, decimals: int = DEFAULT_DECIMALS) -> Decimal:
    """Convert raw base units to a token amount."""
    if decimals < 0:
        raise InvalidParameter(f"Decimals must be non-negative, got {decimals}")
    if units < 0:
        raise InvalidParameter(f"Units must be non-negative, got {units}")
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return Decimal(units).scaleb(-decimals)


def to_bfp(amount: Decimal, rounding: str = ROUND_HALF_UP) -> Bfp:
    """Convert a token amount into the fixed-point domain."""
    return Bfp.from_wei(amount_to_units(amount, DEFAULT_DECIMALS, rounding))


def from_bfp(value: Bfp) -> Decimal:
    """Convert a fixed-point value back to token units."""
    return units_to_amount(value.value, DEFAULT_DECIMALS)


def validate_fee(fee: Bfp) -> None:
    """Swap fee must be in range [0, 1)."""
    if fee.value < 0 or fee.value >= Bfp.ONE:
        raise InvalidParameter(f"Swap fee must be in range [0, 1), got {fee}")


def subtract_swap_fee_amount(amount: Bfp, fee: Bfp) -> Bfp:
    """Deduct the swap fee from an input amount, rounding down.

    Used for exact-input swaps: amount * (1 - fee).

    Raises:
        InvalidParameter: If fee is not in range [0, 1)
    """
    validate_fee(fee)
    return amount.mul_down(fee.complement())


def add_swap_fee_amount(amount: Bfp, fee: Bfp) -> Bfp:
    """Gross up a raw input amount by the swap fee, rounding up.

    Used for exact-output swaps: amount / (1 - fee).

    Raises:
        InvalidParameter: If fee is not in range [0, 1)
    """
    validate_fee(fee)
    return amount.div_up(fee.complement())
