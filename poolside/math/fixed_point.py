"""Balancer Fixed Point (Bfp) math library.

This module implements 18-decimal fixed-point arithmetic for weighted pool
math. Multiplication and division come in explicit rounding directions so
callers can always round in the pool's favour. The power function mirrors the
`bpow` routine of the Balancer V1 `BNum` contract that the authoritative pool
engine uses:
https://github.com/balancer-labs/balancer-core/blob/master/contracts/BNum.sol

All values are stored as integers scaled by 10^18.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import ClassVar

__all__ = [
    # Classes
    "Bfp",
    # Errors
    "FixedPointError",
    "BaseOutOfBounds",
    # Functions
    "pow_raw",
    # Constants
    "ONE_18",
    "MIN_BPOW_BASE",
    "MAX_BPOW_BASE",
    "BPOW_PRECISION",
]

# =============================================================================
# Constants (matching BConst.sol)
# =============================================================================

ONE_18 = 10**18

# Working precision for Decimal conversions; uint256 needs 78 digits
DECIMAL_PRECISION = 100

MIN_BPOW_BASE = 1
MAX_BPOW_BASE = 2 * ONE_18 - 1
BPOW_PRECISION = ONE_18 // 10**10


# =============================================================================
# Error classes
# =============================================================================


class FixedPointError(ArithmeticError):
    """Base error for fixed-point operations."""

    pass


class BaseOutOfBounds(FixedPointError):
    """ERR_BPOW_BASE_TOO_LOW / ERR_BPOW_BASE_TOO_HIGH."""

    pass


# =============================================================================
# Core math functions (matching BNum.sol)
# =============================================================================


def _bmul(a: int, b: int) -> int:
    """Multiply rounding half up, as BNum.bmul does."""
    return (a * b + ONE_18 // 2) // ONE_18


def _bdiv(a: int, b: int) -> int:
    """Divide rounding half up, as BNum.bdiv does."""
    if b == 0:
        raise ZeroDivisionError("Bfp division by zero")
    return (a * ONE_18 + b // 2) // b


def _bpowi(a: int, n: int) -> int:
    """Raise a to a whole number power n by repeated squaring."""
    z = a if n % 2 != 0 else ONE_18
    n //= 2
    while n != 0:
        a = _bmul(a, a)
        if n % 2 != 0:
            z = _bmul(z, a)
        n //= 2
    return z


def _bpow_approx(base: int, exp: int, precision: int) -> int:
    """Approximate base^exp for 0 <= exp < 1 with a binomial series.

    (1 + x)^a = 1 + a*x + a(a-1)/2! * x^2 + ...

    The series stops once a term falls below `precision`. Signs are tracked
    separately because x = base - 1 and (a - (k - 1)) may both be negative.
    """
    a = exp
    if base >= ONE_18:
        x, x_neg = base - ONE_18, False
    else:
        x, x_neg = ONE_18 - base, True

    term = ONE_18
    total = term
    negative = False

    i = 1
    while term >= precision:
        big_k = i * ONE_18
        c = a - (big_k - ONE_18)
        c_neg = c < 0
        term = _bmul(term, _bmul(abs(c), x))
        term = _bdiv(term, big_k)
        if term == 0:
            break

        if x_neg:
            negative = not negative
        if c_neg:
            negative = not negative

        if negative:
            total -= term
        else:
            total += term
        i += 1

    return total


def pow_raw(base: int, exp: int) -> int:
    """Compute base^exp where both are 18-decimal fixed-point.

    Args:
        base: Base in [MIN_BPOW_BASE, MAX_BPOW_BASE]
        exp: Non-negative exponent

    Returns:
        base^exp as 18-decimal fixed-point, rounded half up

    Raises:
        BaseOutOfBounds: If base is outside the range the engine accepts
    """
    if base < MIN_BPOW_BASE:
        raise BaseOutOfBounds(f"Base {base} below minimum {MIN_BPOW_BASE}")
    if base > MAX_BPOW_BASE:
        raise BaseOutOfBounds(f"Base {base} above maximum {MAX_BPOW_BASE}")
    if exp < 0:
        raise ValueError(f"Exponent must be non-negative, got {exp}")

    whole = exp // ONE_18
    remain = exp - whole * ONE_18

    whole_pow = _bpowi(base, whole)
    if remain == 0:
        return whole_pow

    partial = _bpow_approx(base, remain, BPOW_PRECISION)
    return _bmul(whole_pow, partial)


# =============================================================================
# Bfp class (wrapper for convenient usage)
# =============================================================================


class Bfp:
    """18-decimal fixed-point number stored as int.

    All values are stored as integers scaled by 10^18.
    Example: 1.5 is stored as 1_500_000_000_000_000_000
    """

    ONE: ClassVar[int] = ONE_18
    # 10^-9 relative error, comfortably above the series truncation of bpow
    MAX_POW_RELATIVE_ERROR: ClassVar[int] = 10**9

    __slots__ = ("value",)
    __hash__ = None  # type: ignore[assignment]  # Unhashable since we define __eq__

    def __init__(self, value: int) -> None:
        """Create Bfp from raw scaled value."""
        self.value = value

    @classmethod
    def from_wei(cls, wei: int) -> Bfp:
        """Create from raw wei value (already scaled to 18 decimals)."""
        return cls(wei)

    @classmethod
    def from_decimal(cls, d: Decimal, rounding: str = ROUND_HALF_UP) -> Bfp:
        """Create from decimal (will be scaled by 10^18).

        Requires non-negative input (matches Solidity unsigned semantics).
        """
        if d < 0:
            raise ValueError(f"Bfp.from_decimal requires non-negative input, got {d}")
        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            scaled = (Decimal(d) * cls.ONE).quantize(Decimal("1"), rounding=rounding)
        return cls(int(scaled))

    @classmethod
    def from_int(cls, i: int) -> Bfp:
        """Create from integer (will be scaled by 10^18)."""
        return cls(i * cls.ONE)

    @classmethod
    def one(cls) -> Bfp:
        return cls(cls.ONE)

    @classmethod
    def zero(cls) -> Bfp:
        return cls(0)

    def to_decimal(self) -> Decimal:
        """Convert to Decimal for display."""
        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            return Decimal(self.value).scaleb(-18)

    def is_zero(self) -> bool:
        return self.value == 0

    def mul_down(self, other: Bfp) -> Bfp:
        """Multiply with floor rounding: (a * b) // 10^18"""
        return Bfp((self.value * other.value) // self.ONE)

    def mul_up(self, other: Bfp) -> Bfp:
        """Multiply with ceiling rounding."""
        product = self.value * other.value
        if product == 0:
            return Bfp(0)
        return Bfp((product - 1) // self.ONE + 1)

    def div_down(self, other: Bfp) -> Bfp:
        """Divide with floor rounding: (a * 10^18) // b"""
        if other.value == 0:
            raise ZeroDivisionError("Bfp division by zero")
        return Bfp((self.value * self.ONE) // other.value)

    def div_up(self, other: Bfp) -> Bfp:
        """Divide with ceiling rounding."""
        if other.value == 0:
            raise ZeroDivisionError("Bfp division by zero")
        numerator = self.value * self.ONE
        if numerator == 0:
            return Bfp(0)
        return Bfp((numerator - 1) // other.value + 1)

    def complement(self) -> Bfp:
        """Return 1 - self. Clamps to 0 if self > 1."""
        return Bfp(max(0, self.ONE - self.value))

    def add(self, other: Bfp) -> Bfp:
        """Add two Bfp values."""
        return Bfp(self.value + other.value)

    def sub(self, other: Bfp) -> Bfp:
        """Subtract other from self. Clamps to 0 if result would be negative."""
        result = self.value - other.value
        if result < 0:
            return Bfp(0)
        return Bfp(result)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value == other.value

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value <= other.value

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value > other.value

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value >= other.value

    def __repr__(self) -> str:
        return f"Bfp({self.value})"

    def __str__(self) -> str:
        return str(self.to_decimal())

    def _pow_error(self, raw: int) -> int:
        # max_error = mul_up(raw, MAX_POW_RELATIVE_ERROR) + 1
        product = raw * self.MAX_POW_RELATIVE_ERROR
        mul_up_result = ((product - 1) // self.ONE + 1) if product > 0 else 0
        return mul_up_result + 1

    def pow_down(self, exp: Bfp) -> Bfp:
        """Compute self^exp with downward rounding."""
        raw = pow_raw(self.value, exp.value)
        max_error = self._pow_error(raw)
        if raw < max_error:
            return Bfp(0)
        return Bfp(raw - max_error)

    def pow_up(self, exp: Bfp) -> Bfp:
        """Compute self^exp with upward rounding."""
        raw = pow_raw(self.value, exp.value)
        return Bfp(raw + self._pow_error(raw))
