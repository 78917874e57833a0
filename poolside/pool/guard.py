"""Safety envelope checked before any state-changing pool action.

The guard is stateless: each check looks only at the values handed to it
(a fresh snapshot plus the caller's declared limits) and raises a typed
PoolError when the action must not be issued.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal

import structlog

from poolside.constants import (
    DEFAULT_BOUNDARY_FACTOR,
    DEFAULT_BOUNDARY_TOLERANCE,
    DEFAULT_MAX_IN_FRACTION,
    DEFAULT_MAX_OUT_FRACTION,
)
from poolside.math.fixed_point import Bfp

from .errors import InsufficientShares, InvalidParameter, LimitExceeded, ReserveCeilingExceeded

logger = structlog.get_logger()


@dataclass(frozen=True)
class GuardConfig:
    """Policy constants for the guard.

    Attributes:
        max_in_fraction: Largest share of a reserve a single deposit may add
        max_out_fraction: Largest share of a reserve a single withdrawal may take
        boundary_factor: Multiplier applied to a share spend at an exact
            exit boundary (0.9999)
        boundary_tolerance: Relative gap between required shares and the
            caller's ceiling that still counts as the same boundary
    """

    max_in_fraction: Decimal = DEFAULT_MAX_IN_FRACTION
    max_out_fraction: Decimal = DEFAULT_MAX_OUT_FRACTION
    boundary_factor: Decimal = DEFAULT_BOUNDARY_FACTOR
    boundary_tolerance: Decimal = DEFAULT_BOUNDARY_TOLERANCE

    def __post_init__(self) -> None:
        for name in ("max_in_fraction", "max_out_fraction", "boundary_factor"):
            value = getattr(self, name)
            if not Decimal(0) < value <= Decimal(1):
                raise InvalidParameter(f"{name} must be in (0, 1], got {value}")
        if self.boundary_tolerance < 0:
            raise InvalidParameter(
                f"boundary_tolerance must be non-negative, got {self.boundary_tolerance}"
            )

    @classmethod
    def from_env(cls) -> GuardConfig:
        """Build a config from POOLSIDE_* environment variables, falling back to defaults."""
        return cls(
            max_in_fraction=Decimal(
                os.environ.get("POOLSIDE_MAX_IN_FRACTION", str(DEFAULT_MAX_IN_FRACTION))
            ),
            max_out_fraction=Decimal(
                os.environ.get("POOLSIDE_MAX_OUT_FRACTION", str(DEFAULT_MAX_OUT_FRACTION))
            ),
            boundary_factor=Decimal(
                os.environ.get("POOLSIDE_BOUNDARY_FACTOR", str(DEFAULT_BOUNDARY_FACTOR))
            ),
            boundary_tolerance=Decimal(
                os.environ.get("POOLSIDE_BOUNDARY_TOLERANCE", str(DEFAULT_BOUNDARY_TOLERANCE))
            ),
        )


# Default configuration instance
DEFAULT_GUARD_CONFIG = GuardConfig()


def _ceiling(reserve: Bfp, fraction: Decimal) -> Bfp:
    # floor(reserve_raw * fraction) - 1 keeps the amount strictly under the limit
    if reserve.value <= 0:
        return Bfp.zero()
    return Bfp(max(0, reserve.mul_down(Bfp.from_decimal(fraction)).value - 1))


class PoolGuard:
    """Reserve ceilings, limit checks and share checks for pool actions."""

    def __init__(self, config: GuardConfig | None = None) -> None:
        self.config = config or DEFAULT_GUARD_CONFIG
        self._boundary_factor = Bfp.from_decimal(self.config.boundary_factor)
        self._boundary_tolerance = Bfp.from_decimal(self.config.boundary_tolerance)

    # -------------------------------------------------------------------------
    # Reserve-fraction ceilings
    # -------------------------------------------------------------------------

    def max_in(self, reserve: Bfp) -> Bfp:
        """Largest amount of an asset that may be deposited in one action."""
        return _ceiling(reserve, self.config.max_in_fraction)

    def max_out(self, reserve: Bfp) -> Bfp:
        """Largest amount of an asset that may be withdrawn in one action."""
        return _ceiling(reserve, self.config.max_out_fraction)

    def check_deposit(self, asset: str, amount: Bfp, reserve: Bfp) -> None:
        ceiling = self.max_in(reserve)
        if amount > ceiling:
            logger.debug(
                "reserve_ceiling_exceeded",
                asset=asset,
                direction="in",
                amount=str(amount),
                ceiling=str(ceiling),
            )
            raise ReserveCeilingExceeded(
                f"Deposit of {amount} {asset} exceeds ceiling {ceiling} of reserve {reserve}"
            )

    def check_withdrawal(self, asset: str, amount: Bfp, reserve: Bfp) -> None:
        ceiling = self.max_out(reserve)
        if amount > ceiling:
            logger.debug(
                "reserve_ceiling_exceeded",
                asset=asset,
                direction="out",
                amount=str(amount),
                ceiling=str(ceiling),
            )
            raise ReserveCeilingExceeded(
                f"Withdrawal of {amount} {asset} exceeds ceiling {ceiling} of reserve {reserve}"
            )

    # -------------------------------------------------------------------------
    # Caller limits
    # -------------------------------------------------------------------------

    def check_positive(self, name: str, amount: Bfp) -> None:
        if amount.value <= 0:
            raise InvalidParameter(f"{name} must be positive, got {amount}")

    def check_max_in(self, required: Bfp, max_in: Bfp) -> None:
        if required > max_in:
            logger.debug(
                "limit_exceeded", limit="max_in", required=str(required), max_in=str(max_in)
            )
            raise LimitExceeded(f"Required input {required} exceeds maximum {max_in}")

    def check_min_out(self, received: Bfp, min_out: Bfp) -> None:
        if received < min_out:
            logger.debug(
                "limit_exceeded", limit="min_out", received=str(received), min_out=str(min_out)
            )
            raise LimitExceeded(f"Output {received} is below minimum {min_out}")

    def check_max_price(self, amount_in: Bfp, amount_out: Bfp, max_price: Bfp | None) -> None:
        """Effective price (input per unit output) must not exceed max_price."""
        if max_price is None:
            return
        price = amount_in.div_up(amount_out)
        if price > max_price:
            logger.debug(
                "limit_exceeded", limit="max_price", price=str(price), max_price=str(max_price)
            )
            raise LimitExceeded(f"Effective price {price} exceeds maximum {max_price}")

    def check_min_price(self, amount_in: Bfp, amount_out: Bfp, min_price: Bfp | None) -> None:
        """Effective price (output per unit input) must not fall below min_price."""
        if min_price is None:
            return
        price = amount_out.div_down(amount_in)
        if price < min_price:
            logger.debug(
                "limit_exceeded", limit="min_price", price=str(price), min_price=str(min_price)
            )
            raise LimitExceeded(f"Effective price {price} is below minimum {min_price}")

    # -------------------------------------------------------------------------
    # Share checks
    # -------------------------------------------------------------------------

    def check_share_balance(self, balance: Bfp, needed: Bfp) -> None:
        if balance < needed:
            logger.debug("insufficient_shares", balance=str(balance), needed=str(needed))
            raise InsufficientShares(f"Share balance {balance} is below {needed}")

    def _adjacent(self, required: Bfp, ceiling: Bfp) -> bool:
        # required >= ceiling here, so sub never clamps
        gap = required.sub(ceiling)
        return gap <= ceiling.mul_up(self._boundary_tolerance)

    def exit_share_ceiling(self, required: Bfp, max_shares: Bfp) -> Bfp:
        """Share ceiling to submit with a single-asset exit.

        A requirement strictly below the caller's ceiling passes unchanged.
        A requirement equal to it or just above it (within
        boundary_tolerance) hits the engine's own exit rounding; the ceiling
        is reduced by boundary_factor instead of failing. Anything further
        above fails.

        Raises:
            InsufficientShares: If required shares clearly exceed max_shares
        """
        if required < max_shares:
            return max_shares
        if self._adjacent(required, max_shares):
            adjusted = max_shares.mul_down(self._boundary_factor)
            logger.warning(
                "exit_boundary_adjusted",
                path="single_asset_exit",
                required=str(required),
                max_shares=str(max_shares),
                adjusted=str(adjusted),
            )
            return adjusted
        logger.debug("insufficient_shares", required=str(required), max_shares=str(max_shares))
        raise InsufficientShares(f"Exit requires {required} shares, ceiling is {max_shares}")

    def full_exit_shares(self, share_amount: Bfp, balance: Bfp) -> Bfp:
        """Share amount to submit for a proportional exit.

        Spending the exact full balance is reduced by boundary_factor so the
        engine's rounding never asks for more shares than the holder has.

        Raises:
            InsufficientShares: If share_amount exceeds the holder's balance
        """
        self.check_share_balance(balance, share_amount)
        if share_amount == balance:
            adjusted = share_amount.mul_down(self._boundary_factor)
            logger.warning(
                "exit_boundary_adjusted",
                path="full_exit",
                share_amount=str(share_amount),
                adjusted=str(adjusted),
            )
            return adjusted
        return share_amount
