"""Pool-level quotes.

Combines a fresh ledger snapshot with the weighted math. Amounts in and out
are Decimals in token units. Quotes are never cached: re-quote right before
submitting an action.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

import structlog

from .errors import ConfigurationError
from .guard import PoolGuard
from .scaling import from_bfp, to_bfp
from .view import ReserveLedgerView
from .weighted_math import (
    calc_in_given_out,
    calc_out_given_in,
    calc_pool_in_given_single_out,
    calc_pool_out_given_single_in,
    calc_single_in_given_pool_out,
    calc_single_out_given_pool_in,
    calc_spot_price,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class TokensReceived:
    """Amounts of each pool asset returned for a proportional exit."""

    base_amount: Decimal
    quote_amount: Decimal


class PoolQuoter:
    """Quotes for swaps, single-asset liquidity and exits on two-asset pools.

    Args:
        view: Ledger view the quotes read from
        guard: Guard whose ceilings back the max_* helpers
        quote_asset: The pool's quote asset; the other constituent is the
            base asset. Only the base/quote helpers need it.
    """

    def __init__(
        self,
        view: ReserveLedgerView,
        guard: PoolGuard | None = None,
        quote_asset: str | None = None,
    ) -> None:
        self.view = view
        self.guard = guard or PoolGuard()
        self.quote_asset = quote_asset

    def _require_quote_asset(self) -> str:
        if self.quote_asset is None:
            raise ConfigurationError("Quote asset address is not configured")
        return self.quote_asset

    async def base_asset(self, pool: str) -> str:
        """The pool constituent that is not the quote asset."""
        return await self.view.other_asset(pool, self._require_quote_asset())

    # -------------------------------------------------------------------------
    # Swaps
    # -------------------------------------------------------------------------

    async def spot_price(self, pool: str, asset_in: str, asset_out: str) -> Decimal:
        snap = await self.view.swap_snapshot(pool, asset_in, asset_out)
        price = calc_spot_price(
            snap.balance_in, snap.weight_in, snap.balance_out, snap.weight_out, snap.fee
        )
        return from_bfp(price)

    async def amount_in_needed(
        self, pool: str, asset_in: str, asset_out: str, amount_out: Decimal
    ) -> Decimal:
        """Input of asset_in needed to receive amount_out of asset_out."""
        snap = await self.view.swap_snapshot(pool, asset_in, asset_out)
        amount_in = calc_in_given_out(
            snap.balance_in,
            snap.weight_in,
            snap.balance_out,
            snap.weight_out,
            to_bfp(amount_out),
            snap.fee,
        )
        return from_bfp(amount_in)

    async def amount_out_received(
        self, pool: str, asset_in: str, asset_out: str, amount_in: Decimal
    ) -> Decimal:
        """Output of asset_out received for selling amount_in of asset_in."""
        snap = await self.view.swap_snapshot(pool, asset_in, asset_out)
        amount_out = calc_out_given_in(
            snap.balance_in,
            snap.weight_in,
            snap.balance_out,
            snap.weight_out,
            to_bfp(amount_in),
            snap.fee,
        )
        return from_bfp(amount_out)

    async def quote_needed(self, pool: str, base_required: Decimal) -> Decimal:
        """Quote asset needed to buy base_required of the base asset."""
        base = await self.base_asset(pool)
        return await self.amount_in_needed(pool, self._require_quote_asset(), base, base_required)

    async def quote_received(self, pool: str, base_sold: Decimal) -> Decimal:
        """Quote asset received for selling base_sold of the base asset."""
        base = await self.base_asset(pool)
        return await self.amount_out_received(pool, base, self._require_quote_asset(), base_sold)

    async def base_needed(self, pool: str, quote_required: Decimal) -> Decimal:
        """Base asset needed to buy quote_required of the quote asset."""
        base = await self.base_asset(pool)
        return await self.amount_in_needed(pool, base, self._require_quote_asset(), quote_required)

    async def price(self, pool: str) -> Decimal:
        """Quote asset needed to buy one base token."""
        return await self.quote_needed(pool, Decimal(1))

    # -------------------------------------------------------------------------
    # Single-asset liquidity
    # -------------------------------------------------------------------------

    async def shares_received_for_deposit(self, pool: str, asset: str, amount: Decimal) -> Decimal:
        snap = await self.view.liquidity_snapshot(pool, asset)
        shares = calc_pool_out_given_single_in(
            snap.balance, snap.weight, snap.pool_supply, snap.total_weight, to_bfp(amount), snap.fee
        )
        return from_bfp(shares)

    async def amount_required_for_shares(self, pool: str, asset: str, shares: Decimal) -> Decimal:
        snap = await self.view.liquidity_snapshot(pool, asset)
        amount = calc_single_in_given_pool_out(
            snap.balance, snap.weight, snap.pool_supply, snap.total_weight, to_bfp(shares), snap.fee
        )
        return from_bfp(amount)

    async def amount_removed_for_shares(self, pool: str, asset: str, shares: Decimal) -> Decimal:
        snap = await self.view.liquidity_snapshot(pool, asset)
        amount = calc_single_out_given_pool_in(
            snap.balance, snap.weight, snap.pool_supply, snap.total_weight, to_bfp(shares), snap.fee
        )
        return from_bfp(amount)

    async def shares_required_to_remove(self, pool: str, asset: str, amount: Decimal) -> Decimal:
        snap = await self.view.liquidity_snapshot(pool, asset)
        shares = calc_pool_in_given_single_out(
            snap.balance, snap.weight, snap.pool_supply, snap.total_weight, to_bfp(amount), snap.fee
        )
        return from_bfp(shares)

    async def tokens_removed_for_shares(self, pool: str, shares: Decimal) -> TokensReceived:
        """Base and quote amounts paid out for a proportional exit of `shares`."""
        quote = self._require_quote_asset()
        base = await self.base_asset(pool)
        supply = await self.view.share_supply(pool)
        base_reserve = await self.view.reserve_of(pool, base)
        quote_reserve = await self.view.reserve_of(pool, quote)

        if supply.is_zero():
            logger.debug("tokens_removed_empty_pool", pool=pool)
            return TokensReceived(base_amount=Decimal(0), quote_amount=Decimal(0))

        ratio = to_bfp(shares).div_down(supply)
        return TokensReceived(
            base_amount=from_bfp(base_reserve.mul_down(ratio)),
            quote_amount=from_bfp(quote_reserve.mul_down(ratio)),
        )

    # -------------------------------------------------------------------------
    # Ceilings
    # -------------------------------------------------------------------------

    async def max_add_liquidity(self, pool: str, asset: str) -> Decimal:
        reserve = await self.view.reserve_of(pool, asset)
        return from_bfp(self.guard.max_in(reserve))

    async def max_remove_liquidity(self, pool: str, asset: str) -> Decimal:
        reserve = await self.view.reserve_of(pool, asset)
        return from_bfp(self.guard.max_out(reserve))

    async def max_buy_quantity(self, pool: str, asset: str) -> Decimal:
        """Largest amount of `asset` one swap may take out of the pool."""
        return await self.max_remove_liquidity(pool, asset)
