"""Read-only view over a pool's ledger state.

Every accessor goes to the ledger; nothing is cached. A snapshot composed
of several reads is best effort, not transaction-consistent: the caller
re-quotes right before submitting and relies on its limits for the rest.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from poolside.math.fixed_point import Bfp
from poolside.models.types import same_address

from .errors import ConfigurationError, InvalidQuote
from .ledger import LedgerReader
from .scaling import to_bfp

logger = structlog.get_logger()


@dataclass(frozen=True)
class SwapSnapshot:
    """Inputs for a swap quote between two assets of one pool."""

    pool: str
    asset_in: str
    asset_out: str
    balance_in: Bfp
    weight_in: Bfp
    balance_out: Bfp
    weight_out: Bfp
    fee: Bfp


@dataclass(frozen=True)
class LiquiditySnapshot:
    """Inputs for a single-asset join or exit quote."""

    pool: str
    asset: str
    balance: Bfp
    weight: Bfp
    pool_supply: Bfp
    total_weight: Bfp
    fee: Bfp


class ReserveLedgerView:
    """Fixed-point accessors for pool reserves, weights, supply and fee."""

    def __init__(self, reader: LedgerReader) -> None:
        self.reader = reader

    async def tokens_of(self, pool: str) -> list[str]:
        return list(await self.reader.get_current_tokens(pool))

    async def reserve_of(self, pool: str, asset: str) -> Bfp:
        return to_bfp(await self.reader.get_reserve(pool, asset))

    async def weight_of(self, pool: str, asset: str) -> Bfp:
        return to_bfp(await self.reader.get_weight(pool, asset))

    async def total_weight(self, pool: str) -> Bfp:
        return to_bfp(await self.reader.get_total_weight(pool))

    async def share_supply(self, pool: str) -> Bfp:
        return to_bfp(await self.reader.get_share_supply(pool))

    async def swap_fee(self, pool: str) -> Bfp:
        return to_bfp(await self.reader.get_swap_fee(pool))

    async def share_balance(self, holder: str, pool: str) -> Bfp:
        return to_bfp(await self.reader.get_share_balance(holder, pool))

    async def other_asset(self, pool: str, asset: str | None) -> str:
        """Return the constituent of a two-asset pool that is not `asset`.

        Raises:
            ConfigurationError: If asset is unset
            InvalidQuote: If the pool does not hold exactly `asset` plus one other
        """
        if asset is None:
            raise ConfigurationError("Quote asset address is not configured")

        tokens = await self.tokens_of(pool)
        others = [token for token in tokens if not same_address(token, asset)]
        if len(tokens) != 2 or len(others) != 1:
            logger.debug("pool_composition_unexpected", pool=pool, asset=asset, tokens=tokens)
            raise InvalidQuote(f"Pool {pool} does not pair {asset} with exactly one other asset")
        return others[0]

    async def swap_snapshot(self, pool: str, asset_in: str, asset_out: str) -> SwapSnapshot:
        """Read everything a swap quote between asset_in and asset_out needs."""
        if same_address(asset_in, asset_out):
            raise InvalidQuote(f"Cannot swap {asset_in} for itself")
        return SwapSnapshot(
            pool=pool,
            asset_in=asset_in,
            asset_out=asset_out,
            balance_in=await self.reserve_of(pool, asset_in),
            weight_in=await self.weight_of(pool, asset_in),
            balance_out=await self.reserve_of(pool, asset_out),
            weight_out=await self.weight_of(pool, asset_out),
            fee=await self.swap_fee(pool),
        )

    async def liquidity_snapshot(self, pool: str, asset: str) -> LiquiditySnapshot:
        """Read everything a single-asset join/exit quote for `asset` needs."""
        return LiquiditySnapshot(
            pool=pool,
            asset=asset,
            balance=await self.reserve_of(pool, asset),
            weight=await self.weight_of(pool, asset),
            pool_supply=await self.share_supply(pool),
            total_weight=await self.total_weight(pool),
            fee=await self.swap_fee(pool),
        )
