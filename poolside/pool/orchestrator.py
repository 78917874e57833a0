"""Guarded trading and liquidity operations.

Each public operation reads a fresh snapshot, quotes it, runs every guard
check locally and only then talks to the ledger: at most one spend
authorization followed by exactly one mutating action. The second call is
not issued until the first has succeeded. An authorization that succeeded
is never retried or revoked here, even if the action after it fails.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import Any

import structlog

from poolside.constants import MAX_SWAP_FEE, MAX_WEIGHT, MIN_BASE_AMOUNT, MIN_WEIGHT, TOTAL_WEIGHT
from poolside.math.fixed_point import Bfp
from poolside.models.types import same_address

from .errors import CollaboratorFailure, ConfigurationError, InvalidParameter, PoolError
from .guard import PoolGuard
from .ledger import ActionOutcome, ActionReceipt, LedgerWriter
from .scaling import from_bfp, to_bfp
from .view import ReserveLedgerView
from .weighted_math import (
    calc_in_given_out,
    calc_out_given_in,
    calc_pool_in_given_single_out,
    calc_pool_out_given_single_in,
)

logger = structlog.get_logger()


class TradingOrchestrator:
    """Buy, sell, join and exit a two-asset pool on behalf of one account.

    Args:
        view: Read access to pool state
        writer: Ledger collaborator that executes actions
        account: The caller whose assets and shares are used
        quote_asset: Address of the pool's quote asset. Buys pay with it,
            sells receive it; the other constituent is the base asset.
        guard: Safety envelope (defaults to the default policy)
    """

    def __init__(
        self,
        view: ReserveLedgerView,
        writer: LedgerWriter,
        account: str,
        quote_asset: str | None = None,
        guard: PoolGuard | None = None,
    ) -> None:
        self.view = view
        self.writer = writer
        self.account = account
        self.quote_asset = quote_asset
        self.guard = guard or PoolGuard()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require_quote_asset(self) -> str:
        if self.quote_asset is None:
            logger.debug("quote_asset_not_configured", account=self.account)
            raise ConfigurationError("Quote asset address is not configured")
        return self.quote_asset

    async def _require_constituent(self, pool: str, asset: str) -> None:
        tokens = await self.view.tokens_of(pool)
        if not any(same_address(token, asset) for token in tokens):
            raise InvalidParameter(f"Asset {asset} is not held by pool {pool}")

    async def _issue(
        self,
        action: str,
        pool: str,
        call: Callable[..., Awaitable[ActionOutcome]],
        *args: Any,
    ) -> ActionOutcome:
        """Issue one collaborator call and turn any failure into CollaboratorFailure."""
        try:
            outcome = await call(*args)
        except PoolError:
            raise
        except Exception as err:
            logger.error("collaborator_error", action=action, pool=pool, error=str(err))
            raise CollaboratorFailure(f"{action} failed", str(err)) from err

        if not outcome.success:
            logger.error(
                "collaborator_rejected", action=action, pool=pool, diagnostic=outcome.diagnostic
            )
            raise CollaboratorFailure(f"{action} rejected", outcome.diagnostic)

        logger.info("collaborator_action_succeeded", action=action, pool=pool)
        return outcome

    async def _authorize(self, asset: str, pool: str, amount: Bfp) -> None:
        await self._issue(
            "authorize_spend", pool, self.writer.authorize_spend, asset, pool, amount.value
        )

    # -------------------------------------------------------------------------
    # Swaps
    # -------------------------------------------------------------------------

    async def buy(
        self,
        pool: str,
        amount_out: Decimal,
        max_amount_in: Decimal,
        max_price: Decimal | None = None,
    ) -> ActionReceipt:
        """Buy exactly amount_out of the base asset, paying at most max_amount_in quote.

        Raises:
            ConfigurationError: No quote asset configured
            InvalidParameter: Non-positive amounts
            ReserveCeilingExceeded: amount_out or the required input crosses a ceiling
            LimitExceeded: Required input exceeds max_amount_in, or price exceeds max_price
            CollaboratorFailure: Authorization or swap rejected by the ledger
        """
        quote = self._require_quote_asset()
        out = to_bfp(amount_out)
        max_in = to_bfp(max_amount_in)
        price_limit = to_bfp(max_price) if max_price is not None else None
        self.guard.check_positive("amount_out", out)
        self.guard.check_positive("max_amount_in", max_in)

        base = await self.view.other_asset(pool, quote)
        snap = await self.view.swap_snapshot(pool, quote, base)

        self.guard.check_withdrawal(base, out, snap.balance_out)
        required_in = calc_in_given_out(
            snap.balance_in, snap.weight_in, snap.balance_out, snap.weight_out, out, snap.fee
        )
        # caller limits before the input-side reserve ceiling
        self.guard.check_max_in(required_in, max_in)
        self.guard.check_max_price(required_in, out, price_limit)
        self.guard.check_deposit(quote, required_in, snap.balance_in)

        logger.info(
            "buy_quoted",
            pool=pool,
            amount_out=str(out),
            required_in=str(required_in),
            max_amount_in=str(max_in),
        )

        await self._authorize(quote, pool, max_in)
        outcome = await self._issue(
            "swap_exact_out",
            pool,
            self.writer.swap_exact_out,
            pool,
            quote,
            max_in.value,
            base,
            out.value,
            price_limit.value if price_limit is not None else None,
        )
        return ActionReceipt(
            action="swap_exact_out",
            pool=pool,
            receipt=outcome.receipt,
            details={
                "amount_out": from_bfp(out),
                "max_amount_in": from_bfp(max_in),
                "quoted_amount_in": from_bfp(required_in),
            },
        )

    async def sell(
        self,
        pool: str,
        amount_in: Decimal,
        min_amount_out: Decimal,
        min_price: Decimal | None = None,
    ) -> ActionReceipt:
        """Sell exactly amount_in of the base asset for at least min_amount_out quote.

        Raises:
            ConfigurationError: No quote asset configured
            InvalidParameter: Non-positive amount_in or negative min_amount_out
            ReserveCeilingExceeded: amount_in or the quoted output crosses a ceiling
            LimitExceeded: Quoted output below min_amount_out, or price below min_price
            CollaboratorFailure: Authorization or swap rejected by the ledger
        """
        quote = self._require_quote_asset()
        amount = to_bfp(amount_in)
        min_out = to_bfp(min_amount_out)
        price_limit = to_bfp(min_price) if min_price is not None else None
        self.guard.check_positive("amount_in", amount)

        base = await self.view.other_asset(pool, quote)
        snap = await self.view.swap_snapshot(pool, base, quote)

        self.guard.check_deposit(base, amount, snap.balance_in)
        quoted_out = calc_out_given_in(
            snap.balance_in, snap.weight_in, snap.balance_out, snap.weight_out, amount, snap.fee
        )
        self.guard.check_withdrawal(quote, quoted_out, snap.balance_out)
        self.guard.check_min_out(quoted_out, min_out)
        self.guard.check_min_price(amount, quoted_out, price_limit)

        logger.info(
            "sell_quoted",
            pool=pool,
            amount_in=str(amount),
            quoted_out=str(quoted_out),
            min_amount_out=str(min_out),
        )

        await self._authorize(base, pool, amount)
        outcome = await self._issue(
            "swap_exact_in",
            pool,
            self.writer.swap_exact_in,
            pool,
            base,
            amount.value,
            quote,
            min_out.value,
            price_limit.value if price_limit is not None else None,
        )
        return ActionReceipt(
            action="swap_exact_in",
            pool=pool,
            receipt=outcome.receipt,
            details={
                "amount_in": from_bfp(amount),
                "min_amount_out": from_bfp(min_out),
                "quoted_amount_out": from_bfp(quoted_out),
            },
        )

    # -------------------------------------------------------------------------
    # Liquidity
    # -------------------------------------------------------------------------

    async def add_liquidity(
        self,
        pool: str,
        asset: str,
        amount: Decimal,
        min_shares_out: Decimal = Decimal(0),
    ) -> ActionReceipt:
        """Deposit a single asset into the pool.

        Raises:
            InvalidParameter: Non-positive amount or asset not in the pool
            ReserveCeilingExceeded: amount crosses the deposit ceiling
            LimitExceeded: Quoted shares below min_shares_out
            CollaboratorFailure: Authorization or join rejected by the ledger
        """
        deposit = to_bfp(amount)
        min_shares = to_bfp(min_shares_out)
        self.guard.check_positive("amount", deposit)
        await self._require_constituent(pool, asset)

        snap = await self.view.liquidity_snapshot(pool, asset)
        self.guard.check_deposit(asset, deposit, snap.balance)
        quoted_shares = calc_pool_out_given_single_in(
            snap.balance, snap.weight, snap.pool_supply, snap.total_weight, deposit, snap.fee
        )
        self.guard.check_min_out(quoted_shares, min_shares)

        await self._authorize(asset, pool, deposit)
        outcome = await self._issue(
            "join_single_asset",
            pool,
            self.writer.join_single_asset,
            pool,
            asset,
            deposit.value,
            min_shares.value,
        )
        return ActionReceipt(
            action="join_single_asset",
            pool=pool,
            receipt=outcome.receipt,
            details={"amount": from_bfp(deposit), "quoted_shares_out": from_bfp(quoted_shares)},
        )

    async def remove_liquidity(
        self,
        pool: str,
        asset: str,
        amount: Decimal,
        max_shares: Decimal,
    ) -> ActionReceipt:
        """Withdraw exactly `amount` of one asset, spending at most max_shares.

        Raises:
            InvalidParameter: Non-positive amounts or asset not in the pool
            ReserveCeilingExceeded: amount crosses the withdrawal ceiling
            InsufficientShares: Share balance below max_shares, or required
                shares clearly above max_shares
            CollaboratorFailure: Exit rejected by the ledger
        """
        withdrawal = to_bfp(amount)
        share_ceiling = to_bfp(max_shares)
        self.guard.check_positive("amount", withdrawal)
        self.guard.check_positive("max_shares", share_ceiling)

        await self._require_constituent(pool, asset)

        snap = await self.view.liquidity_snapshot(pool, asset)
        self.guard.check_withdrawal(asset, withdrawal, snap.balance)

        balance = await self.view.share_balance(self.account, pool)
        self.guard.check_share_balance(balance, share_ceiling)

        required = calc_pool_in_given_single_out(
            snap.balance, snap.weight, snap.pool_supply, snap.total_weight, withdrawal, snap.fee
        )
        submitted_ceiling = self.guard.exit_share_ceiling(required, share_ceiling)

        outcome = await self._issue(
            "exit_single_asset",
            pool,
            self.writer.exit_single_asset,
            pool,
            asset,
            withdrawal.value,
            submitted_ceiling.value,
        )
        return ActionReceipt(
            action="exit_single_asset",
            pool=pool,
            receipt=outcome.receipt,
            details={
                "amount": from_bfp(withdrawal),
                "max_shares_in": from_bfp(submitted_ceiling),
                "quoted_shares_in": from_bfp(required),
            },
        )

    async def remove_all_liquidity(
        self,
        pool: str,
        share_amount: Decimal,
        min_out_a: Decimal = Decimal(0),
        min_out_b: Decimal = Decimal(0),
    ) -> ActionReceipt:
        """Redeem share_amount for both assets proportionally.

        min_out_a and min_out_b follow the pool's token order. Spending the
        holder's exact full balance is reduced by the guard's boundary factor.

        Raises:
            InvalidParameter: Non-positive share_amount
            InsufficientShares: share_amount exceeds the holder's balance
            LimitExceeded: A proportional payout is below its minimum
            CollaboratorFailure: Exit rejected by the ledger
        """
        requested = to_bfp(share_amount)
        minimums = [to_bfp(min_out_a), to_bfp(min_out_b)]
        self.guard.check_positive("share_amount", requested)

        balance = await self.view.share_balance(self.account, pool)
        shares = self.guard.full_exit_shares(requested, balance)

        tokens = await self.view.tokens_of(pool)
        if len(tokens) != 2:
            raise InvalidParameter(f"Pool {pool} holds {len(tokens)} assets, expected 2")
        supply = await self.view.share_supply(pool)
        if shares >= supply:
            raise InvalidParameter(f"Share amount {shares} must be less than supply {supply}")
        ratio = shares.div_down(supply)
        for token, minimum in zip(tokens, minimums, strict=True):
            payout = (await self.view.reserve_of(pool, token)).mul_down(ratio)
            self.guard.check_min_out(payout, minimum)

        outcome = await self._issue(
            "exit_pool",
            pool,
            self.writer.exit_pool,
            pool,
            shares.value,
            [minimum.value for minimum in minimums],
        )
        return ActionReceipt(
            action="exit_pool",
            pool=pool,
            receipt=outcome.receipt,
            details={"share_amount": from_bfp(shares)},
        )

    # -------------------------------------------------------------------------
    # Pool creation
    # -------------------------------------------------------------------------

    async def create_pool(
        self,
        base_asset: str,
        base_amount: Decimal,
        base_weight: Decimal,
        quote_amount: Decimal,
        fee: Decimal,
    ) -> ActionReceipt:
        """Create and fund a pool pairing base_asset with the quote asset.

        Weights follow the sum-to-ten convention: the quote asset gets
        10 - base_weight.

        Raises:
            ConfigurationError: No quote asset configured
            InvalidParameter: Fee above 10%, base amount below 2, base weight
                outside [1, 9] or non-positive quote amount
            CollaboratorFailure: Creation, authorization or setup rejected
        """
        quote = self._require_quote_asset()
        if fee < 0 or fee > MAX_SWAP_FEE:
            raise InvalidParameter(f"Swap fee {fee} outside [0, {MAX_SWAP_FEE}]")
        if base_amount < MIN_BASE_AMOUNT:
            raise InvalidParameter(f"Base amount {base_amount} below minimum {MIN_BASE_AMOUNT}")
        if base_weight < MIN_WEIGHT or base_weight > MAX_WEIGHT:
            raise InvalidParameter(f"Weight {base_weight} outside [{MIN_WEIGHT}, {MAX_WEIGHT}]")
        if quote_amount <= 0:
            raise InvalidParameter(f"Quote amount must be positive, got {quote_amount}")

        base_units = to_bfp(base_amount)
        quote_units = to_bfp(quote_amount)
        base_w = to_bfp(base_weight)
        quote_w = to_bfp(TOTAL_WEIGHT - base_weight)

        created = await self._issue("create_pool", "", self.writer.create_pool)
        pool = str(created.receipt)
        logger.info("pool_created", pool=pool, base_asset=base_asset, quote_asset=quote)

        await self._authorize(base_asset, pool, base_units)
        await self._authorize(quote, pool, quote_units)
        outcome = await self._issue(
            "setup_pool",
            pool,
            self.writer.setup_pool,
            pool,
            base_asset,
            base_units.value,
            base_w.value,
            quote,
            quote_units.value,
            quote_w.value,
            to_bfp(fee).value,
        )
        return ActionReceipt(
            action="setup_pool",
            pool=pool,
            receipt=outcome.receipt,
            details={
                "base_amount": base_amount,
                "base_weight": base_weight,
                "quote_amount": quote_amount,
                "fee": fee,
            },
        )
