"""Ledger collaborator contracts.

The ledger is the source of truth for balances and executes every
state-changing action. These protocols describe what the pool client needs
from it; implementations live outside this package (tests use fakes).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Protocol


@dataclass(frozen=True)
class ActionOutcome:
    """Result of one collaborator call.

    This dataclass provides explicit success/failure handling for ledger
    actions, avoiding silent None returns that can mask errors.

    Attributes:
        success: Whether the ledger accepted the action.
        receipt: Opaque confirmation record on success.
        diagnostic: Whatever reason the ledger gave on failure.
    """

    success: bool
    receipt: Any = None
    diagnostic: str | None = None

    @classmethod
    def ok(cls, receipt: Any) -> ActionOutcome:
        return cls(success=True, receipt=receipt)

    @classmethod
    def failed(cls, diagnostic: str) -> ActionOutcome:
        return cls(success=False, diagnostic=diagnostic)


@dataclass(frozen=True)
class ActionReceipt:
    """Successful result of an orchestrated operation.

    Attributes:
        action: Name of the mutating action that was issued.
        pool: Pool the action targeted.
        receipt: The ledger's confirmation record for that action.
        details: Amounts submitted with the action, in token units.
    """

    action: str
    pool: str
    receipt: Any
    details: dict[str, Decimal]


class LedgerReader(Protocol):
    """Read access to committed ledger state. Amounts are token units."""

    async def get_current_tokens(self, pool: str) -> list[str]: ...

    async def get_reserve(self, pool: str, asset: str) -> Decimal: ...

    async def get_weight(self, pool: str, asset: str) -> Decimal: ...

    async def get_total_weight(self, pool: str) -> Decimal: ...

    async def get_share_supply(self, pool: str) -> Decimal: ...

    async def get_swap_fee(self, pool: str) -> Decimal: ...

    async def get_share_balance(self, holder: str, pool: str) -> Decimal: ...


class LedgerWriter(Protocol):
    """Mutating ledger actions. Amounts are raw integer base units.

    Optional limits (max_price, min_price) are passed through as None when
    the caller did not set them.
    """

    async def authorize_spend(self, asset: str, spender: str, amount: int) -> ActionOutcome: ...

    async def swap_exact_out(
        self,
        pool: str,
        asset_in: str,
        max_amount_in: int,
        asset_out: str,
        amount_out: int,
        max_price: int | None,
    ) -> ActionOutcome: ...

    async def swap_exact_in(
        self,
        pool: str,
        asset_in: str,
        amount_in: int,
        asset_out: str,
        min_amount_out: int,
        min_price: int | None,
    ) -> ActionOutcome: ...

    async def join_single_asset(
        self, pool: str, asset: str, amount: int, min_shares_out: int
    ) -> ActionOutcome: ...

    async def exit_single_asset(
        self, pool: str, asset: str, amount: int, max_shares_in: int
    ) -> ActionOutcome: ...

    async def exit_pool(
        self, pool: str, share_amount: int, min_amounts_out: list[int]
    ) -> ActionOutcome: ...

    async def create_pool(self) -> ActionOutcome:
        """Deploy an empty pool; the receipt is the new pool's address."""
        ...

    async def setup_pool(
        self,
        pool: str,
        base_asset: str,
        base_amount: int,
        base_weight: int,
        quote_asset: str,
        quote_amount: int,
        quote_weight: int,
        fee: int,
    ) -> ActionOutcome: ...
