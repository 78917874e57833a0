"""Dispenser eligibility.

A dispenser hands out a token under per-request and per-recipient limits,
either from its own reservoir or by minting. The ledger re-checks the same
conditions atomically when it executes a dispense, so a positive answer
here is advisory only.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

import structlog

from poolside.constants import DEFAULT_DISPENSE_AMOUNT
from poolside.models.types import same_address
from poolside.pool.errors import (
    CollaboratorFailure,
    ConfigurationError,
    DispenseRejected,
    PoolError,
)
from poolside.pool.ledger import ActionOutcome, ActionReceipt
from poolside.pool.scaling import amount_to_units

logger = structlog.get_logger()


@dataclass(frozen=True)
class DispenserStatus:
    """Point-in-time state of one token's dispenser.

    Attributes:
        active: Whether the dispenser currently dispenses at all
        is_minter: Dispenser may mint new supply instead of drawing down `balance`
        max_tokens: Largest amount a single request may ask for
        max_balance: Recipients holding this much or more are turned away
        balance: Tokens currently held by the dispenser
        allowed_swapper: Only account allowed to request, None if anyone may
    """

    active: bool
    max_tokens: Decimal
    max_balance: Decimal
    balance: Decimal
    is_minter: bool = False
    allowed_swapper: str | None = None


def is_dispensable(
    status: DispenserStatus,
    recipient_balance: Decimal,
    amount: Decimal = DEFAULT_DISPENSE_AMOUNT,
) -> bool:
    """Whether a request for `amount` would currently be admitted.

    Conditions, in order: the dispenser is active; the recipient holds less
    than max_balance; amount does not exceed max_tokens; the reservoir
    covers amount or the dispenser can mint.
    """
    if not status.active:
        return False
    if recipient_balance >= status.max_balance:
        return False
    if amount > status.max_tokens:
        return False
    return status.balance >= amount or status.is_minter


class DispenserStatusReader(Protocol):
    async def get_dispenser_status(self, token: str) -> DispenserStatus | None: ...


class TokenBalanceReader(Protocol):
    async def get_token_balance(self, token: str, holder: str) -> Decimal: ...


class DispenserActions(Protocol):
    async def dispense(self, token: str, amount: int, destination: str) -> ActionOutcome: ...


class DispenserPolicy:
    """Reads dispenser status and recipient balances to admit requests.

    Args:
        status_reader: Source of DispenserStatus records
        balance_reader: Source of recipient token balances
        actions: Ledger collaborator that performs dispenses; only needed
            for dispense()
    """

    def __init__(
        self,
        status_reader: DispenserStatusReader,
        balance_reader: TokenBalanceReader,
        actions: DispenserActions | None = None,
    ) -> None:
        self.status_reader = status_reader
        self.balance_reader = balance_reader
        self.actions = actions

    async def status(self, token: str) -> DispenserStatus:
        status = await self.status_reader.get_dispenser_status(token)
        if status is None:
            raise ConfigurationError(f"No dispenser found for token {token}")
        return status

    async def is_dispensable(
        self,
        token: str,
        recipient: str,
        amount: Decimal = DEFAULT_DISPENSE_AMOUNT,
    ) -> bool:
        """Whether `recipient` may currently request `amount` of token.

        A dispenser restricted to an allowed_swapper admits no other account.
        """
        status = await self.status(token)
        if status.allowed_swapper is not None and not same_address(
            status.allowed_swapper, recipient
        ):
            logger.debug(
                "dispense_checked",
                token=token,
                recipient=recipient,
                allowed_swapper=status.allowed_swapper,
                admissible=False,
            )
            return False
        recipient_balance = await self.balance_reader.get_token_balance(token, recipient)
        admissible = is_dispensable(status, recipient_balance, amount)
        logger.debug(
            "dispense_checked",
            token=token,
            recipient=recipient,
            amount=str(amount),
            admissible=admissible,
        )
        return admissible

    async def dispense(
        self,
        token: str,
        recipient: str,
        amount: Decimal = DEFAULT_DISPENSE_AMOUNT,
        destination: str | None = None,
    ) -> ActionReceipt:
        """Dispense `amount` of token if the request is admissible.

        Raises:
            ConfigurationError: No dispenser for the token, or no actions collaborator
            DispenseRejected: The request is not admissible
            CollaboratorFailure: The ledger rejected the dispense
        """
        if self.actions is None:
            raise ConfigurationError("Dispenser actions collaborator is not configured")
        if not await self.is_dispensable(token, recipient, amount):
            raise DispenseRejected(f"Dispense of {amount} {token} to {recipient} is not admissible")

        target = destination or recipient
        outcome = await self._dispense(self.actions, token, amount_to_units(amount), target)
        logger.info("dispensed", token=token, destination=target, amount=str(amount))
        return ActionReceipt(
            action="dispense",
            pool=token,
            receipt=outcome.receipt,
            details={"amount": amount},
        )

    async def _dispense(
        self, actions: DispenserActions, token: str, units: int, destination: str
    ) -> ActionOutcome:
        try:
            outcome = await actions.dispense(token, units, destination)
        except PoolError:
            raise
        except Exception as err:
            logger.error("collaborator_error", action="dispense", token=token, error=str(err))
            raise CollaboratorFailure("dispense failed", str(err)) from err
        if not outcome.success:
            logger.error("collaborator_rejected", action="dispense", diagnostic=outcome.diagnostic)
            raise CollaboratorFailure("dispense rejected", outcome.diagnostic)
        return outcome
