"""Bounded-supply token dispenser eligibility."""

from .policy import (
    DispenserActions,
    DispenserPolicy,
    DispenserStatus,
    DispenserStatusReader,
    TokenBalanceReader,
    is_dispensable,
)

__all__ = [
    "DispenserActions",
    "DispenserPolicy",
    "DispenserStatus",
    "DispenserStatusReader",
    "TokenBalanceReader",
    "is_dispensable",
]
