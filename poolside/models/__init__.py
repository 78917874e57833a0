"""Shared model types."""

from poolside.models.types import (
    Amount,
    Fee,
    Weight,
    normalize_address,
    same_address,
)

__all__ = [
    "Amount",
    "Fee",
    "Weight",
    "normalize_address",
    "same_address",
]
