"""Shared type definitions for pool and dispenser models.

These types are used by the quote service request models and by the
pool view when comparing asset identifiers.
"""

from decimal import Decimal
from typing import Annotated

from pydantic import Field

# Non-negative token amount in token units (e.g. "1.5")
Amount = Annotated[Decimal, Field(ge=0, description="Token amount in token units")]

# Denormalized pool weight
Weight = Annotated[Decimal, Field(gt=0, description="Denormalized token weight")]

# Swap fee as a fraction (0.003 for 0.3%)
Fee = Annotated[Decimal, Field(ge=0, lt=1, description="Swap fee as a fraction")]


def normalize_address(address: str) -> str:
    """Normalize a ledger address to lowercase with a 0x prefix.

    This does NOT check that the input is a well-formed address; identifiers
    used by test ledgers ("ocean", "dt") pass through lowercased.
    """
    addr = address.lower()
    if len(addr) == 40 and not addr.startswith("0x"):
        addr = "0x" + addr
    return addr


def same_address(a: str | None, b: str | None) -> bool:
    """Case-insensitive address equality. None never matches."""
    if a is None or b is None:
        return False
    return normalize_address(a) == normalize_address(b)

