"""Test helpers module for shared test utilities.

- constants: Pool, token and account addresses
- fakes: In-memory ledger standing in for every collaborator
"""

from tests.helpers.constants import ACCOUNT, DT, OCEAN, POOL, THIRD
from tests.helpers.fakes import FakeLedger, FakePool

__all__ = [
    # Constants
    "POOL",
    "OCEAN",
    "DT",
    "ACCOUNT",
    "THIRD",
    # Fakes
    "FakeLedger",
    "FakePool",
]
