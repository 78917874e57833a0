"""Protocol constants for weighted pools and the dispenser.

Centralizes the pool engine's parameter bounds and the default safety
policy used by the guard.
"""

from decimal import Decimal

# Pool creation bounds (weights follow the sum-to-ten convention)
MAX_SWAP_FEE = Decimal("0.1")
MIN_BASE_AMOUNT = Decimal("2")
MIN_WEIGHT = Decimal("1")
MAX_WEIGHT = Decimal("9")
TOTAL_WEIGHT = Decimal("10")

# Reserve-fraction ceilings: maximum 1/4 of the pool reserve per operation
DEFAULT_MAX_IN_FRACTION = Decimal("0.25")
DEFAULT_MAX_OUT_FRACTION = Decimal("0.25")

# Share-spend reduction applied at exact-boundary exits
DEFAULT_BOUNDARY_FACTOR = Decimal("0.9999")

# Relative gap under which a required share amount counts as adjacent to the ceiling
DEFAULT_BOUNDARY_TOLERANCE = Decimal("1e-9")

# Token decimals assumed at the ledger boundary
DEFAULT_DECIMALS = 18

# Default amount requested from a dispenser
DEFAULT_DISPENSE_AMOUNT = Decimal("1")

# Largest raw amount the ledger accepts
UINT256_MAX = 2**256 - 1
