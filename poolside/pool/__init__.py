"""Weighted two-asset pool client.

This package mirrors the pool engine's pricing math for quoting, checks
every state-changing request against a safety envelope, and sequences the
guarded ledger calls.

Layers (leaf first):
- weighted_math: pure pricing formulas over Bfp
- view: read-only snapshots of ledger state
- guard: reserve ceilings, caller limits, share checks
- quoter / orchestrator: pool-level quotes and guarded actions
"""

# Errors
from .errors import (
    CollaboratorFailure,
    ConfigurationError,
    DispenseRejected,
    InsufficientShares,
    InvalidParameter,
    InvalidQuote,
    LimitExceeded,
    PoolError,
    ReserveCeilingExceeded,
)

# Guard
from .guard import DEFAULT_GUARD_CONFIG, GuardConfig, PoolGuard

# Ledger contracts
from .ledger import ActionOutcome, ActionReceipt, LedgerReader, LedgerWriter

# Orchestration
from .orchestrator import TradingOrchestrator
from .quoter import PoolQuoter, TokensReceived

# Unit boundary
from .scaling import (
    add_swap_fee_amount,
    amount_to_units,
    from_bfp,
    subtract_swap_fee_amount,
    to_bfp,
    units_to_amount,
)

# Ledger view
from .view import LiquiditySnapshot, ReserveLedgerView, SwapSnapshot

# Weighted math
from .weighted_math import (
    calc_in_given_out,
    calc_out_given_in,
    calc_pool_in_given_single_out,
    calc_pool_out_given_single_in,
    calc_single_in_given_pool_out,
    calc_single_out_given_pool_in,
    calc_spot_price,
)

__all__ = [
    # Errors
    "PoolError",
    "ConfigurationError",
    "InvalidParameter",
    "LimitExceeded",
    "ReserveCeilingExceeded",
    "InsufficientShares",
    "InvalidQuote",
    "CollaboratorFailure",
    "DispenseRejected",
    # Weighted math
    "calc_out_given_in",
    "calc_in_given_out",
    "calc_pool_out_given_single_in",
    "calc_single_in_given_pool_out",
    "calc_single_out_given_pool_in",
    "calc_pool_in_given_single_out",
    "calc_spot_price",
    # Unit boundary
    "amount_to_units",
    "units_to_amount",
    "to_bfp",
    "from_bfp",
    "subtract_swap_fee_amount",
    "add_swap_fee_amount",
    # Ledger
    "ActionOutcome",
    "ActionReceipt",
    "LedgerReader",
    "LedgerWriter",
    "ReserveLedgerView",
    "SwapSnapshot",
    "LiquiditySnapshot",
    # Guard
    "GuardConfig",
    "DEFAULT_GUARD_CONFIG",
    "PoolGuard",
    # Orchestration
    "PoolQuoter",
    "TokensReceived",
    "TradingOrchestrator",
]
