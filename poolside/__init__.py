"""poolside - quoting and guarded orchestration for weighted two-asset pools."""

from poolside.dispenser import DispenserPolicy, DispenserStatus, is_dispensable
from poolside.pool import GuardConfig, PoolGuard, PoolQuoter, ReserveLedgerView, TradingOrchestrator

__version__ = "0.1.0"
__all__ = [
    "DispenserPolicy",
    "DispenserStatus",
    "GuardConfig",
    "PoolGuard",
    "PoolQuoter",
    "ReserveLedgerView",
    "TradingOrchestrator",
    "is_dispensable",
    "__version__",
]
