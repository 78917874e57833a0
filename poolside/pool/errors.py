"""Pool error classes.

Every rejected operation surfaces as one of these. Local checks raise before
any collaborator call is issued; CollaboratorFailure means the single
collaborator call that was issued failed.
"""


class PoolError(Exception):
    """Base error for pool and dispenser operations."""

    kind = "pool_error"


class ConfigurationError(PoolError):
    """A required collaborator address or context is unset."""

    kind = "configuration_error"


class InvalidParameter(PoolError):
    """Caller input is outside the allowed domain."""

    kind = "invalid_parameter"


class LimitExceeded(PoolError):
    """The fresh quote violates a caller-specified limit."""

    kind = "limit_exceeded"


class ReserveCeilingExceeded(PoolError):
    """Requested amount exceeds the reserve-fraction ceiling."""

    kind = "reserve_ceiling_exceeded"


class InsufficientShares(PoolError):
    """Share balance or share ceiling is too low for the requested exit."""

    kind = "insufficient_shares"


class InvalidQuote(PoolError):
    """A pricing formula's preconditions are violated."""

    kind = "invalid_quote"


class CollaboratorFailure(PoolError):
    """The ledger rejected or failed an authorization or mutating action."""

    kind = "collaborator_failure"

    def __init__(self, message: str, diagnostic: str | None = None) -> None:
        super().__init__(message if diagnostic is None else f"{message}: {diagnostic}")
        self.diagnostic = diagnostic


class DispenseRejected(PoolError):
    """The dispenser would not admit the request."""

    kind = "dispense_rejected"
