"""Typed failures raised by the value ledger.

Ledger-level errors propagate to callers and are rendered as RFC 9457
problem details by the API layer. ``AggregationFault`` is the exception
for a single token that could not be folded into a derived view; it is
collected and logged, never propagated out of the aggregation engine.
"""

from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base exception for value ledger operations."""

    status_code: int = 500
    title: str = "Ledger Error"

    def __init__(self, detail: str, **extra_fields: Any):
        super().__init__(detail)
        self.detail = detail
        self.extra_fields: Dict[str, Any] = extra_fields


class ValidationError(LedgerError):
    """Input rejected before it reached the ledger."""

    status_code = 400
    title = "Validation Error"


class NotFoundError(LedgerError):
    """Referenced token or member does not exist."""

    status_code = 404
    title = "Not Found"


class ForbiddenError(LedgerError):
    """The requesting identity is not allowed to perform the operation."""

    status_code = 403
    title = "Forbidden"


class ConflictError(LedgerError):
    """The operation conflicts with the current state of a record."""

    status_code = 409
    title = "Conflict"


class RepositoryError(LedgerError):
    """The backing store failed to complete an operation."""

    status_code = 500
    title = "Storage Error"


class RenameCascadeError(LedgerError):
    """Receiver names could not be repaired after a member rename."""

    status_code = 503
    title = "Rename Cascade Incomplete"


class AggregationFault(Exception):
    """A single token could not contribute to a derived view."""

    def __init__(
        self,
        message: str,
        token_id: Optional[Any] = None,
        metric: Optional[str] = None,
    ):
        super().__init__(message)
        self.token_id = token_id
        self.metric = metric

    def __repr__(self) -> str:
        return f"<AggregationFault(token_id={self.token_id!r}, metric={self.metric!r}, message='{self}')>"
