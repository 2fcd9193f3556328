"""Immutable value objects the domain functions operate on.

The matcher and aggregation functions read fields through ``field_of`` so
they accept ORM rows, these dataclasses or plain mappings (e.g. a decoded
JSON payload) interchangeably.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Union


def field_of(record: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a mapping or an attribute-bearing object."""
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


@dataclass(frozen=True)
class Identity:
    """An authenticated account as provided by the identity provider."""

    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def display_name(self) -> str:
        """Best human-readable label for this identity."""
        return self.full_name or self.email or self.id


@dataclass(frozen=True)
class MemberRecord:
    """A roster entry inside one batch."""

    id: int
    folder_id: int
    name: str
    email: Optional[str] = None
    user_id: Optional[str] = None


@dataclass(frozen=True)
class TokenRecord:
    """A detached snapshot of a ledger entry.

    Field types are not enforced here: records read back from storage or
    decoded from payloads may be malformed, and the domain functions are
    responsible for rejecting them.
    """

    id: Any
    from_user_id: str
    to_user_id: str
    sender_name: str
    receiver_name: str
    amount: Any
    status: str
    category: str = "growth"
    message: str = ""
    receiver_email: Optional[str] = None
    batch_id: Optional[int] = None
    created_at: Union[datetime, str, None] = None
