"""Enums for the value ledger application."""

from enum import Enum


class TokenStatus(str, Enum):
    """Lifecycle status of a value token."""

    PENDING = "pending"
    ACCEPTED = "accepted"


class TokenCategory(str, Enum):
    """Kinds of value a token can recognize."""

    GROWTH = "growth"
    INFLUENCE = "influence"
    EXECUTION = "execution"
    CAMARADERIE = "camaraderie"


class IssueSeverity(str, Enum):
    """Severity of a data integrity issue."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
