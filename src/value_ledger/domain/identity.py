"""
Pure identity resolution for value tokens.

A token's sender is hard-linked by ``from_user_id`` but its recipient is only
described (``receiver_email``, ``to_user_id``, ``receiver_name``) because the
sender may target a roster member who has not claimed an account yet. These
functions decide at read time whether a token belongs to an identity.

Recipient signals are evaluated in a fixed priority order:

1. EMAIL          - receiver_email equals the identity's email
2. USER_ID        - to_user_id equals the identity's id
3. LINKED_MEMBER  - receiver_name is the name of a roster member linked to
                    the identity within the viewed batch
4. NAME           - receiver_name equals one of the identity's own labels

Free-text names are not unique across a batch, so the name signals are only
consulted once the stronger signals have failed.
"""

import math
from enum import Enum
from typing import Any, Callable, FrozenSet, Iterable, Optional, Set, Tuple

from .records import Identity, field_of


class MatchSignal(str, Enum):
    """The signal that resolved a token recipient to an identity."""

    EMAIL = "email"
    USER_ID = "user_id"
    LINKED_MEMBER = "linked_member"
    NAME = "name"


def _normalize(value: Any) -> str:
    """Lower-case and trim a label; non-strings normalize to an empty string."""
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def is_valid_token(token: Any) -> bool:
    """Return True when the token carries a finite positive numeric id."""
    token_id = field_of(token, "id")
    if isinstance(token_id, bool) or not isinstance(token_id, (int, float)):
        return False
    return math.isfinite(token_id) and token_id > 0


def identity_labels(identity: Identity) -> FrozenSet[str]:
    """Normalized name-derived strings an identity may be addressed by."""
    labels = {
        _normalize(identity.first_name),
        _normalize(identity.email),
        _normalize(identity.id),
        _normalize(identity.full_name),
    }
    labels.discard("")
    return frozenset(labels)


def linked_member_names(
    identity: Identity,
    roster: Iterable[Any],
    batch_id: Optional[int] = None,
) -> Set[str]:
    """
    Names of roster members that belong to ``identity``.

    A member belongs to the identity when it shares the identity's email or
    has been claimed by the identity's account. Only members of ``batch_id``
    are considered so that a name never matches across batches; when
    ``batch_id`` is None the roster is assumed to be pre-filtered.
    """
    email = _normalize(identity.email)
    names: Set[str] = set()

    for member in roster:
        if batch_id is not None and field_of(member, "folder_id") != batch_id:
            continue

        member_email = _normalize(field_of(member, "email"))
        member_user_id = field_of(member, "user_id")
        shares_email = bool(email) and member_email == email
        claimed = bool(member_user_id) and member_user_id == identity.id

        if shares_email or claimed:
            name = _normalize(field_of(member, "name"))
            if name:
                names.add(name)

    return names


def _matches_email(token: Any, identity: Identity, linked: Set[str]) -> bool:
    receiver_email = _normalize(field_of(token, "receiver_email"))
    return bool(receiver_email) and receiver_email == _normalize(identity.email)


def _matches_user_id(token: Any, identity: Identity, linked: Set[str]) -> bool:
    to_user_id = field_of(token, "to_user_id")
    return to_user_id is not None and to_user_id == identity.id


def _matches_linked_member(token: Any, identity: Identity, linked: Set[str]) -> bool:
    receiver_name = _normalize(field_of(token, "receiver_name"))
    return bool(receiver_name) and receiver_name in linked


def _matches_name(token: Any, identity: Identity, linked: Set[str]) -> bool:
    receiver_name = _normalize(field_of(token, "receiver_name"))
    return bool(receiver_name) and receiver_name in identity_labels(identity)


RecipientStrategy = Callable[[Any, Identity, Set[str]], bool]

RECIPIENT_STRATEGIES: Tuple[Tuple[MatchSignal, RecipientStrategy], ...] = (
    (MatchSignal.EMAIL, _matches_email),
    (MatchSignal.USER_ID, _matches_user_id),
    (MatchSignal.LINKED_MEMBER, _matches_linked_member),
    (MatchSignal.NAME, _matches_name),
)


def recipient_signal(
    token: Any,
    identity: Identity,
    linked_names: Optional[Iterable[str]] = None,
) -> Optional[MatchSignal]:
    """
    Resolve which signal, if any, makes ``identity`` the token's recipient.

    Args:
        token: Token row, TokenRecord or mapping
        identity: The identity being resolved
        linked_names: Names of roster members linked to the identity in the
                      viewed batch (see ``linked_member_names``)

    Returns:
        The highest-priority matching signal, or None. Invalid tokens never
        match.
    """
    if not is_valid_token(token):
        return None

    linked = {_normalize(name) for name in (linked_names or ())}
    for signal, strategy in RECIPIENT_STRATEGIES:
        if strategy(token, identity, linked):
            return signal
    return None


def is_recipient(
    token: Any,
    identity: Identity,
    linked_names: Optional[Iterable[str]] = None,
) -> bool:
    """Return True when the token was sent to ``identity``."""
    return recipient_signal(token, identity, linked_names) is not None


def is_sender(token: Any, identity: Identity) -> bool:
    """
    Return True when the token was sent by ``identity``.

    ``sender_name`` is denormalized at creation and never re-synced, so the
    name fallback is weaker than the ``from_user_id`` link.
    """
    if not is_valid_token(token):
        return False

    from_user_id = field_of(token, "from_user_id")
    if from_user_id is not None and from_user_id == identity.id:
        return True

    sender_name = _normalize(field_of(token, "sender_name"))
    return bool(sender_name) and sender_name in identity_labels(identity)
