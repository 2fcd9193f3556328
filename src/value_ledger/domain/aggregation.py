"""
Aggregation engine for derived token views.

Stats, levels and the leaderboard are folds over the full token list and
are recomputed on every read; nothing here is cached or persisted. The
engine performs no I/O.

Malformed records must not break a live dashboard: each token is pushed
through fallible per-item transforms and ``partial_fold`` collects the
successes while logging the failures as ``AggregationFault``. The public
entry points never raise.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Generic, Iterable, List, Optional, Sequence, TypeVar

from ..core.enums import TokenStatus
from ..utils.logging_config import get_logger
from .errors import AggregationFault
from .identity import is_recipient, is_sender, is_valid_token, linked_member_names
from .records import Identity, field_of

logger = get_logger("aggregation")

DEFAULT_LEVEL_UNIT = 1_000_000
DEFAULT_LEADERBOARD_SIZE = 8
DEFAULT_RECENT_ACTIVITY_SIZE = 5

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class FoldResult(Generic[R]):
    """Successful transform outputs plus the faults that were skipped."""

    values: List[R] = field(default_factory=list)
    faults: List[AggregationFault] = field(default_factory=list)


def partial_fold(
    items: Iterable[T],
    transform: Callable[[T], Optional[R]],
    metric: str,
) -> FoldResult[R]:
    """
    Apply ``transform`` to every item, collecting successes and failures.

    A transform returning None contributes nothing. Any exception becomes an
    ``AggregationFault`` tagged with ``metric`` and is logged at WARNING.
    """
    values: List[R] = []
    faults: List[AggregationFault] = []

    for item in items:
        try:
            value = transform(item)
        except AggregationFault as fault:
            fault.metric = fault.metric or metric
            faults.append(fault)
            continue
        except Exception as exc:
            faults.append(
                AggregationFault(
                    f"{type(exc).__name__}: {exc}",
                    token_id=field_of(item, "id"),
                    metric=metric,
                )
            )
            continue
        if value is not None:
            values.append(value)

    for fault in faults:
        logger.warning(
            f"Skipped token {fault.token_id!r} while computing {fault.metric}: {fault}"
        )

    return FoldResult(values=values, faults=faults)


@dataclass(frozen=True)
class LevelProgress:
    """Level derived from a cumulative accepted amount."""

    level: int = 1
    progress_percent: float = 0.0
    remaining: int = DEFAULT_LEVEL_UNIT


@dataclass(frozen=True)
class TokenStats:
    """Per-identity statistics snapshot."""

    received: int = 0
    pending: int = 0
    pending_count: int = 0
    accepted_count: int = 0
    given: int = 0
    given_count: int = 0
    cumulative: int = 0
    today: int = 0
    this_week: int = 0
    latest_pending_sender: Optional[str] = None
    level: LevelProgress = field(default_factory=LevelProgress)
    skipped: int = 0


@dataclass(frozen=True)
class LeaderboardEntry:
    """One ranked receiver on the leaderboard."""

    rank: int
    name: str
    total: int
    token_count: int


@dataclass(frozen=True)
class _RecipientShare:
    pending: int = 0
    pending_count: int = 0
    accepted: int = 0
    accepted_count: int = 0
    today: int = 0
    this_week: int = 0
    pending_sender: Optional[str] = None
    pending_at: Optional[datetime] = None


def compute_level(cumulative: int, unit: int = DEFAULT_LEVEL_UNIT) -> LevelProgress:
    """
    Derive level and progress from a cumulative amount.

    ``level = cumulative // unit + 1``; progress is the share of the current
    level already earned and ``remaining`` is what is left to the next one.
    """
    if unit <= 0:
        raise ValueError("level unit must be positive")
    cumulative = max(0, int(cumulative))
    level = cumulative // unit + 1
    return LevelProgress(
        level=level,
        progress_percent=(cumulative % unit) / unit * 100,
        remaining=level * unit - cumulative,
    )


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a creation timestamp into an aware UTC datetime.

    Naive datetimes (as returned by SQLite) are treated as UTC. Returns None
    for anything that does not parse.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(now: datetime) -> datetime:
    """Start of the calendar week containing ``now``; weeks start on Sunday."""
    days_since_sunday = (now.weekday() + 1) % 7
    return start_of_day(now) - timedelta(days=days_since_sunday)


def _amount(token: Any) -> int:
    amount = field_of(token, "amount")
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise AggregationFault(
            f"amount is not numeric: {amount!r}", token_id=field_of(token, "id")
        )
    return int(amount)


def _label(token: Any, name: str) -> str:
    value = field_of(token, name)
    if not isinstance(value, str):
        raise AggregationFault(
            f"{name} is not a string: {value!r}", token_id=field_of(token, "id")
        )
    return value.strip()


def _recipient_share(
    token: Any,
    identity: Identity,
    linked: Iterable[str],
    day_start: datetime,
    week_start: datetime,
) -> Optional[_RecipientShare]:
    if not is_recipient(token, identity, linked):
        return None

    amount = _amount(token)
    status = field_of(token, "status")
    created_at = parse_timestamp(field_of(token, "created_at"))

    if status == TokenStatus.PENDING.value:
        sender_name = field_of(token, "sender_name")
        return _RecipientShare(
            pending=amount,
            pending_count=1,
            pending_sender=sender_name.strip() if isinstance(sender_name, str) else None,
            pending_at=created_at,
        )

    if status == TokenStatus.ACCEPTED.value:
        share = _RecipientShare(accepted=amount, accepted_count=1)
        if created_at is not None:
            share = replace(
                share,
                today=amount if created_at >= day_start else 0,
                this_week=amount if created_at >= week_start else 0,
            )
        return share

    return None


def _latest_pending_sender(shares: Sequence[_RecipientShare]) -> Optional[str]:
    """
    Sender of the most recently created pending token.

    Timestamped tokens win over undated ones; among undated tokens the first
    one encountered wins.
    """
    latest: Optional[_RecipientShare] = None
    for share in shares:
        if not share.pending_count:
            continue
        if latest is None:
            latest = share
        elif share.pending_at is not None and (
            latest.pending_at is None or share.pending_at > latest.pending_at
        ):
            latest = share
    return latest.pending_sender if latest else None


def compute_stats(
    tokens: Iterable[Any],
    identity: Identity,
    roster: Iterable[Any] = (),
    *,
    batch_id: Optional[int] = None,
    now: Optional[datetime] = None,
    level_unit: int = DEFAULT_LEVEL_UNIT,
) -> TokenStats:
    """
    Compute the statistics snapshot for ``identity``.

    Args:
        tokens: The ledger's tokens (any order)
        identity: The requesting identity
        roster: Batch members; only those of ``batch_id`` link names
        batch_id: The batch being viewed
        now: Reference time for the today / this-week buckets
        level_unit: Cumulative amount per level

    Returns:
        TokenStats; a zeroed snapshot if the computation itself fails
    """
    try:
        valid = [token for token in tokens if is_valid_token(token)]
        linked = linked_member_names(identity, roster, batch_id)

        reference = parse_timestamp(now) or datetime.now(timezone.utc)
        day_start = start_of_day(reference)
        week_start = start_of_week(reference)

        received = partial_fold(
            valid,
            lambda token: _recipient_share(token, identity, linked, day_start, week_start),
            metric="received",
        )
        given = partial_fold(
            valid,
            lambda token: _amount(token) if is_sender(token, identity) else None,
            metric="given",
        )

        cumulative = sum(share.accepted for share in received.values)
        return TokenStats(
            received=cumulative,
            pending=sum(share.pending for share in received.values),
            pending_count=sum(share.pending_count for share in received.values),
            accepted_count=sum(share.accepted_count for share in received.values),
            given=sum(given.values),
            given_count=len(given.values),
            cumulative=cumulative,
            today=sum(share.today for share in received.values),
            this_week=sum(share.this_week for share in received.values),
            latest_pending_sender=_latest_pending_sender(received.values),
            level=compute_level(cumulative, level_unit),
            skipped=len(received.faults) + len(given.faults),
        )
    except Exception as exc:
        logger.error(
            f"Stats computation failed for identity {identity.id!r}: "
            f"{type(exc).__name__}: {exc}",
            exc_info=exc,
        )
        return TokenStats()


def compute_leaderboard(
    tokens: Iterable[Any],
    limit: int = DEFAULT_LEADERBOARD_SIZE,
) -> List[LeaderboardEntry]:
    """
    Rank receivers by the total amount they were sent.

    Pending and accepted tokens both count: the leaderboard rewards being
    recognized, not confirmed receipt. Ties keep encounter order.
    """
    try:
        valid = [token for token in tokens if is_valid_token(token)]
        folded = partial_fold(
            valid,
            lambda token: (_label(token, "receiver_name"), _amount(token)),
            metric="leaderboard",
        )

        totals: dict = {}
        counts: dict = {}
        for name, amount in folded.values:
            if not name:
                continue
            totals[name] = totals.get(name, 0) + amount
            counts[name] = counts.get(name, 0) + 1

        # sorted() is stable, so equal totals stay in first-seen order
        ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
        return [
            LeaderboardEntry(rank=index + 1, name=name, total=total, token_count=counts[name])
            for index, (name, total) in enumerate(ranked[: max(0, limit)])
        ]
    except Exception as exc:
        logger.error(
            f"Leaderboard computation failed: {type(exc).__name__}: {exc}", exc_info=exc
        )
        return []


def recent_activity(
    tokens: Iterable[Any],
    limit: int = DEFAULT_RECENT_ACTIVITY_SIZE,
) -> List[Any]:
    """The newest valid, dated tokens, newest first."""
    try:
        folded = partial_fold(
            (token for token in tokens if is_valid_token(token)),
            lambda token: (parse_timestamp(field_of(token, "created_at")), token),
            metric="recent_activity",
        )
        dated = [(created_at, token) for created_at, token in folded.values if created_at]
        dated.sort(key=lambda item: item[0], reverse=True)
        return [token for _, token in dated[: max(0, limit)]]
    except Exception as exc:
        logger.error(
            f"Recent activity computation failed: {type(exc).__name__}: {exc}", exc_info=exc
        )
        return []
