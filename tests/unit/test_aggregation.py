"""Tests for stats, levels, leaderboard and recent activity."""

from datetime import datetime, timedelta, timezone

import pytest

from value_ledger.domain.aggregation import (
    LeaderboardEntry,
    TokenStats,
    compute_leaderboard,
    compute_level,
    compute_stats,
    parse_timestamp,
    partial_fold,
    recent_activity,
    start_of_week,
)
from value_ledger.domain.errors import AggregationFault
from value_ledger.domain.records import Identity, MemberRecord

# Wednesday
NOW = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)

ANA = Identity(id="user-ana", email="ana@example.com", first_name="Ana", last_name="Silva")


def _token(token_id, **fields):
    values = {
        "id": token_id,
        "from_user_id": "user-ben",
        "to_user_id": "Ana",
        "sender_name": "Ben",
        "receiver_name": "Ana",
        "receiver_email": None,
        "amount": 10_000,
        "status": "pending",
        "created_at": NOW - timedelta(hours=1),
    }
    values.update(fields)
    return values


@pytest.mark.unit
class TestComputeLevel:
    def test_one_and_a_half_million(self):
        level = compute_level(1_500_000)
        assert level.level == 2
        assert level.progress_percent == 50.0
        assert level.remaining == 500_000

    def test_zero(self):
        level = compute_level(0)
        assert (level.level, level.progress_percent, level.remaining) == (1, 0.0, 1_000_000)

    def test_exact_boundary(self):
        level = compute_level(2_000_000)
        assert level.level == 3
        assert level.progress_percent == 0.0
        assert level.remaining == 1_000_000

    def test_custom_unit(self):
        assert compute_level(250, unit=100).level == 3

    def test_invalid_unit(self):
        with pytest.raises(ValueError):
            compute_level(10, unit=0)


@pytest.mark.unit
class TestTimeHelpers:
    def test_week_starts_on_sunday(self):
        assert start_of_week(NOW) == datetime(2024, 5, 12, tzinfo=timezone.utc)

    def test_sunday_is_its_own_week_start(self):
        sunday = datetime(2024, 5, 12, 18, 30, tzinfo=timezone.utc)
        assert start_of_week(sunday) == datetime(2024, 5, 12, tzinfo=timezone.utc)

    def test_parse_timestamp_variants(self):
        assert parse_timestamp("2024-05-15T10:00:00Z") == datetime(
            2024, 5, 15, 10, tzinfo=timezone.utc
        )
        assert parse_timestamp(datetime(2024, 5, 15, 10)).tzinfo == timezone.utc
        assert parse_timestamp("not a date") is None
        assert parse_timestamp(None) is None
        assert parse_timestamp(12345) is None


@pytest.mark.unit
class TestPartialFold:
    def test_collects_values_and_faults(self):
        def transform(item):
            if item == "bad":
                raise AggregationFault("bad item", token_id=item)
            if item == "boom":
                raise KeyError("missing")
            return None if item == "skip" else item.upper()

        result = partial_fold(["a", "bad", "skip", "boom", "b"], transform, metric="test")

        assert result.values == ["A", "B"]
        assert [fault.metric for fault in result.faults] == ["test", "test"]
        assert result.faults[0].token_id == "bad"


@pytest.mark.unit
class TestComputeStats:
    def test_pending_and_accepted_are_disjoint(self):
        tokens = [
            _token(1, status="accepted", amount=30_000),
            _token(2, status="pending", amount=20_000),
        ]
        stats = compute_stats(tokens, ANA, now=NOW)

        assert stats.cumulative == 30_000
        assert stats.received == 30_000
        assert stats.pending == 20_000
        assert stats.pending_count == 1
        assert stats.accepted_count == 1

    def test_kim_pending_by_user_id(self):
        identity = Identity(id="u1")
        tokens = [
            {
                "id": 5,
                "receiver_name": "Kim",
                "receiver_email": None,
                "to_user_id": "u1",
                "amount": 30_000,
                "status": "pending",
                "sender_name": "Lee",
                "from_user_id": "u2",
            }
        ]
        stats = compute_stats(tokens, identity, now=NOW)

        assert stats.pending == 30_000
        assert stats.pending_count == 1
        assert stats.cumulative == 0
        assert stats.latest_pending_sender == "Lee"

    def test_invalid_id_is_excluded(self):
        tokens = [_token("abc", status="accepted", amount=99_000), _token(2, status="accepted")]
        stats = compute_stats(tokens, ANA, now=NOW)
        assert stats.cumulative == 10_000

    def test_today_and_this_week_buckets(self):
        tokens = [
            _token(1, status="accepted", amount=1, created_at=NOW - timedelta(hours=2)),
            _token(2, status="accepted", amount=10, created_at=NOW - timedelta(days=2)),
            _token(3, status="accepted", amount=100, created_at=NOW - timedelta(days=10)),
            _token(4, status="accepted", amount=1000, created_at=None),
        ]
        stats = compute_stats(tokens, ANA, now=NOW)

        assert stats.today == 1
        assert stats.this_week == 11
        assert stats.cumulative == 1111

    def test_given_counts_sent_tokens(self):
        tokens = [
            _token(1, from_user_id="user-ana", receiver_name="Ben", amount=5_000),
            _token(2, from_user_id="x", sender_name="Ana", receiver_name="Kim", amount=7_000),
            _token(3, from_user_id="user-ben", receiver_name="Ana"),
        ]
        stats = compute_stats(tokens, ANA, now=NOW)

        assert stats.given == 12_000
        assert stats.given_count == 2

    def test_linked_member_name_counts_in_batch_only(self):
        roster = [
            MemberRecord(id=1, folder_id=3, name="Annie", email="ana@example.com"),
        ]
        tokens = [_token(1, receiver_name="Annie", status="accepted", batch_id=3)]

        assert compute_stats(tokens, ANA, roster, batch_id=3, now=NOW).cumulative == 10_000
        assert compute_stats(tokens, ANA, roster, batch_id=4, now=NOW).cumulative == 0

    def test_latest_pending_sender_is_newest(self):
        tokens = [
            _token(1, sender_name="Old", created_at=NOW - timedelta(days=3)),
            _token(2, sender_name="Undated", created_at=None),
            _token(3, sender_name="Newest", created_at=NOW - timedelta(minutes=5)),
            _token(4, sender_name="Middle", created_at=NOW - timedelta(days=1)),
        ]
        assert compute_stats(tokens, ANA, now=NOW).latest_pending_sender == "Newest"

    def test_undated_pending_sender_when_nothing_is_dated(self):
        tokens = [
            _token(1, sender_name="First", created_at=None),
            _token(2, sender_name="Second", created_at="garbage"),
        ]
        assert compute_stats(tokens, ANA, now=NOW).latest_pending_sender == "First"

    def test_malformed_amount_is_skipped(self):
        tokens = [
            _token(1, status="accepted", amount="lots"),
            _token(2, status="accepted", amount=10_000),
        ]
        stats = compute_stats(tokens, ANA, now=NOW)

        assert stats.cumulative == 10_000
        assert stats.skipped == 1

    def test_level_uses_cumulative(self):
        tokens = [_token(1, status="accepted", amount=1_500_000)]
        level = compute_stats(tokens, ANA, now=NOW).level
        assert (level.level, level.progress_percent, level.remaining) == (2, 50.0, 500_000)

    def test_never_raises(self):
        assert compute_stats(None, ANA, now=NOW) == TokenStats()


@pytest.mark.unit
class TestLeaderboard:
    def test_sums_any_status_per_receiver(self):
        tokens = [
            _token(1, receiver_name="Ana", amount=10_000, status="pending"),
            _token(2, receiver_name="Ben", amount=30_000, status="accepted"),
            _token(3, receiver_name="Ana", amount=25_000, status="accepted"),
        ]
        board = compute_leaderboard(tokens)

        assert board == [
            LeaderboardEntry(rank=1, name="Ana", total=35_000, token_count=2),
            LeaderboardEntry(rank=2, name="Ben", total=30_000, token_count=1),
        ]

    def test_ties_keep_encounter_order(self):
        tokens = [
            _token(1, receiver_name="Zed", amount=5),
            _token(2, receiver_name="Amy", amount=5),
        ]
        assert [entry.name for entry in compute_leaderboard(tokens)] == ["Zed", "Amy"]

    def test_limit(self):
        tokens = [_token(i, receiver_name=f"P{i}", amount=i) for i in range(1, 12)]
        board = compute_leaderboard(tokens)
        assert len(board) == 8
        assert board[0].name == "P11"
        assert len(compute_leaderboard(tokens, limit=3)) == 3

    def test_invalid_tokens_are_excluded(self):
        tokens = [_token("abc", receiver_name="Ghost", amount=1_000_000), _token(1)]
        assert [entry.name for entry in compute_leaderboard(tokens)] == ["Ana"]

    def test_malformed_receiver_is_skipped(self):
        tokens = [_token(1, receiver_name=None), _token(2, receiver_name="Ana")]
        assert compute_leaderboard(tokens) == [
            LeaderboardEntry(rank=1, name="Ana", total=10_000, token_count=1)
        ]

    def test_never_raises(self):
        assert compute_leaderboard(None) == []


@pytest.mark.unit
class TestRecentActivity:
    def test_newest_first_and_limited(self):
        tokens = [
            _token(i, created_at=NOW - timedelta(hours=i)) for i in range(1, 8)
        ]
        recent = recent_activity(tokens)
        assert [token["id"] for token in recent] == [1, 2, 3, 4, 5]

    def test_undated_and_invalid_are_excluded(self):
        tokens = [
            _token(1, created_at=None),
            _token("x", created_at=NOW),
            _token(2, created_at="2024-05-15T09:00:00Z"),
        ]
        assert [token["id"] for token in recent_activity(tokens)] == [2]
