"""Tests for the read-only integrity report."""

import pytest

from value_ledger.core.enums import IssueSeverity
from value_ledger.domain.integrity import (
    build_integrity_report,
    check_members,
    check_tokens,
)


def _types(issues):
    return sorted(issue.type for issue in issues)


@pytest.mark.unit
class TestCheckMembers:
    def test_clean_roster(self):
        members = [
            {"id": 1, "folder_id": 1, "name": "Ana", "email": "ana@example.com"},
            {"id": 2, "folder_id": 1, "name": "Ben", "email": None},
        ]
        assert check_members(members) == []

    def test_empty_name_is_an_error(self):
        issues = check_members([{"id": 1, "folder_id": 1, "name": "  ", "email": None}])
        assert _types(issues) == ["empty_member_name"]
        assert issues[0].severity == IssueSeverity.ERROR
        assert issues[0].member_id == 1

    def test_invalid_email_is_a_warning(self):
        issues = check_members([{"id": 1, "folder_id": 1, "name": "Ana", "email": "ana.example.com"}])
        assert _types(issues) == ["invalid_member_email"]
        assert issues[0].severity == IssueSeverity.WARNING

    def test_duplicate_names_per_folder(self):
        members = [
            {"id": 1, "folder_id": 1, "name": "Ana", "email": None},
            {"id": 2, "folder_id": 1, "name": "Ana ", "email": None},
            {"id": 3, "folder_id": 2, "name": "Ana", "email": None},
        ]
        issues = check_members(members)
        assert _types(issues) == ["duplicate_member_name"]
        assert "Folder 1" in issues[0].description


@pytest.mark.unit
class TestCheckTokens:
    def test_invalid_id(self):
        issues = check_tokens([{"id": "abc", "receiver_name": "Ana"}])
        assert _types(issues) == ["invalid_token_id"]

    def test_empty_receiver_name_with_email(self):
        issues = check_tokens([{"id": 1, "receiver_name": "", "receiver_email": "a@b.c"}])
        assert _types(issues) == ["empty_receiver_name"]

    def test_no_receiver_info(self):
        issues = check_tokens([{"id": 1, "receiver_name": "", "receiver_email": None}])
        assert _types(issues) == ["empty_receiver_name", "no_receiver_info"]
        assert all(issue.severity == IssueSeverity.ERROR for issue in issues)

    def test_valid_token(self):
        assert check_tokens([{"id": 1, "receiver_name": "Ana"}]) == []


@pytest.mark.unit
class TestBuildIntegrityReport:
    def test_totals_and_health(self):
        tokens = [
            {"id": 1, "receiver_name": "Ana", "status": "pending"},
            {"id": 2, "receiver_name": "Ben", "status": "accepted"},
            {"id": 3, "receiver_name": "Ben", "status": "accepted"},
        ]
        members = [{"id": 1, "folder_id": 1, "name": "Ana", "email": None}]
        report = build_integrity_report(tokens, members)

        assert report.is_healthy
        assert report.totals == {"members": 1, "tokens": 3, "pending": 1, "accepted": 2}

    def test_errors_and_warnings_are_split(self):
        tokens = [{"id": 0, "receiver_name": "Ana", "status": "pending"}]
        members = [{"id": 1, "folder_id": 1, "name": "Ana", "email": "nope"}]
        report = build_integrity_report(tokens, members)

        assert not report.is_healthy
        assert _types(report.errors) == ["invalid_token_id"]
        assert _types(report.warnings) == ["invalid_member_email"]
