"""
Read-only integrity checks over the roster and the token ledger.

Historical identity mismatches are reconciled by hand; this module only
reports what an administrator should look at. It never modifies data.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..core.enums import IssueSeverity, TokenStatus
from .identity import is_valid_token
from .records import field_of


@dataclass(frozen=True)
class IntegrityIssue:
    """A single finding of the integrity report."""

    type: str
    severity: IssueSeverity
    description: str
    member_id: Optional[int] = None
    token_id: Optional[Any] = None


@dataclass(frozen=True)
class IntegrityReport:
    """All findings plus ledger totals."""

    issues: List[IntegrityIssue] = field(default_factory=list)
    totals: Dict[str, int] = field(default_factory=dict)

    @property
    def errors(self) -> List[IntegrityIssue]:
        return [issue for issue in self.issues if issue.severity == IssueSeverity.ERROR]

    @property
    def warnings(self) -> List[IntegrityIssue]:
        return [issue for issue in self.issues if issue.severity == IssueSeverity.WARNING]

    @property
    def is_healthy(self) -> bool:
        return not self.issues


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def check_members(members: Iterable[Any]) -> List[IntegrityIssue]:
    """Empty names, malformed emails and duplicate names within a folder."""
    issues: List[IntegrityIssue] = []
    names_per_folder: Counter = Counter()

    for member in members:
        member_id = field_of(member, "id")
        folder_id = field_of(member, "folder_id")
        name = field_of(member, "name")
        email = field_of(member, "email")

        if _blank(name):
            issues.append(
                IntegrityIssue(
                    type="empty_member_name",
                    severity=IssueSeverity.ERROR,
                    member_id=member_id,
                    description=f"Member {member_id} in folder {folder_id} has an empty name",
                )
            )
        else:
            names_per_folder[(folder_id, name.strip())] += 1

        if isinstance(email, str) and email.strip() and "@" not in email:
            issues.append(
                IntegrityIssue(
                    type="invalid_member_email",
                    severity=IssueSeverity.WARNING,
                    member_id=member_id,
                    description=f"Member {member_id} has an email without '@': {email!r}",
                )
            )

    for (folder_id, name), count in names_per_folder.items():
        if count > 1:
            issues.append(
                IntegrityIssue(
                    type="duplicate_member_name",
                    severity=IssueSeverity.WARNING,
                    description=f'Folder {folder_id} has {count} members named "{name}"',
                )
            )

    return issues


def check_tokens(tokens: Iterable[Any]) -> List[IntegrityIssue]:
    """Invalid ids and tokens whose recipient cannot be described."""
    issues: List[IntegrityIssue] = []

    for token in tokens:
        token_id = field_of(token, "id")

        if not is_valid_token(token):
            issues.append(
                IntegrityIssue(
                    type="invalid_token_id",
                    severity=IssueSeverity.ERROR,
                    token_id=token_id,
                    description=f"Token id {token_id!r} is not a positive number",
                )
            )
            continue

        if _blank(field_of(token, "receiver_name")):
            sender = field_of(token, "sender_name")
            issues.append(
                IntegrityIssue(
                    type="empty_receiver_name",
                    severity=IssueSeverity.ERROR,
                    token_id=token_id,
                    description=f"Token {token_id} has an empty receiver name (sender: {sender})",
                )
            )
            if _blank(field_of(token, "receiver_email")):
                issues.append(
                    IntegrityIssue(
                        type="no_receiver_info",
                        severity=IssueSeverity.ERROR,
                        token_id=token_id,
                        description=f"Token {token_id} has neither a receiver name nor an email",
                    )
                )

    return issues


def build_integrity_report(tokens: Iterable[Any], members: Iterable[Any]) -> IntegrityReport:
    """Run every check and collect ledger totals."""
    tokens = list(tokens)
    members = list(members)
    statuses = Counter(field_of(token, "status") for token in tokens)

    return IntegrityReport(
        issues=check_members(members) + check_tokens(tokens),
        totals={
            "members": len(members),
            "tokens": len(tokens),
            "pending": statuses[TokenStatus.PENDING.value],
            "accepted": statuses[TokenStatus.ACCEPTED.value],
        },
    )
