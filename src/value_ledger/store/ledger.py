"""Token ledger: creation, the pending -> accepted transition and rename repair.

The ledger is the only writer of token rows. It validates and normalizes new
tokens, performs the single-row acceptance update and, when a roster member
is renamed, rewrites the denormalized ``receiver_name`` on every token whose
soft link resolves to that member.
"""

from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..config import ValueLedgerConfig, get_config
from ..core.enums import TokenCategory, TokenStatus
from ..db.models import Token
from ..domain.errors import (
    NotFoundError,
    RenameCascadeError,
    RepositoryError,
    ValidationError,
)
from ..repositories.interfaces import BatchMemberRepository, TokenRepository
from ..utils.logging_config import get_logger
from ..utils.retry import retry_async

logger = get_logger("ledger")


@dataclass(frozen=True)
class RenameResult:
    """Rows touched by each leg of a rename cascade."""

    member_id: int
    new_name: str
    by_member_reference: int = 0
    by_email: int = 0
    by_user_id: int = 0

    @property
    def total(self) -> int:
        return self.by_member_reference + self.by_email + self.by_user_id


def sanitize_email(value: Optional[str]) -> Optional[str]:
    """Lower-case and trim an email; anything without '@' is discarded."""
    if not isinstance(value, str):
        return None
    email = value.strip().lower()
    return email if "@" in email else None


def _validate_amount(amount) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError("Amount must be an integer", field="amount")
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero", field="amount")
    return amount


def _validate_category(category: Optional[str]) -> str:
    if category is None:
        return TokenCategory.GROWTH.value
    try:
        return TokenCategory(category).value
    except ValueError:
        allowed = ", ".join(c.value for c in TokenCategory)
        raise ValidationError(
            f"Unknown category '{category}' (expected one of: {allowed})",
            field="category",
        )


class TokenLedger:
    """Validating facade over the token and roster repositories."""

    def __init__(
        self,
        token_repo: TokenRepository,
        member_repo: BatchMemberRepository,
        config: Optional[ValueLedgerConfig] = None,
    ):
        self.tokens = token_repo
        self.members = member_repo
        self.config = config or get_config()

    async def create(
        self,
        from_user_id: str,
        receiver_name: str,
        *,
        to_user_id: Optional[str] = None,
        receiver_email: Optional[str] = None,
        sender_name: Optional[str] = None,
        amount: Optional[int] = None,
        category: Optional[str] = None,
        message: str = "",
        batch_id: Optional[int] = None,
    ) -> Token:
        """
        Record a new pending token.

        Args:
            from_user_id: Id of the sending identity
            receiver_name: Free-text recipient label, required
            to_user_id: Recipient account id or legacy member reference;
                        defaults to the trimmed receiver name
            receiver_email: Recipient email, kept only if it looks like one
            sender_name: Sender label; defaults to ``from_user_id``
            amount: Positive integer; defaults to the configured amount
            category: One of TokenCategory; defaults to growth
            message: Free-text note
            batch_id: Batch the token was sent in

        Raises:
            ValidationError: If any field is rejected
        """
        if not from_user_id:
            raise ValidationError("Sender is required", field="from_user_id")

        name = receiver_name.strip() if isinstance(receiver_name, str) else ""
        if not name:
            raise ValidationError("Receiver name is required", field="receiver_name")

        if amount is None:
            amount = self.config.app.default_token_amount
        amount = _validate_amount(amount)
        category_value = _validate_category(category)

        token = await self.tokens.create(
            from_user_id=from_user_id,
            to_user_id=(to_user_id or "").strip() or name,
            sender_name=(sender_name or "").strip() or from_user_id,
            receiver_name=name,
            receiver_email=sanitize_email(receiver_email),
            amount=amount,
            category=category_value,
            message=message or "",
            status=TokenStatus.PENDING.value,
            batch_id=batch_id,
        )
        logger.info(
            f"Token {token.id} created: {from_user_id} -> '{name}' "
            f"amount={amount} category={category_value} batch={batch_id}"
        )
        return token

    async def get(self, token_id: int) -> Token:
        """Load one token or raise NotFoundError."""
        token = await self.tokens.get_by_id(token_id)
        if token is None:
            raise NotFoundError(f"Token {token_id} not found", token_id=token_id)
        return token

    async def list_tokens(self, batch_id: Optional[int] = None) -> List[Token]:
        """All tokens, newest first."""
        return await self.tokens.list_tokens(batch_id)

    async def accept(self, token_id: int) -> Token:
        """
        Move a token to accepted.

        Accepting an already accepted token succeeds without change. No
        authorization happens here; see AcceptanceWorkflow.
        """
        token = await self.tokens.set_status(token_id, TokenStatus.ACCEPTED.value)
        if token is None:
            raise NotFoundError(f"Token {token_id} not found", token_id=token_id)
        logger.info(f"Token {token_id} accepted")
        return token

    async def rename_recipient(
        self, member_id: int, new_name: str, previous_email: Optional[str] = None
    ) -> RenameResult:
        """
        Propagate a member's new name into tokens addressed to that member.

        Three idempotent updates run in sequence, each retried with backoff:
        tokens referencing the member id, tokens carrying the member's email
        and, once the member is linked, tokens addressed to their account.
        Only tokens of the member's batch, or without a batch, are touched.
        When the email changed in the same edit, pass the old address as
        ``previous_email`` so tokens sent to it are renamed too.

        Raises:
            NotFoundError: If the member does not exist
            ValidationError: If the new name is blank
            RenameCascadeError: If an update still fails after all retries
        """
        name = new_name.strip() if isinstance(new_name, str) else ""
        if not name:
            raise ValidationError("Member name is required", field="name")

        member = await self.members.get_by_id(member_id)
        if member is None:
            raise NotFoundError(f"Member {member_id} not found", member_id=member_id)

        counts = {
            "by_member_reference": await self._rename_leg(
                member_id, name, member.folder_id, to_user_id=str(member_id)
            )
        }

        emails = []
        for candidate in (sanitize_email(member.email), sanitize_email(previous_email)):
            if candidate and candidate not in emails:
                emails.append(candidate)
        counts["by_email"] = 0
        for email in emails:
            counts["by_email"] += await self._rename_leg(
                member_id, name, member.folder_id, receiver_email=email
            )

        counts["by_user_id"] = (
            await self._rename_leg(member_id, name, member.folder_id, to_user_id=member.user_id)
            if member.user_id
            else 0
        )

        result = RenameResult(member_id=member_id, new_name=name, **counts)
        logger.info(
            f"Renamed member {member_id} to '{name}' across {result.total} token(s) "
            f"(reference={result.by_member_reference}, email={result.by_email}, "
            f"user={result.by_user_id})"
        )
        return result

    async def _rename_leg(
        self,
        member_id: int,
        new_name: str,
        batch_id: Optional[int],
        to_user_id: Optional[str] = None,
        receiver_email: Optional[str] = None,
    ) -> int:
        leg = "email" if receiver_email else "to_user_id"
        app = self.config.app
        try:
            return await retry_async(
                lambda: self.tokens.rename_receiver(
                    new_name,
                    batch_id,
                    to_user_id=to_user_id,
                    receiver_email=receiver_email,
                ),
                attempts=app.cascade_retry_attempts,
                base_delay=app.cascade_retry_base_delay,
                max_delay=app.cascade_retry_max_delay,
                retry_on=(SQLAlchemyError, RepositoryError),
                logger=logger,
                description=f"rename cascade ({leg}) for member {member_id}",
            )
        except (SQLAlchemyError, RepositoryError) as e:
            logger.error(f"Rename cascade ({leg}) for member {member_id} gave up: {e}")
            raise RenameCascadeError(
                f"Could not update token receiver names for member {member_id}; "
                "retry the rename",
                member_id=member_id,
            ) from e
