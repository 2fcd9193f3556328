"""SQLAlchemy models for the value ledger."""

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
)

from ..core.enums import TokenCategory, TokenStatus
from ..domain.records import MemberRecord, TokenRecord
from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Token(Base):
    """A value token sent from one member to another.

    The sender is hard-linked through ``from_user_id``. The recipient is only
    described (``receiver_name``, ``receiver_email``, ``to_user_id``) so that
    tokens can target roster members who have not claimed an account.
    """

    __tablename__ = "tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    batch_id = Column(Integer, nullable=True)  # folders.id owned by batch management
    from_user_id = Column(String(255), nullable=False)
    to_user_id = Column(String(255), nullable=False)  # user id or legacy member reference
    sender_name = Column(Text, nullable=False)
    receiver_name = Column(Text, nullable=False)
    receiver_email = Column(String(320), nullable=True)
    amount = Column(Integer, nullable=False, default=10_000)
    category = Column(String(50), nullable=False, default=TokenCategory.GROWTH.value)
    message = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default=TokenStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_token_amount_positive"),
        CheckConstraint(
            "status IN ('pending', 'accepted')", name="ck_token_status_known"
        ),
        Index("ix_token_batch_created", "batch_id", "created_at"),
        Index("ix_token_receiver_email", "receiver_email"),
        Index("ix_token_to_user_id", "to_user_id"),
    )

    def to_record(self) -> TokenRecord:
        """Detach a snapshot for the domain layer."""
        return TokenRecord(
            id=self.id,
            batch_id=self.batch_id,
            from_user_id=self.from_user_id,
            to_user_id=self.to_user_id,
            sender_name=self.sender_name,
            receiver_name=self.receiver_name,
            receiver_email=self.receiver_email,
            amount=self.amount,
            category=self.category,
            message=self.message,
            status=self.status,
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return (
            f"<Token(id={self.id}, from='{self.from_user_id}', "
            f"to='{self.receiver_name}', amount={self.amount}, status='{self.status}')>"
        )


class BatchMember(Base):
    """A roster entry of a batch (folder).

    ``user_id`` is set once the member claims the entry with their account.
    """

    __tablename__ = "batch_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    folder_id = Column(Integer, nullable=False)
    name = Column(Text, nullable=False)
    email = Column(String(320), nullable=True)
    user_id = Column(String(255), nullable=True)
    joined_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        Index("ix_batch_member_folder", "folder_id"),
        Index("ix_batch_member_email", "email"),
        Index("ix_batch_member_user_id", "user_id"),
    )

    def to_record(self) -> MemberRecord:
        return MemberRecord(
            id=self.id,
            folder_id=self.folder_id,
            name=self.name,
            email=self.email,
            user_id=self.user_id,
        )

    def __repr__(self) -> str:
        return f"<BatchMember(id={self.id}, folder_id={self.folder_id}, name='{self.name}')>"
