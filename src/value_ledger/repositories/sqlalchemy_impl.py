"""SQLAlchemy concrete implementations of repository interfaces."""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import desc, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .interfaces import TokenRepository, BatchMemberRepository
from ..db.models import Token, BatchMember
from ..domain.errors import RepositoryError


class BaseSQLAlchemyRepository:
    """Base SQLAlchemy repository implementation."""

    def __init__(self, session: Session):
        self._session = session

    async def save(self, entity) -> None:
        """Save an entity to the repository."""
        self._session.add(entity)

    async def delete(self, entity) -> None:
        """Delete an entity from the repository."""
        self._session.delete(entity)

    async def commit(self) -> None:
        """Commit the current transaction, rolling back on failure."""
        try:
            self._session.commit()
        except SQLAlchemyError as e:
            self._session.rollback()
            raise RepositoryError(f"Failed to commit transaction: {e}") from e

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        self._session.rollback()


class SQLAlchemyTokenRepository(BaseSQLAlchemyRepository, TokenRepository):
    """SQLAlchemy implementation of TokenRepository."""

    async def get_by_id(self, token_id: int) -> Optional[Token]:
        """Get a token by ID."""
        return self._session.query(Token).filter(Token.id == token_id).first()

    async def list_tokens(self, batch_id: Optional[int] = None) -> List[Token]:
        """Get tokens, newest first, optionally limited to one batch."""
        query = self._session.query(Token)
        if batch_id is not None:
            query = query.filter(Token.batch_id == batch_id)
        return query.order_by(desc(Token.created_at), desc(Token.id)).all()

    async def create(
        self,
        from_user_id: str,
        to_user_id: str,
        sender_name: str,
        receiver_name: str,
        receiver_email: Optional[str],
        amount: int,
        category: str,
        message: str,
        status: str,
        batch_id: Optional[int] = None,
    ) -> Token:
        """Create a new token."""
        token = Token(
            batch_id=batch_id,
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            sender_name=sender_name,
            receiver_name=receiver_name,
            receiver_email=receiver_email,
            amount=amount,
            category=category,
            message=message,
            status=status,
            created_at=datetime.now(timezone.utc),
        )
        await self.save(token)
        await self.commit()
        self._session.refresh(token)
        return token

    async def set_status(self, token_id: int, status: str) -> Optional[Token]:
        """Single-row status update keyed by primary key."""
        updated = (
            self._session.query(Token)
            .filter(Token.id == token_id)
            .update({Token.status: status}, synchronize_session=False)
        )
        await self.commit()
        if not updated:
            return None
        token = await self.get_by_id(token_id)
        if token is not None:
            self._session.refresh(token)
        return token

    async def rename_receiver(
        self,
        new_name: str,
        batch_id: Optional[int],
        to_user_id: Optional[str] = None,
        receiver_email: Optional[str] = None,
    ) -> int:
        """Rewrite receiver_name on tokens matching one soft-link predicate."""
        if (to_user_id is None) == (receiver_email is None):
            raise ValueError("exactly one of to_user_id / receiver_email is required")

        if to_user_id is not None:
            predicate = Token.to_user_id == to_user_id
        else:
            predicate = func.lower(Token.receiver_email) == receiver_email.lower()

        query = self._session.query(Token).filter(predicate)
        if batch_id is not None:
            query = query.filter(or_(Token.batch_id == batch_id, Token.batch_id.is_(None)))

        try:
            updated = query.update({Token.receiver_name: new_name}, synchronize_session=False)
        except SQLAlchemyError as e:
            self._session.rollback()
            raise RepositoryError(f"Failed to rename token receivers: {e}") from e
        await self.commit()
        return updated


class SQLAlchemyBatchMemberRepository(BaseSQLAlchemyRepository, BatchMemberRepository):
    """SQLAlchemy implementation of BatchMemberRepository."""

    async def get_by_id(self, member_id: int) -> Optional[BatchMember]:
        """Get a member by ID."""
        return self._session.query(BatchMember).filter(BatchMember.id == member_id).first()

    async def list_by_folder(self, folder_id: int) -> List[BatchMember]:
        """Get all members of a batch, in roster order."""
        return (
            self._session.query(BatchMember)
            .filter(BatchMember.folder_id == folder_id)
            .order_by(BatchMember.created_at, BatchMember.id)
            .all()
        )

    async def list_all(self) -> List[BatchMember]:
        """Get every roster entry."""
        return self._session.query(BatchMember).order_by(BatchMember.id).all()

    async def create(
        self,
        folder_id: int,
        name: str,
        email: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> BatchMember:
        """Create a new roster entry."""
        member = BatchMember(
            folder_id=folder_id,
            name=name,
            email=email,
            user_id=user_id,
            created_at=datetime.now(timezone.utc),
        )
        await self.save(member)
        await self.commit()
        self._session.refresh(member)
        return member

    async def update(
        self,
        member_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Optional[BatchMember]:
        """Update name and/or email."""
        member = await self.get_by_id(member_id)
        if member is None:
            return None
        if name is not None:
            member.name = name
        if email is not None:
            member.email = email or None
        await self.commit()
        self._session.refresh(member)
        return member

    async def link_user(self, member_id: int, user_id: str) -> Optional[BatchMember]:
        """Link a roster entry to an account."""
        member = await self.get_by_id(member_id)
        if member is None:
            return None
        member.user_id = user_id
        member.joined_at = datetime.now(timezone.utc)
        await self.commit()
        self._session.refresh(member)
        return member

    async def delete_by_id(self, member_id: int) -> bool:
        """Delete a roster entry."""
        member = await self.get_by_id(member_id)
        if member is None:
            return False
        await self.delete(member)
        await self.commit()
        return True
