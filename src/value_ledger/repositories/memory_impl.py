"""In-memory implementations of repository interfaces for testing."""

from datetime import datetime, timezone
from itertools import count
from typing import Dict, List, Optional

from .interfaces import TokenRepository, BatchMemberRepository
from ..db.models import Token, BatchMember


class BaseMemoryRepository:
    """Base in-memory repository implementation."""

    async def save(self, entity) -> None:
        """Save an entity to the repository."""
        # In memory implementation doesn't need explicit saves
        pass

    async def delete(self, entity) -> None:
        """Delete an entity from the repository."""
        # Handled by specific implementations
        pass

    async def commit(self) -> None:
        """Commit the current transaction."""
        # In memory - changes are immediate
        pass

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        pass


class MemoryTokenRepository(BaseMemoryRepository, TokenRepository):
    """In-memory implementation of TokenRepository."""

    def __init__(self):
        self._tokens: Dict[int, Token] = {}
        self._ids = count(1)

    async def get_by_id(self, token_id: int) -> Optional[Token]:
        """Get a token by ID."""
        return self._tokens.get(token_id)

    async def list_tokens(self, batch_id: Optional[int] = None) -> List[Token]:
        """Get tokens, newest first, optionally limited to one batch."""
        tokens = [
            token for token in self._tokens.values()
            if batch_id is None or token.batch_id == batch_id
        ]
        return sorted(tokens, key=lambda t: (t.created_at, t.id), reverse=True)

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
            id=next(self._ids),
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
        self._tokens[token.id] = token
        return token

    async def set_status(self, token_id: int, status: str) -> Optional[Token]:
        """Update the status of one token."""
        token = self._tokens.get(token_id)
        if token is None:
            return None
        token.status = status
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

        updated = 0
        for token in self._tokens.values():
            if batch_id is not None and token.batch_id not in (batch_id, None):
                continue
            if to_user_id is not None:
                matches = token.to_user_id == to_user_id
            else:
                matches = (token.receiver_email or "").lower() == receiver_email.lower()
            if matches:
                token.receiver_name = new_name
                updated += 1
        return updated


class MemoryBatchMemberRepository(BaseMemoryRepository, BatchMemberRepository):
    """In-memory implementation of BatchMemberRepository."""

    def __init__(self):
        self._members: Dict[int, BatchMember] = {}
        self._ids = count(1)

    async def get_by_id(self, member_id: int) -> Optional[BatchMember]:
        """Get a member by ID."""
        return self._members.get(member_id)

    async def list_by_folder(self, folder_id: int) -> List[BatchMember]:
        """Get all members of a batch, in roster order."""
        return [m for m in self._members.values() if m.folder_id == folder_id]

    async def list_all(self) -> List[BatchMember]:
        """Get every roster entry."""
        return list(self._members.values())

    async def create(
        self,
        folder_id: int,
        name: str,
        email: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> BatchMember:
        """Create a new roster entry."""
        member = BatchMember(
            id=next(self._ids),
            folder_id=folder_id,
            name=name,
            email=email,
            user_id=user_id,
            created_at=datetime.now(timezone.utc),
        )
        self._members[member.id] = member
        return member

    async def update(
        self,
        member_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Optional[BatchMember]:
        """Update name and/or email."""
        member = self._members.get(member_id)
        if member is None:
            return None
        if name is not None:
            member.name = name
        if email is not None:
            member.email = email or None
        return member

    async def link_user(self, member_id: int, user_id: str) -> Optional[BatchMember]:
        """Link a roster entry to an account."""
        member = self._members.get(member_id)
        if member is None:
            return None
        member.user_id = user_id
        member.joined_at = datetime.now(timezone.utc)
        return member

    async def delete_by_id(self, member_id: int) -> bool:
        """Delete a roster entry."""
        return self._members.pop(member_id, None) is not None
