"""Abstract repository interfaces for data access layer."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from ..db.models import Token, BatchMember


class BaseRepository(ABC):
    """Base repository interface with common operations."""

    @abstractmethod
    async def save(self, entity) -> None:
        """Save an entity to the repository."""
        pass

    @abstractmethod
    async def delete(self, entity) -> None:
        """Delete an entity from the repository."""
        pass

    @abstractmethod
    async def commit(self) -> None:
        """Commit the current transaction."""
        pass

    @abstractmethod
    async def rollback(self) -> None:
        """Rollback the current transaction."""
        pass


class TokenRepository(BaseRepository):
    """Repository interface for Token entities."""

    @abstractmethod
    async def get_by_id(self, token_id: int) -> Optional[Token]:
        """Get a token by ID."""
        pass

    @abstractmethod
    async def list_tokens(self, batch_id: Optional[int] = None) -> List[Token]:
        """Get tokens, newest first, optionally limited to one batch."""
        pass

    @abstractmethod
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
        pass

    @abstractmethod
    async def set_status(self, token_id: int, status: str) -> Optional[Token]:
        """Update the status of one token; None if it does not exist."""
        pass

    @abstractmethod
    async def rename_receiver(
        self,
        new_name: str,
        batch_id: Optional[int],
        to_user_id: Optional[str] = None,
        receiver_email: Optional[str] = None,
    ) -> int:
        """
        Rewrite ``receiver_name`` on tokens matching exactly one predicate.

        Exactly one of ``to_user_id`` / ``receiver_email`` must be given.
        Tokens of ``batch_id`` and tokens without a batch are affected.
        Returns the number of rows updated.
        """
        pass


class BatchMemberRepository(BaseRepository):
    """Repository interface for BatchMember entities."""

    @abstractmethod
    async def get_by_id(self, member_id: int) -> Optional[BatchMember]:
        """Get a member by ID."""
        pass

    @abstractmethod
    async def list_by_folder(self, folder_id: int) -> List[BatchMember]:
        """Get all members of a batch, in roster order."""
        pass

    @abstractmethod
    async def list_all(self) -> List[BatchMember]:
        """Get every roster entry."""
        pass

    @abstractmethod
    async def create(
        self,
        folder_id: int,
        name: str,
        email: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> BatchMember:
        """Create a new roster entry."""
        pass

    @abstractmethod
    async def update(
        self,
        member_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Optional[BatchMember]:
        """Update name and/or email; an empty email clears it.

        Returns None if the member does not exist.
        """
        pass

    @abstractmethod
    async def link_user(self, member_id: int, user_id: str) -> Optional[BatchMember]:
        """Link a roster entry to an account; None if the member does not exist."""
        pass

    @abstractmethod
    async def delete_by_id(self, member_id: int) -> bool:
        """Delete a roster entry; False if it did not exist."""
        pass


@dataclass
class RepositoryContainer:
    """Container for all repository instances."""

    token_repo: TokenRepository
    member_repo: BatchMemberRepository
