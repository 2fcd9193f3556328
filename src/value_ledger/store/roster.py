"""Batch roster maintenance as seen by the ledger.

Batch management owns the roster; this service exposes the operations the
token game relies on. Renames go through the ledger so tokens follow the
member's new name.
"""

from typing import List, Optional

from ..db.models import BatchMember
from ..domain.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..domain.records import Identity
from ..utils.logging_config import get_logger
from .ledger import RenameResult, TokenLedger, sanitize_email

logger = get_logger("ledger")


def _clean_name(name: Optional[str]) -> str:
    cleaned = name.strip() if isinstance(name, str) else ""
    if not cleaned:
        raise ValidationError("Member name is required", field="name")
    return cleaned


def _clean_email(email: Optional[str]) -> Optional[str]:
    if email is None or not email.strip():
        return None
    cleaned = sanitize_email(email)
    if cleaned is None:
        raise ValidationError(f"Invalid email address '{email}'", field="email")
    return cleaned


class RosterService:
    """Create, edit, remove and claim roster entries."""

    def __init__(self, ledger: TokenLedger):
        self.ledger = ledger
        self.members = ledger.members

    async def _get(self, member_id: int) -> BatchMember:
        member = await self.members.get_by_id(member_id)
        if member is None:
            raise NotFoundError(f"Member {member_id} not found", member_id=member_id)
        return member

    async def list_members(self, folder_id: int) -> List[BatchMember]:
        return await self.members.list_by_folder(folder_id)

    async def add_member(
        self, folder_id: int, name: str, email: Optional[str] = None
    ) -> BatchMember:
        member = await self.members.create(
            folder_id=folder_id, name=_clean_name(name), email=_clean_email(email)
        )
        logger.info(f"Member {member.id} '{member.name}' added to batch {folder_id}")
        return member

    async def update_member(
        self,
        member_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> BatchMember:
        """
        Edit a roster entry.

        A changed name is written to the member first and then cascaded to
        the member's tokens. If the cascade fails the member keeps its new
        name and repeating the same update finishes the repair. Tokens sent
        to the member's previous email are renamed along with the rest. An
        empty ``email`` removes the member's email.

        Raises:
            NotFoundError: Unknown member
            ValidationError: Blank name or malformed email
            RenameCascadeError: Token names could not be repaired
        """
        previous_email = (await self._get(member_id)).email
        new_name = _clean_name(name) if name is not None else None
        new_email = None
        if email is not None:
            # blank clears the email
            new_email = _clean_email(email) or ""

        member = await self.members.update(member_id, name=new_name, email=new_email)

        if new_name is not None:
            result: RenameResult = await self.ledger.rename_recipient(
                member_id, new_name, previous_email=previous_email
            )
            logger.debug(f"Rename cascade for member {member_id}: {result.total} token(s)")
        return member

    async def remove_member(self, member_id: int) -> None:
        """Remove a roster entry. Tokens addressed to it are kept."""
        if not await self.members.delete_by_id(member_id):
            raise NotFoundError(f"Member {member_id} not found", member_id=member_id)
        logger.info(f"Member {member_id} removed from roster")

    async def claim_member(self, member_id: int, identity: Identity) -> BatchMember:
        """
        Link a roster entry to ``identity``'s account.

        Raises:
            NotFoundError: Unknown member
            ForbiddenError: The member's email differs from the identity's
            ConflictError: The member is already linked to another account
        """
        member = await self._get(member_id)

        if member.user_id:
            if member.user_id == identity.id:
                return member
            raise ConflictError(
                f"Member {member_id} is already linked to another account",
                member_id=member_id,
            )

        member_email = sanitize_email(member.email)
        if not member_email or member_email != sanitize_email(identity.email):
            raise ForbiddenError(
                "You can only claim a roster entry with your own email",
                member_id=member_id,
            )

        member = await self.members.link_user(member_id, identity.id)
        logger.info(f"Member {member_id} claimed by {identity.id}")
        return member
