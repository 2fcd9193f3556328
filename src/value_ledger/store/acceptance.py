"""Authorization-checked acceptance of tokens."""

from ..db.models import Token
from ..domain.errors import ForbiddenError
from ..domain.identity import linked_member_names, recipient_signal
from ..domain.records import Identity
from ..utils.logging_config import get_logger
from .ledger import TokenLedger

logger = get_logger("ledger")


class AcceptanceWorkflow:
    """pending -> accepted, allowed only for the token's recipient."""

    def __init__(self, ledger: TokenLedger):
        self.ledger = ledger

    async def accept_token(self, token_id: int, identity: Identity) -> Token:
        """
        Accept ``token_id`` on behalf of ``identity``.

        The recipient check runs on every call, so repeating an accept is
        allowed for the recipient and still rejected for anyone else.

        Raises:
            NotFoundError: If the token does not exist
            ForbiddenError: If ``identity`` is not the token's recipient
        """
        token = await self.ledger.get(token_id)

        linked = set()
        if token.batch_id is not None:
            roster = await self.ledger.members.list_by_folder(token.batch_id)
            linked = linked_member_names(identity, roster, token.batch_id)

        signal = recipient_signal(token, identity, linked)
        if signal is None:
            logger.warning(
                f"Identity {identity.id} tried to accept token {token_id} "
                f"addressed to '{token.receiver_name}'"
            )
            raise ForbiddenError("You can only accept tokens sent to you", token_id=token_id)

        logger.debug(f"Token {token_id} recipient resolved by {signal.value}")
        return await self.ledger.accept(token_id)
