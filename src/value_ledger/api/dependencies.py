"""Service wiring for route handlers."""

from fastapi import Depends

from ..repositories.dependencies import get_repository_container
from ..repositories.interfaces import RepositoryContainer
from ..store.acceptance import AcceptanceWorkflow
from ..store.ledger import TokenLedger
from ..store.roster import RosterService


def get_ledger(
    repos: RepositoryContainer = Depends(get_repository_container),
) -> TokenLedger:
    """Token ledger bound to the request's database session."""
    return TokenLedger(repos.token_repo, repos.member_repo)


def get_acceptance_workflow(
    ledger: TokenLedger = Depends(get_ledger),
) -> AcceptanceWorkflow:
    return AcceptanceWorkflow(ledger)


def get_roster_service(ledger: TokenLedger = Depends(get_ledger)) -> RosterService:
    return RosterService(ledger)
