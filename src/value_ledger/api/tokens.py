"""Value token API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ..auth.dependencies import get_current_identity
from ..config import get_config
from ..domain.aggregation import compute_leaderboard, compute_stats, recent_activity
from ..domain.records import Identity
from ..store.acceptance import AcceptanceWorkflow
from ..store.ledger import TokenLedger
from .dependencies import get_acceptance_workflow, get_ledger
from .schemas import (
    LeaderboardEntryResponse,
    LeaderboardResponse,
    ProblemDetails,
    StatsResponse,
    TokenCreate,
    TokenResponse,
)

router = APIRouter(tags=["tokens"])


@router.post(
    "/v1/tokens",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Token sent"},
        400: {"model": ProblemDetails, "description": "Invalid token data"},
        401: {"model": ProblemDetails, "description": "Authentication required"},
    },
)
async def send_token(
    token_data: TokenCreate,
    identity: Identity = Depends(get_current_identity),
    ledger: TokenLedger = Depends(get_ledger),
) -> TokenResponse:
    """
    Send a value token to a roster member.

    The sender is always the authenticated identity. The recipient is
    described by name and, when known, by email or account id; members who
    have not claimed their roster entry yet can still be recognized.
    The token starts as **pending** until the recipient accepts it.
    """
    token = await ledger.create(
        from_user_id=identity.id,
        receiver_name=token_data.receiver_name,
        to_user_id=token_data.to_user_id,
        receiver_email=token_data.receiver_email,
        sender_name=token_data.sender_name or identity.display_name,
        amount=token_data.amount,
        category=token_data.category,
        message=token_data.message,
        batch_id=token_data.batch_id,
    )
    return TokenResponse.model_validate(token)


@router.get(
    "/v1/tokens",
    response_model=List[TokenResponse],
    responses={200: {"description": "Tokens, newest first"}},
)
async def list_tokens(
    batch_id: Optional[int] = Query(None, description="Only tokens of this batch"),
    ledger: TokenLedger = Depends(get_ledger),
) -> List[TokenResponse]:
    """List tokens, newest first."""
    tokens = await ledger.list_tokens(batch_id)
    return [TokenResponse.model_validate(token) for token in tokens]


@router.get(
    "/v1/tokens/stats",
    response_model=StatsResponse,
    responses={
        200: {"description": "Statistics for the caller"},
        401: {"model": ProblemDetails, "description": "Authentication required"},
    },
)
async def get_my_stats(
    batch_id: Optional[int] = Query(None, description="Batch being viewed"),
    identity: Identity = Depends(get_current_identity),
    ledger: TokenLedger = Depends(get_ledger),
) -> StatsResponse:
    """
    Statistics for the authenticated identity.

    Received totals only include accepted tokens; pending tokens are
    reported separately. Names of roster members linked to the caller in
    ``batch_id`` also count as addressing the caller. Malformed tokens are
    skipped rather than failing the request.
    """
    tokens = await ledger.list_tokens(batch_id)
    roster = await ledger.members.list_by_folder(batch_id) if batch_id is not None else []
    stats = compute_stats(
        [token.to_record() for token in tokens],
        identity,
        [member.to_record() for member in roster],
        batch_id=batch_id,
        level_unit=get_config().app.level_unit,
    )
    return StatsResponse.model_validate(stats)


@router.get(
    "/v1/tokens/leaderboard",
    response_model=LeaderboardResponse,
    responses={200: {"description": "Ranked receivers"}},
)
async def get_leaderboard(
    batch_id: Optional[int] = Query(None, description="Only tokens of this batch"),
    limit: Optional[int] = Query(None, ge=1, le=100, description="Number of entries"),
    ledger: TokenLedger = Depends(get_ledger),
) -> LeaderboardResponse:
    """
    Receivers ranked by the total amount sent to them.

    Pending and accepted tokens both count. Equal totals keep the order in
    which the receivers first appear in the newest-first token list.
    """
    records = [token.to_record() for token in await ledger.list_tokens(batch_id)]
    entries = compute_leaderboard(records, limit or get_config().app.leaderboard_size)
    return LeaderboardResponse(
        entries=[LeaderboardEntryResponse.model_validate(entry) for entry in entries]
    )


@router.get(
    "/v1/tokens/recent",
    response_model=List[TokenResponse],
    responses={200: {"description": "Most recent tokens"}},
)
async def get_recent_activity(
    batch_id: Optional[int] = Query(None, description="Only tokens of this batch"),
    limit: Optional[int] = Query(None, ge=1, le=100, description="Number of tokens"),
    ledger: TokenLedger = Depends(get_ledger),
) -> List[TokenResponse]:
    """The newest tokens of the batch."""
    records = [token.to_record() for token in await ledger.list_tokens(batch_id)]
    recent = recent_activity(records, limit or get_config().app.recent_activity_size)
    return [TokenResponse.model_validate(token) for token in recent]


@router.get(
    "/v1/tokens/{token_id}",
    response_model=TokenResponse,
    responses={
        200: {"description": "Token found"},
        404: {"model": ProblemDetails, "description": "Token not found"},
    },
)
async def get_token(
    token_id: int, ledger: TokenLedger = Depends(get_ledger)
) -> TokenResponse:
    """Get a single token."""
    return TokenResponse.model_validate(await ledger.get(token_id))


@router.post(
    "/v1/tokens/{token_id}/accept",
    response_model=TokenResponse,
    responses={
        200: {"description": "Token accepted"},
        401: {"model": ProblemDetails, "description": "Authentication required"},
        403: {"model": ProblemDetails, "description": "Token was sent to someone else"},
        404: {"model": ProblemDetails, "description": "Token not found"},
    },
)
async def accept_token(
    token_id: int,
    identity: Identity = Depends(get_current_identity),
    workflow: AcceptanceWorkflow = Depends(get_acceptance_workflow),
) -> TokenResponse:
    """
    Accept a token sent to the authenticated identity.

    Only the recipient may accept. Accepting an already accepted token
    returns it unchanged.
    """
    token = await workflow.accept_token(token_id, identity)
    return TokenResponse.model_validate(token)
