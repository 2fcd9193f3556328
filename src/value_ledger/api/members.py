"""Batch roster API endpoints."""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from ..auth.dependencies import get_current_identity
from ..domain.records import Identity
from ..store.roster import RosterService
from .dependencies import get_roster_service
from .schemas import MemberCreate, MemberResponse, MemberUpdate, ProblemDetails

router = APIRouter(tags=["members"])


@router.get(
    "/v1/batches/{folder_id}/members",
    response_model=List[MemberResponse],
    responses={200: {"description": "Roster of the batch"}},
)
async def list_members(
    folder_id: int, roster: RosterService = Depends(get_roster_service)
) -> List[MemberResponse]:
    """Get the roster of a batch in the order members were added."""
    members = await roster.list_members(folder_id)
    return [MemberResponse.model_validate(member) for member in members]


@router.post(
    "/v1/batches/{folder_id}/members",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Member added"},
        400: {"model": ProblemDetails, "description": "Invalid member data"},
    },
)
async def add_member(
    folder_id: int,
    member_data: MemberCreate,
    roster: RosterService = Depends(get_roster_service),
) -> MemberResponse:
    """Add a member to a batch roster."""
    member = await roster.add_member(folder_id, member_data.name, member_data.email)
    return MemberResponse.model_validate(member)


@router.put(
    "/v1/batch-members/{member_id}",
    response_model=MemberResponse,
    responses={
        200: {"description": "Member updated"},
        400: {"model": ProblemDetails, "description": "Invalid member data"},
        404: {"model": ProblemDetails, "description": "Member not found"},
        503: {
            "model": ProblemDetails,
            "description": "Member renamed but tokens could not be updated; retry",
        },
    },
)
async def update_member(
    member_id: int,
    member_data: MemberUpdate,
    roster: RosterService = Depends(get_roster_service),
) -> MemberResponse:
    """
    Edit a roster entry.

    Renaming a member also renames the recipient on every token addressed
    to them, whether the token referenced the member, their email or their
    linked account. The update is idempotent: if the token repair fails
    with 503, sending the same request again completes it.
    """
    member = await roster.update_member(
        member_id, name=member_data.name, email=member_data.email
    )
    return MemberResponse.model_validate(member)


@router.delete(
    "/v1/batch-members/{member_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        204: {"description": "Member removed"},
        404: {"model": ProblemDetails, "description": "Member not found"},
    },
)
async def remove_member(
    member_id: int, roster: RosterService = Depends(get_roster_service)
) -> Response:
    """Remove a roster entry. Tokens sent to the member are kept."""
    await roster.remove_member(member_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/v1/batch-members/{member_id}/claim",
    response_model=MemberResponse,
    responses={
        200: {"description": "Member linked to the caller's account"},
        401: {"model": ProblemDetails, "description": "Authentication required"},
        403: {"model": ProblemDetails, "description": "Email does not match"},
        404: {"model": ProblemDetails, "description": "Member not found"},
        409: {"model": ProblemDetails, "description": "Member already claimed"},
    },
)
async def claim_member(
    member_id: int,
    identity: Identity = Depends(get_current_identity),
    roster: RosterService = Depends(get_roster_service),
) -> MemberResponse:
    """
    Link a roster entry to the authenticated account.

    The roster entry's email must match the caller's email. Claiming an
    entry already linked to the caller is a no-op.
    """
    member = await roster.claim_member(member_id, identity)
    return MemberResponse.model_validate(member)
