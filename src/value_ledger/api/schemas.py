"""Pydantic models for API request/response validation."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ConfigDict  # type: ignore

from ..core.enums import IssueSeverity, TokenStatus


# Base response models
class BaseResponse(BaseModel):
    """Base response model with common fields."""

    model_config = ConfigDict(from_attributes=True)


class ProblemDetails(BaseModel):
    """RFC 9457 Problem Details for HTTP APIs."""

    type: str = Field(description="A URI reference that identifies the problem type")
    title: str = Field(
        description="A short, human-readable summary of the problem type"
    )
    status: int = Field(description="The HTTP status code")
    detail: Optional[str] = Field(
        None, description="A human-readable explanation specific to this occurrence"
    )
    instance: Optional[str] = Field(
        None, description="A URI reference that identifies the specific occurrence"
    )


# Token schemas
class TokenCreate(BaseModel):
    """Schema for sending a token.

    Field contents are checked by the ledger so that every rejection carries
    the same problem details shape.
    """

    receiver_name: str = Field(description="Name of the recipient as shown in the roster")
    to_user_id: Optional[str] = Field(
        None, description="Recipient account id or roster member id"
    )
    receiver_email: Optional[str] = Field(None, description="Recipient email")
    sender_name: Optional[str] = Field(
        None, description="Sender label, defaults to the caller's display name"
    )
    amount: Optional[int] = Field(None, description="Token amount, defaults to 10,000")
    category: Optional[str] = Field(
        None, description="growth, influence, execution or camaraderie"
    )
    message: str = Field("", description="Note to the recipient", max_length=2000)
    batch_id: Optional[int] = Field(None, description="Batch the token is sent in")


class TokenResponse(BaseResponse):
    """Schema for token response."""

    id: int
    batch_id: Optional[int]
    from_user_id: str
    to_user_id: str
    sender_name: str
    receiver_name: str
    receiver_email: Optional[str]
    amount: int
    category: str
    message: str
    status: TokenStatus
    created_at: datetime


class LevelResponse(BaseResponse):
    """Level progress derived from the cumulative accepted amount."""

    level: int
    progress_percent: float
    remaining: int


class StatsResponse(BaseResponse):
    """Statistics snapshot for the requesting identity."""

    received: int
    pending: int
    pending_count: int
    accepted_count: int
    given: int
    given_count: int
    cumulative: int
    today: int
    this_week: int
    latest_pending_sender: Optional[str]
    level: LevelResponse


class LeaderboardEntryResponse(BaseResponse):
    rank: int
    name: str
    total: int
    token_count: int


class LeaderboardResponse(BaseModel):
    """Receivers ranked by total amount sent to them."""

    entries: List[LeaderboardEntryResponse]


# Roster schemas
class MemberCreate(BaseModel):
    """Schema for adding a roster entry."""

    name: str = Field(description="Member display name")
    email: Optional[str] = Field(None, description="Member email")


class MemberUpdate(BaseModel):
    """Schema for editing a roster entry; omitted fields are left unchanged."""

    name: Optional[str] = Field(None, description="New display name")
    email: Optional[str] = Field(None, description="New email; an empty string removes it")


class MemberResponse(BaseResponse):
    """Schema for roster entry response."""

    id: int
    folder_id: int
    name: str
    email: Optional[str]
    user_id: Optional[str]
    joined_at: Optional[datetime]
    created_at: datetime


# Admin schemas
class IntegrityIssueResponse(BaseResponse):
    type: str
    severity: IssueSeverity
    description: str
    member_id: Optional[int] = None
    token_id: Optional[Any] = None


class IntegrityReportResponse(BaseModel):
    """Findings of the read-only integrity check."""

    healthy: bool
    error_count: int
    warning_count: int
    totals: Dict[str, int]
    issues: List[IntegrityIssueResponse]
