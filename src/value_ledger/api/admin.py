"""Admin API endpoints for ledger maintenance."""

from fastapi import APIRouter, Depends

from ..domain.integrity import build_integrity_report
from ..repositories.dependencies import get_repository_container
from ..repositories.interfaces import RepositoryContainer
from ..utils.logging_config import get_logger
from .schemas import IntegrityIssueResponse, IntegrityReportResponse

logger = get_logger("api")

router = APIRouter(prefix="/v1/admin", tags=["admin"])


@router.get(
    "/integrity",
    response_model=IntegrityReportResponse,
    responses={200: {"description": "Integrity report"}},
)
async def get_integrity_report(
    repos: RepositoryContainer = Depends(get_repository_container),
) -> IntegrityReportResponse:
    """
    Check the roster and token ledger for records that cannot be resolved.

    Reports empty or duplicate member names, malformed member emails and
    tokens without a usable id or recipient. Nothing is modified; fixing
    the findings is a manual task.
    """
    tokens = await repos.token_repo.list_tokens()
    members = await repos.member_repo.list_all()
    report = build_integrity_report(
        [token.to_record() for token in tokens], [member.to_record() for member in members]
    )

    if report.errors:
        logger.warning(
            f"Integrity check found {len(report.errors)} error(s) and "
            f"{len(report.warnings)} warning(s)"
        )

    return IntegrityReportResponse(
        healthy=report.is_healthy,
        error_count=len(report.errors),
        warning_count=len(report.warnings),
        totals=report.totals,
        issues=[IntegrityIssueResponse.model_validate(issue) for issue in report.issues],
    )
