"""Error rendering for the API as RFC 9457 Problem Details."""

from typing import Callable, Optional

from fastapi import Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..domain.errors import LedgerError
from ..utils.logging_config import get_logger, log_exception

logger = get_logger("api")

DEFAULT_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def problem_response(
    status_code: int,
    title: str,
    detail: Optional[str] = None,
    type_uri: Optional[str] = None,
    instance: Optional[str] = None,
    headers: Optional[dict] = None,
    **extra_fields,
) -> JSONResponse:
    """Create a JSON response in RFC 9457 Problem Details format."""
    problem = {
        "type": type_uri or f"https://httpstatuses.com/{status_code}",
        "title": title,
        "status": status_code,
    }

    if detail:
        problem["detail"] = detail
    if instance:
        problem["instance"] = instance

    # Add any extra fields
    problem.update(jsonable_encoder(extra_fields))

    return JSONResponse(
        status_code=status_code,
        content=problem,
        media_type="application/problem+json",
        headers=headers,
    )


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Render a ledger error with its mapped status."""
    if exc.status_code >= 500:
        log_exception("api", exc, {"path": request.url.path})
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    return problem_response(
        status_code=exc.status_code,
        title=exc.title,
        detail=exc.detail,
        instance=str(request.url),
        **exc.extra_fields,
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render HTTP exceptions as problem+json."""
    return problem_response(
        status_code=exc.status_code,
        title=DEFAULT_TITLES.get(exc.status_code, "HTTP Error"),
        detail=str(exc.detail) if exc.detail else None,
        instance=str(request.url),
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies and parameters are client errors (400)."""
    return problem_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        title="Validation Error",
        detail="Request validation failed",
        instance=str(request.url),
        errors=exc.errors(),
    )


class ProblemDetailsMiddleware(BaseHTTPMiddleware):
    """Last-resort conversion of unhandled exceptions into Problem Details."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            response = await call_next(request)
            return response
        except LedgerError as exc:
            return await ledger_error_handler(request, exc)
        except Exception as exc:
            log_exception("api", exc, {"path": request.url.path, "method": request.method})
            return problem_response(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                title="Internal Server Error",
                detail="An unexpected error occurred",
                instance=str(request.url),
            )
