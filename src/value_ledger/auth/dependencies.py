"""Authentication dependencies for FastAPI."""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..domain.records import Identity
from ..utils.logging_config import get_logger
from .jwt_auth import IdentityTokenManager

logger = get_logger("auth")

# Security scheme for Bearer token
security = HTTPBearer(auto_error=False)


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Identity:
    """
    Get the authenticated identity from the Bearer token.

    This dependency can be used in route handlers to require authentication
    and get the caller's Identity.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return IdentityTokenManager().identity_from_token(credentials.credentials)
    except HTTPException as e:
        logger.info(f"Rejected bearer token: {e.detail}")
        raise
