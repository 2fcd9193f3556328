"""JWT verification for sessions issued by the identity provider."""

import jwt
from datetime import datetime, timezone, timedelta
from typing import Dict, Any, Optional
from uuid import uuid4

from fastapi import HTTPException, status

from ..config import get_config
from ..domain.records import Identity


class IdentityTokenManager:
    """Encodes and verifies HS256 access tokens carrying an identity."""

    def __init__(self):
        """Initialize JWT token manager with configuration."""
        config = get_config()
        self.secret_key = config.app.jwt_secret_key
        self.algorithm = config.app.jwt_algorithm
        self.access_token_expires_minutes = config.app.jwt_access_token_expires_minutes

    def create_access_token(
        self,
        identity: Identity,
        expires_minutes: Optional[int] = None,
        additional_claims: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Mint an access token for ``identity``.

        Sessions are normally issued by the identity provider; this is used
        by scripts and tests.

        Args:
            identity: The identity to encode
            expires_minutes: Override of the configured lifetime
            additional_claims: Optional additional claims to include

        Returns:
            Encoded JWT
        """
        now = datetime.now(timezone.utc)
        minutes = (
            self.access_token_expires_minutes if expires_minutes is None else expires_minutes
        )
        payload = {
            "sub": identity.id,
            "email": identity.email,
            "first_name": identity.first_name,
            "last_name": identity.last_name,
            "iat": now,
            "exp": now + timedelta(minutes=minutes),
            "jti": str(uuid4()),
            "type": "access",
        }

        if additional_claims:
            payload.update(additional_claims)

        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_access_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode access token.

        Args:
            token: JWT access token

        Returns:
            Decoded token payload

        Raises:
            HTTPException: If token is invalid, expired, or wrong type
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])

            # Verify token type
            if payload.get("type") != "access":
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Invalid token type",
                    headers={"WWW-Authenticate": "Bearer"},
                )

            if not payload.get("sub"):
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Access token has no subject",
                    headers={"WWW-Authenticate": "Bearer"},
                )

            return payload

        except jwt.ExpiredSignatureError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Access token has expired",
                headers={"WWW-Authenticate": "Bearer"},
            )
        except jwt.InvalidTokenError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid access token",
                headers={"WWW-Authenticate": "Bearer"},
            )

    def identity_from_token(self, token: str) -> Identity:
        """Verify ``token`` and build the Identity it carries."""
        payload = self.verify_access_token(token)
        return Identity(
            id=str(payload["sub"]),
            email=payload.get("email"),
            first_name=payload.get("first_name"),
            last_name=payload.get("last_name"),
        )
