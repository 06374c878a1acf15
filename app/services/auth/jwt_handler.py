# app/services/auth/jwt_handler.py
"""
JWT access token creation and validation.

Tokens are issued by the account service that owns users; this service
only validates them. ``create_access_token`` exists for tooling and tests.

Access tokens contain:
- sub: User ID (string)
- exp / iat: Expiry and issue timestamps
- type: "access"
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from app.config import settings
from app.services.exceptions import TokenExpiredError, InvalidCredentialsError


class JWTHandler:
    """Stateless HS256 bearer token handling."""

    @staticmethod
    def create_access_token(
        user_id: int,
        expires_delta: timedelta | None = None,
    ) -> str:
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)

        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "exp": now + expires_delta,
            "iat": now,
            "type": "access",
        }

        return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    @staticmethod
    def validate_access_token(token: str) -> dict[str, Any]:
        """
        Validate an access token and return its payload.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidCredentialsError: If the token is invalid, malformed or not an access token
        """
        try:
            payload = jwt.decode(
                token,
                settings.jwt_secret_key,
                algorithms=[settings.jwt_algorithm],
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Access token has expired")
        except JWTError as e:
            raise InvalidCredentialsError(f"Invalid token: {str(e)}")

        if payload.get("type") != "access":
            raise InvalidCredentialsError("Invalid token type")

        return payload

    @staticmethod
    def get_user_id(payload: dict[str, Any]) -> int:
        """Extract the numeric user id from a validated payload."""
        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            raise InvalidCredentialsError("Token has no valid subject")
