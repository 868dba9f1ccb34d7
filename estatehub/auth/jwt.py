"""
JWT token handling.

Two token kinds are issued:
- Access tokens (7 days default) authorize ordinary requests
- Refresh tokens (30 days default) only mint new token pairs

Each kind is signed with its own secret, so holding one never lets a client
forge the other. Tokens are not stored server-side.
"""

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError
from pydantic import BaseModel

from estatehub.core.config import Settings


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenError(Exception):
    """Base class for token verification failures."""


class ExpiredTokenError(TokenError):
    """Token signature is valid but its expiry has passed."""


class InvalidSignatureError(TokenError):
    """Token was not signed with the expected secret."""


class MalformedTokenError(TokenError):
    """Token cannot be decoded or lacks required claims."""


class TokenPayload(BaseModel):
    """Verified token claims."""
    user_id: uuid.UUID
    kind: TokenKind
    issued_at: datetime
    expires_at: datetime
    jti: Optional[str] = None


class SessionTokens(BaseModel):
    """Access and refresh token pair handed to the client."""
    access_token: str
    refresh_token: str


class TokenService:
    """Issues and verifies access and refresh tokens."""

    def __init__(self, settings: Settings):
        self._secrets = {
            TokenKind.ACCESS: settings.jwt_secret_key.get_secret_value(),
            TokenKind.REFRESH: settings.jwt_refresh_secret_key.get_secret_value(),
        }
        self._lifetimes = {
            TokenKind.ACCESS: timedelta(days=settings.access_token_expire_days),
            TokenKind.REFRESH: timedelta(days=settings.refresh_token_expire_days),
        }
        self._algorithm = settings.jwt_algorithm
        self._issuer = settings.jwt_issuer

    def lifetime(self, kind: TokenKind) -> timedelta:
        return self._lifetimes[kind]

    def issue_access(self, user_id: uuid.UUID, expires_delta: Optional[timedelta] = None) -> str:
        return self._issue(user_id, TokenKind.ACCESS, expires_delta)

    def issue_refresh(self, user_id: uuid.UUID, expires_delta: Optional[timedelta] = None) -> str:
        return self._issue(user_id, TokenKind.REFRESH, expires_delta)

    def issue_pair(self, user_id: uuid.UUID) -> SessionTokens:
        return SessionTokens(
            access_token=self.issue_access(user_id),
            refresh_token=self.issue_refresh(user_id),
        )

    def _issue(
        self,
        user_id: uuid.UUID,
        kind: TokenKind,
        expires_delta: Optional[timedelta],
    ) -> str:
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta if expires_delta is not None else self._lifetimes[kind])

        payload = {
            "sub": str(user_id),
            "type": kind.value,
            "iat": now,
            "exp": expire,
            "iss": self._issuer,
            "jti": secrets.token_urlsafe(16),  # Unique token ID
        }
        return jwt.encode(payload, self._secrets[kind], algorithm=self._algorithm)

    def verify(self, token: str, kind: TokenKind) -> TokenPayload:
        """
        Verify and decode a token of the given kind.

        Raises:
            MalformedTokenError: If the token cannot be decoded
            InvalidSignatureError: If the signature does not match the kind's secret
            ExpiredTokenError: If the token has expired
        """
        try:
            jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError as e:
            raise MalformedTokenError(str(e)) from e

        try:
            payload = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[self._algorithm],
                issuer=self._issuer,
            )
        except ExpiredSignatureError as e:
            raise ExpiredTokenError("Token has expired") from e
        except JWTClaimsError as e:
            raise MalformedTokenError(str(e)) from e
        except JWTError as e:
            raise InvalidSignatureError(str(e)) from e

        if payload.get("type") != kind.value:
            raise InvalidSignatureError(
                f"Invalid token type. Expected {kind.value}, got {payload.get('type')}"
            )

        try:
            return TokenPayload(
                user_id=uuid.UUID(payload["sub"]),
                kind=kind,
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                jti=payload.get("jti"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedTokenError("Token is missing required claims") from e
