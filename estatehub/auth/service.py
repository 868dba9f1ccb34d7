"""
Authentication core.

Orchestrates registration, login, token refresh, password reset and the
per-request identity check. Cookies and HTTP status codes are the
transport's concern (see ``estatehub.api.v1.endpoints.auth``).
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from fastapi.concurrency import run_in_threadpool

from estatehub.auth.jwt import SessionTokens, TokenError, TokenKind, TokenService
from estatehub.auth.password import hash_password, needs_rehash, verify_password
from estatehub.auth.store import UserStore
from estatehub.core.config import Settings
from estatehub.core.exceptions import (
    AccountDeactivated,
    DuplicateEmail,
    DuplicateUsername,
    InternalError,
    InvalidCredentials,
    InvalidOrExpiredToken,
    InvalidRefreshToken,
    MissingToken,
    Unauthenticated,
    UserNotFound,
)
from estatehub.models.user import User, UserRole, utcnow
from estatehub.schemas.auth import RegisterRequest
from estatehub.schemas.user import CurrentUser

logger = logging.getLogger(__name__)


@dataclass
class PasswordResetTicket:
    """Reset token issued to a user, to be delivered out of band."""
    email: str
    username: str
    token: str
    expires_at: datetime


class AuthService:
    """Registration, login, refresh and password reset."""

    def __init__(self, store: UserStore, tokens: TokenService, settings: Settings):
        self.store = store
        self.tokens = tokens
        self.settings = settings

    async def _store_failure(self, operation: str) -> InternalError:
        logger.exception("%s failed", operation)
        await self.store.db.rollback()
        return InternalError()

    # ------------------------------------------------------------------
    # Registration / login
    # ------------------------------------------------------------------

    async def _check_duplicates(self, username: str, email: str) -> None:
        # Email is reported first, even when the username belongs to another user
        if await self.store.find_by_email(email) is not None:
            raise DuplicateEmail()
        if await self.store.find_by_username_or_email(username=username) is not None:
            raise DuplicateUsername()

    async def register(self, data: RegisterRequest) -> tuple[User, SessionTokens]:
        try:
            await self._check_duplicates(data.username, data.email)

            password_hash = await run_in_threadpool(hash_password, data.password)
            user = await self.store.create(
                username=data.username,
                email=data.email.lower(),
                password_hash=password_hash,
                first_name=data.first_name,
                last_name=data.last_name,
                role=UserRole.USER,
                is_active=True,
                is_verified=False,
                verification_token=secrets.token_hex(32),
            )
        except IntegrityError:
            # Lost a race against a concurrent registration
            await self.store.db.rollback()
            await self._check_duplicates(data.username, data.email)
            raise await self._store_failure("Registration")
        except SQLAlchemyError:
            raise await self._store_failure("Registration")

        logger.info("New user registered: %s (%s)", user.username, user.email)
        return user, self.tokens.issue_pair(user.id)

    async def login(self, identifier: str, password: str) -> tuple[User, SessionTokens]:
        try:
            user = await self.store.find_by_login(identifier)

            if user is None or not await run_in_threadpool(
                verify_password, password, user.password_hash
            ):
                logger.warning("Failed login for identifier %r", identifier)
                raise InvalidCredentials()

            if not user.is_active:
                logger.warning("Login attempt on deactivated account: %s", user.username)
                raise AccountDeactivated()

            # Touch updated_at as a last-seen marker, rehash on parameter upgrade
            fields = {"updated_at": utcnow()}
            if needs_rehash(user.password_hash):
                fields["password_hash"] = await run_in_threadpool(hash_password, password)
            user = await self.store.update(user, **fields)
        except SQLAlchemyError:
            raise await self._store_failure("Login")

        logger.info("User logged in: %s", user.username)
        return user, self.tokens.issue_pair(user.id)

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    async def refresh(self, refresh_token: Optional[str]) -> SessionTokens:
        """Rotate both tokens for the holder of a valid refresh token."""
        if not refresh_token:
            raise MissingToken()

        try:
            payload = self.tokens.verify(refresh_token, TokenKind.REFRESH)
        except TokenError as e:
            logger.warning("Refresh token rejected (%s): %s", type(e).__name__, e)
            raise InvalidRefreshToken()

        try:
            user = await self.store.find_by_id(payload.user_id)
        except SQLAlchemyError:
            raise await self._store_failure("Token refresh")

        if user is None or not user.is_active:
            logger.warning("Refresh token for missing or inactive user %s", payload.user_id)
            raise InvalidRefreshToken()

        return self.tokens.issue_pair(user.id)

    async def authenticate(self, token: Optional[str]) -> CurrentUser:
        """Resolve an access token to the identity of an active user."""
        if not token:
            raise Unauthenticated("Access denied. No token provided.")

        try:
            payload = self.tokens.verify(token, TokenKind.ACCESS)
        except TokenError as e:
            logger.warning("Access token rejected (%s): %s", type(e).__name__, e)
            raise Unauthenticated("Invalid token.")

        try:
            identity = await self.store.find_identity(payload.user_id)
        except SQLAlchemyError:
            raise await self._store_failure("Authentication")

        if identity is None or not identity.is_active:
            logger.warning("Access token for missing or inactive user %s", payload.user_id)
            raise Unauthenticated("Invalid token.")

        return identity

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------

    async def request_password_reset(self, email: str) -> Optional[PasswordResetTicket]:
        """
        Store a reset ticket on the user with this email.

        Returns None for unknown emails unless the deployment opts in to
        revealing them, in which case UserNotFound is raised.
        """
        try:
            user = await self.store.find_by_email(email)
            if user is None:
                logger.info("Password reset requested for unknown email")
                if self.settings.password_reset_reveal_unknown_email:
                    raise UserNotFound()
                return None

            expires_at = utcnow() + timedelta(minutes=self.settings.password_reset_expire_minutes)
            token = secrets.token_hex(32)
            await self.store.update(
                user,
                reset_password_token=token,
                reset_password_expires=expires_at,
            )
        except SQLAlchemyError:
            raise await self._store_failure("Password reset request")

        logger.info("Password reset requested for: %s", user.email)
        return PasswordResetTicket(
            email=user.email,
            username=user.username,
            token=token,
            expires_at=expires_at,
        )

    async def complete_password_reset(self, token: str, new_password: str) -> None:
        try:
            user = await self.store.find_by_reset_token(token)
            if user is None:
                raise InvalidOrExpiredToken()

            password_hash = await run_in_threadpool(hash_password, new_password)
            consumed = await self.store.consume_reset_token(user.id, token, password_hash)
        except SQLAlchemyError:
            raise await self._store_failure("Password reset")

        if not consumed:
            raise InvalidOrExpiredToken()

        logger.info("Password reset completed for user: %s", user.username)
