"""
FastAPI dependencies for authentication and authorization.

Provides:
- get_current_user: Resolve the caller from the session cookie or bearer token
- get_optional_user: Same, but anonymous callers get None
- require_role: Dependency factory gating a route on roles
"""

import logging
from typing import Iterable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from estatehub.auth.cookies import ACCESS_COOKIE
from estatehub.auth.jwt import TokenService
from estatehub.auth.service import AuthService
from estatehub.auth.store import UserStore
from estatehub.core.config import Settings
from estatehub.core.database import get_db
from estatehub.core.exceptions import AppError, Forbidden, Unauthenticated
from estatehub.models.user import UserRole
from estatehub.schemas.user import CurrentUser

logger = logging.getLogger(__name__)

# HTTP Bearer token extractor
security = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_user_store(db: AsyncSession = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_auth_service(
    store: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_app_settings),
) -> AuthService:
    return AuthService(store, tokens, settings)


def extract_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    """
    Find the access token on a request.

    Looks for token in:
    1. Cookie: token
    2. Authorization: Bearer <token> header
    """
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    if credentials:
        return credentials.credentials
    return None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth: AuthService = Depends(get_auth_service),
) -> CurrentUser:
    """
    Authenticate the caller and attach the identity to ``request.state.user``.

    Raises:
        Unauthenticated: If the token is missing or invalid, or the user is
            gone or deactivated
    """
    identity = await auth.authenticate(extract_token(request, credentials))
    request.state.user = identity
    return identity


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth: AuthService = Depends(get_auth_service),
) -> Optional[CurrentUser]:
    """
    Try to get current user, but return None if not authenticated.
    Useful for endpoints that personalize output for logged-in users.
    """
    try:
        return await get_current_user(request, credentials, auth)
    except AppError as e:
        logger.debug("Continuing anonymously: %s", e.message)
        request.state.user = None
        return None


def check_role(identity: Optional[CurrentUser], allowed_roles: Iterable[UserRole]) -> CurrentUser:
    """
    Authorize an identity against a set of roles.

    Raises:
        Unauthenticated: If no identity is attached
        Forbidden: If the identity's role is not allowed
    """
    if identity is None:
        raise Unauthenticated("Access denied. Please authenticate first.")
    if identity.role not in set(allowed_roles):
        raise Forbidden()
    return identity


def require_role(*allowed_roles: UserRole):
    """
    Dependency to require specific role(s).

    Usage:
        @router.get("/admin-only")
        async def admin_endpoint(
            user: CurrentUser = Depends(require_role(UserRole.ADMIN))
        ):
            ...
    """
    async def role_checker(
        current_user: CurrentUser = Depends(get_current_user),
    ) -> CurrentUser:
        return check_role(current_user, allowed_roles)

    return role_checker
