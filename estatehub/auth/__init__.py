"""
Authentication and Authorization module.

Provides:
- JWT access/refresh tokens signed with separate secrets
- Password hashing (Argon2id)
- Registration, login, refresh and password reset orchestration
- Role-based access control dependencies
"""

from estatehub.auth.jwt import (
    TokenService,
    TokenKind,
    TokenPayload,
    SessionTokens,
    TokenError,
    ExpiredTokenError,
    InvalidSignatureError,
    MalformedTokenError,
)
from estatehub.auth.password import (
    hash_password,
    verify_password,
    needs_rehash,
)
from estatehub.auth.service import AuthService, PasswordResetTicket
from estatehub.auth.store import UserStore
from estatehub.auth.dependencies import (
    get_current_user,
    get_optional_user,
    check_role,
    require_role,
)

__all__ = [
    # JWT
    "TokenService",
    "TokenKind",
    "TokenPayload",
    "SessionTokens",
    "TokenError",
    "ExpiredTokenError",
    "InvalidSignatureError",
    "MalformedTokenError",
    # Password
    "hash_password",
    "verify_password",
    "needs_rehash",
    # Core
    "AuthService",
    "PasswordResetTicket",
    "UserStore",
    # Dependencies
    "get_current_user",
    "get_optional_user",
    "check_role",
    "require_role",
]
