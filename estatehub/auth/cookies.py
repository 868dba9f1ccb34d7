"""
Session cookies.

The cookie names are part of the client contract:
- ``token``: access token
- ``refreshToken``: refresh token
"""

from fastapi import Response

from estatehub.auth.jwt import SessionTokens, TokenKind, TokenService
from estatehub.core.config import Settings

ACCESS_COOKIE = "token"
REFRESH_COOKIE = "refreshToken"


def set_auth_cookies(
    response: Response,
    tokens: SessionTokens,
    token_service: TokenService,
    settings: Settings,
) -> None:
    """Attach both tokens as http-only, same-site strict cookies."""
    for name, value, kind in (
        (ACCESS_COOKIE, tokens.access_token, TokenKind.ACCESS),
        (REFRESH_COOKIE, tokens.refresh_token, TokenKind.REFRESH),
    ):
        response.set_cookie(
            key=name,
            value=value,
            httponly=True,
            secure=settings.is_production,
            samesite="strict",
            max_age=int(token_service.lifetime(kind).total_seconds()),
        )


def clear_auth_cookies(response: Response, settings: Settings) -> None:
    """Instruct the client to drop both session cookies."""
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            key=name,
            httponly=True,
            secure=settings.is_production,
            samesite="strict",
        )
