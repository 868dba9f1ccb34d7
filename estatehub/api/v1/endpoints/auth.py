"""
Authentication endpoints.

Provides:
- Registration and login (tokens set as http-only cookies)
- Token refresh with rotation
- Logout
- Password reset request/completion
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response, status

from estatehub.auth.cookies import REFRESH_COOKIE, clear_auth_cookies, set_auth_cookies
from estatehub.auth.dependencies import (
    get_app_settings,
    get_auth_service,
    get_current_user,
    get_token_service,
)
from estatehub.auth.jwt import TokenService
from estatehub.auth.service import AuthService
from estatehub.core.config import Settings
from estatehub.core.email import EmailService
from estatehub.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from estatehub.schemas.common import SuccessResponse
from estatehub.schemas.user import CurrentUser, UserResponse

router = APIRouter()


@router.post("/register", response_model=SuccessResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_app_settings),
):
    """Create an account and start a session for it."""
    user, session = await auth.register(data)
    set_auth_cookies(response, session, tokens, settings)

    return SuccessResponse(
        message="User created successfully",
        data=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=SuccessResponse)
async def login(
    data: LoginRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Authenticate with username or email.

    Unknown identifiers and wrong passwords get the same response.
    """
    user, session = await auth.login(data.username, data.password)
    set_auth_cookies(response, session, tokens, settings)

    return SuccessResponse(
        message="Login successful",
        data=UserResponse.model_validate(user),
    )


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    response: Response,
    settings: Settings = Depends(get_app_settings),
):
    """
    Clear the session cookies.

    Tokens are not tracked server-side; the client discards them.
    """
    clear_auth_cookies(response, settings)
    return SuccessResponse(message="Logout successful")


@router.post("/refresh-token", response_model=SuccessResponse)
async def refresh_token(
    request: Request,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_app_settings),
):
    """Issue a new access/refresh pair from the refresh cookie."""
    session = await auth.refresh(request.cookies.get(REFRESH_COOKIE))
    set_auth_cookies(response, session, tokens, settings)
    return SuccessResponse(message="Token refreshed successfully")


@router.post("/forgot-password", response_model=SuccessResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    """Store a reset ticket and email the link in the background."""
    ticket = await auth.request_password_reset(data.email)

    if ticket is not None:
        mailer = EmailService(settings)
        background_tasks.add_task(
            mailer.send_password_reset, ticket.email, ticket.username, ticket.token
        )

    return SuccessResponse(
        message="If that email is registered, password reset instructions have been sent"
    )


@router.post("/reset-password", response_model=SuccessResponse)
async def reset_password(
    data: ResetPasswordRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """Set a new password using a reset token."""
    await auth.complete_password_reset(data.token, data.password)
    return SuccessResponse(message="Password reset successfully")


@router.get("/me", response_model=SuccessResponse)
async def get_current_user_info(
    current_user: CurrentUser = Depends(get_current_user),
):
    """Identity attached to the current session."""
    return SuccessResponse(message="Authenticated", data=current_user)
