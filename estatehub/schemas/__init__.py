"""
Pydantic schemas for API request/response validation.
"""

from estatehub.schemas.common import (
    SuccessResponse,
    ErrorResponse,
    PaginationParams,
    Pagination,
)
from estatehub.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
)
from estatehub.schemas.user import (
    CurrentUser,
    UserResponse,
    UserProfileResponse,
    ProfileUpdate,
    RoleUpdate,
    NotificationResponse,
)
from estatehub.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyDetailResponse,
    ReviewResponse,
    SearchParams,
)

__all__ = [
    # Common
    "SuccessResponse",
    "ErrorResponse",
    "PaginationParams",
    "Pagination",
    # Auth
    "RegisterRequest",
    "LoginRequest",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    # User
    "CurrentUser",
    "UserResponse",
    "UserProfileResponse",
    "ProfileUpdate",
    "RoleUpdate",
    "NotificationResponse",
    # Property
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyResponse",
    "PropertyDetailResponse",
    "ReviewResponse",
    "SearchParams",
]
