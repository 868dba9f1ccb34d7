"""
User-related schemas.

None of the response models carry the password hash or the
verification/reset tokens.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from estatehub.models.user import UserRole


class CurrentUser(BaseModel):
    """Identity attached to an authenticated request."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    email: str
    avatar: Optional[str] = None
    role: UserRole
    is_active: bool
    created_at: datetime


class UserResponse(BaseModel):
    """Sanitized user projection."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    is_active: bool
    is_verified: bool
    created_at: datetime
    updated_at: datetime


class UserCounts(BaseModel):
    properties: int = 0
    saved_properties: int = 0
    reviews: int = 0


class UserProfileResponse(UserResponse):
    """Self-view with activity counts."""

    counts: UserCounts = Field(default_factory=UserCounts)


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=30)
    avatar: Optional[str] = Field(default=None, max_length=500)


class RoleUpdate(BaseModel):
    role: UserRole


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    message: str
    is_read: bool
    created_at: datetime
