"""
User management endpoints.

Every route requires authentication; listing, role changes and
deactivation require the ADMIN role.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from estatehub.auth.dependencies import get_current_user, get_user_store, require_role
from estatehub.auth.store import UserStore
from estatehub.core.database import get_db
from estatehub.core.exceptions import BadRequest, NotFound, UserNotFound
from estatehub.models.property import Notification, Property, Review, SavedProperty
from estatehub.models.user import User, UserRole
from estatehub.schemas.common import Pagination, SuccessResponse
from estatehub.schemas.user import (
    CurrentUser,
    NotificationResponse,
    ProfileUpdate,
    RoleUpdate,
    UserCounts,
    UserProfileResponse,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _activity_counts(db: AsyncSession, user_ids: list[uuid.UUID]) -> dict[uuid.UUID, UserCounts]:
    """Listings, saved listings and reviews per user, one grouped query each."""
    counts = {user_id: {} for user_id in user_ids}
    for field, column in (
        ("properties", Property.agent_id),
        ("saved_properties", SavedProperty.user_id),
        ("reviews", Review.user_id),
    ):
        result = await db.execute(
            select(column, func.count()).where(column.in_(user_ids)).group_by(column)
        )
        for user_id, n in result.all():
            counts[user_id][field] = n
    return {user_id: UserCounts(**fields) for user_id, fields in counts.items()}


# =============================================================================
# Own profile
# =============================================================================

@router.get("/profile", response_model=SuccessResponse)
async def get_user_profile(
    current_user: CurrentUser = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
    db: AsyncSession = Depends(get_db),
):
    """Current user's profile with activity counts."""
    user = await store.find_by_id(current_user.id)
    if user is None:
        raise UserNotFound()

    counts = (await _activity_counts(db, [user.id]))[user.id]
    profile = UserProfileResponse.model_validate(user).model_copy(update={"counts": counts})
    return SuccessResponse(message="Profile retrieved", data=profile)


@router.put("/profile", response_model=SuccessResponse)
async def update_user_profile(
    data: ProfileUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
):
    """Update name, phone and avatar. Other fields are not writable here."""
    user = await store.find_by_id(current_user.id)
    if user is None:
        raise UserNotFound()

    user = await store.update(user, **data.model_dump(exclude_unset=True))
    logger.info("User profile updated: %s", user.username)

    return SuccessResponse(
        message="Profile updated successfully",
        data=UserResponse.model_validate(user),
    )


@router.delete("/account", response_model=SuccessResponse)
async def delete_user_account(
    current_user: CurrentUser = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
):
    """
    Delete the caller's account and everything it owns.

    Outstanding tokens stop working because verification reloads the user.
    """
    await store.delete(current_user.id)
    logger.info("User account deleted: %s (%s)", current_user.username, current_user.email)
    return SuccessResponse(message="Account deleted successfully")


# =============================================================================
# Notifications
# =============================================================================

@router.get("/notifications", response_model=SuccessResponse)
async def get_user_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = False,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Paginated notifications, newest first."""
    conditions = [Notification.user_id == current_user.id]
    if unread_only:
        conditions.append(Notification.is_read.is_(False))

    total = (
        await db.execute(select(func.count(Notification.id)).where(*conditions))
    ).scalar_one()
    result = await db.execute(
        select(Notification)
        .where(*conditions)
        .order_by(Notification.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )

    return SuccessResponse(
        message="Notifications retrieved",
        data={
            "notifications": [NotificationResponse.model_validate(n) for n in result.scalars()],
            "pagination": Pagination.create(page, limit, total),
        },
    )


@router.put("/notifications/{notification_id}/read", response_model=SuccessResponse)
async def mark_notification_as_read(
    notification_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == current_user.id,
        )
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFound("Notification not found")

    notification.is_read = True
    await db.commit()
    return SuccessResponse(message="Notification marked as read")


# =============================================================================
# Administration
# =============================================================================

@router.get("", response_model=SuccessResponse)
async def get_all_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    role: Optional[UserRole] = None,
    search: Optional[str] = Query(None, max_length=100),
    current_user: CurrentUser = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """List all users with pagination, filtering and activity counts."""
    conditions = []
    if role:
        conditions.append(User.role == role)
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(
                User.username.ilike(pattern),
                User.email.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
            )
        )

    total = (await db.execute(select(func.count(User.id)).where(*conditions))).scalar_one()
    result = await db.execute(
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )

    users = list(result.scalars())
    counts = await _activity_counts(db, [u.id for u in users])

    return SuccessResponse(
        message="Users retrieved",
        data={
            "users": [
                UserProfileResponse.model_validate(u).model_copy(update={"counts": counts[u.id]})
                for u in users
            ],
            "pagination": Pagination.create(page, limit, total),
        },
    )


@router.put("/{user_id}/role", response_model=SuccessResponse)
async def update_user_role(
    user_id: uuid.UUID,
    data: RoleUpdate,
    current_user: CurrentUser = Depends(require_role(UserRole.ADMIN)),
    store: UserStore = Depends(get_user_store),
):
    user = await store.find_by_id(user_id)
    if user is None:
        raise UserNotFound()

    user = await store.update(user, role=data.role)
    logger.info(
        "User role updated: %s -> %s by %s",
        user.username, data.role.value, current_user.username,
    )
    return SuccessResponse(
        message="User role updated successfully",
        data=UserResponse.model_validate(user),
    )


@router.put("/{user_id}/deactivate", response_model=SuccessResponse)
async def deactivate_user(
    user_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_role(UserRole.ADMIN)),
    store: UserStore = Depends(get_user_store),
):
    """Deactivate an account. Its tokens are rejected from the next request on."""
    user = await store.find_by_id(user_id)
    if user is None:
        raise UserNotFound()

    if user.id == current_user.id:
        raise BadRequest("Cannot deactivate your own account")

    user = await store.update(user, is_active=False)
    logger.info("User deactivated: %s by %s", user.username, current_user.username)
    return SuccessResponse(
        message="User deactivated successfully",
        data=UserResponse.model_validate(user),
    )
