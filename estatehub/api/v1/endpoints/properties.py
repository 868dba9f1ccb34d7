"""
Property listing endpoints.

Browsing and search are public; publishing requires the AGENT or ADMIN
role, and only the owning agent or an admin may change a listing.
"""

import logging
import math
import uuid
from typing import Annotated, Any, Iterable, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from estatehub.auth.dependencies import get_current_user, get_optional_user, require_role
from estatehub.core.database import get_db
from estatehub.core.exceptions import BadRequest, Forbidden, NotFound
from estatehub.models.property import Property, PropertyStatus, Review, SavedProperty
from estatehub.models.user import UserRole
from estatehub.schemas.common import Pagination, PaginationParams, SuccessResponse
from estatehub.schemas.property import (
    AgentContact,
    PropertyCreate,
    PropertyDetailResponse,
    PropertyResponse,
    PropertyUpdate,
    ReviewResponse,
    SearchParams,
    SortOrder,
)
from estatehub.schemas.user import CurrentUser

logger = logging.getLogger(__name__)

router = APIRouter()

FEATURED_LIMIT = 6


# =============================================================================
# Helpers
# =============================================================================

def round_rating(value: Optional[float]) -> float:
    """Round an average rating half-up to one decimal; unrated is 0."""
    if not value:
        return 0.0
    return math.floor(value * 10 + 0.5) / 10


def build_search_filters(params: SearchParams) -> list[Any]:
    """Translate search parameters into SQLAlchemy conditions on available listings."""
    conditions: list[Any] = [Property.status == PropertyStatus.AVAILABLE]

    if params.q:
        pattern = f"%{params.q}%"
        conditions.append(
            or_(
                Property.title.ilike(pattern),
                Property.description.ilike(pattern),
                Property.address.ilike(pattern),
                Property.city.ilike(pattern),
                Property.state.ilike(pattern),
            )
        )
    if params.min_price is not None:
        conditions.append(Property.price >= params.min_price)
    if params.max_price is not None:
        conditions.append(Property.price <= params.max_price)
    if params.property_type:
        conditions.append(Property.property_type == params.property_type)
    if params.listing_type:
        conditions.append(Property.listing_type == params.listing_type)
    if params.city:
        conditions.append(Property.city.ilike(f"%{params.city}%"))
    if params.state:
        conditions.append(Property.state.ilike(f"%{params.state}%"))
    if params.bedrooms is not None:
        conditions.append(Property.bedrooms >= params.bedrooms)
    if params.bathrooms is not None:
        conditions.append(Property.bathrooms >= params.bathrooms)

    return conditions


async def _listing_stats(db: AsyncSession, ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, dict]:
    """Average rating, review count and save count per listing."""
    ids = list(ids)
    stats = {pid: {"average_rating": 0.0, "review_count": 0, "saved_count": 0} for pid in ids}
    if not ids:
        return stats

    ratings = await db.execute(
        select(Review.property_id, func.avg(Review.rating), func.count(Review.id))
        .where(Review.property_id.in_(ids))
        .group_by(Review.property_id)
    )
    for pid, avg, count in ratings:
        stats[pid]["average_rating"] = round_rating(avg)
        stats[pid]["review_count"] = count

    saves = await db.execute(
        select(SavedProperty.property_id, func.count(SavedProperty.id))
        .where(SavedProperty.property_id.in_(ids))
        .group_by(SavedProperty.property_id)
    )
    for pid, count in saves:
        stats[pid]["saved_count"] = count

    return stats


async def _to_responses(db: AsyncSession, properties: list[Property]) -> list[PropertyResponse]:
    stats = await _listing_stats(db, (p.id for p in properties))
    return [
        PropertyResponse.model_validate(p).model_copy(update=stats[p.id])
        for p in properties
    ]


async def _load_property(db: AsyncSession, property_id: uuid.UUID) -> Property:
    result = await db.execute(
        select(Property)
        .where(Property.id == property_id)
        .options(selectinload(Property.agent))
        .execution_options(populate_existing=True)
    )
    prop = result.scalar_one_or_none()
    if prop is None:
        raise NotFound("Property not found")
    return prop


def _ensure_can_modify(prop: Property, user: CurrentUser, action: str) -> None:
    if prop.agent_id != user.id and user.role != UserRole.ADMIN:
        raise Forbidden(f"Not authorized to {action} this property")


# =============================================================================
# Public listing routes
# =============================================================================

@router.get("", response_model=SuccessResponse)
async def search_properties(
    params: Annotated[SearchParams, Query()],
    db: AsyncSession = Depends(get_db),
):
    """Search available listings with filters, sorting and pagination."""
    conditions = build_search_filters(params)

    sort_column = getattr(Property, params.sort_by.value)
    order = sort_column.asc() if params.sort_order == SortOrder.ASC else sort_column.desc()

    total = (
        await db.execute(select(func.count(Property.id)).where(*conditions))
    ).scalar_one()
    result = await db.execute(
        select(Property)
        .where(*conditions)
        .options(selectinload(Property.agent))
        .order_by(order)
        .offset((params.page - 1) * params.limit)
        .limit(params.limit)
    )
    properties = list(result.scalars())

    return SuccessResponse(
        message="Properties retrieved",
        data={
            "properties": await _to_responses(db, properties),
            "pagination": Pagination.create(params.page, params.limit, total),
            "search_query": params.q,
        },
    )


@router.get("/featured", response_model=SuccessResponse)
async def get_featured_properties(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Property)
        .where(Property.featured.is_(True), Property.status == PropertyStatus.AVAILABLE)
        .options(selectinload(Property.agent))
        .order_by(Property.created_at.desc())
        .limit(FEATURED_LIMIT)
    )
    return SuccessResponse(
        message="Featured properties retrieved",
        data=await _to_responses(db, list(result.scalars())),
    )


# =============================================================================
# Per-user routes
# =============================================================================

@router.get("/user/my-properties", response_model=SuccessResponse)
async def get_user_properties(
    paging: Annotated[PaginationParams, Query()],
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Listings published by the caller, any status."""
    condition = Property.agent_id == current_user.id
    total = (await db.execute(select(func.count(Property.id)).where(condition))).scalar_one()
    result = await db.execute(
        select(Property)
        .where(condition)
        .options(selectinload(Property.agent))
        .order_by(Property.created_at.desc())
        .offset(paging.offset)
        .limit(paging.limit)
    )
    return SuccessResponse(
        message="Properties retrieved",
        data={
            "properties": await _to_responses(db, list(result.scalars())),
            "pagination": Pagination.create(paging.page, paging.limit, total),
        },
    )


@router.get("/user/saved", response_model=SuccessResponse)
async def get_saved_properties(
    paging: Annotated[PaginationParams, Query()],
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    condition = SavedProperty.user_id == current_user.id
    total = (await db.execute(select(func.count(SavedProperty.id)).where(condition))).scalar_one()
    result = await db.execute(
        select(SavedProperty)
        .where(condition)
        .options(selectinload(SavedProperty.property).selectinload(Property.agent))
        .order_by(SavedProperty.created_at.desc())
        .offset(paging.offset)
        .limit(paging.limit)
    )
    saved = list(result.scalars())
    responses = await _to_responses(db, [s.property for s in saved])

    return SuccessResponse(
        message="Saved properties retrieved",
        data={
            "saved_properties": [
                {"id": s.id, "saved_at": s.created_at, "property": prop}
                for s, prop in zip(saved, responses)
            ],
            "pagination": Pagination.create(paging.page, paging.limit, total),
        },
    )


# =============================================================================
# Single listing
# =============================================================================

@router.get("/{property_id}", response_model=SuccessResponse)
async def get_property_by_id(
    property_id: uuid.UUID,
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Listing detail with reviews; logged-in callers also learn whether they saved it."""
    prop = await _load_property(db, property_id)
    summary = (await _to_responses(db, [prop]))[0]

    reviews = await db.execute(
        select(Review)
        .where(Review.property_id == prop.id)
        .options(selectinload(Review.user))
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    response = PropertyDetailResponse(
        **summary.model_dump(exclude={"agent"}),
        agent=AgentContact.model_validate(prop.agent),
        reviews=[ReviewResponse.model_validate(r) for r in reviews.scalars()],
    )

    if current_user is not None:
        saved = await db.execute(
            select(SavedProperty.id).where(
                SavedProperty.user_id == current_user.id,
                SavedProperty.property_id == prop.id,
            )
        )
        response = response.model_copy(update={"is_saved": saved.first() is not None})

    return SuccessResponse(message="Property retrieved", data=response)


@router.post("", response_model=SuccessResponse, status_code=status.HTTP_201_CREATED)
async def create_property(
    data: PropertyCreate,
    current_user: CurrentUser = Depends(require_role(UserRole.AGENT, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    prop = Property(**data.model_dump(), agent_id=current_user.id)
    db.add(prop)
    await db.commit()

    prop = await _load_property(db, prop.id)
    logger.info("New property created: %s by %s", prop.title, current_user.username)
    return SuccessResponse(
        message="Property created successfully",
        data=(await _to_responses(db, [prop]))[0],
    )


@router.put("/{property_id}", response_model=SuccessResponse)
async def update_property(
    property_id: uuid.UUID,
    data: PropertyUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    prop = await _load_property(db, property_id)
    _ensure_can_modify(prop, current_user, "update")

    for name, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(prop, name, value)
    await db.commit()

    prop = await _load_property(db, property_id)
    logger.info("Property updated: %s by %s", prop.title, current_user.username)
    return SuccessResponse(
        message="Property updated successfully",
        data=(await _to_responses(db, [prop]))[0],
    )


@router.delete("/{property_id}", response_model=SuccessResponse)
async def delete_property(
    property_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    prop = await _load_property(db, property_id)
    _ensure_can_modify(prop, current_user, "delete")

    title = prop.title
    await db.delete(prop)
    await db.commit()

    logger.info("Property deleted: %s by %s", title, current_user.username)
    return SuccessResponse(message="Property deleted successfully")


# =============================================================================
# Saved listings
# =============================================================================

@router.post("/{property_id}/save", response_model=SuccessResponse)
async def save_property(
    property_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await _load_property(db, property_id)

    existing = await db.execute(
        select(SavedProperty.id).where(
            SavedProperty.user_id == current_user.id,
            SavedProperty.property_id == property_id,
        )
    )
    if existing.first() is not None:
        raise BadRequest("Property already saved")

    db.add(SavedProperty(user_id=current_user.id, property_id=property_id))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise BadRequest("Property already saved")

    return SuccessResponse(message="Property saved successfully")


@router.delete("/{property_id}/unsave", response_model=SuccessResponse)
async def unsave_property(
    property_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(SavedProperty).where(
            SavedProperty.user_id == current_user.id,
            SavedProperty.property_id == property_id,
        )
    )
    saved = result.scalar_one_or_none()
    if saved is None:
        raise NotFound("Property not found in saved list")

    await db.delete(saved)
    await db.commit()
    return SuccessResponse(message="Property removed from saved list")
