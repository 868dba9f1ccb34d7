"""
Property listing schemas.
"""

import re
import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from estatehub.models.property import ListingType, PropertyStatus, PropertyType

ZIP_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")


class SortField(str, Enum):
    """Columns listings may be ordered by."""
    CREATED_AT = "created_at"
    PRICE = "price"
    BEDROOMS = "bedrooms"
    BATHROOMS = "bathrooms"
    AREA = "area"
    TITLE = "title"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class PropertyBase(BaseModel):
    title: str = Field(min_length=5, max_length=100)
    description: str = Field(min_length=20, max_length=2000)
    price: float = Field(ge=0)
    bedrooms: int = Field(ge=0, le=20)
    bathrooms: int = Field(ge=0, le=20)
    area: float = Field(ge=0)
    address: str = Field(min_length=10, max_length=200)
    city: str = Field(min_length=2, max_length=50)
    state: str = Field(min_length=2, max_length=50)
    zip_code: str
    property_type: PropertyType
    listing_type: ListingType
    images: List[str] = Field(default_factory=list)

    @field_validator("zip_code")
    @classmethod
    def validate_zip_code(cls, v: str) -> str:
        if not ZIP_PATTERN.match(v):
            raise ValueError("Please provide a valid ZIP code")
        return v


class PropertyCreate(PropertyBase):
    featured: bool = False


class PropertyUpdate(PropertyBase):
    status: Optional[PropertyStatus] = None
    featured: Optional[bool] = None


class AgentSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None
    phone: Optional[str] = None


class PropertyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    price: float
    bedrooms: int
    bathrooms: int
    area: float
    address: str
    city: str
    state: str
    zip_code: str
    property_type: PropertyType
    listing_type: ListingType
    status: PropertyStatus
    featured: bool
    images: List[str] = Field(default_factory=list)
    agent_id: uuid.UUID
    agent: Optional[AgentSummary] = None
    average_rating: float = 0
    review_count: int = 0
    saved_count: int = 0
    is_saved: Optional[bool] = None
    created_at: datetime
    updated_at: datetime


class SearchParams(BaseModel):
    """Query parameters accepted by the listing search."""

    q: Optional[str] = Field(default=None, max_length=200)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)
    property_type: Optional[PropertyType] = None
    listing_type: Optional[ListingType] = None
    city: Optional[str] = Field(default=None, max_length=50)
    state: Optional[str] = Field(default=None, max_length=50)
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)
    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC


class AgentContact(AgentSummary):
    """Agent summary plus the contact email, shown on the listing detail."""

    email: str


class ReviewerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    avatar: Optional[str] = None


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    user: ReviewerSummary


class PropertyDetailResponse(PropertyResponse):
    """Single listing with its reviews, newest first."""

    agent: Optional[AgentContact] = None
    reviews: List[ReviewResponse] = Field(default_factory=list)
