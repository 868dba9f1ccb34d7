"""
EstateHub Database Models

This module exports all SQLAlchemy models for the application.
"""

from estatehub.models.user import User, UserRole
from estatehub.models.property import (
    Property,
    PropertyType,
    ListingType,
    PropertyStatus,
    SavedProperty,
    Review,
    Notification,
)

__all__ = [
    # User models
    "User",
    "UserRole",
    # Listing models
    "Property",
    "PropertyType",
    "ListingType",
    "PropertyStatus",
    "SavedProperty",
    "Review",
    "Notification",
]
