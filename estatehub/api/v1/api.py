"""
API Router configuration.

Aggregates all v1 API endpoints with proper tagging and prefixes.
"""

from fastapi import APIRouter

from estatehub.api.v1.endpoints import auth, properties, users

api_router = APIRouter()

# Authentication (public except /me)
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["authentication"]
)

# Profiles, notifications and user administration
api_router.include_router(
    users.router,
    prefix="/users",
    tags=["users"]
)

# Listings and saved listings
api_router.include_router(
    properties.router,
    prefix="/properties",
    tags=["properties"]
)
