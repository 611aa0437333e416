"""
Pydantic Schemas Package

This package contains Pydantic models for request/response validation.

Schema Naming Convention:
- Xxx: The resource as returned to clients
- XxxCreate: Fields accepted when creating a record
- XxxUpdate: Fields accepted when updating (all optional)
- XxxEnvelope / XxxListEnvelope: Response wrappers ({"success", "data", ...})
"""

from app.schemas.restaurant import (
    Restaurant,
    RestaurantEnvelope,
    RestaurantListEnvelope,
)
from app.schemas.review import (
    ErrorEnvelope,
    Review,
    ReviewCreate,
    ReviewEnvelope,
    ReviewListEnvelope,
    ReviewType,
    ReviewUpdate,
)

__all__ = [
    # Review schemas
    "Review",
    "ReviewType",
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewEnvelope",
    "ReviewListEnvelope",
    "ErrorEnvelope",
    # Restaurant schemas
    "Restaurant",
    "RestaurantEnvelope",
    "RestaurantListEnvelope",
]
