"""
Restaurant Pydantic Schemas

Read-only listing data; restaurants are not stored by this service.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Restaurant(BaseModel):
    """A restaurant that can be reviewed."""

    id: int = Field(..., description="Restaurant id (used as a review itemId)")
    name: str = Field(..., description="Restaurant name (used as a review itemTitle)")
    cuisine: str
    location: str
    rating: float = Field(..., ge=0, le=5, description="Listing rating")
    price_range: str = Field(..., examples=["$$"])
    image: str | None = None
    description: str | None = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class RestaurantEnvelope(BaseModel):
    success: bool = True
    data: Restaurant


class RestaurantListEnvelope(BaseModel):
    success: bool = True
    data: list[Restaurant]
    count: int = Field(..., ge=0)
