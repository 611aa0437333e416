"""
Review Pydantic Schemas

Schemas for movie and restaurant reviews.

Schemas:
- Review: A stored review as returned to clients
- ReviewCreate: Request body for creating a review
- ReviewUpdate: Request body for a partial update (content/rating only)
- ReviewEnvelope / ReviewListEnvelope: Uniform response envelopes
- ErrorEnvelope: Uniform failure body

Attributes use snake_case in Python and camelCase on the wire
(alias_generator=to_camel); responses are always serialized by alias.

Request bodies are intentionally permissive: every field is optional and
unconstrained here, so that the service validator can report the complete
list of violations in one response instead of pydantic stopping early.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.services.timestamps import normalize_timestamps


class ReviewType(str, Enum):
    """Which external catalog a review's item belongs to."""

    MOVIE = "movie"
    RESTAURANT = "restaurant"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# Review
# =============================================================================


class Review(_CamelModel):
    """
    A review as stored and returned to clients.

    createdAt/updatedAt are always ISO-8601 strings here; store-native
    timestamps are converted before a Review is built.
    """

    id: str = Field(..., description="Store-assigned review id")
    type: ReviewType = Field(..., description="movie or restaurant")
    item_id: str = Field(..., description="External id of the reviewed item")
    item_title: str = Field(..., description="Item label captured when the review was written")
    content: str = Field(..., description="Review text")
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5 stars")
    author: str = Field(..., description="Author display name")
    author_id: str = Field(..., description="Owning principal, or the anonymous sentinel")
    created_at: str | None = Field(default=None, description="Creation time (ISO-8601)")
    updated_at: str | None = Field(default=None, description="Last modification time (ISO-8601)")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "k3XbQ9mRt2LwYp8ZaV1c",
                "type": "movie",
                "itemId": "tt0848228",
                "itemTitle": "The Avengers",
                "content": "Great ensemble cast and a satisfying finale.",
                "rating": 4,
                "author": "MovieLover123",
                "authorId": "user1",
                "createdAt": "2024-01-15T10:30:00.000000Z",
                "updatedAt": "2024-01-15T10:30:00.000000Z",
            }
        },
    )

    @classmethod
    def from_document(cls, document_id: str, data: dict[str, Any]) -> "Review":
        """Build a Review from a stored document, normalizing its timestamps."""
        return cls.model_validate({**normalize_timestamps(data), "id": document_id})

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict using wire (camelCase) field names."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Request Bodies
# =============================================================================


class ReviewCreate(_CamelModel):
    """
    Request body for POST /reviews.

    Example request body:
    {
        "type": "movie",
        "itemId": "tt0848228",
        "itemTitle": "The Avengers",
        "content": "Great ensemble cast and a satisfying finale.",
        "rating": 4,
        "author": "MovieLover123",
        "authorId": "user1"
    }
    """

    type: Any = Field(default=None, examples=["movie", "restaurant"])
    item_id: Any = Field(default=None, examples=["tt0848228"])
    item_title: Any = Field(default=None, examples=["The Avengers"])
    content: Any = Field(default=None)
    rating: Any = Field(default=None, examples=[4, 5])
    author: Any = Field(default=None, examples=["MovieLover123"])
    author_id: Any = Field(default=None, examples=["user1"])

    def to_payload(self) -> dict[str, Any]:
        """Fields that were sent, keyed by wire name."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class ReviewUpdate(_CamelModel):
    """
    Request body for PUT/PATCH /reviews/{id}.

    Only content and rating are accepted; any other key is ignored.
    Omitted fields stay unchanged.
    """

    content: Any = Field(default=None)
    rating: Any = Field(default=None, examples=[4])

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


# =============================================================================
# Envelopes
# =============================================================================


class ReviewEnvelope(BaseModel):
    """Single-review response."""

    success: bool = True
    data: Review
    message: str | None = None


class ReviewListEnvelope(BaseModel):
    """List response; count is the number of items in data."""

    success: bool = True
    data: list[Review]
    count: int = Field(..., ge=0)


class ErrorEnvelope(BaseModel):
    """Failure response shared by every endpoint."""

    success: bool = False
    error: str
    violations: list[str] | None = None
    detail: str | None = None
