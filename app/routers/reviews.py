"""
Reviews Router

CRUD endpoints for movie and restaurant reviews.

Endpoints:
- GET /reviews - List reviews (optional type, itemId, authorId filters)
- GET /reviews/movie/{item_id} - List reviews for a movie
- GET /reviews/restaurant/{item_id} - List reviews for a restaurant
- GET /reviews/{review_id} - Get a specific review
- POST /reviews - Create a review
- PUT/PATCH /reviews/{review_id} - Update content and/or rating
- DELETE /reviews/{review_id} - Delete a review, returning what was removed

Business Rules:
- Validation failures return every violation at once (400)
- type, itemId, itemTitle and author never change after creation
- Only the owner may modify a review (401 without a token, 403 for another
  user); anonymous reviews may be modified by anyone

Errors raised by the review service (ValidationError, NotFoundError,
StoreUnavailableError) are turned into envelopes by the handlers in main.py.
"""

import logging

from fastapi import APIRouter, HTTPException, Query, Request, status

from app.config import get_settings
from app.dependencies import ReviewStoreDep, WritePrincipal
from app.exceptions import NotFoundError
from app.schemas.review import (
    ErrorEnvelope,
    Review,
    ReviewCreate,
    ReviewEnvelope,
    ReviewListEnvelope,
    ReviewType,
    ReviewUpdate,
)
from app.services.rate_limiter import limiter
from app.services.reviews import ReviewStore
from app.services.security import Principal

logger = logging.getLogger(__name__)

settings = get_settings()

# =============================================================================
# Router Configuration
# =============================================================================

router = APIRouter(
    prefix="/reviews",
    tags=["Reviews"],
    responses={
        404: {"model": ErrorEnvelope, "description": "Review not found"},
        503: {"model": ErrorEnvelope, "description": "Document store unavailable"},
    },
)


# =============================================================================
# Helper Functions
# =============================================================================


async def get_review_or_404(reviews: ReviewStore, review_id: str) -> Review:
    """Get a review by id, or raise NotFoundError."""
    review = await reviews.get_review_by_id(review_id)
    if review is None:
        raise NotFoundError("Review", review_id)
    return review


async def ensure_can_modify(
    reviews: ReviewStore,
    review_id: str,
    principal: Principal | None,
) -> None:
    """
    Reject modifications of someone else's review.

    Reviews owned by the anonymous sentinel stay editable by anyone. Any
    other review needs a token for its owner: 401 without one, 403 for a
    different user. When token verification is not configured every caller
    is anonymous and authorIds are self-declared, so nothing is checked.
    """
    review = await get_review_or_404(reviews, review_id)
    if review.author_id == settings.anonymous_author_id:
        return
    if settings.identity_token_secret is None:
        return

    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if principal.user_id != review.author_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only modify your own reviews",
        )


def list_envelope(reviews: list[Review]) -> ReviewListEnvelope:
    return ReviewListEnvelope(data=reviews, count=len(reviews))


# =============================================================================
# List Endpoints
# =============================================================================


@router.get(
    "",
    response_model=ReviewListEnvelope,
    summary="List reviews",
    description="List reviews, newest first. Filters are combined with AND.",
)
@limiter.limit(settings.rate_limit_default)
async def list_reviews(
    request: Request,
    reviews: ReviewStoreDep,
    review_type: ReviewType | None = Query(
        default=None,
        alias="type",
        description="Only reviews of this type",
    ),
    item_id: str | None = Query(
        default=None,
        alias="itemId",
        min_length=1,
        description="Only reviews of this item",
        examples=["tt0848228"],
    ),
    author_id: str | None = Query(
        default=None,
        alias="authorId",
        min_length=1,
        description="Only reviews owned by this principal",
    ),
) -> ReviewListEnvelope:
    """List reviews with optional equality filters."""
    found = await reviews.list_reviews(
        review_type=review_type,
        item_id=item_id,
        author_id=author_id,
    )
    return list_envelope(found)


@router.get(
    "/movie/{item_id}",
    response_model=ReviewListEnvelope,
    summary="List reviews for a movie",
)
@limiter.limit(settings.rate_limit_default)
async def list_movie_reviews(
    request: Request,
    item_id: str,
    reviews: ReviewStoreDep,
) -> ReviewListEnvelope:
    return list_envelope(await reviews.list_by_movie(item_id))


@router.get(
    "/restaurant/{item_id}",
    response_model=ReviewListEnvelope,
    summary="List reviews for a restaurant",
)
@limiter.limit(settings.rate_limit_default)
async def list_restaurant_reviews(
    request: Request,
    item_id: str,
    reviews: ReviewStoreDep,
) -> ReviewListEnvelope:
    return list_envelope(await reviews.list_by_restaurant(item_id))


# =============================================================================
# Individual Review Endpoints
# =============================================================================


@router.get(
    "/{review_id}",
    response_model=ReviewEnvelope,
    summary="Get a review by ID",
)
@limiter.limit(settings.rate_limit_default)
async def get_review(
    request: Request,
    review_id: str,
    reviews: ReviewStoreDep,
) -> ReviewEnvelope:
    review = await get_review_or_404(reviews, review_id)
    return ReviewEnvelope(data=review)


@router.post(
    "",
    response_model=ReviewEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create a review",
    description="Create a review. All of type, itemId, itemTitle, content, rating and author are required.",
    responses={400: {"model": ErrorEnvelope, "description": "Validation failed"}},
)
@limiter.limit(settings.rate_limit_write)
async def create_review(
    request: Request,
    review_data: ReviewCreate,
    reviews: ReviewStoreDep,
    principal: WritePrincipal,
) -> ReviewEnvelope:
    """
    Create a review.

    For an authenticated caller, authorId is taken from the token and the
    token's display name fills in a missing author.
    """
    payload = review_data.to_payload()
    if principal is not None:
        payload["authorId"] = principal.user_id
        if not payload.get("author") and principal.display_name:
            payload["author"] = principal.display_name

    review = await reviews.create_review(payload)
    return ReviewEnvelope(data=review, message="Review created successfully")


@router.put(
    "/{review_id}",
    response_model=ReviewEnvelope,
    summary="Update a review",
    description="Change content and/or rating. Omitted fields are left unchanged.",
    responses={
        400: {"model": ErrorEnvelope, "description": "Validation failed"},
        401: {"model": ErrorEnvelope, "description": "Owner token required"},
        403: {"model": ErrorEnvelope, "description": "Not the review owner"},
    },
)
@router.patch(
    "/{review_id}",
    response_model=ReviewEnvelope,
    summary="Update a review",
    description="Change content and/or rating. Omitted fields are left unchanged.",
    responses={
        400: {"model": ErrorEnvelope, "description": "Validation failed"},
        401: {"model": ErrorEnvelope, "description": "Owner token required"},
        403: {"model": ErrorEnvelope, "description": "Not the review owner"},
    },
)
@limiter.limit(settings.rate_limit_write)
async def update_review(
    request: Request,
    review_id: str,
    review_data: ReviewUpdate,
    reviews: ReviewStoreDep,
    principal: WritePrincipal,
) -> ReviewEnvelope:
    await ensure_can_modify(reviews, review_id, principal)
    review = await reviews.update_review(review_id, review_data.to_payload())
    return ReviewEnvelope(data=review, message="Review updated successfully")


@router.delete(
    "/{review_id}",
    response_model=ReviewEnvelope,
    summary="Delete a review",
    description="Delete a review and return the deleted record.",
    responses={
        401: {"model": ErrorEnvelope, "description": "Owner token required"},
        403: {"model": ErrorEnvelope, "description": "Not the review owner"},
    },
)
@limiter.limit(settings.rate_limit_write)
async def delete_review(
    request: Request,
    review_id: str,
    reviews: ReviewStoreDep,
    principal: WritePrincipal,
) -> ReviewEnvelope:
    await ensure_can_modify(reviews, review_id, principal)
    review = await reviews.delete_review(review_id)
    return ReviewEnvelope(data=review, message="Review deleted successfully")
