"""
Restaurants Router

Read-only restaurant listings that clients pick review targets from.

Endpoints:
- GET /restaurants - All restaurants
- GET /restaurants/search?query= - Search by name, cuisine or location
- GET /restaurants/{restaurant_id} - One restaurant
"""

from fastapi import APIRouter, HTTPException, Query, Request, status

from app.config import get_settings
from app.schemas.restaurant import RestaurantEnvelope, RestaurantListEnvelope
from app.services.rate_limiter import limiter
from app.services.restaurants import get_restaurant, list_restaurants, search_restaurants

settings = get_settings()

router = APIRouter(
    prefix="/restaurants",
    tags=["Restaurants"],
    responses={
        404: {"description": "Restaurant not found"},
    },
)


@router.get(
    "",
    response_model=RestaurantListEnvelope,
    summary="List restaurants",
)
@limiter.limit(settings.rate_limit_default)
async def get_restaurants(request: Request) -> RestaurantListEnvelope:
    restaurants = list_restaurants()
    return RestaurantListEnvelope(data=restaurants, count=len(restaurants))


@router.get(
    "/search",
    response_model=RestaurantListEnvelope,
    summary="Search restaurants",
    description="Case-insensitive match on name, cuisine or location. No query returns everything.",
)
@limiter.limit(settings.rate_limit_default)
async def find_restaurants(
    request: Request,
    query: str | None = Query(default=None, max_length=100, examples=["maseru"]),
) -> RestaurantListEnvelope:
    restaurants = search_restaurants(query)
    return RestaurantListEnvelope(data=restaurants, count=len(restaurants))


@router.get(
    "/{restaurant_id}",
    response_model=RestaurantEnvelope,
    summary="Get a restaurant by ID",
)
@limiter.limit(settings.rate_limit_default)
async def get_restaurant_details(request: Request, restaurant_id: int) -> RestaurantEnvelope:
    restaurant = get_restaurant(restaurant_id)
    if restaurant is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Restaurant not found",
        )
    return RestaurantEnvelope(data=restaurant)
