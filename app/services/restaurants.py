"""
Restaurant Listings

Static restaurant catalog served to clients as review targets.

The catalog only supplies itemId/itemTitle candidates; reviews are never
checked against it.
"""

from app.schemas.restaurant import Restaurant

RESTAURANTS: tuple[Restaurant, ...] = (
    Restaurant(
        id=1,
        name="Maseru Steakhouse",
        cuisine="Steakhouse",
        location="Maseru, Lesotho",
        rating=4.5,
        price_range="$$$",
        image="/images/restaurant1.jpg",
        description="Premium steakhouse offering the finest cuts in Maseru.",
    ),
    Restaurant(
        id=2,
        name="Thaba-Bosiu Cultural Restaurant",
        cuisine="Traditional Basotho",
        location="Thaba-Bosiu, Lesotho",
        rating=4.8,
        price_range="$$",
        image="/images/restaurant2.jpg",
        description="Authentic Basotho cuisine with cultural performances.",
    ),
    Restaurant(
        id=3,
        name="Maluti Bistro",
        cuisine="International",
        location="Leribe, Lesotho",
        rating=4.2,
        price_range="$$",
        image="/images/restaurant3.jpg",
        description="Cozy bistro offering international and local dishes.",
    ),
)


def list_restaurants() -> list[Restaurant]:
    return list(RESTAURANTS)


def search_restaurants(query: str | None) -> list[Restaurant]:
    """
    Case-insensitive substring search over name, cuisine and location.

    An empty query returns the whole catalog.
    """
    if not query or not query.strip():
        return list_restaurants()

    needle = query.strip().lower()
    return [
        restaurant
        for restaurant in RESTAURANTS
        if needle in restaurant.name.lower()
        or needle in restaurant.cuisine.lower()
        or needle in restaurant.location.lower()
    ]


def get_restaurant(restaurant_id: int) -> Restaurant | None:
    for restaurant in RESTAURANTS:
        if restaurant.id == restaurant_id:
            return restaurant
    return None
