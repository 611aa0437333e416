"""
API Routers Package

This package contains FastAPI routers that handle API endpoints.

Router Structure:
- reviews.py: /api/reviews/* endpoints
- restaurants.py: /api/restaurants/* endpoints

Each router is imported and registered in main.py.
"""

from app.routers.restaurants import router as restaurants_router
from app.routers.reviews import router as reviews_router

__all__ = [
    "restaurants_router",
    "reviews_router",
]
