#!/usr/bin/env python3
"""
Document Store Seed Script

Populates the document store with sample reviews for local development.

USAGE:
    # Make sure you're in the project root with venv activated
    python scripts/seed_data.py

    # Keep reviews that are already there
    python scripts/seed_data.py --keep

This script:
1. Connects to the document store using app settings
2. Ensures the well-known collections exist
3. Deletes existing reviews (unless --keep is given)
4. Creates sample movie and restaurant reviews through the review service,
   so every sample passes the same validation as API traffic
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.config import get_settings
from app.services.bootstrap import ensure_collections
from app.services.reviews import REVIEWS_COLLECTION, ReviewStore
from app.store import DocumentStore

SAMPLE_REVIEWS = [
    {
        "type": "movie",
        "itemId": "tt0848228",
        "itemTitle": "The Avengers",
        "content": "Great ensemble cast and a satisfying finale.",
        "rating": 5,
        "author": "MovieLover123",
        "authorId": "user1",
    },
    {
        "type": "movie",
        "itemId": "tt0848228",
        "itemTitle": "The Avengers",
        "content": "Fun, but the middle act drags on for too long.",
        "rating": 3,
        "author": "CinemaCritic",
        "authorId": "user2",
    },
    {
        "type": "movie",
        "itemId": "tt0111161",
        "itemTitle": "The Shawshank Redemption",
        "content": "A patient, moving film that rewards every minute.",
        "rating": 5,
        "author": "MovieLover123",
        "authorId": "user1",
    },
    {
        "type": "restaurant",
        "itemId": "1",
        "itemTitle": "Maseru Steakhouse",
        "content": "Best steak in Maseru! The service was excellent.",
        "rating": 4,
        "author": "FoodExplorer",
        "authorId": "user3",
    },
    {
        "type": "restaurant",
        "itemId": "2",
        "itemTitle": "Thaba-Bosiu Cultural Restaurant",
        "content": "Authentic Basotho food with a wonderful cultural show.",
        "rating": 5,
        "author": "FoodExplorer",
        "authorId": "user3",
    },
    {
        "type": "restaurant",
        "itemId": "3",
        "itemTitle": "Maluti Bistro",
        "content": "Cozy spot, although the menu is quite small.",
        "rating": 3,
        "author": "Anonymous Diner",
    },
]


async def clear_reviews(store: DocumentStore) -> int:
    """Delete every review, keeping the collection's marker document."""
    print("Clearing existing reviews...")
    reviews = ReviewStore(store)
    existing = await reviews.list_reviews()
    for review in existing:
        await store.collection(REVIEWS_COLLECTION).document(review.id).delete()
    print(f"Deleted {len(existing)} reviews.")
    return len(existing)


async def create_reviews(store: DocumentStore) -> int:
    print("Creating reviews...")
    reviews = ReviewStore(store)
    for payload in SAMPLE_REVIEWS:
        await reviews.create_review(payload)
    print(f"Created {len(SAMPLE_REVIEWS)} reviews.")
    return len(SAMPLE_REVIEWS)


async def seed_store(clear_existing: bool = True) -> None:
    """
    Main function to seed the document store.

    Args:
        clear_existing: If True, deletes existing reviews before seeding.
    """
    settings = get_settings()

    print("=" * 60)
    print("Starting document store seed...")
    print("=" * 60)

    store = DocumentStore.from_url(settings.database_url)

    try:
        await store.create_schema()

        warnings = await ensure_collections(store, settings.bootstrap_collections_set)
        for warning in warnings:
            print(f"Warning: {warning}")

        if clear_existing:
            await clear_reviews(store)

        created = await create_reviews(store)

        print("=" * 60)
        print("Document store seeding completed successfully!")
        print("=" * 60)
        print("\nSummary:")
        print(f"  - Reviews: {created}")
        print(f"\nYou can now access the API at http://localhost:{settings.port}")
        print(f"API documentation at http://localhost:{settings.port}/docs")

    except Exception as e:
        print(f"Error seeding document store: {e}")
        raise
    finally:
        await store.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the KoboWave document store")
    parser.add_argument(
        "--keep",
        action="store_true",
        help="keep existing reviews instead of deleting them first",
    )
    args = parser.parse_args()
    asyncio.run(seed_store(clear_existing=not args.keep))
