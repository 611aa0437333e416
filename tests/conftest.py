"""
pytest Fixtures for KoboWave API Tests

This file contains shared fixtures used across all test files.

FIXTURE SCOPES:
- function (default): New instance per test function

Every test gets its own in-memory document store, so tests never see each
other's documents and no cleanup between tests is needed.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
# This disables rate limiting and configures identity token verification
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["IDENTITY_TOKEN_SECRET"] = "test-identity-secret-for-unit-tests-0123456789"

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from app.dependencies import get_document_store
from app.main import create_app
from app.schemas.review import Review
from app.services.reviews import ReviewStore
from app.store import DocumentStore

# =============================================================================
# STORE FIXTURES
# =============================================================================
# SQLite in-memory is used because it is fast and needs no external
# database. StaticPool keeps the single connection alive for the whole test;
# without it the in-memory database would vanish between connections.


@pytest_asyncio.fixture
async def document_store() -> AsyncGenerator[DocumentStore, None]:
    """Create an empty document store backed by in-memory SQLite."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    store = DocumentStore(engine)
    await store.create_schema()

    yield store

    await store.close()


@pytest.fixture
def review_store(document_store: DocumentStore) -> ReviewStore:
    """Review service bound to the test document store."""
    return ReviewStore(document_store)


@pytest_asyncio.fixture
async def client(document_store: DocumentStore) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an HTTP client for a fresh app instance using the test store.

    ASGITransport does not run the lifespan, so the store is attached to
    app.state and the dependency is overridden directly.
    """
    app = create_app()
    app.state.document_store = document_store
    app.dependency_overrides[get_document_store] = lambda: document_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


@pytest.fixture
def movie_payload() -> dict:
    """A valid movie review payload."""
    return {
        "type": "movie",
        "itemId": "tt0848228",
        "itemTitle": "The Avengers",
        "content": "Great ensemble cast and a satisfying finale.",
        "rating": 5,
        "author": "MovieLover123",
        "authorId": "user1",
    }


@pytest.fixture
def restaurant_payload() -> dict:
    """A valid restaurant review payload."""
    return {
        "type": "restaurant",
        "itemId": "1",
        "itemTitle": "Maseru Steakhouse",
        "content": "Best steak in Maseru! The service was excellent.",
        "rating": 4,
        "author": "FoodExplorer",
        "authorId": "user3",
    }


@pytest_asyncio.fixture
async def sample_review(review_store: ReviewStore, movie_payload: dict) -> Review:
    """Create a sample movie review."""
    return await review_store.create_review(movie_payload)