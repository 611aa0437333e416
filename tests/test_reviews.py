"""
Tests for the Reviews API

Tests the HTTP contract:
- List reviews (with type/itemId/authorId filters) and per-item shortcuts
- Get a single review
- Create a review (anonymous or with an identity token)
- Update a review with PUT or PATCH (content/rating only)
- Delete a review, getting the deleted record back

Business Rules:
- Every response uses the {"success": ..., "data"/"error": ...} envelope
- Validation failures list every violation (400)
- Only the owner (by token) may modify a review; anonymous reviews are open
- Store failures return 503 without internal details
"""

from datetime import timedelta

import pytest
import pytest_asyncio
from fastapi import status
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from app.config import get_settings
from app.dependencies import get_document_store
from app.main import create_app
from app.schemas.review import Review
from app.services.security import create_identity_token
from app.services.validation import RATING_MESSAGE, TYPE_MESSAGE
from app.store import DocumentStore


# =============================================================================
# Helper Functions
# =============================================================================


def get_auth_header(user_id: str, name: str | None = None) -> dict:
    """Create authorization header for an identity provider user."""
    token = create_identity_token(user_id, display_name=name)
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# List Reviews
# =============================================================================


class TestListReviews:
    """Tests for GET /api/reviews"""

    @pytest.mark.asyncio
    async def test_list_reviews_empty(self, client: AsyncClient):
        response = await client.get("/api/reviews")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True, "data": [], "count": 0}

    @pytest.mark.asyncio
    async def test_list_reviews_with_data(self, client: AsyncClient, sample_review: Review):
        response = await client.get("/api/reviews")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is True
        assert data["count"] == 1

        review = data["data"][0]
        assert review["id"] == sample_review.id
        assert review["itemId"] == "tt0848228"
        assert review["itemTitle"] == "The Avengers"
        assert review["authorId"] == "user1"
        assert isinstance(review["createdAt"], str)

    @pytest.mark.asyncio
    async def test_list_reviews_newest_first(self, client: AsyncClient, movie_payload: dict):
        for rating in (5, 3):
            await client.post("/api/reviews", json={**movie_payload, "rating": rating})

        response = await client.get(
            "/api/reviews", params={"type": "movie", "itemId": "tt0848228"}
        )

        assert [r["rating"] for r in response.json()["data"]] == [3, 5]

    @pytest.mark.asyncio
    async def test_list_reviews_filters(
        self, client: AsyncClient, movie_payload: dict, restaurant_payload: dict
    ):
        await client.post("/api/reviews", json=movie_payload)
        await client.post("/api/reviews", json=restaurant_payload)

        response = await client.get("/api/reviews", params={"type": "restaurant"})
        assert response.json()["count"] == 1
        assert response.json()["data"][0]["itemTitle"] == "Maseru Steakhouse"

        response = await client.get("/api/reviews", params={"authorId": "user1"})
        assert response.json()["count"] == 1
        assert response.json()["data"][0]["type"] == "movie"

        response = await client.get("/api/reviews", params={"itemId": "missing"})
        assert response.json() == {"success": True, "data": [], "count": 0}

    @pytest.mark.asyncio
    async def test_list_reviews_invalid_type(self, client: AsyncClient):
        response = await client.get("/api/reviews", params={"type": "book"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Validation failed"
        assert data["violations"]

    @pytest.mark.asyncio
    async def test_list_movie_reviews(
        self, client: AsyncClient, movie_payload: dict, restaurant_payload: dict
    ):
        await client.post("/api/reviews", json=movie_payload)
        await client.post("/api/reviews", json={**restaurant_payload, "itemId": "tt0848228"})

        response = await client.get("/api/reviews/movie/tt0848228")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["count"] == 1
        assert data["data"][0]["type"] == "movie"

    @pytest.mark.asyncio
    async def test_list_restaurant_reviews(self, client: AsyncClient, restaurant_payload: dict):
        await client.post("/api/reviews", json=restaurant_payload)

        response = await client.get("/api/reviews/restaurant/1")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["count"] == 1


# =============================================================================
# Get Review
# =============================================================================


class TestGetReview:
    """Tests for GET /api/reviews/{review_id}"""

    @pytest.mark.asyncio
    async def test_get_review(self, client: AsyncClient, sample_review: Review):
        response = await client.get(f"/api/reviews/{sample_review.id}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is True
        assert data["data"] == sample_review.to_wire()

    @pytest.mark.asyncio
    async def test_get_review_not_found(self, client: AsyncClient):
        response = await client.get("/api/reviews/does-not-exist")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"success": False, "error": "Review not found"}


# =============================================================================
# Create Review
# =============================================================================


class TestCreateReview:
    """Tests for POST /api/reviews"""

    @pytest.mark.asyncio
    async def test_create_review(self, client: AsyncClient, movie_payload: dict):
        response = await client.post("/api/reviews", json=movie_payload)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Review created successfully"

        review = data["data"]
        assert review["id"]
        assert review["type"] == "movie"
        assert review["rating"] == 5
        assert review["createdAt"] == review["updatedAt"]

        # The created review is readable by id
        fetched = await client.get(f"/api/reviews/{review['id']}")
        assert fetched.json()["data"] == review

    @pytest.mark.asyncio
    async def test_create_review_without_author_id(
        self, client: AsyncClient, restaurant_payload: dict
    ):
        del restaurant_payload["authorId"]

        response = await client.post("/api/reviews", json=restaurant_payload)

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["data"]["authorId"] == "anonymous"

    @pytest.mark.asyncio
    async def test_create_review_numeric_item_id(self, client: AsyncClient, restaurant_payload: dict):
        restaurant_payload["itemId"] = 2

        response = await client.post("/api/reviews", json=restaurant_payload)

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["data"]["itemId"] == "2"

    @pytest.mark.asyncio
    async def test_create_review_invalid_rating(self, client: AsyncClient, movie_payload: dict):
        movie_payload["rating"] = 6

        response = await client.post("/api/reviews", json=movie_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            "success": False,
            "error": "Validation failed",
            "violations": [RATING_MESSAGE],
        }

        listed = await client.get("/api/reviews")
        assert listed.json()["count"] == 0

    @pytest.mark.asyncio
    async def test_create_review_reports_all_violations(self, client: AsyncClient):
        response = await client.post("/api/reviews", json={"type": "book"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        violations = response.json()["violations"]
        assert len(violations) == 6
        assert violations[0] == TYPE_MESSAGE

    @pytest.mark.asyncio
    async def test_create_review_wrong_types_report_all_violations(self, client: AsyncClient):
        response = await client.post("/api/reviews", json={"type": 5, "rating": 9})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        violations = response.json()["violations"]
        assert len(violations) == 6
        assert violations[0] == TYPE_MESSAGE
        assert RATING_MESSAGE in violations

    @pytest.mark.asyncio
    async def test_create_review_malformed_body(self, client: AsyncClient, movie_payload: dict):
        movie_payload["content"] = ["not", "a", "string"]

        response = await client.post("/api/reviews", json=movie_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_create_review_with_token(self, client: AsyncClient, movie_payload: dict):
        """The token subject wins over a client-supplied authorId."""
        del movie_payload["author"]

        response = await client.post(
            "/api/reviews",
            json=movie_payload,
            headers=get_auth_header("firebase-uid-42", name="Thabo"),
        )

        assert response.status_code == status.HTTP_201_CREATED
        review = response.json()["data"]
        assert review["authorId"] == "firebase-uid-42"
        assert review["author"] == "Thabo"

    @pytest.mark.asyncio
    async def test_create_review_invalid_token(self, client: AsyncClient, movie_payload: dict):
        response = await client.post(
            "/api/reviews",
            json=movie_payload,
            headers={"Authorization": "Bearer not-a-real-token"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"success": False, "error": "Could not validate credentials"}

    @pytest.mark.asyncio
    async def test_create_review_expired_token(self, client: AsyncClient, movie_payload: dict):
        token = create_identity_token("user1", expires_delta=timedelta(minutes=-1))

        response = await client.post(
            "/api/reviews",
            json=movie_payload,
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_create_review_requires_token_when_configured(
        self, client: AsyncClient, movie_payload: dict, monkeypatch
    ):
        monkeypatch.setattr(get_settings(), "require_auth_for_writes", True)

        response = await client.post("/api/reviews", json=movie_payload)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "Authentication token required"


# =============================================================================
# Update Review
# =============================================================================


class TestUpdateReview:
    """Tests for PUT/PATCH /api/reviews/{review_id}"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["PUT", "PATCH"])
    async def test_update_rating(self, client: AsyncClient, sample_review: Review, method: str):
        response = await client.request(
            method,
            f"/api/reviews/{sample_review.id}",
            json={"rating": 3},
            headers=get_auth_header("user1"),
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message"] == "Review updated successfully"

        review = data["data"]
        assert review["rating"] == 3
        assert review["content"] == sample_review.content
        assert review["createdAt"] == sample_review.created_at
        assert review["updatedAt"] > sample_review.updated_at

    @pytest.mark.asyncio
    async def test_update_ignores_immutable_fields(
        self, client: AsyncClient, sample_review: Review
    ):
        response = await client.put(
            f"/api/reviews/{sample_review.id}",
            json={"content": "Even better on the second watch.", "author": "Someone else"},
            headers=get_auth_header("user1"),
        )

        assert response.status_code == status.HTTP_200_OK
        review = response.json()["data"]
        assert review["content"] == "Even better on the second watch."
        assert review["author"] == sample_review.author

    @pytest.mark.asyncio
    async def test_update_invalid_rating(self, client: AsyncClient, sample_review: Review):
        response = await client.put(
            f"/api/reviews/{sample_review.id}",
            json={"rating": 0},
            headers=get_auth_header("user1"),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["violations"] == [RATING_MESSAGE]

    @pytest.mark.asyncio
    async def test_update_not_found(self, client: AsyncClient):
        response = await client.put("/api/reviews/does-not-exist", json={"rating": 4})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Review not found"

    @pytest.mark.asyncio
    async def test_update_own_review(self, client: AsyncClient, sample_review: Review):
        response = await client.patch(
            f"/api/reviews/{sample_review.id}",
            json={"rating": 4},
            headers=get_auth_header("user1"),
        )

        assert response.status_code == status.HTTP_200_OK

    @pytest.mark.asyncio
    async def test_update_other_users_review(self, client: AsyncClient, sample_review: Review):
        response = await client.put(
            f"/api/reviews/{sample_review.id}",
            json={"rating": 1},
            headers=get_auth_header("user2"),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {
            "success": False,
            "error": "You can only modify your own reviews",
        }

        unchanged = await client.get(f"/api/reviews/{sample_review.id}")
        assert unchanged.json()["data"]["rating"] == sample_review.rating

    @pytest.mark.asyncio
    async def test_update_without_token(self, client: AsyncClient, sample_review: Review):
        response = await client.put(f"/api/reviews/{sample_review.id}", json={"rating": 1})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json() == {"success": False, "error": "Authentication token required"}

        unchanged = await client.get(f"/api/reviews/{sample_review.id}")
        assert unchanged.json()["data"]["rating"] == sample_review.rating

    @pytest.mark.asyncio
    async def test_update_anonymous_review_without_token(
        self, client: AsyncClient, restaurant_payload: dict
    ):
        del restaurant_payload["authorId"]
        created = (await client.post("/api/reviews", json=restaurant_payload)).json()["data"]

        response = await client.patch(f"/api/reviews/{created['id']}", json={"rating": 2})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["rating"] == 2

    @pytest.mark.asyncio
    async def test_update_when_token_verification_is_off(
        self, client: AsyncClient, sample_review: Review, monkeypatch
    ):
        monkeypatch.setattr(get_settings(), "identity_token_secret", None)

        response = await client.put(f"/api/reviews/{sample_review.id}", json={"rating": 2})

        assert response.status_code == status.HTTP_200_OK

    @pytest.mark.asyncio
    async def test_update_anonymous_review_with_token(
        self, client: AsyncClient, restaurant_payload: dict
    ):
        del restaurant_payload["authorId"]
        created = (await client.post("/api/reviews", json=restaurant_payload)).json()["data"]

        response = await client.put(
            f"/api/reviews/{created['id']}",
            json={"rating": 2},
            headers=get_auth_header("user2"),
        )

        assert response.status_code == status.HTTP_200_OK


# =============================================================================
# Delete Review
# =============================================================================


class TestDeleteReview:
    """Tests for DELETE /api/reviews/{review_id}"""

    @pytest.mark.asyncio
    async def test_delete_review(self, client: AsyncClient, sample_review: Review):
        response = await client.delete(
            f"/api/reviews/{sample_review.id}", headers=get_auth_header("user1")
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message"] == "Review deleted successfully"
        assert data["data"] == sample_review.to_wire()

        # Verify deletion
        response = await client.get(f"/api/reviews/{sample_review.id}")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_delete_review_not_found(self, client: AsyncClient):
        response = await client.delete("/api/reviews/does-not-exist")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_delete_without_token(self, client: AsyncClient, sample_review: Review):
        response = await client.delete(f"/api/reviews/{sample_review.id}")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["WWW-Authenticate"] == "Bearer"

        still_there = await client.get(f"/api/reviews/{sample_review.id}")
        assert still_there.status_code == status.HTTP_200_OK

    @pytest.mark.asyncio
    async def test_delete_twice(self, client: AsyncClient, sample_review: Review):
        headers = get_auth_header("user1")

        first = await client.delete(f"/api/reviews/{sample_review.id}", headers=headers)
        second = await client.delete(f"/api/reviews/{sample_review.id}", headers=headers)

        assert first.status_code == status.HTTP_200_OK
        assert second.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_delete_other_users_review(self, client: AsyncClient, sample_review: Review):
        response = await client.delete(
            f"/api/reviews/{sample_review.id}",
            headers=get_auth_header("user2"),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

        still_there = await client.get(f"/api/reviews/{sample_review.id}")
        assert still_there.status_code == status.HTTP_200_OK


# =============================================================================
# Store Failures
# =============================================================================


class TestStoreUnavailable:
    """A failing document store maps to 503."""

    @pytest_asyncio.fixture
    async def broken_client(self):
        # No schema has been created, so every query fails
        engine = create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        store = DocumentStore(engine)
        app = create_app()
        app.state.document_store = store
        app.dependency_overrides[get_document_store] = lambda: store

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as test_client:
            yield test_client

        await store.close()

    @pytest.mark.asyncio
    async def test_list_reviews_store_unavailable(self, broken_client: AsyncClient):
        response = await broken_client.get("/api/reviews")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json() == {
            "success": False,
            "error": "Service temporarily unavailable",
        }

    @pytest.mark.asyncio
    async def test_create_review_store_unavailable(
        self, broken_client: AsyncClient, movie_payload: dict
    ):
        response = await broken_client.post("/api/reviews", json=movie_payload)

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


    @pytest.mark.asyncio
    async def test_update_review_store_unavailable(self, broken_client: AsyncClient):
        response = await broken_client.put(
            "/api/reviews/abc", json={"rating": 4}, headers=get_auth_header("user1")
        )

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["error"] == "Service temporarily unavailable"

    @pytest.mark.asyncio
    async def test_delete_review_store_unavailable(self, broken_client: AsyncClient):
        response = await broken_client.delete("/api/reviews/abc")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["error"] == "Service temporarily unavailable"
