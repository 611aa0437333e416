"""
Review Store

The only component that reads or writes the reviews collection.

Operations:
- list_reviews: equality filters (AND) ordered newest first
- get_review_by_id: point lookup, None when absent
- create_review / update_review / delete_review: validated writes
- list_by_movie / list_by_restaurant: list_reviews with the type fixed

Write protocol:
=============
createdAt/updatedAt are written as the server-timestamp sentinel and only
become concrete values once the store commits. Every write is therefore
followed by a re-read, and the re-read document is what callers get back.

Nothing is retried here. Store failures surface as StoreUnavailableError;
validation failures as ValidationError; missing reviews as NotFoundError
(or None from get_review_by_id).
"""

import logging
from collections.abc import Mapping
from typing import Any

from app.exceptions import NotFoundError, ValidationError
from app.schemas.review import Review, ReviewType
from app.services.timestamps import request_server_timestamp
from app.services.validation import (
    MIN_CONTENT_LENGTH,
    validate_for_create,
    validate_for_update,
)
from app.store import DocumentNotFound, DocumentSnapshot, DocumentStore

logger = logging.getLogger(__name__)

REVIEWS_COLLECTION = "reviews"
MARKER_DOCUMENT_ID = "init"
ANONYMOUS_AUTHOR_ID = "anonymous"
UPDATABLE_FIELDS = ("content", "rating")


class ReviewStore:
    """
    Review CRUD and queries over a DocumentStore.

    Stateless apart from the store handle; safe to share between concurrent
    requests.
    """

    def __init__(
        self,
        store: DocumentStore,
        min_content_length: int = MIN_CONTENT_LENGTH,
        anonymous_author_id: str = ANONYMOUS_AUTHOR_ID,
    ) -> None:
        self._store = store
        self._min_content_length = min_content_length
        self._anonymous_author_id = anonymous_author_id

    @property
    def _collection(self):
        return self._store.collection(REVIEWS_COLLECTION)

    def _to_review(self, snapshot: DocumentSnapshot) -> Review | None:
        if not snapshot.exists or snapshot.id == MARKER_DOCUMENT_ID:
            return None
        return Review.from_document(snapshot.id, snapshot.to_dict())

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def list_reviews(
        self,
        review_type: ReviewType | str | None = None,
        item_id: str | None = None,
        author_id: str | None = None,
    ) -> list[Review]:
        """
        List reviews matching every supplied filter, newest first.

        Args:
            review_type: Only reviews of this type
            item_id: Only reviews of this item
            author_id: Only reviews owned by this principal

        Returns:
            Matching reviews ordered by createdAt descending (empty if none)
        """
        query = self._collection
        if review_type:
            query = query.where("type", ReviewType(review_type).value)
        if item_id:
            query = query.where("itemId", str(item_id))
        if author_id:
            query = query.where("authorId", author_id)

        snapshots = await query.order_by_time("createdAt", descending=True).get()
        reviews = []
        for snapshot in snapshots:
            review = self._to_review(snapshot)
            if review is not None:
                reviews.append(review)
        return reviews

    async def list_by_movie(self, item_id: str) -> list[Review]:
        return await self.list_reviews(review_type=ReviewType.MOVIE, item_id=item_id)

    async def list_by_restaurant(self, item_id: str) -> list[Review]:
        return await self.list_reviews(review_type=ReviewType.RESTAURANT, item_id=item_id)

    async def get_review_by_id(self, review_id: str) -> Review | None:
        """Return the review, or None if no such review exists."""
        snapshot = await self._collection.document(review_id).get()
        return self._to_review(snapshot)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create_review(self, payload: Mapping[str, Any]) -> Review:
        """
        Validate and store a new review.

        Raises:
            ValidationError: payload is invalid (nothing is written)
        """
        violations = validate_for_create(payload, self._min_content_length)
        if violations:
            raise ValidationError(violations)

        author_id = payload.get("authorId")
        if not isinstance(author_id, str) or not author_id.strip():
            author_id = self._anonymous_author_id

        document = {
            "type": payload["type"],
            "itemId": str(payload["itemId"]).strip(),
            "itemTitle": payload["itemTitle"].strip(),
            "content": payload["content"].strip(),
            "rating": int(payload["rating"]),
            "author": payload["author"].strip(),
            "authorId": author_id.strip(),
            "createdAt": request_server_timestamp(),
            "updatedAt": request_server_timestamp(),
        }

        ref = self._collection.document()
        await ref.set(document)
        review = self._to_review(await ref.get())
        if review is None:
            raise NotFoundError("Review", ref.id)

        logger.info(f"Created review {review.id} for {review.type.value} {review.item_id}")
        return review

    async def update_review(self, review_id: str, payload: Mapping[str, Any]) -> Review:
        """
        Apply a partial update to content and/or rating.

        Fields other than content and rating are ignored; updatedAt is always
        refreshed.

        Raises:
            NotFoundError: no such review
            ValidationError: a supplied field is invalid (nothing is written)
        """
        ref = self._collection.document(review_id)
        if self._to_review(await ref.get()) is None:
            raise NotFoundError("Review", review_id)

        changes = {field: payload[field] for field in UPDATABLE_FIELDS if field in payload}
        violations = validate_for_update(changes, self._min_content_length)
        if violations:
            raise ValidationError(violations)

        if "content" in changes:
            changes["content"] = changes["content"].strip()
        if "rating" in changes:
            changes["rating"] = int(changes["rating"])
        changes["updatedAt"] = request_server_timestamp()

        try:
            await ref.update(changes)
        except DocumentNotFound:
            # deleted between the existence check and the write
            raise NotFoundError("Review", review_id) from None

        review = self._to_review(await ref.get())
        if review is None:
            raise NotFoundError("Review", review_id)

        logger.info(f"Updated review {review_id} ({', '.join(sorted(changes))})")
        return review

    async def delete_review(self, review_id: str) -> Review:
        """
        Delete a review and return its last state.

        Raises:
            NotFoundError: no such review
        """
        if review_id == MARKER_DOCUMENT_ID:
            raise NotFoundError("Review", review_id)

        # read and delete happen in one transaction
        review = self._to_review(await self._collection.document(review_id).pop())
        if review is None:
            raise NotFoundError("Review", review_id)

        logger.info(f"Deleted review {review_id}")
        return review
