"""
Review Validation

Field-level rules for review payloads, applied before any store write.

Both functions are pure: they look only at the payload and return every
violation they find, in a fixed order, instead of stopping at the first.
An empty list means the payload is acceptable.

Usage:
    violations = validate_for_create(payload)
    if violations:
        raise ValidationError(violations)
"""

from collections.abc import Mapping
from typing import Any

REVIEW_TYPES = ("movie", "restaurant")
MIN_CONTENT_LENGTH = 10
MIN_RATING = 1
MAX_RATING = 5

TYPE_MESSAGE = 'Type must be either "movie" or "restaurant"'
ITEM_ID_MESSAGE = "Item ID is required"
ITEM_TITLE_MESSAGE = "Item title is required"
RATING_MESSAGE = f"Rating must be between {MIN_RATING} and {MAX_RATING}"
AUTHOR_MESSAGE = "Author name is required"


def content_message(min_length: int) -> str:
    return f"Content must be at least {min_length} characters long"


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _valid_item_id(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return not _is_blank(value)


def _valid_content(value: Any, min_length: int) -> bool:
    return isinstance(value, str) and len(value.strip()) >= min_length


def _valid_rating(value: Any) -> bool:
    # bool is an int subclass; True must not pass as a 1-star rating
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        if not value.is_integer():
            return False
        value = int(value)
    return isinstance(value, int) and MIN_RATING <= value <= MAX_RATING


def validate_for_create(
    payload: Mapping[str, Any],
    min_content_length: int = MIN_CONTENT_LENGTH,
) -> list[str]:
    """
    Check a payload for a new review.

    Rules, in reporting order: type, itemId, itemTitle, content, rating,
    author. Every field is required.

    Args:
        payload: Review fields keyed by their wire names
        min_content_length: Minimum content length after trimming

    Returns:
        Human-readable violations (empty when valid)

    Example:
        >>> validate_for_create({"type": "book"})[:2]
        ['Type must be either "movie" or "restaurant"', 'Item ID is required']
    """
    violations = []

    if payload.get("type") not in REVIEW_TYPES:
        violations.append(TYPE_MESSAGE)

    if not _valid_item_id(payload.get("itemId")):
        violations.append(ITEM_ID_MESSAGE)

    if _is_blank(payload.get("itemTitle")):
        violations.append(ITEM_TITLE_MESSAGE)

    if not _valid_content(payload.get("content"), min_content_length):
        violations.append(content_message(min_content_length))

    if not _valid_rating(payload.get("rating")):
        violations.append(RATING_MESSAGE)

    if _is_blank(payload.get("author")):
        violations.append(AUTHOR_MESSAGE)

    return violations


def validate_for_update(
    payload: Mapping[str, Any],
    min_content_length: int = MIN_CONTENT_LENGTH,
) -> list[str]:
    """
    Check a partial update.

    Only content and rating can change. A field that is absent means
    "leave unchanged"; a field that is present (even as None) must be valid.
    """
    violations = []

    if "content" in payload and not _valid_content(payload["content"], min_content_length):
        violations.append(content_message(min_content_length))

    if "rating" in payload and not _valid_rating(payload["rating"]):
        violations.append(RATING_MESSAGE)

    return violations
