"""
Document Store Value Types

Store-native values that need more than plain JSON:

- Timestamp: a UTC instant with microsecond precision
- SERVER_TIMESTAMP: a write-time sentinel meaning "the commit time"

Timestamps are persisted inside the JSON column as a tagged object
({"__timestamp__": "<iso>"}) so they decode back into Timestamp rather than
into a plain string.
"""

from datetime import UTC, datetime
from functools import total_ordering
from typing import Any

TIMESTAMP_TAG = "__timestamp__"


@total_ordering
class Timestamp:
    """
    Store-native timestamp.

    Always timezone-aware and normalized to UTC. Use isoformat() to get the
    wire representation, to_datetime() for arithmetic.

    Example:
        >>> ts = Timestamp(datetime(2024, 1, 15, 10, 30, tzinfo=UTC))
        >>> ts.isoformat()
        '2024-01-15T10:30:00.000000Z'
    """

    __slots__ = ("_value",)

    def __init__(self, value: datetime) -> None:
        if value.tzinfo is None:
            raise ValueError("Timestamp requires a timezone-aware datetime")
        self._value = value.astimezone(UTC)

    @classmethod
    def from_isoformat(cls, text: str) -> "Timestamp":
        """Parse a string produced by isoformat()."""
        return cls(datetime.fromisoformat(text.replace("Z", "+00:00")))

    def to_datetime(self) -> datetime:
        """Return the instant as an aware UTC datetime."""
        return self._value

    def isoformat(self) -> str:
        """
        ISO-8601 representation in UTC with a 'Z' suffix.

        Fixed width (microsecond precision), so lexical order matches
        chronological order.
        """
        return self._value.isoformat(timespec="microseconds").replace("+00:00", "Z")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Timestamp):
            return NotImplemented
        return self._value == other._value

    def __lt__(self, other: "Timestamp") -> bool:
        if not isinstance(other, Timestamp):
            return NotImplemented
        return self._value < other._value

    def __hash__(self) -> int:
        return hash(self._value)

    def __repr__(self) -> str:
        return f"Timestamp({self.isoformat()!r})"


class _ServerTimestamp:
    """Sentinel type; resolved to the commit time when a write is applied."""

    _instance = None

    def __new__(cls) -> "_ServerTimestamp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


# =============================================================================
# JSON Encoding
# =============================================================================


def resolve_server_timestamps(value: Any, commit_time: Timestamp) -> Any:
    """Replace every SERVER_TIMESTAMP inside value with commit_time."""
    if value is SERVER_TIMESTAMP:
        return commit_time
    if isinstance(value, dict):
        return {key: resolve_server_timestamps(item, commit_time) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [resolve_server_timestamps(item, commit_time) for item in value]
    return value


def encode_value(value: Any) -> Any:
    """Convert a document value into its JSON-storable form."""
    if value is SERVER_TIMESTAMP:
        raise ValueError("SERVER_TIMESTAMP must be resolved before encoding")
    if isinstance(value, Timestamp):
        return {TIMESTAMP_TAG: value.isoformat()}
    if isinstance(value, datetime):
        return {TIMESTAMP_TAG: Timestamp(value).isoformat()}
    if isinstance(value, dict):
        return {str(key): encode_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(item) for item in value]
    return value


def decode_value(value: Any) -> Any:
    """Inverse of encode_value."""
    if isinstance(value, dict):
        if len(value) == 1 and TIMESTAMP_TAG in value:
            return Timestamp.from_isoformat(value[TIMESTAMP_TAG])
        return {key: decode_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [decode_value(item) for item in value]
    return value


# =============================================================================
# Ordering
# =============================================================================

# Cross-type ordering: null < boolean < number < timestamp < string < other
_TYPE_RANKS = (
    (bool, 1),
    (int, 2),
    (float, 2),
    (Timestamp, 3),
    (str, 4),
)


def sort_key(value: Any) -> tuple[int, Any]:
    """Key placing values of mixed types in a total order."""
    if value is None:
        return (0, 0)
    for kind, rank in _TYPE_RANKS:
        if isinstance(value, kind):
            return (rank, value)
    return (5, repr(value))
