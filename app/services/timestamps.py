"""
Timestamp Normalization

Bridges store-native timestamps and the wire format.

- to_wire_format(): Timestamp -> ISO-8601 string (idempotent on strings)
- request_server_timestamp(): sentinel asking the store to stamp commit time

Reviews on the wire always carry createdAt/updatedAt as strings; nothing
store-specific may leak into a response.
"""

from datetime import datetime
from typing import Any

from app.store.values import SERVER_TIMESTAMP, Timestamp

TIMESTAMP_FIELDS = ("createdAt", "updatedAt")


def to_wire_format(value: Any) -> Any:
    """
    Convert a stored timestamp value to its wire representation.

    - None and strings are returned unchanged
    - Timestamp is converted with Timestamp.isoformat()
    - aware datetimes are converted the same way
    - anything else is returned unchanged

    Never raises.
    """
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, Timestamp):
        return value.isoformat()
    if isinstance(value, datetime) and value.tzinfo is not None:
        return Timestamp(value).isoformat()
    return value


def request_server_timestamp():
    """Sentinel resolved by the store to the commit time of the write."""
    return SERVER_TIMESTAMP


def normalize_timestamps(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of data with createdAt/updatedAt in wire format."""
    normalized = dict(data)
    for field in TIMESTAMP_FIELDS:
        if field in normalized:
            normalized[field] = to_wire_format(normalized[field])
    return normalized
