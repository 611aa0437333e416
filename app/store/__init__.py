"""
Document Store Package

A small document database API (collections, documents, equality queries,
server-side commit timestamps) backed by SQLAlchemy.

- client.py: DocumentStore, CollectionReference, DocumentReference, Query
- values.py: Timestamp and the SERVER_TIMESTAMP sentinel
"""

from app.store.client import (
    CollectionReference,
    DocumentNotFound,
    DocumentReference,
    DocumentSnapshot,
    DocumentStore,
    Query,
    WriteResult,
)
from app.store.values import SERVER_TIMESTAMP, Timestamp

__all__ = [
    "CollectionReference",
    "DocumentNotFound",
    "DocumentReference",
    "DocumentSnapshot",
    "DocumentStore",
    "Query",
    "WriteResult",
    "SERVER_TIMESTAMP",
    "Timestamp",
]
