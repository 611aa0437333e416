"""
SQLAlchemy Models Package

The document store keeps every collection in a single table; Document is
the only ORM model. Importing it here registers the table with
Base.metadata before the store creates its schema.
"""

from app.models.document import Document

__all__ = [
    "Document",
]
