"""
Document Model

One row per stored document. The store is schemaless from the caller's
point of view: every collection shares this table and a document's fields
live in the JSON ``data`` column.

Business Rules:
- (collection, id) is unique
- create_time is set once when the row is inserted
- update_time is reassigned on every write
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Document(Base):
    """
    A stored document.

    Attributes:
        collection: Name of the collection the document belongs to
        id: Document id, unique within its collection
        data: Encoded document fields
        create_time: Commit time of the first write
        update_time: Commit time of the latest write
    """

    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(100), primary_key=True)
    id: Mapped[str] = mapped_column(String(128), primary_key=True)

    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    create_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    update_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_documents_collection", "collection"),
    )

    def __repr__(self) -> str:
        return f"<Document(collection={self.collection!r}, id={self.id!r})>"
