"""
Collection Bootstrapping

Makes sure the well-known collections exist before review traffic arrives.

A collection with no documents gets a single marker document (id "init")
recording that it was initialized, so "empty but initialized" can be told
apart from "never touched". Because the marker id is fixed, running the
bootstrap again, or twice at once, still leaves exactly one marker. When
two runs race, the slower insert fails on the primary key and comes back as a
warning.

Each collection is handled on its own: a failure is logged and reported as
a BootstrapWarning, and the remaining collections carry on.
"""

import asyncio
import logging
from collections.abc import Iterable
from datetime import UTC, datetime

from app.exceptions import BootstrapWarning, StoreUnavailableError
from app.services.reviews import MARKER_DOCUMENT_ID
from app.store import DocumentStore

logger = logging.getLogger(__name__)

DEFAULT_COLLECTIONS = frozenset({"reviews", "movies", "restaurants", "users"})


async def _ensure_collection(store: DocumentStore, name: str) -> BootstrapWarning | None:
    try:
        collection = store.collection(name)
        existing = await collection.limit(1).get()

        if existing:
            logger.info(f"Collection exists: {name}")
            return None

        await collection.document(MARKER_DOCUMENT_ID).set(
            {
                "initialized": True,
                "initializedAt": datetime.now(UTC).isoformat(),
                "message": f"Collection {name} initialized",
            }
        )
        logger.info(f"Created collection: {name}")
        return None

    except (StoreUnavailableError, ValueError) as exc:
        warning = BootstrapWarning(name, str(exc))
        logger.warning(str(warning))
        return warning


async def ensure_collections(
    store: DocumentStore,
    names: Iterable[str] = DEFAULT_COLLECTIONS,
) -> list[BootstrapWarning]:
    """
    Ensure every named collection exists.

    Collections are checked concurrently and independently. Never raises for
    a per-collection failure.

    Args:
        store: Document store to initialize
        names: Collection names

    Returns:
        One BootstrapWarning per collection that could not be ensured
        (empty when all succeeded)
    """
    ordered = sorted(set(names))
    logger.info(f"Initializing collections: {', '.join(ordered)}")

    results = await asyncio.gather(*(_ensure_collection(store, name) for name in ordered))
    warnings = [result for result in results if result is not None]

    if warnings:
        logger.warning(f"Collection bootstrap finished with {len(warnings)} failure(s)")
    else:
        logger.info("All collections initialized")
    return warnings
