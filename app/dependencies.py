"""
FastAPI Dependencies Module

Dependencies are reusable components injected into route handlers.
FastAPI's Depends() function manages their lifecycle.

Provided here:
- DocumentStoreDep: the process-wide document store (set up in the lifespan)
- ReviewStoreDep: the review service bound to that store
- WritePrincipal: the caller identity for writes, if any

Tests swap the store with app.dependency_overrides[get_document_store].
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.config import get_settings
from app.exceptions import StoreUnavailableError
from app.services.reviews import ReviewStore
from app.services.security import Principal, decode_identity_token
from app.store import DocumentStore


# =============================================================================
# Document Store
# =============================================================================
def get_document_store(request: Request) -> DocumentStore:
    """
    Return the document store created at startup.

    Raises:
        StoreUnavailableError: if the lifespan has not set up a store
    """
    store = getattr(request.app.state, "document_store", None)
    if store is None:
        raise StoreUnavailableError("Document store is not initialized")
    return store


DocumentStoreDep = Annotated[DocumentStore, Depends(get_document_store)]


def get_review_store(store: DocumentStoreDep) -> ReviewStore:
    """Bind the review service to the shared store and configured rules."""
    settings = get_settings()
    return ReviewStore(
        store,
        min_content_length=settings.review_min_content_length,
        anonymous_author_id=settings.anonymous_author_id,
    )


ReviewStoreDep = Annotated[ReviewStore, Depends(get_review_store)]


# =============================================================================
# Caller Identity
# =============================================================================
# HTTPBearer extracts "Authorization: Bearer <token>"; auto_error=False lets
# anonymous requests through with credentials=None.
bearer_scheme = HTTPBearer(auto_error=False)


def get_optional_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal | None:
    """
    Identify the caller from an identity provider token, if one was sent.

    Returns:
        Principal for a valid token, None for anonymous requests or when token
        verification is not configured

    Raises:
        HTTPException: 401 if a token was sent but is invalid
    """
    settings = get_settings()
    if credentials is None or settings.identity_token_secret is None:
        return None

    principal = decode_identity_token(credentials.credentials)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


def get_write_principal(
    principal: Principal | None = Depends(get_optional_principal),
) -> Principal | None:
    """
    Caller identity for create/update/delete.

    Raises:
        HTTPException: 401 if anonymous writes are disabled and no valid token
        was sent
    """
    if principal is None and get_settings().require_auth_for_writes:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


WritePrincipal = Annotated[Principal | None, Depends(get_write_principal)]
