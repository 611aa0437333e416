"""
Security Service

Verifies identity tokens issued by the external identity provider.

The service never issues credentials itself. A client signs in with the
identity provider and sends the resulting JWT as "Authorization: Bearer
<token>"; this module checks the signature and expiry and extracts who the
caller is.

Claims used:
- sub: principal id, stored as a review's authorId
- name: display name, used as the review author when the body omits it

Usage:
    from app.services.security import decode_identity_token

    principal = decode_identity_token(token)
    if principal is None:
        ...  # reject
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from app.config import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller."""

    user_id: str
    display_name: str | None = None


def decode_identity_token(token: str) -> Principal | None:
    """
    Decode and validate an identity token.

    Args:
        token: The JWT token string

    Returns:
        Principal if the token is valid, None if it is invalid, expired,
        lacks a subject, or token verification is not configured
    """
    settings = get_settings()
    if settings.identity_token_secret is None:
        return None

    try:
        payload = jwt.decode(
            token,
            settings.identity_token_secret,
            algorithms=[settings.identity_token_algorithm],
        )
    except JWTError as e:
        logger.warning(f"Identity token decode error: {e}")
        return None

    subject = payload.get("sub")
    if not subject:
        logger.warning("Identity token has no subject")
        return None

    name = payload.get("name")
    return Principal(user_id=str(subject), display_name=name if isinstance(name, str) else None)


def create_identity_token(
    user_id: str,
    display_name: str | None = None,
    expires_delta: timedelta = timedelta(minutes=15),
) -> str:
    """
    Sign a token the same way the identity provider does.

    Used by tests and local tooling; production tokens come from the
    identity provider.

    Example:
        >>> token = create_identity_token("user1", "Thabo")
        >>> token.count(".") == 2  # JWT format: header.payload.signature
        True
    """
    settings = get_settings()
    if settings.identity_token_secret is None:
        raise RuntimeError("IDENTITY_TOKEN_SECRET is not configured")

    claims = {"sub": user_id, "exp": datetime.now(UTC) + expires_delta}
    if display_name:
        claims["name"] = display_name

    return jwt.encode(
        claims,
        settings.identity_token_secret,
        algorithm=settings.identity_token_algorithm,
    )
