"""
Review Service Errors

Typed outcomes raised by the service layer and translated into HTTP
responses by the exception handlers registered in app.main.

Error taxonomy:
- ValidationError: payload breaks field-level rules (HTTP 400)
- NotFoundError: the targeted review does not exist (HTTP 404)
- StoreUnavailableError: the document store failed or is unreachable (HTTP 503)
- BootstrapWarning: one collection could not be ensured at startup (logged only)
"""


class ReviewServiceError(Exception):
    """Base class for errors raised by the review service layer."""


class ValidationError(ReviewServiceError):
    """
    A review payload failed validation.

    Carries every violation found, not only the first, so a client can fix
    all fields in one round trip. Raised before any store write.
    """

    def __init__(self, violations: list[str]) -> None:
        self.violations = list(violations)
        super().__init__("Validation failed: " + "; ".join(self.violations))


class NotFoundError(ReviewServiceError):
    """The requested resource does not exist."""

    def __init__(self, resource: str, identifier: str) -> None:
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} with id {identifier} not found")


class StoreUnavailableError(ReviewServiceError):
    """The document store could not be reached or failed unexpectedly."""


class BootstrapWarning(UserWarning):
    """A collection could not be ensured during startup bootstrapping."""

    def __init__(self, collection: str, reason: str) -> None:
        self.collection = collection
        self.reason = reason
        super().__init__(f"Could not ensure collection {collection!r}: {reason}")
