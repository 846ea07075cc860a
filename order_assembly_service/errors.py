"""Error taxonomy for the assembly pipeline.

Every stage returns one of the error records below instead of raising. The
HTTP status of a failure depends only on its ``ErrorKind``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class ErrorKind(str, Enum):
    MISSING_KEY = "missing_key"
    UNKNOWN_KEY = "unknown_key"
    EXPIRED_KEY = "expired_key"
    VALIDATION_FAILED = "validation_failed"
    MALFORMED_INPUT = "malformed_input"
    ENRICHMENT_FAILED = "enrichment_failed"
    PUBLISH_FAILED = "publish_failed"
    INTERNAL_ERROR = "internal_error"


_HTTP_STATUS = {
    ErrorKind.MISSING_KEY: 401,
    ErrorKind.UNKNOWN_KEY: 401,
    ErrorKind.EXPIRED_KEY: 401,
    ErrorKind.VALIDATION_FAILED: 400,
    ErrorKind.MALFORMED_INPUT: 400,
    ErrorKind.ENRICHMENT_FAILED: 502,
    ErrorKind.PUBLISH_FAILED: 503,
    ErrorKind.INTERNAL_ERROR: 500,
}


def http_status_for(kind: ErrorKind) -> int:
    """Map an error kind to the HTTP status it is reported with."""
    return _HTTP_STATUS[kind]


Details = Union[str, list[str]]


@dataclass(frozen=True)
class AuthError:
    """Credential rejected before any payload inspection."""

    kind: ErrorKind
    details: str
    message: str = "Unauthorized"

    @classmethod
    def missing(cls) -> "AuthError":
        return cls(ErrorKind.MISSING_KEY, "API key is required. Provide it in the X-API-Key header.")

    @classmethod
    def unknown(cls) -> "AuthError":
        return cls(ErrorKind.UNKNOWN_KEY, "Invalid API key provided.")

    @classmethod
    def expired(cls) -> "AuthError":
        return cls(ErrorKind.EXPIRED_KEY, "API key has expired.")


@dataclass(frozen=True)
class ValidationFailure:
    """Payload rejected. ``details`` lists every violation found, in field order."""

    kind: ErrorKind
    details: Details
    message: str = "Validation failed"

    @classmethod
    def invalid(cls, errors: list[str]) -> "ValidationFailure":
        return cls(ErrorKind.VALIDATION_FAILED, list(errors))

    @classmethod
    def malformed(cls, reason: str) -> "ValidationFailure":
        return cls(ErrorKind.MALFORMED_INPUT, reason, message="Malformed request body")


@dataclass(frozen=True)
class EnrichmentError:
    """Catalog lookup failed for ``sku``; the whole order is rejected."""

    sku: str
    cause: str
    kind: ErrorKind = field(default=ErrorKind.ENRICHMENT_FAILED, init=False)

    @property
    def message(self) -> str:
        return f"Failed to enrich item with SKU {self.sku}"

    @property
    def details(self) -> str:
        return self.cause


@dataclass(frozen=True)
class PublishError:
    """The queue transport did not accept the assembled order."""

    cause: str
    kind: ErrorKind = field(default=ErrorKind.PUBLISH_FAILED, init=False)
    message: str = field(default="Failed to publish order to queue", init=False)

    @property
    def details(self) -> str:
        return self.cause


@dataclass(frozen=True)
class InternalError:
    """Anything no stage anticipated."""

    cause: str
    kind: ErrorKind = field(default=ErrorKind.INTERNAL_ERROR, init=False)
    message: str = field(default="Internal server error", init=False)
    details: str = field(default="An unexpected error occurred.", init=False)


StageError = Union[AuthError, ValidationFailure, EnrichmentError, PublishError, InternalError]


class QueueTransportError(Exception):
    """Raised by a queue transport when a message could not be handed off."""
