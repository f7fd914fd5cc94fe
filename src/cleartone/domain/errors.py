"""Structured errors raised by the clearance core.

Every error carries an :class:`ErrorKind` plus, where it applies, the offending
field name and the request status observed when the error was raised. Callers
branch on ``kind`` (or the concrete class) and never on message text.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

    from cleartone.domain.model.enums import ClearanceStatus


class ErrorKind(StrEnum):
    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    INVALID_TRANSITION = "invalid_transition"
    CONCURRENT_MODIFICATION = "concurrent_modification"
    NOT_FOUND = "not_found"
    NO_CANDIDATES = "no_candidates"
    REPOSITORY_UNAVAILABLE = "repository_unavailable"
    EXTRACTION_FAILED = "extraction_failed"
    INVALID_FINGERPRINT = "invalid_fingerprint"


class ClearanceError(Exception):
    """Base class for all domain errors."""

    kind: ErrorKind
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        status: ClearanceStatus | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.status = status

    def as_dict(self) -> dict[str, str | None]:
        return {
            "kind": str(self.kind),
            "message": self.message,
            "field": self.field,
            "status": str(self.status) if self.status is not None else None,
        }


class ValidationError(ClearanceError):
    """Caller-supplied data violates a required field or value constraint."""

    kind = ErrorKind.VALIDATION


class Unauthorized(ClearanceError):
    """Caller is not the party entitled to perform the operation."""

    kind = ErrorKind.UNAUTHORIZED


class InvalidTransition(ClearanceError):
    """The requested move is not legal from the request's current status."""

    kind = ErrorKind.INVALID_TRANSITION


class ConcurrentModification(ClearanceError):
    """The request changed since the caller read it; re-read and retry."""

    kind = ErrorKind.CONCURRENT_MODIFICATION
    retryable = True

    def __init__(
        self,
        message: str,
        *,
        expected_version: int | None = None,
        actual_version: int | None = None,
    ) -> None:
        super().__init__(message, field="version")
        self.expected_version = expected_version
        self.actual_version = actual_version


class NotFound(ClearanceError):
    """A referenced entity does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id: UUID | str) -> None:
        super().__init__(f"{entity} {entity_id} not found", field=entity)
        self.entity_id = entity_id


class NoCandidates(ClearanceError):
    """The candidate pool handed to the matcher was empty."""

    kind = ErrorKind.NO_CANDIDATES


class RepositoryUnavailable(ClearanceError):
    """Storage timed out or could not be reached; nothing was written."""

    kind = ErrorKind.REPOSITORY_UNAVAILABLE
    retryable = True


class ExtractionFailed(ClearanceError):
    """An audio payload could not be fingerprinted."""

    kind = ErrorKind.EXTRACTION_FAILED


class InvalidFingerprint(ClearanceError):
    """A fingerprint token is empty or malformed."""

    kind = ErrorKind.INVALID_FINGERPRINT


__all__ = [
    "ClearanceError",
    "ConcurrentModification",
    "ErrorKind",
    "ExtractionFailed",
    "InvalidFingerprint",
    "InvalidTransition",
    "NoCandidates",
    "NotFound",
    "RepositoryUnavailable",
    "Unauthorized",
    "ValidationError",
]
