"""Domain errors shared by services and routers.

Every error carries a machine-readable ``code`` and a human-readable
``message``; ``status_code`` is the HTTP status the routers respond with.
"""

from __future__ import annotations

from fastapi import HTTPException

from medverify.models.schemas import ErrorDetail


class PortalError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_http(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail=ErrorDetail(
                code=self.code,
                message=self.message,
                details=self.details,
            ).model_dump(),
        )


# --- Rejected before any side effect ---


class InputError(PortalError):
    code = "INVALID_INPUT"
    status_code = 400


class ConfigurationError(PortalError):
    code = "CONFIGURATION_ERROR"
    status_code = 500


# --- Generation provider ---


class UpstreamAuthError(PortalError):
    code = "UPSTREAM_AUTH_ERROR"
    status_code = 502


class UpstreamRateLimitError(PortalError):
    code = "UPSTREAM_RATE_LIMIT"
    status_code = 429


class UpstreamGenericError(PortalError):
    code = "UPSTREAM_ERROR"
    status_code = 502

    def __init__(self, upstream_status: int | None, message: str) -> None:
        self.upstream_status = upstream_status
        label = upstream_status if upstream_status is not None else "connection"
        super().__init__(
            f"Generation service error ({label}): {message}",
            details={"upstream_status": upstream_status},
        )


# --- Storage ---


class StorageError(PortalError):
    """Database failure; the caller may retry."""

    code = "STORAGE_ERROR"
    status_code = 503


class ScoreRecomputeError(StorageError):
    code = "SCORE_RECOMPUTE_FAILED"


# --- Lifecycle ---


class QueryNotFoundError(PortalError):
    code = "QUERY_NOT_FOUND"
    status_code = 404

    def __init__(self, query_id: int) -> None:
        super().__init__(f"Query with ID {query_id} not found")


class ClinicianNotFoundError(PortalError):
    code = "CLINICIAN_NOT_FOUND"
    status_code = 404

    def __init__(self, clinician_id: str) -> None:
        super().__init__(f"Clinician with ID {clinician_id} not found")


class AlreadyVerifiedError(PortalError):
    code = "ALREADY_VERIFIED"
    status_code = 409


class QueryNotVerifiedError(PortalError):
    code = "QUERY_NOT_VERIFIED"
    status_code = 409


class AlreadyRatedError(PortalError):
    code = "ALREADY_RATED"
    status_code = 409


class ClinicianExistsError(PortalError):
    code = "CLINICIAN_EXISTS"
    status_code = 409
