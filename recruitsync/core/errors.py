"""
Error taxonomy shared by the API and the sync client.

Server-side errors carry the HTTP status the app factory maps them to.
Client-side errors (TransientFetchError, ResponseParseError) are raised by
result sources and consumed by the synchronizer's retry loop.
"""

from __future__ import annotations


class RecruitSyncError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


# --- access scoping ----------------------------------------------------------

CREDENTIAL_MISSING = "credential_missing"
CREDENTIAL_EXPIRED = "credential_expired"
CREDENTIAL_INVALID = "credential_invalid"
CREDENTIAL_SCOPE = "credential_scope"


class CredentialError(RecruitSyncError):
    """Missing/expired/foreign run credential. Terminal, never retried."""

    status_code = 401

    def __init__(self, code: str = CREDENTIAL_INVALID, message: str = "") -> None:
        self.code = code
        super().__init__(message or "Session expired. Please start a new search to view results.")


# --- store / registry ----------------------------------------------------------

class NotFoundError(RecruitSyncError):
    status_code = 404
    code = "not_found"


class RunNotFound(NotFoundError):
    code = "run_not_found"

    def __init__(self, run_id: str) -> None:
        super().__init__(f"Run not found: {run_id}")
        self.run_id = run_id


class InvalidTransitionError(RecruitSyncError):
    status_code = 409
    code = "invalid_transition"


class FilterValidationError(RecruitSyncError):
    """Malformed filter input, rejected before any query is built."""

    status_code = 422
    code = "invalid_filter"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        return {"code": self.code, "field": self.field, "message": self.message}


# --- client side -------------------------------------------------------------

class TransientFetchError(RecruitSyncError):
    """Network hiccup or 5xx; the caller may retry."""

    status_code = 503
    code = "transient_fetch_error"


class ResponseParseError(TransientFetchError):
    """Body was not the JSON shape we expected, even after one retry."""

    code = "response_parse_error"


# --- message generation ------------------------------------------------------

class GenerationError(RecruitSyncError):
    status_code = 502
    code = "generation_failed"
    retryable = True

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "retryable": self.retryable}
