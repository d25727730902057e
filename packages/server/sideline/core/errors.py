"""
Error taxonomy for the access engine.

Each error is an ``HTTPException`` so services can raise it and FastAPI
renders it without per-route handling.
"""

from __future__ import annotations

from fastapi import HTTPException


class AccessError(HTTPException):
    status_code = 400
    code = "access_error"

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)

    def __str__(self) -> str:
        return str(self.detail)


class ValidationError(AccessError):
    """Malformed or incompatible role request, or missing ancillary data."""
    status_code = 422
    code = "validation_error"


class ConflictError(AccessError):
    """A pending request or active membership already exists."""
    status_code = 409
    code = "conflict"


class NotFoundError(AccessError):
    status_code = 404
    code = "not_found"


class InvalidStateError(AccessError):
    """The request is no longer pending."""
    status_code = 409
    code = "invalid_state"


class AuthorizationError(AccessError):
    status_code = 403
    code = "forbidden"


class RetryableError(AccessError):
    """A write failed part-way; nothing was committed and the call may be retried."""
    status_code = 503
    code = "retryable"
