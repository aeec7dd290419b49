# Overview: Exception types shared by services and routes.

"""
Service-layer error hierarchy.

Services raise these; routes translate them into JSON responses via
error_response(). Every error carries a human-readable message and an
optional details dict the UI uses to render precise guidance.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for expected, user-facing failures."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ServiceError, ValueError):
    """400-level input problem. Field-level messages live in details["errors"]."""
    status_code = 400

    def __init__(self, message: str, errors: list[str] | None = None, details: dict | None = None):
        details = dict(details or {})
        if errors:
            details["errors"] = list(errors)
        super().__init__(message, details)
        self.errors = list(errors or [])


class ConflictError(ServiceError, ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""
    status_code = 409


class NotFoundError(ServiceError):
    """404: entity missing or owned by another tenant."""
    status_code = 404


class QuotaExceededError(ServiceError):
    """Plan variant ceiling would be exceeded."""
    status_code = 403


class PlanLimitError(ServiceError):
    """Plan does not allow the requested feature (e.g., more avatars)."""
    status_code = 403


class SerialAllocationError(ServiceError):
    """Serial numbers could not be allocated after bounded retries."""
    status_code = 409


def error_response(exc: ServiceError, *, envelope: bool = False) -> tuple[dict, int]:
    """
    Render a ServiceError as (body, status).

    envelope=True uses the {success: false, error, details} shape of the
    inventory and sales endpoints; otherwise {error, details}.
    """
    body: dict = {"error": exc.message}
    if exc.details:
        body["details"] = exc.details
    if envelope:
        body = {"success": False, **body}
    return body, exc.status_code
