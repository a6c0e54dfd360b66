# Overview: Typed domain errors shared by services and routes.

"""
Domain error taxonomy.

Services raise these; routes translate them into JSON responses with a
stable machine-readable ``error`` kind and a human-readable ``message``.
Anything that is not a DomainError is an unexpected failure and becomes a 500.
"""

from __future__ import annotations

from flask import jsonify


class DomainError(Exception):
    """Base class for errors that carry an HTTP status and a stable kind."""
    kind = "error"
    status_code = 500

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        payload = {"error": self.kind, "message": self.message}
        if self.field:
            payload["field"] = self.field
        return payload


class UnauthenticatedError(DomainError):
    """401-level: no valid principal."""
    kind = "unauthenticated"
    status_code = 401


class ForbiddenError(DomainError):
    """403-level: principal lacks role, ownership or assignment."""
    kind = "forbidden"
    status_code = 403


class ValidationError(DomainError, ValueError):
    """400-level input problem."""
    kind = "validation_error"
    status_code = 400


class NotFoundError(DomainError):
    """404-level: referenced order/user/message does not exist."""
    kind = "not_found"
    status_code = 404


class ConflictError(DomainError):
    """409-level: precondition on current state no longer holds."""
    kind = "conflict"
    status_code = 409


class StorageError(DomainError):
    """Datastore failure. The transaction has been rolled back."""
    kind = "storage_error"
    status_code = 500


def error_response(exc: DomainError):
    """Flask (response, status) tuple for a DomainError."""
    return jsonify(exc.to_dict()), exc.status_code
