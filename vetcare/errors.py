"""Domain errors raised by the service layer.

The HTTP boundary maps each class to a status code in ``vetcare.main``.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for errors reported synchronously to the caller."""

    status_code = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def to_payload(self) -> dict[str, Any]:
        return {"detail": self.detail}


class ValidationError(DomainError):
    """Malformed input or a broken cross-entity reference."""

    status_code = 400

    def __init__(self, detail: str, errors: list[dict[str, str]] | None = None) -> None:
        super().__init__(detail)
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, message: str) -> ValidationError:
        return cls(message, errors=[{"field": field, "message": message}])

    def to_payload(self) -> dict[str, Any]:
        return {"detail": self.detail, "errors": self.errors}


class NotFoundError(DomainError):
    status_code = 404

    def __init__(self, resource: str) -> None:
        super().__init__(f"{resource} not found")
        self.resource = resource


class UnauthorizedError(DomainError):
    """No authenticated identity; the client redirects to login."""

    status_code = 401

    def __init__(self, login_url: str, detail: str = "Authentication required") -> None:
        super().__init__(detail)
        self.login_url = login_url

    def to_payload(self) -> dict[str, Any]:
        return {"detail": self.detail, "login_url": self.login_url}


class ForbiddenError(DomainError):
    """Authenticated, but lacking the required role or membership."""

    status_code = 403

    def __init__(self, detail: str = "You do not have permission to access this resource") -> None:
        super().__init__(detail)


class ConflictError(DomainError):
    """The request clashes with the current state of a record."""

    status_code = 409


class ExternalServiceError(DomainError):
    """A collaborator service (document generator) failed to answer."""

    status_code = 502


__all__ = [
    "ConflictError",
    "DomainError",
    "ExternalServiceError",
    "ForbiddenError",
    "NotFoundError",
    "UnauthorizedError",
    "ValidationError",
]
