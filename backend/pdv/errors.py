# Overview: Error taxonomy shared by services and routes; each error knows its HTTP status.

from __future__ import annotations


class PDVError(Exception):
    """Base class for errors that map to a JSON `{error}` response."""
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(PDVError):
    """400-level input problem."""
    status_code = 400


class AuthError(PDVError):
    """Bad credentials, missing or invalid token."""
    status_code = 401


class ForbiddenError(AuthError):
    """Authenticated, but the principal lacks the required role or tenant."""
    status_code = 403


class NotFoundError(PDVError):
    """Referenced entity is absent (within the caller's tenant)."""
    status_code = 404


class ConflictError(PDVError):
    """409-level business rule conflict (e.g., duplicate email)."""
    status_code = 409


class StorageError(PDVError):
    """Persistent store query failed for a reason other than connectivity."""
    status_code = 500


class StorageUnavailableError(StorageError):
    """Connection-level failure; callers retry the operation on the fallback store."""
    status_code = 503


class SaleError(PDVError):
    """Raised when a sale could not be written; nothing was persisted."""
    status_code = 500
