"""Error taxonomy for the storefront API.

Every failure the core can report is a ``StoreError`` subclass carrying the
HTTP status it maps to. Handlers in ``main.py`` render them into the JSON
error envelope.
"""

from typing import Any, List, Optional


class StoreError(Exception):
    """Base exception for the storefront"""
    status_code = 500

    def __init__(self, message: str, details: Optional[List[Any]] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(StoreError):
    status_code = 400


class InvalidStatus(ValidationError):
    pass


class AlreadyExists(ValidationError):
    pass


class Unauthorized(StoreError):
    """No credentials were presented"""
    status_code = 401


class InvalidToken(StoreError):
    """Signature mismatch, expiry, wrong secret or wrong token type"""
    status_code = 401

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)


class InvalidCredentials(StoreError):
    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class SubjectNotFound(StoreError):
    status_code = 401

    def __init__(self, message: str = "Admin not found"):
        super().__init__(message)


class Forbidden(StoreError):
    status_code = 403


class NotFound(StoreError):
    status_code = 404


class Conflict(StoreError):
    status_code = 409
