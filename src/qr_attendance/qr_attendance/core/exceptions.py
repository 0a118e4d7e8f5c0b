from __future__ import annotations

from typing import Optional, Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    def __init__(self, message: str, errors: Optional[Sequence[dict]] = None):
        super().__init__(message)
        self.errors = list(errors or [])


class AuthenticationError(DomainError):
    """Raised when credentials or bearer tokens are invalid."""


class TokenMissingError(AuthenticationError):
    pass


class TokenExpiredError(AuthenticationError):
    pass


class TokenInvalidError(AuthenticationError):
    pass


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    pass


class ConflictError(DomainError):
    """Raised when a unique resource (e.g. email) already exists."""


class CodeGenerationExhausted(DomainError):
    """No unique QR code could be generated within the retry bound."""


class QRRenderError(DomainError):
    pass


class NotificationClientNotInitialized(DomainError):
    """The push-messaging client was not configured at startup."""


class DuplicateEventError(Exception):
    """The store rejected an attendance event for an existing (user, type, day)."""
