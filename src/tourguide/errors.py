from abc import ABC
from enum import StrEnum


class AuthFailure(StrEnum):
    """Why a presented credential could not be resolved to a principal."""

    NO_TOKEN = "no_token"
    INVALID_OR_EXPIRED = "invalid_or_expired"
    PRINCIPAL_MISSING = "principal_missing"
    DEVICE_MISMATCH = "device_mismatch"


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when authentication fails.

    The reason is kept for logs and tests only; every reason is shown to the
    client as the same message.
    """

    def __init__(self, reason: AuthFailure = AuthFailure.INVALID_OR_EXPIRED, message: str = "Please sign in again") -> None:
        super().__init__(message)
        self.reason = reason

    @property
    def clears_credentials(self) -> bool:
        """Whether the client should drop the credentials it presented."""
        return self.reason != AuthFailure.NO_TOKEN


class ValidationError(UserError):
    """Raised when user input fails validation."""


class StoreUnavailableError(Exception):
    """Raised when the backing store cannot be reached or does not answer in time."""

    def __init__(self, message: str = "Session store is unavailable") -> None:
        super().__init__(message)


class UniquenessExhaustedError(Exception):
    """Raised when no unique value could be written within the allowed attempts."""
