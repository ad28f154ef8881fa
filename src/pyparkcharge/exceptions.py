"""Library exceptions."""

from __future__ import annotations


class PyParkChargeError(Exception):
    """Base exception for the library."""

    error_type = "unknown"
    default_code: str | None = None

    def __init__(
        self,
        message: str | None = None,
        *,
        error_code: str | None = None,
        detail: str | None = None,
        user_message: str | None = None,
    ) -> None:
        text = message or detail or ""
        super().__init__(text)
        self.error_code = error_code or self.default_code
        self.detail = detail or text
        self.user_message = user_message


class ValidationError(PyParkChargeError):
    """Raised when booking input is malformed or incomplete."""

    error_type = "validation"
    default_code = "validation_error"


class ConflictError(PyParkChargeError):
    """Raised when a requested interval overlaps an existing reservation."""

    error_type = "conflict"
    default_code = "conflict"


class NotFoundError(PyParkChargeError):
    """Raised when a referenced resource or reservation does not exist."""

    error_type = "not_found"
    default_code = "not_found"


class ConfigError(PyParkChargeError):
    """Raised when table manifests or client settings are invalid."""

    error_type = "config"
    default_code = "config_error"


class InfraError(PyParkChargeError):
    """Raised when the storage boundary fails."""

    error_type = "infra"
    default_code = "infra_error"


class NetworkError(InfraError):
    """Raised when network communication fails."""

    error_type = "network"
    default_code = "network_error"


class AuthError(InfraError):
    """Raised when the store rejects our credentials."""

    error_type = "auth"
    default_code = "auth_error"


class StoreError(InfraError):
    """Raised when the store returns an error or a malformed response."""

    error_type = "store"
    default_code = "store_error"


_USER_MESSAGES: tuple[tuple[type[PyParkChargeError], str], ...] = (
    (ValidationError, "Please check the reservation details and try again."),
    (ConflictError, "This time slot is already booked. Please choose a different time."),
    (NotFoundError, "The requested reservation or location could not be found."),
    (InfraError, "Something went wrong on our side. Please try again later."),
)


def user_message_for(error: BaseException) -> str:
    """Return a single human-readable message for an error."""
    if isinstance(error, PyParkChargeError) and error.user_message:
        return error.user_message
    for error_cls, message in _USER_MESSAGES:
        if isinstance(error, error_cls):
            return message
    return "Something went wrong. Please try again later."
