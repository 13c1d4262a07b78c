"""Custom exception hierarchy for pyqikpod."""

from __future__ import annotations


class QikpodError(Exception):
    """Base exception for all pyqikpod errors."""


class QikpodConfigError(QikpodError):
    """Invalid or missing configuration (e.g. no API base URL)."""


class QikpodTransportError(QikpodError):
    """HTTP-level failure (network error, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class QikpodApiError(QikpodError):
    """The service answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class QikpodAuthenticationError(QikpodApiError):
    """Bearer token rejected (HTTP 401).

    The client clears the cached session before this propagates, so the
    caller only has to send the user back to the login screen.
    """


class QikpodNotFoundError(QikpodApiError):
    """HTTP 404 or a ``Records not found.`` failure body."""


class QikpodResponseError(QikpodError):
    """A response did not match the expected record shape."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class QikpodValidationError(QikpodError, ValueError):
    """Local form validation failed.

    ``errors`` maps each offending field name to a user-facing message.
    """

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__("; ".join(f"{field}: {message}" for field, message in self.errors.items()))


class QikpodPermissionError(QikpodError):
    """The signed-in role may not use the requested view."""
