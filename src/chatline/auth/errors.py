"""Error types raised by the auth client and form validation."""


class ClientError(Exception):
    """Base class for normalized backend/transport errors.

    Every failure reaching a caller carries one human-readable message.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TransportError(ClientError):
    """Network failure, timeout or unusable response."""


class MalformedResponseError(TransportError):
    """The backend answered with a body missing required fields."""


class AuthError(ClientError):
    """The backend rejected the bearer token (401)."""


class ValidationError(ValueError):
    """Client-side form validation failure (never sent to the backend)."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message
