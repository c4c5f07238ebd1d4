from .client import AuthClient, normalize_error_message
from .errors import AuthError, ClientError, MalformedResponseError, TransportError, ValidationError
from .models import AuthResponse, ProfileUpdate, normalize_user

__all__ = [
    "AuthClient",
    "AuthError",
    "AuthResponse",
    "ClientError",
    "MalformedResponseError",
    "ProfileUpdate",
    "TransportError",
    "ValidationError",
    "normalize_error_message",
    "normalize_user",
]
