"""
Chatline: an async client core for an AI chat backend.

Credential storage, auth calls, session state and a persisted chat log,
each module hiding one design decision behind a small interface.
"""

__version__ = "0.1.0"

from .auth import AuthClient, AuthError, ClientError, TransportError, ValidationError
from .chat import ChatClient, ChatMessage, ChatSession, Sender
from .config import ClientSettings, load_settings
from .context import ClientContext, open_context
from .credentials import Credential, CredentialScope, CredentialStore, UserProfile
from .session import SessionState, SessionStateMachine, SessionTransition, TransitionReason
from .storage import StorageArea, StorageError, StorageEvent, create_storage_area

__all__ = [
    "AuthClient",
    "AuthError",
    "ChatClient",
    "ChatMessage",
    "ChatSession",
    "ClientContext",
    "ClientError",
    "ClientSettings",
    "Credential",
    "CredentialScope",
    "CredentialStore",
    "Sender",
    "SessionState",
    "SessionStateMachine",
    "SessionTransition",
    "StorageArea",
    "StorageError",
    "StorageEvent",
    "TransitionReason",
    "TransportError",
    "UserProfile",
    "ValidationError",
    "create_storage_area",
    "load_settings",
    "open_context",
]
