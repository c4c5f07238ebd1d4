"""Session state and transition models."""

from collections.abc import Awaitable, Callable
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SessionState(str, Enum):
    """Authentication state of one client context."""

    UNKNOWN = "unknown"              # Before the first check completes
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


class TransitionReason(str, Enum):
    """What caused a state re-derivation."""

    INITIAL = "initial"            # First check on start
    LOCAL = "local"                # This context wrote or cleared credentials
    EXTERNAL = "external"          # Another context changed the durable store
    LOGOUT = "logout"              # Explicit logout
    REVALIDATION = "revalidation"  # Backend token validation


class SessionTransition(BaseModel):
    """A change of session state."""

    model_config = ConfigDict(frozen=True)

    previous: SessionState
    current: SessionState
    reason: TransitionReason = Field(description="Cause of the transition")


TransitionListener = Callable[[SessionTransition], Awaitable[None]]
