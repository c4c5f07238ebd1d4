"""Session state tracking for chatline."""

from .machine import SessionStateMachine
from .models import SessionState, SessionTransition, TransitionListener, TransitionReason

__all__ = [
    "SessionState",
    "SessionStateMachine",
    "SessionTransition",
    "TransitionListener",
    "TransitionReason",
]
