"""Session state machine derived from the credential store.

The logged-in flag is never stored. It is re-derived from the credential
store on start, after every local write and whenever another context
changes the durable token. Notification payloads are only a trigger: the
machine always re-reads the store, so several keys changing together
cannot leave it inconsistent.
"""

import logging
from collections.abc import Callable

from ..auth import AuthClient
from ..config import TOKEN_KEY
from ..credentials import CredentialStore
from ..storage import StorageEvent
from .models import SessionState, SessionTransition, TransitionListener, TransitionReason

logger = logging.getLogger(__name__)


class SessionStateMachine:
    """Tracks whether this context is authenticated."""

    def __init__(self, store: CredentialStore, auth_client: AuthClient | None = None):
        """Initialize the machine in the ``unknown`` state.

        Args:
            store: Credential store the state is derived from
            auth_client: Client used by revalidate()
        """
        self._store = store
        self._auth_client = auth_client
        self._state = SessionState.UNKNOWN
        self._listeners: list[TransitionListener] = []
        self._unsubscribe: Callable[[], None] | None = None
        self._reason_override: TransitionReason | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def logged_in(self) -> bool:
        return self._state is SessionState.AUTHENTICATED

    async def start(self) -> SessionState:
        """Subscribe to credential changes and perform the first check."""
        if self._unsubscribe is None:
            self._unsubscribe = self._store.subscribe(self._on_store_event)
        return await self.refresh(TransitionReason.INITIAL)

    def stop(self) -> None:
        """Stop observing the credential store."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def on_transition(self, listener: TransitionListener) -> Callable[[], None]:
        """Register a callback for state transitions.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def refresh(self, reason: TransitionReason = TransitionReason.LOCAL) -> SessionState:
        """Re-derive the state from the credential store."""
        token = await self._store.token()
        current = SessionState.AUTHENTICATED if token else SessionState.ANONYMOUS
        previous = self._state
        if current is previous:
            return current

        self._state = current
        transition = SessionTransition(previous=previous, current=current, reason=reason)
        logger.info("Session %s -> %s (%s)", previous.value, current.value, reason.value)
        for listener in list(self._listeners):
            try:
                await listener(transition)
            except Exception:
                logger.exception("Session transition listener failed")
        return current

    async def logout(self) -> SessionState:
        """Clear credentials in every scope and become anonymous."""
        self._reason_override = TransitionReason.LOGOUT
        try:
            await self._store.clear()
            return await self.refresh(TransitionReason.LOGOUT)
        finally:
            self._reason_override = None

    async def revalidate(self) -> SessionState:
        """Confirm the stored token with the backend.

        A rejected token clears local credentials, moving the machine to
        ``anonymous``.

        Raises:
            RuntimeError: If the machine has no auth client
        """
        if self._auth_client is None:
            raise RuntimeError("revalidate() requires an auth client")

        if await self._store.token() is None:
            return await self.refresh(TransitionReason.REVALIDATION)

        self._reason_override = TransitionReason.REVALIDATION
        try:
            await self._auth_client.validate_token()
            return await self.refresh(TransitionReason.REVALIDATION)
        finally:
            self._reason_override = None

    async def _on_store_event(self, event: StorageEvent) -> None:
        if event.external and event.key != TOKEN_KEY:
            return
        if self._reason_override is not None:
            reason = self._reason_override
        elif event.external:
            reason = TransitionReason.EXTERNAL
        else:
            reason = TransitionReason.LOCAL
        await self.refresh(reason)
