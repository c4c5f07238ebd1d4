"""Credential store over a durable and an ephemeral storage area.

Hidden design decisions:
- Which storage area backs each scope
- Serialization of the cached user record
- Precedence when both scopes hold a token (durable wins)
- Swallowing of storage failures
"""

import logging
from collections.abc import Callable
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from ..config import TOKEN_KEY, USER_KEY
from ..storage import StorageArea, StorageError, StorageEvent, StorageListener
from .models import Credential, CredentialScope, UserProfile

logger = logging.getLogger(__name__)


class CredentialStore:
    """Bearer token and profile snapshot persisted in one of two scopes.

    Writes and clears never raise on storage failure: a store that cannot
    persist (full, disabled) degrades to a no-op and callers carry on.
    """

    def __init__(
        self,
        durable: StorageArea,
        ephemeral: StorageArea,
        context_id: str | None = None
    ):
        """Initialize the store.

        Args:
            durable: Area that survives restarts and is shared across contexts
            ephemeral: Area private to this context
            context_id: Identifier of the owning context (generated if omitted)
        """
        self._areas = {
            CredentialScope.DURABLE: durable,
            CredentialScope.EPHEMERAL: ephemeral,
        }
        self._context_id = context_id or str(uuid4())
        self._listeners: list[StorageListener] = []

    @property
    def context_id(self) -> str:
        return self._context_id

    @property
    def durable(self) -> StorageArea:
        return self._areas[CredentialScope.DURABLE]

    @property
    def ephemeral(self) -> StorageArea:
        return self._areas[CredentialScope.EPHEMERAL]

    async def write(
        self,
        token: str,
        user: UserProfile | None = None,
        scope: CredentialScope = CredentialScope.DURABLE
    ) -> bool:
        """Persist a token and optional user into ``scope``.

        The other scope is emptied so at most one scope holds a token.

        Args:
            token: Bearer token (required, non-empty)
            user: Profile snapshot to cache
            scope: Target scope

        Returns:
            True if the token was persisted, False if storage was unavailable

        Raises:
            ValueError: If token is empty
        """
        if not token:
            raise ValueError("token must be a non-empty string")

        previous = await self.token()
        area = self._areas[scope]
        try:
            replaced = await area.get_item(TOKEN_KEY)
            await area.set_item(TOKEN_KEY, token, source=self._context_id)
        except StorageError as e:
            logger.warning("Could not persist credentials in %s scope: %s", scope.value, e)
            return False

        try:
            if user is not None:
                await area.set_item(USER_KEY, user.model_dump_json(), source=self._context_id)
            else:
                await area.remove_item(USER_KEY, source=self._context_id)
        except StorageError as e:
            logger.warning("Could not persist credentials in %s scope: %s", scope.value, e)
            await self._restore_token(area, replaced)
            return False

        other = self._other(scope)
        await self._remove_keys(self._areas[other])

        logger.debug("Credentials written to %s scope", scope.value)
        await self._emit_local(previous, token, area.backend_type)
        return True

    async def read(self) -> Credential | None:
        """Return the active credential, durable scope first."""
        for scope in (CredentialScope.DURABLE, CredentialScope.EPHEMERAL):
            area = self._areas[scope]
            try:
                token = await area.get_item(TOKEN_KEY)
                if not token:
                    continue
                raw_user = await area.get_item(USER_KEY)
            except StorageError as e:
                logger.warning("Could not read %s scope: %s", scope.value, e)
                continue
            return Credential(token=token, user=self._parse_user(raw_user), scope=scope)
        return None

    async def token(self) -> str | None:
        """Return the active bearer token, if any."""
        credential = await self.read()
        return credential.token if credential else None

    async def active_scope(self) -> CredentialScope | None:
        """Return the scope currently holding the token, if any."""
        credential = await self.read()
        return credential.scope if credential else None

    async def update_user(self, user: UserProfile) -> bool:
        """Refresh the cached user in whichever scope holds the token.

        Returns:
            True if the cache was updated, False if no scope holds a token
            or storage was unavailable
        """
        scope = await self.active_scope()
        if scope is None:
            return False
        try:
            await self._areas[scope].set_item(
                USER_KEY, user.model_dump_json(), source=self._context_id
            )
        except StorageError as e:
            logger.warning("Could not update cached user: %s", e)
            return False
        return True

    async def clear(self) -> None:
        """Remove token and user from both scopes. Idempotent."""
        previous = await self.token()
        for area in self._areas.values():
            await self._remove_keys(area)
        if previous is not None:
            logger.debug("Credentials cleared")
            await self._emit_local(previous, None, self.durable.backend_type)

    def subscribe(self, listener: StorageListener) -> Callable[[], None]:
        """Register a listener for credential changes.

        The listener receives this context's own writes (``external=False``)
        and every durable-area change made by other contexts.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)
        remove_external = self.durable.subscribe(listener, context_id=self._context_id)

        def unsubscribe() -> None:
            remove_external()
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _restore_token(self, area: StorageArea, token: str | None) -> None:
        # Undo a half-finished write so the area holds what it held before
        try:
            if token is None:
                await area.remove_item(TOKEN_KEY, source=self._context_id)
            else:
                await area.set_item(TOKEN_KEY, token, source=self._context_id)
        except StorageError as e:
            logger.warning("Could not roll back token in %s area: %s", area.backend_type, e)

    async def _remove_keys(self, area: StorageArea) -> None:
        for key in (TOKEN_KEY, USER_KEY):
            try:
                await area.remove_item(key, source=self._context_id)
            except StorageError as e:
                logger.warning("Could not remove '%s' from %s area: %s", key, area.backend_type, e)

    async def _emit_local(self, old_token: str | None, new_token: str | None, area: str) -> None:
        event = StorageEvent(
            key=TOKEN_KEY,
            old_value=old_token,
            new_value=new_token,
            area=area,
            source=self._context_id,
            external=False,
        )
        for listener in list(self._listeners):
            try:
                await listener(event)
            except Exception:
                logger.exception("Credential listener failed")

    @staticmethod
    def _other(scope: CredentialScope) -> CredentialScope:
        if scope is CredentialScope.DURABLE:
            return CredentialScope.EPHEMERAL
        return CredentialScope.DURABLE

    @staticmethod
    def _parse_user(raw: str | None) -> UserProfile | None:
        if not raw:
            return None
        try:
            return UserProfile.model_validate_json(raw)
        except PydanticValidationError:
            logger.warning("Ignoring unreadable cached user record")
            return None
