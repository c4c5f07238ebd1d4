"""Client context wiring.

A context is one logical client, the equivalent of a browser tab: it has
its own ephemeral storage area and shares the durable area with every
other context opened on the same area object.

This module hides:
- Construction order of store, clients, session machine and chat session
- Connection lifecycle of the storage areas and HTTP clients
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

from .auth import AuthClient
from .chat import ChatClient, ChatSession
from .config import CHAT_GREETING, ClientSettings
from .credentials import CredentialStore
from .session import SessionStateMachine
from .storage import StorageArea, create_storage_area


class ClientContext:
    """All per-context components, built around a shared durable area."""

    def __init__(
        self,
        durable: StorageArea,
        settings: ClientSettings | None = None,
        ephemeral: StorageArea | None = None,
        history_key: str | None = None,
        greeting: str | None = CHAT_GREETING,
        **client_kwargs: Any
    ):
        """Build a context.

        Args:
            durable: Durable area shared with other contexts (already connected)
            settings: Endpoint and timeout settings
            ephemeral: Session area for this context (new in-memory area if omitted)
            history_key: Chat history key (global key if omitted)
            greeting: Assistant greeting for an empty chat log
            **client_kwargs: Extra kwargs for the httpx clients (e.g. ``transport``)
        """
        self.settings = settings or ClientSettings()
        self.context_id = str(uuid4())
        self.durable = durable
        self.ephemeral = ephemeral or create_storage_area("memory")
        self.store = CredentialStore(durable, self.ephemeral, context_id=self.context_id)
        self.auth = AuthClient(
            self.store,
            base_url=self.settings.resolved_auth_url,
            timeout=self.settings.http_timeout,
            **client_kwargs
        )
        self.chat_client = ChatClient(
            self.store,
            base_url=self.settings.api_url,
            timeout=self.settings.chat_timeout,
            **client_kwargs
        )
        self.session = SessionStateMachine(self.store, self.auth)
        chat_kwargs = {"history_key": history_key} if history_key else {}
        self.chat = ChatSession(
            self.chat_client,
            storage=durable,
            timeout=self.settings.chat_timeout,
            greeting=greeting,
            **chat_kwargs
        )

    async def start(self) -> None:
        """Connect the ephemeral area, derive session state, load chat history."""
        await self.ephemeral.connect()
        await self.session.start()
        await self.chat.load()

    async def close(self) -> None:
        """Stop observing storage and close HTTP clients."""
        self.session.stop()
        await self.auth.close()
        await self.chat_client.close()
        await self.ephemeral.disconnect()

    async def __aenter__(self) -> "ClientContext":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


@asynccontextmanager
async def open_context(
    settings: ClientSettings | None = None,
    durable: StorageArea | None = None,
    **kwargs: Any
) -> AsyncIterator[ClientContext]:
    """Open a started context.

    When ``durable`` is omitted a SQLite area at ``settings.storage_path`` is
    opened and closed with the context.

    Example:
        >>> async with open_context(load_settings()) as ctx:
        ...     await ctx.auth.login("a@b.com", "secret1")
        ...     ctx.session.logged_in
        True
    """
    settings = settings or ClientSettings()
    owns_durable = durable is None
    if durable is None:
        durable = create_storage_area("sqlite", path=settings.storage_path)
        await durable.connect()

    context = ClientContext(durable, settings=settings, **kwargs)
    try:
        await context.start()
        yield context
    finally:
        await context.close()
        if owns_durable:
            await durable.disconnect()
