"""Async client for the backend chat endpoint."""

import logging
from typing import Any

import httpx

from ..config import DEFAULT_API_URL, DEFAULT_CHAT_TIMEOUT
from ..credentials import CredentialStore

logger = logging.getLogger(__name__)


class ChatError(Exception):
    """The chat request failed."""


class ChatTimeoutError(ChatError):
    """The chat request exceeded its time bound."""


class ChatClient:
    """Posts user messages to ``/chat`` and returns the assistant reply.

    Attaches the bearer token when the credential store holds one; the
    endpoint also accepts anonymous requests.
    """

    def __init__(
        self,
        store: CredentialStore | None = None,
        base_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_CHAT_TIMEOUT,
        **client_kwargs: Any
    ):
        """Initialize the chat client.

        Args:
            store: Credential store to read the bearer token from
            base_url: Backend API base URL
            timeout: Request timeout in seconds
            **client_kwargs: Additional kwargs for httpx.AsyncClient
        """
        self._store = store
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, **client_kwargs)

    async def send_message(self, message: str) -> str:
        """Send one message.

        Returns:
            The reply text (empty if the backend sent none)

        Raises:
            ChatTimeoutError: If the request timed out
            ChatError: On any other transport or backend failure
        """
        headers = {}
        if self._store is not None:
            token = await self._store.token()
            if token:
                headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self._client.post("/chat", json={"message": message}, headers=headers)
        except httpx.TimeoutException as e:
            raise ChatTimeoutError("Chat request timed out") from e
        except httpx.HTTPError as e:
            logger.warning("Chat API error: %s", e)
            raise ChatError(str(e) or "Chat request failed") from e

        if response.is_error:
            logger.warning("Chat API error: status %d", response.status_code)
            raise ChatError(f"Chat request failed with status code {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise ChatError("Chat response was not valid JSON") from e

        reply = body.get("reply") if isinstance(body, dict) else None
        return reply if isinstance(reply, str) else ""

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
