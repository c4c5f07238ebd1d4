"""Chat session with an ordered, persisted message log.

Hidden design decisions:
- Single-flight sending (a send while another is pending is rejected)
- Two-phase append: the user message is logged immediately, then either
  the reply or a fixed error entry follows
- Time bound on the round trip and discarding of late replies
- Wholesale persistence of the log after every append
"""

import asyncio
import logging

from pydantic import ValidationError as PydanticValidationError

from ..config import (
    CHAT_EMPTY_REPLY_MESSAGE,
    CHAT_FAILURE_MESSAGE,
    CHAT_MESSAGES_KEY,
    CHAT_TIMEOUT_MESSAGE,
    DEFAULT_CHAT_TIMEOUT,
)
from ..storage import StorageArea, StorageError
from .client import ChatClient, ChatError, ChatTimeoutError
from .models import ChatMessage, Sender, dump_log, load_log

logger = logging.getLogger(__name__)


def history_key_for(user_id: int | str | None) -> str:
    """Storage key for a chat log, optionally scoped to one user."""
    if user_id is None:
        return CHAT_MESSAGES_KEY
    return f"{CHAT_MESSAGES_KEY}:{user_id}"


class ChatSession:
    """Ordered message log backed by a chat client and a storage area."""

    def __init__(
        self,
        client: ChatClient,
        storage: StorageArea | None = None,
        history_key: str = CHAT_MESSAGES_KEY,
        timeout: float = DEFAULT_CHAT_TIMEOUT,
        greeting: str | None = None
    ):
        """Initialize the session.

        Args:
            client: Chat client used for round trips
            storage: Area the log is persisted into (None disables persistence)
            history_key: Key the log is stored under
            timeout: Upper bound in seconds on one round trip
            greeting: Assistant message seeded into an empty log
        """
        self._client = client
        self._storage = storage
        self._history_key = history_key
        self._timeout = timeout
        self._greeting = greeting
        self._messages: list[ChatMessage] = []
        self._pending = False

    @property
    def messages(self) -> list[ChatMessage]:
        """Copy of the message log, oldest first."""
        return list(self._messages)

    @property
    def pending(self) -> bool:
        """True while a send is in flight."""
        return self._pending

    @property
    def history_key(self) -> str:
        return self._history_key

    async def load(self) -> list[ChatMessage]:
        """Restore the log from storage, seeding the greeting if empty."""
        self._messages = await self._read_history()
        if not self._messages and self._greeting:
            await self._append(ChatMessage.create(Sender.ASSISTANT, self._greeting))
        return self.messages

    async def send(self, text: str) -> ChatMessage | None:
        """Send a message and append the assistant's answer.

        Args:
            text: Message body (surrounding whitespace is dropped)

        Returns:
            The appended assistant message, or None if the send was rejected
            (blank text or another send still pending)
        """
        content = text.strip()
        if not content:
            return None
        if self._pending:
            logger.debug("Rejected send: another message is in flight")
            return None

        self._pending = True
        try:
            await self._append(ChatMessage.create(Sender.USER, content, suffix="-u"))
            reply = await self._round_trip(content)
            return await self._append(reply)
        finally:
            self._pending = False

    async def clear_history(self) -> None:
        """Empty the log in memory and in storage."""
        self._messages = []
        if self._storage is not None:
            try:
                await self._storage.remove_item(self._history_key)
            except StorageError as e:
                logger.warning("Could not clear chat history: %s", e)
        if self._greeting:
            await self._append(ChatMessage.create(Sender.ASSISTANT, self._greeting))

    async def _round_trip(self, content: str) -> ChatMessage:
        # wait_for cancels the request on expiry, so a late reply is never appended
        try:
            reply = await asyncio.wait_for(
                self._client.send_message(content),
                timeout=self._timeout,
            )
        except (asyncio.TimeoutError, ChatTimeoutError):
            logger.warning("Chat request timed out after %.1fs", self._timeout)
            return ChatMessage.create(Sender.ASSISTANT, CHAT_TIMEOUT_MESSAGE, suffix="-err")
        except ChatError as e:
            logger.warning("Chat request failed: %s", e)
            return ChatMessage.create(Sender.ASSISTANT, CHAT_FAILURE_MESSAGE, suffix="-err")
        except Exception:
            logger.exception("Unexpected chat failure")
            return ChatMessage.create(Sender.ASSISTANT, CHAT_FAILURE_MESSAGE, suffix="-err")

        return ChatMessage.create(
            Sender.ASSISTANT,
            reply.strip() or CHAT_EMPTY_REPLY_MESSAGE,
            suffix="-b",
        )

    async def _append(self, message: ChatMessage) -> ChatMessage:
        self._messages.append(message)
        await self._persist()
        return message

    async def _persist(self) -> None:
        if self._storage is None:
            return
        try:
            await self._storage.set_item(self._history_key, dump_log(self._messages))
        except StorageError as e:
            logger.warning("Could not persist chat history: %s", e)

    async def _read_history(self) -> list[ChatMessage]:
        if self._storage is None:
            return []
        try:
            raw = await self._storage.get_item(self._history_key)
        except StorageError as e:
            logger.warning("Could not read chat history: %s", e)
            return []
        if not raw:
            return []
        try:
            return load_log(raw)
        except PydanticValidationError:
            logger.warning("Ignoring unreadable chat history under '%s'", self._history_key)
            return []
