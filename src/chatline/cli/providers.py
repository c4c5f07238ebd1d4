"""Settings and context factories for the CLI.

Centralizes creation of the client context from environment variables.
Hides configuration details from command implementations.
"""

from contextlib import AbstractAsyncContextManager

from ..config import ClientSettings, load_settings
from ..context import ClientContext, open_context
from ..logging_config import setup_logging


def get_settings() -> ClientSettings:
    """Load settings from the environment and configure logging.

    Environment variables:
        CHATLINE_API_URL, CHATLINE_AUTH_URL, CHATLINE_CHAT_TIMEOUT,
        CHATLINE_HTTP_TIMEOUT, CHATLINE_STORAGE_PATH, CHATLINE_LOG_LEVEL
        (see chatline.config.load_settings)
    """
    settings = load_settings()
    setup_logging(settings.log_level)
    return settings


def get_context(settings: ClientSettings | None = None) -> AbstractAsyncContextManager[ClientContext]:
    """Open a client context backed by the configured durable storage file."""
    return open_context(settings or get_settings())
