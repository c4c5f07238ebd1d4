"""Async client for the backend auth endpoints.

Hidden design decisions:
- HTTP client setup (httpx) and base URL layout
- Bearer header injection from the credential store
- Normalization of transport and backend failures into ClientError
- Which responses update the credential store
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..config import (
    DEFAULT_API_URL,
    DEFAULT_HTTP_TIMEOUT,
    LOGIN_FAILED_MESSAGE,
    REQUEST_FAILED_MESSAGE,
    SIGNUP_FAILED_MESSAGE,
)
from ..credentials import CredentialScope, CredentialStore, UserProfile
from .errors import AuthError, ClientError, MalformedResponseError, TransportError
from .models import AuthResponse, ProfileUpdate, normalize_user

logger = logging.getLogger(__name__)

DEFAULT_AUTH_URL = f"{DEFAULT_API_URL}/auth"


def normalize_error_message(
    backend_message: str | None,
    transport_message: str | None,
    fallback: str
) -> str:
    """Pick the message shown to the user, in priority order."""
    for candidate in (backend_message, transport_message):
        if candidate and candidate.strip():
            return candidate.strip()
    return fallback


def _backend_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    for key in ("message", "detail", "error"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class AuthClient:
    """Client for login, signup and profile endpoints.

    Authorized calls attach ``Authorization: Bearer <token>`` from whichever
    scope currently holds a token. A 401 on an authorized call clears the
    credential store and raises AuthError.

    Supports async context manager protocol:
        async with AuthClient(store) as client:
            await client.login("a@b.com", "secret1")
    """

    def __init__(
        self,
        store: CredentialStore,
        base_url: str = DEFAULT_AUTH_URL,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        **client_kwargs: Any
    ):
        """Initialize the auth client.

        Args:
            store: Credential store tokens are read from and written to
            base_url: Base URL of the auth endpoints
            timeout: Request timeout in seconds
            **client_kwargs: Additional kwargs for httpx.AsyncClient
                (e.g. ``transport`` for tests)
        """
        self._store = store
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            **client_kwargs
        )

    @property
    def store(self) -> CredentialStore:
        return self._store

    async def login(
        self,
        email: str,
        password: str,
        remember: bool = True,
        auto_store: bool = True
    ) -> AuthResponse:
        """Log in with email and password.

        Args:
            email: Account email
            password: Account password
            remember: Persist in the durable scope (else ephemeral)
            auto_store: Write the returned token into the credential store

        Returns:
            The backend payload (token, user, message)

        Raises:
            ClientError: On any backend or transport failure
        """
        data = await self._request(
            "POST",
            "/login",
            json={"email": email, "password": password},
            authorized=False,
            fallback=LOGIN_FAILED_MESSAGE,
        )
        response = self._parse_auth_response(data, LOGIN_FAILED_MESSAGE)
        await self._store_response(response, remember, auto_store)
        return response

    async def signup(
        self,
        name: str,
        email: str,
        password: str,
        avatar: str = "",
        remember: bool = True,
        auto_store: bool = True
    ) -> AuthResponse:
        """Register a new account. Same contract as login."""
        data = await self._request(
            "POST",
            "/register",
            json={"name": name, "email": email, "password": password, "avatar": avatar},
            authorized=False,
            fallback=SIGNUP_FAILED_MESSAGE,
        )
        response = self._parse_auth_response(data, SIGNUP_FAILED_MESSAGE)
        await self._store_response(response, remember, auto_store)
        return response

    async def get_current_user(self, sync_local: bool = True) -> UserProfile:
        """Fetch the caller's own profile.

        Args:
            sync_local: Refresh the cached user in the active scope

        Raises:
            AuthError: If the token was rejected
            MalformedResponseError: If the payload has no usable user record
            ClientError: On any other failure
        """
        data = await self._request("GET", "/me")
        user = normalize_user(data)
        if sync_local and user.name:
            await self._store.update_user(user)
        return user

    async def update_profile(self, partial: ProfileUpdate | dict[str, str]) -> dict[str, Any]:
        """Update name and/or avatar.

        Returns:
            The backend payload; a returned user also refreshes the cache
        """
        if isinstance(partial, dict):
            partial = ProfileUpdate.model_validate(partial)
        data = await self._request("PUT", "/profile", json=partial.to_payload())
        if isinstance(data, dict) and data.get("user"):
            await self._store.update_user(normalize_user(data))
        return data

    async def change_password(self, old_password: str, new_password: str) -> str:
        """Change the account password.

        Returns:
            Confirmation message. The credential store is never touched.
        """
        data = await self._request(
            "PUT",
            "/password",
            json={"oldPassword": old_password, "newPassword": new_password},
        )
        if isinstance(data, dict) and isinstance(data.get("message"), str):
            return data["message"]
        return "Password updated"

    async def validate_token(self) -> bool:
        """Ask the backend whether the stored token is still accepted.

        Any failure counts as not authenticated and clears local credentials.
        """
        try:
            data = await self._request("GET", "/validate")
        except ClientError as e:
            logger.info("Token validation failed: %s", e.message)
            await self._store.clear()
            return False

        if isinstance(data, dict) and data.get("valid") is False:
            logger.info("Backend reported token as invalid")
            await self._store.clear()
            return False
        return True

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AuthClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _auth_headers(self) -> dict[str, str]:
        token = await self._store.token()
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        authorized: bool = True,
        fallback: str = REQUEST_FAILED_MESSAGE,
    ) -> Any:
        headers = await self._auth_headers() if authorized else {}

        try:
            response = await self._client.request(method, path, json=json, headers=headers)
        except httpx.TimeoutException as e:
            raise TransportError(normalize_error_message(None, str(e), "Request timed out")) from e
        except httpx.HTTPError as e:
            raise TransportError(normalize_error_message(None, str(e), fallback)) from e

        if response.is_error:
            message = normalize_error_message(
                _backend_message(response),
                f"Request failed with status code {response.status_code}",
                fallback,
            )
            logger.debug("%s %s failed with status %d", method, path, response.status_code)
            if authorized and response.status_code == 401:
                await self._store.clear()
                raise AuthError(message, status_code=401)
            raise ClientError(message, status_code=response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(fallback, status_code=response.status_code) from e

    @staticmethod
    def _parse_auth_response(data: Any, fallback: str) -> AuthResponse:
        if not isinstance(data, dict):
            raise MalformedResponseError(fallback)
        try:
            return AuthResponse.model_validate(data)
        except PydanticValidationError as e:
            raise MalformedResponseError(fallback) from e

    async def _store_response(
        self,
        response: AuthResponse,
        remember: bool,
        auto_store: bool
    ) -> None:
        if not (auto_store and response.token):
            return
        scope = CredentialScope.DURABLE if remember else CredentialScope.EPHEMERAL
        user = None
        if response.user is not None:
            try:
                user = normalize_user(response.user)
            except MalformedResponseError as e:
                logger.warning("Not caching unrecognized user record: %s", e.message)
        await self._store.write(response.token, user, scope)
