"""Pytest configuration and shared fixtures."""
import json
from collections.abc import Callable

import httpx
import pytest

from chatline.auth import AuthClient
from chatline.chat import ChatClient
from chatline.credentials import CredentialStore
from chatline.storage import InMemoryStorageArea

API_URL = "http://testserver/api"
AUTH_URL = f"{API_URL}/auth"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeBackend:
    """Routes httpx requests to canned responses and records them."""

    def __init__(self):
        self.routes: dict[tuple[str, str], Handler | httpx.Response] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, response: Handler | httpx.Response) -> None:
        self.routes[(method.upper(), path)] = response

    def json(self, method: str, path: str, body: dict, status_code: int = 200) -> None:
        self.add(method, path, httpx.Response(status_code, json=body))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "Not found"})
        if callable(route):
            return route(request)
        return route

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def durable_area():
    """Durable area shared by every context in a test."""
    return InMemoryStorageArea()


@pytest.fixture
def ephemeral_area():
    return InMemoryStorageArea()


@pytest.fixture
def store(durable_area, ephemeral_area):
    return CredentialStore(durable_area, ephemeral_area, context_id="tab-a")


@pytest.fixture
async def auth_client(store, backend):
    client = AuthClient(store, base_url=AUTH_URL, transport=backend.transport)
    yield client
    await client.close()


@pytest.fixture
async def chat_client(store, backend):
    client = ChatClient(store, base_url=API_URL, transport=backend.transport)
    yield client
    await client.close()


@pytest.fixture
def ann():
    """Login payload for the example user."""
    return {
        "token": "t1",
        "user": {"id": 1, "name": "Ann", "email": "a@b.com"},
        "message": "Login successful",
    }


@pytest.fixture
async def make_auth_client(backend):
    """Factory for extra auth clients bound to other credential stores."""
    clients = []

    def factory(credential_store):
        client = AuthClient(credential_store, base_url=AUTH_URL, transport=backend.transport)
        clients.append(client)
        return client

    yield factory
    for client in clients:
        await client.close()
