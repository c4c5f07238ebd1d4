"""Unit tests for the auth client."""
import httpx
import pytest
from hypothesis import given
from hypothesis import strategies as st

from chatline.auth import (
    AuthError,
    AuthResponse,
    ClientError,
    MalformedResponseError,
    TransportError,
    normalize_error_message,
    normalize_user,
)
from chatline.config import USER_KEY
from chatline.credentials import CredentialScope, UserProfile


class TestNormalizeUser:
    """Tests for user record normalization."""

    def test_nested_shape(self):
        user = normalize_user({"user": {"id": 7, "name": "Ann", "email": "a@b.com", "avatar": "https://x/a.png"}})
        assert user == UserProfile(id=7, name="Ann", email="a@b.com", avatar="https://x/a.png")

    def test_flat_shape(self):
        user = normalize_user({"id": "u1", "name": "Ann", "email": "a@b.com"})
        assert user == UserProfile(id="u1", name="Ann", email="a@b.com")

    def test_nested_wins_over_flat(self):
        user = normalize_user({
            "id": 1, "name": "Flat", "email": "flat@b.com",
            "user": {"id": 2, "name": "Nested", "email": "nested@b.com"},
        })
        assert user.name == "Nested"

    def test_missing_fields_raise(self):
        with pytest.raises(MalformedResponseError, match="name"):
            normalize_user({"id": 1, "email": "a@b.com"})

    def test_non_dict_raises(self):
        with pytest.raises(MalformedResponseError):
            normalize_user(["not", "a", "user"])

    @given(
        id_=st.integers(min_value=1),
        name=st.text(min_size=1, max_size=30).filter(str.strip),
        nested=st.booleans(),
    )
    def test_both_shapes_normalize_identically(self, id_, name, nested):
        """Property test: nested and flat payloads map to the same record."""
        record = {"id": id_, "name": name, "email": "a@b.com", "avatar": ""}
        payload = {"user": record} if nested else record
        assert normalize_user(payload) == UserProfile(**record)


class TestNormalizeErrorMessage:
    """Tests for error message priority."""

    def test_backend_message_first(self):
        assert normalize_error_message("Invalid credentials", "status 401", "Login failed") == "Invalid credentials"

    def test_transport_message_second(self):
        assert normalize_error_message(None, "Connection refused", "Login failed") == "Connection refused"

    def test_fallback_last(self):
        assert normalize_error_message("", "  ", "Login failed") == "Login failed"


class TestLogin:
    """Tests for AuthClient.login."""

    @pytest.mark.asyncio
    async def test_login_stores_durable_credentials(self, auth_client, backend, store, ann):
        backend.json("POST", "/api/auth/login", ann)

        response = await auth_client.login("a@b.com", "secret1")

        assert isinstance(response, AuthResponse)
        assert response.token == "t1"
        assert response.message == "Login successful"
        assert backend.last_body() == {"email": "a@b.com", "password": "secret1"}
        assert "authorization" not in backend.requests[-1].headers

        credential = await store.read()
        assert credential.token == "t1"
        assert credential.user == UserProfile(id=1, name="Ann", email="a@b.com")
        assert credential.scope is CredentialScope.DURABLE

    @pytest.mark.asyncio
    async def test_login_without_remember_uses_ephemeral(self, auth_client, backend, store, ann):
        backend.json("POST", "/api/auth/login", ann)

        await auth_client.login("a@b.com", "secret1", remember=False)

        assert await store.active_scope() is CredentialScope.EPHEMERAL

    @pytest.mark.asyncio
    async def test_login_without_auto_store(self, auth_client, backend, store, ann):
        backend.json("POST", "/api/auth/login", ann)

        response = await auth_client.login("a@b.com", "secret1", auto_store=False)

        assert response.token == "t1"
        assert await store.read() is None

    @pytest.mark.asyncio
    async def test_login_preserves_extra_fields(self, auth_client, backend, ann):
        backend.json("POST", "/api/auth/login", {**ann, "success": True, "expiresIn": 3600})

        response = await auth_client.login("a@b.com", "secret1")

        assert response.success is True
        assert response.model_extra["expiresIn"] == 3600

    @pytest.mark.asyncio
    async def test_unrecognized_user_record_keeps_token(self, auth_client, backend, store):
        payload = {"token": "t1", "user": {"_id": "abc", "name": "Ann", "email": "a@b.com"}}
        backend.json("POST", "/api/auth/login", payload)

        response = await auth_client.login("a@b.com", "secret1")

        assert response.user == payload["user"]
        credential = await store.read()
        assert credential.token == "t1"
        assert credential.user is None

    @pytest.mark.asyncio
    async def test_failed_login_leaves_store_unchanged(self, auth_client, backend, store):
        await store.write("old-token", None, CredentialScope.DURABLE)
        backend.json("POST", "/api/auth/login", {"message": "Invalid credentials"}, status_code=401)

        with pytest.raises(ClientError) as exc_info:
            await auth_client.login("a@b.com", "wrong-pass")

        assert exc_info.value.message == "Invalid credentials"
        assert not isinstance(exc_info.value, AuthError)
        assert await store.token() == "old-token"

    @pytest.mark.asyncio
    async def test_login_error_without_backend_message(self, auth_client, backend):
        backend.add("POST", "/api/auth/login", httpx.Response(500, text="oops"))

        with pytest.raises(ClientError, match="status code 500"):
            await auth_client.login("a@b.com", "secret1")

    @pytest.mark.asyncio
    async def test_transport_failure_is_normalized(self, auth_client, backend, store):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        backend.add("POST", "/api/auth/login", refuse)

        with pytest.raises(TransportError, match="Connection refused"):
            await auth_client.login("a@b.com", "secret1")
        assert await store.read() is None

    @pytest.mark.asyncio
    async def test_login_without_token_stores_nothing(self, auth_client, backend, store):
        backend.json("POST", "/api/auth/login", {"success": False, "message": "Verify your email"})

        response = await auth_client.login("a@b.com", "secret1")

        assert response.token is None
        assert await store.read() is None


class TestSignup:
    """Tests for AuthClient.signup."""

    @pytest.mark.asyncio
    async def test_signup_posts_registration(self, auth_client, backend, store, ann):
        backend.json("POST", "/api/auth/register", ann, status_code=201)

        await auth_client.signup("Ann", "a@b.com", "secret1")

        assert backend.last_body() == {
            "name": "Ann", "email": "a@b.com", "password": "secret1", "avatar": "",
        }
        assert await store.token() == "t1"

    @pytest.mark.asyncio
    async def test_signup_failure_reports_status(self, auth_client, backend):
        backend.add("POST", "/api/auth/register", httpx.Response(400, json={}))

        with pytest.raises(ClientError, match="status code 400"):
            await auth_client.signup("Ann", "a@b.com", "secret1")


class TestAuthorizedCalls:
    """Tests for calls that carry the bearer token."""

    @pytest.mark.asyncio
    async def test_bearer_header_from_active_scope(self, auth_client, backend, store):
        await store.write("session-token", None, CredentialScope.EPHEMERAL)
        backend.json("GET", "/api/auth/me", {"id": 1, "name": "Ann", "email": "a@b.com"})

        await auth_client.get_current_user()

        assert backend.requests[-1].headers["authorization"] == "Bearer session-token"

    @pytest.mark.asyncio
    async def test_no_token_sends_no_header(self, auth_client, backend):
        backend.json("GET", "/api/auth/me", {"message": "No token"}, status_code=401)

        with pytest.raises(AuthError):
            await auth_client.get_current_user()
        assert "authorization" not in backend.requests[-1].headers

    @pytest.mark.asyncio
    async def test_get_current_user_syncs_cache(self, auth_client, backend, store, ephemeral_area):
        await store.write("t1", None, CredentialScope.EPHEMERAL)
        backend.json("GET", "/api/auth/me", {"user": {"id": 1, "name": "Ann", "email": "a@b.com"}})

        user = await auth_client.get_current_user()

        assert user.name == "Ann"
        assert (await store.read()).user == user
        assert await ephemeral_area.get_item(USER_KEY) is not None

    @pytest.mark.asyncio
    async def test_get_current_user_without_sync(self, auth_client, backend, store):
        await store.write("t1")
        backend.json("GET", "/api/auth/me", {"id": 1, "name": "Ann", "email": "a@b.com"})

        await auth_client.get_current_user(sync_local=False)

        assert (await store.read()).user is None

    @pytest.mark.asyncio
    async def test_malformed_me_response(self, auth_client, backend, store):
        await store.write("t1")
        backend.json("GET", "/api/auth/me", {"ok": True})

        with pytest.raises(MalformedResponseError):
            await auth_client.get_current_user()
        assert await store.token() == "t1"

    @pytest.mark.asyncio
    async def test_unauthorized_clears_credentials(self, auth_client, backend, store):
        await store.write("expired")
        backend.json("GET", "/api/auth/me", {"message": "Token expired"}, status_code=401)

        with pytest.raises(AuthError, match="Token expired"):
            await auth_client.get_current_user()
        assert await store.read() is None

    @pytest.mark.asyncio
    async def test_update_profile_refreshes_cache(self, auth_client, backend, store):
        await store.write("t1", UserProfile(id=1, name="Ann", email="a@b.com"))
        backend.json("PUT", "/api/auth/profile", {
            "user": {"id": 1, "name": "Annie", "email": "a@b.com", "avatar": "https://x/a.png"},
        })

        data = await auth_client.update_profile({"name": "Annie", "avatar": "https://x/a.png"})

        assert backend.last_body() == {"name": "Annie", "avatar": "https://x/a.png"}
        assert data["user"]["name"] == "Annie"
        assert (await store.read()).user.name == "Annie"

    @pytest.mark.asyncio
    async def test_update_profile_sends_only_given_fields(self, auth_client, backend, store):
        await store.write("t1")
        backend.json("PUT", "/api/auth/profile", {"message": "ok"})

        await auth_client.update_profile({"name": "Annie"})

        assert backend.last_body() == {"name": "Annie"}
        assert (await store.read()).user is None

    @pytest.mark.asyncio
    async def test_change_password_leaves_store_alone(self, auth_client, backend, store):
        await store.write("t1")
        backend.json("PUT", "/api/auth/password", {"message": "Password updated successfully"})

        message = await auth_client.change_password("secret1", "secret2")

        assert message == "Password updated successfully"
        assert backend.last_body() == {"oldPassword": "secret1", "newPassword": "secret2"}
        assert await store.token() == "t1"

    @pytest.mark.asyncio
    async def test_change_password_rejected(self, auth_client, backend, store):
        await store.write("t1")
        backend.json("PUT", "/api/auth/password", {"message": "Old password is incorrect"}, status_code=400)

        with pytest.raises(ClientError, match="Old password is incorrect"):
            await auth_client.change_password("wrong1", "secret2")
        assert await store.token() == "t1"


class TestValidateToken:
    """Tests for AuthClient.validate_token."""

    @pytest.mark.asyncio
    async def test_valid_token(self, auth_client, backend, store):
        await store.write("t1")
        backend.json("GET", "/api/auth/validate", {"valid": True})

        assert await auth_client.validate_token() is True
        assert await store.token() == "t1"

    @pytest.mark.asyncio
    async def test_rejected_token_clears_store(self, auth_client, backend, store):
        await store.write("t1")
        backend.json("GET", "/api/auth/validate", {"message": "Invalid token"}, status_code=401)

        assert await auth_client.validate_token() is False
        assert await store.read() is None

    @pytest.mark.asyncio
    async def test_valid_false_clears_store(self, auth_client, backend, store):
        await store.write("t1")
        backend.json("GET", "/api/auth/validate", {"valid": False})

        assert await auth_client.validate_token() is False
        assert await store.read() is None

    @pytest.mark.asyncio
    async def test_network_failure_counts_as_invalid(self, auth_client, backend, store):
        await store.write("t1")

        def unreachable(request):
            raise httpx.ConnectError("unreachable", request=request)

        backend.add("GET", "/api/auth/validate", unreachable)

        assert await auth_client.validate_token() is False
        assert await store.read() is None
