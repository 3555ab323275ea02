"""
Tests for the identity client factory and the msal-backed client.
"""
import pytest

from oauth_vault.auth.identity import (
    IdentityClient,
    IdentityClientFactory,
    IdentityProviderError,
    MsalIdentityClient,
    account_from_claims,
    grant_from_result,
)
from oauth_vault.exceptions import NotConfiguredError, ValidationError

from .conftest import FakeIdentityClient


class TestClientDescriptor:
    """Tests for lazy construction and memoization."""

    def test_not_configured(self, factory):
        with pytest.raises(NotConfiguredError):
            factory.client_descriptor()
        assert factory.is_configured is False

    def test_partial_env_is_not_enough(self, factory, environ):
        environ["AZURE_CLIENT_ID"] = "env-id"
        with pytest.raises(NotConfiguredError):
            factory.client_descriptor()

    def test_built_from_vault(self, configured_vault, factory):
        descriptor = factory.client_descriptor()
        assert descriptor.client_id == "vault-id"
        assert descriptor.client_secret == "vault-secret"
        assert descriptor.authority_url == "https://login.microsoftonline.com/common"
        assert isinstance(descriptor.client, IdentityClient)

    def test_memoized(self, configured_vault, factory, built_clients):
        first = factory.client_descriptor()
        second = factory.client_descriptor()
        assert first is second
        assert len(built_clients) == 1

    def test_env_changes_need_invalidate(self, configured_vault, factory, environ):
        factory.client_descriptor()
        environ["AZURE_CLIENT_SECRET"] = "env-secret"
        assert factory.client_descriptor().client_secret == "vault-secret"
        factory.invalidate()
        assert factory.client_descriptor().client_secret == "env-secret"

    def test_secret_hidden_in_repr(self, configured_vault, factory):
        assert "vault-secret" not in repr(factory.client_descriptor())


class TestInvalidation:
    """A vault write must invalidate the memoized descriptor."""

    def test_set_invalidates(self, configured_vault, factory, built_clients):
        old = factory.client_descriptor()
        configured_vault.set({"client_id": "new-id", "client_secret": "new-secret"})
        new = factory.client_descriptor()
        assert new is not old
        assert (new.client_id, new.client_secret) == ("new-id", "new-secret")
        assert built_clients[-1].credentials.client_id == "new-id"

    def test_failed_set_keeps_descriptor(self, configured_vault, factory):
        old = factory.client_descriptor()
        with pytest.raises(ValidationError):
            configured_vault.set({"client_id": "", "client_secret": "x"})
        assert factory.client_descriptor() is old

    def test_invalidate_without_descriptor(self, factory):
        factory.invalidate()

    def test_default_builder_is_msal(self, configured_vault, settings):
        factory = IdentityClientFactory(settings, timeout=3.0)
        client = factory.client_descriptor().client
        assert isinstance(client, MsalIdentityClient)
        assert isinstance(client, IdentityClient)


class TestMsalResults:
    """Tests for converting msal result dicts."""

    def test_grant(self):
        grant = grant_from_result({
            "access_token": "at",
            "refresh_token": "rt",
            "id_token_claims": {"preferred_username": "jane@example.com", "name": "Jane"},
        })
        assert grant.access_token == "at"
        assert grant.refresh_token == "rt"
        assert grant.account["username"] == "jane@example.com"
        assert "'at'" not in repr(grant)

    def test_grant_without_refresh_token(self):
        grant = grant_from_result({"access_token": "at"})
        assert grant.refresh_token is None
        assert grant.account is None

    def test_error(self):
        with pytest.raises(IdentityProviderError) as exc:
            grant_from_result({"error": "invalid_grant", "error_description": "AADSTS70008"})
        assert exc.value.error == "invalid_grant"

    def test_empty(self):
        with pytest.raises(IdentityProviderError):
            grant_from_result({})
        with pytest.raises(IdentityProviderError):
            grant_from_result(None)

    def test_account_from_claims(self):
        assert account_from_claims(None) is None
        assert account_from_claims({"upn": "u@x"})["username"] == "u@x"


class FakeMsalApp:
    """Stands in for msal.ConfidentialClientApplication."""

    def __init__(self):
        self.calls = []

    def get_authorization_request_url(self, scopes, state=None, redirect_uri=None):
        self.calls.append(("url", list(scopes), redirect_uri))
        return f"https://login.example.com/authorize?state={state}"

    def acquire_token_by_authorization_code(self, code, scopes, redirect_uri=None):
        self.calls.append(("code", list(scopes), redirect_uri))
        return {"access_token": "at-" + code, "refresh_token": "rt"}

    def acquire_token_by_refresh_token(self, refresh_token, scopes):
        self.calls.append(("refresh", list(scopes), refresh_token))
        return {"error": "invalid_grant", "error_description": "expired"}


class TestMsalIdentityClient:
    """Tests for the msal adapter with the application stubbed out."""

    @pytest.fixture
    def app(self):
        return FakeMsalApp()

    @pytest.fixture
    def msal_client(self, app):
        client = MsalIdentityClient("id", "secret", "https://login.example.com/common", timeout=5)
        client._app = app
        return client

    @pytest.mark.asyncio
    async def test_authorization_url_strips_reserved_scopes(self, msal_client, app):
        url = await msal_client.authorization_url(
            ["Mail.Read", "offline_access", "openid", "profile"],
            "http://localhost:3000/auth/callback",
            state="abc",
        )
        assert url.endswith("state=abc")
        assert app.calls == [("url", ["Mail.Read"], "http://localhost:3000/auth/callback")]

    @pytest.mark.asyncio
    async def test_exchange_code(self, msal_client, app):
        grant = await msal_client.exchange_code("c0de", ["Mail.Read"], "http://x/cb")
        assert grant.access_token == "at-c0de"
        assert grant.refresh_token == "rt"

    @pytest.mark.asyncio
    async def test_refresh_error(self, msal_client):
        with pytest.raises(IdentityProviderError):
            await msal_client.refresh("rt", ["Mail.Read"])

    def test_fake_client_satisfies_protocol(self):
        assert isinstance(FakeIdentityClient(), IdentityClient)
