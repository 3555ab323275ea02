"""Shared fixtures: ciphers, a vault in tmp_path, and a fake identity client."""
import pytest

from oauth_vault.auth.identity import IdentityClientFactory, TokenGrant
from oauth_vault.auth.tokens import TokenManager
from oauth_vault.settings import ProviderSettings
from oauth_vault.vault.crypto import SecretCipher
from oauth_vault.vault.store import CredentialVault


class FakeIdentityClient:
    """IdentityClient double that records calls and never touches the network."""

    def __init__(self, credentials=None):
        self.credentials = credentials
        self.calls = {"authorization_url": 0, "exchange_code": 0, "refresh": 0}
        self.last_refresh_token = None
        self.last_scopes = None
        self.exchange_result = TokenGrant(
            access_token="at1",
            refresh_token="rt1",
            account={"username": "jane@example.com"},
        )
        self.exchange_error = None
        self.refresh_result = TokenGrant(access_token="at2")
        self.refresh_error = None

    async def authorization_url(self, scopes, redirect_uri, state=None):
        self.calls["authorization_url"] += 1
        self.last_scopes = tuple(scopes)
        url = f"https://login.example.com/authorize?redirect_uri={redirect_uri}"
        if state:
            url += f"&state={state}"
        return url

    async def exchange_code(self, code, scopes, redirect_uri):
        self.calls["exchange_code"] += 1
        self.last_scopes = tuple(scopes)
        if self.exchange_error is not None:
            raise self.exchange_error
        return self.exchange_result

    async def refresh(self, refresh_token, scopes):
        self.calls["refresh"] += 1
        self.last_refresh_token = refresh_token
        self.last_scopes = tuple(scopes)
        if self.refresh_error is not None:
            raise self.refresh_error
        return self.refresh_result


@pytest.fixture
def cipher():
    return SecretCipher.from_secrets(encryption_key="test-encryption-key")


@pytest.fixture
def vault_path(tmp_path):
    return tmp_path / "vault" / ".credentials.enc"


@pytest.fixture
def vault(cipher, vault_path):
    return CredentialVault(cipher, vault_path)


@pytest.fixture
def environ():
    """Environment mapping injected into ProviderSettings."""
    return {}


@pytest.fixture
def settings(vault, environ):
    return ProviderSettings(vault, environ=environ)


@pytest.fixture
def built_clients():
    return []


@pytest.fixture
def factory(settings, built_clients):
    def builder(credentials):
        client = FakeIdentityClient(credentials)
        built_clients.append(client)
        return client
    return IdentityClientFactory(settings, client_builder=builder)


@pytest.fixture
def configured_vault(vault):
    vault.set({
        "client_id": "vault-id",
        "client_secret": "vault-secret",
        "tenant_id": "common",
    })
    return vault


@pytest.fixture
def manager(factory):
    return TokenManager(factory, "http://localhost:3000/")


@pytest.fixture
def client(configured_vault, factory):
    """Fake identity client behind the configured factory."""
    return factory.client_descriptor().client


