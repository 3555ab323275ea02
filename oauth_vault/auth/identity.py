"""
OAuth client descriptor and the provider abstraction.

``IdentityClientFactory`` builds one ``IdentityClientDescriptor`` from the
merged provider settings and memoizes it until ``invalidate()``. The vault
calls ``invalidate()`` after every successful write so the next token
operation picks up new secrets.

``MsalIdentityClient`` is the default provider client, a thin async wrapper
over ``msal.ConfidentialClientApplication``. msal is blocking, so calls run
in a worker thread under a timeout.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol, Sequence, runtime_checkable

import msal

from ..conf import DEFAULT_IDENTITY_TIMEOUT
from ..exceptions import NotConfiguredError
from ..settings import IdentityCredentials, ProviderSettings

logger = logging.getLogger("oauth_vault.auth")

# msal adds these itself and rejects them when passed explicitly.
RESERVED_SCOPES = frozenset({"openid", "profile", "offline_access"})


class IdentityProviderError(Exception):
    """The identity provider answered with an error."""

    def __init__(self, error: str, description: str = ""):
        self.error = error
        self.description = description
        super().__init__(f"{error}: {description}" if description else error)


@dataclass(frozen=True)
class TokenGrant:
    """Tokens returned by a code exchange or refresh grant."""

    access_token: str
    refresh_token: Optional[str] = None
    account: Optional[dict] = None

    def __repr__(self) -> str:
        return (
            f"TokenGrant(access_token='***', "
            f"refresh_token={'***' if self.refresh_token else None!r}, "
            f"account={self.account!r})"
        )


@runtime_checkable
class IdentityClient(Protocol):
    """What the token lifecycle manager needs from an identity provider."""

    async def authorization_url(
        self,
        scopes: Sequence[str],
        redirect_uri: str,
        state: Optional[str] = None,
    ) -> str: ...

    async def exchange_code(
        self,
        code: str,
        scopes: Sequence[str],
        redirect_uri: str,
    ) -> TokenGrant: ...

    async def refresh(
        self,
        refresh_token: str,
        scopes: Sequence[str],
    ) -> TokenGrant: ...


def account_from_claims(claims: Optional[dict]) -> Optional[dict]:
    """Session account record from ID token claims."""
    if not claims:
        return None
    return {
        "username": claims.get("preferred_username") or claims.get("upn"),
        "name": claims.get("name"),
        "oid": claims.get("oid"),
        "tenant_id": claims.get("tid"),
    }


def grant_from_result(result: Optional[dict]) -> TokenGrant:
    """Convert an msal result dict into a TokenGrant.

    Raises:
        IdentityProviderError: If the result is an error or has no token.
    """
    if not result:
        raise IdentityProviderError("empty_response", "No response from identity provider")
    if "error" in result:
        raise IdentityProviderError(
            result.get("error", "unknown_error"),
            result.get("error_description", ""),
        )
    access_token = result.get("access_token")
    if not access_token:
        raise IdentityProviderError("no_access_token", "Response carried no access token")
    return TokenGrant(
        access_token=access_token,
        refresh_token=result.get("refresh_token") or None,
        account=account_from_claims(result.get("id_token_claims")),
    )


class MsalIdentityClient:
    """IdentityClient backed by ``msal.ConfidentialClientApplication``."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        authority: str,
        timeout: float = DEFAULT_IDENTITY_TIMEOUT,
    ):
        self._client_id = client_id
        self._client_secret = client_secret
        self._authority = authority
        self._timeout = timeout
        self._app: Optional[msal.ConfidentialClientApplication] = None

    def __repr__(self) -> str:
        return f"<MsalIdentityClient client_id={self._client_id!r} authority={self._authority!r}>"

    def _application(self) -> msal.ConfidentialClientApplication:
        # constructing the app performs authority discovery over the network
        if self._app is None:
            self._app = msal.ConfidentialClientApplication(
                client_id=self._client_id,
                client_credential=self._client_secret,
                authority=self._authority,
                timeout=self._timeout,
            )
        return self._app

    @staticmethod
    def _scopes(scopes: Sequence[str]) -> list[str]:
        return [s for s in scopes if s not in RESERVED_SCOPES]

    async def _call(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        return await asyncio.wait_for(
            asyncio.to_thread(fn, *args, **kwargs), timeout=self._timeout,
        )

    async def authorization_url(
        self,
        scopes: Sequence[str],
        redirect_uri: str,
        state: Optional[str] = None,
    ) -> str:
        def _build() -> str:
            return self._application().get_authorization_request_url(
                self._scopes(scopes),
                state=state,
                redirect_uri=redirect_uri,
            )
        return await self._call(_build)

    async def exchange_code(
        self,
        code: str,
        scopes: Sequence[str],
        redirect_uri: str,
    ) -> TokenGrant:
        def _exchange() -> dict:
            return self._application().acquire_token_by_authorization_code(
                code,
                scopes=self._scopes(scopes),
                redirect_uri=redirect_uri,
            )
        return grant_from_result(await self._call(_exchange))

    async def refresh(
        self,
        refresh_token: str,
        scopes: Sequence[str],
    ) -> TokenGrant:
        def _refresh() -> dict:
            return self._application().acquire_token_by_refresh_token(
                refresh_token,
                scopes=self._scopes(scopes),
            )
        return grant_from_result(await self._call(_refresh))


@dataclass(frozen=True)
class IdentityClientDescriptor:
    """Memoized client settings plus the constructed client handle."""

    client_id: str
    client_secret: str = field(repr=False)
    authority_url: str
    client: IdentityClient = field(repr=False, compare=False)


ClientBuilder = Callable[[IdentityCredentials], IdentityClient]


class IdentityClientFactory:
    """Lazily builds the process-wide identity client descriptor."""

    def __init__(
        self,
        settings: ProviderSettings,
        client_builder: Optional[ClientBuilder] = None,
        timeout: float = DEFAULT_IDENTITY_TIMEOUT,
    ):
        self._settings = settings
        self._timeout = timeout
        self._builder = client_builder or self._msal_builder
        self._descriptor: Optional[IdentityClientDescriptor] = None
        settings.vault.subscribe(self._on_credentials_changed)

    def _msal_builder(self, credentials: IdentityCredentials) -> IdentityClient:
        return MsalIdentityClient(
            credentials.client_id,
            credentials.client_secret,
            credentials.authority,
            timeout=self._timeout,
        )

    def _on_credentials_changed(self, _credentials: Any) -> None:
        self.invalidate()

    @property
    def is_configured(self) -> bool:
        return self._settings.is_auth_configured()

    def client_descriptor(self) -> IdentityClientDescriptor:
        """Return the memoized descriptor, building it on first use.

        Raises:
            NotConfiguredError: If the merged client id or secret is empty.
        """
        if self._descriptor is None:
            credentials = self._settings.identity()
            if not credentials.is_complete:
                raise NotConfiguredError(
                    "Identity provider Client ID and Client Secret are required; "
                    "configure credentials first"
                )
            self._descriptor = IdentityClientDescriptor(
                client_id=credentials.client_id,
                client_secret=credentials.client_secret,
                authority_url=credentials.authority,
                client=self._builder(credentials),
            )
            logger.info(
                "Identity client created for client_id=%s authority=%s",
                credentials.client_id, credentials.authority,
            )
        return self._descriptor

    def invalidate(self) -> None:
        """Forget the memoized descriptor; the next use rebuilds it."""
        if self._descriptor is not None:
            logger.info("Identity client invalidated")
        self._descriptor = None
