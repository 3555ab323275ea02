"""
Delegated access/refresh tokens bound to a user session.

Per-session states::

    NoToken  --redeem-->                     HasToken
    HasToken --token present-->              HasToken
    HasToken --token missing, refresh ok-->  HasToken
    HasToken --token missing, refresh fails-> NoToken  (refresh token lingers)

``valid_access_token`` is the entry point for request handlers. It never
raises; failures come back as ``None`` and the reason is logged.

Security Note:
    Never log token values. Only log outcomes and error classes.
"""
import asyncio
import enum
import logging
import weakref
from collections.abc import MutableMapping
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

from ..conf import CALLBACK_PATH, OAUTH_SCOPES
from ..exceptions import AuthExchangeError
from .identity import IdentityClientFactory, TokenGrant
from .session import SessionTokenState

logger = logging.getLogger("oauth_vault.auth")

SessionLike = Union[SessionTokenState, MutableMapping[str, Any]]


class TokenStatus(enum.Enum):
    OK = "ok"
    NO_TOKEN = "no_token"
    FAILED = "failed"


@dataclass(frozen=True)
class TokenResult:
    """Outcome of a token lookup: a token, nothing to try, or a failure."""

    status: TokenStatus
    token: Optional[str] = None
    error: Optional[BaseException] = None

    def __bool__(self) -> bool:
        return self.status is TokenStatus.OK

    def __repr__(self) -> str:
        return (
            f"TokenResult(status={self.status.value}, "
            f"token={'***' if self.token else None!r}, error={self.error!r})"
        )

    @classmethod
    def ok(cls, token: str) -> "TokenResult":
        return cls(TokenStatus.OK, token=token)

    @classmethod
    def no_token(cls) -> "TokenResult":
        return cls(TokenStatus.NO_TOKEN)

    @classmethod
    def failed(cls, error: BaseException) -> "TokenResult":
        return cls(TokenStatus.FAILED, error=error)


class TokenManager:
    """Builds sign-in URLs, redeems codes and keeps session tokens fresh."""

    def __init__(
        self,
        factory: IdentityClientFactory,
        base_url: str,
        scopes: Sequence[str] = OAUTH_SCOPES,
        callback_path: str = CALLBACK_PATH,
    ):
        self._factory = factory
        self._base_url = base_url.rstrip("/")
        self._scopes = tuple(scopes)
        self._callback_path = callback_path
        self._locks: "weakref.WeakValueDictionary[Any, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    @property
    def scopes(self) -> tuple:
        return self._scopes

    @property
    def redirect_uri(self) -> str:
        return f"{self._base_url}{self._callback_path}"

    def _lock_for(self, state: SessionTokenState) -> asyncio.Lock:
        key = state.key
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    # ------------------------------------------------------------------
    # Sign-in
    # ------------------------------------------------------------------

    async def build_authorization_url(self, state: Optional[str] = None) -> str:
        """Redirect URL for the provider's sign-in page.

        Raises:
            NotConfiguredError: If provider credentials are missing.
        """
        descriptor = self._factory.client_descriptor()
        return await descriptor.client.authorization_url(
            self._scopes, self.redirect_uri, state=state or None,
        )

    async def redeem_authorization_code(self, code: str) -> TokenGrant:
        """Exchange a one-shot authorization code for tokens.

        Never retried: codes are single-use.

        Raises:
            NotConfiguredError: If provider credentials are missing.
            AuthExchangeError: If the exchange fails for any other reason.
        """
        if not code:
            raise AuthExchangeError("Authorization code is required")
        descriptor = self._factory.client_descriptor()
        try:
            grant = await descriptor.client.exchange_code(
                code, self._scopes, self.redirect_uri,
            )
        except Exception as err:
            logger.warning(
                "Authorization code exchange failed: %s", type(err).__name__,
            )
            raise AuthExchangeError(f"Authorization code exchange failed: {err}") from err
        if not grant.access_token:
            raise AuthExchangeError("Identity provider returned no access token")
        return grant

    async def sign_in(self, session: SessionLike, code: str) -> TokenGrant:
        """Redeem ``code`` and store the token pair and account in ``session``."""
        grant = await self.redeem_authorization_code(code)
        state = SessionTokenState.wrap(session)
        state.access_token = grant.access_token
        state.refresh_token = grant.refresh_token
        state.account = grant.account
        logger.info("Signed in user=%s", state.username)
        return grant

    def sign_out(self, session: SessionLike) -> None:
        """Drop the token fields from ``session``."""
        state = SessionTokenState.wrap(session)
        username = state.username
        state.clear()
        logger.info("Signed out user=%s", username)

    # ------------------------------------------------------------------
    # Token access
    # ------------------------------------------------------------------

    def current_access_token(self, session: SessionLike) -> Optional[str]:
        """Access token stored in the session; no network call."""
        return SessionTokenState.wrap(session).access_token

    async def refresh(self, session: SessionLike) -> TokenResult:
        """Run the refresh grant for ``session``.

        Concurrent refreshes for one session are serialized; a waiter that
        finds a freshly stored token returns it without calling the provider.
        Errors are captured in the result, never raised. A refresh token that
        failed is left in the session. Pass ``SessionTokenState(session,
        key=...)`` when the store builds a new mapping per request.
        """
        state = SessionTokenState.wrap(session)
        if not state.refresh_token:
            return TokenResult.no_token()
        seen = state.access_token
        async with self._lock_for(state):
            current = state.access_token
            if current and current != seen:
                return TokenResult.ok(current)
            refresh_token = state.refresh_token
            if not refresh_token:
                return TokenResult.no_token()
            try:
                descriptor = self._factory.client_descriptor()
                grant = await descriptor.client.refresh(refresh_token, self._scopes)
                if not grant.access_token:
                    raise AuthExchangeError("Identity provider returned no access token")
            except Exception as err:
                logger.warning(
                    "Token refresh failed for user=%s: %s",
                    state.username, type(err).__name__,
                )
                return TokenResult.failed(err)
            state.access_token = grant.access_token
            if grant.refresh_token:
                state.refresh_token = grant.refresh_token
            if grant.account:
                state.account = grant.account
            logger.info("Token refreshed for user=%s", state.username)
            return TokenResult.ok(grant.access_token)

    async def refresh_if_possible(self, session: SessionLike) -> Optional[str]:
        """New access token from the refresh grant, or None."""
        return (await self.refresh(session)).token

    async def resolve_access_token(self, session: SessionLike) -> TokenResult:
        """Stored access token if present, else the refresh outcome."""
        token = self.current_access_token(session)
        if token:
            return TokenResult.ok(token)
        return await self.refresh(session)

    async def valid_access_token(self, session: SessionLike) -> Optional[str]:
        """Access token for request handlers, refreshing if needed; never raises."""
        return (await self.resolve_access_token(session)).token
