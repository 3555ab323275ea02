"""
Token fields of a caller-owned session.

The session itself (creation, persistence, expiry) belongs to the session
store. This view only reads and writes three keys: access token, refresh
token and account. Any mutable mapping works: a plain dict, an
aiohttp-session ``Session`` or any framework session object.
"""
from collections.abc import MutableMapping
from typing import Any, Optional, Union

from ..conf import SESSION_ACCESS_TOKEN, SESSION_ACCOUNT, SESSION_REFRESH_TOKEN


class SessionTokenState:
    """Access/refresh token view over a session mapping."""

    __slots__ = ("_session", "_key")

    def __init__(
        self,
        session: MutableMapping[str, Any],
        key: Optional[Any] = None,
    ):
        self._session = session
        self._key = key

    @classmethod
    def wrap(
        cls,
        session: Union["SessionTokenState", MutableMapping[str, Any]],
        key: Optional[Any] = None,
    ) -> "SessionTokenState":
        if isinstance(session, cls):
            return session
        return cls(session, key=key)

    def __repr__(self) -> str:
        return (
            f"<SessionTokenState access_token={'set' if self.access_token else 'absent'}, "
            f"refresh_token={'set' if self.refresh_token else 'absent'}, "
            f"account={self.username!r}>"
        )

    def _get(self, key: str) -> Any:
        return self._session.get(key) or None

    def _put(self, key: str, value: Any) -> None:
        if value is None:
            self._session.pop(key, None)
        else:
            self._session[key] = value

    # --- Properties ---

    @property
    def session(self) -> MutableMapping[str, Any]:
        return self._session

    @property
    def key(self) -> Any:
        """Identifier used to serialize refreshes for this session.

        An explicit ``key`` wins, then the session object's ``session_id``
        or ``identity``. Plain mappings fall back to ``id()``, which only
        serializes refreshes when the same mapping object is shared; stores
        that rebuild the mapping per request must pass ``key``.
        """
        if self._key is not None:
            return self._key
        return (
            getattr(self._session, "session_id", None)
            or getattr(self._session, "identity", None)
            or id(self._session)
        )

    @property
    def access_token(self) -> Optional[str]:
        return self._get(SESSION_ACCESS_TOKEN)

    @access_token.setter
    def access_token(self, value: Optional[str]) -> None:
        self._put(SESSION_ACCESS_TOKEN, value)

    @property
    def refresh_token(self) -> Optional[str]:
        return self._get(SESSION_REFRESH_TOKEN)

    @refresh_token.setter
    def refresh_token(self, value: Optional[str]) -> None:
        self._put(SESSION_REFRESH_TOKEN, value)

    @property
    def account(self) -> Optional[dict]:
        return self._get(SESSION_ACCOUNT)

    @account.setter
    def account(self, value: Optional[dict]) -> None:
        self._put(SESSION_ACCOUNT, value)

    @property
    def username(self) -> Optional[str]:
        account = self.account
        if isinstance(account, dict):
            return account.get("username")
        return None

    def clear(self) -> None:
        """Remove the token fields, leaving the rest of the session alone."""
        for key in (SESSION_ACCESS_TOKEN, SESSION_REFRESH_TOKEN, SESSION_ACCOUNT):
            self._session.pop(key, None)
