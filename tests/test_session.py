"""Tests for the SessionTokenState view."""
from oauth_vault.auth.session import SessionTokenState


class Session(dict):
    """Session store object exposing an id, like framework session objects."""

    session_id = "abc123"


class TestSessionTokenState:

    def test_reads_and_writes_keys(self):
        data = {}
        state = SessionTokenState(data)
        state.access_token = "at"
        state.refresh_token = "rt"
        state.account = {"username": "jane"}
        assert data == {"access_token": "at", "refresh_token": "rt", "account": {"username": "jane"}}
        assert state.username == "jane"

    def test_none_removes_key(self):
        data = {"refresh_token": "rt"}
        SessionTokenState(data).refresh_token = None
        assert data == {}

    def test_clear_keeps_other_keys(self):
        data = {"access_token": "at", "refresh_token": "rt", "account": {}, "csrf": "x"}
        SessionTokenState(data).clear()
        assert data == {"csrf": "x"}

    def test_wrap_is_idempotent(self):
        state = SessionTokenState({})
        assert SessionTokenState.wrap(state) is state

    def test_key_uses_session_id(self):
        assert SessionTokenState(Session()).key == "abc123"
        data = {}
        assert SessionTokenState(data).key == id(data)

    def test_repr_hides_tokens(self):
        state = SessionTokenState({"access_token": "secret-at"})
        assert "secret-at" not in repr(state)

    def test_explicit_key_wins(self):
        assert SessionTokenState(Session(), key="explicit").key == "explicit"
        assert SessionTokenState({}, key="sid-1").key == "sid-1"

    def test_wrap_passes_key(self):
        assert SessionTokenState.wrap({}, key="sid-2").key == "sid-2"
