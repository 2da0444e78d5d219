"""Tests for the Firebase Auth session adapter."""

import time
from unittest.mock import MagicMock

import pytest
import requests

from glasstask.adapters.firebase_auth import AuthenticationError, FirebaseSession
from glasstask.config import Config, Credentials


@pytest.fixture
def config():
    return Config(firebase_api_key="key", firebase_project_id="proj")


@pytest.fixture
def creds_path(tmp_path):
    return tmp_path / ".credentials.json"


def response(status_code=200, data=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = data or {}
    return resp


def make_session(config, creds_path, credentials=None):
    session = FirebaseSession(config, credentials or Credentials(), credentials_path=creds_path)
    session._session = MagicMock()
    return session


class TestCurrentUserKey:
    def test_signed_out(self, config, creds_path):
        assert make_session(config, creds_path).current_user_key() is None

    def test_signed_in(self, config, creds_path):
        session = make_session(config, creds_path, Credentials(user_id="uid", refresh_token="r"))
        assert session.current_user_key() == "uid"

    def test_none_when_sync_not_configured(self, creds_path):
        session = make_session(Config(), creds_path, Credentials(user_id="uid", refresh_token="r"))
        assert session.current_user_key() is None

    def test_user_label_prefers_email(self, config, creds_path):
        session = make_session(config, creds_path, Credentials(user_id="uid", email="me@example.com"))
        assert session.user_label() == "me@example.com"


class TestSignIn:
    def test_stores_credentials(self, config, creds_path):
        session = make_session(config, creds_path)
        session._session.post.return_value = response(
            data={
                "idToken": "id-1",
                "refreshToken": "refresh-1",
                "expiresIn": "3600",
                "localId": "uid-1",
                "email": "me@example.com",
            }
        )

        credentials = session.sign_in("me@example.com", "secret")

        assert credentials.user_id == "uid-1"
        assert credentials.expires_at > time.time()
        assert Credentials.load(creds_path).id_token == "id-1"
        args, kwargs = session._session.post.call_args
        assert args[0].endswith("accounts:signInWithPassword")
        assert kwargs["params"] == {"key": "key"}
        assert kwargs["json"]["returnSecureToken"] is True

    def test_error_message_surfaced(self, config, creds_path):
        session = make_session(config, creds_path)
        session._session.post.return_value = response(400, {"error": {"message": "INVALID_PASSWORD"}})
        with pytest.raises(AuthenticationError, match="INVALID_PASSWORD"):
            session.sign_in("me@example.com", "wrong")

    def test_network_failure(self, config, creds_path):
        session = make_session(config, creds_path)
        session._session.post.side_effect = requests.ConnectionError("offline")
        with pytest.raises(AuthenticationError, match="offline"):
            session.sign_in("me@example.com", "secret")

    def test_not_configured(self, creds_path):
        session = make_session(Config(), creds_path)
        with pytest.raises(AuthenticationError, match="not configured"):
            session.sign_in("me@example.com", "secret")

    def test_sign_up_uses_sign_up_endpoint(self, config, creds_path):
        session = make_session(config, creds_path)
        session._session.post.return_value = response(
            data={"idToken": "i", "refreshToken": "r", "expiresIn": "3600", "localId": "u"}
        )
        session.sign_up("new@example.com", "secret")
        assert session._session.post.call_args[0][0].endswith("accounts:signUp")


class TestPasswordReset:
    def test_sends_reset(self, config, creds_path):
        session = make_session(config, creds_path)
        session._session.post.return_value = response(data={"email": "me@example.com"})
        session.send_password_reset("me@example.com")
        assert session._session.post.call_args[1]["json"]["requestType"] == "PASSWORD_RESET"

    def test_requires_email(self, config, creds_path):
        with pytest.raises(AuthenticationError, match="email"):
            make_session(config, creds_path).send_password_reset("")


class TestIdToken:
    def test_valid_token_returned(self, config, creds_path):
        credentials = Credentials("id", "r", int(time.time()) + 3600, "uid")
        session = make_session(config, creds_path, credentials)
        assert session.id_token() == "id"
        session._session.post.assert_not_called()

    def test_expiring_token_refreshed(self, config, creds_path):
        credentials = Credentials("old", "r", int(time.time()) + 60, "uid")
        session = make_session(config, creds_path, credentials)
        session._session.post.return_value = response(
            data={"id_token": "new", "refresh_token": "r2", "expires_in": "3600"}
        )
        assert session.id_token() == "new"
        assert session.credentials.refresh_token == "r2"
        assert Credentials.load(creds_path).id_token == "new"

    def test_signed_out_raises(self, config, creds_path):
        with pytest.raises(AuthenticationError, match="login"):
            make_session(config, creds_path).id_token()


def test_sign_out_clears_credentials(config, creds_path):
    credentials = Credentials("id", "r", 0, "uid")
    credentials.save(creds_path)
    session = make_session(config, creds_path, credentials)
    session.sign_out()
    assert not creds_path.exists()
    assert session.current_user_key() is None
