"""Firebase Auth adapter - email/password accounts over the REST API."""

import logging
import time
from pathlib import Path

import requests

from glasstask.config import CREDENTIALS_FILE, Config, Credentials, load_config

logger = logging.getLogger(__name__)

IDENTITY_BASE = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"
REQUEST_TIMEOUT = 30


class AuthenticationError(Exception):
    """Raised when authentication fails."""

    pass


def _error_message(resp: requests.Response) -> str:
    try:
        return resp.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"HTTP {resp.status_code}"


class FirebaseSession:
    """
    Firebase email/password session.

    Implements Session protocol. Handles sign-in, sign-up, password reset,
    and token refresh. No business logic - just I/O.
    """

    def __init__(
        self,
        config: Config | None = None,
        credentials: Credentials | None = None,
        credentials_path: Path = CREDENTIALS_FILE,
    ):
        self.config = config or load_config()
        self.credentials_path = credentials_path
        self.credentials = credentials or Credentials.load(credentials_path)
        self._session = requests.Session()

    def current_user_key(self) -> str | None:
        if not self.config.sync_enabled or not self.credentials.signed_in:
            return None
        return self.credentials.user_id

    def user_label(self) -> str:
        return self.credentials.email or self.credentials.user_id

    def id_token(self) -> str:
        """Return a valid ID token, refreshing if expired or expiring soon."""
        if not self.credentials.signed_in:
            raise AuthenticationError("Not signed in. Run 'glasstask login' first.")

        # Refresh if expiring within 5 minutes
        if time.time() >= self.credentials.expires_at - 300:
            self._refresh_token()
        return self.credentials.id_token

    def _post(self, url: str, **kwargs) -> dict:
        if not self.config.sync_enabled:
            raise AuthenticationError(
                "Firebase not configured. Add FIREBASE_API_KEY and FIREBASE_PROJECT_ID to glasstask.conf"
            )
        try:
            resp = self._session.post(
                url,
                params={"key": self.config.firebase_api_key},
                timeout=REQUEST_TIMEOUT,
                **kwargs,
            )
        except requests.RequestException as e:
            raise AuthenticationError(f"Authentication request failed: {e}") from e

        if resp.status_code != 200:
            raise AuthenticationError(_error_message(resp))
        return resp.json()

    def _refresh_token(self) -> None:
        """Exchange the refresh token for a new ID token."""
        data = self._post(
            SECURE_TOKEN_URL,
            data={
                "grant_type": "refresh_token",
                "refresh_token": self.credentials.refresh_token,
            },
        )
        self.credentials.id_token = data["id_token"]
        self.credentials.refresh_token = data.get("refresh_token", self.credentials.refresh_token)
        self.credentials.expires_at = int(time.time()) + int(data.get("expires_in", 3600))
        self.credentials.save(self.credentials_path)
        logger.debug("Refreshed Firebase ID token")

    def _store(self, data: dict) -> Credentials:
        self.credentials = Credentials(
            id_token=data["idToken"],
            refresh_token=data["refreshToken"],
            expires_at=int(time.time()) + int(data.get("expiresIn", 3600)),
            user_id=data["localId"],
            email=data.get("email", ""),
        )
        self.credentials.save(self.credentials_path)
        return self.credentials

    def sign_in(self, email: str, password: str) -> Credentials:
        """Sign in with email and password."""
        data = self._post(
            f"{IDENTITY_BASE}/accounts:signInWithPassword",
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        logger.info(f"Signed in as {email}")
        return self._store(data)

    def sign_up(self, email: str, password: str) -> Credentials:
        """Create an account and sign in."""
        data = self._post(
            f"{IDENTITY_BASE}/accounts:signUp",
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        logger.info(f"Created account {email}")
        return self._store(data)

    def send_password_reset(self, email: str) -> None:
        if not email:
            raise AuthenticationError("Enter your email first")
        self._post(
            f"{IDENTITY_BASE}/accounts:sendOobCode",
            json={"requestType": "PASSWORD_RESET", "email": email},
        )

    def sign_out(self) -> None:
        self.credentials = Credentials()
        Credentials.clear(self.credentials_path)
