from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlencode

import requests

from ..errors import AuthenticationError

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
INDEXING_SCOPE = "https://www.googleapis.com/auth/indexing"
EXPIRY_LEEWAY_SEC = 60


@dataclass(frozen=True)
class OAuthCredentials:
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[float] = None
    token_type: str = "Bearer"

    def expired(self, now: float, leeway: float = EXPIRY_LEEWAY_SEC) -> bool:
        if self.expires_at is None:
            return False
        return now >= self.expires_at - leeway


class GoogleAuthenticator:
    """Interactive authorization-code exchange for the Indexing API scope.

    The pasted code is exchanged once per run; afterwards ``refresh`` trades
    the refresh token for a new access token when the old one expires.
    """

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        redirect_uri: Optional[str],
        timeout_sec: float,
        prompt: Callable[[str], str] = input,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client_id = (client_id or "").strip()
        self.client_secret = (client_secret or "").strip()
        self.redirect_uri = (redirect_uri or "").strip()
        self.timeout_sec = timeout_sec
        self.prompt = prompt
        self.session = session or requests.Session()
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock

    def authorization_url(self) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": INDEXING_SCOPE,
            "access_type": "offline",
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    def authenticate(self) -> OAuthCredentials:
        missing = [
            name
            for name, value in (
                ("GOOGLE_CLIENT_ID", self.client_id),
                ("GOOGLE_CLIENT_SECRET", self.client_secret),
                ("GOOGLE_REDIRECT_URI", self.redirect_uri),
            )
            if not value
        ]
        if missing:
            raise AuthenticationError(f"Reindexing requires {', '.join(missing)}")

        url = self.authorization_url()
        print(f"Authorize this app by visiting this url:\n{url}")
        try:
            code = (self.prompt("Enter the code from that page here: ") or "").strip()
        except EOFError as exc:
            raise AuthenticationError("No authorization code entered") from exc
        if not code:
            raise AuthenticationError("No authorization code entered")

        credentials = self.exchange_code(code)
        self.logger.info("successfully authenticated with Google")
        return credentials

    def exchange_code(self, code: str) -> OAuthCredentials:
        body = self._token_request(
            {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": self.redirect_uri,
            },
            action="Token exchange",
        )
        return self._credentials(body, refresh_token=body.get("refresh_token"))

    def refresh(self, credentials: OAuthCredentials) -> OAuthCredentials:
        if not credentials.refresh_token:
            raise AuthenticationError("Access token expired and no refresh token was issued")

        body = self._token_request(
            {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": credentials.refresh_token,
                "grant_type": "refresh_token",
            },
            action="Token refresh",
        )
        self.logger.info("refreshed Google access token")
        # Google usually omits the refresh token on refresh; the old one stays valid.
        return self._credentials(body, refresh_token=body.get("refresh_token") or credentials.refresh_token)

    def _token_request(self, data: dict[str, str], action: str) -> dict[str, Any]:
        try:
            response = self.session.post(GOOGLE_TOKEN_URL, data=data, timeout=self.timeout_sec)
        except requests.RequestException as exc:
            raise AuthenticationError(f"{action} request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.status_code != 200:
            detail = body.get("error_description") or body.get("error") or (response.text or "")[:200]
            raise AuthenticationError(f"{action} failed: HTTP {response.status_code}: {detail}")

        if not body.get("access_token"):
            raise AuthenticationError(f"{action} response missing access_token: {body}")
        return body

    def _credentials(self, body: dict[str, Any], refresh_token: Optional[str]) -> OAuthCredentials:
        expires_in = body.get("expires_in")
        return OAuthCredentials(
            access_token=str(body["access_token"]),
            refresh_token=refresh_token,
            expires_at=self.clock() + int(expires_in) if expires_in is not None else None,
            token_type=str(body.get("token_type") or "Bearer"),
        )
