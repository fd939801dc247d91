from __future__ import annotations

import time
from collections.abc import Callable
from typing import Optional

import requests

from ..errors import AuthenticationError
from ..models import NotificationResult
from .auth import OAuthCredentials
from .base import Notifier

INDEXING_PUBLISH_URL = "https://indexing.googleapis.com/v3/urlNotifications:publish"

TokenRefresher = Callable[[OAuthCredentials], OAuthCredentials]


class GoogleIndexingNotifier(Notifier):
    name = "google-indexing"

    def __init__(
        self,
        credentials: OAuthCredentials,
        timeout_sec: float,
        refresher: Optional[TokenRefresher] = None,
        endpoint: str = INDEXING_PUBLISH_URL,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ):
        if not credentials.access_token:
            raise ValueError("an access token is required for the Indexing API")
        self.credentials = credentials
        self.timeout_sec = timeout_sec
        self.refresher = refresher
        self.endpoint = endpoint
        self.session = session or requests.Session()
        self.clock = clock

    def notify_updated(self, url: str) -> NotificationResult:
        if not url:
            return NotificationResult(success=False, error_message="post has no url")

        try:
            if self.refresher and self.credentials.expired(self.clock()):
                self._refresh()
            response = self._publish(url)
            if response.status_code == 401 and self.refresher:
                self._refresh()
                response = self._publish(url)
            response.raise_for_status()
        except AuthenticationError as exc:
            return NotificationResult(success=False, error_message=f"token refresh failed: {exc}")
        except Exception as exc:
            return NotificationResult(success=False, error_message=f"HTTP request failed: {exc}")

        return NotificationResult(success=True)

    def _refresh(self) -> None:
        self.credentials = self.refresher(self.credentials)

    def _publish(self, url: str) -> requests.Response:
        return self.session.post(
            self.endpoint,
            json={"url": url, "type": "URL_UPDATED"},
            headers={"Authorization": f"{self.credentials.token_type} {self.credentials.access_token}"},
            timeout=self.timeout_sec,
        )
