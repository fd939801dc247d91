from __future__ import annotations

import time
from datetime import date
from typing import Any, Mapping, Optional

import jwt
import requests

from ..errors import GhostAPIError
from ..models import Article

TOKEN_TTL_SEC = 5 * 60
TOKEN_AUDIENCE = "/admin/"


def published_before_filter(cutoff: date) -> str:
    return f"status:published+published_at:<'{cutoff.isoformat()}'"


class GhostAdminClient:
    """Thin client for the subset of the Ghost Admin API used by the refresher."""

    def __init__(
        self,
        api_url: str,
        admin_api_key: str,
        timeout_sec: float,
        api_version: str = "v5.0",
        session: Optional[requests.Session] = None,
    ):
        key_id, sep, secret = (admin_api_key or "").strip().partition(":")
        if not sep or not key_id or not secret:
            raise ValueError("GHOST_ADMIN_API_KEY must look like '<id>:<secret>'")
        try:
            self._secret = bytes.fromhex(secret)
        except ValueError as exc:
            raise ValueError("GHOST_ADMIN_API_KEY secret must be hex encoded") from exc

        self.key_id = key_id
        self.base_url = api_url.strip().rstrip("/") + "/ghost/api/admin"
        self.timeout_sec = timeout_sec
        self.api_version = api_version
        self.session = session or requests.Session()

    def make_token(self, now: Optional[int] = None) -> str:
        issued_at = int(now if now is not None else time.time())
        payload = {"iat": issued_at, "exp": issued_at + TOKEN_TTL_SEC, "aud": TOKEN_AUDIENCE}
        return jwt.encode(payload, self._secret, algorithm="HS256", headers={"kid": self.key_id})

    def browse_posts(self, limit: int, page: int, filter_expr: str) -> list[Article]:
        body = self._request(
            "GET",
            "/posts/",
            params={"limit": limit, "page": page, "filter": filter_expr},
        )
        posts = body.get("posts") or []
        if not isinstance(posts, list):
            raise GhostAPIError(f"Ghost response posts is not a list: {body}")
        return [self._article(item) for item in posts]

    def read_post(self, post_id: str, include: Optional[str] = None) -> dict[str, Any]:
        params = {"include": include} if include else None
        body = self._request("GET", f"/posts/{post_id}/", params=params)
        return self._single_post(body)

    def edit_post(self, post_id: str, updated_at: Optional[str], fields: Mapping[str, Any]) -> Article:
        post: dict[str, Any] = dict(fields)
        post["updated_at"] = updated_at
        body = self._request("PUT", f"/posts/{post_id}/", json={"posts": [post]})
        return self._article(self._single_post(body))

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Ghost {self.make_token()}",
            "Accept-Version": self.api_version,
        }

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        json: Optional[Mapping[str, Any]] = None,
    ) -> dict:
        try:
            response = self.session.request(
                method,
                self.base_url + path,
                params=params,
                json=json,
                headers=self._headers(),
                timeout=self.timeout_sec,
            )
        except requests.RequestException as exc:
            raise GhostAPIError(f"HTTP request failed: {exc}") from exc

        if response.status_code >= 400:
            raise GhostAPIError(self._error_message(response), status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise GhostAPIError(
                f"Ghost returned invalid JSON: {(response.text or '')[:200]}",
                status_code=response.status_code,
            ) from exc
        if not isinstance(body, dict):
            raise GhostAPIError(
                f"Ghost returned unexpected JSON: {(response.text or '')[:200]}",
                status_code=response.status_code,
            )
        return body

    @staticmethod
    def _article(item: Any) -> Article:
        if not isinstance(item, dict):
            raise GhostAPIError(f"Ghost returned a malformed post: {item!r}")
        try:
            return Article.from_api(item)
        except KeyError as exc:
            raise GhostAPIError(f"Ghost post missing field {exc}: {item!r}") from exc

    @staticmethod
    def _single_post(body: Mapping[str, Any]) -> dict[str, Any]:
        posts = body.get("posts") or []
        if not isinstance(posts, list) or not posts or not isinstance(posts[0], dict):
            raise GhostAPIError(f"Ghost response missing posts: {body}")
        return posts[0]

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = {}

        errors = body.get("errors") if isinstance(body, dict) else None
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            first = errors[0]
            message = first.get("message") or "unknown Ghost error"
            context = first.get("context")
            return f"{message} ({context})" if context else message
        return f"HTTP {response.status_code}: {(response.text or '')[:200]}"
