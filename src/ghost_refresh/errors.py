from __future__ import annotations

from typing import Optional


class GhostRefreshError(Exception):
    """Base error for the post refresh tool."""


class ConfigurationError(GhostRefreshError):
    pass


class AuthenticationError(GhostRefreshError):
    pass


class GhostAPIError(GhostRefreshError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
