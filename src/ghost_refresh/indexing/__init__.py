"""Search engine reindex notifications."""

from .auth import GoogleAuthenticator, OAuthCredentials
from .base import Notifier
from .google import GoogleIndexingNotifier

__all__ = [
    "GoogleAuthenticator",
    "GoogleIndexingNotifier",
    "Notifier",
    "OAuthCredentials",
]
