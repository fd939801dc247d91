"""Ghost Admin API access."""

from .admin import GhostAdminClient, published_before_filter

__all__ = ["GhostAdminClient", "published_before_filter"]
