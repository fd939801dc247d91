from __future__ import annotations

import logging
from datetime import date
from typing import Iterator, Optional, Protocol

from .ghost.admin import published_before_filter
from .models import Article


class PostBrowser(Protocol):
    def browse_posts(self, limit: int, page: int, filter_expr: str) -> list[Article]:
        ...


class ArticleSource:
    """Pages through published posts older than a cutoff date.

    Iteration stops at the first empty page. Request errors propagate to the
    caller unchanged so a failed page ends the run instead of being skipped.
    """

    def __init__(
        self,
        client: PostBrowser,
        limit: int,
        cutoff_date: date,
        logger: Optional[logging.Logger] = None,
    ):
        if limit <= 0:
            raise ValueError("page size must be positive")
        self.client = client
        self.limit = limit
        self.cutoff_date = cutoff_date
        self.logger = logger or logging.getLogger(__name__)

    @property
    def filter_expr(self) -> str:
        return published_before_filter(self.cutoff_date)

    def pages(self) -> Iterator[list[Article]]:
        page = 1
        while True:
            self.logger.debug("fetching posts: page=%s limit=%s", page, self.limit)
            posts = self.client.browse_posts(limit=self.limit, page=page, filter_expr=self.filter_expr)
            if not posts:
                self.logger.info("no more posts after page=%s", page - 1)
                return
            self.logger.info("fetched posts: page=%s count=%s", page, len(posts))
            yield posts
            page += 1
