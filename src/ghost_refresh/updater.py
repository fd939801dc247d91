from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol

from .diagnostics import write_post_details
from .errors import GhostAPIError
from .models import (
    DIAGNOSTIC_FETCH_FAILED,
    DIAGNOSTIC_WRITE_FAILED,
    DIAGNOSTIC_WRITTEN,
    PUBLIC_VISIBILITY,
    Article,
    DiagnosticResult,
    EditResult,
    UpdateResult,
)

DETAIL_INCLUDE = "authors,tags"


class PostEditor(Protocol):
    def read_post(self, post_id: str, include: Optional[str] = None) -> dict[str, Any]:
        ...

    def edit_post(self, post_id: str, updated_at: Optional[str], fields: Mapping[str, Any]) -> Article:
        ...


def stage_changes(article: Article) -> dict[str, str]:
    staged: dict[str, str] = {}
    if article.custom_excerpt and not article.meta_description:
        staged["meta_description"] = article.custom_excerpt
    if article.visibility != PUBLIC_VISIBILITY:
        staged["visibility"] = PUBLIC_VISIBILITY
    return staged


class ArticleUpdater:
    def __init__(
        self,
        client: PostEditor,
        diagnostics_dir: Path = Path("."),
        dry_run: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        self.client = client
        self.diagnostics_dir = Path(diagnostics_dir)
        self.dry_run = dry_run
        self.logger = logger or logging.getLogger(__name__)

    def update(self, article: Article) -> UpdateResult:
        try:
            return self._update(article)
        except Exception as exc:
            self.logger.exception("error processing post %s", article.id)
            return UpdateResult(post=None, updated=False, error=str(exc))

    def _update(self, article: Article) -> UpdateResult:
        staged = stage_changes(article)
        if not staged:
            self.logger.info("no updates needed for post %s", article.id)
            return UpdateResult(post=article, updated=False)

        if self.dry_run:
            self.logger.info("dry run: would update post %s fields=%s", article.id, sorted(staged))
            return UpdateResult(post=article, updated=False, staged=staged)

        edit = self._edit(article, staged)
        if edit.success:
            self.logger.info("updated post %s fields=%s", article.id, sorted(staged))
            return UpdateResult(post=edit.post, updated=True, staged=staged)

        self.logger.error("error updating post %s: %s", article.id, edit.error_message)
        diagnostic = self._capture_diagnostics(article.id)
        return UpdateResult(
            post=article,
            updated=False,
            error=edit.error_message,
            staged=staged,
            diagnostic=diagnostic,
        )

    def _edit(self, article: Article, staged: Mapping[str, str]) -> EditResult:
        try:
            post = self.client.edit_post(article.id, updated_at=article.updated_at, fields=staged)
        except GhostAPIError as exc:
            return EditResult(success=False, error_message=exc.message)
        return EditResult(success=True, post=post)

    def _capture_diagnostics(self, post_id: str) -> DiagnosticResult:
        # Neither stage may raise: the edit error recorded by the caller must survive.
        try:
            details = self.client.read_post(post_id, include=DETAIL_INCLUDE)
        except Exception as exc:
            message = exc.message if isinstance(exc, GhostAPIError) else str(exc)
            self.logger.error("error fetching full details for post %s: %s", post_id, message)
            return DiagnosticResult(status=DIAGNOSTIC_FETCH_FAILED, error_message=message)

        try:
            path = write_post_details(self.diagnostics_dir, post_id, details)
        except Exception as exc:
            self.logger.error("error writing post details for %s: %s", post_id, exc)
            return DiagnosticResult(status=DIAGNOSTIC_WRITE_FAILED, error_message=str(exc))

        self.logger.info("full post details written to %s", path)
        return DiagnosticResult(status=DIAGNOSTIC_WRITTEN, path=path)
