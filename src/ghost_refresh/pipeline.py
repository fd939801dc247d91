from __future__ import annotations

import logging
from typing import Optional

from .errors import GhostAPIError
from .indexing.base import Notifier
from .models import Article, RunOptions, RunStats, UpdateOutcome, UpdateResult
from .report import BatchWriter
from .source import ArticleSource
from .updater import ArticleUpdater


class PostRefreshPipeline:
    def __init__(
        self,
        options: RunOptions,
        source: ArticleSource,
        updater: ArticleUpdater,
        writer: BatchWriter,
        notifier: Optional[Notifier] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.options = options
        self.source = source
        self.updater = updater
        self.writer = writer
        self.notifier = notifier
        self.logger = logger or logging.getLogger(__name__)

    @property
    def reindex_enabled(self) -> bool:
        return self.options.reindex and not self.options.dry_run and self.notifier is not None

    def run(self) -> RunStats:
        fetched = updated = unchanged = failed = skipped = reindexed = 0
        fetch_error: Optional[str] = None

        try:
            for page in self.source.pages():
                for article in page:
                    fetched += 1
                    self.logger.info("processing post: %s", article.title)
                    result = self.updater.update(article)
                    if result.post is None:
                        skipped += 1
                        self.logger.warning("skipping post %s due to processing error", article.id)
                        continue

                    was_reindexed = self._reindex(article, result)
                    outcome = UpdateOutcome.from_update(article, result, reindexed=was_reindexed)
                    self.writer.append(outcome)

                    if result.updated:
                        updated += 1
                    elif result.error:
                        failed += 1
                    else:
                        unchanged += 1
                    if was_reindexed:
                        reindexed += 1
        except GhostAPIError as exc:
            fetch_error = exc.message
            self.logger.error("error fetching posts: %s", exc.message)
        finally:
            written = self.writer.finalize()

        stats = RunStats(
            fetched=fetched,
            updated=updated,
            unchanged=unchanged,
            failed=failed,
            skipped=skipped,
            reindexed=reindexed,
            batches=len(written),
            fetch_error=fetch_error,
        )
        self.logger.info("total posts processed: %s", self.writer.total)
        return stats

    def _reindex(self, article: Article, result: UpdateResult) -> bool:
        if not result.updated or not self.reindex_enabled:
            return False

        url = (result.post.url if result.post else None) or article.url or ""
        notification = self.notifier.notify_updated(url)
        if notification.success:
            self.logger.info("reindexing post %s via %s", url, self.notifier.name)
            return True

        self.logger.error(
            "error reindexing post %s via %s: %s", url, self.notifier.name, notification.error_message
        )
        return False
