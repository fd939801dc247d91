from __future__ import annotations

import csv
import logging
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Optional

import pytest

from ghost_refresh.errors import GhostAPIError
from ghost_refresh.indexing.base import Notifier
from ghost_refresh.models import Article, NotificationResult, RunOptions
from ghost_refresh.pipeline import PostRefreshPipeline
from ghost_refresh.report import BatchWriter
from ghost_refresh.source import ArticleSource
from ghost_refresh.updater import ArticleUpdater


def _article(index: int, visibility: str = "members", excerpt: Optional[str] = "Excerpt") -> Article:
    return Article(
        id=f"p{index}",
        title=f"Post {index}",
        published_at="2024-01-01T00:00:00.000Z",
        visibility=visibility,
        custom_excerpt=excerpt,
        meta_description=None,
        url=f"https://blog.example.com/p{index}/",
        updated_at="2024-02-01T00:00:00.000Z",
    )


class FakeGhost:
    def __init__(
        self,
        articles: list[Article],
        limit: int,
        fail_on_page: Optional[int] = None,
        failing_edits: frozenset = frozenset(),
        exploding_edits: frozenset = frozenset(),
    ):
        self.pages = [articles[i : i + limit] for i in range(0, len(articles), limit)]
        self.fail_on_page = fail_on_page
        self.failing_edits = failing_edits
        self.exploding_edits = exploding_edits
        self.browse_calls: list[int] = []
        self.edits: list[str] = []
        self.reads: list[str] = []

    def browse_posts(self, limit: int, page: int, filter_expr: str) -> list[Article]:
        self.browse_calls.append(page)
        if page == self.fail_on_page:
            raise GhostAPIError("Unable to connect to Ghost")
        if page > len(self.pages):
            return []
        return self.pages[page - 1]

    def edit_post(self, post_id, updated_at, fields):
        self.edits.append(post_id)
        if post_id in self.exploding_edits:
            raise RuntimeError("unexpected payload")
        if post_id in self.failing_edits:
            raise GhostAPIError("Saving failed! Someone else is editing this post.", status_code=409)
        index = int(post_id[1:])
        return replace(_article(index), **fields)

    def read_post(self, post_id, include=None):
        self.reads.append(post_id)
        return {"id": post_id, "authors": [], "tags": []}


class RecordingNotifier(Notifier):
    name = "recording"

    def __init__(self, success: bool = True):
        self.success = success
        self.urls: list[str] = []

    def notify_updated(self, url: str) -> NotificationResult:
        self.urls.append(url)
        return NotificationResult(success=self.success, error_message=None if self.success else "quota exceeded")


def _pipeline(
    tmp_path: Path,
    ghost: FakeGhost,
    reindex: bool = False,
    notifier: Optional[Notifier] = None,
    limit: int = 15,
) -> PostRefreshPipeline:
    options = RunOptions(limit=limit, output=str(tmp_path / "results"), reindex=reindex, cutoff_date=date(2024, 6, 1))
    return PostRefreshPipeline(
        options=options,
        source=ArticleSource(ghost, limit=limit, cutoff_date=options.cutoff_date),
        updater=ArticleUpdater(ghost, diagnostics_dir=tmp_path),
        writer=BatchWriter(options.output),
        notifier=notifier,
    )


def _row_counts(tmp_path: Path) -> list[int]:
    counts = []
    for path in sorted(tmp_path.glob("results_batch*.csv")):
        with path.open(newline="", encoding="utf-8") as handle:
            counts.append(len(list(csv.reader(handle))) - 1)
    return counts


def test_forty_five_posts_without_reindex_write_three_batches(tmp_path: Path) -> None:
    articles = [_article(i) for i in range(1, 46)]
    ghost = FakeGhost(articles, limit=15, failing_edits=frozenset({"p3", "p30"}))

    stats = _pipeline(tmp_path, ghost).run()

    assert _row_counts(tmp_path) == [20, 20, 5]
    assert stats.batches == 3
    assert stats.fetched == 45
    assert stats.updated == 43
    assert stats.failed == 2
    assert stats.reindexed == 0
    assert stats.fetch_error is None
    assert ghost.browse_calls == [1, 2, 3, 4]
    assert sorted(ghost.reads) == ["p3", "p30"]
    assert len(list(tmp_path.glob("post_*_details.json"))) == 2


def test_reindex_only_for_updated_posts(tmp_path: Path) -> None:
    articles = [_article(1), _article(2, visibility="public", excerpt=None), _article(3)]
    ghost = FakeGhost(articles, limit=15, failing_edits=frozenset({"p3"}))
    notifier = RecordingNotifier()

    stats = _pipeline(tmp_path, ghost, reindex=True, notifier=notifier).run()

    assert notifier.urls == ["https://blog.example.com/p1/"]
    assert stats.reindexed == 1
    assert stats.unchanged == 1
    with (tmp_path / "results_batch1.csv").open(newline="", encoding="utf-8") as handle:
        rows = list(csv.reader(handle))[1:]
    assert rows[0] == ["p1", "Post 1", "true", "true", "true", "true", ""]
    assert rows[1] == ["p2", "Post 2", "false", "false", "false", "false", ""]
    assert rows[2] == [
        "p3",
        "Post 3",
        "false",
        "false",
        "false",
        "false",
        "Saving failed! Someone else is editing this post.",
    ]


def test_reindex_failure_keeps_updated_flag(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    ghost = FakeGhost([_article(1)], limit=15)
    notifier = RecordingNotifier(success=False)

    with caplog.at_level(logging.INFO, logger="ghost_refresh.pipeline"):
        stats = _pipeline(tmp_path, ghost, reindex=True, notifier=notifier).run()

    assert stats.updated == 1
    assert stats.reindexed == 0
    with (tmp_path / "results_batch1.csv").open(newline="", encoding="utf-8") as handle:
        row = list(csv.reader(handle))[1]
    assert row[4:6] == ["true", "false"]
    assert "via recording: quota exceeded" in caplog.text


def test_reindex_disabled_never_notifies(tmp_path: Path) -> None:
    ghost = FakeGhost([_article(1)], limit=15)
    notifier = RecordingNotifier()

    _pipeline(tmp_path, ghost, reindex=False, notifier=notifier).run()

    assert notifier.urls == []


def test_fetch_error_on_second_page_stops_after_first(tmp_path: Path) -> None:
    articles = [_article(i) for i in range(1, 21)]
    ghost = FakeGhost(articles, limit=10, fail_on_page=2)

    stats = _pipeline(tmp_path, ghost, limit=10).run()

    assert stats.fetch_error == "Unable to connect to Ghost"
    assert stats.fetched == 10
    assert ghost.browse_calls == [1, 2]
    assert _row_counts(tmp_path) == [10]


def test_unexpected_errors_skip_the_post(tmp_path: Path) -> None:
    ghost = FakeGhost([_article(1), _article(2)], limit=15, exploding_edits=frozenset({"p1"}))
    notifier = RecordingNotifier()

    stats = _pipeline(tmp_path, ghost, reindex=True, notifier=notifier).run()

    assert stats.skipped == 1
    assert stats.updated == 1
    assert notifier.urls == ["https://blog.example.com/p2/"]
    assert _row_counts(tmp_path) == [1]


def test_each_post_is_edited_once(tmp_path: Path) -> None:
    articles = [_article(i) for i in range(1, 8)]
    ghost = FakeGhost(articles, limit=3)

    _pipeline(tmp_path, ghost, limit=3).run()

    assert ghost.edits == [f"p{i}" for i in range(1, 8)]
