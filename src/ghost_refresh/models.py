from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Mapping, Optional

PUBLIC_VISIBILITY = "public"


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class Article:
    id: str
    title: str
    published_at: Optional[str]
    visibility: str
    custom_excerpt: Optional[str]
    meta_description: Optional[str]
    url: Optional[str]
    updated_at: Optional[str]

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Article":
        return cls(
            id=str(payload["id"]),
            title=str(payload.get("title") or ""),
            published_at=_optional_text(payload.get("published_at")),
            visibility=str(payload.get("visibility") or ""),
            custom_excerpt=_optional_text(payload.get("custom_excerpt")),
            meta_description=_optional_text(payload.get("meta_description")),
            url=_optional_text(payload.get("url")),
            updated_at=_optional_text(payload.get("updated_at")),
        )

    @property
    def is_public(self) -> bool:
        return self.visibility == PUBLIC_VISIBILITY


@dataclass(frozen=True)
class RunOptions:
    limit: int = 15
    output: str = "post_update_results"
    reindex: bool = True
    cutoff_date: date = field(default_factory=date.today)
    dry_run: bool = False


@dataclass(frozen=True)
class EditResult:
    success: bool
    post: Optional[Article] = None
    error_message: Optional[str] = None


DIAGNOSTIC_WRITTEN = "written"
DIAGNOSTIC_FETCH_FAILED = "fetch_failed"
DIAGNOSTIC_WRITE_FAILED = "write_failed"


@dataclass(frozen=True)
class DiagnosticResult:
    status: str
    path: Optional[Path] = None
    error_message: Optional[str] = None


@dataclass(frozen=True)
class UpdateResult:
    post: Optional[Article]
    updated: bool
    error: Optional[str] = None
    staged: Mapping[str, str] = field(default_factory=dict)
    diagnostic: Optional[DiagnosticResult] = None


@dataclass(frozen=True)
class NotificationResult:
    success: bool
    error_message: Optional[str] = None


@dataclass(frozen=True)
class UpdateOutcome:
    article_id: str
    title: str
    excerpt_copied: bool
    made_public: bool
    updated: bool
    reindexed: bool
    error: Optional[str] = None

    @classmethod
    def from_update(
        cls,
        original: Article,
        result: UpdateResult,
        reindexed: bool,
    ) -> "UpdateOutcome":
        current = result.post or original
        return cls(
            article_id=original.id,
            title=original.title,
            excerpt_copied=(original.meta_description or "") != (current.meta_description or ""),
            made_public=current.is_public and not original.is_public,
            updated=result.updated,
            reindexed=reindexed,
            error=result.error,
        )


@dataclass(frozen=True)
class RunStats:
    fetched: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: int = 0
    skipped: int = 0
    reindexed: int = 0
    batches: int = 0
    fetch_error: Optional[str] = None
