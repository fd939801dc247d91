from __future__ import annotations

import argparse
import logging
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

import requests

from .config import Settings
from .errors import AuthenticationError, ConfigurationError
from .ghost.admin import GhostAdminClient
from .indexing.auth import GoogleAuthenticator
from .indexing.google import GoogleIndexingNotifier
from .models import RunOptions
from .pipeline import PostRefreshPipeline
from .report import BatchWriter
from .source import ArticleSource
from .updater import ArticleUpdater

DEFAULT_LIMIT = 15
DEFAULT_OUTPUT = "post_update_results"


def _parse_reindex(value: str) -> bool:
    # A bare "--reindex" or an empty value counts as enabled; anything but "true" disables.
    return value.strip().lower() in {"", "true"}


def _parse_date(value: str) -> date:
    text = value.strip()
    if not text:
        return date.today()
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("date must be YYYY-MM-DD, e.g. 2024-01-31") from exc


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if number <= 0:
        raise argparse.ArgumentTypeError("limit must be a positive integer")
    return number


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Copy excerpts into meta descriptions, make Ghost posts public and reindex them"
    )
    parser.add_argument(
        "-l",
        "--limit",
        type=_positive_int,
        default=DEFAULT_LIMIT,
        help=f"Number of posts to process per request (default: {DEFAULT_LIMIT})",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=DEFAULT_OUTPUT,
        help=f"Output CSV filename prefix (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "-r",
        "--reindex",
        type=_parse_reindex,
        nargs="?",
        const=True,
        default=True,
        metavar="BOOL",
        help="Notify the Google Indexing API about updated posts (default: true)",
    )
    parser.add_argument(
        "-d",
        "--date",
        type=_parse_date,
        default=None,
        metavar="YYYY-MM-DD",
        help="Only process posts published before this date (default: today)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Show staged changes without writing to Ghost")
    parser.add_argument("--config-file", default="config.ini", help="Path to config.ini file")
    parser.add_argument("--env-file", default=".env", help="Path to .env file")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    return parser.parse_args(argv)


def _run_options(args: argparse.Namespace) -> RunOptions:
    return RunOptions(
        limit=args.limit,
        output=args.output,
        reindex=args.reindex,
        cutoff_date=args.date or date.today(),
        dry_run=args.dry_run,
    )


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger("ghost_refresh")

    settings = Settings.from_files(
        config_file=Path(args.config_file),
        env_file=Path(args.env_file),
    )
    try:
        settings.require_ghost()
    except ConfigurationError as exc:
        raise SystemExit(str(exc)) from exc
    settings.ensure_dirs()

    options = _run_options(args)
    logger.info(
        "reindexing is %s; processing posts published before %s",
        "enabled" if options.reindex else "disabled",
        options.cutoff_date.isoformat(),
    )

    session = requests.Session()
    session.headers.update({"User-Agent": settings.request_user_agent})
    try:
        try:
            client = GhostAdminClient(
                api_url=settings.ghost_api_url or "",
                admin_api_key=settings.ghost_admin_api_key or "",
                timeout_sec=settings.request_timeout_sec,
                api_version=settings.ghost_api_version,
                session=session,
            )
        except ValueError as exc:
            raise SystemExit(str(exc)) from exc

        notifier = None
        if options.reindex and not options.dry_run:
            authenticator = GoogleAuthenticator(
                client_id=settings.google_client_id,
                client_secret=settings.google_client_secret,
                redirect_uri=settings.google_redirect_uri,
                timeout_sec=settings.request_timeout_sec,
                session=session,
                logger=logger,
            )
            try:
                credentials = authenticator.authenticate()
            except AuthenticationError as exc:
                logger.error("error authenticating with Google: %s", exc)
                raise SystemExit(1) from exc
            notifier = GoogleIndexingNotifier(
                credentials=credentials,
                timeout_sec=settings.request_timeout_sec,
                refresher=authenticator.refresh,
                session=session,
            )

        pipeline = PostRefreshPipeline(
            options=options,
            source=ArticleSource(client, limit=options.limit, cutoff_date=options.cutoff_date, logger=logger),
            updater=ArticleUpdater(
                client,
                diagnostics_dir=settings.diagnostics_dir,
                dry_run=options.dry_run,
                logger=logger,
            ),
            writer=BatchWriter(options.output, logger=logger),
            notifier=notifier,
            logger=logger,
        )
        stats = pipeline.run()
    finally:
        session.close()

    logger.info(
        "run complete: fetched=%s updated=%s unchanged=%s failed=%s skipped=%s reindexed=%s batches=%s",
        stats.fetched,
        stats.updated,
        stats.unchanged,
        stats.failed,
        stats.skipped,
        stats.reindexed,
        stats.batches,
    )
    if stats.fetch_error:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
