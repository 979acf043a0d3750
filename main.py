"""CLI entrypoint: collate Google Scholar alerts into ranked HTML digests."""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from pathlib import Path

from dotenv import load_dotenv

from config import DigestConfig
from csv_sink import write_digest_csv
from digest import build_digest
from mail_source import load_messages
from render import digest_subject, render_page


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Collate Google Scholar alert emails into a ranked digest")
    parser.add_argument("paths", nargs="+", help="mbox files, .eml files or directories of .eml files")
    parser.add_argument("--output-dir", default=None, help="Directory for the rendered HTML digest parts")
    parser.add_argument("--csv", dest="csv_path", default=None, help="Path of the CSV export of ranked papers")
    parser.add_argument("--page-size", type=int, default=None, help="Papers per digest part")
    parser.add_argument("--days", type=int, default=None, help="Only include alerts from the past N days")
    parser.add_argument(
        "--all-senders",
        action="store_true",
        help="Do not filter messages by SENDER_EMAIL",
    )
    parser.add_argument(
        "--compact",
        action="store_true",
        help="Omit snippets and per-author notes (keeps very large digests small)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only log what would be written",
    )
    return parser.parse_args(argv)


def apply_overrides(config: DigestConfig, args: argparse.Namespace) -> DigestConfig:
    """Let CLI flags win over environment settings."""
    overrides: dict = {}
    if args.output_dir is not None:
        overrides["output_dir"] = args.output_dir
    if args.csv_path is not None:
        overrides["csv_path"] = args.csv_path
    if args.page_size is not None:
        overrides["page_size"] = args.page_size
    if args.days is not None:
        overrides["past_day_range"] = args.days
    if args.all_senders:
        overrides["sender"] = ""
    if args.compact:
        overrides["compact"] = True

    config = replace(config, **overrides)
    config.validate()
    return config


def run(paths: list[str], config: DigestConfig, dry_run: bool, now: datetime | None = None) -> list[Path]:
    """Run one digest pass and return the HTML files written."""
    now = now or datetime.now(UTC)
    since = now - timedelta(days=config.past_day_range)

    messages = load_messages(paths, sender=config.sender or None, since=since)
    logging.info("Loaded %s alert messages since %s", len(messages), since.date().isoformat())

    digest = build_digest(messages, config.page_size)
    result = digest.result
    logging.info(
        "Digest: authors=%s citations=%s new_articles=%s unique_papers=%s pages=%s",
        result.total_authors,
        result.total_citations,
        result.total_new_articles,
        result.total_unique_papers,
        len(digest.pages),
    )

    if not digest.pages:
        logging.info("No matching alerts found; nothing to write")
        return []

    output_dir = Path(config.output_dir)
    written: list[Path] = []
    for page in digest.pages:
        target = output_dir / f"digest_part_{page.index}.html"
        if dry_run:
            logging.info("[dry-run] Would write %s (%s papers): %s", target, len(page.papers), digest_subject(now, page))
            continue
        output_dir.mkdir(parents=True, exist_ok=True)
        target.write_text(render_page(result, page, now, compact=config.compact), encoding="utf-8")
        written.append(target)
        logging.info("Wrote %s", target)

    if dry_run:
        logging.info("[dry-run] Would write CSV export to %s", config.csv_path)
    else:
        write_digest_csv(result.papers, config.csv_path)

    return written


def main(argv: list[str] | None = None) -> None:
    """Initialize config and execute one digest run."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = parse_args(argv)
    config = apply_overrides(DigestConfig.from_env(), args)
    run(args.paths, config, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
