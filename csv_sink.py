"""CSV export of a ranked digest."""

from __future__ import annotations

import csv
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from models import PaperRecord

LOGGER = logging.getLogger(__name__)

CSV_COLUMNS = [
    "rank",
    "title",
    "url",
    "metadata",
    "snippet",
    "citation_count",    # distinct citing authors
    "citation_notes",    # "Cites <author>[: <work>]" joined by " | "
    "provenance",        # citation_alert | both | new_article_alert
]

NOTE_SEPARATOR = " | "
METADATA_MAX_CHARS = 500
SNIPPET_MAX_CHARS = 1000


def write_digest_csv(papers: Sequence[PaperRecord], csv_path: str | Path) -> Path:
    """Write the ranked records to csv_path (overwriting), one row per paper.

    Returns the path written.
    """
    path = Path(csv_path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for rank, paper in enumerate(papers, 1):
            writer.writerow(_paper_row(rank, paper))

    LOGGER.info("Wrote %s digest rows to %s", len(papers), path)
    return path


def _paper_row(rank: int, paper: PaperRecord) -> dict[str, Any]:
    return {
        "rank": rank,
        "title": paper.title,
        "url": paper.url,
        "metadata": _cell_text(paper.metadata),
        "snippet": _cell_text(paper.snippet, max_len=SNIPPET_MAX_CHARS),
        "citation_count": paper.citation_count,
        "citation_notes": NOTE_SEPARATOR.join(paper.citation_notes),
        "provenance": paper.provenance.name.lower(),
    }


def _cell_text(text: str, max_len: int = METADATA_MAX_CHARS) -> str:
    """Flatten an alert text field to one line for a spreadsheet cell.

    Snippets keep the line breaks of the alert email; those collapse to single
    spaces. Text longer than max_len ends in an ellipsis.
    """
    flat = " ".join(text.split())
    if len(flat) <= max_len:
        return flat
    return flat[: max_len - 1].rstrip() + "…"
