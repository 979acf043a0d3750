"""Plain-text citation alert parsing.

A citation alert lists several papers, one per blank-line separated block::

    Some Paper Title That May
    Wrap Over Two Lines
    <https://scholar.google.com/scholar_url?url=...>
    A Author, B Author - Journal of Things, 2022
    First line of the snippet ...
    ... last line of the snippet
    Cites: The tracked author's paper

Field boundaries are only implied, so each block is walked with a small state
machine (``BlockState``) and the fields are assigned by position.
"""

from __future__ import annotations

import logging
import re
from enum import Enum, auto
from typing import NamedTuple

from models import PaperRecord, Provenance
from url_normalizer import normalize_url

LOGGER = logging.getLogger(__name__)

# Everything from the legal/unsubscribe footer onwards is ignored.
FOOTER_MARKER = "This message was sent by Google Scholar"
CITES_MARKER = "Cites:"
URL_PREFIX = "<https:"

# The metadata line (authors, venue) ends with the publication year.
_YEAR_LINE_RE = re.compile(r"\s\d{4}$")
_LINE_SPLIT_RE = re.compile(r"\r?\n")


class BlockState(Enum):
    AWAITING_URL = auto()
    AWAITING_YEAR = auto()
    COLLECTING_SNIPPET = auto()


class BlockFields(NamedTuple):
    """Fields recovered from one paper block before post-processing."""

    title_lines: list[str]
    url: str
    metadata_lines: list[str]
    snippet_lines: list[str]


def parse_citation_email(plain_body: str) -> dict[str, PaperRecord]:
    """Parse one citation alert body into records keyed by paper title.

    Malformed input degrades the quality of the recovered fields but never
    raises; blocks with neither a title nor a URL are dropped.
    """
    papers: dict[str, PaperRecord] = {}
    for block in segment_blocks(plain_body):
        record = build_record(classify_block(block))
        if record is None:
            continue
        papers[record.title] = record

    LOGGER.debug("Citation alert parsed: papers=%s", len(papers))
    return papers


def segment_blocks(plain_body: str) -> list[list[str]]:
    """Split the body into per-paper blocks of trimmed, non-empty lines.

    A line containing ``Cites:`` keeps only the text from the marker onwards
    and closes the block: later lines before the next blank line are dropped.
    """
    blocks: list[list[str]] = []
    current: list[str] = []
    closed = False

    for raw_line in _LINE_SPLIT_RE.split(plain_body or ""):
        line = raw_line.strip()
        if FOOTER_MARKER in line:
            break

        if not line:
            if current:
                blocks.append(current)
            current = []
            closed = False
            continue

        if closed:
            continue

        marker_at = line.find(CITES_MARKER)
        if marker_at >= 0:
            current.append(line[marker_at:])
            closed = True
        else:
            current.append(line)

    if current:
        blocks.append(current)
    return blocks


def classify_block(lines: list[str]) -> BlockFields:
    """Assign each line of a block to title, URL, metadata or snippet."""
    state = BlockState.AWAITING_URL
    title_lines: list[str] = []
    metadata_lines: list[str] = []
    snippet_lines: list[str] = []
    url = ""

    for line in lines:
        if line.startswith(URL_PREFIX):
            url = _strip_angle_brackets(line)
            if state is BlockState.AWAITING_URL:
                state = BlockState.AWAITING_YEAR
            continue

        if state is BlockState.AWAITING_URL:
            title_lines.append(line)
        elif state is BlockState.AWAITING_YEAR:
            metadata_lines.append(line)
            if _YEAR_LINE_RE.search(line):
                state = BlockState.COLLECTING_SNIPPET
        else:
            snippet_lines.append(line)

    return BlockFields(title_lines, url, metadata_lines, snippet_lines)


def build_record(fields: BlockFields) -> PaperRecord | None:
    """Post-process classified lines into a record (None if nothing identifies it)."""
    title = " ".join(fields.title_lines).strip()
    url = normalize_url(fields.url)
    if not title and not url:
        return None

    if len(fields.snippet_lines) <= 1:
        # The year heuristic misfired (or there was no snippet at all): what
        # was taken for metadata is really the snippet.
        metadata = ""
        snippet = " ".join(fields.metadata_lines)
        cited_work = ""
    else:
        metadata = " ".join(fields.metadata_lines)
        snippet = " ".join(fields.snippet_lines[:-1])
        cited_work = _strip_cites_prefix(fields.snippet_lines[-1])

    return PaperRecord(
        title=title,
        url=url,
        metadata=metadata,
        snippet=snippet,
        provenance=Provenance.CITATION_ALERT,
        cited_work=cited_work,
    )


def _strip_angle_brackets(line: str) -> str:
    url = line[1:]
    if url.endswith(">"):
        url = url[:-1]
    return url.strip()


def _strip_cites_prefix(line: str) -> str:
    # The last snippet line is normally "Cites: ..."; the note can be cut off
    # mid-title in the alert itself.
    return line[len(CITES_MARKER):].strip()
