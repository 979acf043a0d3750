"""Shared typed models for the alert digest."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import NamedTuple

# Sentinel author for alerts about the subscriber's own articles.
SELF_AUTHOR = "You"


class Provenance(Enum):
    """Which alert type(s) produced a record.

    The value doubles as the ranking tiebreak: citation evidence ranks above
    keyword-only discovery.
    """

    CITATION_ALERT = 0
    BOTH = 1
    NEW_ARTICLE_ALERT = 2

    def escalate(self, other: Provenance) -> Provenance:
        """Combine two sightings; differing provenances become BOTH."""
        if self is other:
            return self
        return Provenance.BOTH


@dataclass(frozen=True, slots=True)
class PaperRecord:
    """Canonical paper record produced by the extractors and merged by the collator."""

    title: str
    url: str
    metadata: str = ""
    snippet: str = ""
    citation_notes: tuple[str, ...] = ()
    provenance: Provenance = Provenance.CITATION_ALERT
    # Text after "Cites:" in a single citation alert; folded into citation_notes.
    cited_work: str = ""

    @property
    def citation_count(self) -> int:
        return len(self.citation_notes)


@dataclass(frozen=True, slots=True)
class AlertMessage:
    """One notification email as handed over by the mail source."""

    subject: str
    plain_body: str = ""
    html_body: str = ""
    sender: str = ""
    received_at: datetime | None = field(default=None, compare=False)


class CollationResult(NamedTuple):
    """Ranked records plus the summary counters the renderer captions with."""

    papers: tuple[PaperRecord, ...]
    total_authors: int
    total_citations: int
    total_new_articles: int

    @property
    def total_unique_papers(self) -> int:
        return len(self.papers)


class DigestPage(NamedTuple):
    index: int   # 1-based
    count: int   # total number of pages
    papers: tuple[PaperRecord, ...]
