"""Merge, deduplicate and rank records from citation and new-article alerts.

Public API
----------
collate_papers(author_papers, new_articles, total_citations) -> CollationResult
merge_citation(existing, sighting, author)  -> PaperRecord
merge_new_article(existing, sighting)       -> PaperRecord
rank_papers(papers)                         -> list[PaperRecord]
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Mapping

from models import CollationResult, PaperRecord, Provenance

LOGGER = logging.getLogger(__name__)


class PaperIndex:
    """Identity index: one slot per paper, looked up by title first, then URL.

    Records are stored once per slot and replaced on merge, so the title and
    URL keys can never end up pointing at two diverging copies.
    """

    def __init__(self) -> None:
        self._records: list[PaperRecord] = []
        self._by_title: dict[str, int] = {}
        self._by_url: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._records)

    def find(self, record: PaperRecord) -> int | None:
        """Return the slot of a known paper matching record, if any.

        An exact title match wins even when the URLs differ.
        """
        if record.title and record.title in self._by_title:
            return self._by_title[record.title]
        if record.url and record.url in self._by_url:
            return self._by_url[record.url]
        return None

    def get(self, slot: int) -> PaperRecord:
        return self._records[slot]

    def add(self, record: PaperRecord) -> int:
        slot = len(self._records)
        self._records.append(record)
        self._register(slot, record)
        return slot

    def replace(self, slot: int, record: PaperRecord) -> None:
        self._records[slot] = record
        self._register(slot, record)

    def records(self) -> list[PaperRecord]:
        """Records in discovery order."""
        return list(self._records)

    def _register(self, slot: int, record: PaperRecord) -> None:
        if record.title:
            self._by_title.setdefault(record.title, slot)
        if record.url:
            self._by_url.setdefault(record.url, slot)


def citation_note(author: str, cited_work: str) -> str:
    """Digest line naming the tracked author (and their cited work, if parsed)."""
    if cited_work:
        return f"Cites {author}: {cited_work}"
    return f"Cites {author}"


def merge_citation(existing: PaperRecord | None, sighting: PaperRecord, author: str) -> PaperRecord:
    """Fold one citation-alert sighting by author into the known record (if any)."""
    note = citation_note(author, sighting.cited_work)
    if existing is None:
        return dataclasses.replace(
            sighting,
            citation_notes=(note,),
            provenance=Provenance.CITATION_ALERT,
        )

    return dataclasses.replace(
        existing,
        citation_notes=existing.citation_notes + (note,),
        provenance=existing.provenance.escalate(Provenance.CITATION_ALERT),
    )


def merge_new_article(existing: PaperRecord | None, sighting: PaperRecord) -> PaperRecord:
    """Fold one new-article sighting into the known record (if any).

    The known record keeps its URL and fields; only provenance changes.
    """
    if existing is None:
        return dataclasses.replace(
            sighting,
            citation_notes=(),
            provenance=Provenance.NEW_ARTICLE_ALERT,
        )
    return dataclasses.replace(
        existing,
        provenance=existing.provenance.escalate(Provenance.NEW_ARTICLE_ALERT),
    )


def rank_papers(papers: Iterable[PaperRecord]) -> list[PaperRecord]:
    """Most distinct citing authors first, then CITATION_ALERT < BOTH < NEW_ARTICLE_ALERT.

    The sort is stable, so remaining ties keep discovery order.
    """
    return sorted(papers, key=lambda p: (-p.citation_count, p.provenance.value))


def collate_papers(
    author_papers: Mapping[str, Mapping[str, PaperRecord]],
    new_articles: Mapping[str, PaperRecord] | None = None,
    total_citations: int | None = None,
) -> CollationResult:
    """Merge per-author citation records and new-article records into one ranked list.

    Args:
        author_papers: AuthorName -> (title -> record) from citation alerts.
        new_articles:  URL -> record from new-article alerts.
        total_citations: Records parsed across all citation messages, counted
            before one author's messages are merged. Defaults to the per-author
            record counts when the caller did not count messages.
    """
    new_articles = new_articles or {}
    index = PaperIndex()
    noted: set[tuple[int, str]] = set()
    if total_citations is None:
        total_citations = sum(len(papers) for papers in author_papers.values())

    for author, papers in author_papers.items():
        for sighting in papers.values():
            slot = index.find(sighting)
            if slot is None:
                slot = index.add(merge_citation(None, sighting, author))
                noted.add((slot, author))
                continue
            if (slot, author) in noted:
                LOGGER.debug("Collate: duplicate sighting by author=%s title=%r", author, sighting.title)
                continue
            index.replace(slot, merge_citation(index.get(slot), sighting, author))
            noted.add((slot, author))

    for sighting in new_articles.values():
        slot = index.find(sighting)
        if slot is None:
            index.add(merge_new_article(None, sighting))
        else:
            known = index.get(slot)
            if known.url and sighting.url and known.url != sighting.url:
                LOGGER.info(
                    "Collate: keeping url=%s for title=%r, dropping url=%s",
                    known.url,
                    known.title,
                    sighting.url,
                )
            index.replace(slot, merge_new_article(known, sighting))

    ranked = rank_papers(index.records())
    result = CollationResult(
        papers=tuple(ranked),
        total_authors=len(author_papers),
        total_citations=total_citations,
        total_new_articles=len(new_articles),
    )
    LOGGER.info(
        "Collate: authors=%s citations=%s new_articles=%s unique_papers=%s",
        result.total_authors,
        result.total_citations,
        result.total_new_articles,
        result.total_unique_papers,
    )
    return result
