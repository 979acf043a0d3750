"""Assemble one digest from a batch of alert messages.

This is the seam between the mail source and the pure parsing/collation
core: it classifies subjects, names the tracked author, and keeps one bad
message from aborting the batch.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import NamedTuple

from collator import collate_papers
from html_alerts import parse_new_article_email
from models import SELF_AUTHOR, AlertMessage, CollationResult, DigestPage, PaperRecord
from paginator import paginate
from text_alerts import parse_citation_email

LOGGER = logging.getLogger(__name__)

_CITATION_PHRASES = ("citations to articles", "citation to articles")
_SELF_PHRASE = "your articles"
_AUTHOR_PREFIX = "by "


class Digest(NamedTuple):
    result: CollationResult
    pages: list[DigestPage]


class GatheredAlerts(NamedTuple):
    author_papers: dict[str, dict[str, PaperRecord]]
    new_articles: dict[str, PaperRecord]
    # Records from every citation message, before per-author merging.
    citation_count: int


def is_citation_subject(subject: str) -> bool:
    """Return True for citation alerts (someone's or the subscriber's own articles)."""
    return any(phrase in subject for phrase in _CITATION_PHRASES) or _SELF_PHRASE in subject


def author_from_subject(subject: str) -> str | None:
    """Name the tracked author of a citation alert, or None for new-article alerts.

    "New citations to articles by Jane Doe" -> "Jane Doe";
    "New citations to your articles" -> "You".
    """
    if any(phrase in subject for phrase in _CITATION_PHRASES):
        at = subject.find(_AUTHOR_PREFIX)
        if at < 0:
            return subject.strip()
        return subject[at + len(_AUTHOR_PREFIX):].strip()
    if _SELF_PHRASE in subject:
        return SELF_AUTHOR
    return None


def gather_alerts(messages: Iterable[AlertMessage]) -> GatheredAlerts:
    """Parse every message into per-author citation records and new-article records.

    A message that fails to parse is logged and skipped.
    """
    author_papers: dict[str, dict[str, PaperRecord]] = {}
    new_articles: dict[str, PaperRecord] = {}
    citation_count = 0
    parsed = 0
    failed = 0

    for message in messages:
        try:
            if is_citation_subject(message.subject):
                papers = parse_citation_email(message.plain_body)
                author_papers.setdefault(author_from_subject(message.subject), {}).update(papers)
                citation_count += len(papers)
            else:
                new_articles.update(parse_new_article_email(message.html_body, message.subject))
            parsed += 1
        except Exception as exc:
            failed += 1
            LOGGER.exception("Failed parsing alert subject=%r: %s", message.subject, exc)

    LOGGER.info(
        "Gathered alerts: parsed=%s failed=%s authors=%s citations=%s new_articles=%s",
        parsed,
        failed,
        len(author_papers),
        citation_count,
        len(new_articles),
    )
    return GatheredAlerts(author_papers, new_articles, citation_count)


def build_digest(messages: Iterable[AlertMessage], page_size: int) -> Digest:
    """Parse, collate, rank and paginate one batch of alert messages."""
    gathered = gather_alerts(messages)
    result = collate_papers(gathered.author_papers, gathered.new_articles, gathered.citation_count)
    pages = paginate(result.papers, page_size)
    LOGGER.info("Digest: unique_papers=%s pages=%s page_size=%s", result.total_unique_papers, len(pages), page_size)
    return Digest(result=result, pages=pages)
