"""HTML new-article alert parsing.

New-article (keyword) alerts are HTML only. Their markup is known but
fragile: the title link sits in an ``<h3>``, the authors/venue line is a
green ``<div>`` and the snippet a ``gse_alrt_sni`` block. Anything that does
not match simply yields no record.
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, Tag

from models import PaperRecord, Provenance
from url_normalizer import normalize_url

LOGGER = logging.getLogger(__name__)

# (a) title: a heading wrapping a link; fallback on the alert's title class.
_TITLE_SELECTORS = ("h3 a[href]", "a.gse_alrt_title")
# (b) metadata: authors / venue line, rendered in green.
_METADATA_STYLE_RE = re.compile(r"color:\s*#006621", re.IGNORECASE)
# (c) snippet: the abstract excerpt, by class or by its line height.
_SNIPPET_CLASS = "gse_alrt_sni"
_SNIPPET_STYLE_RE = re.compile(r"line-height:\s*17px", re.IGNORECASE)


def parse_new_article_email(html_body: str, subject: str = "") -> dict[str, PaperRecord]:
    """Extract the article announced by one new-article alert.

    Returns a mapping from normalized URL to the record, or an empty mapping
    when no title can be found. ``subject`` is only used for logging.
    """
    soup = BeautifulSoup(html_body or "", "html.parser")

    anchor = _find_title_anchor(soup)
    if anchor is None:
        LOGGER.info("New-article alert has no recognizable article: subject=%r", subject)
        return {}

    title = _tag_text(anchor)
    # The parser has already decoded entities such as &amp; in attribute values.
    url = normalize_url(str(anchor.get("href", "")).strip())
    if not title and not url:
        return {}

    metadata_tag = soup.find("div", style=_METADATA_STYLE_RE)
    snippet_tag = soup.find("div", class_=_SNIPPET_CLASS) or soup.find("div", style=_SNIPPET_STYLE_RE)

    record = PaperRecord(
        title=title,
        url=url,
        metadata=_tag_text(metadata_tag),
        snippet=_tag_text(snippet_tag),
        provenance=Provenance.NEW_ARTICLE_ALERT,
    )
    return {record.url: record}


def _find_title_anchor(soup: BeautifulSoup) -> Tag | None:
    for selector in _TITLE_SELECTORS:
        anchor = soup.select_one(selector)
        if anchor is not None:
            return anchor
    return None


def _tag_text(tag: Tag | None) -> str:
    """Single-spaced text of tag, with line breaks read as spaces."""
    if tag is None:
        return ""
    for br in tag.find_all("br"):
        br.replace_with(" ")
    return " ".join(tag.get_text().split())
