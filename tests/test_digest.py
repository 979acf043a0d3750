"""Tests for batch assembly (digest.gather_alerts / digest.build_digest)."""

from __future__ import annotations

from unittest.mock import patch

import pytest

import digest
from models import AlertMessage, Provenance

CITATION_BODY = """\
Shared Paper
<https://x.com/shared?utm_campaign=alerts>
A Author - Venue, 2023
Line one of the snippet
line two of the snippet
Cites: Tracked Work

Only Alice Paper
<https://x.com/alice-only>
B Author - Venue, 2022
Snippet start
snippet end
Cites: Another Work
"""

BOB_BODY = """\
Shared Paper
<http://x.com/shared/>
A Author - Venue, 2023
Line one of the snippet
line two of the snippet
Cites: Bob's Work
"""

ARTICLE_HTML = (
    '<h3><a href="https://x.com/shared" class="gse_alrt_title">Shared Paper</a></h3>'
    '<div style="color:#006621;line-height:18px">A Author - Venue, 2023</div>'
)
OTHER_ARTICLE_HTML = '<h3><a href="https://x.com/keyword">Keyword Paper</a></h3>'


@pytest.mark.parametrize("subject, author", [
    ("New citations to articles by Alice Smith", "Alice Smith"),
    ("1 new citation to articles by Bob Jones ", "Bob Jones"),
    ("New citations to your articles", "You"),
    ("Citations to your articles", "You"),
    ("Sparse attention - new results", None),
    ("Recommended articles", None),
])
def test_author_from_subject(subject: str, author: str | None) -> None:
    assert digest.author_from_subject(subject) == author
    assert digest.is_citation_subject(subject) is (author is not None)


def test_build_digest_merges_authors_and_new_articles() -> None:
    messages = [
        AlertMessage(subject="New citations to articles by Alice", plain_body=CITATION_BODY),
        AlertMessage(subject="New citations to articles by Bob", plain_body=BOB_BODY),
        AlertMessage(subject="New results for sparse attention", html_body=ARTICLE_HTML),
        AlertMessage(subject="New results for ranking", html_body=OTHER_ARTICLE_HTML),
    ]

    result, pages = digest.build_digest(messages, page_size=2)

    assert [p.title for p in result.papers] == ["Shared Paper", "Only Alice Paper", "Keyword Paper"]
    shared = result.papers[0]
    assert shared.url == "https://x.com/shared"
    assert shared.citation_notes == ("Cites Alice: Tracked Work", "Cites Bob: Bob's Work")
    assert shared.provenance is Provenance.BOTH
    assert result.papers[2].provenance is Provenance.NEW_ARTICLE_ALERT
    assert (result.total_authors, result.total_citations, result.total_new_articles) == (2, 3, 2)
    assert [len(p.papers) for p in pages] == [2, 1]


def test_same_author_across_messages_is_one_author() -> None:
    messages = [
        AlertMessage(subject="New citations to articles by Alice", plain_body=CITATION_BODY),
        AlertMessage(subject="New citations to articles by Alice", plain_body=BOB_BODY),
    ]
    author_papers, new_articles, citation_count = digest.gather_alerts(messages)

    assert list(author_papers) == ["Alice"]
    assert set(author_papers["Alice"]) == {"Shared Paper", "Only Alice Paper"}
    # Later message wins for the same title.
    assert author_papers["Alice"]["Shared Paper"].cited_work == "Bob's Work"
    assert new_articles == {}
    assert citation_count == 3


def test_repeated_paper_in_one_authors_messages_counts_every_citation() -> None:
    messages = [
        AlertMessage(subject="New citations to articles by Alice", plain_body=BOB_BODY),
        AlertMessage(subject="New citations to articles by Alice", plain_body=BOB_BODY),
    ]

    result, _ = digest.build_digest(messages, page_size=12)

    assert result.total_unique_papers == 1
    assert result.total_citations == 2
    assert result.papers[0].citation_count == 1


def test_gather_routes_on_citation_subject() -> None:
    messages = [
        AlertMessage(subject="New citations to your articles", plain_body=BOB_BODY, html_body=ARTICLE_HTML),
        AlertMessage(subject="New results for ranking", plain_body=BOB_BODY, html_body=OTHER_ARTICLE_HTML),
    ]

    with patch("digest.is_citation_subject", wraps=digest.is_citation_subject) as mock_classify:
        gathered = digest.gather_alerts(messages)

    assert mock_classify.call_count == 2
    assert list(gathered.author_papers) == ["You"]
    assert list(gathered.new_articles) == ["https://x.com/keyword"]
    assert gathered.citation_count == 1


def test_one_failing_message_does_not_abort_batch(caplog: pytest.LogCaptureFixture) -> None:
    messages = [
        AlertMessage(subject="New citations to articles by Alice", plain_body="boom"),
        AlertMessage(subject="New citations to articles by Bob", plain_body=BOB_BODY),
    ]
    real_parse = digest.parse_citation_email

    def flaky(body: str):
        if body == "boom":
            raise RuntimeError("unparseable")
        return real_parse(body)

    with patch("digest.parse_citation_email", side_effect=flaky):
        result, _ = digest.build_digest(messages, page_size=12)

    assert [p.title for p in result.papers] == ["Shared Paper"]
    assert result.total_authors == 1
    assert "Failed parsing alert" in caplog.text


def test_empty_batch_yields_nothing() -> None:
    result, pages = digest.build_digest([], page_size=12)
    assert result.papers == ()
    assert pages == []
    assert (result.total_authors, result.total_citations, result.total_new_articles, result.total_unique_papers) == (0, 0, 0, 0)
