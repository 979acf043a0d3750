from __future__ import annotations

from html_alerts import parse_new_article_email
from models import Provenance

SCHOLAR_ARTICLE_HTML = """\
<html><body>
<div style="font-family:arial,sans-serif;font-size:13px;line-height:16px;color:#222;width:100%;max-width:600px">
<h3 style="font-weight:normal;margin:0;font-size:17px;line-height:20px;">
<a href="http://scholar.google.com/scholar_url?url=https://arxiv.org/abs/2401.00002&amp;hl=en&amp;sa=X&amp;utm_source=alert" class="gse_alrt_title" style="font-size:17px;color:#1a0dab;line-height:22px">Sparse <b>Attention</b> for Long Documents</a></h3>
<div style="color:#006621;line-height:18px">E Ng, F Ortiz - arXiv preprint, 2024</div>
<div class="gse_alrt_sni" style="line-height:17px">We propose a sparse attention pattern<br>that scales linearly &amp; keeps<br/>accuracy.</div>
</div>
</body></html>
"""


def test_extracts_title_url_metadata_and_snippet() -> None:
    papers = parse_new_article_email(SCHOLAR_ARTICLE_HTML, "New articles: sparse attention")

    assert len(papers) == 1
    url, paper = next(iter(papers.items()))
    assert url == "https://scholar.google.com/scholar_url?url=https%3A%2F%2Farxiv.org%2Fabs%2F2401.00002&hl=en&sa=X"
    assert paper.url == url
    assert paper.title == "Sparse Attention for Long Documents"
    assert paper.metadata == "E Ng, F Ortiz - arXiv preprint, 2024"
    assert paper.snippet == "We propose a sparse attention pattern that scales linearly & keeps accuracy."
    assert paper.citation_notes == ()
    assert paper.provenance is Provenance.NEW_ARTICLE_ALERT


def test_ampersand_entity_in_href_is_decoded() -> None:
    body = '<h3><a href="https://x.com/p?a=1&amp;b=2">T</a></h3>'
    assert list(parse_new_article_email(body)) == ["https://x.com/p?a=1&b=2"]


def test_class_qualified_fallback_when_no_heading() -> None:
    body = (
        '<p><a class="gse_alrt_title" href="https://x.com/fallback">Fallback Title</a></p>'
        '<div style="line-height:17px">Snippet via line height</div>'
    )
    paper = parse_new_article_email(body)["https://x.com/fallback"]
    assert paper.title == "Fallback Title"
    assert paper.snippet == "Snippet via line height"
    assert paper.metadata == ""


def test_unquoted_href_is_accepted() -> None:
    body = "<h3><a href=https://x.com/unquoted class=gse_alrt_title>Unquoted</a></h3>"
    assert "https://x.com/unquoted" in parse_new_article_email(body)


def test_no_title_match_yields_no_record() -> None:
    assert parse_new_article_email("<html><body><p>Nothing here</p></body></html>") == {}
    assert parse_new_article_email("") == {}


def test_missing_metadata_and_snippet_degrade_to_empty() -> None:
    paper = parse_new_article_email('<h3><a href="https://x.com/bare">Bare</a></h3>')["https://x.com/bare"]
    assert paper.metadata == ""
    assert paper.snippet == ""


def test_title_link_after_format_label_and_empty_headings() -> None:
    body = (
        "<h3></h3><h3> </h3>"
        '<h3><span style="font-size:11px;font-weight:bold">[HTML]</span> '
        '<a class="gse_alrt_title" href="https://x.com/labelled?fbclid=9">Labelled <i>Title</i></a></h3>'
        '<div style="color: #006621">G Hale - Journal, 2025</div>'
    )
    paper = parse_new_article_email(body)["https://x.com/labelled"]
    assert paper.title == "Labelled Title"
    assert paper.metadata == "G Hale - Journal, 2025"
