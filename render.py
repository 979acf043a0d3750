"""HTML rendering of digest pages.

The markup mirrors the Scholar alert layout (title link, green metadata line,
snippet block, one bullet row per citing author) so the digest reads like the
alerts it replaces.
"""

from __future__ import annotations

from datetime import datetime

from jinja2 import DictLoader, Environment, select_autoescape

from models import CollationResult, DigestPage, PaperRecord

SNIPPET_CHARS_PER_LINE = 100

DIGEST_TEMPLATE = """\
<!doctype html>
<html xmlns="http://www.w3.org/1999/xhtml">
<head>
<meta charset="utf-8">
<title>{{ subject }}</title>
<style>body{background-color:#fff}.gse_alrt_title{text-decoration:none}.gse_alrt_title:hover{text-decoration:underline} @media screen and (max-width: 599px) {.gse_alrt_sni br{display:none;}}</style>
</head>
<body>
<h2>{{ caption }}</h2>
<div style="font-family:arial,sans-serif;font-size:13px;line-height:16px;color:#222;width:100%;max-width:600px">
{% for paper in papers %}
<h3 style="font-weight:normal;margin:0;font-size:17px;line-height:20px;"><a href="{{ paper.url }}" class="gse_alrt_title" style="font-size:17px;color:#1a0dab;line-height:22px">{{ paper.title }}</a></h3>
{% if paper.metadata %}<div style="color:#006621;line-height:18px">{{ paper.metadata }}</div>
{% endif %}
{% if not compact %}<div class="gse_alrt_sni" style="line-height:17px">{% for line in paper.snippet_lines %}{{ line }}{% if not loop.last %}<br>{% endif %}{% endfor %}</div>
{% endif %}
{% if paper.notes %}<table cellpadding="0" cellspacing="0" border="0" style="padding:8px 0">
{% for note in paper.notes %}<tr><td style="line-height:18px;font-size:12px;padding-right:8px;" valign="top">&bull;</td><td style="line-height:18px;font-size:12px;"><span>{{ note }}</span></td></tr>
{% endfor %}</table>
{% endif %}
<br>
{% endfor %}
</div>
</body>
</html>
"""

_ENV = Environment(
    loader=DictLoader({"digest.html": DIGEST_TEMPLATE}),
    autoescape=select_autoescape(["html", "xml"]),
    trim_blocks=True,
)


def wrap_snippet(snippet: str, chars_per_line: int = SNIPPET_CHARS_PER_LINE) -> list[str]:
    """Greedy word wrap; a single word longer than the width gets its own line."""
    lines: list[str] = []
    current = ""
    for word in snippet.split():
        if not current:
            current = word
        elif len(current) + len(word) + 1 <= chars_per_line:
            current = f"{current} {word}"
        else:
            lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def digest_caption(result: CollationResult, page: DigestPage | None = None) -> str:
    caption = (
        f"Collated {result.total_citations} citations to {result.total_authors} authors "
        f"into {result.total_unique_papers} unique papers"
    )
    if result.total_new_articles:
        caption += f" (including {result.total_new_articles} new articles)"
    if page is not None and page.count > 1:
        caption += f" - Part {page.index}, {len(page.papers)}/{result.total_unique_papers}"
    return caption


def digest_subject(now: datetime, page: DigestPage | None = None) -> str:
    subject = f"Google Scholar Author Citations Digest for {now.strftime('%a %b %d %Y')}"
    if page is not None and page.count > 1:
        subject += f" - Part {page.index}"
    return subject


def render_page(
    result: CollationResult,
    page: DigestPage,
    now: datetime,
    compact: bool = False,
) -> str:
    """Render one digest page as a standalone HTML document.

    Compact mode drops snippets and collapses the per-author notes into a
    single count line, keeping large digests under email size limits.
    """
    template = _ENV.get_template("digest.html")
    return template.render(
        subject=digest_subject(now, page),
        caption=digest_caption(result, page),
        papers=[_paper_context(paper, compact) for paper in page.papers],
        compact=compact,
    )


def _paper_context(paper: PaperRecord, compact: bool) -> dict:
    if compact and paper.citation_notes:
        notes = [f"Cites: {paper.citation_count} subscribed authors."]
    else:
        notes = list(paper.citation_notes)
    return {
        "title": paper.title,
        "url": paper.url,
        "metadata": paper.metadata,
        "snippet_lines": wrap_snippet(paper.snippet),
        "notes": notes,
    }
