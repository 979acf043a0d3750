"""Canonical URL form used as the primary paper identity."""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

# The same article is linked with different tracking parameters across
# separate alert emails; these never change which document is addressed.
TRACKING_QUERY_PARAMS: frozenset[str] = frozenset({
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "fbclid",
    "gclid",
    "mc_cid",
    "mc_eid",
    "_ga",
    "ref",
    "source",
})


def normalize_url(url: str) -> str:
    """Return the canonical form of url, or url unchanged if it cannot be parsed.

    Tracking query parameters are dropped, ``http`` is upgraded to ``https``
    and trailing slashes are removed. Never raises; applying it twice gives
    the same result as applying it once.
    """
    if not url:
        return ""

    raw = url.strip()
    try:
        parts = urlsplit(raw)
        parts.port  # validates the netloc, raises ValueError on a bad port
    except ValueError:
        return url

    if not parts.scheme or not parts.netloc:
        return raw

    scheme = parts.scheme.lower()
    if scheme == "http":
        scheme = "https"

    # Trailing slashes come off whichever component ends the URL. A fragment
    # or query that is only slashes disappears, exposing the part before it.
    path = parts.path.rstrip("/")
    fragment = parts.fragment.rstrip("/")
    query = parts.query if fragment else parts.query.rstrip("/")

    pairs = parse_qsl(query, keep_blank_values=True)
    kept = [(key, value) for key, value in pairs if key.strip().lower() not in TRACKING_QUERY_PARAMS]
    # Only re-encode when something was dropped so untouched links keep their exact query.
    if len(kept) != len(pairs):
        query = urlencode(kept, doseq=True)

    return urlunsplit((scheme, parts.netloc, path, query, fragment))
