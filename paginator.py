"""Split a ranked record sequence into size-bounded digest pages."""

from __future__ import annotations

import math
from collections.abc import Sequence

from models import DigestPage, PaperRecord


def paginate(papers: Sequence[PaperRecord], page_size: int) -> list[DigestPage]:
    """Return contiguous pages of at most page_size records, in rank order.

    An empty sequence yields no pages; only the last page can be short.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be at least 1, got {page_size}")

    count = math.ceil(len(papers) / page_size)
    return [
        DigestPage(
            index=i + 1,
            count=count,
            papers=tuple(papers[i * page_size:(i + 1) * page_size]),
        )
        for i in range(count)
    ]
