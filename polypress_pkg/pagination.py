"""
Pagination of date-sorted post lists.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple

from .languages import Language
from .routing import Router


@dataclass(frozen=True)
class PageSlice:
    items: Tuple[Any, ...]
    page_number: int
    total_pages: int


def total_pages(total: int, page_size: int) -> int:
    """Never less than one page, so an empty corpus still gets an index."""
    if page_size < 1:
        raise ValueError(f"page_size must be at least 1, got {page_size}")
    return max(1, math.ceil(max(0, total) / page_size))


def paginate(sorted_documents: Sequence, page_number: int, page_size: int) -> PageSlice:
    pages = total_pages(len(sorted_documents), page_size)
    start = (page_number - 1) * page_size
    items = tuple(sorted_documents[start:start + page_size]) if page_number >= 1 else ()
    return PageSlice(items=items, page_number=page_number, total_pages=pages)


def build_pagination(router: Router, language: Language, current_page: int, total: int) -> Dict[str, Any]:
    """Pagination descriptor for templates. URLs are recomputed on every call."""
    has_prev = current_page > 1
    has_next = current_page < total
    return {
        'current_page': current_page,
        'total_pages': total,
        'has_prev': has_prev,
        'has_next': has_next,
        'prev_url': router.page_url(language, current_page - 1) if has_prev else '',
        'next_url': router.page_url(language, current_page + 1) if has_next else '',
        'pages': [
            {
                'number': number,
                'url': router.page_url(language, number),
                'is_current': number == current_page,
            }
            for number in range(1, total + 1)
        ],
    }
