"""
Related-post ranking by shared tags.
"""

from typing import List, Sequence

from .content import Document
from .utils import date_sort_key

DEFAULT_LIMIT = 3


def newest_first(documents: Sequence[Document]) -> List[Document]:
    """Stable sort by date, newest first; undated documents sort as the epoch."""
    return sorted(documents, key=lambda doc: date_sort_key(doc.attributes.date), reverse=True)


def recommend(current: Document, documents: Sequence[Document], limit: int = DEFAULT_LIMIT) -> List[Document]:
    """
    Rank the rest of the corpus for ``current``.

    Candidates are ordered by the number of tags they share with ``current``
    (plain intersection size), then by date, newest first. Slots still empty
    after that are filled from the newest documents not already chosen.
    """
    if limit <= 0:
        return []
    current_tags = set(current.attributes.tags)
    others = [doc for doc in documents if doc.file_path != current.file_path]

    ranked = sorted(
        others,
        key=lambda doc: (
            len(current_tags.intersection(doc.attributes.tags)),
            date_sort_key(doc.attributes.date),
        ),
        reverse=True,
    )

    selected = []
    used = set()
    for doc in ranked:
        if len(selected) >= limit:
            break
        if doc.file_path in used:
            continue
        selected.append(doc)
        used.add(doc.file_path)

    if len(selected) < limit:
        for doc in newest_first(others):
            if len(selected) >= limit:
                break
            if doc.file_path in used:
                continue
            selected.append(doc)
            used.add(doc.file_path)

    return selected
