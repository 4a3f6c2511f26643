"""
Corpus aggregation: tag index, category index and navigation groupings.

Identity rules differ on purpose and must stay that way:

* tags are keyed by the exact trimmed tag string, so ``Go`` and ``go`` are
  two tags even though they share a slug;
* categories are keyed by slug, so ``Web Dev`` and ``web-dev`` collapse into
  one category displayed under the first name seen.

Every function is a pure fold over its input and returns new tuples.
"""

from dataclasses import dataclass, replace
from functools import reduce
from typing import Dict, Iterable, Optional, Tuple

from .content import Document
from .languages import Language
from .routing import Router
from .utils import collation_key, slugify

FALLBACK_PRIMARY_COUNT = 3


@dataclass(frozen=True)
class Tag:
    name: str
    slug: str
    url: str
    count: int = 0


@dataclass(frozen=True)
class Category:
    name: str
    slug: str
    url: str
    count: int = 0
    background_image: str = ''


@dataclass(frozen=True)
class Navigation:
    primary: Tuple[Category, ...]
    more: Tuple[Category, ...]
    more_label: str
    default_category_name: str
    active_page: str = ''
    active_category_slug: str = ''

    @property
    def has_categories(self) -> bool:
        return bool(self.primary or self.more)


def _sorted_by_name(items: Iterable, language: Language):
    """Order by display name using the collation of the language's locale."""
    return tuple(sorted(items, key=lambda item: collation_key(item.name, language.locale)))


def collect_tags(documents: Iterable[Document], language: Language, router: Router) -> Tuple[Tag, ...]:
    """Count documents per exact tag string."""
    def fold(index: Dict[str, Tag], document: Document) -> Dict[str, Tag]:
        updated = dict(index)
        for name in document.attributes.tags:
            current = updated.get(name)
            if current is None:
                current = Tag(name=name, slug=slugify(name), url=router.tag_url(name, language))
            updated[name] = replace(current, count=current.count + 1)
        return updated

    return _sorted_by_name(reduce(fold, documents, {}).values(), language)


def collect_categories(documents: Iterable[Document], language: Language, router: Router,
                       backgrounds: Optional[Dict[str, str]] = None) -> Tuple[Category, ...]:
    """Count documents per category slug; the first display name seen wins."""
    backgrounds = backgrounds or {}

    def fold(index: Dict[str, Category], document: Document) -> Dict[str, Category]:
        name = document.attributes.category
        if not name:
            return index
        slug = slugify(name)
        current = index.get(slug)
        if current is None:
            current = Category(
                name=name,
                slug=slug,
                url=router.category_url(name, language),
                background_image=backgrounds.get(slug, ''),
            )
        updated = dict(index)
        updated[slug] = replace(current, count=current.count + 1)
        return updated

    return _sorted_by_name(reduce(fold, documents, {}).values(), language)


def prepare_backgrounds(config: Optional[Dict[str, str]]) -> Dict[str, str]:
    """Key configured category background images by slug."""
    backgrounds = {}
    for key, value in (config or {}).items():
        if not isinstance(value, str) or not value.strip():
            continue
        slug = slugify(key)
        if slug:
            backgrounds[slug] = value.strip()
    return backgrounds


def build_navigation(categories: Iterable[Category], language: Language,
                     active_page: str = '', active_category_slug: str = '') -> Navigation:
    """
    Split categories into the primary bar and the "more" menu.

    Primary follows the language's ``top_level`` names in order (exact name
    match, no repeats). Everything else goes to "more" with the default
    category moved last. If nothing made it into primary, the first three
    "more" entries are promoted.
    """
    categories = tuple(categories)
    nav_defaults = language.navigation
    used = set()
    primary = []
    for name in nav_defaults.top_level:
        category = next((cat for cat in categories if cat.name == name), None)
        if category is not None and category.slug not in used:
            primary.append(category)
            used.add(category.slug)

    more = []
    for category in categories:
        if category.slug in used:
            continue
        more.append(category)
        used.add(category.slug)

    default_name = nav_defaults.default_category_name
    default_index = next((i for i, cat in enumerate(more) if cat.name == default_name), None)
    if default_index is not None:
        more.append(more.pop(default_index))

    if not primary and more:
        primary = more[:FALLBACK_PRIMARY_COUNT]
        more = more[FALLBACK_PRIMARY_COUNT:]

    return Navigation(
        primary=tuple(primary),
        more=tuple(more),
        more_label=nav_defaults.more_label,
        default_category_name=default_name,
        active_page=active_page or '',
        active_category_slug=active_category_slug or '',
    )
