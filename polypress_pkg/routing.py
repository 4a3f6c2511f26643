"""
Language resolution and URL/output-path routing.

Every output file and every public URL is derived here from a language's
URL prefix and a list of logical segments, so that the path written to disk
and the link pointing at it can never disagree.
"""

import os
import posixpath
from typing import List, Optional

from .languages import Language, LanguageRegistry, is_language_segment
from .utils import slugify, split_segments

DEFAULT_SITE_URL = 'http://localhost:8080'


def resolve_language(registry: LanguageRegistry, relative_path: str, declared_code=None,
                     is_system_page: bool = False) -> Language:
    """
    Work out which language a source document belongs to.

    ``relative_path`` is relative to the content root. An explicit, registered
    ``lang`` front-matter value wins; otherwise the first directory (the
    second one for system pages, after the system marker) is matched against
    language codes and URL prefixes; otherwise the default language is used.
    """
    declared = registry.get(declared_code) if isinstance(declared_code, str) else None
    if declared is not None:
        return declared

    segments = split_segments(relative_path)
    directories = segments[:-1]
    index = 1 if is_system_page else 0
    if len(directories) > index:
        language = registry.find_by_segment(directories[index])
        if language is not None:
            return language

    return registry.default


def strip_language_segment(relative_path: str, language: Language, is_system_page: bool = False) -> str:
    """
    Drop the system marker (for system pages) and at most one leading
    directory that names ``language``. The file name itself is never removed.
    """
    segments = split_segments(relative_path)
    if is_system_page and segments:
        segments = segments[1:]
    if len(segments) > 1 and is_language_segment(segments[0], language):
        segments = segments[1:]
    return '/'.join(segments)


def document_segments(relative_path: str) -> List[str]:
    """``dir/sub/name.md`` -> ``['dir', 'sub', 'name.html']``."""
    segments = split_segments(relative_path)
    if not segments:
        return []
    name, _ext = posixpath.splitext(segments[-1])
    return segments[:-1] + [f"{name}.html"]


class Router:
    """Builds output paths and public URLs for one output tree."""

    def __init__(self, output_dir: str, site_url: Optional[str] = None):
        self.output_dir = output_dir
        self.site_url = (site_url or DEFAULT_SITE_URL).rstrip('/')

    def build_url(self, language: Language, segments=None, trailing_slash: bool = False) -> str:
        combined = list(language.url_prefix_segments) + split_segments(segments)
        if not combined:
            return '/'
        url = '/' + '/'.join(combined)
        if trailing_slash and not url.endswith('/'):
            url += '/'
        return url

    def build_output_path(self, language: Language, *segments) -> str:
        combined = list(language.url_prefix_segments) + split_segments(list(segments))
        return os.path.join(self.output_dir, *combined)

    def absolute_url(self, path: str) -> str:
        """Prefix a root-relative URL with the site URL."""
        if path == '/':
            return self.site_url
        return f"{self.site_url}{path}"

    def site_url_for(self, language: Language, segments=None, trailing_slash: bool = False) -> str:
        path = self.build_url(language, segments, trailing_slash=trailing_slash)
        if path == '/':
            return f"{self.site_url}/" if trailing_slash else self.site_url
        return f"{self.site_url}{path}"

    def document_output_path(self, relative_path: str, language: Language) -> str:
        return self.build_output_path(language, document_segments(relative_path))

    def document_url(self, relative_path: str, language: Language) -> str:
        return self.build_url(language, document_segments(relative_path))

    def home_url(self, language: Language) -> str:
        return self.build_url(language, [], trailing_slash=True)

    def tag_url(self, tag_name: str, language: Language) -> str:
        return self.build_url(language, ['tags', slugify(tag_name)], trailing_slash=True)

    def category_url(self, category_name: str, language: Language) -> str:
        return self.build_url(language, ['categories', slugify(category_name)], trailing_slash=True)

    def page_url(self, language: Language, page_number: int) -> str:
        if page_number <= 1:
            return self.home_url(language)
        return self.build_url(language, ['page', str(page_number)], trailing_slash=True)

    def page_output_path(self, language: Language, page_number: int) -> str:
        if page_number <= 1:
            return self.build_output_path(language, 'index.html')
        return self.build_output_path(language, 'page', str(page_number), 'index.html')

    def language_switcher(self, registry: LanguageRegistry, current: Language) -> List[dict]:
        """One entry per language pointing at its home page; empty for single-language sites."""
        if len(registry) <= 1:
            return []
        return [
            {
                'code': language.code,
                'label': language.label,
                'url': self.home_url(language),
                'active': language.code == current.code,
            }
            for language in registry
        ]
