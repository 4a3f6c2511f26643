"""
Reading Markdown sources and normalizing their front-matter.

``MarkdownParser`` is the parsing collaborator: it reads a file, splits off
the YAML front-matter and renders the body with mistune. The ``normalize_*``
functions turn the untyped front-matter mapping into ``DocumentAttributes``
once, at ingestion, so nothing downstream has to re-validate it.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import mistune
import yaml

from .errors import BuildError
from .languages import Language
from .utils import parse_date

FIRST_H1_RE = re.compile(r'^# [^#]')
KNOWN_ATTRIBUTES = {'title', 'date', 'tags', 'category', 'seo', 'coverImage', 'cover_image', 'lang'}


@dataclass(frozen=True)
class ParsedFile:
    attributes: Dict[str, Any]
    body: str
    html: str


@dataclass(frozen=True)
class DocumentAttributes:
    title: str = ''
    date: Optional[datetime] = None
    raw_date: str = ''
    tags: Tuple[str, ...] = ()
    category: str = ''
    seo_keywords: Tuple[str, ...] = ()
    cover_image: str = ''
    lang: str = ''
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class Document:
    file_path: str
    relative_path: str
    attributes: DocumentAttributes
    html: str
    language: Language
    is_system: bool = False


class MarkdownParser:
    """Front-matter extraction and Markdown rendering."""

    def __init__(self):
        self.logger = logging.getLogger('MarkdownParser')
        self.markdown = self.create_markdown_parser()

    def create_markdown_parser(self):
        """Create a Mistune markdown parser with a custom renderer."""
        class CustomRenderer(mistune.HTMLRenderer):
            def __init__(self):
                super().__init__(escape=False)

            def block_code(self, code, info=None):
                escaped_code = mistune.escape(code)
                return '<pre style="white-space: pre-wrap;"><code>{}</code></pre>'.format(escaped_code)

        return mistune.create_markdown(
            renderer=CustomRenderer(),
            plugins=['table', 'task_lists', 'strikethrough', 'url']
        )

    def parse(self, file_path: str) -> ParsedFile:
        """
        Parse one Markdown file.

        Raises:
            BuildError: the file cannot be read or its front-matter is not
                valid YAML.
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except (IOError, OSError, UnicodeDecodeError) as e:
            raise BuildError(f"Failed to read markdown file: {e}", path=file_path, stage='parse') from e

        try:
            attributes, body = self.split_front_matter(content)
        except yaml.YAMLError as e:
            raise BuildError(f"Invalid YAML front matter: {e}", path=file_path, stage='parse') from e

        html = self.markdown(self.remove_first_h1(body))
        self.logger.debug(f"Parsed {file_path}")
        return ParsedFile(attributes=attributes, body=body, html=html)

    @staticmethod
    def split_front_matter(content: str) -> Tuple[Dict[str, Any], str]:
        """Split ``---`` delimited YAML front-matter from the body."""
        text = content.lstrip('\ufeff')
        if not text.startswith('---'):
            return {}, text

        parts = text.split('---', 2)
        if len(parts) < 3:
            return {}, text

        metadata = yaml.safe_load(parts[1])
        if not isinstance(metadata, dict):
            metadata = {}
        return metadata, parts[2].lstrip('\r\n')

    @staticmethod
    def remove_first_h1(markdown_text: str) -> str:
        """Drop the first ``# Heading`` line so it does not repeat the page title."""
        lines = markdown_text.split('\n')
        for index, line in enumerate(lines):
            if FIRST_H1_RE.match(line.strip()):
                return '\n'.join(lines[:index] + lines[index + 1:])
        return markdown_text

    @staticmethod
    def get_markdown_files(directory: str) -> List[str]:
        """All ``.md`` files below ``directory``, recursively, in a stable order."""
        markdown_files = []
        if not os.path.isdir(directory):
            return markdown_files
        for root, dirs, files in os.walk(directory):
            dirs.sort()
            for file in sorted(files):
                if os.path.splitext(file)[1].lower() == '.md':
                    markdown_files.append(os.path.join(root, file))
        return markdown_files


def _string_list(value) -> List[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        items = [item.strip() if isinstance(item, str) else '' for item in value]
    elif isinstance(value, str):
        items = [item.strip() for item in value.split(',')]
    else:
        return []
    return [item for item in items if item]


def normalize_tags(value) -> Tuple[str, ...]:
    """Trimmed, de-duplicated tags from a list or a comma-separated string."""
    seen = []
    for tag in _string_list(value):
        if tag not in seen:
            seen.append(tag)
    return tuple(seen)


def normalize_category(value) -> str:
    if not isinstance(value, str):
        return ''
    return value.strip()


def normalize_seo_keywords(value) -> Tuple[str, ...]:
    """SEO keywords from a list, a comma-separated string or a ``{keywords: ...}`` mapping."""
    if isinstance(value, dict):
        value = value.get('keywords')
    return tuple(_string_list(value))


def normalize_attributes(raw: Dict[str, Any], language: Language, is_system: bool = False) -> DocumentAttributes:
    """
    Build typed attributes from raw front-matter.

    Posts without a category get the language's default category name;
    system pages keep whatever they declared.
    """
    raw = raw or {}
    category = normalize_category(raw.get('category'))
    if not is_system and not category:
        category = language.navigation.default_category_name

    raw_date = raw.get('date')
    title = raw.get('title')
    cover_image = raw.get('coverImage', raw.get('cover_image'))

    return DocumentAttributes(
        title=str(title).strip() if title is not None else '',
        date=parse_date(raw_date),
        raw_date='' if raw_date is None else str(raw_date),
        tags=normalize_tags(raw.get('tags')),
        category=category,
        seo_keywords=normalize_seo_keywords(raw.get('seo')),
        cover_image=cover_image.strip() if isinstance(cover_image, str) else '',
        lang=language.code,
        extra={key: value for key, value in raw.items() if key not in KNOWN_ATTRIBUTES},
    )


def normalize_document(file_path: str, relative_path: str, parsed: ParsedFile,
                       language: Language, is_system: bool = False) -> Document:
    return Document(
        file_path=file_path,
        relative_path=relative_path,
        attributes=normalize_attributes(parsed.attributes, language, is_system),
        html=parsed.html,
        language=language,
        is_system=is_system,
    )
