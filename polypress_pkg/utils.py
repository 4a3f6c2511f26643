"""
String, path and date helpers shared by every stage of the build.

Everything in here is a pure function: no file-system access, no logging and
no configuration lookups. Collators are cached per locale.
"""

import copy
import re
import unicodedata
from datetime import datetime, date, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional

import icu

TAG_RE = re.compile(r'<[^>]*>')
WHITESPACE_RE = re.compile(r'\s+')
SLUG_INVALID_RE = re.compile(r"[^A-Za-z0-9_\u4e00-\u9fa5]+")
SLUG_REPEAT_RE = re.compile(r'-{2,}')
SEGMENT_SPLIT_RE = re.compile(r'[\\/]+')
PRESERVE_BLOCK_RE = re.compile(r'<(pre|code|textarea|script)([\s\S]*?)</\1>', re.IGNORECASE)

DATE_FORMATS = ['%Y-%m-%dT%H:%M:%S', '%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M', '%Y-%m-%d', '%Y/%m/%d', '%b %d, %Y']
DEFAULT_DISPLAY_FORMAT = '%B %d, %Y'


def slugify(value) -> str:
    """
    Turn a display string into a URL-safe, lowercase, hyphenated slug.

    Accents are folded to their base letters, CJK ideographs are kept as-is
    and every other run of non-word characters becomes a single hyphen.
    The transform is idempotent: ``slugify(slugify(x)) == slugify(x)``.
    """
    if value is None:
        return ''
    text = str(value)
    if not text:
        return ''
    text = unicodedata.normalize('NFD', text)
    text = ''.join(ch for ch in text if not unicodedata.combining(ch))
    text = SLUG_INVALID_RE.sub('-', text)
    text = SLUG_REPEAT_RE.sub('-', text)
    return text.strip('-').lower()


def split_segments(value) -> List[str]:
    """
    Flatten strings, lists and nested lists into trimmed, non-empty path segments.

    Both ``/`` and ``\\`` separate segments, so OS paths and URL paths can be
    mixed freely.
    """
    segments = []

    def process(item):
        if item is None:
            return
        if isinstance(item, (list, tuple)):
            for child in item:
                process(child)
            return
        text = str(item)
        if not text:
            return
        for part in SEGMENT_SPLIT_RE.split(text):
            part = part.strip()
            if part:
                segments.append(part)

    process(value)
    return segments


def deep_merge(base: Optional[Dict[str, Any]], extension: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Recursively merge ``extension`` over ``base`` into a brand new dictionary.

    Mapping values merge key by key; lists and scalars from ``extension``
    replace whatever ``base`` had. Neither input is modified and the result
    shares no mutable values with them.
    """
    def merge(target, source):
        if not isinstance(source, dict):
            return target
        for key, source_value in source.items():
            if isinstance(source_value, dict):
                current = target.get(key)
                target[key] = merge(current if isinstance(current, dict) else {}, source_value)
            else:
                target[key] = copy.deepcopy(source_value)
        return target

    return merge(merge({}, base or {}), extension or {})


@lru_cache(maxsize=None)
def get_collator(locale: Optional[str] = None):
    """ICU collator for a BCP 47 locale such as ``zh-CN``; unknown locales get the root rules."""
    tag = (locale or '').strip().replace('_', '-') or 'und'
    return icu.Collator.createInstance(icu.Locale.forLanguageTag(tag))


def collation_key(name: str, locale: Optional[str] = None):
    """Sort key for display names under the locale's collation, then the raw name."""
    name = name or ''
    return (get_collator(locale).getSortKey(name), name)


def parse_date(value) -> Optional[datetime]:
    """Parse a front-matter date. Returns None for anything unparseable."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    iso_text = text[:-1] + '+00:00' if text.endswith('Z') else text
    try:
        return datetime.fromisoformat(iso_text)
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def date_sort_key(value: Optional[datetime]) -> float:
    """Seconds since the epoch; a missing date sorts as the epoch itself."""
    if value is None:
        return 0.0
    return _as_utc(value).timestamp()


def iso_timestamp(value: Optional[datetime]) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, or '' when absent."""
    if value is None:
        return ''
    return _as_utc(value).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def format_date(value: Optional[datetime], pattern: str = DEFAULT_DISPLAY_FORMAT) -> str:
    if value is None:
        return ''
    return value.strftime(pattern or DEFAULT_DISPLAY_FORMAT)


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub('', html_text or '')


def plain_text(html_text: str) -> str:
    """Tag-free text with whitespace collapsed, used for the search index."""
    text = TAG_RE.sub(' ', html_text or '')
    return WHITESPACE_RE.sub(' ', text).strip()


def excerpt(html_text: str, max_length: int = 200) -> str:
    text = strip_tags(html_text).strip()
    if len(text) > max_length:
        return f"{text[:max_length]}..."
    return text


def minify_html(html_text: str) -> str:
    """
    Collapse whitespace between and around tags.

    ``pre``, ``code``, ``textarea`` and ``script`` blocks are set aside first
    and restored untouched.
    """
    if not isinstance(html_text, str) or not html_text:
        return ''
    placeholders = []

    def stash(match):
        token = f"___HTML_PLACEHOLDER_{len(placeholders)}___"
        placeholders.append((token, match.group(0)))
        return token

    minified = PRESERVE_BLOCK_RE.sub(stash, html_text)
    minified = re.sub(r'\r?\n+', '\n', minified)
    minified = re.sub(r'>\s+<', '><', minified)
    minified = re.sub(r'\s*\n\s*', ' ', minified)
    minified = re.sub(r'\s{2,}', ' ', minified)
    minified = minified.strip()

    for token, content in placeholders:
        minified = minified.replace(token, content)
    return minified
