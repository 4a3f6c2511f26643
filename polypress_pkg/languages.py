"""
Language registry.

Turns the ``i18n`` block of the settings into a list of ``Language`` objects,
layers every non-default language's translations over the default
language's, and answers lookups by code or by URL-prefix segment.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .utils import deep_merge

DEFAULT_LANGUAGE_CODE = 'default'
DEFAULT_LOCALE = 'en-US'
DEFAULT_MORE_LABEL = 'More'
DEFAULT_CATEGORY_NAME = 'Other'


@dataclass(frozen=True)
class NavigationDefaults:
    more_label: str = DEFAULT_MORE_LABEL
    default_category_name: str = DEFAULT_CATEGORY_NAME
    top_level: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Language:
    code: str
    label: str
    locale: str
    is_default: bool
    route_prefix: str = ''
    url_prefix_segments: Tuple[str, ...] = ()
    translations: Dict[str, Any] = field(default_factory=dict, compare=False)
    navigation: NavigationDefaults = field(default_factory=NavigationDefaults)


def merge_translations(base: Optional[Dict[str, Any]], extension: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Layer ``extension`` over a copy of ``base``; see ``utils.deep_merge``."""
    return deep_merge(base, extension)


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ''


def _prefix_segments(prefix: str) -> Tuple[str, ...]:
    return tuple(part for part in prefix.split('/') if part)


def normalize_language(code: str, lang_config: Optional[Dict[str, Any]], is_default: bool,
                       global_navigation: Optional[Dict[str, Any]] = None) -> Language:
    """Build a ``Language`` from one entry of ``i18n.languages``."""
    lang_config = lang_config if isinstance(lang_config, dict) else {}
    global_navigation = global_navigation or {}

    label = _text(lang_config.get('label')) or code.upper()
    locale = _text(lang_config.get('locale')) or DEFAULT_LOCALE
    prefix = _text(lang_config.get('route_prefix')) or ('' if is_default else code)
    prefix = prefix.strip('/')

    nav_config = lang_config.get('navigation')
    nav_config = nav_config if isinstance(nav_config, dict) else {}
    top_level = nav_config.get('top_level')
    if not isinstance(top_level, list):
        top_level = global_navigation.get('top_level')
    if not isinstance(top_level, list):
        top_level = []

    navigation = NavigationDefaults(
        more_label=_text(nav_config.get('more_label'))
        or _text(global_navigation.get('more_label'))
        or DEFAULT_MORE_LABEL,
        default_category_name=_text(nav_config.get('default_category_name'))
        or _text(global_navigation.get('default_category_name'))
        or DEFAULT_CATEGORY_NAME,
        top_level=tuple(str(name) for name in top_level),
    )

    translations = lang_config.get('translations')
    return Language(
        code=code,
        label=label,
        locale=locale,
        is_default=is_default,
        route_prefix=prefix,
        url_prefix_segments=_prefix_segments(prefix),
        translations=translations if isinstance(translations, dict) else {},
        navigation=navigation,
    )


def load_languages(config: Optional[Dict[str, Any]]) -> List[Language]:
    """
    Load the configured languages.

    With no languages configured a single implicit default language with an
    empty URL prefix is returned. A ``default_language`` that names no
    declared language falls back to the first declared one.
    """
    config = config or {}
    i18n = config.get('i18n') or {}
    global_navigation = (config.get('navigation') or {}).get('categories') or {}
    declared = i18n.get('languages') or {}
    codes = [str(code) for code in declared.keys()]

    if not codes:
        code = _text(i18n.get('default_language')) or DEFAULT_LANGUAGE_CODE
        return [normalize_language(code, {}, True, global_navigation)]

    default_code = _text(i18n.get('default_language'))
    if default_code not in codes:
        default_code = codes[0]

    languages = [
        normalize_language(code, declared[code], code == default_code, global_navigation)
        for code in codes
    ]
    default = next(lang for lang in languages if lang.is_default)

    merged = []
    for lang in languages:
        if lang.is_default:
            translations = merge_translations({}, lang.translations)
        else:
            translations = merge_translations(default.translations, lang.translations)
        merged.append(Language(
            code=lang.code,
            label=lang.label,
            locale=lang.locale,
            is_default=lang.is_default,
            route_prefix=lang.route_prefix,
            url_prefix_segments=lang.url_prefix_segments,
            translations=translations,
            navigation=lang.navigation,
        ))
    return merged


def is_language_segment(segment, language: Optional[Language]) -> bool:
    """
    True when a path segment names ``language``.

    The segment is compared case-insensitively with the language code, its
    raw route prefix and the first segment of its URL prefix.
    """
    if not segment or language is None:
        return False
    normalized = str(segment).strip().lower()
    if not normalized:
        return False
    if normalized == str(language.code).lower():
        return True
    if language.route_prefix and normalized == language.route_prefix.lower():
        return True
    if language.url_prefix_segments and normalized == language.url_prefix_segments[0].lower():
        return True
    return False


def get_translation(language: Optional[Language], key: str):
    if language is None or not key:
        return None
    value = language.translations
    for part in key.split('.'):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def translate(language: Optional[Language], key: str, fallback: str = '',
              replacements: Optional[Dict[str, Any]] = None) -> str:
    """
    Resolve a dotted translation key.

    Falls back to ``fallback`` and then to the key itself. ``{{ name }}``
    placeholders are filled from ``replacements``.
    """
    template = get_translation(language, key)
    text = template if isinstance(template, str) else (fallback or key)
    for name, value in (replacements or {}).items():
        text = re.sub(r'{{\s*' + re.escape(str(name)) + r'\s*}}', lambda _m: str(value), text)
    return text


class LanguageRegistry:
    """Lookup table over the configured languages."""

    def __init__(self, languages: List[Language]):
        if not languages:
            raise ValueError("At least one language is required")
        self.languages = list(languages)
        self._by_code = {lang.code: lang for lang in self.languages}
        self.default = next((lang for lang in self.languages if lang.is_default), self.languages[0])

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]]) -> 'LanguageRegistry':
        return cls(load_languages(config))

    def __iter__(self):
        return iter(self.languages)

    def __len__(self):
        return len(self.languages)

    def __contains__(self, code):
        return code in self._by_code

    def get(self, code: Optional[str]) -> Optional[Language]:
        if not isinstance(code, str):
            return None
        return self._by_code.get(code.strip())

    def find_by_segment(self, segment: Optional[str]) -> Optional[Language]:
        """Match a path segment against codes first, then against URL prefixes."""
        if not segment:
            return None
        language = self.get(segment)
        if language is not None:
            return language
        for language in self.languages:
            if is_language_segment(segment, language):
                return language
        return None
