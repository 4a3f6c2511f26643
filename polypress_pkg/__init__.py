"""
Polypress - A multi-language static blog generator.

Polypress takes content written in Markdown and uses Jinja2 templates to
generate a static blog in one or more languages: post pages, paginated
indexes, tag and category listings, RSS feeds, search indexes and sitemaps,
each under its language's URL prefix.
"""

__version__ = "1.0.0"

from .core import Polypress
from .errors import BuildError, ConfigError, PolypressError
from .languages import Language, LanguageRegistry
from .routing import Router

__all__ = [
    'Polypress',
    'PolypressError',
    'BuildError',
    'ConfigError',
    'Language',
    'LanguageRegistry',
    'Router',
]
