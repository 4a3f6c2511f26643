"""
Rendering collaborator.

Wraps a Jinja2 environment. Template helpers are handed to the renderer when
it is built instead of being registered on a shared global engine.
"""

import json
import logging
import os
from typing import Any, Callable, Dict, Optional

from jinja2 import (
    Environment, FileSystemLoader, PackageLoader, TemplateError, TemplateNotFound, TemplateSyntaxError,
    pass_context, select_autoescape,
)

from .errors import BuildError

TEMPLATE_NAMES = {
    'post': 'post.html',
    'index': 'index.html',
    'listing': 'listing.html',
}


@pass_context
def translate_helper(context, key, fallback=None):
    """``{{ t('nav.home', 'Home') }}`` against the ``translations`` of the current render."""
    value = context.get('translations') or {}
    for part in str(key).split('.'):
        if not isinstance(value, dict) or part not in value:
            value = None
            break
        value = value[part]
    if isinstance(value, str):
        return value
    return key if fallback is None else fallback


def json_helper(value):
    """JSON safe to embed in a ``<script>`` block: ``</`` is written as ``<\\/``."""
    text = json.dumps(value if value is not None else {}, ensure_ascii=False, default=str)
    return text.replace('</', '<\\/')


def default_helpers() -> Dict[str, Callable]:
    return {'t': translate_helper, 'json': json_helper}


class Renderer:
    """Render logical templates (``post``, ``index``, ``listing``) with a data mapping."""

    def __init__(self, templates_dir: Optional[str] = None, helpers: Optional[Dict[str, Callable]] = None,
                 filters: Optional[Dict[str, Callable]] = None):
        self.logger = logging.getLogger('Renderer')
        self.templates_dir = templates_dir

        if templates_dir and os.path.isdir(templates_dir):
            loader = FileSystemLoader(templates_dir)
        else:
            # Fall back to the templates shipped with the package
            if templates_dir:
                self.logger.info(f"Templates directory {templates_dir} not found, using package templates")
            loader = PackageLoader('polypress_pkg', 'templates')

        self.env = Environment(loader=loader, autoescape=select_autoescape(['html', 'xml']))
        helpers = default_helpers() if helpers is None else helpers
        self.env.globals.update(helpers)
        self.env.filters.update(helpers if filters is None else filters)

    def render(self, template_name: str, data: Dict[str, Any]) -> str:
        """
        Render one logical template.

        Raises:
            BuildError: the template, or one it extends or includes, is missing,
                does not compile or fails while rendering.
        """
        file_name = TEMPLATE_NAMES.get(template_name, template_name)
        try:
            template = self.env.get_template(file_name)
            # extends/include are resolved while rendering
            return template.render(**data)
        except TemplateNotFound as e:
            raise BuildError(f"Template not found: {e}", path=file_name, stage='render') from e
        except TemplateSyntaxError as e:
            raise BuildError(f"Template syntax error: {e}", path=e.filename or file_name, stage='render') from e
        except TemplateError as e:
            raise BuildError(f"Template error: {e}", path=file_name, stage='render') from e

    def __call__(self, template_name: str, data: Dict[str, Any]) -> str:
        return self.render(template_name, data)
